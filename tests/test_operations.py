from datetime import date, datetime

from sanctuary.models import Task, TaskStatus
from sanctuary.services.content import generate_project_tasks
from sanctuary.services.operations import compute_progress, task_due_state


def test_compute_progress_ignores_archived():
    tasks = [
        Task(status=TaskStatus.DONE, is_archived=False),
        Task(status=TaskStatus.TODO, is_archived=False),
        Task(status=TaskStatus.TODO, is_archived=False),
        Task(status=TaskStatus.DONE, is_archived=True),
    ]
    assert compute_progress(tasks) == 33
    assert compute_progress([]) == 0
    assert compute_progress([Task(status=TaskStatus.DONE, is_archived=True)]) == 0


def test_task_due_state():
    now = datetime(2026, 3, 1, 12, 0)
    assert task_due_state(date(2026, 3, 1), now) == "overdue"
    assert task_due_state(date(2026, 3, 3), now) == "due_soon"
    assert task_due_state(date(2026, 3, 4), now) == "safe"
    assert task_due_state(None, now) is None


def test_generated_task_plan():
    today = date(2026, 3, 1)
    plan = generate_project_tasks("website and seo launch plan", today=today)
    assert [task["title"] for task in plan] == [
        "Website Architecture & Wireframes", "SEO Foundation Setup",
        "Project Kickoff & Planning", "Client Review & Feedback",
    ]
    assert [task["due_date"] for task in plan[:2]] == [date(2026, 3, 8), date(2026, 3, 11)]

    everything = generate_project_tasks("website brand content seo social ads email analytics", today=today)
    assert len(everything) == 6


def test_project_visibility(client, admin, aris, james, elena):
    assert [p["id"] for p in client.get("/projects", headers=admin).json()] == ["p1", "p2", "p3"]
    assert [p["id"] for p in client.get("/projects", headers=aris).json()] == ["p1"]
    assert [p["id"] for p in client.get("/projects", headers=james).json()] == ["p1", "p2"]
    assert client.get("/projects/p3", headers=james).status_code == 404
    assert client.get("/projects", headers=elena).status_code == 403


def test_project_progress_from_tasks(client, admin):
    project = client.get("/projects/p1", headers=admin).json()
    assert project["progress"] == 33
    assert len(project["tasks"]) == 6

    archived = client.post("/tasks/t2/archive", headers=admin).json()
    assert archived["is_archived"] is True
    assert client.get("/projects/p1", headers=admin).json()["progress"] == 40


def test_create_project_with_strategy(client, aris):
    resp = client.post("/projects", json={
        "organization_id": "org1", "title": "Digital Presence", "strategy": "website and seo launch plan",
    }, headers=aris)
    assert resp.status_code == 200
    project = resp.json()
    assert project["task_count"] == 4
    assert project["progress"] == 0

    # Short strategies do not generate tasks
    quiet = client.post("/projects", json={"organization_id": "org2", "title": "Quiet", "strategy": "seo"},
                        headers=aris).json()
    assert quiet["task_count"] == 0


def test_create_project_refusals(client, aris, admin, james):
    assert client.post("/projects", json={"organization_id": "org3", "title": "X"}, headers=aris).status_code == 403
    assert client.post("/projects", json={"organization_id": "org1", "title": " "}, headers=admin).status_code == 400
    assert client.post("/projects", json={"organization_id": "org1", "title": "X"}, headers=james).status_code == 403


def test_task_crud(client, admin, james):
    task = client.post("/projects/p3/tasks", json={"title": "Breathwork intake", "priority": "High"},
                       headers=admin).json()
    assert task["status"] == "To Do"
    assert task["organization_id"] == "org2"

    updated = client.put(f"/tasks/{task['id']}", json={"status": "Done"}, headers=admin).json()
    assert updated["status"] == "Done"
    assert client.put(f"/tasks/{task['id']}", json={"status": "Blocked"}, headers=admin).status_code == 400
    assert client.put("/tasks/t1", json={"title": "Mine now"}, headers=james).status_code == 403

    assert client.delete(f"/tasks/{task['id']}", headers=admin).status_code == 200
    assert client.put(f"/tasks/{task['id']}", json={"status": "Done"}, headers=admin).status_code == 404


def test_checklist_operations(client, aris):
    task = client.post("/tasks/t1/checklist", json={"text": "Send summary to James"}, headers=aris).json()
    assert len(task["checklist"]) == 4
    assert task["checklist"][-1]["completed"] is False

    task = client.put("/tasks/t1/checklist/c3", json={"toggle": True}, headers=aris).json()
    assert [item["completed"] for item in task["checklist"][:3]] == [True, True, True]

    task = client.delete("/tasks/t1/checklist/c1", headers=aris).json()
    assert [item["id"] for item in task["checklist"][:2]] == ["c2", "c3"]

    assert client.put("/tasks/t1/checklist/nope", json={"toggle": True}, headers=aris).status_code == 404
    assert client.post("/tasks/t1/checklist", json={"text": "  "}, headers=aris).status_code == 400


def test_attachments(client, aris):
    task = client.post("/tasks/t1/attachments", json={"item_id": "11"}, headers=aris).json()
    assert task["attachments"] == ["11"]
    assert client.post("/tasks/t1/attachments", json={"item_id": "11"}, headers=aris).status_code == 400
    assert client.post("/tasks/t1/attachments", json={"item_id": "1"}, headers=aris).status_code == 400
    assert client.post("/tasks/t1/attachments", json={"item_id": "999"}, headers=aris).status_code == 404
