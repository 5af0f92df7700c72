from sanctuary.models import User
from sanctuary.services.chat import normalize_channel_name, resolve_mentions


def test_normalize_channel_name():
    assert normalize_channel_name("  Morning   Check In ") == "morning-check-in"
    assert normalize_channel_name("   ") == ""


def test_resolve_mentions_prefers_longest_name():
    users = [User(id="a", name="Ann"), User(id="b", name="Anna Bell")]
    assert resolve_mentions("ping @Anna Bell please", users) == ["b"]
    assert sorted(resolve_mentions("@ann and @anna bell", users)) == ["a", "b"]
    assert resolve_mentions("no mentions here", users) == []


def test_available_organizations(client, admin, elena):
    assert [org["id"] for org in client.get("/chat/organizations", headers=admin).json()] == ["org1", "org2", "org3"]
    assert [org["id"] for org in client.get("/chat/organizations", headers=elena).json()] == ["org2"]


def test_private_channel_visibility(client, admin, james, marcus, elena):
    assert {c["id"] for c in client.get("/chat/organizations/org1/channels", headers=admin).json()} == {"ch-1", "ch-2"}
    assert {c["id"] for c in client.get("/chat/organizations/org1/channels", headers=james).json()} == {"ch-1", "ch-2"}
    assert {c["id"] for c in client.get("/chat/organizations/org1/channels", headers=marcus).json()} == {"ch-1"}

    assert client.get("/chat/organizations/org1/channels", headers=elena).status_code == 403
    assert client.get("/chat/channels/ch-2/messages", headers=marcus).status_code == 403
    assert client.get("/chat/channels/ch-1/messages", headers=elena).status_code == 403
    assert client.get("/chat/organizations/org9/channels", headers=admin).status_code == 404


def test_messages_and_mentions(client, james, elena):
    history = client.get("/chat/channels/ch-2/messages", headers=james).json()
    assert [m["id"] for m in history] == ["cm-2"]
    assert history[0]["mentions"] == ["c1"]

    sent = client.post("/chat/channels/ch-1/messages", json={"text": "Thanks @Dr. Aris (Naturopath)!"},
                       headers=james).json()
    assert sent["mentions"] == ["2"]
    assert sent["sender_name"] == "James Wilson"

    assert client.post("/chat/channels/ch-1/messages", json={"text": "  "}, headers=james).status_code == 400
    assert client.post("/chat/channels/ch-1/messages", json={"text": "hi"}, headers=elena).status_code == 403


def test_create_channel(client, james):
    channel = client.post("/chat/organizations/org1/channels", json={"name": "Wellness Circle", "type": "private"},
                          headers=james).json()
    assert channel["name"] == "wellness-circle"
    assert channel["members"] == ["c1"]
    assert client.post("/chat/organizations/org2/channels", json={"name": "x"}, headers=james).status_code == 403
    assert client.post("/chat/organizations/org1/channels", json={"name": "x", "type": "secret"},
                       headers=james).status_code == 400


def test_channel_membership_and_delete(client, admin, james):
    channel = client.post("/chat/channels/ch-2/members", json={"user_id": "3"}, headers=admin).json()
    assert channel["members"] == ["1", "2", "c1", "3"]
    assert client.post("/chat/channels/ch-2/members", json={"user_id": "c2"}, headers=admin).status_code == 400
    assert client.post("/chat/channels/ch-2/members", json={"user_id": "3"}, headers=james).status_code == 403

    assert client.delete("/chat/channels/ch-2", headers=james).status_code == 403
    assert client.delete("/chat/channels/ch-2", headers=admin).status_code == 200
    assert client.get("/chat/channels/ch-2/messages", headers=admin).status_code == 404


def test_mention_candidates(client, james):
    names = [user["name"] for user in client.get("/chat/organizations/org1/mentions?q=sa", headers=james).json()]
    assert names == ["Sadaya Admin", "Sarah Miller"]
    assert client.get("/chat/organizations/org2/mentions", headers=james).status_code == 403
