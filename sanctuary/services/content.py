"""
Deterministic content generators.

Proposal documents, project task plans, invoice e-mails and marketing
strategy documents are built from fixed templates keyed on the requested
services and free-text answers.
"""

from datetime import date, timedelta
from typing import Dict, List, Optional

# Service catalog: (initial cost, monthly cost, phase deliverables)
SERVICE_CATALOG: Dict[str, dict] = {
    "Retreat Stay": {
        "initial": 8000, "monthly": 0,
        "items": ["Private suite accommodation", "Daily guided meditation", "Chef prepared meals"],
    },
    "2-Week Retreat": {
        "initial": 6000, "monthly": 0,
        "items": ["Two-week residential stay", "Arrival wellness assessment", "Closing integration session"],
    },
    "Naturopathic Package": {
        "initial": 4000, "monthly": 0,
        "items": ["Blood panel analysis", "Custom supplement protocol", "Nutritional reset plan"],
    },
    "Integration Coaching": {
        "initial": 0, "monthly": 4000,
        "items": ["Weekly coaching calls", "Habit tracking", "Quarterly progress review"],
    },
    "Corporate Wellness Program": {
        "initial": 5000, "monthly": 2000,
        "items": ["Team burnout assessment", "Onsite workshop series", "Manager wellbeing toolkit"],
    },
    "Spiritual Workshops": {
        "initial": 1500, "monthly": 500,
        "items": ["Breathwork circles", "Somatic release sessions", "Intention setting rituals"],
    },
}
DEFAULT_SERVICE = {"initial": 2500, "monthly": 0, "items": ["Discovery session", "Tailored plan", "Follow-up review"]}

DEFAULT_STRATEGY = [
    {"title": "Healing Path", "content": "Focus on mind-body-soul integration."},
    {"title": "Measured Progress", "content": "Baseline assessment on arrival, review at every phase gate."},
    {"title": "Sustained Change", "content": "Coaching cadence that carries the retreat into daily life."},
]


def generate_proposal_content(client_name: str, industry: str, services: List[str], notes: str = "") -> dict:
    """
    Build a proposal document: one phase and one investment line per service.
    """
    services = [service for service in (services or []) if str(service).strip()]
    phases = []
    investment = []
    for index, service in enumerate(services, start=1):
        entry = SERVICE_CATALOG.get(service, DEFAULT_SERVICE)
        phases.append({
            "title": f"Phase {index}: {service}",
            "description": f"Focus: delivering {service.lower()} for {client_name}.",
            "items": list(entry["items"]),
        })
        investment.append({"item": service, "cost_initial": entry["initial"], "cost_monthly": entry["monthly"]})

    upfront = sum(line["cost_initial"] for line in investment)
    monthly = sum(line["cost_monthly"] for line in investment)
    subject = f"{industry} " if industry else ""
    description = f"Holistic {subject}wellness plan."
    if notes:
        description = f"{description} {notes.strip()}"

    return {
        "hero": {
            "title": f"Wellness Proposal for {client_name}",
            "subtitle": "An integrated path to recovery, balance and sustained performance.",
        },
        "engine": {"generated_value": int(round((upfront + 12 * monthly) * 1.5)), "description": description},
        "phases": phases,
        "investment": investment,
        "strategy": [dict(item) for item in DEFAULT_STRATEGY],
        "ad_spend": [],
    }


def investment_totals(content: dict) -> Dict[str, float]:
    lines = (content or {}).get("investment") or []
    return {
        "upfront": float(sum(float(line.get("cost_initial") or 0) for line in lines)),
        "retainer": float(sum(float(line.get("cost_monthly") or 0) for line in lines)),
    }


# ============================================================================
# PROJECT TASK TEMPLATES
# ============================================================================

def _checklist(*texts: str) -> List[dict]:
    return [{"id": str(index), "text": text, "completed": False} for index, text in enumerate(texts, start=1)]


# (keywords, title, description, priority, checklist)
TASK_TEMPLATES = [
    (("website", "web", "landing"), "Website Architecture & Wireframes",
     "Design site structure and create wireframes for key pages.", "High",
     ("Create sitemap", "Design homepage wireframe", "Review with stakeholders")),
    (("brand", "design", "visual"), "Brand Identity Development",
     "Establish visual identity and brand guidelines.", "High",
     ("Define color palette", "Select typography", "Create brand guide document")),
    (("content", "copy", "blog"), "Content Strategy & Creation",
     "Develop content calendar and create initial assets.", "Medium",
     ("Research target keywords", "Create content calendar", "Write first batch of content")),
    (("seo", "search", "organic"), "SEO Foundation Setup",
     "Implement technical SEO and on-page optimization.", "High",
     ("Technical SEO audit", "Optimize meta tags", "Setup search console")),
    (("social", "instagram", "facebook", "linkedin"), "Social Media Setup & Strategy",
     "Configure social profiles and create posting strategy.", "Medium",
     ("Audit existing profiles", "Create content templates", "Schedule first week posts")),
    (("ads", "ppc", "paid", "campaign"), "Paid Advertising Setup",
     "Configure ad accounts and create initial campaigns.", "High",
     ("Setup ad accounts", "Define target audiences", "Create ad creatives")),
    (("email", "newsletter", "automation"), "Email Marketing Setup",
     "Configure email platform and create automation flows.", "Medium",
     ("Setup email platform", "Design email templates", "Create welcome sequence")),
    (("analytics", "tracking", "data"), "Analytics & Tracking Setup",
     "Implement tracking and configure dashboards.", "High",
     ("Setup Google Analytics", "Configure conversion tracking", "Create reporting dashboard")),
]

BASELINE_TASKS = [
    ("Project Kickoff & Planning", "Initial planning session and timeline establishment.", "High",
     ("Review project requirements", "Create project timeline", "Assign team responsibilities")),
    ("Client Review & Feedback", "Present deliverables and gather client feedback.", "Medium",
     ("Prepare presentation", "Schedule review meeting", "Document feedback")),
]

MAX_GENERATED_TASKS = 6


def generate_project_tasks(strategy_text: str, today: Optional[date] = None) -> List[dict]:
    """
    Task plan for a project strategy: keyword-matched templates first, then
    the kickoff and review baseline, capped at six. Due dates are staggered
    three days apart starting a week out.
    """
    today = today or date.today()
    keywords = str(strategy_text or "").lower()

    picked = [
        (title, description, priority, checklist)
        for words, title, description, priority, checklist in TASK_TEMPLATES
        if any(word in keywords for word in words)
    ]
    picked.extend(BASELINE_TASKS)

    return [
        {
            "title": title,
            "description": description,
            "priority": priority,
            "checklist": _checklist(*checklist),
            "due_date": today + timedelta(days=7 + 3 * index),
        }
        for index, (title, description, priority, checklist) in enumerate(picked[:MAX_GENERATED_TASKS])
    ]


# ============================================================================
# INVOICE E-MAIL
# ============================================================================

def generate_invoice_email(client_name: str, invoice_id: str, amount: float, due_date: Optional[date]) -> dict:
    due = due_date.isoformat() if due_date else "on receipt"
    body = (
        f"Dear {client_name},\n\n"
        f"Please find attached invoice {invoice_id} for ${amount:,.2f}, due {due}.\n\n"
        "Thank you for trusting Sadaya Sanctuary with your wellbeing.\n\n"
        "Warm regards,\nSadaya Sanctuary Finance"
    )
    return {"subject": f"Invoice {invoice_id}", "body": body}


# ============================================================================
# MARKETING STRATEGY
# ============================================================================

def intake_questions(services: List[str]) -> List[dict]:
    """Questionnaire for a marketing strategy, depending on the purchased services."""
    lowered = [str(service).lower() for service in (services or [])]
    questions = [{"id": "goal", "label": "What is the primary revenue goal for this campaign?"}]
    if any("seo" in service or "web" in service for service in lowered):
        questions.append({"id": "keywords", "label": "List top 3 competitor websites or target keywords."})
    if any("social" in service or "ads" in service for service in lowered):
        questions.append({
            "id": "social_tone",
            "label": "Describe the desired tone for social copy (e.g., Witty, Professional).",
        })
    if any("email" in service for service in lowered):
        questions.append({"id": "email_offer", "label": "What is the core lead magnet or offer for email capture?"})
    return questions


def generate_marketing_strategy(client_name: str, answers: dict) -> dict:
    answers = answers or {}
    goal = str(answers.get("goal") or "steady growth in retreat bookings").strip()
    channels = ["Website", "Referral Partnerships"]
    if answers.get("keywords"):
        channels.append("Organic Search")
    if answers.get("social_tone"):
        channels.append("Social Media")
    if answers.get("email_offer"):
        channels.append("Email Nurture")

    return {
        "executive_summary": f"A phased growth plan for {client_name} aimed at {goal}.",
        "target_audience": "Health-conscious professionals seeking restorative, guided experiences.",
        "brand_voice": str(answers.get("social_tone") or "Calm, warm and assured").strip(),
        "roadmap": [
            {"phase": "Phase 1: Foundation", "timeline": "Weeks 1-4",
             "objectives": ["Audit current presence", "Align messaging with the retreat offer"]},
            {"phase": "Phase 2: Growth", "timeline": "Weeks 5-8",
             "objectives": [f"Launch {channel.lower()} initiatives" for channel in channels[:2]]},
        ],
        "channels": channels,
        "kpis": ["Qualified inquiries per month", "Booking conversion rate", "Cost per booking"],
    }
