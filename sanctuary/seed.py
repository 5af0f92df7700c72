"""
Demo dataset for the sanctuary hub.

Loaded into an empty database by `init_db()`. Dates are relative to the day the
seed runs so dashboards, deadlines and the revenue chart always have data.
"""

import calendar
import logging
from datetime import date, timedelta

from sqlalchemy.orm import Session

from sanctuary.config import DEFAULT_PASSWORD
from sanctuary.models import (
    Organization, User, WaiverRecord, Proposal, Invoice, Project, Task, DriveItem,
    SupportTicket, TicketMessage, ClassEvent, ChatChannel, ChatMessage,
    UserRole, UserKind, AccountStatus, OrganizationStatus, ProposalStatus,
    InvoiceType, InvoiceStatus, ProjectStatus, TaskStatus, Priority, DriveItemType,
    TicketStatus, RecurringCycle, PayoutType, ChannelType,
)
from sanctuary.services.auth import hash_password, default_notification_preferences

logger = logging.getLogger(__name__)

ALL_STAFF_PERMISSIONS = [
    "view_dashboard", "view_proposals", "edit_proposals", "view_operations", "edit_operations",
    "view_finance", "edit_finance", "view_users", "edit_users", "view_marketing", "edit_marketing",
    "view_support", "edit_support", "view_classes", "edit_classes",
]


def future_date(days: int, today: date = None) -> date:
    return (today or date.today()) + timedelta(days=days)


def past_date(months_ago: int, day: int = 15, today: date = None) -> date:
    """Day `day` of the month `months_ago` months before today (clamped to month length)."""
    today = today or date.today()
    month_index = today.year * 12 + (today.month - 1) - months_ago
    year, month = divmod(month_index, 12)
    month += 1
    return date(year, month, min(day, calendar.monthrange(year, month)[1]))


def _user(password_hash: str, **fields) -> User:
    fields.setdefault("status", AccountStatus.ACTIVE)
    fields.setdefault("notification_preferences", default_notification_preferences())
    return User(password_hash=password_hash, **fields)


def _seed_directory(db: Session, password_hash: str):
    db.add_all([
        Organization(
            id="org1", name="Executive Wellness Group", industry="Corporate Wellness",
            status=OrganizationStatus.ACTIVE, assigned_employees=["2", "3"],
        ),
        Organization(
            id="org2", name="Holistic Life Path", industry="Individual Coaching",
            status=OrganizationStatus.ONBOARDING, assigned_employees=["2"],
        ),
        Organization(
            id="org3", name="Serenity Foundation", industry="Non-Profit",
            status=OrganizationStatus.ACTIVE, assigned_employees=[],
        ),
    ])
    db.flush()

    db.add_all([
        _user(
            password_hash, id="1", name="Sadaya Admin", email="admin@sadaya.com", phone="555-0101",
            role=UserRole.SUPER_ADMIN, kind=UserKind.TEAM, permissions=list(ALL_STAFF_PERMISSIONS),
            bio="Lead administrator at Sadaya Sanctuary with over 15 years of experience in holistic wellness management.",
            profile_picture="https://images.unsplash.com/photo-1472099645785-5658abf4ff4e?w=100&h=100&fit=crop",
        ),
        _user(
            password_hash, id="2", name="Dr. Aris (Naturopath)", email="aris@sadaya.com", phone="555-0102",
            role=UserRole.EMPLOYEE, kind=UserKind.TEAM,
            permissions=["view_dashboard", "view_operations", "edit_operations", "view_proposals",
                         "view_classes", "edit_classes"],
            bio="Licensed Naturopathic Doctor specializing in detox and nutritional recovery.",
            profile_picture="https://images.unsplash.com/photo-1612349317150-e413f6a5b16d?w=100&h=100&fit=crop",
        ),
        _user(
            password_hash, id="3", name="Marcus (Chief)", email="marcus@sadaya.com", phone="555-0103",
            role=UserRole.SALES, kind=UserKind.TEAM,
            permissions=["view_dashboard", "view_proposals", "edit_proposals", "view_invoices",
                         "view_users", "view_classes"],
            bio="Culinary expert and wellness chef focused on healing through nutrition.",
            profile_picture="https://images.unsplash.com/photo-1583394838336-acd977736f90?w=100&h=100&fit=crop",
        ),
        _user(
            password_hash, id="c1", name="James Wilson", email="james@corpwell.com", phone="555-0201",
            role=UserRole.CLIENT, kind=UserKind.ORG_CLIENT, organization_id="org1",
            waiver_signed=True, waiver_signed_date=date(2025, 12, 15),
            permissions=["view_dashboard", "view_proposals", "view_operations", "view_finance", "view_support",
                         "view_users", "view_marketing", "view_classes"],
            bio="Executive seeking balance and stress management.",
            profile_picture="https://images.unsplash.com/photo-1507003211169-0a1dd7228f2d?w=100&h=100&fit=crop",
        ),
        _user(
            password_hash, id="c3", name="Sarah Miller", email="sarah@corpwell.com", phone="555-0203",
            role=UserRole.CLIENT, kind=UserKind.ORG_CLIENT, organization_id="org1", waiver_signed=False,
            permissions=["view_dashboard", "view_finance", "view_users", "view_classes"],
            bio="Focusing on nutritional health and wellness.",
            profile_picture="https://images.unsplash.com/photo-1494790108377-be9c29b29330?w=100&h=100&fit=crop",
        ),
        _user(
            password_hash, id="c2", name="Elena Rodriguez", email="elena@lifepath.com", phone="555-0202",
            role=UserRole.CLIENT, kind=UserKind.ORG_CLIENT, organization_id="org2",
            waiver_signed=True, waiver_signed_date=date(2026, 1, 1),
            permissions=["view_dashboard", "view_proposals", "view_support", "view_marketing", "view_users",
                         "view_classes"],
            bio="Spiritual seeker and holistic health enthusiast.",
            profile_picture="https://images.unsplash.com/photo-1438761681033-6461ffad8d80?w=100&h=100&fit=crop",
        ),
        _user(
            password_hash, id="ind1", name="Michael Chen", email="michael@gmail.com", phone="555-0301",
            role=UserRole.CLIENT, kind=UserKind.INDIVIDUAL,
            waiver_signed=True, waiver_signed_date=date(2026, 1, 5),
            permissions=["view_dashboard", "view_classes"],
            bio="Self-employed wellness seeker.",
            profile_picture="https://images.unsplash.com/photo-1500648767791-00dcc994a43e?w=100&h=100&fit=crop",
        ),
    ])

    db.add_all([
        WaiverRecord(
            id="wv-1", user_id="c1", user_name="James Wilson", organization_id="org1",
            organization_name="Executive Wellness Group", signed_date=date(2025, 12, 15),
            signature="James Wilson", initials="JW",
        ),
        WaiverRecord(
            id="wv-2", user_id="c2", user_name="Elena Rodriguez", organization_id="org2",
            organization_name="Holistic Life Path", signed_date=date(2026, 1, 1),
            signature="Elena Rodriguez", initials="ER",
        ),
    ])


def _seed_operations(db: Session, today: date):
    db.add_all([
        Project(id="p1", organization_id="org1", title="Executive Burnout Recovery",
                description="4-week comprehensive recovery plan.", status=ProjectStatus.ACTIVE, progress=65,
                due_date=future_date(14, today), members=["Dr. Aris (Naturopath)", "Marcus (Chief)"]),
        Project(id="p2", organization_id="org1", title="Holistic Nutritional Plan",
                description="Customized chief prepared meals and supplements.", status=ProjectStatus.ACTIVE,
                progress=30, due_date=future_date(30, today), members=["Marcus (Chief)", "Sadaya Admin"]),
        Project(id="p3", organization_id="org2", title="PTSD Integration Path",
                description="Alternative treatments and spiritual workshops.", status=ProjectStatus.ACTIVE,
                progress=90, due_date=future_date(5, today), members=["Sadaya Admin"]),
    ])
    db.flush()

    def checklist(*items):
        return [{"id": item_id, "text": text, "completed": done} for item_id, text, done in items]

    db.add_all([
        Task(id="t1", project_id="p1", organization_id="org1", title="Initial Blood Panel Analysis",
             description="Review comprehensive blood work for James Wilson.", status=TaskStatus.IN_PROGRESS,
             assignee="Dr. Aris (Naturopath)", due_date=future_date(1, today), priority=Priority.HIGH,
             checklist=checklist(("c1", "Receive lab results", True), ("c2", "Draft care plan", True),
                                 ("c3", "Schedule review session", False))),
        Task(id="t2", project_id="p1", organization_id="org1", title="Cold Plunge & Sauna Schedule",
             description="Set up daily sessions for recovery.", status=TaskStatus.TODO,
             assignee="Marcus (Chief)", due_date=future_date(5, today), priority=Priority.MEDIUM,
             checklist=checklist(("c4", "Check temperature stability", False),
                                 ("c5", "Provision towels and herbs", False))),
        Task(id="t3", project_id="p1", organization_id="org1", title="Spiritual Workshop Setup",
             description="Prepare materials for the daily workshop.", status=TaskStatus.DONE,
             assignee="Sadaya Admin", due_date=future_date(-2, today), priority=Priority.LOW, checklist=[]),
        Task(id="t4", project_id="p2", organization_id="org1", title="Menu Customization",
             description="Adjust meals for gluten-free requirements.", status=TaskStatus.REVIEW,
             assignee="Marcus (Chief)", due_date=future_date(10, today), priority=Priority.HIGH,
             checklist=checklist(("c6", "Audit pantry", True), ("c7", "Draft weekly menu", False))),
        Task(id="t5", project_id="p1", organization_id="org1", title="Therapy Session Coordination",
             description="Align coaching and therapy schedules.", status=TaskStatus.TODO,
             assignee="Sadaya Admin", due_date=future_date(8, today), priority=Priority.HIGH,
             checklist=checklist(("c8", "Confirm therapist availability", False),
                                 ("c9", "Update digital calendar", False))),
        Task(id="t6", project_id="p1", organization_id="org1", title="Pickleball Court Maintenance",
             description="Routine check of onsite court.", status=TaskStatus.TODO,
             assignee="Marcus (Chief)", due_date=future_date(12, today), priority=Priority.MEDIUM,
             checklist=checklist(("c10", "Sweep surface", False), ("c11", "Check net tension", False))),
        Task(id="t7", project_id="p2", organization_id="org1", title="Supplement Supply Audit",
             description="Check stock for naturopathic package.", status=TaskStatus.IN_PROGRESS,
             assignee="Marcus (Chief)", due_date=future_date(15, today), priority=Priority.MEDIUM,
             checklist=checklist(("c12", "Inventory check", True), ("c13", "Order magnesium", False),
                                 ("c14", "Order vitamin D3", False))),
        Task(id="t8", project_id="p1", organization_id="org1", title="Final Integration Report",
             description="Summarize healing paths unlocked.", status=TaskStatus.DONE,
             assignee="Sadaya Admin", due_date=future_date(-1, today), priority=Priority.LOW, checklist=[]),
    ])

    folder, file, sheet = DriveItemType.FOLDER, DriveItemType.FILE, DriveItemType.SPREADSHEET
    drive = [
        ("1", None, "Brand Assets", folder, None, date(2023, 10, 25)),
        ("2", None, "Legal Documents", folder, None, date(2023, 10, 22)),
        ("3", None, "Project Intake Forms", folder, None, date(2023, 10, 24)),
        ("11", "1", "Logo_Pack_Vector.zip", file, "24 MB", date(2023, 10, 25)),
        ("12", "1", "Brand_Guidelines_V2.pdf", file, "4.2 MB", date(2023, 10, 25)),
        ("13", "1", "Social_Media_Kit", folder, None, date(2023, 10, 26)),
        ("131", "13", "Instagram_Templates.psd", file, "120 MB", date(2023, 10, 26)),
        ("132", "13", "LinkedIn_Banners.ai", file, "45 MB", date(2023, 10, 26)),
        ("21", "2", "MSA_Signed.pdf", file, "1.2 MB", date(2023, 9, 15)),
        ("22", "2", "NDA_Executed.pdf", file, "850 KB", date(2023, 9, 10)),
        ("31", "3", "Q4_Marketing_Brief.docx", file, "24 KB", date(2023, 10, 24)),
        ("32", "3", "Website_Requirements.pdf", file, "1.5 MB", date(2023, 10, 24)),
        ("33", "3", "User_Personas.pdf", file, "2.1 MB", date(2023, 10, 23)),
    ]
    # Folders first so parent rows exist before their children
    for item_id, parent_id, name, item_type, size, updated in drive[:3]:
        db.add(DriveItem(id=item_id, parent_id=parent_id, name=name, type=item_type, size=size, updated_at=updated))
    db.add(DriveItem(
        id="4", parent_id=None, name="Client_Logins_Master.xlsx", type=sheet, size="15 KB",
        updated_at=date(2023, 10, 20), tags=["sensitive"],
        content=[
            {"platform": "Guest Portal Admin", "url": "https://sadayasanctuary.com/admin",
             "username": "admin_sadaya", "password": "secure_password_123", "notes": "Main CMS access"},
            {"platform": "Google Analytics", "url": "https://analytics.google.com",
             "username": "marketing@client.com", "password": "shared_access_2024", "notes": "View only"},
            {"platform": "Meta Business Suite", "url": "https://business.facebook.com",
             "username": "social@client.com", "password": "fb_ads_manager_key", "notes": "Ad account ID: 123456789"},
            {"platform": "Mailchimp", "url": "https://mailchimp.com",
             "username": "newsletter@client.com", "password": "email_blast_key_99", "notes": "2FA enabled"},
            {"platform": "Stripe Dashboard", "url": "https://dashboard.stripe.com",
             "username": "billing@client.com", "password": "finance_key_secure", "notes": "Finance team only"},
        ],
    ))
    db.flush()
    for item_id, parent_id, name, item_type, size, updated in drive[3:]:
        db.add(DriveItem(id=item_id, parent_id=parent_id, name=name, type=item_type, size=size, updated_at=updated))
        if item_type == folder:
            db.flush()


def _seed_sales(db: Session, today: date):
    db.add_all([
        Proposal(
            id="1", organization_id="org1", client_name="Executive Wellness Group",
            client_email="james@corpwell.com", services=["Retreat Stay", "Naturopathic Package"],
            custom_details="Executive seeks burnout recovery and holistic healing.",
            estimated_upfront=12000, estimated_retainer=4000, status=ProposalStatus.SENT_TO_CLIENT,
            created_at=date(2026, 1, 8),
            content={
                "hero": {"title": "Wellness Proposal for James Wilson", "subtitle": "4-Week Recovery Path"},
                "engine": {"generated_value": 25000, "description": "Holistic health optimization."},
                "phases": [{
                    "title": "Phase 1: Foundation & Detox",
                    "description": "Initial week focusing on physical rest and nutritional reset.",
                    "items": ["Blood Panel", "Custom Meal Plan", "Daily Cold Plunge"],
                }],
                "investment": [
                    {"item": "Retreat Stay (4 Weeks)", "cost_initial": 8000, "cost_monthly": 0},
                    {"item": "Naturopathic Package", "cost_initial": 4000, "cost_monthly": 0},
                    {"item": "Integration Coaching", "cost_initial": 0, "cost_monthly": 4000},
                ],
                "strategy": [{"title": "Healing Path", "content": "Focus on mind-body-soul integration."}],
                "ad_spend": [],
            },
        ),
        Proposal(
            id="2", organization_id="org2", client_name="Holistic Life Path", services=["2-Week Retreat"],
            custom_details="", estimated_upfront=6000, estimated_retainer=2000, status=ProposalStatus.DRAFT,
            created_at=date(2026, 1, 9),
            content={
                "hero": {"title": "Retreat Proposal for Elena Rodriguez", "subtitle": "Path to Integration"},
                "engine": {"generated_value": 12000, "description": "Healing paths unlocked."},
                "phases": [], "investment": [], "strategy": [], "ad_spend": [],
            },
        ),
    ])

    upfront, retainer = InvoiceType.UPFRONT, InvoiceType.RETAINER
    paid, pending, overdue, draft = (InvoiceStatus.PAID, InvoiceStatus.PENDING,
                                     InvoiceStatus.OVERDUE, InvoiceStatus.DRAFT)
    invoices = [
        ("INV-2026-001", "p1", "Apex Innovations", upfront, paid, future_date(10, today), past_date(0, 3, today),
         "Net 14", [("Digital Infrastructure Setup", 2000), ("Brand Identity Vectorization", 1500),
                    ("Initial Strategy Development", 1500)]),
        ("INV-2026-002", "p1", "Apex Innovations", retainer, pending, future_date(15, today),
         past_date(0, 1, today), "Net 30", [("Monthly Performance Marketing Suite", 2500)]),
        ("INV-2026-004", "p2", "Zenith Health", retainer, pending, future_date(7, today), past_date(0, 2, today),
         "Net 14", [("Monthly Healthcare Marketing", 2800), ("Patient Engagement Automation", 2000)]),
        ("INV-2026-005", "p3", "Vortex Logistics", upfront, overdue, past_date(0, 5, today),
         past_date(0, 20, today), "Net 14", [("Logistics Dashboard Phase 2", 4000), ("Mobile App Integration", 2500)]),
        ("INV-2025-012", "p1", "Apex Innovations", upfront, paid, past_date(1, 20, today), past_date(1, 5, today),
         "Net 14", [("Q4 Campaign Launch", 5000), ("Landing Page Redesign", 3500)]),
        ("INV-2025-011", "p2", "Zenith Health", retainer, paid, past_date(1, 15, today), past_date(1, 1, today),
         "Net 14", [("Monthly SEO & Content", 3200)]),
        ("INV-2025-010", "p1", "Apex Innovations", upfront, paid, past_date(2, 25, today), past_date(2, 10, today),
         "Net 14", [("Enterprise Platform Build", 8000), ("API Integration Suite", 4000)]),
        ("INV-2025-009", "p2", "Zenith Health", upfront, paid, past_date(2, 20, today), past_date(2, 5, today),
         "Net 14", [("Patient Portal MVP", 4500)]),
        ("INV-2025-008", "p1", "Apex Innovations", retainer, paid, past_date(3, 15, today), past_date(3, 1, today),
         "Net 14", [("Performance Marketing Q3", 4000), ("Social Media Management", 2800)]),
        ("INV-2025-007", "p3", "Vortex Logistics", upfront, paid, past_date(3, 20, today), past_date(3, 8, today),
         "Net 14", [("Supply Chain Dashboard", 6000), ("Fleet Tracking Integration", 3500)]),
        ("INV-2025-006", "p2", "Zenith Health", upfront, paid, past_date(4, 25, today), past_date(4, 12, today),
         "Net 14", [("HIPAA Compliance Audit", 5000), ("Telehealth Platform", 10000)]),
        ("INV-2025-005", "p1", "Apex Innovations", retainer, paid, past_date(4, 15, today), past_date(4, 1, today),
         "Net 14", [("Monthly Retainer - August", 3500)]),
        ("INV-2025-004", "p1", "Apex Innovations", upfront, paid, past_date(5, 20, today), past_date(5, 5, today),
         "Net 14", [("Brand Refresh Package", 4200), ("Video Production", 3000)]),
        ("INV-2025-003", "p3", "Vortex Logistics", upfront, paid, past_date(5, 18, today), past_date(5, 3, today),
         "Net 14", [("Initial Consulting & Strategy", 2500), ("UX Research & Wireframes", 3000)]),
        ("INV-2026-003", "p2", "Zenith Health", upfront, draft, future_date(30, today), None, "Net 30",
         [("Enterprise Web Development", 8000), ("Video Production (3D Animation)", 4500)]),
    ]
    for invoice_id, proposal_id, client, inv_type, status, due, issued, terms, lines in invoices:
        items = [{"description": description, "cost": cost} for description, cost in lines]
        db.add(Invoice(
            id=invoice_id, proposal_id=proposal_id, client_name=client, type=inv_type, status=status,
            due_date=due, issue_date=issued, terms=terms, items=items, amount=sum(cost for _, cost in lines),
        ))


def _seed_support(db: Session):
    ticket = SupportTicket(
        id="TCK-1001", client_id="c1", client_name="James Wilson", organization_name="Executive Wellness Group",
        subject="Meal Preference Update", status=TicketStatus.OPEN, priority=Priority.HIGH,
    )
    ticket.messages = [
        TicketMessage(id="m1", position=0, sender_id="c1", sender_name="James Wilson", is_admin=False,
                      text="I would like to increase my protein intake for the evening meals."),
        TicketMessage(id="m2", position=1, sender_id="1", sender_name="Sadaya Admin", is_admin=True,
                      text="Relaying this to Marcus. He will adjust the menu."),
    ]
    resolved = SupportTicket(
        id="TCK-1002", client_id="c2", client_name="Elena Rodriguez", organization_name="Holistic Life Path",
        subject="Tour Schedule Inquiry", status=TicketStatus.RESOLVED, priority=Priority.MEDIUM,
    )
    resolved.messages = [
        TicketMessage(id="m3", position=0, sender_id="c2", sender_name="Elena Rodriguez", is_admin=False,
                      text="Can I schedule a tour for this Saturday?"),
    ]
    db.add_all([ticket, resolved])


def _seed_classes(db: Session, today: date):
    db.add_all([
        ClassEvent(
            id="ev-1", series_id="sr-sunrise-flow", name="Sunrise Flow Yoga",
            description="A gentle morning flow to awaken the body and mind. Perfect for all levels. Focus on "
                        "breath-to-movement connection and setting positive intentions for the day.",
            cover_image="https://images.unsplash.com/photo-1544367567-0f2fcb009e0b?w=800&q=80",
            price=25, date=future_date(2, today), time="07:00", duration="60 mins",
            total_seats=15, available_seats=12, is_recurring=True, recurring_cycle=RecurringCycle.DAILY,
            facilitator_id="2", facilitator_name="Dr. Aris (Naturopath)",
            facilitator_picture="https://images.unsplash.com/photo-1612349317150-e413f6a5b16d?w=100&h=100&fit=crop",
            facilitator_bio="Licensed Naturopathic Doctor specializing in detox and nutritional recovery.",
            facilitator_payout_type=PayoutType.FLAT, facilitator_payout_value=15,
            attendees=["c1", "c2"],
        ),
        ClassEvent(
            id="ev-2", name="Trauma Release Workshop",
            description="Deep somatic processing workshop focused on releasing stored tension and emotional "
                        "blockages through guided movement and breathwork.",
            cover_image="https://images.unsplash.com/photo-1506126613408-eca07ce68773?w=800&q=80",
            price=150, date=future_date(5, today), time="14:00", duration="2 hours",
            total_seats=10, available_seats=4, is_recurring=False, recurring_cycle=RecurringCycle.NONE,
            facilitator_id="1", facilitator_name="Sadaya Admin",
            facilitator_picture="https://images.unsplash.com/photo-1472099645785-5658abf4ff4e?w=100&h=100&fit=crop",
            facilitator_bio="Lead administrator at Sadaya Sanctuary with over 15 years of experience in holistic "
                            "wellness management.",
            facilitator_payout_type=PayoutType.PERCENTAGE, facilitator_payout_value=50,
            attendees=["c1"],
        ),
    ])


def _seed_chat(db: Session):
    db.add_all([
        ChatChannel(id="ch-1", organization_id="org1", name="general", type=ChannelType.PUBLIC, members=[]),
        ChatChannel(id="ch-2", organization_id="org1", name="project-alpha", type=ChannelType.PRIVATE,
                    members=["1", "2", "c1"]),
        ChatChannel(id="ch-3", organization_id="org2", name="general", type=ChannelType.PUBLIC, members=[]),
    ])
    db.flush()
    db.add_all([
        ChatMessage(id="cm-1", channel_id="ch-1", sender_id="1", sender_name="Sadaya Admin",
                    text="Welcome to the secure comms channel.", mentions=[]),
        ChatMessage(id="cm-2", channel_id="ch-2", sender_id="2", sender_name="Dr. Aris (Naturopath)",
                    text="Hey @James Wilson, your care plan is ready.", mentions=["c1"]),
    ])


def seed_demo_data(db: Session, today: date = None):
    """Populate an empty database with the demo dataset (caller commits)."""
    today = today or date.today()
    password_hash = hash_password(DEFAULT_PASSWORD)

    _seed_directory(db, password_hash)
    _seed_operations(db, today)
    _seed_sales(db, today)
    _seed_support(db)
    _seed_classes(db, today)
    _seed_chat(db)
    db.flush()
    logger.info("Seeded demo organizations, users, proposals, invoices, projects, tickets, classes and chat")
