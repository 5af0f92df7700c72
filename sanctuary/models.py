from sqlalchemy import Column, Integer, String, Enum, ForeignKey, Float, Boolean, Date, DateTime, Text, JSON
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime
import enum
import uuid

Base = declarative_base()


def new_id(prefix: str) -> str:
    """Opaque string identifier with a readable prefix, e.g. 'ev-3f9c0a51d2'."""
    return f"{prefix}-{uuid.uuid4().hex[:10]}"


# ============================================================================
# ENUM DEFINITIONS
# ============================================================================

class UserRole(str, enum.Enum):
    """User role for RBAC"""
    SUPER_ADMIN = "SUPER_ADMIN"  # Owner / CEO, full access and login-as
    SALES = "SALES"
    OPS_HEAD = "OPS_HEAD"
    CLIENT = "CLIENT"
    EMPLOYEE = "EMPLOYEE"


class UserKind(str, enum.Enum):
    """Where a user lives in the directory"""
    TEAM = "team"
    ORG_CLIENT = "org_client"
    INDIVIDUAL = "individual"


class AccountStatus(str, enum.Enum):
    ACTIVE = "Active"
    SUSPENDED = "Suspended"


class OrganizationStatus(str, enum.Enum):
    ACTIVE = "Active"
    ONBOARDING = "Onboarding"
    CHURNED = "Churned"
    SUSPENDED = "Suspended"


class ProposalStatus(str, enum.Enum):
    DRAFT = "Draft"
    REVIEW_PENDING = "Review Pending"
    SENT_TO_CLIENT = "Sent to Client"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"


class StrategyStatus(str, enum.Enum):
    """Marketing strategy lifecycle attached to a proposal"""
    NOT_STARTED = "Not Started"
    DRAFTING = "Drafting"
    PENDING_APPROVAL = "Pending Team Approval"
    APPROVED = "Approved"
    MODIFICATION_REQUESTED = "Changes Requested"
    LIVE = "Live"


class InvoiceType(str, enum.Enum):
    UPFRONT = "Upfront"
    RETAINER = "Retainer"
    ONE_TIME = "One-Time"


class InvoiceStatus(str, enum.Enum):
    DRAFT = "Draft"
    PENDING = "Pending"
    PAID = "Paid"
    OVERDUE = "Overdue"


class PaymentTerms(str, enum.Enum):
    IMMEDIATE = "Immediate"
    NET_14 = "Net 14"
    NET_30 = "Net 30"


class ProjectStatus(str, enum.Enum):
    ACTIVE = "Active"
    COMPLETED = "Completed"
    ON_HOLD = "On Hold"


class TaskStatus(str, enum.Enum):
    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    REVIEW = "Review"
    DONE = "Done"


class Priority(str, enum.Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class DriveItemType(str, enum.Enum):
    FOLDER = "folder"
    FILE = "file"
    SPREADSHEET = "spreadsheet"


class TicketStatus(str, enum.Enum):
    OPEN = "Open"
    RESOLVED = "Resolved"
    ARCHIVED = "Archived"


class RecurringCycle(str, enum.Enum):
    NONE = "None"
    DAILY = "Daily"
    WEEKLY = "Weekly"
    BIWEEKLY = "Bi-Weekly"
    MONTHLY = "Monthly"


class PayoutType(str, enum.Enum):
    FLAT = "Flat Fee"
    PERCENTAGE = "Percentage"


class ChannelType(str, enum.Enum):
    PUBLIC = "public"
    PRIVATE = "private"
    DM = "dm"


class AuditEventType(str, enum.Enum):
    """Audit log event types"""
    LOGIN = "login"
    LOGOUT = "logout"
    LOGIN_AS = "login_as"
    REVERT_LOGIN = "revert_login"
    USER_CREATED = "user_created"
    USER_UPDATED = "user_updated"
    USER_DELETED = "user_deleted"
    USER_STATUS_CHANGED = "user_status_changed"
    ORG_CREATED = "org_created"
    ORG_DELETED = "org_deleted"
    ORG_STATUS_CHANGED = "org_status_changed"
    PROPOSAL_STATUS_CHANGED = "proposal_status_changed"
    INVOICE_CREATED = "invoice_created"
    INVOICE_STATUS_CHANGED = "invoice_status_changed"
    INVOICE_DELETED = "invoice_deleted"
    WAIVER_SIGNED = "waiver_signed"
    CLASS_CREATED = "class_created"
    CLASS_DELETED = "class_deleted"
    CLASS_BOOKED = "class_booked"
    CLASS_BOOKING_CANCELLED = "class_booking_cancelled"


# ============================================================================
# DIRECTORY
# ============================================================================

class Organization(Base):
    """Client organization (corporate wellness group, coaching practice, ...)"""
    __tablename__ = "organizations"

    id = Column(String, primary_key=True, default=lambda: new_id("org"))
    name = Column(String, unique=True, nullable=False, index=True)
    industry = Column(String, default="")
    website = Column(String, default="")
    status = Column(Enum(OrganizationStatus), default=OrganizationStatus.ONBOARDING, nullable=False)
    logo = Column(String, default="")
    assigned_employees = Column(JSON, default=list)  # Team user ids with access
    created_at = Column(DateTime, default=datetime.utcnow)

    users = relationship("User", back_populates="organization", order_by="User.created_at")


class User(Base):
    """Team members, organization clients and individual clients share one table"""
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: new_id("u"))
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    phone = Column(String, default="")
    role = Column(Enum(UserRole), nullable=False, default=UserRole.CLIENT)
    kind = Column(Enum(UserKind), nullable=False, default=UserKind.INDIVIDUAL)
    organization_id = Column(String, ForeignKey("organizations.id"), nullable=True, index=True)
    permissions = Column(JSON, default=list)
    status = Column(Enum(AccountStatus), default=AccountStatus.ACTIVE, nullable=False)

    waiver_signed = Column(Boolean, default=False)
    waiver_signed_date = Column(Date)

    bio = Column(Text, default="")
    profile_picture = Column(String, default="")
    password_hash = Column(String)  # bcrypt hash
    notification_preferences = Column(JSON)

    created_at = Column(DateTime, default=datetime.utcnow)
    last_login_at = Column(DateTime)

    organization = relationship("Organization", back_populates="users")


class AuthSession(Base):
    """
    Login session. `user_id` is the effective actor; `original_user_id` is set
    while a super admin is logged in as somebody else.
    """
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True)
    session_id = Column(String, unique=True, nullable=False, index=True)
    user_id = Column(String, nullable=False)
    original_user_id = Column(String)
    signed_for = Column(String, nullable=False)  # user id bound into the token signature

    created_at = Column(DateTime, default=datetime.utcnow)
    expires_at = Column(DateTime, nullable=False)
    last_activity_at = Column(DateTime, default=datetime.utcnow)
    is_active = Column(Boolean, default=True)


class WaiverRecord(Base):
    """Signed liability waiver and privacy agreement"""
    __tablename__ = "waivers"

    id = Column(String, primary_key=True, default=lambda: new_id("wv"))
    user_id = Column(String, nullable=False, index=True)
    user_name = Column(String, nullable=False)
    organization_id = Column(String)
    organization_name = Column(String, nullable=False)
    signed_date = Column(Date, nullable=False)
    signature = Column(String, nullable=False)
    initials = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


# ============================================================================
# SALES & FINANCE
# ============================================================================

class Proposal(Base):
    __tablename__ = "proposals"

    id = Column(String, primary_key=True, default=lambda: new_id("prop"))
    organization_id = Column(String, ForeignKey("organizations.id"), index=True)
    client_name = Column(String, nullable=False)
    client_email = Column(String, default="")
    services = Column(JSON, default=list)
    custom_details = Column(Text, default="")
    estimated_upfront = Column(Float, default=0)
    estimated_retainer = Column(Float, default=0)
    content = Column(JSON, nullable=False)  # hero, engine, phases, investment, strategy, ad_spend
    status = Column(Enum(ProposalStatus), default=ProposalStatus.DRAFT, nullable=False)
    created_at = Column(Date, nullable=False)
    marketing_data = Column(JSON)  # strategy lifecycle, see services/proposals.py


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(String, primary_key=True)  # INV-<year>-<number>
    proposal_id = Column(String, index=True)
    client_name = Column(String, nullable=False, index=True)
    amount = Column(Float, default=0)
    type = Column(Enum(InvoiceType), default=InvoiceType.ONE_TIME, nullable=False)
    status = Column(Enum(InvoiceStatus), default=InvoiceStatus.DRAFT, nullable=False)
    issue_date = Column(Date)
    due_date = Column(Date)
    terms = Column(String, default=PaymentTerms.IMMEDIATE.value)
    items = Column(JSON, default=list)  # [{"description": str, "cost": float}]
    created_at = Column(DateTime, default=datetime.utcnow)


# ============================================================================
# OPERATIONS
# ============================================================================

class Project(Base):
    __tablename__ = "projects"

    id = Column(String, primary_key=True, default=lambda: new_id("p"))
    organization_id = Column(String, ForeignKey("organizations.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, default="")
    status = Column(Enum(ProjectStatus), default=ProjectStatus.ACTIVE, nullable=False)
    progress = Column(Integer, default=0)
    due_date = Column(Date)
    members = Column(JSON, default=list)  # Team member names or ids
    is_archived = Column(Boolean, default=False)

    tasks = relationship("Task", back_populates="project", cascade="all, delete-orphan")


class Task(Base):
    __tablename__ = "tasks"

    id = Column(String, primary_key=True, default=lambda: new_id("t"))
    project_id = Column(String, ForeignKey("projects.id"), nullable=False, index=True)
    organization_id = Column(String, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, default="")
    status = Column(Enum(TaskStatus), default=TaskStatus.TODO, nullable=False)
    assignee = Column(String, default="Unassigned")
    due_date = Column(Date)
    priority = Column(Enum(Priority), default=Priority.MEDIUM, nullable=False)
    label = Column(JSON)  # {"text": str, "color": str}
    checklist = Column(JSON, default=list)  # [{"id", "text", "completed"}]
    is_archived = Column(Boolean, default=False)
    attachments = Column(JSON, default=list)  # DriveItem ids

    project = relationship("Project", back_populates="tasks")


class DriveItem(Base):
    __tablename__ = "drive_items"

    id = Column(String, primary_key=True, default=lambda: new_id("d"))
    parent_id = Column(String, ForeignKey("drive_items.id"), nullable=True, index=True)
    name = Column(String, nullable=False)
    type = Column(Enum(DriveItemType), nullable=False)
    size = Column(String)
    updated_at = Column(Date)
    tags = Column(JSON, default=list)
    content = Column(JSON)  # Spreadsheet rows


# ============================================================================
# SUPPORT
# ============================================================================

class SupportTicket(Base):
    __tablename__ = "support_tickets"

    id = Column(String, primary_key=True)  # TCK-<number>
    client_id = Column(String, nullable=False)
    client_name = Column(String, nullable=False)
    organization_name = Column(String, nullable=False, index=True)
    subject = Column(String, nullable=False)
    status = Column(Enum(TicketStatus), default=TicketStatus.OPEN, nullable=False)
    priority = Column(Enum(Priority), default=Priority.MEDIUM, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    last_updated = Column(DateTime, default=datetime.utcnow)

    messages = relationship(
        "TicketMessage",
        back_populates="ticket",
        cascade="all, delete-orphan",
        order_by="TicketMessage.position",
    )


class TicketMessage(Base):
    __tablename__ = "ticket_messages"

    id = Column(String, primary_key=True, default=lambda: new_id("msg"))
    ticket_id = Column(String, ForeignKey("support_tickets.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    sender_id = Column(String, nullable=False)
    sender_name = Column(String, nullable=False)
    text = Column(Text, nullable=False)
    timestamp = Column(DateTime, default=datetime.utcnow)
    is_admin = Column(Boolean, default=False)

    ticket = relationship("SupportTicket", back_populates="messages")


# ============================================================================
# CLASSES & EVENTS
# ============================================================================

class ClassEvent(Base):
    __tablename__ = "class_events"

    id = Column(String, primary_key=True, default=lambda: new_id("ev"))
    series_id = Column(String, index=True)  # Links occurrences of a recurring class
    name = Column(String, nullable=False)
    description = Column(Text, default="")
    cover_image = Column(String, default="")
    price = Column(Float, default=0)
    date = Column(Date, nullable=False, index=True)
    time = Column(String, default="10:00")  # HH:MM
    duration = Column(String, default="60 mins")
    total_seats = Column(Integer, default=0)
    available_seats = Column(Integer, default=0)
    is_recurring = Column(Boolean, default=False)
    recurring_cycle = Column(Enum(RecurringCycle), default=RecurringCycle.NONE, nullable=False)

    facilitator_id = Column(String, nullable=False)
    facilitator_name = Column(String, nullable=False)
    facilitator_picture = Column(String)
    facilitator_bio = Column(Text)
    facilitator_payout_type = Column(Enum(PayoutType), default=PayoutType.FLAT, nullable=False)
    facilitator_payout_value = Column(Float, default=0)

    organizer_id = Column(String)
    organizer_name = Column(String)
    organizer_picture = Column(String)
    organizer_bio = Column(Text)
    organizer_payout_type = Column(Enum(PayoutType))
    organizer_payout_value = Column(Float)

    attendees = Column(JSON, default=list)  # User ids


# ============================================================================
# CHAT
# ============================================================================

class ChatChannel(Base):
    __tablename__ = "chat_channels"

    id = Column(String, primary_key=True, default=lambda: new_id("ch"))
    organization_id = Column(String, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    type = Column(Enum(ChannelType), default=ChannelType.PUBLIC, nullable=False)
    members = Column(JSON, default=list)  # User ids
    created_at = Column(DateTime, default=datetime.utcnow)


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(String, primary_key=True, default=lambda: new_id("msg"))
    channel_id = Column(String, ForeignKey("chat_channels.id"), nullable=False, index=True)
    sender_id = Column(String, nullable=False)
    sender_name = Column(String, nullable=False)
    text = Column(Text, nullable=False)
    timestamp = Column(DateTime, default=datetime.utcnow)
    mentions = Column(JSON, default=list)  # User ids


# ============================================================================
# AUDIT
# ============================================================================

class AuditLog(Base):
    """Audit trail for user actions"""
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True)
    event_type = Column(Enum(AuditEventType), nullable=False)
    actor_id = Column(String)
    resource_type = Column(String)  # 'user', 'organization', 'invoice', 'class', ...
    resource_id = Column(String)
    message = Column(Text, nullable=False)
    timestamp = Column(DateTime, default=datetime.utcnow, index=True)
