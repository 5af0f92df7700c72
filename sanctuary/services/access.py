"""
Role-based access rules and per-role view filtering.

Everything here is a pure query over the directory: routers call these to
decide what an actor may see, the managers call them to decide what an actor
may change.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from sanctuary.models import (
    User, Organization, Proposal, Invoice, SupportTicket, Project, WaiverRecord,
    UserRole, InvoiceStatus, TicketStatus,
)

PERMISSION_MODULES = (
    "dashboard", "proposals", "operations", "finance", "support", "users", "marketing", "classes",
)

# Legacy permission names still present on older accounts
PERMISSION_ALIASES = {
    "view_finance": ("view_invoices",),
}

TICKET_BUCKETS = {
    "Active": (TicketStatus.OPEN, TicketStatus.RESOLVED),
    "Archived": (TicketStatus.ARCHIVED,),
}


def is_client(user: User) -> bool:
    return user.role == UserRole.CLIENT


def is_super_admin(user: User) -> bool:
    return user.role == UserRole.SUPER_ADMIN


def has_permission(user: Optional[User], permission: str) -> bool:
    if user is None:
        return False
    granted = set(user.permissions or [])
    if permission in granted:
        return True
    return any(alias in granted for alias in PERMISSION_ALIASES.get(permission, ()))


def toggle_permission(permissions: List[str], permission: str) -> List[str]:
    """
    Add or remove a permission, keeping view/edit pairs consistent.

    Removing view_X also removes edit_X; adding edit_X also adds view_X.
    Order of the existing entries is preserved.
    """
    current = list(permissions or [])
    action, _, module = permission.partition("_")

    if permission in current:
        removed = {permission}
        if action == "view":
            removed.add(f"edit_{module}")
        return [perm for perm in current if perm not in removed]

    current.append(permission)
    if action == "edit" and f"view_{module}" not in current:
        current.append(f"view_{module}")
    return current


def organization_for(db: Session, user: User) -> Optional[Organization]:
    if not user or not user.organization_id:
        return None
    return db.get(Organization, user.organization_id)


# ============================================================================
# VIEW FILTERS
# ============================================================================

def visible_organizations(
    db: Session,
    user: User,
    search: str = "",
    scope: str = "directory",
) -> List[Organization]:
    """
    Organizations an actor may see.

    Super admins see everything. Clients see only their own organization.
    Other staff see the whole directory, but only their assigned
    organizations in the operations scope.
    """
    orgs = db.scalars(select(Organization).order_by(Organization.created_at, Organization.id)).all()

    if is_client(user):
        orgs = [org for org in orgs if org.id == user.organization_id]
    elif not is_super_admin(user) and scope == "operations":
        orgs = [org for org in orgs if user.id in (org.assigned_employees or [])]

    needle = str(search or "").strip().lower()
    if needle:
        orgs = [org for org in orgs if needle in org.name.lower()]
    return orgs


def filter_proposals(db: Session, user: User) -> List[Proposal]:
    query = select(Proposal).order_by(Proposal.created_at.desc(), Proposal.id)
    if is_client(user):
        if not user.organization_id:
            return []
        query = query.where(Proposal.organization_id == user.organization_id)
    return db.scalars(query).all()


def invoice_owner_name(db: Session, user: User) -> str:
    """Client name that invoices are billed to for this client user."""
    org = organization_for(db, user)
    return org.name if org else user.name


def filter_invoices(db: Session, user: User) -> List[Invoice]:
    query = select(Invoice).order_by(Invoice.issue_date.desc(), Invoice.id.desc())
    if is_client(user):
        query = query.where(
            Invoice.client_name == invoice_owner_name(db, user),
            Invoice.status != InvoiceStatus.DRAFT,
        )
    return db.scalars(query).all()


def filter_tickets(db: Session, user: User, bucket: str = "Active") -> List[SupportTicket]:
    statuses = TICKET_BUCKETS.get(bucket, TICKET_BUCKETS["Active"])
    query = select(SupportTicket).where(SupportTicket.status.in_(statuses))
    if is_client(user):
        org = organization_for(db, user)
        if org:
            query = query.where(SupportTicket.organization_name == org.name)
        else:
            query = query.where(SupportTicket.client_id == user.id)
    return db.scalars(query.order_by(SupportTicket.last_updated.desc(), SupportTicket.id)).all()


def filter_projects(db: Session, user: User) -> List[Project]:
    projects = db.scalars(select(Project).order_by(Project.id)).all()
    if is_super_admin(user):
        return projects
    if is_client(user):
        return [project for project in projects if project.organization_id == user.organization_id]
    return [project for project in projects if user.name in (project.members or []) or user.id in (project.members or [])]


def filter_waivers(db: Session, user: User, search: str = "") -> List[WaiverRecord]:
    query = select(WaiverRecord).order_by(WaiverRecord.signed_date.desc(), WaiverRecord.id)
    if is_client(user):
        return db.scalars(query.where(WaiverRecord.user_id == user.id)).all()

    records = db.scalars(query).all()
    needle = str(search or "").strip().lower()
    if needle:
        records = [
            record for record in records
            if needle in record.user_name.lower() or needle in record.organization_name.lower()
        ]
    return records


def can_view_project(db: Session, user: User, project: Project) -> bool:
    return any(visible.id == project.id for visible in filter_projects(db, user))
