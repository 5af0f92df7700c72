"""
Directory management: organizations, team members, organization clients and
individual clients.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from sanctuary.config import DEFAULT_PASSWORD
from sanctuary.models import (
    Organization, User, ChatChannel, ChatMessage,
    UserRole, UserKind, AccountStatus, OrganizationStatus, AuditEventType,
)
from sanctuary.services.audit import record_event
from sanctuary.services.auth import hash_password, verify_password, default_notification_preferences
from sanctuary.services.access import toggle_permission, PERMISSION_MODULES

logger = logging.getLogger(__name__)

DEFAULT_TEAM_PERMISSIONS = ["view_dashboard", "view_operations", "view_classes"]
DEFAULT_CLIENT_PERMISSIONS = ["view_dashboard", "view_proposals", "view_finance", "view_support", "view_classes"]
DEFAULT_INDIVIDUAL_PERMISSIONS = ["view_dashboard", "view_classes"]

EDITABLE_PROFILE_FIELDS = ("name", "email", "phone", "bio", "profile_picture")


def compose_name(first_name: str, last_name: str) -> str:
    return " ".join(part for part in (str(first_name or "").strip(), str(last_name or "").strip()) if part)


def known_permissions() -> List[str]:
    perms = ["view_dashboard"]
    for module in PERMISSION_MODULES:
        if module == "dashboard":
            continue
        perms.extend([f"view_{module}", f"edit_{module}"])
    return perms


class DirectoryManager:
    """
    Creates, edits and removes organizations and users.
    """

    def __init__(self, db: Session):
        self.db = db

    def _email_taken(self, email: str, exclude_user_id: Optional[str] = None) -> bool:
        query = select(User).where(User.email == email)
        if exclude_user_id:
            query = query.where(User.id != exclude_user_id)
        return self.db.scalars(query).first() is not None

    def _new_user(
        self,
        actor_id: str,
        name: str,
        email: str,
        role: UserRole,
        kind: UserKind,
        permissions: List[str],
        organization_id: Optional[str] = None,
        phone: str = "",
        bio: str = "",
        password: Optional[str] = None,
    ) -> Tuple[bool, Optional[User], str]:
        name = str(name or "").strip()
        email = str(email or "").strip().lower()
        if not name:
            return False, None, "Name is required"
        if not email or "@" not in email:
            return False, None, "A valid email is required"
        if self._email_taken(email):
            return False, None, f"Email '{email}' is already in use"

        user = User(
            name=name,
            email=email,
            phone=phone or "",
            bio=bio or "",
            role=role,
            kind=kind,
            organization_id=organization_id,
            permissions=[perm for perm in permissions if perm in known_permissions()],
            status=AccountStatus.ACTIVE,
            waiver_signed=False,
            password_hash=hash_password(password or DEFAULT_PASSWORD),
            notification_preferences=default_notification_preferences(),
        )
        self.db.add(user)
        self.db.flush()
        record_event(self.db, AuditEventType.USER_CREATED, actor_id, "user", user.id,
                     f"Created {kind.value} user {name}")
        return True, user, f"User '{name}' created"

    def _finish(self, success: bool, obj, message: str):
        if success:
            self.db.commit()
            if obj is not None:
                self.db.refresh(obj)
            logger.info(message)
        else:
            self.db.rollback()
            logger.warning(f"Directory change refused: {message}")
        return success, obj, message

    # ========================================================================
    # ORGANIZATIONS
    # ========================================================================

    def create_organization(
        self,
        actor_id: str,
        name: str,
        industry: str,
        admin_first_name: str,
        admin_last_name: str,
        admin_email: str,
        website: str = "",
        admin_phone: str = "",
    ) -> Tuple[bool, Optional[Organization], str]:
        """
        Create an organization (status Onboarding) together with its first
        client admin user.
        """
        name = str(name or "").strip()
        if not name:
            return False, None, "Organization name is required"
        if self.db.scalars(select(Organization).where(Organization.name == name)).first():
            return False, None, f"Organization '{name}' already exists"

        org = Organization(
            name=name,
            industry=str(industry or "").strip(),
            website=str(website or "").strip(),
            status=OrganizationStatus.ONBOARDING,
            assigned_employees=[],
        )
        self.db.add(org)
        self.db.flush()

        ok, _, message = self._new_user(
            actor_id,
            compose_name(admin_first_name, admin_last_name),
            admin_email,
            UserRole.CLIENT,
            UserKind.ORG_CLIENT,
            DEFAULT_CLIENT_PERMISSIONS + ["view_users", "view_operations"],
            organization_id=org.id,
            phone=admin_phone,
        )
        if not ok:
            return self._finish(False, None, message)

        record_event(self.db, AuditEventType.ORG_CREATED, actor_id, "organization", org.id,
                     f"Created organization {name}")
        return self._finish(True, org, f"Organization '{name}' created")

    def delete_organization(self, actor_id: str, org_id: str) -> Tuple[bool, str]:
        org = self.db.get(Organization, org_id)
        if not org:
            return False, f"Organization {org_id} not found"

        for user in list(org.users):
            self.db.delete(user)
        channel_ids = self.db.scalars(select(ChatChannel.id).where(ChatChannel.organization_id == org_id)).all()
        for message in self.db.scalars(select(ChatMessage).where(ChatMessage.channel_id.in_(channel_ids))).all():
            self.db.delete(message)
        for channel in self.db.scalars(select(ChatChannel).where(ChatChannel.organization_id == org_id)).all():
            self.db.delete(channel)
        self.db.flush()
        self.db.delete(org)
        record_event(self.db, AuditEventType.ORG_DELETED, actor_id, "organization", org_id,
                     f"Deleted organization {org.name}")
        self.db.commit()
        logger.info(f"Organization {org_id} deleted")
        return True, f"Organization '{org.name}' deleted"

    def toggle_organization_status(self, actor_id: str, org_id: str) -> Tuple[bool, Optional[Organization], str]:
        org = self.db.get(Organization, org_id)
        if not org:
            return False, None, f"Organization {org_id} not found"

        org.status = (OrganizationStatus.ACTIVE if org.status == OrganizationStatus.SUSPENDED
                      else OrganizationStatus.SUSPENDED)
        record_event(self.db, AuditEventType.ORG_STATUS_CHANGED, actor_id, "organization", org.id,
                     f"Organization {org.name} is now {org.status.value}")
        return self._finish(True, org, f"Organization '{org.name}' is now {org.status.value}")

    def toggle_assignment(self, org_id: str, employee_id: str) -> Tuple[bool, Optional[Organization], str]:
        org = self.db.get(Organization, org_id)
        if not org:
            return False, None, f"Organization {org_id} not found"
        employee = self.db.get(User, employee_id)
        if not employee or employee.kind != UserKind.TEAM:
            return False, None, f"Team member {employee_id} not found"

        assigned = list(org.assigned_employees or [])
        if employee_id in assigned:
            assigned.remove(employee_id)
            verb = "unassigned from"
        else:
            assigned.append(employee_id)
            verb = "assigned to"
        org.assigned_employees = assigned
        return self._finish(True, org, f"{employee.name} {verb} {org.name}")

    # ========================================================================
    # USERS
    # ========================================================================

    def add_team_member(self, actor_id: str, first_name: str, last_name: str, email: str,
                        phone: str = "", bio: str = "",
                        permissions: Optional[List[str]] = None) -> Tuple[bool, Optional[User], str]:
        ok, user, message = self._new_user(
            actor_id, compose_name(first_name, last_name), email, UserRole.EMPLOYEE, UserKind.TEAM,
            permissions if permissions is not None else DEFAULT_TEAM_PERMISSIONS, phone=phone, bio=bio,
        )
        return self._finish(ok, user, message)

    def add_org_client(self, actor_id: str, org_id: str, first_name: str, last_name: str, email: str,
                       phone: str = "",
                       permissions: Optional[List[str]] = None) -> Tuple[bool, Optional[User], str]:
        if not self.db.get(Organization, org_id):
            return False, None, f"Organization {org_id} not found"
        ok, user, message = self._new_user(
            actor_id, compose_name(first_name, last_name), email, UserRole.CLIENT, UserKind.ORG_CLIENT,
            permissions if permissions is not None else DEFAULT_CLIENT_PERMISSIONS,
            organization_id=org_id, phone=phone,
        )
        return self._finish(ok, user, message)

    def add_individual(self, actor_id: str, first_name: str, last_name: str, email: str,
                       phone: str = "", bio: str = "",
                       permissions: Optional[List[str]] = None) -> Tuple[bool, Optional[User], str]:
        ok, user, message = self._new_user(
            actor_id, compose_name(first_name, last_name), email, UserRole.CLIENT, UserKind.INDIVIDUAL,
            permissions if permissions is not None else DEFAULT_INDIVIDUAL_PERMISSIONS, phone=phone, bio=bio,
        )
        return self._finish(ok, user, message)

    def update_user(self, actor_id: str, user_id: str, changes: dict,
                    permissions: Optional[List[str]] = None) -> Tuple[bool, Optional[User], str]:
        """
        Edit profile fields and, except for super admins, permissions.
        """
        user = self.db.get(User, user_id)
        if not user:
            return False, None, f"User {user_id} not found"

        for field in EDITABLE_PROFILE_FIELDS:
            if field not in changes or changes[field] is None:
                continue
            value = str(changes[field]).strip()
            if field == "name" and not value:
                return self._finish(False, None, "Name is required")
            if field == "email":
                value = value.lower()
                if "@" not in value:
                    return self._finish(False, None, "A valid email is required")
                if self._email_taken(value, exclude_user_id=user.id):
                    return self._finish(False, None, f"Email '{value}' is already in use")
            setattr(user, field, value)

        if permissions is not None and user.role != UserRole.SUPER_ADMIN:
            user.permissions = [perm for perm in permissions if perm in known_permissions()]

        record_event(self.db, AuditEventType.USER_UPDATED, actor_id, "user", user.id, f"Updated {user.name}")
        return self._finish(True, user, f"User '{user.name}' updated")

    def toggle_user_permission(self, actor_id: str, user_id: str,
                               permission: str) -> Tuple[bool, Optional[User], str]:
        user = self.db.get(User, user_id)
        if not user:
            return False, None, f"User {user_id} not found"
        if user.role == UserRole.SUPER_ADMIN:
            return False, None, "Super admin permissions cannot be changed"
        if permission not in known_permissions():
            return False, None, f"Unknown permission '{permission}'"

        user.permissions = toggle_permission(user.permissions, permission)
        record_event(self.db, AuditEventType.USER_UPDATED, actor_id, "user", user.id,
                     f"Toggled {permission} for {user.name}")
        return self._finish(True, user, f"Permissions updated for {user.name}")

    def delete_user(self, actor_id: str, user_id: str) -> Tuple[bool, str]:
        user = self.db.get(User, user_id)
        if not user:
            return False, f"User {user_id} not found"
        if user.role == UserRole.SUPER_ADMIN:
            return False, "Super admin accounts cannot be deleted"
        if user.id == actor_id:
            return False, "You cannot delete your own account"

        for org in self.db.scalars(select(Organization)).all():
            if user.id in (org.assigned_employees or []):
                org.assigned_employees = [emp for emp in org.assigned_employees if emp != user.id]
        self.db.delete(user)
        record_event(self.db, AuditEventType.USER_DELETED, actor_id, "user", user_id, f"Deleted {user.name}")
        self.db.commit()
        logger.info(f"User {user_id} deleted")
        return True, f"User '{user.name}' deleted"

    def toggle_user_status(self, actor_id: str, user_id: str) -> Tuple[bool, Optional[User], str]:
        user = self.db.get(User, user_id)
        if not user:
            return False, None, f"User {user_id} not found"
        if user.role == UserRole.SUPER_ADMIN:
            return False, None, "Super admin accounts cannot be suspended"

        user.status = AccountStatus.ACTIVE if user.status == AccountStatus.SUSPENDED else AccountStatus.SUSPENDED
        record_event(self.db, AuditEventType.USER_STATUS_CHANGED, actor_id, "user", user.id,
                     f"{user.name} is now {user.status.value}")
        return self._finish(True, user, f"{user.name} is now {user.status.value}")

    def update_notification_preferences(self, user: User, changes: dict) -> Tuple[bool, Optional[User], str]:
        prefs = dict(user.notification_preferences or default_notification_preferences())
        for key, value in changes.items():
            if key in prefs and value is not None:
                prefs[key] = bool(value)
        user.notification_preferences = prefs
        return self._finish(True, user, f"Notification preferences saved for {user.name}")

    def set_password(self, user: User, current_password: str, new_password: str) -> Tuple[bool, str]:
        if not verify_password(current_password, user.password_hash):
            return False, "Current password is incorrect"
        if len(str(new_password or "")) < 8:
            return False, "New password must be at least 8 characters"
        user.password_hash = hash_password(new_password)
        self.db.commit()
        logger.info(f"Password changed for user {user.id}")
        return True, "Password updated"
