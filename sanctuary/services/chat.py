"""
Organization chat: channels, membership and messages with @mentions.
"""

import logging
import re
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from sanctuary.models import ChatChannel, ChatMessage, Organization, User, UserRole, ChannelType
from sanctuary.services.access import is_client, is_super_admin

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def normalize_channel_name(name: str) -> str:
    return _WHITESPACE.sub("-", str(name or "").strip().lower())


def resolve_mentions(text: str, candidates: List[User]) -> List[str]:
    """Ids of users named by an '@Full Name' token, longest names first."""
    lowered = str(text or "").lower()
    found = []
    for user in sorted(candidates, key=lambda u: len(u.name), reverse=True):
        token = f"@{user.name.lower()}"
        if token in lowered and user.id not in found:
            found.append(user.id)
            lowered = lowered.replace(token, "")
    return found


class ChatManager:
    def __init__(self, db: Session):
        self.db = db

    def available_organizations(self, user: User) -> List[Organization]:
        query = select(Organization).order_by(Organization.name)
        if is_client(user):
            if not user.organization_id:
                return []
            query = query.where(Organization.id == user.organization_id)
        return self.db.scalars(query).all()

    def organization_users(self, org: Organization) -> List[User]:
        """Super admins, employees assigned to the organization and its client users."""
        assigned = set(org.assigned_employees or [])
        users = self.db.scalars(select(User).order_by(User.name)).all()
        return [
            user for user in users
            if user.role == UserRole.SUPER_ADMIN or user.id in assigned or user.organization_id == org.id
        ]

    def can_access_org(self, user: User, org: Organization) -> bool:
        return any(candidate.id == org.id for candidate in self.available_organizations(user))

    def can_see_channel(self, user: User, channel: ChatChannel) -> bool:
        if channel.type == ChannelType.PUBLIC or is_super_admin(user):
            return True
        return user.id in (channel.members or [])

    def channels(self, user: User, org_id: str) -> Tuple[bool, List[ChatChannel], str]:
        org = self.db.get(Organization, org_id)
        if not org:
            return False, [], f"Organization {org_id} not found"
        if not self.can_access_org(user, org):
            return False, [], "No access to this organization"
        channels = self.db.scalars(
            select(ChatChannel).where(ChatChannel.organization_id == org_id).order_by(ChatChannel.created_at)
        ).all()
        return True, [channel for channel in channels if self.can_see_channel(user, channel)], "ok"

    def create_channel(self, user: User, org_id: str, name: str,
                       channel_type: str = ChannelType.PUBLIC.value) -> Tuple[bool, Optional[ChatChannel], str]:
        org = self.db.get(Organization, org_id)
        if not org:
            return False, None, f"Organization {org_id} not found"
        if not self.can_access_org(user, org):
            return False, None, "No access to this organization"
        normalized = normalize_channel_name(name)
        if not normalized:
            return False, None, "Channel name is required"
        try:
            kind = ChannelType(channel_type)
        except ValueError as e:
            return False, None, str(e)

        channel = ChatChannel(organization_id=org_id, name=normalized, type=kind, members=[user.id])
        self.db.add(channel)
        self.db.commit()
        self.db.refresh(channel)
        logger.info(f"Channel #{normalized} created in {org.name} by {user.id}")
        return True, channel, f"#{normalized} created"

    def delete_channel(self, channel_id: str) -> Tuple[bool, str]:
        channel = self.db.get(ChatChannel, channel_id)
        if not channel:
            return False, f"Channel {channel_id} not found"
        for message in self.db.scalars(select(ChatMessage).where(ChatMessage.channel_id == channel_id)).all():
            self.db.delete(message)
        self.db.delete(channel)
        self.db.commit()
        logger.info(f"Channel {channel_id} deleted")
        return True, "Channel deleted"

    def toggle_member(self, channel_id: str, user_id: str) -> Tuple[bool, Optional[ChatChannel], str]:
        channel = self.db.get(ChatChannel, channel_id)
        if not channel:
            return False, None, f"Channel {channel_id} not found"
        org = self.db.get(Organization, channel.organization_id)
        if not any(candidate.id == user_id for candidate in self.organization_users(org)):
            return False, None, f"User {user_id} is not part of {org.name}"
        members = list(channel.members or [])
        if user_id in members:
            members.remove(user_id)
        else:
            members.append(user_id)
        channel.members = members
        self.db.commit()
        self.db.refresh(channel)
        return True, channel, "Members updated"

    def messages(self, user: User, channel_id: str) -> Tuple[bool, List[ChatMessage], str]:
        channel = self.db.get(ChatChannel, channel_id)
        if not channel:
            return False, [], f"Channel {channel_id} not found"
        org = self.db.get(Organization, channel.organization_id)
        if not self.can_access_org(user, org) or not self.can_see_channel(user, channel):
            return False, [], "No access to this channel"
        messages = self.db.scalars(
            select(ChatMessage).where(ChatMessage.channel_id == channel_id).order_by(ChatMessage.timestamp)
        ).all()
        return True, messages, "ok"

    def send(self, user: User, channel_id: str, text: str) -> Tuple[bool, Optional[ChatMessage], str]:
        channel = self.db.get(ChatChannel, channel_id)
        if not channel:
            return False, None, f"Channel {channel_id} not found"
        org = self.db.get(Organization, channel.organization_id)
        if not self.can_access_org(user, org) or not self.can_see_channel(user, channel):
            return False, None, "No access to this channel"
        text = str(text or "").strip()
        if not text:
            return False, None, "Message cannot be empty"

        message = ChatMessage(
            channel_id=channel_id,
            sender_id=user.id,
            sender_name=user.name,
            text=text,
            mentions=resolve_mentions(text, self.organization_users(org)),
        )
        self.db.add(message)
        self.db.commit()
        self.db.refresh(message)
        return True, message, "Sent"

    def mention_candidates(self, org_id: str, query: str = "") -> Tuple[bool, List[User], str]:
        org = self.db.get(Organization, org_id)
        if not org:
            return False, [], f"Organization {org_id} not found"
        needle = str(query or "").strip().lower()
        return True, [user for user in self.organization_users(org) if needle in user.name.lower()], "ok"
