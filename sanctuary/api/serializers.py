"""Response shapes for the JSON API."""

from typing import Optional

from sanctuary.models import (
    User, Organization, Proposal, Invoice, SupportTicket, ClassEvent, Project, Task, DriveItem,
    ChatChannel, ChatMessage, WaiverRecord,
)
from sanctuary.services.classes import event_financials
from sanctuary.services.operations import compute_progress, task_due_state


def user_out(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "phone": user.phone,
        "role": user.role.value,
        "kind": user.kind.value,
        "organization_id": user.organization_id,
        "permissions": list(user.permissions or []),
        "status": user.status.value,
        "waiver_signed": bool(user.waiver_signed),
        "waiver_signed_date": user.waiver_signed_date,
        "bio": user.bio,
        "profile_picture": user.profile_picture,
    }


def organization_out(org: Organization, include_users: bool = True) -> dict:
    data = {
        "id": org.id,
        "name": org.name,
        "industry": org.industry,
        "website": org.website,
        "status": org.status.value,
        "logo": org.logo,
        "assigned_employees": list(org.assigned_employees or []),
        "user_count": len(org.users),
    }
    if include_users:
        data["users"] = [user_out(user) for user in org.users]
    return data


def proposal_out(proposal: Proposal) -> dict:
    return {
        "id": proposal.id,
        "organization_id": proposal.organization_id,
        "client_name": proposal.client_name,
        "client_email": proposal.client_email,
        "services": list(proposal.services or []),
        "custom_details": proposal.custom_details,
        "estimated_upfront": proposal.estimated_upfront,
        "estimated_retainer": proposal.estimated_retainer,
        "content": proposal.content,
        "status": proposal.status.value,
        "created_at": proposal.created_at,
        "marketing_data": proposal.marketing_data,
    }


def invoice_out(invoice: Invoice) -> dict:
    return {
        "id": invoice.id,
        "proposal_id": invoice.proposal_id,
        "client_name": invoice.client_name,
        "amount": invoice.amount,
        "type": invoice.type.value,
        "status": invoice.status.value,
        "issue_date": invoice.issue_date,
        "due_date": invoice.due_date,
        "terms": invoice.terms,
        "items": list(invoice.items or []),
    }


def ticket_out(ticket: SupportTicket, include_messages: bool = True) -> dict:
    data = {
        "id": ticket.id,
        "client_id": ticket.client_id,
        "client_name": ticket.client_name,
        "organization_name": ticket.organization_name,
        "subject": ticket.subject,
        "status": ticket.status.value,
        "priority": ticket.priority.value,
        "created_at": ticket.created_at,
        "last_updated": ticket.last_updated,
        "message_count": len(ticket.messages),
    }
    if include_messages:
        data["messages"] = [
            {
                "id": message.id,
                "sender_id": message.sender_id,
                "sender_name": message.sender_name,
                "text": message.text,
                "timestamp": message.timestamp,
                "is_admin": bool(message.is_admin),
            }
            for message in ticket.messages
        ]
    return data


def event_out(event: ClassEvent, viewer: Optional[User] = None, show_attendees: bool = False) -> dict:
    data = {
        "id": event.id,
        "series_id": event.series_id,
        "name": event.name,
        "description": event.description,
        "cover_image": event.cover_image,
        "price": event.price,
        "date": event.date,
        "time": event.time,
        "duration": event.duration,
        "total_seats": event.total_seats,
        "available_seats": event.available_seats,
        "is_recurring": bool(event.is_recurring),
        "recurring_cycle": event.recurring_cycle.value,
        "facilitator": {
            "id": event.facilitator_id,
            "name": event.facilitator_name,
            "picture": event.facilitator_picture,
            "bio": event.facilitator_bio,
            "payout_type": event.facilitator_payout_type.value,
            "payout_value": event.facilitator_payout_value,
        },
        "organizer": None,
        "booked_by_me": bool(viewer and viewer.id in (event.attendees or [])),
    }
    if event.organizer_id:
        data["organizer"] = {
            "id": event.organizer_id,
            "name": event.organizer_name,
            "picture": event.organizer_picture,
            "bio": event.organizer_bio,
            "payout_type": event.organizer_payout_type.value if event.organizer_payout_type else None,
            "payout_value": event.organizer_payout_value,
        }
    if show_attendees:
        data["attendees"] = list(event.attendees or [])
        data["financials"] = event_financials(event)
    return data


def task_out(task: Task) -> dict:
    return {
        "id": task.id,
        "project_id": task.project_id,
        "organization_id": task.organization_id,
        "title": task.title,
        "description": task.description,
        "status": task.status.value,
        "assignee": task.assignee,
        "due_date": task.due_date,
        "due_state": task_due_state(task.due_date),
        "priority": task.priority.value,
        "label": task.label,
        "checklist": list(task.checklist or []),
        "is_archived": bool(task.is_archived),
        "attachments": list(task.attachments or []),
    }


def project_out(project: Project, include_tasks: bool = False) -> dict:
    data = {
        "id": project.id,
        "organization_id": project.organization_id,
        "title": project.title,
        "description": project.description,
        "status": project.status.value,
        "progress": compute_progress(project.tasks),
        "due_date": project.due_date,
        "members": list(project.members or []),
        "is_archived": bool(project.is_archived),
        "task_count": len([task for task in project.tasks if not task.is_archived]),
    }
    if include_tasks:
        data["tasks"] = [task_out(task) for task in project.tasks]
    return data


def drive_item_out(item: DriveItem) -> dict:
    return {
        "id": item.id,
        "parent_id": item.parent_id,
        "name": item.name,
        "type": item.type.value,
        "size": item.size,
        "updated_at": item.updated_at,
        "tags": list(item.tags or []),
    }


def channel_out(channel: ChatChannel) -> dict:
    return {
        "id": channel.id,
        "organization_id": channel.organization_id,
        "name": channel.name,
        "type": channel.type.value,
        "members": list(channel.members or []),
    }


def message_out(message: ChatMessage) -> dict:
    return {
        "id": message.id,
        "channel_id": message.channel_id,
        "sender_id": message.sender_id,
        "sender_name": message.sender_name,
        "text": message.text,
        "timestamp": message.timestamp,
        "mentions": list(message.mentions or []),
    }


def waiver_out(record: WaiverRecord) -> dict:
    return {
        "id": record.id,
        "user_id": record.user_id,
        "user_name": record.user_name,
        "organization_id": record.organization_id,
        "organization_name": record.organization_name,
        "signed_date": record.signed_date,
        "signature": record.signature,
        "initials": record.initials,
    }
