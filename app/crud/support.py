"""
Support CRUD Operations
Help-desk tickets and their message threads.
"""

from typing import Any, Dict, List, Optional

from google.cloud import firestore

from app.crud.base import BaseCRUD, build_model, snapshot_to_dict
from app.crud.notifications import NotificationCRUD
from app.models.collections import COLLECTION_SUPPORT_TICKETS, COLLECTION_TICKET_MESSAGES
from app.models.support import TICKET_STATUSES, TicketMessageModel, TicketModel
from app.utils.exceptions import AuthorizationError, ValidationError
from app.utils.logger import get_logger

logger = get_logger(__name__)


class SupportCRUD(BaseCRUD):
    """CRUD operations for support tickets."""

    def __init__(self, db):
        super().__init__(db)
        self.notifications = NotificationCRUD(db)

    @property
    def collection_name(self) -> str:
        return COLLECTION_SUPPORT_TICKETS

    def _messages(self):
        return self.get_collection(COLLECTION_TICKET_MESSAGES)

    def create_ticket(
        self,
        profile: Dict[str, Any],
        subject: str,
        message: str,
        category: str = "general",
        priority: str = "medium",
    ) -> Dict[str, Any]:
        """Open a ticket; ``message`` becomes the first entry of its thread."""
        ticket = build_model(
            TicketModel,
            user_id=profile["uid"],
            user_email=profile.get("email", ""),
            user_name=profile.get("display_name", ""),
            subject=(subject or "").strip(),
            category=category,
            priority=priority,
        ).to_dict()
        first = self._build_message("", profile, message, "user")

        ticket["updated_at"] = firestore.SERVER_TIMESTAMP
        ticket_id = self.create(ticket)
        self._add_entry({**first, "ticket_id": ticket_id})
        logger.info(f"Support ticket {ticket_id} opened by {profile['uid']}")
        return self.require(ticket_id, "Ticket")

    def _build_message(self, ticket_id: str, profile: Dict[str, Any], message: str, role: str) -> Dict[str, Any]:
        return build_model(
            TicketMessageModel,
            ticket_id=ticket_id,
            sender_id=profile["uid"],
            sender_name=profile.get("display_name", ""),
            sender_role=role,
            message=message or "",
        ).to_dict()

    def _add_entry(self, entry: Dict[str, Any]) -> Dict[str, Any]:
        entry["created_at"] = firestore.SERVER_TIMESTAMP
        _, ref = self._messages().add(entry)
        return snapshot_to_dict(ref.get())

    def _visible(self, ticket_id: str, uid: str, is_admin: bool) -> Dict[str, Any]:
        ticket = self.require(ticket_id, "Ticket")
        if ticket.get("user_id") != uid and not is_admin:
            raise AuthorizationError("Not your ticket")
        return ticket

    def list_for_user(self, uid: str) -> List[Dict[str, Any]]:
        docs = (
            self.where(self.get_collection(), "user_id", "==", uid)
            .order_by("updated_at", direction=firestore.Query.DESCENDING)
            .get()
        )
        return [snapshot_to_dict(doc) for doc in docs]

    def list_all(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        query = self.get_collection()
        if status is not None:
            if status not in TICKET_STATUSES:
                raise ValidationError("Invalid status", details={"status": status})
            query = self.where(query, "status", "==", status)
        docs = query.order_by("updated_at", direction=firestore.Query.DESCENDING).get()
        return [snapshot_to_dict(doc) for doc in docs]

    def get_ticket(self, ticket_id: str, uid: str, is_admin: bool = False) -> Dict[str, Any]:
        """Ticket with its messages in order. Only the owner or an admin may read it."""
        ticket = self._visible(ticket_id, uid, is_admin)
        docs = self.where(self._messages(), "ticket_id", "==", ticket_id).order_by("created_at").get()
        ticket["messages"] = [snapshot_to_dict(doc) for doc in docs]
        return ticket

    def add_message(self, ticket_id: str, profile: Dict[str, Any], message: str, is_admin: bool = False) -> Dict[str, Any]:
        """
        Append to a ticket thread and touch its ``updated_at``.

        An admin reply on someone else's ticket notifies the owner.
        """
        ticket = self._visible(ticket_id, profile["uid"], is_admin)
        if ticket.get("status") == "closed":
            raise ValidationError("Ticket is closed", details={"id": ticket_id})

        role = "admin" if is_admin and ticket.get("user_id") != profile["uid"] else "user"
        entry = self._add_entry(self._build_message(ticket_id, profile, message, role))
        self.update(ticket_id, {"last_reply_role": role})

        if role == "admin":
            self.notifications.notify_safely(
                ticket["user_id"],
                "ticket_reply",
                title="Resposta do suporte",
                message=f'Seu chamado "{ticket.get("subject", "")}" recebeu uma resposta.',
                from_user_id=profile["uid"],
                from_user_name=profile.get("display_name"),
            )
        return entry

    def set_status(self, ticket_id: str, status: str) -> Dict[str, Any]:
        if status not in TICKET_STATUSES:
            raise ValidationError("Invalid status", details={"status": status, "allowed": list(TICKET_STATUSES)})
        self.require(ticket_id, "Ticket")
        self.update(ticket_id, {"status": status})
        logger.info(f"Ticket {ticket_id} set to {status}")
        return self.require(ticket_id, "Ticket")
