"""
Support Models
Help-desk tickets and the messages exchanged on them.
"""

from typing import Any, Dict

from pydantic import BaseModel, Field, field_validator

TICKET_CATEGORIES = {
    "general": "Dúvida Geral",
    "technical": "Problema Técnico",
    "account": "Conta/Acesso",
    "content": "Conteúdo/Tutoriais",
    "billing": "Pagamento/Resgate",
    "suggestion": "Sugestão",
}
TICKET_PRIORITIES = {
    "low": "Baixa",
    "medium": "Média",
    "high": "Alta",
    "urgent": "Urgente",
}
TICKET_STATUSES = {
    "open": "Aberto",
    "in_progress": "Em Andamento",
    "waiting_user": "Aguardando Usuário",
    "resolved": "Resolvido",
    "closed": "Fechado",
}
SENDER_ROLES = ("user", "admin")


class TicketModel(BaseModel):
    """Ticket document at ``support_tickets/{id}``."""

    user_id: str
    user_email: str = ""
    user_name: str = ""
    subject: str = Field(min_length=1, max_length=200)
    category: str = "general"
    priority: str = "medium"
    status: str = "open"

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        if v not in TICKET_CATEGORIES:
            raise ValueError("Invalid ticket category")
        return v

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v: str) -> str:
        if v not in TICKET_PRIORITIES:
            raise ValueError("Invalid ticket priority")
        return v

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        if v not in TICKET_STATUSES:
            raise ValueError("Invalid ticket status")
        return v

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class TicketMessageModel(BaseModel):
    """Message at ``ticket_messages/{id}``."""

    ticket_id: str
    sender_id: str
    sender_name: str = ""
    sender_role: str = "user"
    message: str = Field(min_length=1, max_length=5000)

    @field_validator("message")
    @classmethod
    def strip_message(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Message cannot be empty")
        return v

    @field_validator("sender_role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        if v not in SENDER_ROLES:
            raise ValueError("Invalid sender role")
        return v

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()
