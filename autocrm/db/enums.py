"""Enums shared by models, schemas and services."""

from enum import Enum


class TicketStatus(str, Enum):
    """Ticket lifecycle status."""

    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    BLOCKED = "BLOCKED"
    CLOSED = "CLOSED"


class TicketPriority(str, Enum):
    """Ticket priority level."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class TicketCategory(str, Enum):
    """Ticket and email category. Shared with the categorizer output."""

    ACCOUNT = "ACCOUNT"
    BILLING = "BILLING"
    SUPPORT = "SUPPORT"
    SALES = "SALES"
    OTHER = "OTHER"


class EmailLanguage(str, Enum):
    """Languages the categorizer can detect."""

    EN = "EN"
    DE = "DE"
    ES = "ES"
    FR = "FR"
    JA = "JA"


class AgentStatus(str, Enum):
    """Agent availability."""

    AVAILABLE = "AVAILABLE"
    BUSY = "BUSY"
    OFFLINE = "OFFLINE"


class ActivityType(str, Enum):
    """Ticket activity kinds."""

    NOTE = "NOTE"
    STATUS_CHANGE = "STATUS_CHANGE"
    PRIORITY_CHANGE = "PRIORITY_CHANGE"
    ASSIGNMENT_CHANGE = "ASSIGNMENT_CHANGE"
    EMAIL_RECEIVED = "EMAIL_RECEIVED"
    EMAIL_SENT = "EMAIL_SENT"


# Author id used for activities written by the ingestion pipeline
SYSTEM_AGENT_ID = "SYSTEM"

CATEGORY_DESCRIPTIONS = {
    TicketCategory.ACCOUNT: "Account-related inquiries (login, registration, profile, settings)",
    TicketCategory.BILLING: "Payment, subscription, invoices, refunds",
    TicketCategory.SUPPORT: "Technical issues, product help, bug reports",
    TicketCategory.SALES: "Sales inquiries, pricing questions, product information",
    TicketCategory.OTHER: "Anything that doesn't fit the above categories",
}

LANGUAGE_NAMES = {
    EmailLanguage.EN: "English",
    EmailLanguage.DE: "German",
    EmailLanguage.ES: "Spanish",
    EmailLanguage.FR: "French",
    EmailLanguage.JA: "Japanese",
}
