"""Agent provisioning and management."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from autocrm.db.enums import AgentStatus
from autocrm.db.models import Agent
from autocrm.utils.normalization import email_local_part, normalize_email

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENT_TICKETS = 5


def get_agent_by_email(db: Session, email: str) -> Agent | None:
    normalized = normalize_email(email)
    if not normalized:
        return None
    return (
        db.query(Agent)
        .filter(Agent.email == normalized)
        .order_by(Agent.created_at.asc())
        .first()
    )


def ensure_agent(db: Session, *, email: str, name: str | None = None) -> tuple[Agent, bool]:
    """
    Return the agent for a signed-in user, creating it on first sign-in.

    Runs on every call; there is no process-level "already initialized" state.

    Returns:
        (agent, created)
    """
    normalized = normalize_email(email)
    if not normalized:
        raise ValueError("Agent email is required")

    agent = get_agent_by_email(db, normalized)
    if agent is not None:
        return agent, False

    agent = Agent(
        email=normalized,
        name=(name or "").strip() or email_local_part(normalized),
        status=AgentStatus.AVAILABLE,
        max_concurrent_tickets=DEFAULT_MAX_CONCURRENT_TICKETS,
        assigned_categories=[],
    )
    db.add(agent)
    db.commit()
    db.refresh(agent)
    logger.info("Created agent %s on first sign-in", agent.id)
    return agent, True


def list_agents(db: Session, *, status: AgentStatus | None = None) -> list[Agent]:
    query = db.query(Agent)
    if status is not None:
        query = query.filter(Agent.status == status)
    return query.order_by(Agent.name.asc()).all()


def update_agent(db: Session, agent: Agent, *, changes: dict) -> Agent:
    """
    Apply a partial update.

    Raises:
        ValueError: agent set as its own supervisor
        LookupError: supervisor does not exist
    """
    if changes.get("status") is not None:
        agent.status = changes["status"]
    if changes.get("max_concurrent_tickets") is not None:
        agent.max_concurrent_tickets = changes["max_concurrent_tickets"]
    if changes.get("assigned_categories") is not None:
        agent.assigned_categories = sorted({c.value for c in changes["assigned_categories"]})
    if "supervisor_id" in changes:
        supervisor_id: UUID | None = changes["supervisor_id"]
        if supervisor_id is not None:
            if supervisor_id == agent.id:
                raise ValueError("An agent cannot supervise itself")
            if db.get(Agent, supervisor_id) is None:
                raise LookupError("Supervisor not found")
        agent.supervisor_id = supervisor_id
    db.commit()
    db.refresh(agent)
    return agent
