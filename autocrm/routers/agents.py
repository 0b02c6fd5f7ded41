"""Agent list/provisioning/update APIs."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from autocrm.core.auth import AuthResult
from autocrm.core.deps import get_db, require_agent_token
from autocrm.db.enums import AgentStatus
from autocrm.db.models import Agent
from autocrm.schemas.crm import AgentEnsureResponse, AgentRead, AgentUpdate
from autocrm.services import agent_service

router = APIRouter(
    prefix="/api/agents",
    tags=["Agents"],
    dependencies=[Depends(require_agent_token)],
)


@router.get("", response_model=list[AgentRead])
def list_agents(
    status: AgentStatus | None = None,
    db: Session = Depends(get_db),
) -> list[AgentRead]:
    return [AgentRead.model_validate(a) for a in agent_service.list_agents(db, status=status)]


@router.post("/me", response_model=AgentEnsureResponse)
def ensure_current_agent(
    db: Session = Depends(get_db),
    auth: AuthResult = Depends(require_agent_token),
) -> AgentEnsureResponse:
    """Return the caller's agent record, creating it on first sign-in."""
    claims = auth.claims or {}
    try:
        agent, created = agent_service.ensure_agent(
            db,
            email=auth.principal or "",
            name=claims.get("name"),
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return AgentEnsureResponse(agent=AgentRead.model_validate(agent), created=created)


@router.patch("/{agent_id}", response_model=AgentRead)
def patch_agent(
    agent_id: UUID,
    data: AgentUpdate,
    db: Session = Depends(get_db),
) -> AgentRead:
    agent = db.get(Agent, agent_id)
    if not agent:
        raise HTTPException(status_code=404, detail="Agent not found")
    try:
        agent = agent_service.update_agent(db, agent, changes=data.model_dump(exclude_unset=True))
    except (ValueError, LookupError) as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc))
    return AgentRead.model_validate(agent)
