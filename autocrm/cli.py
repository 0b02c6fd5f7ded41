"""CLI tools for AutoCRM administration."""

import asyncio

import click

from autocrm.db.base import Base
from autocrm.db.session import SessionLocal, engine


@click.group()
def cli():
    """AutoCRM CLI tools."""
    pass


@cli.command()
def init_db():
    """
    Create all tables on the configured database.

    For local SQLite development; deployed databases use alembic migrations.
    """
    from autocrm.db import models  # noqa: F401  (registers tables on Base.metadata)

    Base.metadata.create_all(bind=engine)
    click.echo(f"✓ Created tables: {', '.join(sorted(Base.metadata.tables))}")


@cli.command()
@click.option(
    "--limit",
    default=None,
    type=click.IntRange(1, 50),
    help="Max categorizations to process, 1-50 (default: FEEDBACK_BATCH_SIZE)",
)
def process_feedback(limit: int | None):
    """
    Send pending categorization feedback to the model once.

    Example:
        autocrm process-feedback --limit 20
    """
    from autocrm.core.deps import require_ai_provider
    from autocrm.services import feedback_service
    from autocrm.services.errors import AIProviderNotConfigured

    try:
        provider = require_ai_provider()
    except AIProviderNotConfigured as e:
        raise click.ClickException(str(e))

    db = SessionLocal()
    try:
        result = asyncio.run(feedback_service.process_pending_feedback(db, provider, limit=limit))
    finally:
        db.close()

    click.echo(
        f"✓ Processed {result.processed}: "
        f"{result.succeeded} succeeded, {result.failed} failed, {result.skipped} skipped"
    )


@cli.command()
@click.option("--email", required=True, help="Agent email address")
@click.option("--name", default=None, help="Display name (default: local part of the email)")
def ensure_agent(email: str, name: str | None):
    """
    Create the agent record for an email if it does not exist.

    Example:
        autocrm ensure-agent --email agent@example.com --name "Ada Agent"
    """
    from autocrm.services import agent_service

    db = SessionLocal()
    try:
        agent, created = agent_service.ensure_agent(db, email=email, name=name)
    except ValueError as e:
        db.rollback()
        raise click.ClickException(str(e))
    finally:
        db.close()

    if created:
        click.echo(f"✓ Created agent {agent.name} <{agent.email}>")
    else:
        click.echo(f"✓ Agent already exists: {agent.name} <{agent.email}>")
    click.echo(f"  ID: {agent.id}")


if __name__ == "__main__":
    cli()
