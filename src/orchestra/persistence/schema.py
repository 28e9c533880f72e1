"""Database schema using SQLAlchemy Core.

Entities are stored as JSON payloads keyed by id, with the few columns
queries filter on pulled out alongside.

Tables:
    agents, tasks, projects, project_files: entity payloads
    snapshots: orchestrator aggregates keyed by name
    events: append-only orchestration event log
"""

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Index,
    MetaData,
    String,
    Table,
    text,
)

metadata = MetaData()


def _updated_at() -> Column:
    return Column(
        "updated_at",
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        server_default=text("CURRENT_TIMESTAMP"),
    )


agents_table = Table(
    "agents",
    metadata,
    Column("id", String(100), primary_key=True),
    Column("payload", JSON, nullable=False),
    _updated_at(),
)

tasks_table = Table(
    "tasks",
    metadata,
    Column("id", String(100), primary_key=True),
    Column("project_id", String(100), nullable=True),
    Column("status", String(20), nullable=False),
    Column("payload", JSON, nullable=False),
    _updated_at(),
    Index("ix_tasks_project_id", "project_id"),
)

projects_table = Table(
    "projects",
    metadata,
    Column("id", String(100), primary_key=True),
    Column("payload", JSON, nullable=False),
    _updated_at(),
)

project_files_table = Table(
    "project_files",
    metadata,
    Column("id", String(100), primary_key=True),
    Column("project_id", String(100), nullable=False),
    Column("payload", JSON, nullable=False),
    _updated_at(),
    Index("ix_project_files_project_id", "project_id"),
)

snapshots_table = Table(
    "snapshots",
    metadata,
    Column("key", String(100), primary_key=True),
    Column("payload", JSON, nullable=False),
    _updated_at(),
)

events_table = Table(
    "events",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("aggregate_type", String(100), nullable=False),
    Column("aggregate_id", String(100), nullable=False),
    Column("event_type", String(200), nullable=False),
    Column("payload", JSON, nullable=False),
    Column(
        "timestamp",
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        server_default=text("CURRENT_TIMESTAMP"),
    ),
    Index("ix_events_aggregate", "aggregate_type", "aggregate_id"),
    Index("ix_events_timestamp", "timestamp"),
)
