"""SQLite storage on SQLAlchemy Core with the aiosqlite driver."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import Table, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from orchestra.core.errors import PersistenceError
from orchestra.core.models import Agent, Task
from orchestra.events.base import BaseEvent
from orchestra.persistence.base import Project, ProjectFile
from orchestra.persistence.schema import (
    agents_table,
    events_table,
    metadata,
    project_files_table,
    projects_table,
    snapshots_table,
    tasks_table,
)


class SQLiteStorage:
    """Storage backed by a SQLite database.

    Usage:
        storage = SQLiteStorage("sqlite+aiosqlite:///orchestra.db")
        await storage.initialize()
        await storage.save_task(task)
        await storage.close()
    """

    def __init__(self, database_url: str | None = None) -> None:
        """Initialize with a database URL.

        Args:
            database_url: SQLAlchemy async URL. Defaults to
                ~/.orchestra/data/orchestra.db.
        """
        if database_url is None:
            db_path = Path.home() / ".orchestra" / "data" / "orchestra.db"
            db_path.parent.mkdir(parents=True, exist_ok=True)
            database_url = f"sqlite+aiosqlite:///{db_path}"
        self._database_url = database_url
        self._engine: AsyncEngine | None = None

    @classmethod
    def from_path(cls, path: Path) -> SQLiteStorage:
        path.parent.mkdir(parents=True, exist_ok=True)
        return cls(f"sqlite+aiosqlite:///{path}")

    async def initialize(self) -> None:
        """Create the engine and tables. Idempotent."""
        if self._engine is None:
            self._engine = create_async_engine(self._database_url, echo=False)
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(metadata.create_all)
        except Exception as e:
            raise PersistenceError(
                f"Failed to initialize database: {e}", operation="create_all"
            ) from e

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None

    def _require_engine(self, operation: str) -> AsyncEngine:
        if self._engine is None:
            raise PersistenceError(
                "SQLiteStorage not initialized. Call initialize() first.",
                operation=operation,
            )
        return self._engine

    async def _upsert(self, table: Table, key: str, values: dict[str, Any]) -> None:
        engine = self._require_engine("upsert")
        stmt = sqlite_insert(table).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c[key]],
            set_={k: v for k, v in values.items() if k != key},
        )
        try:
            async with engine.begin() as conn:
                await conn.execute(stmt)
        except Exception as e:
            raise PersistenceError(
                f"Failed to write {table.name}: {e}",
                operation="upsert",
                table=table.name,
                details={key: values.get(key)},
            ) from e

    async def _select_payloads(self, table: Table, *where: Any) -> list[Any]:
        engine = self._require_engine("select")
        query = select(table.c.payload)
        for clause in where:
            query = query.where(clause)
        try:
            async with engine.connect() as conn:
                result = await conn.execute(query)
                return [row.payload for row in result]
        except Exception as e:
            raise PersistenceError(
                f"Failed to read {table.name}: {e}",
                operation="select",
                table=table.name,
            ) from e

    # -- agents and tasks ----------------------------------------------------

    async def save_agent(self, agent: Agent) -> None:
        await self._upsert(
            agents_table, "id", {"id": agent.id, "payload": agent.model_dump(mode="json")}
        )

    async def get_agents(self) -> list[Agent]:
        return [Agent.model_validate(p) for p in await self._select_payloads(agents_table)]

    async def save_task(self, task: Task) -> None:
        await self._upsert(
            tasks_table,
            "id",
            {
                "id": task.id,
                "project_id": task.project_id,
                "status": task.status.value,
                "payload": task.model_dump(mode="json"),
            },
        )

    async def get_tasks(self, project_id: str | None = None) -> list[Task]:
        where = [tasks_table.c.project_id == project_id] if project_id is not None else []
        return [Task.model_validate(p) for p in await self._select_payloads(tasks_table, *where)]

    # -- projects ------------------------------------------------------------

    async def save_project(self, project: Project) -> None:
        await self._upsert(
            projects_table, "id", {"id": project.id, "payload": project.model_dump(mode="json")}
        )

    async def get_project(self, project_id: str) -> Project | None:
        payloads = await self._select_payloads(projects_table, projects_table.c.id == project_id)
        return Project.model_validate(payloads[0]) if payloads else None

    async def save_project_file(self, project_file: ProjectFile) -> None:
        await self._upsert(
            project_files_table,
            "id",
            {
                "id": project_file.id,
                "project_id": project_file.project_id,
                "payload": project_file.model_dump(mode="json"),
            },
        )

    async def get_project_files(self, project_id: str) -> list[ProjectFile]:
        payloads = await self._select_payloads(
            project_files_table, project_files_table.c.project_id == project_id
        )
        return [ProjectFile.model_validate(p) for p in payloads]

    # -- snapshots and events ------------------------------------------------

    async def save_snapshot(self, key: str, payload: Any) -> None:
        await self._upsert(snapshots_table, "key", {"key": key, "payload": payload})

    async def load_snapshot(self, key: str) -> Any | None:
        payloads = await self._select_payloads(snapshots_table, snapshots_table.c.key == key)
        return payloads[0] if payloads else None

    async def append_event(self, event: BaseEvent) -> None:
        engine = self._require_engine("append")
        row = event.to_db_dict()
        row["payload"] = event.model_dump(mode="json")["data"]
        try:
            async with engine.begin() as conn:
                await conn.execute(events_table.insert().values(**row))
        except Exception as e:
            raise PersistenceError(
                f"Failed to append event: {e}",
                operation="insert",
                table="events",
                details={"event_id": event.id, "event_type": event.type},
            ) from e

    async def get_events(
        self, aggregate_type: str, aggregate_id: str
    ) -> list[BaseEvent]:
        """Events for one aggregate in timestamp order."""
        engine = self._require_engine("replay")
        try:
            async with engine.connect() as conn:
                result = await conn.execute(
                    select(events_table)
                    .where(events_table.c.aggregate_type == aggregate_type)
                    .where(events_table.c.aggregate_id == aggregate_id)
                    .order_by(events_table.c.timestamp, events_table.c.id)
                )
                return [BaseEvent.from_db_row(dict(row)) for row in result.mappings().all()]
        except Exception as e:
            raise PersistenceError(
                f"Failed to read events: {e}",
                operation="select",
                table="events",
                details={"aggregate_type": aggregate_type, "aggregate_id": aggregate_id},
            ) from e
