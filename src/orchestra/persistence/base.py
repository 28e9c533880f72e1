"""Storage protocol and the in-memory implementation.

The orchestrator persists agents and tasks individually and saves its
remaining aggregates (collaborations, negotiations, specializations,
analytics) as keyed JSON snapshots. Writes are last-write-wins upserts;
there are no transactions spanning calls.
"""

from __future__ import annotations

from copy import deepcopy
from typing import Any, Protocol

from pydantic import BaseModel

from orchestra.core.models import Agent, Task
from orchestra.events.base import BaseEvent


class Project(BaseModel):
    """Project a task belongs to; its summary seeds the task context."""

    id: str
    name: str
    description: str = ""


class ProjectFile(BaseModel):
    """A file known to belong to a project."""

    id: str
    project_id: str
    path: str
    language: str | None = None


class Storage(Protocol):
    """Persistence collaborator of the orchestrator.

    Every method raises ``PersistenceError`` on failure.
    """

    async def initialize(self) -> None: ...

    async def close(self) -> None: ...

    async def save_agent(self, agent: Agent) -> None: ...

    async def get_agents(self) -> list[Agent]: ...

    async def save_task(self, task: Task) -> None: ...

    async def get_tasks(self, project_id: str | None = None) -> list[Task]: ...

    async def save_project(self, project: Project) -> None: ...

    async def get_project(self, project_id: str) -> Project | None: ...

    async def save_project_file(self, project_file: ProjectFile) -> None: ...

    async def get_project_files(self, project_id: str) -> list[ProjectFile]: ...

    async def save_snapshot(self, key: str, payload: Any) -> None: ...

    async def load_snapshot(self, key: str) -> Any | None: ...

    async def append_event(self, event: BaseEvent) -> None: ...


class InMemoryStorage:
    """Process-local storage. The default, and what the tests use.

    Models are copied on the way in and out so callers never share
    mutable state with the store.
    """

    def __init__(self) -> None:
        self._agents: dict[str, Agent] = {}
        self._tasks: dict[str, Task] = {}
        self._projects: dict[str, Project] = {}
        self._files: dict[str, ProjectFile] = {}
        self._snapshots: dict[str, Any] = {}
        self.events: list[BaseEvent] = []

    async def initialize(self) -> None:
        return None

    async def close(self) -> None:
        return None

    async def save_agent(self, agent: Agent) -> None:
        self._agents[agent.id] = agent.model_copy(deep=True)

    async def get_agents(self) -> list[Agent]:
        return [a.model_copy(deep=True) for a in self._agents.values()]

    async def save_task(self, task: Task) -> None:
        self._tasks[task.id] = task.model_copy(deep=True)

    async def get_tasks(self, project_id: str | None = None) -> list[Task]:
        return [
            t.model_copy(deep=True)
            for t in self._tasks.values()
            if project_id is None or t.project_id == project_id
        ]

    async def save_project(self, project: Project) -> None:
        self._projects[project.id] = project.model_copy()

    async def get_project(self, project_id: str) -> Project | None:
        project = self._projects.get(project_id)
        return project.model_copy() if project else None

    async def save_project_file(self, project_file: ProjectFile) -> None:
        self._files[project_file.id] = project_file.model_copy()

    async def get_project_files(self, project_id: str) -> list[ProjectFile]:
        return [f.model_copy() for f in self._files.values() if f.project_id == project_id]

    async def save_snapshot(self, key: str, payload: Any) -> None:
        self._snapshots[key] = deepcopy(payload)

    async def load_snapshot(self, key: str) -> Any | None:
        return deepcopy(self._snapshots.get(key))

    async def append_event(self, event: BaseEvent) -> None:
        self.events.append(event)
