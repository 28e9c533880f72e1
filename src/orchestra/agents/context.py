"""Task context assembly.

Every section of a ``ContextBundle`` is optional. Storage and the
search/knowledge-graph suppliers are enrichments: a supplier that errors
is logged and its section left empty, and the task prompt simply omits it.
"""

from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Any, Protocol

from orchestra.core.models import Agent, AgentSpecialization, Task, TaskStatus
from orchestra.observability.logging import get_logger
from orchestra.persistence.base import Project, Storage

log = get_logger(__name__)

SEARCH_LIMIT = 3
SEARCH_THRESHOLD = 0.4
SEARCH_SNIPPET_CHARS = 150
CONCEPT_LIMIT = 3
CONCEPT_MIN_WEIGHT = 0.6
CONCEPT_SNIPPET_CHARS = 100
MAX_FILES = 10
MAX_PRIOR_TASKS = 3


# =============================================================================
# Supplier protocols
# =============================================================================


@dataclass(frozen=True, slots=True)
class SearchHit:
    content: str
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class RelatedConcept:
    content: str
    weight: float


class SearchProvider(Protocol):
    """Semantic or keyword search over project knowledge."""

    async def search(
        self,
        query: str,
        *,
        project_id: str | None,
        limit: int,
        threshold: float,
    ) -> list[SearchHit]: ...


class KnowledgeGraph(Protocol):
    """Related-concept lookup keyed by node id (the task id)."""

    async def related_concepts(
        self,
        node_id: str,
        *,
        limit: int,
        min_weight: float,
    ) -> list[RelatedConcept]: ...


# =============================================================================
# Context bundle
# =============================================================================


@dataclass(frozen=True, slots=True)
class ContextBundle:
    """Everything an agent is told about a task beyond the task itself.

    Attributes:
        project: Project name and description.
        related_files: Project file paths (at most ``MAX_FILES``).
        prior_tasks: Titles of recently completed tasks in the same project.
        retrieved_knowledge: Search snippets.
        related_concepts: Knowledge-graph snippets.
        specialization: The agent's specialization record, if it has history.
    """

    project: Project | None = None
    related_files: tuple[str, ...] = ()
    prior_tasks: tuple[str, ...] = ()
    retrieved_knowledge: tuple[str, ...] = ()
    related_concepts: tuple[str, ...] = ()
    specialization: AgentSpecialization | None = None

    @property
    def is_empty(self) -> bool:
        return not (
            self.project
            or self.related_files
            or self.prior_tasks
            or self.retrieved_knowledge
            or self.related_concepts
            or self.specialization
        )

    def render(self) -> str:
        """Prompt text for the bundle; empty sections are omitted."""
        parts: list[str] = []
        if self.project is not None:
            parts.append(f"Project: {self.project.name}\nDescription: {self.project.description}")
        if self.specialization is not None:
            spec = self.specialization
            lines = ["Agent Specialization:"]
            if spec.specializations:
                lines.append(f"- Domains: {', '.join(spec.specializations)}")
            strong = [cap for cap, level in spec.expertise.items() if level > 0]
            if strong:
                lines.append(f"- Expertise: {', '.join(strong)}")
            if spec.preferred_partners:
                lines.append(f"- Works well with: {', '.join(spec.preferred_partners)}")
            if len(lines) > 1:
                parts.append("\n".join(lines))
        if self.related_files:
            parts.append("Project Files:\n" + "\n".join(f"- {f}" for f in self.related_files))
        if self.prior_tasks:
            parts.append("Completed Tasks:\n" + "\n".join(f"- {t}" for t in self.prior_tasks))
        if self.retrieved_knowledge:
            parts.append(
                "Relevant Content:\n" + "\n".join(f"- {s}..." for s in self.retrieved_knowledge)
            )
        if self.related_concepts:
            parts.append(
                "Related Knowledge:\n" + "\n".join(f"- {s}..." for s in self.related_concepts)
            )
        return "\n\n".join(parts)


class ContextAssembler:
    """Builds a ContextBundle for an agent/task pair from the available suppliers."""

    def __init__(
        self,
        storage: Storage | None = None,
        search: SearchProvider | None = None,
        knowledge_graph: KnowledgeGraph | None = None,
    ) -> None:
        self._storage = storage
        self._search = search
        self._knowledge_graph = knowledge_graph

    async def assemble(
        self,
        task: Task,
        agent: Agent,
        specialization: AgentSpecialization | None = None,
    ) -> ContextBundle:
        project: Project | None = None
        files: tuple[str, ...] = ()
        prior: tuple[str, ...] = ()

        if self._storage is not None and task.project_id:
            project = await self._guard("project", self._load_project(task.project_id))
            files = await self._guard("files", self._load_files(task.project_id)) or ()
            prior = await self._guard("prior_tasks", self._load_prior(task)) or ()

        knowledge: tuple[str, ...] = ()
        if self._search is not None:
            knowledge = await self._guard("search", self._load_search(task)) or ()

        concepts: tuple[str, ...] = ()
        if self._knowledge_graph is not None:
            concepts = await self._guard("knowledge_graph", self._load_concepts(task)) or ()

        has_history = specialization is not None and (
            specialization.collaboration_history or any(specialization.expertise.values())
        )
        return ContextBundle(
            project=project,
            related_files=files,
            prior_tasks=prior,
            retrieved_knowledge=knowledge,
            related_concepts=concepts,
            specialization=specialization if has_history else None,
        )

    async def _guard[T](self, section: str, coro: Awaitable[T]) -> T | None:
        try:
            return await coro
        except Exception as e:
            log.warning("agents.context.section_failed", section=section, error=str(e))
            return None

    async def _load_project(self, project_id: str) -> Project | None:
        assert self._storage is not None
        return await self._storage.get_project(project_id)

    async def _load_files(self, project_id: str) -> tuple[str, ...]:
        assert self._storage is not None
        files = await self._storage.get_project_files(project_id)
        return tuple(f.path for f in files[:MAX_FILES])

    async def _load_prior(self, task: Task) -> tuple[str, ...]:
        assert self._storage is not None
        tasks = await self._storage.get_tasks(task.project_id)
        done = [t for t in tasks if t.id != task.id and t.status == TaskStatus.COMPLETED]
        done.sort(key=lambda t: t.updated_at, reverse=True)
        return tuple(t.title for t in done[:MAX_PRIOR_TASKS])

    async def _load_search(self, task: Task) -> tuple[str, ...]:
        assert self._search is not None
        hits = await self._search.search(
            task.description or task.title,
            project_id=task.project_id,
            limit=SEARCH_LIMIT,
            threshold=SEARCH_THRESHOLD,
        )
        return tuple(hit.content[:SEARCH_SNIPPET_CHARS] for hit in hits[:SEARCH_LIMIT])

    async def _load_concepts(self, task: Task) -> tuple[str, ...]:
        assert self._knowledge_graph is not None
        concepts = await self._knowledge_graph.related_concepts(
            task.id, limit=CONCEPT_LIMIT, min_weight=CONCEPT_MIN_WEIGHT
        )
        return tuple(c.content[:CONCEPT_SNIPPET_CHARS] for c in concepts[:CONCEPT_LIMIT])
