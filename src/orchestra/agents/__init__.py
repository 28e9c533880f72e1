"""Agents: the registry, specialization records, prompts and execution.

Key Components:
    - AgentRegistry: In-memory agents keyed by id, seeded from built-in templates
    - SpecializationStore: Learned expertise and partner affinities
    - PerformanceTracker: Rolling per-agent performance after each task
    - ContextAssembler: Project, search and knowledge-graph context for prompts
    - AgentExecutor: Language-model calls producing TaskResults

Usage:
    from orchestra.agents import AgentExecutor, AgentRegistry

    registry = AgentRegistry()
    registry.bootstrap_defaults()
    executor = AgentExecutor(LiteLLMAdapter())
    result = await executor.perform(registry.require("coder"), task)
"""

from orchestra.agents.context import (
    ContextAssembler,
    ContextBundle,
    KnowledgeGraph,
    RelatedConcept,
    SearchHit,
    SearchProvider,
)
from orchestra.agents.executor import AgentExecutor
from orchestra.agents.performance import PerformanceTracker, quality_score
from orchestra.agents.postprocess import extract_code_blocks, postprocess
from orchestra.agents.registry import (
    BUILTIN_TEMPLATES,
    ROLE_CODE,
    ROLE_DESIGN,
    ROLE_DEVOPS,
    ROLE_PLANNING,
    ROLE_QA,
    AgentRegistry,
    AgentTemplate,
    default_agents,
)
from orchestra.agents.specialization import SpecializationStore

__all__ = [
    "BUILTIN_TEMPLATES",
    "ROLE_CODE",
    "ROLE_DESIGN",
    "ROLE_DEVOPS",
    "ROLE_PLANNING",
    "ROLE_QA",
    "AgentExecutor",
    "AgentRegistry",
    "AgentTemplate",
    "ContextAssembler",
    "ContextBundle",
    "KnowledgeGraph",
    "PerformanceTracker",
    "RelatedConcept",
    "SearchHit",
    "SearchProvider",
    "SpecializationStore",
    "default_agents",
    "extract_code_blocks",
    "postprocess",
    "quality_score",
]
