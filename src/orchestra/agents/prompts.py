"""Prompt construction for agent calls.

A task prompt is the rendered context followed by a task section. Agents
whose role has a dedicated section get role-specific requirements and an
expected-output list; every other agent gets the generic section.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from orchestra.agents.registry import ROLE_CODE, ROLE_DESIGN, ROLE_DEVOPS, ROLE_PLANNING, ROLE_QA
from orchestra.core.models import Agent, Task, TaskResult
from orchestra.providers.base import Message

PLAN_INSTRUCTION = (
    "\n\nCreate a detailed plan for this task and assign subtasks to team members."
)
PROPOSAL_INSTRUCTION = "\n\nProvide your proposed solution for this task."
SYNTHESIS_TEMPERATURE = 0.3


@dataclass(frozen=True, slots=True)
class RoleSection:
    heading: str
    requirements: tuple[str, ...]
    expected_output: tuple[str, ...]


ROLE_SECTIONS: dict[str, RoleSection] = {
    ROLE_PLANNING: RoleSection(
        heading="Planning Task",
        requirements=(
            "Analyze the requirements and identify the key components",
            "Design the system architecture and technical approach",
            "Lay out an implementation roadmap with milestones",
            "Identify risks and how to mitigate them",
            "Recommend technologies",
        ),
        expected_output=(
            "Architecture overview",
            "Technology stack recommendations",
            "Implementation phases and timeline",
            "Risk assessment and mitigation",
            "Resource requirements and dependencies",
        ),
    ),
    ROLE_CODE: RoleSection(
        heading="Development Task",
        requirements=(
            "Write clean, maintainable and efficient code",
            "Follow the conventions of the language and codebase",
            "Handle errors and validate inputs",
            "Document non-obvious behaviour",
            "Consider performance and security implications",
        ),
        expected_output=(
            "Complete implementation including every file it needs",
            "Imports and dependencies",
            "Error handling and validation",
            "Test cases where applicable",
            "Usage examples",
        ),
    ),
    ROLE_DESIGN: RoleSection(
        heading="Design Task",
        requirements=(
            "Design for the user and for accessibility",
            "Stay consistent with the design system",
            "Work mobile-first and responsive",
            "Specify interaction patterns",
            "Meet usability and accessibility standards",
        ),
        expected_output=(
            "Design rationale and decisions",
            "Wireframes or mockup descriptions",
            "Component specifications",
            "Interaction patterns",
            "Accessibility considerations",
        ),
    ),
    ROLE_QA: RoleSection(
        heading="Debugging Task",
        requirements=(
            "Identify and analyze issues systematically",
            "Find the root cause",
            "Propose specific fixes",
            "Describe how to test and validate the fixes",
            "Record findings and recommendations",
        ),
        expected_output=(
            "Issues found, with severity",
            "Root cause analysis with evidence",
            "Specific code fixes",
            "Testing and validation steps",
            "Prevention measures",
        ),
    ),
    ROLE_DEVOPS: RoleSection(
        heading="DevOps Task",
        requirements=(
            "Automate build, test and deployment",
            "Design infrastructure for scale and reliability",
            "Set up monitoring and alerting",
            "Apply security best practices",
            "Plan rollback and disaster recovery",
        ),
        expected_output=(
            "Pipeline configuration",
            "Infrastructure components",
            "Monitoring setup",
            "Security measures",
            "Operational runbook",
        ),
    ),
}

GENERIC_INSTRUCTIONS = (
    "Analyze the task requirements carefully",
    "Consider the provided context and relevant information",
    "Provide a comprehensive, actionable solution",
    "Identify potential risks and mitigation strategies",
    "Suggest next steps or follow-up actions",
)


def _numbered(items: Sequence[str]) -> str:
    return "\n".join(f"{i}. {item}" for i, item in enumerate(items, start=1))


def _task_details(task: Task) -> str:
    return (
        f"- Type: {task.type.value}\n"
        f"- Priority: {task.priority.value}\n"
        f"- Title: {task.title}\n"
        f"- Description: {task.description}\n"
        f"- Dependencies: {', '.join(task.dependencies)}"
    )


def format_task_prompt(agent: Agent, task: Task, context: str = "") -> str:
    """User prompt for ``agent`` working on ``task``."""
    section = ROLE_SECTIONS.get(agent.role)
    if section is None:
        body = (
            f"**Task Details:**\n{_task_details(task)}\n\n"
            f"**Agent Instructions:**\n{_numbered(GENERIC_INSTRUCTIONS)}\n\n"
            "Please provide your response in a clear, structured format that can be "
            "easily understood and implemented."
        )
    else:
        expected = "\n".join(f"- {item}" for item in section.expected_output)
        body = (
            f"**{section.heading}:**\n{_task_details(task)}\n\n"
            f"**Requirements:**\n{_numbered(section.requirements)}\n\n"
            f"**Expected Output:**\n{expected}"
        )
    return f"{context}\n\n{body}" if context else body


def task_messages(agent: Agent, task: Task, context: str = "") -> list[Message]:
    return [
        Message.system(agent.config.system_prompt),
        Message.user(format_task_prompt(agent, task, context)),
    ]


def review_messages(agent: Agent, task: Task, current: TaskResult) -> list[Message]:
    """Messages asking ``agent`` to critique the current output (sequential strategy)."""
    return [
        Message.system(
            f"You are {agent.name}, a {agent.role}. Please review the following work "
            "and provide your feedback, suggestions, or improvements."
        ),
        Message.user(
            f"Task: {task.title}\n\nCurrent Work:\n{current.output}\n\n"
            "Please provide your feedback and suggestions for improvement."
        ),
    ]


def synthesis_messages(agent: Agent, task: Task, results: Sequence[TaskResult]) -> list[Message]:
    """Messages asking ``agent`` to merge several results into one."""
    blocks = "\n\n".join(
        f"Result {i}:\n{result.output}" for i, result in enumerate(results, start=1)
    )
    return [
        Message.system(
            f"You are {agent.name}, a {agent.role}. Your task is to synthesize multiple "
            "results into a comprehensive, unified solution."
        ),
        Message.user(
            f"Task: {task.title}\n\n{blocks}\n\n"
            "Please synthesize these results into a single, comprehensive solution."
        ),
    ]
