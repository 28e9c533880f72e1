"""Unit tests for orchestra.agents.prompts module."""

from orchestra.agents.prompts import (
    PLAN_INSTRUCTION,
    format_task_prompt,
    review_messages,
    task_messages,
)
from orchestra.agents.registry import BUILTIN_TEMPLATES
from orchestra.core.models import Task, TaskPriority, TaskResult, TaskType
from orchestra.providers.base import MessageRole


def task() -> Task:
    return Task(
        title="Add login",
        description="POST /login",
        type=TaskType.CODE,
        priority=TaskPriority.HIGH,
        dependencies=["task_a", "task_b"],
    )


class TestFormatTaskPrompt:
    """Test task prompt construction."""

    def test_role_section(self) -> None:
        prompt = format_task_prompt(BUILTIN_TEMPLATES["devops"].build(), task())

        assert prompt.startswith("**DevOps Task:**\n- Type: code\n- Priority: high\n")
        assert "- Dependencies: task_a, task_b" in prompt
        assert "**Requirements:**\n1. Automate build, test and deployment" in prompt
        assert "**Expected Output:**\n- Pipeline configuration" in prompt

    def test_generic_section_for_unknown_role(self) -> None:
        agent = BUILTIN_TEMPLATES["coder"].build()
        agent.role = "Technical Writing"

        prompt = format_task_prompt(agent, task())

        assert prompt.startswith("**Task Details:**")
        assert "**Agent Instructions:**\n1. Analyze the task requirements carefully" in prompt

    def test_context_comes_first(self) -> None:
        prompt = format_task_prompt(BUILTIN_TEMPLATES["coder"].build(), task(), "Project: Shop")
        assert prompt.startswith("Project: Shop\n\n**Development Task:**")

    def test_plan_instruction_lands_in_description(self) -> None:
        planning = task().model_copy(update={"description": "POST /login" + PLAN_INSTRUCTION})
        prompt = format_task_prompt(BUILTIN_TEMPLATES["planner"].build(), planning)
        assert "assign subtasks to team members" in prompt


class TestMessages:
    """Test chat message lists."""

    def test_task_messages(self) -> None:
        coder = BUILTIN_TEMPLATES["coder"].build()
        system, user = task_messages(coder, task())

        assert system.role == MessageRole.SYSTEM
        assert system.content == coder.config.system_prompt
        assert user.role == MessageRole.USER

    def test_review_messages_name_the_reviewer(self) -> None:
        designer = BUILTIN_TEMPLATES["designer"].build()
        system, user = review_messages(designer, task(), TaskResult(success=True, output="v1"))

        assert system.content.startswith("You are Designer, a UI/UX Design.")
        assert user.content.startswith("Task: Add login\n\nCurrent Work:\nv1")
