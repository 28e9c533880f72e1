"""CLI command implementations for Orchestra.

Command groups:
- agents: Inspect and configure agents
- tasks: List and cancel tasks
- config: Manage configuration

Top-level commands:
- submit: Submit a task and run it
- stats: Orchestration statistics and analytics
"""
