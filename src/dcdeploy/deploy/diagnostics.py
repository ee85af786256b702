"""Failure diagnostics for deployments."""

from __future__ import annotations

from collections.abc import Iterable

from dcdeploy.models.scheduler import Allocation


def collect_event_errors(allocations: Iterable[Allocation]) -> list[str]:
    """Render every task event error of the given allocations.

    Each non-empty driver, download, validation, setup, or vault error
    becomes one line of the form "<alloc id prefix> <task>: <error>".
    """
    lines: list[str] = []
    for allocation in allocations:
        for task_name in sorted(allocation.task_states):
            for event in allocation.task_states[task_name].events:
                for message in event.errors():
                    lines.append(f"{allocation.id[:8]} {task_name}: {message}")
    return lines
