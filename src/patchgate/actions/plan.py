from __future__ import annotations

import re
from datetime import datetime
from typing import Dict, List, Optional

from .models import PlanTask

_PHASE_RE = re.compile(r"^(Phase|Step)\s+\d+:", re.IGNORECASE)
_TASK_RE = re.compile(r"^-\s*\[([ xX])\]\s*(.+)$")

CHECKED = "☑"
UNCHECKED = "☐"


def parse_plan_tasks(text: str) -> List[PlanTask]:
    """
    Extract checklist items from plan text.

    `Phase N:` and `Step N:` lines start a new phase; `- [ ]` and `- [x]`
    lines are tasks of the current phase. Everything else is ignored.
    """
    tasks: List[PlanTask] = []
    phase: Optional[str] = None
    for raw in text.split("\n"):
        line = raw.strip()
        if _PHASE_RE.match(line):
            phase = line
            continue
        m = _TASK_RE.match(line)
        if m:
            tasks.append(
                PlanTask(
                    description=m.group(2).strip(),
                    completed=m.group(1).lower() == "x",
                    phase=phase,
                )
            )
    return tasks


def _task_line(task: PlanTask) -> str:
    return f"- {CHECKED if task.completed else UNCHECKED} {task.description}"


def render_plan_body(content: str, tasks: List[PlanTask]) -> str:
    if not tasks:
        return content.strip()

    phases: Dict[str, List[PlanTask]] = {}
    unphased: List[PlanTask] = []
    for task in tasks:
        if task.phase:
            phases.setdefault(task.phase, []).append(task)
        else:
            unphased.append(task)

    sections: List[str] = []
    for phase, phase_tasks in phases.items():
        sections.append("\n".join([f"## {phase}", ""] + [_task_line(t) for t in phase_tasks]))
    if unphased:
        sections.append("\n".join(_task_line(t) for t in unphased))
    return "\n\n".join(sections)


def render_plan_markdown(
    content: str,
    tasks: List[PlanTask],
    *,
    title: str = "Project Plan",
    created: Optional[datetime] = None,
) -> str:
    created = created or datetime.now()
    header = f"# {title}\n\nCreated: {created.strftime('%Y-%m-%d %H:%M:%S')}"
    return f"{header}\n\n{render_plan_body(content, tasks)}\n"
