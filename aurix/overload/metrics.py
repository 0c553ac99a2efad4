"""
Workload metrics derived from cached task records.
"""

import re
from datetime import date, datetime
from typing import List, Optional, Union

from aurix.overload.history import utc, utcnow
from aurix.overload.schemas import OverloadMetrics, Task, TaskData, TaskMetadata

HIGH_EFFORT = re.compile(r"effort:high|complex", re.IGNORECASE)
LOW_EFFORT = re.compile(r"effort:low|simple", re.IGNORECASE)
URGENT = re.compile(r"urgent|asap", re.IGNORECASE)

FRAGMENT_GAP_MINUTES = (15, 60)
FRAGMENT_STEP = 0.2
RECURRING_STEP = 0.1


def _day_of(value: Union[date, datetime, None]) -> date:
    if value is None:
        return utcnow().date()
    if isinstance(value, datetime):
        return utc(value).date()
    return value


def tasks_for_day(tasks: List[Task], day: date) -> List[Task]:
    """Tasks scheduled on ``day``, falling back to the due date when unscheduled."""
    selected = []
    for task in tasks:
        if task.scheduled_start is not None:
            if utc(task.scheduled_start).date() == day:
                selected.append(task)
        elif task.due_date is not None and utc(task.due_date).date() == day:
            selected.append(task)
    return selected


def meeting_hours(tasks: List[Task]) -> float:
    total = 0.0
    for task in tasks:
        text = f"{task.name} {task.description or ''}".lower()
        if "meeting" not in text:
            continue
        if task.duration:
            total += task.duration / 60
        elif task.scheduled_start and task.scheduled_end:
            total += (utc(task.scheduled_end) - utc(task.scheduled_start)).total_seconds() / 3600
    return round(total, 1)


def context_switches(tasks: List[Task]) -> int:
    """Project changes across the tasks in list order."""
    if len(tasks) <= 1:
        return 0

    def project_of(task: Task) -> str:
        return (task.project.id if task.project else None) or "none"

    changes = 0
    last = project_of(tasks[0])
    for task in tasks[1:]:
        current = project_of(task)
        if current != last:
            changes += 1
            last = current
    return changes


def task_complexity(task: Task) -> float:
    description = task.description or ""
    if HIGH_EFFORT.search(description):
        score = 0.8
    elif LOW_EFFORT.search(description):
        score = 0.2
    else:
        score = 0.5

    if URGENT.search(description):
        score += 0.2
    if task.duration and task.duration > 120:
        score += 0.1
    return min(score, 1.0)


def average_complexity(tasks: List[Task]) -> float:
    if not tasks:
        return 0.0
    return sum(task_complexity(task) for task in tasks) / len(tasks)


def time_fragmentation(tasks: List[Task]) -> float:
    """0.2 per 15-60 minute gap between consecutive scheduled tasks, capped at 1.0."""
    scheduled = sorted(
        (task for task in tasks if task.scheduled_start and task.scheduled_end),
        key=lambda task: utc(task.scheduled_start),
    )
    low, high = FRAGMENT_GAP_MINUTES
    gaps = 0
    for previous, current in zip(scheduled, scheduled[1:]):
        gap = (utc(current.scheduled_start) - utc(previous.scheduled_end)).total_seconds() / 60
        if low <= gap <= high:
            gaps += 1
    return min(gaps * FRAGMENT_STEP, 1.0)


def extract_metrics(task_data: TaskData, day: Union[date, datetime, None] = None) -> OverloadMetrics:
    todays = tasks_for_day(task_data.tasks, _day_of(day))
    return OverloadMetrics(
        task_count=len(todays),
        meeting_hours=meeting_hours(todays),
        context_switches=context_switches(todays),
        recurring_intensity=min(len(task_data.recurring_tasks) * RECURRING_STEP, 1.0),
        task_complexity=average_complexity(todays),
        time_fragmentation=time_fragmentation(todays),
    )


def extract_task_metadata(description: Optional[str]) -> TaskMetadata:
    """Parse ``#tags``, ``effort:<level>``, ``<n>h`` estimates and urgency words."""
    description = description or ""
    effort = re.search(r"effort:(low|medium|high)", description, re.IGNORECASE)
    hours = re.search(r"(\d+)h", description)
    return TaskMetadata(
        effort=effort.group(1).lower() if effort else None,
        tags=[tag[1:] for tag in re.findall(r"#\w+", description)],
        estimated_hours=int(hours.group(1)) if hours else None,
        is_urgent=bool(re.search(r"urgent|asap|critical", description, re.IGNORECASE)),
    )
