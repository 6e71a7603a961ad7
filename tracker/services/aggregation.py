"""
Aggregation engine

Pure, deterministic computations over a task list. Cancelled tasks are removed
before any computation.
"""

from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Tuple
from tracker.config.constants import (
    NOTHING_IN_PROGRESS,
    NO_UPCOMING_TASKS,
    REVIEW_OR_PLAN_NEXT,
    NO_BLOCKERS,
    UNKNOWN_PROJECT,
    TECH_RESOURCE_DEFAULT_GROUP,
)
from tracker.models.task import Task, TaskStatus, TechResource
from tracker.models.project import Project, ProjectCategory
from tracker.models.views import ProgressSummary, ProjectBlockers
from tracker.utils.date_utils import parse_iso, to_local_date

# Statuses that get their own tab / board column, in display order
BOARD_STATUSES = (
    TaskStatus.TODO,
    TaskStatus.IN_PROGRESS,
    TaskStatus.REVIEW,
    TaskStatus.COMPLETED,
    TaskStatus.PENDING,
)


def visible_tasks(tasks: Iterable[Task]) -> List[Task]:
    """Tasks that are not cancelled, in input order"""
    return [t for t in tasks if t.status != TaskStatus.CANCELLED]


def progress_percentage(tasks: Iterable[Task]) -> float:
    """
    Share of completed tasks, 0-100

    Returns 0.0 when there is nothing to count.
    """
    counted = visible_tasks(tasks)
    if not counted:
        return 0.0
    completed = sum(1 for t in counted if t.status == TaskStatus.COMPLETED)
    return completed / len(counted) * 100


def _dated(tasks: Iterable[Task], field: str) -> List[Tuple[datetime, Task]]:
    result = []
    for task in tasks:
        dt = parse_iso(getattr(task, field))
        if dt is not None:
            result.append((dt, task))
    return result


def _earliest_start(candidates: List[Tuple[datetime, Task]]) -> Optional[Task]:
    if not candidates:
        return None
    # min() keeps the first of equal starts
    return min(candidates, key=lambda pair: pair[0])[1]


def summarize_progress(tasks: Iterable[Task]) -> ProgressSummary:
    """
    Build the current step / next step / blockers narrative for a project

    Next step:
    1. With in-progress tasks that have end dates: the to-do task starting
       earliest strictly after the latest of those end dates, or the
       "review or plan" sentinel when there is none.
    2. With in-progress tasks but no end dates among them: the default sentinel.
    3. With no in-progress tasks: the to-do task with the earliest start date.
    4. Otherwise the default sentinel.
    """
    counted = visible_tasks(tasks)
    in_progress = [t for t in counted if t.status == TaskStatus.IN_PROGRESS]
    to_do = [t for t in counted if t.status == TaskStatus.TODO]
    pending = [t for t in counted if t.status == TaskStatus.PENDING]

    current_step = ", ".join(t.name for t in in_progress) if in_progress else NOTHING_IN_PROGRESS

    next_step = NO_UPCOMING_TASKS

    if in_progress:
        ends = _dated(in_progress, "end_date_raw")
        if ends:
            latest_end = max(dt for dt, _ in ends)
            upcoming = [(dt, t) for dt, t in _dated(to_do, "start_date_raw") if dt > latest_end]
            candidate = _earliest_start(upcoming)
            next_step = candidate.name if candidate is not None else REVIEW_OR_PLAN_NEXT
    elif to_do:
        candidate = _earliest_start(_dated(to_do, "start_date_raw"))
        if candidate is not None:
            next_step = candidate.name

    blockers = ", ".join(t.name for t in pending) if pending else NO_BLOCKERS

    return ProgressSummary(current_step=current_step, next_step=next_step, blockers=blockers)


def blocker_roster(
    projects: Iterable[Project],
    tasks: Iterable[Task],
    category: ProjectCategory = ProjectCategory.ACTIVE,
) -> List[ProjectBlockers]:
    """
    Group pending tasks of projects in category by project

    Groups appear in order of their first pending task.
    """
    projects = list(projects)
    names = {p.id: p.name for p in projects}
    in_category = {p.id for p in projects if p.category == category}

    roster: Dict[str, ProjectBlockers] = {}
    for task in visible_tasks(tasks):
        if task.status != TaskStatus.PENDING or not task.project_id:
            continue
        if task.project_id not in in_category:
            continue

        if task.project_id not in roster:
            roster[task.project_id] = ProjectBlockers(
                project_id=task.project_id,
                project_name=names.get(task.project_id, UNKNOWN_PROJECT),
            )
        roster[task.project_id].blocker_tasks.append(task.name)

    return list(roster.values())


def group_tech_stack(tasks: Iterable[Task]) -> Dict[str, List[TechResource]]:
    """
    Unique tech resources referenced by tasks, bucketed by type

    Resources are de-duplicated by id keeping first-encounter order; buckets
    are returned sorted by name.
    """
    unique: Dict[str, TechResource] = {}
    for task in visible_tasks(tasks):
        resource = task.tech_resource
        if resource is not None and resource.id not in unique:
            unique[resource.id] = resource

    groups: Dict[str, List[TechResource]] = {}
    for resource in unique.values():
        groups.setdefault(resource.type or TECH_RESOURCE_DEFAULT_GROUP, []).append(resource)

    return {name: groups[name] for name in sorted(groups)}


def tab_counts(tasks: Iterable[Task]) -> Dict[str, int]:
    """Counts for the task list tabs: All plus one per board status"""
    counted = visible_tasks(tasks)
    counts = {"All": len(counted)}
    for status in BOARD_STATUSES:
        counts[status.value] = sum(1 for t in counted if t.status == status)
    return counts


def completed_in_period(
    tasks: Iterable[Task],
    assignee_id: str,
    start: date,
    end: date,
    tz=None,
) -> List[Task]:
    """
    Completed tasks of one assignee whose end date falls within [start, end]

    Days are compared in local time (tz, system local when None). The result is
    sorted by end date.
    """
    selected = []
    for task in tasks:
        if task.assignee_id != assignee_id or task.status != TaskStatus.COMPLETED:
            continue
        ended = parse_iso(task.end_date_raw)
        if ended is None:
            continue
        if start <= to_local_date(ended, tz) <= end:
            selected.append((ended, task))

    selected.sort(key=lambda pair: pair[0])
    return [task for _, task in selected]
