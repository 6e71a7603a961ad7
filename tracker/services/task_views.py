"""
Task visualization builders: list, kanban board and timeline

All builders are pure functions of their inputs. Cancelled tasks never reach
any view.
"""

from datetime import date, timedelta, tzinfo
from enum import Enum
from typing import Iterable, List, Optional
from tracker.config.constants import TIMELINE_LEAD_IN_DAYS, TIMELINE_TRAIL_DAYS
from tracker.models.task import Task, TaskStatus
from tracker.models.views import (
    TaskFilter,
    KanbanBoard,
    KanbanColumn,
    TimelineBar,
    TimelineGrid,
)
from tracker.services.aggregation import BOARD_STATUSES, visible_tasks
from tracker.utils.date_utils import parse_iso, to_local_date, get_today


def matches_filter(task: Task, task_filter: Optional[TaskFilter]) -> bool:
    """Check a task against every criterion set on the filter"""
    if task_filter is None:
        return True

    text = task_filter.text.lower()
    if text and text not in task.name.lower() and text not in (task.assignee or "").lower():
        return False

    if task_filter.assignee_id and task.assignee_id != task_filter.assignee_id:
        return False

    status = task_filter.status
    if status:
        if isinstance(status, (list, tuple, set, frozenset)):
            if task.status not in status:
                return False
        elif task.status != status:
            return False

    if task_filter.priority and task.priority != task_filter.priority:
        return False

    return True


def filter_tasks(tasks: Iterable[Task], task_filter: Optional[TaskFilter] = None) -> List[Task]:
    return [t for t in visible_tasks(tasks) if matches_filter(t, task_filter)]


def _chronological_key(task: Task):
    ended = parse_iso(task.end_date_raw)
    if ended is None:
        return (1, 0.0, task.name)
    return (0, ended.timestamp(), task.name)


def sort_tasks(tasks: Iterable[Task]) -> List[Task]:
    """
    Order by end date ascending, undated tasks last, ties by name
    """
    return sorted(tasks, key=_chronological_key)


def build_list(tasks: Iterable[Task], task_filter: Optional[TaskFilter] = None) -> List[Task]:
    """Filtered, chronologically sorted flat list"""
    return sort_tasks(filter_tasks(tasks, task_filter))


def status_tab_filter(tab: str) -> TaskFilter:
    """
    Filter for a task list tab

    "All" shows everything; every other tab is one board status.

    Raises:
        ValueError: If tab is neither "All" nor a board status
    """
    if tab == "All":
        return TaskFilter()
    status = TaskStatus(tab)
    if status not in BOARD_STATUSES:
        raise ValueError(f"'{tab}' is not a task list tab")
    return TaskFilter(status=status)


def build_kanban(tasks: Iterable[Task], task_filter: Optional[TaskFilter] = None) -> KanbanBoard:
    """
    Partition filtered tasks into the fixed board columns

    Column order follows the input order; callers sort upstream if needed.
    Unknown-status tasks have no column.
    """
    filtered = filter_tasks(tasks, task_filter)
    columns = [
        KanbanColumn(status=status, tasks=[t for t in filtered if t.status == status])
        for status in BOARD_STATUSES
    ]
    return KanbanBoard(columns=columns)


def kanban_drop_status(task: Task, destination: TaskStatus) -> Optional[TaskStatus]:
    """
    Status to write for a task dropped on a board column

    Returns None when the drop is a no-op (same column).
    """
    destination = TaskStatus(destination)
    if destination not in BOARD_STATUSES:
        raise ValueError(f"'{destination.value}' is not a board column")
    if task.status == destination:
        return None
    return destination


def build_timeline(
    tasks: Iterable[Task],
    task_filter: Optional[TaskFilter] = None,
    today: Optional[date] = None,
    tz: Optional[tzinfo] = None,
) -> TimelineGrid:
    """
    Day grid with one bar per task that has both a start and an end date

    The grid spans from the earliest start minus the lead-in buffer to the
    latest end plus the trail buffer. Dates are reduced to local calendar days
    (tz, system local when None) before any subtraction.

    Args:
        tasks: Tasks to place
        task_filter: Optional filter applied first
        today: Day to highlight (defaults to the current day)
        tz: Timezone for local-midnight normalization

    Returns:
        TimelineGrid (empty when no task is eligible)
    """
    spans = []
    for task in build_list(tasks, task_filter):
        started = parse_iso(task.start_date_raw)
        ended = parse_iso(task.end_date_raw)
        if started is None or ended is None:
            continue
        spans.append((task, to_local_date(started, tz), to_local_date(ended, tz)))

    if not spans:
        return TimelineGrid()

    min_date = min(start for _, start, _ in spans) - timedelta(days=TIMELINE_LEAD_IN_DAYS)
    max_date = max(end for _, _, end in spans) + timedelta(days=TIMELINE_TRAIL_DAYS)
    days = [min_date + timedelta(days=i) for i in range((max_date - min_date).days + 1)]

    if today is None:
        today = get_today(tz)
    today_index = (today - min_date).days if min_date <= today <= max_date else None

    bars = [
        TimelineBar(
            task=task,
            start=start,
            end=end,
            offset=(start - min_date).days,
            width=max((end - start).days + 1, 1),
        )
        for task, start, end in spans
    ]

    return TimelineGrid(
        min_date=min_date,
        max_date=max_date,
        days=days,
        today_index=today_index,
        bars=bars,
    )


class DragPhase(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    DRAGGING_OVER = "dragging_over"
    DROPPED = "dropped"


class ListReorder:
    """
    Drag-and-drop reordering of the flat task list

    Idle -> Dragging(source) -> DraggingOver(source, target) -> Dropped.
    The order is display state only; it is never written back and is replaced
    by reset() whenever fresh data arrives.
    """

    def __init__(self, tasks: Iterable[Task] = ()):
        self.order: List[Task] = list(tasks)
        self.phase = DragPhase.IDLE
        self.source_index: Optional[int] = None
        self.target_index: Optional[int] = None

    def reset(self, tasks: Iterable[Task]) -> None:
        self.order = list(tasks)
        self._clear()

    def start(self, index: int) -> None:
        if not 0 <= index < len(self.order):
            raise IndexError(f"Drag source {index} out of range")
        self.phase = DragPhase.DRAGGING
        self.source_index = index
        self.target_index = None

    def enter(self, index: int) -> None:
        if self.phase not in (DragPhase.DRAGGING, DragPhase.DRAGGING_OVER):
            return
        if not 0 <= index < len(self.order):
            return
        self.phase = DragPhase.DRAGGING_OVER
        self.target_index = index

    def drop(self) -> List[Task]:
        """Move the dragged task to the target position and return the new order"""
        source, target = self.source_index, self.target_index
        if self.phase == DragPhase.DRAGGING_OVER and source is not None and target is not None and source != target:
            order = list(self.order)
            moved = order.pop(source)
            order.insert(target, moved)
            self.order = order
        self._clear()
        self.phase = DragPhase.DROPPED
        return list(self.order)

    def end(self) -> None:
        self._clear()

    def _clear(self) -> None:
        self.phase = DragPhase.IDLE
        self.source_index = None
        self.target_index = None
