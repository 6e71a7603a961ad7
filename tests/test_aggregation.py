"""
Tests for the aggregation engine
"""

from datetime import date, timezone
from tracker.models.project import Project, ProjectCategory
from tracker.models.task import TaskStatus, TechResource
from tracker.services.aggregation import (
    progress_percentage,
    summarize_progress,
    blocker_roster,
    group_tech_stack,
    tab_counts,
    completed_in_period,
)


def test_next_step_after_in_progress_end(make_task):
    """The earliest to-do starting after the latest in-progress end is next"""
    tasks = [
        make_task("A", TaskStatus.IN_PROGRESS, end_date_raw="2024-01-10"),
        make_task("B", TaskStatus.TODO, start_date_raw="2024-01-15"),
        make_task("C", TaskStatus.TODO, start_date_raw="2024-01-05"),
    ]
    summary = summarize_progress(tasks)

    assert summary.next_step == "B"
    assert summary.current_step == "A"
    assert summary.blockers == "None"


def test_next_step_review_sentinel_when_nothing_follows(make_task):
    tasks = [
        make_task("A", TaskStatus.IN_PROGRESS, end_date_raw="2024-01-10"),
        make_task("C", TaskStatus.TODO, start_date_raw="2024-01-05"),
    ]
    assert summarize_progress(tasks).next_step == "Review completed tasks or plan next steps."


def test_next_step_default_when_in_progress_has_no_end(make_task):
    tasks = [
        make_task("A", TaskStatus.IN_PROGRESS),
        make_task("B", TaskStatus.TODO, start_date_raw="2024-01-15"),
    ]
    assert summarize_progress(tasks).next_step == "No upcoming tasks planned."


def test_next_step_without_in_progress(make_task):
    tasks = [
        make_task("Late", TaskStatus.TODO, start_date_raw="2024-02-01"),
        make_task("Early", TaskStatus.TODO, start_date_raw="2024-01-01"),
        make_task("Undated", TaskStatus.TODO),
    ]
    assert summarize_progress(tasks).next_step == "Early"


def test_next_step_tie_keeps_first(make_task):
    tasks = [
        make_task("First", TaskStatus.TODO, start_date_raw="2024-01-01T00:00:00Z"),
        make_task("Second", TaskStatus.TODO, start_date_raw="2024-01-01T00:00:00Z"),
    ]
    assert summarize_progress(tasks).next_step == "First"


def test_blockers_and_nothing_in_progress(make_task):
    tasks = [make_task("X", TaskStatus.PENDING), make_task("Y", TaskStatus.PENDING)]
    summary = summarize_progress(tasks)

    assert summary.blockers == "X, Y"
    assert summary.current_step == "No tasks are currently in progress."
    assert summary.next_step == "No upcoming tasks planned."


def test_summary_ignores_cancelled(make_task):
    tasks = [
        make_task("Gone", TaskStatus.CANCELLED),
        make_task("Working", TaskStatus.IN_PROGRESS),
    ]
    assert summarize_progress(tasks).current_step == "Working"


def test_progress_empty_is_zero():
    assert progress_percentage([]) == 0.0


def test_progress_excludes_cancelled(make_task):
    tasks = [
        make_task("a", TaskStatus.COMPLETED),
        make_task("b", TaskStatus.TODO),
        make_task("c", TaskStatus.CANCELLED),
        make_task("d", TaskStatus.CANCELLED),
    ]
    assert progress_percentage(tasks) == 50.0


def test_progress_only_cancelled_is_zero(make_task):
    assert progress_percentage([make_task("c", TaskStatus.CANCELLED)]) == 0.0


def test_progress_bounds(make_task):
    statuses = list(TaskStatus)
    for size in range(1, 8):
        tasks = [make_task(str(i), statuses[i % len(statuses)]) for i in range(size)]
        assert 0 <= progress_percentage(tasks) <= 100


def test_blocker_roster_groups_active_projects(make_task):
    projects = [
        Project(id="p1", name="One", category=ProjectCategory.ACTIVE),
        Project(id="p2", name="Two", category=ProjectCategory.MAINTENANCE),
        Project(id="p3", name="Three", category=ProjectCategory.ACTIVE),
    ]
    tasks = [
        make_task("b1", TaskStatus.PENDING, project_id="p3"),
        make_task("a1", TaskStatus.PENDING, project_id="p1"),
        make_task("m1", TaskStatus.PENDING, project_id="p2"),
        make_task("b2", TaskStatus.PENDING, project_id="p3"),
        make_task("x", TaskStatus.CANCELLED, project_id="p1"),
        make_task("ok", TaskStatus.TODO, project_id="p1"),
    ]
    roster = blocker_roster(projects, tasks)

    assert [(r.project_name, r.blocker_tasks) for r in roster] == [
        ("Three", ["b1", "b2"]),
        ("One", ["a1"]),
    ]


def test_group_tech_stack(make_task):
    flow = TechResource(id="r1", name="Flow", type="Automate flow")
    app = TechResource(id="r2", name="App", type="Canvas app")
    loose = TechResource(id="r3", name="Notes")
    hidden = TechResource(id="r4", name="Hidden", type="Web")
    tasks = [
        make_task("a", tech_resource=flow),
        make_task("b", tech_resource=loose),
        make_task("c", tech_resource=flow),
        make_task("d", tech_resource=app),
        make_task("e", TaskStatus.CANCELLED, tech_resource=hidden),
        make_task("f"),
    ]
    groups = group_tech_stack(tasks)

    assert list(groups) == ["Automate flow", "Canvas app", "Others"]
    assert [r.id for r in groups["Automate flow"]] == ["r1"]
    assert [r.id for r in groups["Others"]] == ["r3"]


def test_tab_counts(make_task):
    tasks = [
        make_task("a", TaskStatus.TODO),
        make_task("b", TaskStatus.TODO),
        make_task("c", TaskStatus.REVIEW),
        make_task("d", TaskStatus.CANCELLED),
        make_task("e", TaskStatus.UNKNOWN),
    ]
    counts = tab_counts(tasks)

    assert counts["All"] == 4
    assert counts["To Do"] == 2
    assert counts["Review"] == 1
    assert counts["Pending"] == 0
    assert "Cancelled" not in counts


def test_completed_in_period(make_task):
    tasks = [
        make_task("late", TaskStatus.COMPLETED, assignee_id="m1", end_date_raw="2024-03-07T23:30:00Z"),
        make_task("early", TaskStatus.COMPLETED, assignee_id="m1", end_date_raw="2024-03-04T09:00:00Z"),
        make_task("outside", TaskStatus.COMPLETED, assignee_id="m1", end_date_raw="2024-03-08T00:00:00Z"),
        make_task("other", TaskStatus.COMPLETED, assignee_id="m2", end_date_raw="2024-03-05T09:00:00Z"),
        make_task("open", TaskStatus.IN_PROGRESS, assignee_id="m1", end_date_raw="2024-03-05T09:00:00Z"),
        make_task("undated", TaskStatus.COMPLETED, assignee_id="m1"),
    ]
    selected = completed_in_period(tasks, "m1", date(2024, 3, 4), date(2024, 3, 7), tz=timezone.utc)

    assert [t.name for t in selected] == ["early", "late"]
