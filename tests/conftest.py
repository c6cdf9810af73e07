"""
Shared pytest fixtures for KPI engine tests
"""

import pytest

from kpi_engine.utils.time_windows import parse_time_window
from tests.fixtures.sample_data import (
    NOW,
    days_ago,
    make_comment,
    make_document,
    make_project,
    make_task,
    make_time_logs,
    make_user,
)


@pytest.fixture
def now():
    """Fixed reference instant (2025-06-15 12:00 UTC)"""
    return NOW


@pytest.fixture
def window_30d():
    """30-day window ending at NOW (5 weeks)"""
    return parse_time_window("30days", reference_date=NOW)


@pytest.fixture
def window_90d():
    """90-day window ending at NOW (13 weeks)"""
    return parse_time_window("90days", reference_date=NOW)


@pytest.fixture
def member_user():
    return make_user("u-1", role="member")


@pytest.fixture
def manager_user():
    return make_user("u-1", role="Manager", name="Morgan Manager")


@pytest.fixture
def on_time_high_priority_tasks():
    """10 high-priority tasks created 14 days ago and completed 4 days later, before the due date"""
    return [
        make_task(
            f"t-{i}",
            created_at=days_ago(14),
            due_date=days_ago(5),
            status="completed",
            priority="high",
            completed_at=days_ago(10),
        )
        for i in range(10)
    ]


@pytest.fixture
def completed_projects():
    """Two completed projects; only p-1 gets time logged against it"""
    return [
        make_project("p-1", status="completed", allocated_hours=60),
        make_project("p-2", status="completed", allocated_hours=40),
    ]


@pytest.fixture
def daily_time_logs():
    """25 two-hour logs on p-1 in the last 30 days (five per week)"""
    return make_time_logs(25, days_back=1, hours=2, project_id="p-1")


@pytest.fixture
def sample_comments():
    return [
        make_comment("c-1", days_ago(1), content="Should we split this task?", project_id="p-1"),
        make_comment("c-2", days_ago(2), content="I suggest caching the report", project_id="p-2"),
        make_comment("c-3", days_ago(3), content="Looks good to me", task_id="t-9"),
    ]


@pytest.fixture
def rated_documents():
    return [
        make_document("d-1", days_ago(2), status="approved", review_score=4),
        make_document("d-2", days_ago(3), status="needs-changes", review_note="Needs work. Rating: 3/5"),
    ]
