"""Sub-score calculations for contributor KPIs.

Each scorer is a pure function over one user's activity records and a
TimeWindow. Scorers apply the window filter themselves, so any of them can be
called in isolation. All scores are on a 0-100 scale except efficiency, whose
per-project values are capped at 150 before averaging.
"""

import math
import re
from datetime import datetime
from typing import Dict, List, Optional, Sequence

import pandas as pd

from kpi_engine.utils.time_windows import TimeWindow, filter_by_time_window
from kpi_engine.utils.timestamps import (
    comment_timestamp,
    document_timestamp,
    parse_timestamp,
    task_timestamp,
    time_log_timestamp,
)

COMPLETED_TASK_STATUSES = ("completed", "done")
COMPLETED_PROJECT_STATUS = "completed"
APPROVED_DOCUMENT_STATUS = "approved"

PRIORITY_WEIGHTS = {"critical": 1.2, "high": 1.1, "medium": 1.0, "low": 0.9}
DEFAULT_PRIORITY_WEIGHT = 0.9

EXPECTED_LOGS_PER_WEEK = 5
EFFICIENCY_BASE_SCORE = 85.0
EFFICIENCY_CAP = 150.0
PROACTIVE_MARKERS = ("?", "suggest", "recommend")

RATING_PATTERN = re.compile(r"rating:\s*(\d+(?:\.\d+)?)\s*/\s*5", re.IGNORECASE)

SECONDS_PER_DAY = 24 * 60 * 60


def _is_completed_task(task: Dict) -> bool:
    return task.get("status") in COMPLETED_TASK_STATUSES


def _is_completed_project(project: Dict) -> bool:
    return project.get("status") == COMPLETED_PROJECT_STATUS


def _clamp_rating(value: float) -> float:
    return min(5.0, max(0.0, value))


# Delivery


def calculate_milestone_rate(projects: Sequence[Dict]) -> float:
    """Percentage of the user's projects that are completed (not time-filtered)."""
    if not projects:
        return 0.0
    completed = sum(1 for project in projects if _is_completed_project(project))
    return completed / len(projects) * 100


def _is_on_time(task: Dict, now: datetime) -> bool:
    due_date = parse_timestamp(task.get("due_date"))
    if due_date is None:
        return False

    if _is_completed_task(task):
        finished_at = parse_timestamp(task.get("completed_at"))
        if finished_at is None:
            return False
    else:
        finished_at = now

    return finished_at <= due_date


def calculate_delivery(tasks: Sequence[Dict], projects: Sequence[Dict], window: TimeWindow) -> float:
    """Calculate the delivery score from on-time completion and project milestones.

    Args:
        tasks: The user's tasks (filtered by window here)
        projects: All of the user's projects
        window: Time window to score

    Returns:
        Score between 0-100, 0 when no tasks fall in the window
    """
    filtered_tasks = filter_by_time_window(tasks, window, task_timestamp)
    if not filtered_tasks:
        return 0.0

    on_time = sum(1 for task in filtered_tasks if _is_on_time(task, window.end_date))
    on_time_percentage = on_time / len(filtered_tasks) * 100

    priority_weight = sum(
        PRIORITY_WEIGHTS.get(task.get("priority"), DEFAULT_PRIORITY_WEIGHT) for task in filtered_tasks
    ) / len(filtered_tasks)

    milestone_rate = calculate_milestone_rate(projects)

    return min(100.0, (on_time_percentage * 0.6 + milestone_rate * 0.4) * priority_weight)


# Reliability


def calculate_log_consistency(time_logs: Sequence[Dict], window: TimeWindow) -> float:
    """Score how regularly time is logged against a baseline of five logs per week.

    Args:
        time_logs: The user's time logs (filtered by window here)
        window: Time window to score

    Returns:
        Score between 0-100
    """
    filtered_logs = filter_by_time_window(time_logs, window, time_log_timestamp)
    expected_logs = window.weeks * EXPECTED_LOGS_PER_WEEK

    if not filtered_logs or expected_logs <= 0:
        return 0.0

    return min(100.0, len(filtered_logs) / expected_logs * 100)


def _average_days_to_complete(tasks: Sequence[Dict]) -> float:
    durations: List[float] = []
    for task in tasks:
        if not _is_completed_task(task):
            continue
        created = parse_timestamp(task.get("created_at"))
        completed = parse_timestamp(task.get("completed_at"))
        if created is None or completed is None:
            continue
        durations.append((completed - created).total_seconds() / SECONDS_PER_DAY)

    if not durations:
        return 0.0
    return sum(durations) / len(durations)


def calculate_reliability(tasks: Sequence[Dict], time_logs: Sequence[Dict], window: TimeWindow) -> float:
    """Calculate the reliability score.

    Starts at 100 and subtracts an overdue penalty (up to 30), a slow-completion
    penalty and a logging-consistency penalty.
    """
    filtered_tasks = filter_by_time_window(tasks, window, task_timestamp)
    if not filtered_tasks:
        return 0.0

    now = window.end_date
    overdue = 0
    for task in filtered_tasks:
        if _is_completed_task(task):
            continue
        due_date = parse_timestamp(task.get("due_date"))
        if due_date is not None and now > due_date:
            overdue += 1

    overdue_penalty = overdue / len(filtered_tasks) * 30

    # Lower is better
    freshness_score = max(0.0, 100 - _average_days_to_complete(filtered_tasks) * 2)

    log_consistency = calculate_log_consistency(time_logs, window)

    return max(0.0, 100 - overdue_penalty - (100 - freshness_score) * 0.3 - (100 - log_consistency) * 0.2)


# Collaboration


def _comment_association(comment: Dict) -> Optional[str]:
    return comment.get("project_id") or comment.get("task_id")


def calculate_collaboration(comments: Sequence[Dict], documents: Sequence[Dict], window: TimeWindow) -> float:
    """Calculate the collaboration score from comments, shared documents and project diversity."""
    filtered_comments = filter_by_time_window(comments, window, comment_timestamp)
    filtered_documents = filter_by_time_window(documents, window, document_timestamp)

    # 20 comments/week = 100
    weeks = window.weeks
    comments_per_week = len(filtered_comments) / weeks if weeks > 0 else 0.0
    comments_score = min(100.0, comments_per_week * 5)

    shared = len(filtered_documents)
    approved = sum(1 for doc in filtered_documents if doc.get("status") == APPROVED_DOCUMENT_STATUS)
    document_score = min(100.0, shared * 2 + approved * 3)

    associations = {_comment_association(c) for c in filtered_comments}
    associations.discard(None)
    diversity_score = min(100.0, len(associations) * 15)

    return comments_score * 0.4 + document_score * 0.4 + diversity_score * 0.2


# Quality


def parse_rating_from_review_note(note: Optional[str]) -> Optional[float]:
    """Extract a ``Rating: X/5`` value from a free-text review note.

    Args:
        note: Review note text

    Returns:
        Rating clamped to 0-5, or None if the note carries no rating

    Examples:
        >>> parse_rating_from_review_note("Great work. Rating: 4.5/5")
        4.5
        >>> parse_rating_from_review_note("rating: 6 / 5")
        5.0
    """
    if not isinstance(note, str):
        return None

    match = RATING_PATTERN.search(note.strip())
    if not match:
        return None

    return _clamp_rating(float(match.group(1)))


def resolve_document_rating(document: Dict) -> Optional[float]:
    """Return a document's reviewer rating, preferring the numeric review score."""
    score = document.get("review_score")
    if isinstance(score, (int, float)) and not isinstance(score, bool) and math.isfinite(score):
        return _clamp_rating(float(score))
    return parse_rating_from_review_note(document.get("review_note"))


def _resolved_ratings(documents: Sequence[Dict], window: TimeWindow) -> List[float]:
    filtered_documents = filter_by_time_window(documents, window, document_timestamp)
    ratings = [resolve_document_rating(doc) for doc in filtered_documents]
    return [rating for rating in ratings if rating is not None]


def has_document_ratings(documents: Sequence[Dict], window: TimeWindow) -> bool:
    """Check whether any document in the window resolved a rating."""
    return bool(_resolved_ratings(documents, window))


def calculate_quality(documents: Sequence[Dict], window: TimeWindow) -> float:
    """Average reviewer rating of documents in the window, rescaled to 0-100."""
    ratings = _resolved_ratings(documents, window)
    if not ratings:
        return 0.0

    average_rating = sum(ratings) / len(ratings)
    return min(100.0, max(0.0, average_rating / 5 * 100))


# Initiative


def _is_proactive(comment: Dict) -> bool:
    content = comment.get("content")
    if not isinstance(content, str):
        return False
    return any(marker in content for marker in PROACTIVE_MARKERS)


def calculate_initiative(
    user_id: str, tasks: Sequence[Dict], comments: Sequence[Dict], time_logs: Sequence[Dict], window: TimeWindow
) -> float:
    """Calculate the initiative score.

    Args:
        user_id: Id of the user being scored
        tasks: The user's tasks
        comments: The user's comments
        time_logs: The user's time logs
        window: Time window to score

    Returns:
        Score between 0-100
    """
    filtered_tasks = filter_by_time_window(tasks, window, task_timestamp)
    filtered_comments = filter_by_time_window(comments, window, comment_timestamp)

    log_consistency = calculate_log_consistency(time_logs, window)

    self_started = sum(1 for task in filtered_tasks if user_id is not None and task.get("created_by") == user_id)
    self_started_score = min(100.0, self_started * 20)

    proactive = sum(1 for comment in filtered_comments if _is_proactive(comment))
    proactive_score = min(100.0, proactive * 10)

    return log_consistency * 0.4 + self_started_score * 0.3 + proactive_score * 0.3


# Efficiency


def _as_hours(value) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0
    if isinstance(value, str):
        try:
            parsed = float(value)
        except ValueError:
            return 0.0
        return parsed if math.isfinite(parsed) else 0.0
    return 0.0


def _logged_hours_by_project(time_logs: List[Dict]) -> Dict:
    if not time_logs:
        return {}

    df = pd.DataFrame(time_logs)
    if "project_id" not in df.columns or "hours" not in df.columns:
        return {}

    df["hours"] = pd.to_numeric(df["hours"], errors="coerce").fillna(0)
    return df.groupby("project_id")["hours"].sum().to_dict()


def calculate_efficiency(projects: Sequence[Dict], time_logs: Sequence[Dict], window: TimeWindow) -> float:
    """Compare allocated and logged hours on completed projects.

    Projects are not time-filtered; time logs are. Returns the base score of 85
    when no completed project has both allocated and logged hours.
    """
    completed_projects = [project for project in projects if _is_completed_project(project)]
    if not completed_projects:
        return EFFICIENCY_BASE_SCORE

    filtered_logs = filter_by_time_window(time_logs, window, time_log_timestamp)
    hours_by_project = _logged_hours_by_project(filtered_logs)

    efficiencies = []
    for project in completed_projects:
        allocated = _as_hours(project.get("allocated_hours"))
        if allocated <= 0:
            continue

        logged = float(hours_by_project.get(project.get("id"), 0))
        if logged <= 0:
            continue

        efficiencies.append(min(EFFICIENCY_CAP, allocated / logged * 100))

    if not efficiencies:
        return EFFICIENCY_BASE_SCORE
    return sum(efficiencies) / len(efficiencies)
