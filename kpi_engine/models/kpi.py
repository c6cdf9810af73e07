"""KPI calculation for an individual contributor.

This module combines the six sub-scores into the overall KPI and letter grade
for one user over one time window. The main entry points are
``create_kpi_calculator`` (scopes raw records to the user) and
``calculate_kpi`` (pure computation over an already scoped bundle).
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, Optional, Tuple

from kpi_engine.utils.logging import get_logger
from kpi_engine.utils.time_windows import DEFAULT_TIME_WINDOW, TimeWindow, parse_time_window

from .scorers import (
    calculate_collaboration,
    calculate_delivery,
    calculate_efficiency,
    calculate_initiative,
    calculate_quality,
    calculate_reliability,
    has_document_ratings,
)
from .weights import get_role_weights, grade_for_score, weighted_score

out = get_logger("kpi_engine.models.kpi")


@dataclass(frozen=True)
class KPIResult:
    """Sub-scores, overall score (0-100, one decimal) and grade for one user."""

    delivery: float
    reliability: float
    collaboration: float
    quality: float
    initiative: float
    efficiency: float
    overall: float
    grade: str

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass(frozen=True)
class UserActivityData:
    """Activity records already scoped to one user."""

    user: Dict
    tasks: Tuple[Dict, ...] = field(default_factory=tuple)
    projects: Tuple[Dict, ...] = field(default_factory=tuple)
    time_logs: Tuple[Dict, ...] = field(default_factory=tuple)
    comments: Tuple[Dict, ...] = field(default_factory=tuple)
    documents: Tuple[Dict, ...] = field(default_factory=tuple)

    @property
    def user_id(self):
        return self.user.get("id")

    @property
    def role(self) -> Optional[str]:
        return self.user.get("role")


def _comment_author_id(comment: Dict):
    author = comment.get("author")
    if isinstance(author, dict):
        return author.get("id")
    return comment.get("author_id")


def _is_assigned(task: Dict, user_id) -> bool:
    if task.get("assignee") == user_id:
        return True
    assignees = task.get("assignees")
    return isinstance(assignees, (list, tuple)) and user_id in assignees


def round_half_up(value: float) -> float:
    """Round to one decimal, halves away from zero (76.25 -> 76.3)."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def scope_to_user(
    user: Dict,
    tasks: Iterable[Dict] = (),
    projects: Iterable[Dict] = (),
    time_logs: Iterable[Dict] = (),
    comments: Iterable[Dict] = (),
    documents: Iterable[Dict] = (),
) -> UserActivityData:
    """Keep only the records that belong to the user.

    Tasks assigned to the user, projects whose team includes the user, time logs
    the user logged, comments the user authored and documents the user uploaded.
    """
    user_id = user.get("id")
    return UserActivityData(
        user=user,
        tasks=tuple(task for task in tasks if _is_assigned(task, user_id)),
        projects=tuple(project for project in projects if user_id in (project.get("team") or [])),
        time_logs=tuple(log for log in time_logs if log.get("user_id") == user_id),
        comments=tuple(comment for comment in comments if _comment_author_id(comment) == user_id),
        documents=tuple(doc for doc in documents if doc.get("uploaded_by") == user_id),
    )


def calculate_scores(data: UserActivityData, window: TimeWindow) -> Dict[str, float]:
    """Calculate the six unrounded sub-scores.

    Args:
        data: Activity records scoped to one user
        window: Time window to score

    Returns:
        Dictionary keyed by dimension name
    """
    return {
        "delivery": calculate_delivery(data.tasks, data.projects, window),
        "reliability": calculate_reliability(data.tasks, data.time_logs, window),
        "collaboration": calculate_collaboration(data.comments, data.documents, window),
        "quality": calculate_quality(data.documents, window),
        "initiative": calculate_initiative(data.user_id, data.tasks, data.comments, data.time_logs, window),
        "efficiency": calculate_efficiency(data.projects, data.time_logs, window),
    }


def calculate_kpi(
    data: UserActivityData,
    time_window: str = DEFAULT_TIME_WINDOW,
    now: Optional[datetime] = None,
    weight_table: Optional[Dict[str, Dict[str, float]]] = None,
) -> KPIResult:
    """Calculate the KPI for one user over one time window.

    The overall score is the role-weighted sum of the sub-scores, except when any
    document in the window carries a reviewer rating: then the overall score is
    the quality score alone.

    Args:
        data: Activity records scoped to one user
        time_window: "30days", "90days" or "ytd"
        now: Reference instant (defaults to current UTC time)
        weight_table: Optional role weight table overriding the defaults

    Returns:
        KPIResult with all scores rounded to one decimal

    Raises:
        TimeWindowError: If time_window is not supported
    """
    window = parse_time_window(time_window, reference_date=now)
    scores = calculate_scores(data, window)

    weights = get_role_weights(data.role, weight_table)
    overall = weighted_score(scores, weights)

    if has_document_ratings(data.documents, window):
        out.debug(f"Quality override applied for user {data.user_id}: overall = quality")
        overall = scores["quality"]

    out.debug(
        f"KPI for user {data.user_id} ({window.range_key}): "
        + ", ".join(f"{dim}={value:.1f}" for dim, value in scores.items())
        + f", overall={overall:.1f}"
    )

    return KPIResult(
        delivery=round_half_up(scores["delivery"]),
        reliability=round_half_up(scores["reliability"]),
        collaboration=round_half_up(scores["collaboration"]),
        quality=round_half_up(scores["quality"]),
        initiative=round_half_up(scores["initiative"]),
        efficiency=round_half_up(scores["efficiency"]),
        overall=round_half_up(overall),
        grade=grade_for_score(overall),
    )


class KPICalculator:
    """Calculates the KPI for a bundle of activity records scoped to one user."""

    def __init__(
        self,
        data: UserActivityData,
        time_window: str = DEFAULT_TIME_WINDOW,
        weight_table: Optional[Dict[str, Dict[str, float]]] = None,
    ):
        # Fail fast on unsupported windows
        parse_time_window(time_window)

        self.data = data
        self.time_window = time_window
        self.weight_table = weight_table

    def calculate_kpi(self, now: Optional[datetime] = None) -> KPIResult:
        return calculate_kpi(self.data, self.time_window, now=now, weight_table=self.weight_table)


def create_kpi_calculator(
    user: Dict,
    tasks: Iterable[Dict] = (),
    projects: Iterable[Dict] = (),
    time_logs: Iterable[Dict] = (),
    comments: Iterable[Dict] = (),
    documents: Iterable[Dict] = (),
    time_window: str = DEFAULT_TIME_WINDOW,
    weight_table: Optional[Dict[str, Dict[str, float]]] = None,
) -> KPICalculator:
    """Create a KPICalculator from raw records, keeping only those relevant to the user.

    Args:
        user: User record with at least ``id`` and ``role``
        tasks: Raw task records
        projects: Raw project records
        time_logs: Raw time log records
        comments: Raw comment records
        documents: Raw document records
        time_window: "30days", "90days" or "ytd"
        weight_table: Optional role weight table overriding the defaults

    Returns:
        KPICalculator ready to compute

    Raises:
        TimeWindowError: If time_window is not supported
    """
    data = scope_to_user(user, tasks, projects, time_logs, comments, documents)
    out.debug(
        f"Scoped activity for user {data.user_id}: {len(data.tasks)} tasks, {len(data.projects)} projects, "
        f"{len(data.time_logs)} time logs, {len(data.comments)} comments, {len(data.documents)} documents"
    )
    return KPICalculator(data, time_window=time_window, weight_table=weight_table)
