"""
Tests for the six KPI sub-scores.

Every scorer filters its own inputs by the time window, so the fixtures mix
records inside and outside the window where it matters.
"""

from datetime import datetime, timezone

import pytest

from kpi_engine.models.scorers import (
    calculate_collaboration,
    calculate_delivery,
    calculate_efficiency,
    calculate_initiative,
    calculate_log_consistency,
    calculate_milestone_rate,
    calculate_quality,
    calculate_reliability,
    has_document_ratings,
    parse_rating_from_review_note,
    resolve_document_rating,
)
from kpi_engine.utils.time_windows import parse_time_window
from tests.fixtures.sample_data import (
    days_ago,
    make_comment,
    make_document,
    make_project,
    make_task,
    make_time_log,
    make_time_logs,
)


class TestDelivery:
    """Tests for calculate_delivery"""

    def test_no_tasks_scores_zero(self, window_30d, completed_projects):
        assert calculate_delivery([], completed_projects, window_30d) == 0.0

    def test_tasks_outside_window_score_zero(self, window_30d):
        tasks = [make_task("t-1", created_at=days_ago(45), due_date=days_ago(-5))]
        assert calculate_delivery(tasks, [], window_30d) == 0.0

    def test_all_on_time_high_priority_is_capped(self, window_30d, on_time_high_priority_tasks, completed_projects):
        # (100 * 0.6 + 100 * 0.4) * 1.1 = 110 -> 100
        assert calculate_delivery(on_time_high_priority_tasks, completed_projects, window_30d) == 100.0

    def test_mixed_on_time_ratio_and_milestones(self, window_30d):
        tasks = [
            make_task("on-time", days_ago(10), due_date=days_ago(2), status="completed", completed_at=days_ago(3)),
            make_task("late", days_ago(10), due_date=days_ago(5), status="completed", completed_at=days_ago(4)),
            make_task("open-not-due", days_ago(10), due_date=days_ago(-5)),
            make_task("no-due-date", days_ago(10)),
        ]
        projects = [make_project("p-1", status="completed")] + [make_project(f"p-{i}") for i in range(2, 5)]

        # on-time 2/4 = 50%, milestones 1/4 = 25%, medium priority weight 1.0
        assert calculate_delivery(tasks, projects, window_30d) == pytest.approx(40.0)

    def test_completed_without_completion_date_is_not_on_time(self, window_30d):
        tasks = [make_task("t-1", days_ago(10), due_date=days_ago(-5), status="completed", completed_at=None)]
        assert calculate_delivery(tasks, [], window_30d) == 0.0

    def test_done_status_counts_as_completed(self, window_30d):
        tasks = [make_task("t-1", days_ago(10), due_date=days_ago(5), status="done", completed_at=days_ago(6))]
        # on-time 100% * 0.6 = 60, no projects
        assert calculate_delivery(tasks, [], window_30d) == pytest.approx(60.0)

    def test_priority_weight_is_averaged(self, window_30d):
        tasks = [
            make_task("critical", days_ago(5), due_date=days_ago(-5), priority="critical"),
            make_task("low", days_ago(5), due_date=days_ago(-5), priority="low"),
        ]
        # 60 * (1.2 + 0.9) / 2
        assert calculate_delivery(tasks, [], window_30d) == pytest.approx(63.0)

    def test_unknown_priority_weighs_like_low(self, window_30d):
        tasks = [make_task("t-1", days_ago(5), due_date=days_ago(-5), priority=None)]
        assert calculate_delivery(tasks, [], window_30d) == pytest.approx(54.0)

    def test_milestone_rate_ignores_time_window(self):
        projects = [make_project("p-1", status="completed"), make_project("p-2")]
        assert calculate_milestone_rate(projects) == 50.0
        assert calculate_milestone_rate([]) == 0.0


class TestLogConsistency:
    """Tests for the shared log consistency helper"""

    def test_no_logs_scores_zero(self, window_30d):
        assert calculate_log_consistency([], window_30d) == 0.0

    def test_ratio_against_five_logs_per_week(self, window_30d):
        # 10 logs / (5 weeks * 5)
        assert calculate_log_consistency(make_time_logs(10), window_30d) == pytest.approx(40.0)

    def test_capped_at_100(self, window_30d):
        assert calculate_log_consistency(make_time_logs(40), window_30d) == 100.0

    def test_logs_outside_window_ignored(self, window_30d):
        logs = make_time_logs(10) + make_time_logs(5, days_back=60)
        assert calculate_log_consistency(logs, window_30d) == pytest.approx(40.0)

    def test_logged_at_fallback(self, window_30d):
        logs = [make_time_log(f"l-{i}", created_at=None, logged_at=days_ago(2)) for i in range(5)]
        assert calculate_log_consistency(logs, window_30d) == pytest.approx(20.0)

    def test_zero_week_window_scores_zero(self):
        new_year = datetime(2025, 1, 1, tzinfo=timezone.utc)
        window = parse_time_window("ytd", reference_date=new_year)
        logs = [make_time_log("l-1", created_at="2025-01-01T00:00:00Z")]
        assert window.weeks == 0
        assert calculate_log_consistency(logs, window) == 0.0


class TestReliability:
    """Tests for calculate_reliability"""

    def test_no_tasks_scores_zero(self, window_30d, daily_time_logs):
        assert calculate_reliability([], daily_time_logs, window_30d) == 0.0

    def test_overdue_freshness_and_consistency_penalties(self, window_30d, daily_time_logs):
        tasks = [
            make_task("done", days_ago(10), due_date=days_ago(2), status="completed", completed_at=days_ago(5)),
            make_task("overdue", days_ago(10), due_date=days_ago(3)),
        ]
        # overdue 1/2 * 30 = 15, avg 5 days -> freshness 90 -> 3, consistency 100 -> 0
        assert calculate_reliability(tasks, daily_time_logs, window_30d) == pytest.approx(82.0)

    def test_missing_logs_costs_twenty_points(self, window_30d):
        tasks = [make_task("done", days_ago(10), due_date=days_ago(2), status="completed", completed_at=days_ago(5))]
        # freshness 90 -> 3, consistency 0 -> 20
        assert calculate_reliability(tasks, [], window_30d) == pytest.approx(77.0)

    def test_tasks_missing_timestamps_excluded_from_freshness(self, window_30d, daily_time_logs):
        tasks = [
            make_task("ten-days", days_ago(12), status="completed", completed_at=days_ago(2)),
            make_task("no-completion", days_ago(12), status="completed", completed_at=None),
        ]
        # Average is 10 days (not 5): freshness 80 -> 6
        assert calculate_reliability(tasks, daily_time_logs, window_30d) == pytest.approx(94.0)

    def test_task_without_due_date_is_never_overdue(self, window_30d, daily_time_logs):
        tasks = [make_task("open", days_ago(5))]
        assert calculate_reliability(tasks, daily_time_logs, window_30d) == pytest.approx(100.0)

    def test_slow_and_overdue_work(self, window_30d):
        tasks = [
            make_task("slow", days_ago(29), status="completed", completed_at=days_ago(-200)),
            make_task("overdue", days_ago(20), due_date=days_ago(10)),
        ]
        # overdue 15, freshness floors at 0 -> 30, no logs -> 20
        assert calculate_reliability(tasks, [], window_30d) == pytest.approx(35.0)


class TestCollaboration:
    """Tests for calculate_collaboration"""

    def test_empty_scores_zero(self, window_30d):
        assert calculate_collaboration([], [], window_30d) == 0.0

    def test_comments_documents_and_diversity(self, window_30d):
        comments = (
            [make_comment(f"a-{i}", days_ago(1), project_id="p-1") for i in range(4)]
            + [make_comment(f"b-{i}", days_ago(2), project_id="p-2") for i in range(4)]
            + [make_comment(f"c-{i}", days_ago(3), project_id=None, task_id="t-9") for i in range(2)]
        )
        documents = [
            make_document("d-1", days_ago(1), status="approved"),
            make_document("d-2", days_ago(1), status="draft"),
            make_document("d-3", days_ago(1), status="rejected"),
        ]
        # 10 comments / 5 weeks * 5 = 10; docs 3*2 + 1*3 = 9; 3 keys * 15 = 45
        assert calculate_collaboration(comments, documents, window_30d) == pytest.approx(16.6)

    def test_comments_without_association_add_no_diversity(self, window_30d):
        comments = [make_comment("c-1", days_ago(1), project_id=None, task_id=None)]
        # 1 / 5 * 5 = 1 -> 0.4
        assert calculate_collaboration(comments, [], window_30d) == pytest.approx(0.4)

    def test_document_score_capped(self, window_30d):
        documents = [make_document(f"d-{i}", days_ago(1), status="approved") for i in range(30)]
        assert calculate_collaboration([], documents, window_30d) == pytest.approx(40.0)

    def test_old_records_ignored(self, window_30d):
        comments = [make_comment("c-1", days_ago(40), project_id="p-1")]
        documents = [make_document("d-1", days_ago(40), status="approved")]
        assert calculate_collaboration(comments, documents, window_30d) == 0.0


class TestRatingParser:
    """Tests for review note rating extraction"""

    def test_embedded_rating(self):
        assert parse_rating_from_review_note("Great work. Rating: 4.5/5, ship it") == 4.5

    def test_rating_above_five_clamped(self):
        assert parse_rating_from_review_note("Rating: 6/5") == 5.0
        assert parse_rating_from_review_note("Rating: 10/5") == 5.0

    def test_case_and_spacing(self):
        assert parse_rating_from_review_note("RATING:3 / 5") == 3.0

    @pytest.mark.parametrize("note", [None, "", "No rating here", "Rated 4 out of 5", "Rating: 4/10", "Rating: /5"])
    def test_no_rating(self, note):
        assert parse_rating_from_review_note(note) is None


class TestResolveDocumentRating:
    """Numeric review scores win over review notes"""

    def test_numeric_score_preferred(self):
        doc = make_document("d-1", days_ago(1), review_score=2, review_note="Rating: 5/5")
        assert resolve_document_rating(doc) == 2.0

    def test_numeric_score_clamped(self):
        assert resolve_document_rating(make_document("d-1", days_ago(1), review_score=7)) == 5.0
        assert resolve_document_rating(make_document("d-2", days_ago(1), review_score=-1)) == 0.0

    def test_note_used_without_score(self):
        assert resolve_document_rating(make_document("d-1", days_ago(1), review_note="Rating: 3.5/5")) == 3.5

    def test_non_numeric_score_ignored(self):
        doc = make_document("d-1", days_ago(1), review_score=True, review_note="Rating: 1/5")
        assert resolve_document_rating(doc) == 1.0
        assert resolve_document_rating(make_document("d-2", days_ago(1), review_score=float("nan"))) is None

    def test_no_rating(self):
        assert resolve_document_rating(make_document("d-1", days_ago(1))) is None


class TestQuality:
    """Tests for calculate_quality"""

    def test_no_documents_scores_zero(self, window_30d):
        assert calculate_quality([], window_30d) == 0.0

    def test_unrated_documents_score_zero(self, window_30d):
        documents = [make_document("d-1", days_ago(1), review_note="Nice")]
        assert calculate_quality(documents, window_30d) == 0.0
        assert has_document_ratings(documents, window_30d) is False

    def test_average_of_resolved_ratings(self, window_30d, rated_documents):
        documents = rated_documents + [make_document("d-3", days_ago(1))]
        # (4 + 3) / 2 = 3.5 -> 70; the unrated document is excluded, not zero
        assert calculate_quality(documents, window_30d) == pytest.approx(70.0)
        assert has_document_ratings(documents, window_30d) is True

    def test_documents_outside_window_ignored(self, window_30d):
        documents = [
            make_document("d-1", days_ago(1), review_score=5),
            make_document("d-2", days_ago(60), review_score=1),
        ]
        assert calculate_quality(documents, window_30d) == pytest.approx(100.0)


class TestInitiative:
    """Tests for calculate_initiative"""

    def test_self_started_proactive_and_consistency(self, window_30d):
        tasks = [
            make_task("t-1", days_ago(2), created_by="u-1"),
            make_task("t-2", days_ago(3), created_by="u-1"),
            make_task("t-3", days_ago(3), created_by="u-2"),
            make_task("t-old", days_ago(60), created_by="u-1"),
        ]
        comments = [
            make_comment("c-1", days_ago(1), content="Should we ship?"),
            make_comment("c-2", days_ago(1), content="I suggest caching"),
            make_comment("c-3", days_ago(1), content="I Recommend a rewrite"),
            make_comment("c-4", days_ago(1), content="Looks good"),
        ]
        # consistency 40 * 0.4 + self-started 40 * 0.3 + proactive 20 * 0.3
        score = calculate_initiative("u-1", tasks, comments, make_time_logs(10), window_30d)
        assert score == pytest.approx(34.0)

    def test_self_started_capped(self, window_30d):
        tasks = [make_task(f"t-{i}", days_ago(1), created_by="u-1") for i in range(8)]
        assert calculate_initiative("u-1", tasks, [], [], window_30d) == pytest.approx(30.0)

    def test_empty_scores_zero(self, window_30d):
        assert calculate_initiative("u-1", [], [], [], window_30d) == 0.0

    def test_non_text_content_is_not_proactive(self, window_30d):
        comments = [
            make_comment("c-1", days_ago(1), content=42),
            make_comment("c-2", days_ago(1), content=None),
            make_comment("c-3", days_ago(1), content=["suggest"]),
            make_comment("c-4", days_ago(1), content="Any blockers?"),
        ]
        # one proactive comment: 10 * 0.3
        assert calculate_initiative("u-1", [], comments, [], window_30d) == pytest.approx(3.0)


class TestEfficiency:
    """Tests for calculate_efficiency"""

    def test_no_completed_projects_returns_base_score(self, window_30d, daily_time_logs):
        projects = [make_project("p-1", status="in-progress", allocated_hours=100)]
        assert calculate_efficiency(projects, daily_time_logs, window_30d) == 85.0
        assert calculate_efficiency([], [], window_30d) == 85.0

    def test_average_over_qualifying_projects(self, window_30d):
        projects = [
            make_project("p-1", status="completed", allocated_hours=100),
            make_project("p-2", status="completed", allocated_hours=50),
        ]
        logs = make_time_logs(8, hours=10, project_id="p-1") + make_time_logs(10, hours=10, project_id="p-2")
        # p-1: 100 / 80 = 125%, p-2: 50 / 100 = 50%
        assert calculate_efficiency(projects, logs, window_30d) == pytest.approx(87.5)

    def test_per_project_cap(self, window_30d):
        projects = [make_project("p-1", status="completed", allocated_hours=1000)]
        logs = make_time_logs(1, hours=1, project_id="p-1")
        assert calculate_efficiency(projects, logs, window_30d) == 150.0

    def test_projects_without_budget_or_hours_excluded(self, window_30d):
        projects = [
            make_project("p-1", status="completed", allocated_hours=0),
            make_project("p-2", status="completed", allocated_hours=None),
            make_project("p-3", status="completed", allocated_hours=40),
            make_project("p-4", status="completed", allocated_hours=20),
        ]
        logs = make_time_logs(2, hours=10, project_id="p-1") + make_time_logs(4, hours=10, project_id="p-4")
        # Only p-4 qualifies: 20 / 40 = 50%
        assert calculate_efficiency(projects, logs, window_30d) == pytest.approx(50.0)

    def test_no_qualifying_project_returns_base_score(self, window_30d):
        projects = [make_project("p-1", status="completed", allocated_hours=40)]
        old_logs = make_time_logs(4, days_back=60, hours=10, project_id="p-1")
        assert calculate_efficiency(projects, old_logs, window_30d) == 85.0

    def test_string_and_bad_hours(self, window_30d):
        projects = [make_project("p-1", status="completed", allocated_hours="30")]
        logs = [
            make_time_log("l-1", created_at=days_ago(1), hours="20"),
            make_time_log("l-2", created_at=days_ago(1), hours="lots"),
        ]
        assert calculate_efficiency(projects, logs, window_30d) == pytest.approx(150.0)

    def test_other_projects_logs_ignored(self, window_30d):
        projects = [make_project("p-1", status="completed", allocated_hours=40)]
        logs = make_time_logs(4, hours=10, project_id="p-1") + make_time_logs(4, hours=10, project_id="p-9")
        assert calculate_efficiency(projects, logs, window_30d) == pytest.approx(100.0)
