"""Tests for chore_rotation.core.metrics — history reduction."""

from datetime import datetime, timedelta

from chore_rotation.core.metrics import build_metrics
from chore_rotation.data.models import VerificationStatus

from conftest import NOW, make_people, make_task


def _approved(**kwargs):
    return make_task(
        completed=True, verification_status=VerificationStatus.APPROVED, **kwargs,
    )


class TestDefaults:
    def test_every_available_person_has_an_entry(self, people):
        metrics = build_metrics([], people)
        assert set(metrics) == {"alice", "bob", "carol", "dave"}
        for m in metrics.values():
            assert m.total_historical_tasks == 0
            assert m.completion_rate == 1.0
            assert m.last_assigned_areas == {}
            assert m.area_assignment_counts == {}

    def test_unavailable_people_in_history_are_ignored(self, people):
        history = [_approved(responsibles=("zoe",)), make_task(temporary_responsible="zoe")]
        metrics = build_metrics(history, people)
        assert "zoe" not in metrics


class TestCompletionCredit:
    def test_approved_completion_counts_as_completed(self, people):
        metrics = build_metrics([_approved(responsibles=("alice",))], people)
        assert metrics["alice"].completed_tasks == 1
        assert metrics["alice"].incomplete_or_rejected_tasks == 0
        assert metrics["alice"].completion_rate == 1.0

    def test_rejected_counts_against(self, people):
        task = make_task(
            responsibles=("alice",), completed=True,
            verification_status=VerificationStatus.REJECTED,
        )
        metrics = build_metrics([task], people)
        assert metrics["alice"].incomplete_or_rejected_tasks == 1
        assert metrics["alice"].completion_rate == 0.0

    def test_not_completed_counts_against(self, people):
        metrics = build_metrics([make_task(responsibles=("bob",))], people)
        assert metrics["bob"].incomplete_or_rejected_tasks == 1

    def test_pending_verification_counts_neither_way(self, people):
        for status in (VerificationStatus.PENDING, VerificationStatus.IN_PROGRESS):
            task = make_task(responsibles=("carol",), completed=True, verification_status=status)
            m = build_metrics([task], people)["carol"]
            assert m.total_historical_tasks == 1
            assert m.completed_tasks == 0
            assert m.incomplete_or_rejected_tasks == 0
            assert m.completion_rate == 1.0

    def test_completion_rate_ratio(self, people):
        history = [
            _approved(responsibles=("alice",)),
            _approved(responsibles=("alice",)),
            _approved(responsibles=("alice",)),
            make_task(responsibles=("alice",)),
        ]
        assert build_metrics(history, people)["alice"].completion_rate == 0.75


class TestAreaStatistics:
    def test_keeps_latest_end_date_per_area(self, people):
        older = NOW - timedelta(days=30)
        newer = NOW - timedelta(days=5)
        history = [
            _approved(area="Basura", end_date=older),
            _approved(area="Basura", end_date=newer),
            _approved(area="Basura", end_date=older - timedelta(days=7)),
        ]
        m = build_metrics(history, people)["alice"]
        assert m.last_assigned_areas["Basura"] == newer
        assert m.area_assignment_counts["Basura"] == 3

    def test_counts_each_responsible(self, people):
        task = _approved(area="Cocina y Living", responsibles=("alice", "bob"))
        metrics = build_metrics([task], people)
        assert metrics["alice"].area_assignment_counts == {"Cocina y Living": 1}
        assert metrics["bob"].area_assignment_counts == {"Cocina y Living": 1}


class TestTemporaryResponsible:
    def test_gets_completion_credit_only(self, people):
        task = _approved(area="Baño 3", responsibles=("alice",), temporary_responsible="dave")
        metrics = build_metrics([task], people)
        dave = metrics["dave"]
        assert dave.total_historical_tasks == 1
        assert dave.completed_tasks == 1
        assert dave.last_assigned_areas == {}
        assert dave.area_assignment_counts == {}
        # the original responsible is still credited independently
        assert metrics["alice"].completed_tasks == 1
        assert metrics["alice"].area_assignment_counts == {"Baño 3": 1}

    def test_failure_is_charged_to_both(self, people):
        task = make_task(responsibles=("alice",), temporary_responsible="bob")
        metrics = build_metrics([task], people)
        assert metrics["alice"].incomplete_or_rejected_tasks == 1
        assert metrics["bob"].incomplete_or_rejected_tasks == 1


class TestPurity:
    def test_same_input_same_output(self, people):
        history = [
            _approved(area="Basura", responsibles=("alice",)),
            make_task(area="Baño 1", responsibles=("bob",), temporary_responsible="carol"),
        ]
        assert build_metrics(history, people) == build_metrics(history, people)

    def test_does_not_mutate_history(self, people):
        history = [_approved(area="Basura", end_date=datetime(2024, 1, 1))]
        before = [t.end_date for t in history], [list(t.responsibles) for t in history]
        build_metrics(history, people)
        assert ([t.end_date for t in history], [list(t.responsibles) for t in history]) == before

    def test_people_flags_do_not_matter(self):
        admins = make_people("alice", "bob", is_admin=True)
        assert set(build_metrics([], admins)) == {"alice", "bob"}
