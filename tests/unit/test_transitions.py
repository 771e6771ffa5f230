"""Tests for pure queue state transitions."""

from datetime import datetime, timedelta, timezone

from src.core.schemas import CompletedSearch, QueueState, SearchRequest
from src.pipeline.transitions import (
    claim_next,
    clear_abandoned,
    enqueue,
    is_abandoned,
    record_completion,
    report_progress,
    requeue,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _request(id: str, term: str = "Boss DS-1") -> SearchRequest:
    return SearchRequest(id=id, term=term, postal_code="29710")


def _completed(id: str) -> CompletedSearch:
    return CompletedSearch(**_request(id).model_dump(), success=True, result_count=1)


class TestEnqueue:
    def test_appends_to_back(self) -> None:
        state = enqueue(enqueue(QueueState(), _request("a")), _request("b"))
        assert [r.id for r in state.pending_searches] == ["a", "b"]

    def test_does_not_mutate_input(self) -> None:
        original = QueueState()
        enqueue(original, _request("a"))
        assert original.pending_searches == []


class TestClaimNext:
    def test_claims_head(self) -> None:
        state = QueueState(pending_searches=[_request("a"), _request("b")])
        claimed, request = claim_next(state, NOW)
        assert request is not None and request.id == "a"
        assert claimed.processing == request
        assert claimed.processing_started_at == NOW
        assert [r.id for r in claimed.pending_searches] == ["b"]
        assert claimed.current_progress == 0
        assert claimed.last_checked == NOW

    def test_busy_returns_state_unchanged(self) -> None:
        state = QueueState(processing=_request("x"), pending_searches=[_request("a")])
        claimed, request = claim_next(state, NOW)
        assert request is None
        assert claimed == state

    def test_empty_updates_last_checked(self) -> None:
        claimed, request = claim_next(QueueState(), NOW)
        assert request is None
        assert claimed.last_checked == NOW
        assert claimed.processing is None


class TestReportProgress:
    def test_sets_progress_and_message(self) -> None:
        state = report_progress(QueueState(), 25, "Querying")
        assert state.current_progress == 25
        assert state.status_message == "Querying"

    def test_never_moves_backwards(self) -> None:
        state = report_progress(QueueState(current_progress=60), 25, "late")
        assert state.current_progress == 60
        assert state.status_message == "late"

    def test_clamped(self) -> None:
        assert report_progress(QueueState(), 250, "x").current_progress == 100


class TestRecordCompletion:
    def test_releases_guard_and_prepends_history(self) -> None:
        request = _request("a")
        state = QueueState(
            processing=request,
            processing_started_at=NOW,
            current_progress=100,
            completed_searches=[_completed("old")],
        )
        done = record_completion(state, request, result_count=3, success=True, now=NOW)
        assert done.processing is None
        assert done.processing_started_at is None
        assert done.current_progress == 0
        assert [c.id for c in done.completed_searches] == ["a", "old"]
        assert done.completed_searches[0].result_count == 3
        assert done.completed_searches[0].completed_at == NOW

    def test_history_bounded(self) -> None:
        state = QueueState(completed_searches=[_completed(f"h{i}") for i in range(10)])
        done = record_completion(state, _request("new"), result_count=0, success=False, now=NOW)
        assert len(done.completed_searches) == 10
        assert done.completed_searches[0].id == "new"
        assert done.completed_searches[-1].id == "h8"

    def test_custom_limit(self) -> None:
        state = QueueState(completed_searches=[_completed("h1"), _completed("h2")])
        done = record_completion(
            state, _request("new"), result_count=0, success=True, now=NOW, history_limit=2,
        )
        assert [c.id for c in done.completed_searches] == ["new", "h1"]

    def test_other_job_keeps_guard(self) -> None:
        state = QueueState(processing=_request("running"))
        done = record_completion(state, _request("other"), result_count=0, success=False, now=NOW)
        assert done.processing is not None and done.processing.id == "running"


class TestRequeue:
    def test_front_of_queue_and_history_withdrawn(self) -> None:
        request = _request("a")
        state = QueueState(
            pending_searches=[_request("b")],
            completed_searches=[_completed("a"), _completed("z")],
        )
        out = requeue(state, request, "publish failed")
        assert [r.id for r in out.pending_searches] == ["a", "b"]
        assert [c.id for c in out.completed_searches] == ["z"]
        assert out.status_message == "Requeued: publish failed"

    def test_releases_guard(self) -> None:
        request = _request("a")
        out = requeue(QueueState(processing=request, processing_started_at=NOW), request, "x")
        assert out.processing is None
        assert out.processing_started_at is None

    def test_no_duplicate_pending(self) -> None:
        request = _request("a")
        out = requeue(QueueState(pending_searches=[_request("b"), request]), request, "x")
        assert [r.id for r in out.pending_searches] == ["a", "b"]


class TestIsAbandoned:
    def test_idle_is_not_abandoned(self) -> None:
        assert is_abandoned(QueueState(), NOW, timedelta(minutes=30)) is False

    def test_fresh_job(self) -> None:
        state = QueueState(processing=_request("a"), processing_started_at=NOW - timedelta(minutes=5))
        assert is_abandoned(state, NOW, timedelta(minutes=30)) is False

    def test_stale_job(self) -> None:
        state = QueueState(processing=_request("a"), processing_started_at=NOW - timedelta(hours=1))
        assert is_abandoned(state, NOW, timedelta(minutes=30)) is True

    def test_missing_start_time(self) -> None:
        state = QueueState(processing=_request("a"))
        assert is_abandoned(state, NOW, timedelta(minutes=30)) is True


class TestClearAbandoned:
    def test_recorded_as_failed(self) -> None:
        state = QueueState(
            processing=_request("a"),
            processing_started_at=NOW - timedelta(hours=1),
            pending_searches=[_request("b")],
        )
        out = clear_abandoned(state, NOW)
        assert out.processing is None
        assert [r.id for r in out.pending_searches] == ["b"]
        entry = out.completed_searches[0]
        assert (entry.id, entry.success, entry.message) == ("a", False, "abandoned")

    def test_idle_unchanged(self) -> None:
        state = QueueState()
        assert clear_abandoned(state, NOW) is state
