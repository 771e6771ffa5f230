"""Pure QueueState transitions.

Each function takes a state and returns a new one; nothing here touches
storage. The queue manager saves the returned state before acting on it.
"""

from datetime import datetime, timedelta

from src.core.schemas import CompletedSearch, QueueState, SearchRequest

DEFAULT_HISTORY_LIMIT = 10


def enqueue(state: QueueState, request: SearchRequest) -> QueueState:
    """Append a request to the back of the queue."""
    return state.model_copy(update={"pending_searches": [*state.pending_searches, request]})


def claim_next(state: QueueState, now: datetime) -> tuple[QueueState, SearchRequest | None]:
    """Move the queue head into ``processing``.

    Returns the state unchanged (apart from last_checked) and None when a job
    is already processing or nothing is pending.
    """
    if state.processing is not None:
        return state, None
    if not state.pending_searches:
        return state.model_copy(update={"last_checked": now}), None

    head, *rest = state.pending_searches
    claimed = state.model_copy(update={
        "pending_searches": rest,
        "processing": head,
        "processing_started_at": now,
        "current_progress": 0,
        "status_message": "Starting...",
        "last_checked": now,
    })
    return claimed, head


def report_progress(state: QueueState, percent: int, message: str) -> QueueState:
    """Record a progress milestone. Progress never moves backwards."""
    percent = max(state.current_progress, min(100, max(0, percent)))
    return state.model_copy(update={"current_progress": percent, "status_message": message})


def record_completion(
    state: QueueState,
    request: SearchRequest,
    *,
    result_count: int,
    success: bool,
    now: datetime,
    message: str = "",
    history_limit: int = DEFAULT_HISTORY_LIMIT,
) -> QueueState:
    """Push the request onto the history ring and release the guard."""
    entry = CompletedSearch(
        **request.model_dump(),
        completed_at=now,
        result_count=result_count,
        success=success,
        message=message,
    )
    history = [entry, *state.completed_searches][:history_limit]
    return state.model_copy(update={
        "completed_searches": history,
        **_released(state, request),
        "last_checked": now,
    })


def requeue(state: QueueState, request: SearchRequest, reason: str) -> QueueState:
    """Put a request back at the front of the queue.

    Any history entry already recorded for it is withdrawn, and the guard is
    released if this request holds it.
    """
    pending = [request, *(p for p in state.pending_searches if p.id != request.id)]
    history = [c for c in state.completed_searches if c.id != request.id]
    return state.model_copy(update={
        "pending_searches": pending,
        "completed_searches": history,
        **_released(state, request),
        "status_message": f"Requeued: {reason}",
    })


def is_abandoned(state: QueueState, now: datetime, stale_after: timedelta) -> bool:
    """True if ``processing`` is set and was claimed longer than stale_after ago."""
    if state.processing is None:
        return False
    if state.processing_started_at is None:
        return True
    return now - state.processing_started_at >= stale_after


def clear_abandoned(
    state: QueueState,
    now: datetime,
    *,
    history_limit: int = DEFAULT_HISTORY_LIMIT,
) -> QueueState:
    """Record the ``processing`` job as failed ("abandoned") and release the guard."""
    if state.processing is None:
        return state
    return record_completion(
        state,
        state.processing,
        result_count=0,
        success=False,
        now=now,
        message="abandoned",
        history_limit=history_limit,
    )


def _released(state: QueueState, request: SearchRequest) -> dict[str, object]:
    if state.processing is None or state.processing.id != request.id:
        return {}
    return {
        "processing": None,
        "processing_started_at": None,
        "current_progress": 0,
        "status_message": "",
    }
