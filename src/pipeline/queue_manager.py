"""Queue manager: runs queued search requests one at a time.

State machine:
  Idle → Claimed → Executing → {Completed, Failed}

Data flow for one job:
  1. Claim the queue head under the ``processing`` guard (saved first)
  2. Source adapters, concurrently, each isolated and time-boxed
  3. Normalize → rank (top-K cheapest, or criteria + merge for housing)
  4. Write the result document
  5. Record history and release the guard
  6. Publish; on failure the request goes back to the front of the queue

Every transition is saved before the method that made it returns.
"""

import asyncio
import logging
import secrets
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path

from pydantic import ValidationError

from src.core.config import Settings
from src.core.errors import AdapterFailure, InvalidInput
from src.core.schemas import (
    LastSearch,
    Listing,
    QueueState,
    ResultDocument,
    SearchRequest,
    utcnow,
)
from src.core.store import QueueStore, ResultStore
from src.pipeline import transitions
from src.pipeline.normalizer import normalize_all
from src.pipeline.ranker import filter_by_criteria, flag_new, merge_with_previous, top_k_cheapest
from src.pipeline.sanitizer import sanitize_postal_code, sanitize_term
from src.platforms.base import RawCandidate, SourceAdapter
from src.publish.git import NullPublisher, Publisher

logger = logging.getLogger(__name__)

# Progress window shared by the adapters: 25% when dispatched, 85% when all are back.
_FETCH_START = 25
_FETCH_END = 85


class JobOutcome(str, Enum):
    IDLE = "idle"
    BUSY = "busy"
    COMPLETED = "completed"
    FAILED = "failed"
    REQUEUED = "requeued"


class JobReport:
    """What one trigger of the queue did."""

    def __init__(
        self,
        outcome: JobOutcome,
        request: SearchRequest | None = None,
        result_count: int = 0,
        message: str = "",
    ) -> None:
        self.outcome = outcome
        self.request = request
        self.result_count = result_count
        self.message = message


class QueueManager:
    """Single-flight job queue over an injected QueueStore.

    Usage::

        manager = QueueManager(JsonQueueStore(path), ResultStore(out), adapters)
        manager.submit("Fender Stratocaster", "29710")
        report = await manager.process_next()
    """

    def __init__(
        self,
        store: QueueStore,
        results: ResultStore,
        adapters: Sequence[SourceAdapter],
        *,
        settings: Settings | None = None,
        publisher: Publisher | None = None,
        publish_paths: Iterable[str | Path] = (),
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._results = results
        self._adapters = list(adapters)
        self._settings = settings or Settings()
        self._publisher = publisher or NullPublisher()
        self._publish_paths = [Path(p) for p in publish_paths] or [results.path]
        self._clock = clock
        self._progress_lock = asyncio.Lock()

    # --- Operations ---

    def status(self) -> QueueState:
        return self._store.load()

    def submit(
        self,
        term: str,
        postal_code: str,
        sources: Sequence[str] | None = None,
    ) -> SearchRequest:
        """Sanitize and enqueue a search request.

        Raises:
            InvalidInput: if the term, postal code or sources are rejected.
        """
        clean_term = sanitize_term(term)
        clean_code = sanitize_postal_code(postal_code)
        try:
            request = SearchRequest(
                id=secrets.token_hex(8),
                term=clean_term,
                postal_code=clean_code,
                sources=list(sources or [a.source_id for a in self._adapters]),
                requested_at=self._clock(),
            )
        except ValidationError as e:
            msg = "; ".join(err["msg"] for err in e.errors())
            raise InvalidInput(msg) from e

        self._store.save(transitions.enqueue(self._store.load(), request))
        logger.info("Queued '%s' in %s as %s", request.term, request.postal_code, request.id)
        return request

    def requeue(self, request: SearchRequest, reason: str) -> None:
        """The only way back to pending: front of the queue, guard released."""
        self._store.save(transitions.requeue(self._store.load(), request, reason))
        logger.warning("Requeued %s ('%s'): %s", request.id, request.term, reason)

    def recover_abandoned(self, *, force: bool = False) -> SearchRequest | None:
        """Clear a ``processing`` entry left behind by a dead process.

        The job is recorded as failed and never executed again. Without
        ``force`` only entries older than ``queue.stale_after_minutes`` count,
        so a job still running in another process is left alone.
        """
        state = self._store.load()
        now = self._clock()
        stale_after = timedelta(minutes=self._settings.queue.stale_after_minutes)
        request = state.processing
        if request is None or not (force or transitions.is_abandoned(state, now, stale_after)):
            return None

        self._store.save(transitions.clear_abandoned(
            state, now, history_limit=self._settings.queue.history_limit,
        ))
        logger.warning("Cleared abandoned job %s ('%s')", request.id, request.term)
        return request

    async def process_next(self) -> JobReport:
        """Claim and run the queue head, or no-op if busy or idle.

        Raises:
            PersistenceFailure: after recording the job as failed, if a
                document could not be written.
        """
        state = self._store.load()
        if state.processing is not None:
            logger.info("Already processing %s, skipping", state.processing.id)
            return JobReport(JobOutcome.BUSY, state.processing)

        state, request = transitions.claim_next(state, self._clock())
        self._store.save(state)
        if request is None:
            logger.info("No pending searches")
            return JobReport(JobOutcome.IDLE)

        logger.info("Processing '%s' in %s (%s)", request.term, request.postal_code, request.id)
        try:
            count = await self._execute(request)
        except AdapterFailure as e:
            logger.error("Job %s failed: %s", request.id, e)
            self._finish(request, 0, success=False, message=str(e))
            return JobReport(JobOutcome.FAILED, request, message=str(e))
        except Exception as e:
            logger.exception("Job %s failed", request.id)
            self._finish(request, 0, success=False, message=str(e) or type(e).__name__)
            raise

        self._finish(request, count, success=True)
        logger.info("Found %d results for '%s'", count, request.term)

        if not self._publisher.publish(self._publish_paths, self._commit_message(request, count)):
            self.requeue(request, "publish failed")
            return JobReport(JobOutcome.REQUEUED, request, count, "publish failed")
        return JobReport(JobOutcome.COMPLETED, request, count)

    # --- Job execution ---

    async def _execute(self, request: SearchRequest) -> int:
        await self._progress(5, "Starting search...")

        adapters = [a for a in self._adapters if a.source_id in request.sources]
        if not adapters:
            raise AdapterFailure(",".join(request.sources), "no adapter configured")

        await self._progress(_FETCH_START, f"Querying {len(adapters)} sources...")
        batches = await self._fetch_all(adapters, request)
        if all(batch is None for batch in batches):
            raise AdapterFailure(",".join(a.source_id for a in adapters), "every source failed")

        listings: list[Listing] = []
        for adapter, batch in zip(adapters, batches):
            if batch:
                listings.extend(normalize_all(list(batch), adapter.source_id))

        await self._progress(90, "Finding best prices...")
        document = self._rank(request, listings)

        await self._progress(95, "Saving results...")
        self._results.write(document)

        await self._progress(100, "Complete!")
        return len(document.listings)

    async def _fetch_all(
        self,
        adapters: list[SourceAdapter],
        request: SearchRequest,
    ) -> list[list[RawCandidate] | None]:
        """Run adapters concurrently. A failed adapter yields None, never an exception."""
        done = 0
        span = _FETCH_END - _FETCH_START

        async def _run(adapter: SourceAdapter) -> list[RawCandidate] | None:
            nonlocal done
            try:
                batch: list[RawCandidate] | None = await self._fetch_one(adapter, request)
                note = f"Found {len(batch or [])} on {adapter.source_id}"
            except AdapterFailure as e:
                logger.warning("Adapter failure: %s", e)
                batch = None
                note = f"{adapter.source_id} failed"
            done += 1
            await self._progress(_FETCH_START + span * done // len(adapters), note)
            return batch

        return list(await asyncio.gather(*(_run(a) for a in adapters)))

    async def _fetch_one(self, adapter: SourceAdapter, request: SearchRequest) -> list[RawCandidate]:
        timeout = self._settings.adapters.timeout_seconds
        try:
            raws = await asyncio.wait_for(
                adapter.fetch(request.term, request.postal_code, timeout), timeout,
            )
        except asyncio.TimeoutError as e:
            raise AdapterFailure(adapter.source_id, f"timed out after {timeout:g}s") from e
        except Exception as e:
            raise AdapterFailure(adapter.source_id, str(e) or type(e).__name__) from e
        return list(raws or [])

    def _rank(self, request: SearchRequest, listings: list[Listing]) -> ResultDocument:
        now = self._clock()
        previous_doc = self._results.read()
        previous = previous_doc.listings if previous_doc is not None else []

        if self._settings.mode == "housing":
            criteria = self._settings.housing.criteria
            merged = merge_with_previous(filter_by_criteria(listings, criteria), previous)
            return ResultDocument(
                last_updated=now, last_checked=now, search_criteria=criteria, listings=merged,
            )

        top = top_k_cheapest(listings, self._settings.queue.top_k)
        return ResultDocument(
            last_updated=now,
            last_checked=now,
            last_search=LastSearch(term=request.term, postal_code=request.postal_code, timestamp=now),
            listings=flag_new(top, previous),
        )

    # --- Bookkeeping ---

    async def _progress(self, percent: int, message: str) -> None:
        """Save a milestone off the event loop. The lock keeps milestones in call order."""
        async with self._progress_lock:
            state = transitions.report_progress(self._store.load(), percent, message)
            await asyncio.to_thread(self._store.save, state)
        logger.info("  %d%% - %s", state.current_progress, message)

    def _finish(self, request: SearchRequest, count: int, *, success: bool, message: str = "") -> None:
        self._store.save(transitions.record_completion(
            self._store.load(),
            request,
            result_count=count,
            success=success,
            now=self._clock(),
            message=message,
            history_limit=self._settings.queue.history_limit,
        ))

    def _commit_message(self, request: SearchRequest, count: int) -> str:
        if self._settings.mode == "housing":
            return f"Update listings: {self._clock().isoformat()}"
        return f"Gear Hunt: Results for {request.term} ({count} listings)"
