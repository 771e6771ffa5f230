"""JSON persistence for the queue state and the published result document.

Both files are written atomically (temp file in the same directory, fsync,
rename) so a reader never sees a half-written document.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError

from src.core.errors import PersistenceFailure
from src.core.schemas import QueueState, ResultDocument, SearchRequest

logger = logging.getLogger(__name__)


def write_json_atomic(path: str | Path, data: Any) -> None:
    """Serialize ``data`` to ``path`` via temp-file-and-rename.

    Raises:
        PersistenceFailure: on any filesystem error.
    """
    path = Path(path)
    tmp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2)
            fh.write("\n")
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as e:
        msg = f"Failed to write {path}: {e}"
        raise PersistenceFailure(msg) from e
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)


class QueueStore(Protocol):
    """Durable home of the single QueueState."""

    def load(self) -> QueueState: ...
    def save(self, state: QueueState) -> None: ...


class InMemoryQueueStore:
    """QueueStore kept in memory. Stores deep copies so callers cannot alias it."""

    def __init__(self, state: QueueState | None = None) -> None:
        self._state = (state or QueueState()).model_copy(deep=True)
        self.saves = 0

    def load(self) -> QueueState:
        return self._state.model_copy(deep=True)

    def save(self, state: QueueState) -> None:
        self._state = state.model_copy(deep=True)
        self.saves += 1


class JsonQueueStore:
    """QueueStore backed by a JSON file.

    The file may also be written by an external intake layer, so pending
    entries are validated one by one and invalid ones are dropped.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> QueueState:
        if not self._path.exists():
            logger.debug("Queue file not found at %s, starting empty", self._path)
            return QueueState()
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            msg = f"Failed to read queue file {self._path}: {e}"
            raise PersistenceFailure(msg) from e
        if not isinstance(raw, dict):
            msg = f"Queue file {self._path} is not a JSON object"
            raise PersistenceFailure(msg)

        raw["pendingSearches"] = _valid_pending(raw.pop("pendingSearches", None) or [])
        raw.pop("pending_searches", None)
        try:
            return QueueState.model_validate(raw)
        except ValidationError as e:
            msg = f"Queue file {self._path} is invalid: {e}"
            raise PersistenceFailure(msg) from e

    def save(self, state: QueueState) -> None:
        write_json_atomic(self._path, state.model_dump(mode="json", by_alias=True))


def _valid_pending(entries: list[Any]) -> list[SearchRequest]:
    valid: list[SearchRequest] = []
    for entry in entries:
        try:
            valid.append(SearchRequest.model_validate(entry))
        except ValidationError as e:
            logger.warning(
                "SECURITY: dropping invalid queue entry: %s",
                "; ".join(err["msg"] for err in e.errors()),
            )
    return valid


class ResultStore:
    """The published ResultDocument. Single writer: the queue manager."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def write(self, document: ResultDocument) -> None:
        write_json_atomic(self._path, document.model_dump(mode="json", by_alias=True))
        logger.info("Saved %d listings to %s", len(document.listings), self._path)

    def read(self) -> ResultDocument | None:
        """Return the current document, or None if missing or unreadable.

        An unreadable document is treated as stale; the caller keeps whatever
        it had before.
        """
        if not self._path.exists():
            return None
        try:
            return ResultDocument.model_validate_json(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Result document %s unreadable, treating as stale: %s", self._path, e)
            return None
