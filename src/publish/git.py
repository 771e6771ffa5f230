"""Publishers: push the queue and result documents to a remote repository.

The queue manager only looks at the boolean result of ``publish``.
"""

import logging
import subprocess
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from src.core.config import PublisherConfig

logger = logging.getLogger(__name__)


class Publisher(Protocol):
    def publish(self, paths: Iterable[str | Path], message: str) -> bool: ...


class NullPublisher:
    """Publisher used when publishing is disabled. Always succeeds."""

    def publish(self, paths: Iterable[str | Path], message: str) -> bool:
        logger.debug("Publishing disabled, skipping '%s'", message)
        return True


class GitPublisher:
    """Commit the given files and push them.

    Arguments go to git as a list (no shell), and the message has double
    quotes removed.
    """

    def __init__(self, config: PublisherConfig) -> None:
        self._repo = Path(config.repo_path)
        self._remote = config.remote
        self._branch = config.branch

    def publish(self, paths: Iterable[str | Path], message: str) -> bool:
        files = [str(Path(p).resolve()) for p in paths]
        message = message.replace('"', "")
        try:
            self._git("add", "--", *files)
            status = self._git("status", "--porcelain", "--", *files)
            if not status.strip():
                logger.info("No changes to publish")
                return True
            self._git("commit", "-m", message, "--", *files)
            self._git("push", self._remote, self._branch)
        except (OSError, subprocess.CalledProcessError) as e:
            stderr = getattr(e, "stderr", "") or ""
            logger.error("Git publish failed: %s %s", e, stderr.strip())
            return False
        logger.info("Published: %s", message)
        return True

    def _git(self, *args: str) -> str:
        result = subprocess.run(
            ["git", *args],
            cwd=self._repo,
            check=True,
            capture_output=True,
            text=True,
        )
        return result.stdout


def build_publisher(config: PublisherConfig) -> Publisher:
    if config.enabled:
        return GitPublisher(config)
    return NullPublisher()
