"""
Warmer - pre-generates thumbnails for a list of source keys.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .errors import StorageError, ThumbsError
from .pipeline import ThumbnailPipeline


@dataclass
class WarmStats:
    """
    Statistics for a warming run.

    Attributes:
        total_to_process: Number of token/source pairs requested
        generated: Thumbnails generated and stored
        cached: Thumbnails already in the thumbnail store
        errors: Requests that failed
        bytes_generated: Total bytes of generated thumbnails
        start_time: Start timestamp
        error_details: List of error messages
    """
    total_to_process: int = 0
    generated: int = 0
    cached: int = 0
    errors: int = 0
    bytes_generated: int = 0
    start_time: float = field(default_factory=time.time)
    error_details: List[str] = field(default_factory=list)

    @property
    def elapsed_seconds(self) -> float:
        """Elapsed time in seconds."""
        return time.time() - self.start_time

    @property
    def completed_count(self) -> int:
        """Total completed (generated + cached + errors)."""
        return self.generated + self.cached + self.errors

    @property
    def rate_per_minute(self) -> float:
        """Generation rate in thumbnails per minute."""
        if self.elapsed_seconds > 0:
            return self.generated / self.elapsed_seconds * 60
        return 0.0


class Warmer:
    """
    Requests every token/source pair through the pipeline so later
    requests are cache hits.
    """

    def __init__(
        self,
        pipeline: ThumbnailPipeline,
        dry_run: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize warmer.

        Args:
            pipeline: Pipeline used to generate and store thumbnails
            dry_run: If True, only parse requests and report what would be done
            logger: Optional logger instance
        """
        self.pipeline = pipeline
        self.dry_run = dry_run
        self.logger = logger or logging.getLogger(__name__)
        self.stats = WarmStats()
        self._stop_requested = False

    def stop(self) -> None:
        """Request the warmer to stop after the current thumbnail."""
        self._stop_requested = True

    def warm(self, tokens: Iterable[str], sources: Iterable[str]) -> WarmStats:
        """
        Warm the thumbnail store.

        Args:
            tokens: Transformation tokens, e.g. ['m200x200', 'cc100x100']
            sources: Source keys in the image store

        Returns:
            WarmStats with results
        """
        tokens = list(tokens)
        requests = [(token, source) for source in sources for token in tokens]
        self.stats = WarmStats(total_to_process=len(requests))

        mode_str = " [DRY RUN]" if self.dry_run else ""
        self.logger.info(f"Starting warm-up: {len(requests)} thumbnails{mode_str}")

        for token, source in requests:
            if self._stop_requested:
                self.logger.info("Stop requested, halting warm-up")
                break
            self._process(token, source)

        self.logger.info(
            f"Warm-up complete: {self.stats.generated} generated, "
            f"{self.stats.cached} cached, {self.stats.errors} errors "
            f"({self.stats.elapsed_seconds:.1f}s)"
        )
        return self.stats

    def _process(self, token: str, source: str) -> bool:
        try:
            if self.dry_run:
                descriptor = self.pipeline.parser.parse(token, source)
                self.logger.info(f"[DRY RUN] Would warm: {descriptor.cache_key}")
                self.stats.generated += 1
                return True

            thumb = self.pipeline.serve(token, source)
            if not thumb.persisted:
                raise StorageError(f"Thumbnail was not stored: {thumb.cache_key}")
            if thumb.cached:
                self.stats.cached += 1
            else:
                self.stats.generated += 1
                self.stats.bytes_generated += len(thumb.data)
                self.logger.info(
                    f"Generated: {thumb.cache_key} ({len(thumb.data)} bytes) "
                    f"[{self.stats.completed_count}/{self.stats.total_to_process}]"
                )
            return True

        except ThumbsError as e:
            error_msg = f"Error warming {token}/{source}: {e}"
            self.logger.error(error_msg)
            self.stats.errors += 1
            self.stats.error_details.append(error_msg)
            return False
