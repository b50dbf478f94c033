"""Progress counters and messages for a batch of archives."""

from __future__ import annotations

import math
import threading
from datetime import timedelta

import arrow

ONE_MINUTE = 60
ONE_HOUR = 3600
PROGRESS_BAR_WIDTH = 16


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def display_duration(duration: timedelta) -> str:
    """
    Format a duration for humans, e.g. `1 min, 15 sec` or `2 hours, 5 min`.

    Sub-second durations are shown as `1 sec`.
    """
    seconds = int(duration.total_seconds())

    if seconds < ONE_MINUTE:
        return f"{max(seconds, 1)} sec"

    if seconds < ONE_HOUR:
        minutes, leftover_seconds = divmod(seconds, ONE_MINUTE)
        if leftover_seconds == 0:
            return f"{minutes} min"
        return f"{minutes} min, {leftover_seconds} sec"

    hours = seconds // ONE_HOUR
    leftover_minutes = (seconds % ONE_HOUR) // ONE_MINUTE
    hours_text = f"{hours} {_plural(hours, 'hour', 'hours')}"
    if leftover_minutes == 0:
        return hours_text
    return f"{hours_text}, {leftover_minutes} min"


def format_count(count: int, singular: str, plural: str) -> str:
    """Format a count with thousands separators and the matching noun."""
    return f"{count:,} {_plural(count, singular, plural)}"


class ProgressTracker:
    """
    Tracks how far a batch has got.

    Every method is safe to call from worker threads.
    """

    def __init__(self, total: int) -> None:
        """
        Initialize the ProgressTracker.

        :param total: The number of archives in the batch.
        """
        self.total = total
        self.processed = 0
        self.errors = 0
        self._index = 1
        self._lock = threading.Lock()
        self._started_at = arrow.utcnow()

    def elapsed(self) -> timedelta:
        """Return the time since the tracker was created."""
        return arrow.utcnow() - self._started_at

    def start(self, archive_name: str) -> str:
        """
        Claim the next position in the batch and describe it.

        :param archive_name: The archive about to be processed.
        :return: The progress message for the archive.
        """
        with self._lock:
            index = self._index
            self._index += 1
            elapsed = self.elapsed()

        return self._describe(index, archive_name, elapsed)

    def record_processed(self) -> None:
        """Count one archive processed successfully."""
        with self._lock:
            self.processed += 1

    def record_error(self) -> None:
        """Count one archive that failed."""
        with self._lock:
            self.errors += 1

    def completion_message(self) -> str:
        """Describe the finished batch."""
        with self._lock:
            processed = self.processed
            errors = self.errors

        errors_text = "" if errors == 0 else f" ({format_count(errors, 'error', 'errors')})"
        return f"Processing {format_count(processed, 'file', 'files')} completed{errors_text}."

    def _describe(self, index: int, archive_name: str, elapsed: timedelta) -> str:
        fraction = min(max((index - 1.0) / self.total, 0.0), 1.0) if self.total else 1.0
        bars = "=" * math.floor(PROGRESS_BAR_WIDTH * fraction)
        bar = bars.ljust(PROGRESS_BAR_WIDTH)

        timing = f"{display_duration(elapsed)} elapsed"
        if index >= 3:  # noqa: PLR2004
            time_left = timedelta(
                seconds=elapsed.total_seconds() * (self.total - index) / index,
            )
            timing += f" <{display_duration(time_left)} left>"

        return (
            f"Processing ({index:,} of {self.total:,}) - {archive_name} | "
            f"{timing} ({100 * fraction:.1f} %) [{bar}]"
        )
