"""Selects the entries of an archive that make up the latest day's log."""

from __future__ import annotations

import re
import sys
from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING

from logtrim.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from logtrim.archives.log_archive import LogEntry

INTERCEPTOR_FILENAME_REGEX = re.compile(
    r"interceptor(?:\.([0-9]+)\.([0-9]+))?\.log",
    re.IGNORECASE,
)

MAIN_FILE_DAY = sys.maxsize


@dataclass(frozen=True)
class ClassifiedEntry:
    """An archive entry whose name follows the interceptor naming convention."""

    entry: LogEntry
    is_main_file: bool
    day: int
    sequence: int | None = None

    @property
    def filename(self) -> str:
        """The base filename of the classified entry."""
        return self.entry.name

    @property
    def sort_key(self) -> tuple[int, int]:
        """
        Composite (day, sequence) key for display ordering.

        Selection never uses this key; it only groups by day.
        """
        return (self.day, self.sequence if self.sequence is not None else MAIN_FILE_DAY)


def classify_entry(entry: LogEntry) -> ClassifiedEntry | None:
    """
    Classify an entry by its filename.

    :param entry: The entry to classify.
    :return: The classified entry, or None when the name does not follow the convention.
    """
    match = INTERCEPTOR_FILENAME_REGEX.fullmatch(entry.name)
    if match is None:
        return None

    day_text, sequence_text = match.groups()
    if day_text is None:
        return ClassifiedEntry(entry=entry, is_main_file=True, day=MAIN_FILE_DAY)

    return ClassifiedEntry(
        entry=entry,
        is_main_file=False,
        day=int(day_text),
        sequence=int(sequence_text),
    )


def classify_entries(entries: Iterable[LogEntry]) -> list[ClassifiedEntry]:
    """
    Classify every entry, dropping those that don't follow the naming convention.

    :param entries: The entries of one archive, in archive order.
    :return: The classified entries, in archive order.
    """
    classified = (classify_entry(entry) for entry in entries)
    return [result for result in classified if result is not None]


def select_latest_day_entries(entries: Iterable[LogEntry]) -> list[LogEntry]:
    """
    Select the entries holding the latest day's log, in concatenation order.

    The dated entries of the most recent day come first, ordered by filename as
    plain strings, followed by the undated main file. Should an archive hold
    several main files, they are all appended in archive order.

    :param entries: The entries of one archive.
    :return: The selected entries in the order their content must be concatenated.
    """
    main_files: list[ClassifiedEntry] = []
    entries_by_day: dict[int, list[ClassifiedEntry]] = defaultdict(list)

    for classified in classify_entries(entries):
        if classified.is_main_file:
            main_files.append(classified)
        else:
            entries_by_day[classified.day].append(classified)

    selected: list[LogEntry] = []
    if entries_by_day:
        max_day = max(entries_by_day)
        # Filename order is string order: interceptor.7.10.log sorts before interceptor.7.2.log
        latest_day = sorted(entries_by_day[max_day], key=lambda classified: classified.filename)
        selected.extend(classified.entry for classified in latest_day)

    if len(main_files) > 1:
        logger.warning(
            f"Found {len(main_files)} main log files, appending all of them in archive order",
        )
    selected.extend(classified.entry for classified in main_files)

    return selected
