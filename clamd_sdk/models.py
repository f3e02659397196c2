"""Data models for clamd responses."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType

from clamd_sdk.exceptions import ClamdInvalidArgumentError


class ScanVerdict(str, Enum):
    """Classified outcome of a scan response."""

    CLEAN = "clean"
    VIRUS_DETECTED = "virus_detected"
    ERROR = "error"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class InfectedFile:
    """One detection reported by the daemon.

    Attributes:
        file_name: Path as reported by clamd (``stream`` for INSTREAM).
        virus_name: Signature name, e.g. ``"Win.Test.EICAR_HDB-1"``.
    """

    file_name: str
    virus_name: str


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Result of a SCAN-type or INSTREAM command.

    Usually built with :func:`clamd_sdk.parsers.parse_scan_result` (or
    :meth:`from_raw`). ``infected_files`` may only be non-empty when the
    verdict is :attr:`ScanVerdict.VIRUS_DETECTED`; a detection whose lines
    could not be parsed has an empty list.

    Attributes:
        raw: Response text as received, without the trailing NUL.
        verdict: Classified outcome.
        infected_files: Detections in the order clamd reported them.

    Raises:
        ClamdInvalidArgumentError: If *raw* is ``None`` or detections are
            given with a verdict other than ``VIRUS_DETECTED``.
    """

    raw: str
    verdict: ScanVerdict
    infected_files: tuple[InfectedFile, ...] = ()

    def __post_init__(self) -> None:
        if self.raw is None:
            raise ClamdInvalidArgumentError("raw", "Raw scan response cannot be None.")
        if self.infected_files and self.verdict is not ScanVerdict.VIRUS_DETECTED:
            raise ClamdInvalidArgumentError(
                "infected_files",
                f"Infected files require verdict {ScanVerdict.VIRUS_DETECTED.value!r}, got {self.verdict.value!r}.",
            )

    @classmethod
    def from_raw(cls, raw: str) -> ScanResult:
        from clamd_sdk.parsers import parse_scan_result

        return parse_scan_result(raw)

    @property
    def is_clean(self) -> bool:
        return self.verdict is ScanVerdict.CLEAN

    @property
    def is_infected(self) -> bool:
        return self.verdict is ScanVerdict.VIRUS_DETECTED

    def __str__(self) -> str:
        return self.raw


@dataclass(frozen=True, slots=True)
class ServerStats:
    """Parsed output of the STATS command.

    Numeric fields default to ``0`` and ``state`` to ``""`` when clamd does
    not report them. Lines that do not map onto a field are kept in
    ``additional_stats`` under their original key.
    """

    raw: str = ""
    pools: int = 0
    state: str = ""
    threads: int = 0
    max_threads: int = 0
    idle_threads: int = 0
    queue_size: int = 0
    max_queue_size: int = 0
    scanned_items: int = 0
    found_items: int = 0
    memory_usage: int = 0
    virus_signatures: int = 0
    last_database_update: datetime | None = None
    additional_stats: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def __str__(self) -> str:
        return (
            f"State: {self.state}, Threads: {self.threads}/{self.max_threads}, "
            f"Queue: {self.queue_size}/{self.max_queue_size}, "
            f"Scanned: {self.scanned_items}, Found: {self.found_items}"
        )
