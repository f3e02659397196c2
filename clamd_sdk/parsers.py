"""Turn clamd's free-text replies into typed results.

Neither parser raises on unexpected text: an unrecognised scan reply is
classified as :attr:`ScanVerdict.UNKNOWN` and unrecognised STATS lines
land in :attr:`ServerStats.additional_stats`.
"""

from __future__ import annotations

import re
from types import MappingProxyType

from clamd_sdk.exceptions import ClamdInvalidArgumentError
from clamd_sdk.models import InfectedFile, ScanResult, ScanVerdict, ServerStats

_LINE_SPLIT = re.compile(r"[\r\n]")
_FOUND_MARKER = re.compile(r" found", re.IGNORECASE)

# STATS key -> (ServerStats field, parse as int)
_STATS_FIELDS: dict[str, tuple[str, bool]] = {
    "POOLS": ("pools", True),
    "STATE": ("state", False),
    "THREADS": ("threads", True),
    "MAXTHREADS": ("max_threads", True),
    "IDLETHREADS": ("idle_threads", True),
    "QUEUESIZE": ("queue_size", True),
    "MAXQUEUESIZE": ("max_queue_size", True),
    "SCANNED": ("scanned_items", True),
    "FOUND": ("found_items", True),
    "MEMUSAGE": ("memory_usage", True),
    "VIRUSES": ("virus_signatures", True),
}


def _lines(text: str) -> list[str]:
    return [line for line in _LINE_SPLIT.split(text) if line]


def parse_scan_result(raw: str | None) -> ScanResult:
    """Classify a scan reply.

    Rules are applied in order, case-insensitively, to the whole text:
    ends with ``ok`` -> clean, ends with ``error`` -> error, contains
    ``found`` -> virus detected, anything else -> unknown.

    Args:
        raw: Reply text with the trailing NUL already removed.

    Raises:
        ClamdInvalidArgumentError: If *raw* is ``None``.
    """
    if raw is None:
        raise ClamdInvalidArgumentError("raw", "Raw scan response cannot be None.")

    lowered = raw.lower()
    if lowered.endswith("ok"):
        return ScanResult(raw=raw, verdict=ScanVerdict.CLEAN)
    if lowered.endswith("error"):
        return ScanResult(raw=raw, verdict=ScanVerdict.ERROR)
    if "found" in lowered:
        return ScanResult(
            raw=raw,
            verdict=ScanVerdict.VIRUS_DETECTED,
            infected_files=tuple(_parse_infected_files(raw)),
        )
    return ScanResult(raw=raw, verdict=ScanVerdict.UNKNOWN)


def _parse_infected_files(raw: str) -> list[InfectedFile]:
    infected: list[InfectedFile] = []
    for line in _lines(raw):
        if not line.lower().endswith("found"):
            continue

        markers = list(_FOUND_MARKER.finditer(line))
        if not markers or markers[-1].start() == 0:
            continue

        # the file name may itself contain colons (C:\...), the virus name never does
        file_part = line[: markers[-1].start()]
        colon = file_part.rfind(":")
        if colon < 0:
            continue

        infected.append(
            InfectedFile(
                file_name=file_part[:colon].strip(),
                virus_name=file_part[colon + 1 :].strip(),
            )
        )
    return infected


def parse_stats(raw: str | None) -> ServerStats:
    """Parse the reply of the STATS command.

    Each ``KEY: VALUE`` line whose key is known (case-insensitive) and whose
    value has the expected type sets the matching field. Every other
    ``KEY: VALUE`` line is kept verbatim in ``additional_stats``. Lines
    without a colon are skipped.
    """
    if raw is None or not raw.strip():
        return ServerStats(raw=raw or "")

    values: dict[str, object] = {}
    additional: dict[str, str] = {}

    for line in _lines(raw):
        key, sep, value = line.partition(":")
        key = key.strip()
        value = value.strip()
        if not sep or not key or not value:
            continue

        known = _STATS_FIELDS.get(key.upper())
        if known is None:
            additional[key] = value
            continue

        field_name, numeric = known
        if not numeric:
            values[field_name] = value
            continue
        try:
            values[field_name] = int(value)
        except ValueError:
            additional[key] = value

    return ServerStats(raw=raw, additional_stats=MappingProxyType(additional), **values)  # type: ignore[arg-type]
