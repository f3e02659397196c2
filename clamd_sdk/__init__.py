"""clamd SDK: Python client for the ClamAV daemon's TCP protocol."""

from clamd_sdk.async_client import AsyncClamdClient
from clamd_sdk.cancellation import CancellationToken
from clamd_sdk.client import ClamdClient
from clamd_sdk.config import ClamdConfig
from clamd_sdk.exceptions import (
    ClamdConnectionError,
    ClamdError,
    ClamdErrorKind,
    ClamdFileNotFoundError,
    ClamdInvalidArgumentError,
    ClamdStreamSizeExceededError,
    ClamdTimeoutError,
)
from clamd_sdk.models import InfectedFile, ScanResult, ScanVerdict, ServerStats
from clamd_sdk.parsers import parse_scan_result, parse_stats

__all__ = [
    "AsyncClamdClient",
    "ClamdClient",
    "ClamdConfig",
    "CancellationToken",
    "ScanResult",
    "ScanVerdict",
    "InfectedFile",
    "ServerStats",
    "parse_scan_result",
    "parse_stats",
    "ClamdError",
    "ClamdErrorKind",
    "ClamdInvalidArgumentError",
    "ClamdFileNotFoundError",
    "ClamdConnectionError",
    "ClamdTimeoutError",
    "ClamdStreamSizeExceededError",
]
