"""Tests for clamd_sdk.models."""

import dataclasses

import pytest

from clamd_sdk.exceptions import ClamdInvalidArgumentError
from clamd_sdk.models import InfectedFile, ScanResult, ScanVerdict, ServerStats


class TestScanResult:
    def test_defaults(self):
        r = ScanResult(raw="stream: OK", verdict=ScanVerdict.CLEAN)
        assert r.infected_files == ()
        assert r.is_clean is True
        assert r.is_infected is False

    def test_infected(self):
        files = (InfectedFile("stream", "Eicar"),)
        r = ScanResult(raw="stream: Eicar FOUND", verdict=ScanVerdict.VIRUS_DETECTED, infected_files=files)
        assert r.is_infected is True
        assert r.infected_files[0].virus_name == "Eicar"

    def test_frozen(self):
        r = ScanResult(raw="stream: OK", verdict=ScanVerdict.CLEAN)
        with pytest.raises(dataclasses.FrozenInstanceError):
            r.verdict = ScanVerdict.ERROR  # type: ignore[misc]

    def test_none_raw_rejected(self):
        with pytest.raises(ClamdInvalidArgumentError) as info:
            ScanResult(raw=None, verdict=ScanVerdict.CLEAN)  # type: ignore[arg-type]
        assert info.value.argument == "raw"

    @pytest.mark.parametrize("verdict", [ScanVerdict.CLEAN, ScanVerdict.ERROR, ScanVerdict.UNKNOWN])
    def test_infected_files_need_detection_verdict(self, verdict: ScanVerdict):
        with pytest.raises(ClamdInvalidArgumentError) as info:
            ScanResult(raw="x: OK", verdict=verdict, infected_files=(InfectedFile("a", "b"),))
        assert info.value.argument == "infected_files"

    def test_detection_without_files_allowed(self):
        r = ScanResult(raw="found nothing useful here", verdict=ScanVerdict.VIRUS_DETECTED)
        assert r.is_infected is True
        assert r.infected_files == ()

    def test_verdict_values(self):
        assert {v.value for v in ScanVerdict} == {"clean", "virus_detected", "error", "unknown"}


class TestInfectedFile:
    def test_fields(self):
        f = InfectedFile(file_name="/tmp/x", virus_name="Win.Test.EICAR_HDB-1")
        assert f.file_name == "/tmp/x"
        assert f.virus_name == "Win.Test.EICAR_HDB-1"

    def test_frozen(self):
        f = InfectedFile("/tmp/x", "Eicar")
        with pytest.raises(dataclasses.FrozenInstanceError):
            f.file_name = "/tmp/y"  # type: ignore[misc]


class TestServerStats:
    def test_defaults(self):
        s = ServerStats()
        assert s.pools == 0
        assert s.state == ""
        assert s.last_database_update is None
        assert dict(s.additional_stats) == {}

    def test_frozen(self):
        s = ServerStats()
        with pytest.raises(dataclasses.FrozenInstanceError):
            s.pools = 3  # type: ignore[misc]
