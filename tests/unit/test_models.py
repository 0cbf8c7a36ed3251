"""
Unit tests for domain models — CrlSet accessors and snapshot summary.
"""

from __future__ import annotations

import base64
from dataclasses import FrozenInstanceError
from datetime import UTC, datetime

import pytest

from crlget.domain.errors import MalformedHeader, UnsupportedCompression
from crlget.domain.models import CentralDirectoryHeader, CompressionMethod, CrlSet, CrlSetSnapshot
from tests.conftest import SPKI_A, SPKI_B, make_update


class TestCrlSet:
    def test_header_accessors_accept_both_spellings(self) -> None:
        chromium = CrlSet(header={"Version": 0, "Sequence": 6123, "ContentType": "CRLSet"})
        lower = CrlSet(header={"version": 1, "sequence": 7})

        assert chromium.version == 0
        assert chromium.sequence == 6123
        assert chromium.content_type == "CRLSet"
        assert lower.version == 1
        assert lower.sequence == 7
        assert lower.delta_from is None

    def test_not_after_is_utc(self) -> None:
        crlset = CrlSet(header={"NotAfter": 1_700_000_000})

        assert crlset.not_after == datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)
        assert CrlSet().not_after is None

    def test_blocked_spkis_are_decoded(self) -> None:
        crlset = CrlSet(header={"BlockedSPKIs": [base64.b64encode(SPKI_A).decode()]})

        assert crlset.blocked_spkis == (SPKI_A,)
        assert crlset.is_blocked(SPKI_A)
        assert not crlset.is_blocked(SPKI_B)

    def test_lookup_helpers(self) -> None:
        crlset = CrlSet(certificates={SPKI_A: (b"\x01", b"\x02"), SPKI_B: ()})

        assert crlset.total_serials == 2
        assert crlset.is_revoked(SPKI_A, b"\x02")
        assert not crlset.is_revoked(SPKI_B, b"\x02")
        assert not crlset.is_revoked(b"\x00" * 32, b"\x01")

    def test_base64_rendering(self) -> None:
        crlset = CrlSet(certificates={SPKI_A: (b"\x01",), SPKI_B: ()})

        rendered = crlset.as_base64()

        assert rendered == {
            base64.b64encode(SPKI_A).decode(): ["AQ=="],
            base64.b64encode(SPKI_B).decode(): [],
        }

    def test_mappings_are_read_only_copies(self) -> None:
        """
        GIVEN a CrlSet built from plain dicts
        WHEN the source dicts change or the CrlSet mappings are written to
        THEN the CrlSet keeps its contents and refuses the writes.
        """
        header = {"Sequence": 1}
        certificates = {SPKI_A: (b"\x01",)}
        crlset = CrlSet(header=header, certificates=certificates)

        header["Sequence"] = 2
        certificates[SPKI_B] = ()

        assert crlset.sequence == 1
        assert list(crlset.certificates) == [SPKI_A]
        with pytest.raises(TypeError):
            crlset.header["Sequence"] = 3  # type: ignore[index]
        with pytest.raises(TypeError):
            crlset.certificates[SPKI_B] = ()  # type: ignore[index]

    def test_equality_ignores_mapping_views(self) -> None:
        a = CrlSet(header={"Sequence": 1}, certificates={SPKI_A: (b"\x01",)})
        b = CrlSet(header={"Sequence": 1}, certificates={SPKI_A: (b"\x01",)})

        assert a == b
        assert a.certificates == {SPKI_A: (b"\x01",)}

    @pytest.mark.parametrize("blocked", [["%%%"], [None], {"a": 1}])
    def test_bad_blocked_spkis_fail_on_construction(self, blocked: object) -> None:
        with pytest.raises(MalformedHeader):
            CrlSet(header={"BlockedSPKIs": blocked})

    def test_is_frozen(self) -> None:
        with pytest.raises(FrozenInstanceError):
            CrlSet().header = {}  # type: ignore[misc]


class TestSnapshot:
    def test_summary(self) -> None:
        snapshot = CrlSetSnapshot(
            update=make_update(version="6123"),
            crx_version=2,
            public_key=b"k",
            signature=b"s",
            crlset=CrlSet(header={"Sequence": 6123}, certificates={SPKI_A: (b"\x01",)}),
        )

        summary = snapshot.summary()

        assert summary["update_version"] == "6123"
        assert summary["crx_version"] == 2
        assert summary["header"] == {"Sequence": 6123}
        assert summary["parents"] == 1
        assert summary["serials"] == 1
        assert snapshot.certificates is snapshot.crlset.certificates


class TestZipModels:
    def test_unknown_method_code(self) -> None:
        with pytest.raises(UnsupportedCompression) as exc_info:
            CompressionMethod.from_code(14)

        assert exc_info.value.method == 14

    def test_data_offset_skips_local_header_name_and_extra(self) -> None:
        header = CentralDirectoryHeader(
            offset=0, signature=b"PK\x01\x02", version_made_by=20, version_needed=20,
            flags=0, method=0, mod_time=0, mod_date=0, crc32=0, compressed_size=0,
            uncompressed_size=0, name_length=7, extra_length=4, comment_length=9,
            disk_number=0, internal_attrs=0, external_attrs=0, local_header_offset=100,
        )

        assert header.data_offset == 100 + 30 + 7 + 4
