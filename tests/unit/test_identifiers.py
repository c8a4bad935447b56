"""Tests for mk_common.identifiers."""

import pytest

from src.mk_common.errors import InvalidIdentifierError
from src.mk_common.identifiers import ensure_uuid, is_valid_uuid

VALID = "0b7f3c2e-9a41-4c6e-8d1f-2a5b6c7d8e9f"


class TestIsValidUuid:
    def test_canonical_form(self) -> None:
        assert is_valid_uuid(VALID)

    def test_uppercase_accepted(self) -> None:
        assert is_valid_uuid(VALID.upper())

    @pytest.mark.parametrize(
        "value",
        ["", "not-a-uuid", VALID[:-1], "{" + VALID + "}", "urn:uuid:" + VALID, None, 42],
    )
    def test_rejects_malformed(self, value: object) -> None:
        assert not is_valid_uuid(value)


class TestEnsureUuid:
    def test_returns_lowercase(self) -> None:
        assert ensure_uuid(VALID.upper(), "item_id") == VALID

    def test_raises_validation_error(self) -> None:
        with pytest.raises(InvalidIdentifierError) as exc_info:
            ensure_uuid("'; DROP TABLE items; --", "item_id")
        assert exc_info.value.http_status == 400
        assert "item_id" in exc_info.value.message
