"""Tests for aumai_llmrun.errors."""

from __future__ import annotations

import pytest

from aumai_llmrun.errors import (
    DecodeError,
    LlmrunError,
    StatusError,
    TransportError,
    raise_for_error,
)


# ---------------------------------------------------------------------------
# StatusError
# ---------------------------------------------------------------------------


class TestStatusError:
    def test_str_includes_reason_and_message(self) -> None:
        error = StatusError(404, "model not found")
        assert str(error) == "404 Not Found: model not found"

    def test_str_without_message(self) -> None:
        assert str(StatusError(500)) == "500 Internal Server Error"

    def test_unknown_code_has_no_phrase(self) -> None:
        assert str(StatusError(499, "closed")) == "499: closed"

    def test_attributes(self) -> None:
        error = StatusError(502, "bad gateway")
        assert error.code == 502
        assert error.message == "bad gateway"

    def test_hierarchy(self) -> None:
        for cls in (StatusError, DecodeError, TransportError):
            assert issubclass(cls, LlmrunError)


# ---------------------------------------------------------------------------
# raise_for_error
# ---------------------------------------------------------------------------


class TestRaiseForError:
    def test_embedded_error_wins_over_success_status(self) -> None:
        with pytest.raises(StatusError) as info:
            raise_for_error(b'{"code":404,"error":"model not found"}', 200)
        assert info.value.code == 404
        assert info.value.message == "model not found"

    def test_embedded_error_wins_over_failing_status(self) -> None:
        with pytest.raises(StatusError) as info:
            raise_for_error('{"code":401,"error":"unauthorized"}', 500)
        assert info.value.code == 401

    def test_failing_status_without_embedded_code(self) -> None:
        with pytest.raises(StatusError) as info:
            raise_for_error(b'{"error":"registry down"}', 502)
        assert info.value.code == 502
        assert info.value.message == "registry down"

    def test_embedded_code_below_400_does_not_mask_status(self) -> None:
        with pytest.raises(StatusError) as info:
            raise_for_error(b'{"code":200,"error":"odd"}', 503)
        assert info.value.code == 503
        assert info.value.message == "odd"

    def test_failing_status_with_empty_body(self) -> None:
        with pytest.raises(StatusError) as info:
            raise_for_error(b"", 500)
        assert info.value.code == 500
        assert info.value.message == ""

    def test_failing_status_with_non_json_body(self) -> None:
        with pytest.raises(StatusError) as info:
            raise_for_error(b"<html>Bad Gateway</html>\n", 502)
        assert info.value.code == 502
        assert info.value.message == "<html>Bad Gateway</html>"

    def test_success(self) -> None:
        raise_for_error(b'{"status":"success"}', 200)

    def test_empty_body_success(self) -> None:
        raise_for_error(b"", 200)

    def test_malformed_json_is_decode_error(self) -> None:
        with pytest.raises(DecodeError):
            raise_for_error(b'{"status": ', 200)

    def test_decode_error_is_not_status_error(self) -> None:
        with pytest.raises(LlmrunError) as info:
            raise_for_error(b"not json", 200)
        assert not isinstance(info.value, StatusError)
