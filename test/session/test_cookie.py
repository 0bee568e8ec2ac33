import pytest

from session.cookie import ParsedCookie, parse_session_cookie, resolve_session_id
from session.ids import FORBIDDEN_SESSION_IDS, generate_session_id, is_valid_session_id


class TestParseSessionCookie:
    def test_unsigned_value_is_the_id(self):
        assert parse_session_cookie("abc-123") == ParsedCookie(session_id="abc-123", signature=None)

    def test_signed_value_splits_on_first_separator(self):
        parsed = parse_session_cookie("abc-123.sig.with.dots")
        assert parsed.session_id == "abc-123"
        assert parsed.signature == "sig.with.dots"

    def test_trailing_separator_gives_empty_signature(self):
        assert parse_session_cookie("abc.") == ParsedCookie(session_id="abc", signature="")

    def test_empty_value(self):
        assert parse_session_cookie("") == ParsedCookie(session_id="", signature=None)


class TestResolveSessionId:
    def test_absent_cookie(self):
        assert resolve_session_id(None) is None

    def test_signed_cookie(self):
        assert resolve_session_id("test_session_id.IT8IProHCcbX10wxOHzIi5RXc65Lkxyd6t5HGWc93Xo") == "test_session_id"

    def test_unsigned_cookie(self):
        assert resolve_session_id("test_session_id") == "test_session_id"

    @pytest.mark.parametrize("value", ["", "undefined", "null", "__proto__", "  null  ", ".signature", "undefined.sig"])
    def test_sentinel_values_resolve_to_none(self, value):
        assert resolve_session_id(value) is None


def test_forbidden_ids_are_invalid():
    for value in FORBIDDEN_SESSION_IDS:
        assert not is_valid_session_id(value)
    assert not is_valid_session_id(None)
    assert is_valid_session_id("sid-1")


def test_generated_ids_are_unique_and_unsigned():
    first, second = generate_session_id(), generate_session_id()
    assert first != second
    assert "." not in first
    assert is_valid_session_id(first)
