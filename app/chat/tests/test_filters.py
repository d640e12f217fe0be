"""
Tests for the contact-info filter.

Pure function tests: no database access.
"""

import pytest

from chat.filters import REDACTION_TOKEN, filter_content
from chat.models import FlagType


def flag_types(result):
    return [flag.flag_type for flag in result.flags]


class TestCleanMessages:
    @pytest.mark.parametrize(
        "content",
        [
            "Hello, when can you start?",
            "I want to deliver the first draft on Friday",
            "The budget covers three revisions",
        ],
    )
    def test_plain_text_passes(self, content):
        result = filter_content(content, escrow_active=False)

        assert result.is_blocked is False
        assert result.was_filtered is False
        assert result.sanitized_content == content
        assert result.reason == ""


class TestBeforeEscrow:
    def test_mixed_contact_info_is_blocked(self):
        """Should flag every detector and deliver nothing."""
        result = filter_content("contact me at 08123456789 or foo@bar.com", escrow_active=False)

        assert result.is_blocked is True
        assert result.sanitized_content == ""
        assert result.reason == "PHONE,EMAIL,URL,SOCIAL_MEDIA,KEYWORD"

    @pytest.mark.parametrize(
        "content",
        [
            "call 0812-3456-7890",
            "my number +62 812 3456 7890",
            "zero eight one two three",
            "nol delapan satu dua",
        ],
    )
    def test_phone_numbers(self, content):
        result = filter_content(content, escrow_active=False)

        assert result.is_blocked is True
        assert FlagType.PHONE in flag_types(result)

    def test_email(self):
        result = filter_content("mail budi@example.co.id", escrow_active=False)

        assert FlagType.EMAIL in flag_types(result)
        assert result.is_blocked is True

    @pytest.mark.parametrize(
        "content", ["see https://example.com/portfolio", "www.myportfolio.net", "shop.xyz"]
    )
    def test_urls(self, content):
        result = filter_content(content, escrow_active=False)

        assert FlagType.URL in flag_types(result)
        assert result.is_blocked is True

    def test_social_handle(self):
        result = filter_content("follow @designer_budi", escrow_active=False)

        assert flag_types(result) == [FlagType.SOCIAL_MEDIA]

    def test_short_keyword_as_word(self):
        result = filter_content("chat me on wa please", escrow_active=False)

        assert result.is_blocked is True
        assert [flag.pattern for flag in result.flags] == ["wa"]

    @pytest.mark.parametrize(
        ("content", "keyword"),
        [("ok, add me on wa", "wa"), ("see my IG", "ig"), ("just dm", "dm")],
    )
    def test_short_keyword_at_end_of_message(self, content, keyword):
        """Should catch a short keyword with nothing after it."""
        result = filter_content(content, escrow_active=False)

        assert result.is_blocked is True
        assert [flag.pattern for flag in result.flags] == [keyword]

    @pytest.mark.parametrize(
        "content", ["I want it by the deadline", "Figma file, admin access", "Wait for the demo"]
    )
    def test_short_keyword_inside_words_allowed(self, content):
        result = filter_content(content, escrow_active=False)

        assert result.is_blocked is False

    def test_long_digit_run(self):
        result = filter_content("account 1234 5678 90", escrow_active=False)

        assert flag_types(result) == [FlagType.PHONE]
        assert result.flags[0].pattern == "1234 5678 90"

    def test_short_digit_run_allowed(self):
        result = filter_content("ready in 3 days, 2 revisions", escrow_active=False)

        assert result.is_blocked is False


class TestAfterEscrow:
    def test_phone_is_redacted_not_blocked(self):
        result = filter_content("call 0812-3456-7890 please", escrow_active=True)

        assert result.is_blocked is False
        assert result.was_filtered is True
        assert result.sanitized_content == f"call {REDACTION_TOKEN} please"

    def test_urls_are_flagged_but_kept(self):
        """Should let links through once the escrow is funded."""
        content = "Repo is at https://github.com/acme/app"

        result = filter_content(content, escrow_active=True)

        assert result.is_blocked is False
        assert FlagType.URL in flag_types(result)
        assert result.sanitized_content == content

    def test_email_is_redacted(self):
        result = filter_content("send it to budi@example.com", escrow_active=True)

        assert "budi@example.com" not in result.sanitized_content
        assert REDACTION_TOKEN in result.sanitized_content

    def test_keywords_are_flagged_only(self):
        content = "let's use telegram"

        result = filter_content(content, escrow_active=True)

        assert flag_types(result) == [FlagType.KEYWORD]
        assert result.sanitized_content == content
