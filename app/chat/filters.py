"""
Contact-info filter for chat messages.

Detects attempts to move the conversation off the platform: phone
numbers (including spelled-out evasions), emails, URLs, social handles,
solicitation keywords and long digit runs.

Policy:
    - Detected spans are replaced with REDACTION_TOKEN, except keywords
      (flagged only) and URLs once the escrow is active
    - Before the escrow is active any flag blocks the whole message
    - After the escrow is active messages always deliver, sanitized

Usage:
    from chat.filters import filter_content

    result = filter_content("call me 0812-3456-7890", escrow_active=False)
    result.is_blocked          # True
    result.sanitized_content   # ""
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from chat.models import FlagType

REDACTION_TOKEN = "[FILTERED]"

# Indonesian phone numbers, local and international, plus spelled-out "08"
PHONE_PATTERNS = [
    re.compile(r"(\+62|62|0)[\s\-.]?8\d{1,2}[\s\-.]?\d{3,4}[\s\-.]?\d{3,4}", re.IGNORECASE),
    re.compile(r"(\+62|62|0)[\s\-.]?\d{2,3}[\s\-.]?\d{3,4}[\s\-.]?\d{3,4}", re.IGNORECASE),
    re.compile(r"zero\s*eight", re.IGNORECASE),
    re.compile(r"nol\s*delapan", re.IGNORECASE),
]

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}", re.IGNORECASE)

URL_PATTERNS = [
    re.compile(r"https?://\S+", re.IGNORECASE),
    re.compile(r"www\.\S+", re.IGNORECASE),
    re.compile(r"[a-zA-Z0-9\-]+\.(com|net|org|io|co\.id|id|me|xyz|dev)\S*", re.IGNORECASE),
]

SOCIAL_HANDLE_PATTERN = re.compile(r"@[a-zA-Z0-9_]{3,}", re.IGNORECASE)

# Off-platform solicitation phrases (Indonesian and English)
KEYWORD_BLACKLIST = [
    "whatsapp", "whats app", "wa", "w.a", "w a",
    "line", "line@", "lineid",
    "telegram", "tele", "tele@",
    "instagram", "ig", "ig:", "ignya",
    "facebook", "fb",
    "twitter", "x.com",
    "discord",
    "dm", "dm me", "dm aja",
    "hubungi", "kontak", "contact me",
    "langsung", "di luar", "diluar",
    "outside", "off platform", "off-platform",
    "nomor", "nomer", "no hp", "no. hp", "nohp",
    "chat di", "chat lewat", "lewat wa",
]  # fmt: skip

# Short keywords only count as whole words: "wa" must not match "want"
WHOLE_WORD_KEYWORDS = {"wa", "w a", "line", "tele", "ig", "fb", "dm"}


def _keyword_pattern(keyword: str) -> re.Pattern:
    escaped = re.escape(keyword)
    if keyword in WHOLE_WORD_KEYWORDS:
        escaped = rf"\b{escaped}\b"
    return re.compile(escaped, re.IGNORECASE)


KEYWORD_PATTERNS = [(keyword, _keyword_pattern(keyword)) for keyword in KEYWORD_BLACKLIST]

NUMBER_RUN_PATTERN = re.compile(r"\d[\d\s\-.]{7,}\d")
MIN_NUMBER_RUN_DIGITS = 8


@dataclass(frozen=True)
class ContentFlag:
    flag_type: str
    pattern: str


@dataclass
class FilterResult:
    """
    Outcome of filtering one message.

    Attributes:
        is_blocked: Message must not be delivered
        flags: Every detection, in pass order
        sanitized_content: Deliverable text ("" when blocked)
    """

    is_blocked: bool
    flags: list[ContentFlag] = field(default_factory=list)
    sanitized_content: str = ""

    @property
    def was_filtered(self) -> bool:
        return bool(self.flags)

    @property
    def reason(self) -> str:
        """Distinct flag types in detection order, comma-separated."""
        return ",".join(dict.fromkeys(flag.flag_type for flag in self.flags))


def _redact_pass(content, sanitized, pattern, flag_type, flags, redact=True):
    """Flag every match in the original text; redact in the sanitized text."""
    for match in pattern.finditer(content):
        flags.append(ContentFlag(flag_type, match.group(0)))
    if redact:
        sanitized = pattern.sub(REDACTION_TOKEN, sanitized)
    return sanitized


def filter_content(content: str, escrow_active: bool) -> FilterResult:
    """
    Run every detection pass over a message.

    Matches are always taken from the original content, so one span can
    be flagged by several passes (an email also yields a handle).

    Args:
        content: Message text as typed
        escrow_active: Whether the project's escrow is funded

    Returns:
        FilterResult
    """
    flags: list[ContentFlag] = []
    sanitized = content

    for pattern in PHONE_PATTERNS:
        sanitized = _redact_pass(content, sanitized, pattern, FlagType.PHONE, flags)

    sanitized = _redact_pass(content, sanitized, EMAIL_PATTERN, FlagType.EMAIL, flags)

    for pattern in URL_PATTERNS:
        sanitized = _redact_pass(
            content, sanitized, pattern, FlagType.URL, flags, redact=not escrow_active
        )

    sanitized = _redact_pass(
        content, sanitized, SOCIAL_HANDLE_PATTERN, FlagType.SOCIAL_MEDIA, flags
    )

    # Keywords are flagged, never redacted
    for keyword, pattern in KEYWORD_PATTERNS:
        if pattern.search(content):
            flags.append(ContentFlag(FlagType.KEYWORD, keyword))

    for match in NUMBER_RUN_PATTERN.finditer(content):
        run = match.group(0)
        if sum(ch.isdigit() for ch in run) >= MIN_NUMBER_RUN_DIGITS:
            flags.append(ContentFlag(FlagType.PHONE, run))
            sanitized = sanitized.replace(run, REDACTION_TOKEN, 1)

    is_blocked = not escrow_active and bool(flags)
    return FilterResult(
        is_blocked=is_blocked,
        flags=flags,
        sanitized_content="" if is_blocked else sanitized,
    )
