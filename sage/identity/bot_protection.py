"""Detection of challenge pages served with 200 OK instead of real content."""

import re
from typing import Optional

BOT_PROTECTION_TITLES = [
    "access denied",
    "just a moment",
    "checking your browser",
    "attention required",
    "cloudflare",
    "403 forbidden",
    "403 error",
    "captcha",
    "robot or human",
    "please verify",
    "security check",
    "bot protection",
    "are you a robot",
    "verify you are human",
]

BOT_PROTECTION_CONTENT = [
    "cloudflare",
    "ray id",
    "cf-ray",
    "perimeterx",
    "datadome",
    "imperva",
    "recaptcha",
    "hcaptcha",
    "please enable cookies",
    "enable javascript and cookies",
    "checking your browser before accessing",
]

MIN_PAGE_LENGTH = 500
CONTENT_SAMPLE = 3000

_TITLE = re.compile(r"<title[^>]*>([\s\S]*?)</title>", re.I)
_OG_TITLE = re.compile(
    r"<meta[^>]+property=[\"']og:title[\"'][^>]+content=[\"']([^\"']+)[\"'][^>]*>", re.I
)


def bot_protection_signal(html: Optional[str]) -> Optional[str]:
    """Name of the first challenge signal found, or None for a real page."""
    if not html or len(html) < 100:
        return "empty_response"

    lower = html.lower()
    for label, pattern in (("title", _TITLE), ("og_title", _OG_TITLE)):
        match = pattern.search(lower)
        if match and any(phrase in match.group(1).strip() for phrase in BOT_PROTECTION_TITLES):
            return f"{label}_challenge"

    sample = lower[:CONTENT_SAMPLE]
    if sum(1 for phrase in BOT_PROTECTION_CONTENT if phrase in sample) >= 2:
        return "challenge_content"

    if len(html) < MIN_PAGE_LENGTH:
        return "short_response"
    return None


def is_bot_protection_page(html: Optional[str]) -> bool:
    return bot_protection_signal(html) is not None


def is_bot_protection_name(name: Optional[str]) -> bool:
    """A product name that is really a challenge-page title."""
    if not name:
        return False
    lower = name.lower().strip()
    return any(phrase in lower for phrase in BOT_PROTECTION_TITLES)
