"""Heuristic contact-detail extraction from call transcripts.

Pattern matching over free-form speech is unreliable by nature, so the form
only consumes the `LeadExtractor` interface.  A structured extractor (an LLM
call, a tool-call result) can replace `RegexLeadExtractor` without touching
the controller or the form.
"""

import logging
import re
from typing import Protocol

from voicelead.transcript import USER, Transcript

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
PHONE_RE = re.compile(r"(?<!\w)\+?\d[\d\s().-]{5,}\d(?!\w)")
NAME_RE = re.compile(
    r"\b(?i:my name is|my name's|i am|i'm|this is|call me)\s+"
    r"([A-Z][a-zA-Z'-]+(?:\s+[A-Z][a-zA-Z'-]+)?)"
)
ORG_NAME = r"([A-Z][\w&.'-]*(?:\s+[A-Z][\w&.'-]*){0,3})"
ORG_RE = re.compile(
    r"\b(?i:i work (?:at|for)|i'm with|i am with|representing|on behalf of|"
    r"my company is|our company is)\s+" + ORG_NAME
)
# "from X" / "with X" usually names a place, so only accept a company suffix.
ORG_SUFFIX_RE = re.compile(
    r"\b(?i:from|with)\s+"
    r"([A-Z][\w&.'-]*(?:\s+[A-Z][\w&.'-]*){0,3}\s+"
    r"(?:Ltd|Limited|Pvt|Private|Inc|Corp|Corporation|LLC|LLP|Co|Company|Group|"
    r"Industries|Enterprises|Technologies|Solutions|Systems)\b)"
)

# Words that follow "I'm" in ordinary speech and are not names.
NOT_NAMES = {
    "Interested", "Looking", "Calling", "Just", "Here", "Good", "Fine", "Not",
    "Sure", "From", "With", "Trying", "Wondering", "The", "A", "An",
}

SPOKEN_AT = re.compile(r"\s+at\s+", re.IGNORECASE)
SPOKEN_DOT = re.compile(r"\s+dot\s+", re.IGNORECASE)


class LeadExtractor(Protocol):
    def extract(self, transcripts: list[Transcript]) -> dict[str, str]:
        """Return any of name/email/phone/organization that could be found."""


def normalize_spoken_email(text: str) -> str:
    """Turn "john at acme dot com" into "john@acme.com"."""
    text = SPOKEN_DOT.sub(".", text)
    return SPOKEN_AT.sub("@", text)


def _digits(raw: str) -> str:
    return re.sub(r"\D", "", raw)


def extract_email(text: str) -> str:
    for candidate in (text, normalize_spoken_email(text)):
        m = EMAIL_RE.search(candidate)
        if m:
            return m.group(0).rstrip(".").lower()
    return ""


def extract_phone(text: str) -> str:
    for m in PHONE_RE.finditer(text):
        raw = m.group(0).strip()
        digits = _digits(raw)
        if 7 <= len(digits) <= 15:
            return ("+" if raw.startswith("+") else "") + digits
    return ""


def extract_name(text: str) -> str:
    for m in NAME_RE.finditer(text):
        candidate = m.group(1).strip()
        if candidate.split()[0] in NOT_NAMES:
            continue
        return candidate
    return ""


def extract_organization(text: str) -> str:
    m = ORG_RE.search(text) or ORG_SUFFIX_RE.search(text)
    if not m:
        return ""
    return m.group(1).strip().rstrip(".")


class RegexLeadExtractor:
    """Scans visitor turns, most recent first; first match per field wins."""

    def extract(self, transcripts: list[Transcript]) -> dict[str, str]:
        found: dict[str, str] = {}
        extractors = {
            "email": extract_email,
            "phone": extract_phone,
            "name": extract_name,
            "organization": extract_organization,
        }
        for t in reversed(transcripts):
            if t.speaker != USER or not t.text:
                continue
            for field_name, fn in extractors.items():
                if field_name in found:
                    continue
                value = fn(t.text)
                if value:
                    found[field_name] = value
            if len(found) == len(extractors):
                break

        if found:
            logger.debug("Extracted lead fields: %s", sorted(found))
        return found
