"""Pattern library: named, purely local PHI detectors.

Each detector maps a string to its raw matches. Detectors are independent;
library order only decides which findings are reported first for a field.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

NAME_LIKE = "name_like"
IDENTIFIER_NUMBER = "identifier_number"
BIRTH_DATE_LIKE = "birth_date_like"
NATIONAL_ID_LIKE = "national_id_like"
PHONE_LIKE = "phone_like"
PERSONAL_EMAIL = "personal_email"
EXPLICIT_CALENDAR_DATE = "explicit_calendar_date"
STREET_ADDRESS_LIKE = "street_address_like"

_MONTHS = (
    "January|February|March|April|May|June|July|August|September|October|November|December"
)
_STREET_SUFFIXES = "Street|St|Avenue|Ave|Road|Rd|Boulevard|Blvd|Lane|Ln|Drive|Dr|Court|Ct|Way"

# Every adjacent pair of capitalized words, overlapping: "Mary Ann Lee" yields
# "Mary Ann" and "Ann Lee". Pairs are allow-listed one at a time, so clinical
# vocabulary next to a name never hides the name.
_NAME_LIKE_RE = re.compile(r"\b(?=([A-Z][a-z]{2,}\s+[A-Z][a-z]{2,})\b)")
_IDENTIFIER_RE = re.compile(
    r"(?:\b(?:mrn|id|record|medical\s*record)|#)\s*[:#]?\s*\d{6,}", re.IGNORECASE
)
_BIRTH_DATE_RE = re.compile(
    r"\b(?:dob|birthday|birth|born)\s*:?\s*\d{1,2}[/-]\d{1,2}[/-]\d{2,4}\b", re.IGNORECASE
)
_NATIONAL_ID_RE = re.compile(r"\b\d{3}[-\s]?\d{2}[-\s]?\d{4}\b")
_PHONE_RE = re.compile(r"\b\d{3}[-.\s]?\d{3}[-.\s]?\d{4}\b")
_CALENDAR_DATE_RE = re.compile(rf"\b(?:{_MONTHS})\s+\d{{1,2}},?\s+\d{{4}}\b", re.IGNORECASE)
# Street word must be capitalized; the suffix is matched case-insensitively.
_ADDRESS_RE = re.compile(rf"\b\d+\s+[A-Z][a-z]+\s+(?i:{_STREET_SUFFIXES})\b")


def _email_pattern(institutional_domains: Iterable[str]) -> re.Pattern[str]:
    prefixes = [re.escape(domain) for domain in institutional_domains if domain]
    guard = f"(?!(?:{'|'.join(prefixes)}))" if prefixes else ""
    return re.compile(
        rf"\b[A-Za-z0-9._%+-]+@{guard}[A-Za-z0-9.-]+\.[A-Za-z]{{2,}}\b", re.IGNORECASE
    )


@dataclass(frozen=True)
class Detector:
    name: str
    label: str
    pattern: re.Pattern[str]
    # Capture group holding the match text; lookahead patterns report group 1.
    group: int = 0

    def find(self, text: str) -> list[str]:
        return [match.group(self.group) for match in self.pattern.finditer(text)]


@dataclass(frozen=True)
class PatternLibrary:
    detectors: tuple[Detector, ...]

    def __iter__(self):
        return iter(self.detectors)

    def __len__(self) -> int:
        return len(self.detectors)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(detector.name for detector in self.detectors)

    def get(self, name: str) -> Detector:
        for detector in self.detectors:
            if detector.name == name:
                return detector
        raise KeyError(name)


def build_pattern_library(institutional_domains: Iterable[str] = ()) -> PatternLibrary:
    """Build the fixed detector table.

    ``institutional_domains`` are domain prefixes whose email addresses are
    never reported (``hospital`` allows ``@hospital.org``).
    """
    return PatternLibrary(
        detectors=(
            Detector(NAME_LIKE, "Full-name-like token pair", _NAME_LIKE_RE, group=1),
            Detector(IDENTIFIER_NUMBER, "Medical record / identifier number", _IDENTIFIER_RE),
            Detector(BIRTH_DATE_LIKE, "Date of birth", _BIRTH_DATE_RE),
            Detector(NATIONAL_ID_LIKE, "National id (SSN-like)", _NATIONAL_ID_RE),
            Detector(PHONE_LIKE, "Phone number", _PHONE_RE),
            Detector(PERSONAL_EMAIL, "Non-institutional email address", _email_pattern(institutional_domains)),
            Detector(EXPLICIT_CALENDAR_DATE, "Explicit calendar date", _CALENDAR_DATE_RE),
            Detector(STREET_ADDRESS_LIKE, "Street address", _ADDRESS_RE),
        )
    )


__all__ = [
    "BIRTH_DATE_LIKE",
    "Detector",
    "EXPLICIT_CALENDAR_DATE",
    "IDENTIFIER_NUMBER",
    "NAME_LIKE",
    "NATIONAL_ID_LIKE",
    "PERSONAL_EMAIL",
    "PHONE_LIKE",
    "PatternLibrary",
    "STREET_ADDRESS_LIKE",
    "build_pattern_library",
]
