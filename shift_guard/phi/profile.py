"""Immutable scan configuration, built once per process and passed explicitly."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from config.settings import PHISettings
from shift_guard.phi.allowlist import DEFAULT_ALLOW_LIST, AllowList, load_allow_list
from shift_guard.phi.patterns import PatternLibrary, build_pattern_library
from shift_guard.phi.ports import Finding
from shift_guard.phi.scanner import DEFAULT_EXCLUDED_FIELDS, scan_record


@dataclass(frozen=True)
class ScanProfile:
    library: PatternLibrary
    allow_list: AllowList
    excluded_fields: frozenset[str] = DEFAULT_EXCLUDED_FIELDS
    sample_max_chars: int = 20
    sample_reveal_chars: int = 4

    def scan(self, record: Any) -> list[Finding]:
        return scan_record(
            record,
            self.library,
            self.allow_list,
            excluded_fields=self.excluded_fields,
            sample_max_chars=self.sample_max_chars,
            sample_reveal_chars=self.sample_reveal_chars,
        )


def profile_from_allow_list(allow_list: AllowList = DEFAULT_ALLOW_LIST, **overrides: Any) -> ScanProfile:
    return ScanProfile(
        library=build_pattern_library(allow_list.institutional_email_domains),
        allow_list=allow_list,
        **overrides,
    )


def build_scan_profile(settings: PHISettings | None = None) -> ScanProfile:
    """Load the allow-list named by settings and build the detector table."""
    settings = settings or PHISettings()
    return profile_from_allow_list(
        load_allow_list(settings.allow_list_path),
        excluded_fields=frozenset(settings.excluded_fields),
        sample_max_chars=settings.sample_max_chars,
        sample_reveal_chars=settings.sample_reveal_chars,
    )


__all__ = ["ScanProfile", "build_scan_profile", "profile_from_allow_list"]
