"""Configuration settings using pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, model_validator
from pydantic_settings import BaseSettings


_REPO_ROOT = Path(__file__).resolve().parents[1]


def _resolve_repo_path(path: Path) -> Path:
    if path.is_absolute():
        return path
    return (_REPO_ROOT / path).resolve()


class StoreSettings(BaseSettings):
    """Document store and audit trail persistence.

    The audit trail lives in the same database as the documents but in its own
    table, so deleting a document never removes the audit rows describing it.
    """

    backend: str = "sql"  # sql|memory
    database_url: str = Field(
        default="sqlite:///./shift_guard.db",
        validation_alias=AliasChoices("SHIFTGUARD_STORE_DATABASE_URL", "DATABASE_URL"),
    )
    echo_sql: bool = False

    model_config = {"env_prefix": "SHIFTGUARD_STORE_", "extra": "ignore"}


class PHISettings(BaseSettings):
    """Settings for the PHI pattern library and structural scanner."""

    allow_list_path: Path = Field(
        default=Path("data/phi/allowlist.v1.json"),
        validation_alias=AliasChoices("SHIFTGUARD_PHI_ALLOW_LIST_PATH", "PHI_ALLOW_LIST_FILE"),
    )
    # System-managed timestamps, never user-authored text.
    excluded_fields: tuple[str, ...] = ("createdAt", "updatedAt")
    sample_max_chars: int = 20
    sample_reveal_chars: int = 4

    model_config = {"env_prefix": "SHIFTGUARD_PHI_", "extra": "ignore"}

    @model_validator(mode="after")
    def _resolve_paths(self) -> "PHISettings":
        self.allow_list_path = _resolve_repo_path(self.allow_list_path)
        return self


class EnforcementSettings(BaseSettings):
    """Settings for trigger-bound enforcement handlers and their runtime."""

    entity_collection_pattern: str = (
        "artifacts/{appId}/users/{userId}/nicu_shifts/{shiftId}/babies/{babyId}"
    )
    entity_kind: str = "baby"
    severity: str = "high"

    # Collapse re-deliveries of the same committed write into one audit entry.
    audit_dedupe: bool = True

    # Hosting-style delivery policy (not application retries).
    max_attempts: int = 3
    invocation_deadline_s: float = 60.0
    retry_base_s: float = 0.25
    retry_cap_s: float = 5.0

    model_config = {"env_prefix": "SHIFTGUARD_ENFORCEMENT_", "extra": "ignore"}


class AuthSettings(BaseSettings):
    """Bearer token verification for callable procedures."""

    token_secret: Optional[str] = None
    token_ttl_s: int = 3600
    # Shared secret for HTTP trigger delivery; the endpoint is disabled when unset.
    trigger_secret: Optional[str] = None

    model_config = {"env_prefix": "SHIFTGUARD_AUTH_", "extra": "ignore"}


class SummarySettings(BaseSettings):
    """Settings for the shift summary callable."""

    fetch_workers: int = 2
    template_name: str = "shift_summary.txt.j2"
    footer_tag: str = "Generated by NICU Shift Guard"

    model_config = {"env_prefix": "SHIFTGUARD_SUMMARY_", "extra": "ignore"}


class ShiftGuardSettings(BaseModel):
    """Aggregate of all settings groups, built once per process."""

    store: StoreSettings = Field(default_factory=StoreSettings)
    phi: PHISettings = Field(default_factory=PHISettings)
    enforcement: EnforcementSettings = Field(default_factory=EnforcementSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    summary: SummarySettings = Field(default_factory=SummarySettings)


@lru_cache
def get_settings() -> ShiftGuardSettings:
    return ShiftGuardSettings()


__all__ = [
    "AuthSettings",
    "EnforcementSettings",
    "PHISettings",
    "ShiftGuardSettings",
    "StoreSettings",
    "SummarySettings",
    "get_settings",
]
