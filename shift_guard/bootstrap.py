"""Process wiring: build every service once from settings.

The container is immutable after construction; the HTTP app, the CLI and
tests all obtain their services from ``build_container``.
"""

from __future__ import annotations

from dataclasses import dataclass

from config.settings import ShiftGuardSettings, get_settings
from observability.logging_config import get_logger
from shift_guard.api.auth import TokenVerifier
from shift_guard.phi.adapters import DatabaseAuditTrail, InMemoryAuditTrail
from shift_guard.phi.ports import AuditTrailPort, Severity
from shift_guard.phi.profile import ScanProfile, build_scan_profile
from shift_guard.phi.service import EnforcementService
from shift_guard.store import DocumentStore, InMemoryDocumentStore, SqlDocumentStore
from shift_guard.store.dependencies import create_all, engine_for_url, sessionmaker_for_engine
from shift_guard.summary.formatter import ShiftSummaryFormatter
from shift_guard.summary.service import ShiftSummaryService
from shift_guard.triggers.runtime import TriggerRuntime

logger = get_logger("bootstrap")


@dataclass(frozen=True)
class ShiftGuardContainer:
    settings: ShiftGuardSettings
    profile: ScanProfile
    store: DocumentStore
    audit_trail: AuditTrailPort
    enforcement: EnforcementService
    runtime: TriggerRuntime
    summaries: ShiftSummaryService
    tokens: TokenVerifier


def _build_persistence(settings: ShiftGuardSettings) -> tuple[DocumentStore, AuditTrailPort]:
    backend = settings.store.backend.strip().lower()
    if backend == "memory":
        return InMemoryDocumentStore(), InMemoryAuditTrail()
    if backend != "sql":
        raise ValueError(f"unknown store backend: {settings.store.backend!r}")
    engine = engine_for_url(settings.store.database_url, echo=settings.store.echo_sql)
    create_all(engine)
    session_factory = sessionmaker_for_engine(engine)
    return SqlDocumentStore(session_factory), DatabaseAuditTrail(session_factory)


def build_container(
    settings: ShiftGuardSettings | None = None,
    *,
    store: DocumentStore | None = None,
    audit_trail: AuditTrailPort | None = None,
) -> ShiftGuardContainer:
    settings = settings or get_settings()
    if store is None or audit_trail is None:
        default_store, default_audit = _build_persistence(settings)
        store = store or default_store
        audit_trail = audit_trail or default_audit

    profile = build_scan_profile(settings.phi)
    enforcement_settings = settings.enforcement
    enforcement = EnforcementService(
        store,
        audit_trail,
        profile,
        entity_kind=enforcement_settings.entity_kind,
        severity=Severity(enforcement_settings.severity),
        audit_dedupe=enforcement_settings.audit_dedupe,
    )

    runtime = TriggerRuntime(
        max_attempts=enforcement_settings.max_attempts,
        deadline_s=enforcement_settings.invocation_deadline_s,
        retry_base_s=enforcement_settings.retry_base_s,
        retry_cap_s=enforcement_settings.retry_cap_s,
    )
    runtime.bind(
        enforcement_settings.entity_collection_pattern,
        on_create=enforcement.on_create,
        on_update=enforcement.on_update,
        name="validate_entity",
    )
    runtime.attach(store)

    summaries = ShiftSummaryService(
        store,
        ShiftSummaryFormatter(
            template_name=settings.summary.template_name,
            footer_tag=settings.summary.footer_tag,
        ),
        fetch_workers=settings.summary.fetch_workers,
    )
    tokens = TokenVerifier(settings.auth.token_secret, ttl_s=settings.auth.token_ttl_s)

    logger.info(
        "container_ready",
        extra={
            "store": type(store).__name__,
            "audit_trail": type(audit_trail).__name__,
            "allow_list_version": profile.allow_list.version,
            "detectors": list(profile.library.names),
        },
    )
    return ShiftGuardContainer(
        settings=settings,
        profile=profile,
        store=store,
        audit_trail=audit_trail,
        enforcement=enforcement,
        runtime=runtime,
        summaries=summaries,
        tokens=tokens,
    )


__all__ = ["ShiftGuardContainer", "build_container"]
