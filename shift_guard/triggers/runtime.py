"""In-process trigger runtime.

Binds handlers to ``{param}`` document path patterns and delivers every
committed ``DocumentChange`` to them with hosting-style semantics: at-least
once, a bounded number of attempts with jittered backoff, and a per-attempt
deadline. A failed delivery is logged and counted; it never propagates back
into the write that produced it.
"""

from __future__ import annotations

import dataclasses
import re
import time
from dataclasses import dataclass
from typing import Any, Callable

from observability.enforcement_metrics import EnforcementMetrics
from observability.logging_config import get_logger
from shift_guard.infra.retry import backoff_seconds, within_deadline
from shift_guard.store.base import ChangeKind, DocumentChange, DocumentStore

logger = get_logger("trigger_runtime")

Handler = Callable[[DocumentChange], Any]

_PARAM_RE = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


def compile_path_pattern(pattern: str) -> re.Pattern[str]:
    """Compile ``a/{x}/b/{y}`` into an anchored regex with one group per param."""
    parts: list[str] = []
    position = 0
    for match in _PARAM_RE.finditer(pattern):
        parts.append(re.escape(pattern[position : match.start()]))
        parts.append(f"(?P<{match.group(1)}>[^/]+)")
        position = match.end()
    parts.append(re.escape(pattern[position:]))
    return re.compile("^" + "".join(parts).strip("/") + "$")


@dataclass(frozen=True)
class TriggerBinding:
    name: str
    pattern: str
    regex: re.Pattern[str]
    on_create: Handler | None = None
    on_update: Handler | None = None

    def handler_for(self, kind: ChangeKind) -> Handler | None:
        if kind is ChangeKind.CREATE:
            return self.on_create
        if kind is ChangeKind.UPDATE:
            return self.on_update
        return None


@dataclass(frozen=True)
class DeliveryResult:
    binding: str
    trigger: str
    status: str  # ok | failed | timeout
    attempts: int
    result: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


class TriggerRuntime:
    def __init__(
        self,
        *,
        max_attempts: int = 3,
        deadline_s: float = 60.0,
        retry_base_s: float = 0.25,
        retry_cap_s: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._max_attempts = max(1, max_attempts)
        self._deadline_s = deadline_s
        self._retry_base_s = retry_base_s
        self._retry_cap_s = retry_cap_s
        self._sleep = sleep
        self._bindings: list[TriggerBinding] = []

    @property
    def bindings(self) -> tuple[TriggerBinding, ...]:
        return tuple(self._bindings)

    def bind(
        self,
        pattern: str,
        *,
        on_create: Handler | None = None,
        on_update: Handler | None = None,
        name: str | None = None,
    ) -> TriggerBinding:
        binding = TriggerBinding(
            name=name or pattern,
            pattern=pattern,
            regex=compile_path_pattern(pattern),
            on_create=on_create,
            on_update=on_update,
        )
        self._bindings.append(binding)
        return binding

    def attach(self, store: DocumentStore) -> None:
        store.subscribe(self.deliver)

    def deliver(self, change: DocumentChange) -> list[DeliveryResult]:
        results: list[DeliveryResult] = []
        path = change.path.strip("/")
        for binding in self._bindings:
            handler = binding.handler_for(change.kind)
            if handler is None:
                continue
            match = binding.regex.match(path)
            if match is None:
                continue
            bound = dataclasses.replace(change, params=match.groupdict())
            results.append(self._invoke(binding, handler, bound))
        return results

    def _invoke(self, binding: TriggerBinding, handler: Handler, change: DocumentChange) -> DeliveryResult:
        trigger = change.kind.value
        status = "failed"
        error: str | None = None
        result: Any = None
        attempt = 0

        while attempt < self._max_attempts:
            attempt += 1
            deadline = time.monotonic() + self._deadline_s
            try:
                result = handler(change)
            except Exception as exc:
                status, error = "failed", type(exc).__name__
                logger.warning(
                    "trigger_attempt_failed",
                    extra={
                        "binding": binding.name,
                        "trigger": trigger,
                        "path": change.path,
                        "attempt": attempt,
                        "error_type": error,
                    },
                )
            else:
                if within_deadline(deadline):
                    status, error = "ok", None
                    break
                status, error = "timeout", "deadline exceeded"
                EnforcementMetrics.record_invocation_timeout(trigger)
                logger.warning(
                    "trigger_attempt_timed_out",
                    extra={
                        "binding": binding.name,
                        "trigger": trigger,
                        "path": change.path,
                        "attempt": attempt,
                        "deadline_s": self._deadline_s,
                    },
                )

            if attempt < self._max_attempts:
                self._sleep(
                    backoff_seconds(attempt - 1, base=self._retry_base_s, cap=self._retry_cap_s)
                )

        if status != "ok":
            logger.error(
                "trigger_delivery_failed",
                extra={
                    "binding": binding.name,
                    "trigger": trigger,
                    "path": change.path,
                    "attempts": attempt,
                    "status": status,
                },
            )
        return DeliveryResult(
            binding=binding.name,
            trigger=trigger,
            status=status,
            attempts=attempt,
            result=result if status == "ok" else None,
            error=error,
        )


__all__ = ["DeliveryResult", "TriggerBinding", "TriggerRuntime", "compile_path_pattern"]
