"""Plain-text shift report rendering.

Shift and baby records are reduced to a small view model (sorted logs,
pre-joined vitals lines) and rendered through a jinja2 template. Missing
values render as ``N/A``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined, Undefined

TEMPLATE_ROOT = Path(__file__).resolve().parent / "templates"
DEFAULT_TEMPLATE = "shift_summary.txt.j2"
NOT_AVAILABLE = "N/A"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def or_na(value: Any, suffix: str = "") -> str:
    if value is None or value == "" or isinstance(value, Undefined):
        return NOT_AVAILABLE
    return f"{value}{suffix}"


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def parse_timestamp(value: Any) -> datetime | None:
    """Accept datetimes, ISO-8601 strings and epoch milliseconds; naive means UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, bool):
        return None
    elif isinstance(value, (int, float)):
        try:
            parsed = datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _chronological(items: Sequence[Any]) -> list[Mapping[str, Any]]:
    """Sort by ``timestamp``; entries without a readable timestamp go last."""
    entries = [item for item in items if isinstance(item, Mapping)]

    def key(item: Mapping[str, Any]) -> tuple[bool, datetime]:
        parsed = parse_timestamp(item.get("timestamp"))
        return parsed is None, parsed or _EPOCH

    return sorted(entries, key=key)


def _respiratory_line(sheet: Mapping[str, Any]) -> str:
    line = or_na(sheet.get("respiratoryMode"))
    if sheet.get("respiratoryFlow"):
        line += f" @ {sheet['respiratoryFlow']}L/min"
    if sheet.get("respiratoryFiO2"):
        line += f", FiO2 {sheet['respiratoryFiO2']}%"
    return line


def _feeds_line(sheet: Mapping[str, Any]) -> str:
    line = f"{or_na(sheet.get('feedsRoute'))} | {or_na(sheet.get('feedType'))} {_text(sheet.get('feedCalories'))}"
    if sheet.get("feedVolume"):
        line += f" {sheet['feedVolume']}ml"
    return line


def _medications(sheet: Mapping[str, Any]) -> list[str]:
    meds = sheet.get("medications")
    if not isinstance(meds, Mapping):
        return []
    names = [name for name, flag in meds.items() if flag is True and name != "otherMedications"]
    if meds.get("otherMedications"):
        names.append(str(meds["otherMedications"]))
    return names


def _report_view(sheet: Any) -> dict[str, Any] | None:
    if not isinstance(sheet, Mapping) or not sheet:
        return None
    return {
        "maternal_history": sheet.get("maternalHistory"),
        "current_problems": sheet.get("currentProblems"),
        "respiratory": _respiratory_line(sheet),
        "feeds": _feeds_line(sheet),
        "bottle_nipple": sheet.get("bottleNippleType"),
        "medications": _medications(sheet),
        "labs": sheet.get("labsOrdered"),
        "treatment_plan": sheet.get("treatmentPlan"),
    }


def _touch_time_view(log: Mapping[str, Any]) -> dict[str, Any]:
    line = (
        f"{_text(log.get('scheduledTime'))}: "
        f"T:{or_na(log.get('temp'))} HR:{or_na(log.get('hr'))} "
        f"RR:{or_na(log.get('rr'))} SpO2:{or_na(log.get('spo2'))}"
    )
    if log.get("feedVolume"):
        line += f" | Feed: {log['feedVolume']}ml {_text(log.get('feedRoute'))}"
    return {"line": line.rstrip(), "note": log.get("comments")}


def _event_view(event: Mapping[str, Any]) -> dict[str, Any]:
    parsed = parse_timestamp(event.get("timestamp"))
    return {
        "time": parsed.astimezone(timezone.utc).strftime("%I:%M %p") if parsed else NOT_AVAILABLE,
        "kind": event.get("eventType"),
        "details": event.get("eventDetails"),
    }


def baby_view(baby: Mapping[str, Any]) -> dict[str, Any]:
    touch_logs = baby.get("touchTimeLogs") if isinstance(baby.get("touchTimeLogs"), list) else []
    events = baby.get("eventLogs") if isinstance(baby.get("eventLogs"), list) else []
    return {
        "nickname": baby.get("internalID_Nickname"),
        "ga_weeks": baby.get("gestationalAge_Weeks"),
        "ga_days": baby.get("gestationalAge_Days"),
        "cga_weeks": baby.get("correctedGestationalAge_Weeks"),
        "cga_days": baby.get("correctedGestationalAge_Days"),
        "pna_days": baby.get("pna_Days"),
        "bed": baby.get("bedRoomNumber"),
        "birth_weight": baby.get("birthWeight"),
        "last_weight": baby.get("lastWeight"),
        "report": _report_view(baby.get("reportSheet")),
        # The header counts every log; only completed ones are listed.
        "touch_time_count": len(touch_logs),
        "touch_time_logs": [
            _touch_time_view(log) for log in _chronological(touch_logs) if log.get("completed")
        ],
        "events": [_event_view(event) for event in _chronological(events)],
    }


def shift_view(shift: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "shift_date": shift.get("shiftDate"),
        "start_time": shift.get("shiftStartTime"),
        "assignment_type": shift.get("assignmentType"),
    }


def build_env(template_root: Path) -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(template_root)),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    env.filters["or_na"] = or_na
    return env


class ShiftSummaryFormatter:
    """Render a shift and its babies as the plain-text handoff report."""

    def __init__(
        self,
        template_root: Path | None = None,
        template_name: str = DEFAULT_TEMPLATE,
        footer_tag: str = "Generated by NICU Shift Guard",
    ):
        self._env = build_env(template_root or TEMPLATE_ROOT)
        self._template_name = template_name
        self._footer_tag = footer_tag

    def render(
        self,
        shift: Mapping[str, Any],
        babies: Sequence[Mapping[str, Any]],
        generated_at: datetime,
    ) -> str:
        template = self._env.get_template(self._template_name)
        return template.render(
            shift=shift_view(shift),
            babies=[baby_view(baby) for baby in babies],
            generated_at=generated_at.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC"),
            footer_tag=self._footer_tag,
        )


__all__ = ["ShiftSummaryFormatter", "baby_view", "build_env", "or_na", "parse_timestamp", "shift_view"]
