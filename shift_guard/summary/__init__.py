from shift_guard.summary.formatter import ShiftSummaryFormatter
from shift_guard.summary.service import Caller, ShiftSummary, ShiftSummaryService, SummaryRequest

__all__ = ["Caller", "ShiftSummary", "ShiftSummaryFormatter", "ShiftSummaryService", "SummaryRequest"]
