# File: site_pdf/report/__init__.py
"""site_pdf.report: отчёты о запуске генерации (JSON и HTML)."""

from __future__ import annotations

from typing import Any, Dict

from site_pdf.errors import PageError
from site_pdf.scheduler import RunOutcome


def _error_dict(error: BaseException) -> Dict[str, Any]:
    data: Dict[str, Any] = {"type": type(error).__name__, "message": str(error)}
    if isinstance(error, PageError):
        data.update(
            kind=error.kind.value,
            location=error.location,
            title=error.title,
            status=error.status,
            source_location=error.source_location,
            hook=error.hook,
        )
    else:
        kind = getattr(error, "kind", None)
        if kind is not None:
            data["kind"] = kind.value
    return data


def report_data(outcome: RunOutcome) -> Dict[str, Any]:
    """Сериализует RunOutcome в словарь, общий для JSON и HTML отчётов."""
    return {
        "requested": outcome.requested,
        "generated": len(outcome.results),
        "not_generated": outcome.not_generated,
        "results": [
            {
                "location": r.resolved_location,
                "requested_location": r.requested_location,
                "source_location": r.source_location,
                "output": r.output_pathname,
            }
            for r in outcome.results
        ],
        "failures": [_error_dict(e) for e in outcome.failures],
        "fatal": _error_dict(outcome.fatal) if outcome.fatal is not None else None,
    }


from .html_report import render_html  # noqa: E402
from .json_report import render_json  # noqa: E402

__all__ = ["report_data", "render_json", "render_html"]
