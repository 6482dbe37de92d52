from __future__ import annotations

from crm_gateway.models.import_outcome import ImportOutcome

"""SUMMARY line rendering for imports.

Format:
SUMMARY rows={total} inserted={succeeded} failed={failed} success={true|false}
elapsed_sec={elapsed} insert_avg_ms={avg} insert_p95_ms={p95}
"""


def _format_number(value: float) -> str:
    """Integers without a decimal point, tiny values without scientific notation."""
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if abs(value) < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(round(value, 3))


def render_summary_line(outcome: ImportOutcome) -> str:
    """Render a SUMMARY line from an ImportOutcome.

    Examples:
        >>> render_summary_line(ImportOutcome(total=5, succeeded=3, errors=(), elapsed_seconds=2.0))
        'SUMMARY rows=5 inserted=3 failed=0 success=true elapsed_sec=2 insert_avg_ms=0 insert_p95_ms=0'
    """
    return (
        f"SUMMARY rows={outcome.total} "
        f"inserted={outcome.succeeded} "
        f"failed={len(outcome.errors)} "
        f"success={'true' if outcome.success else 'false'} "
        f"elapsed_sec={_format_number(outcome.elapsed_seconds)} "
        f"insert_avg_ms={_format_number(outcome.avg_insert_seconds * 1000)} "
        f"insert_p95_ms={_format_number(outcome.p95_insert_seconds * 1000)}"
    )
