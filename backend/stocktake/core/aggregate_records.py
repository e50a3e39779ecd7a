"""Record Aggregation — groups scan rows by (code, name) and sums quantities.

Invariants:
    - Output ordered by (code, name), matching the SQL GROUP BY export path
    - Rows with the same code but different names stay separate groups
    - Input order never changes the result
"""

from typing import Iterable

from stocktake.core.domain_types import ExportRow


def aggregate_records(rows: Iterable[tuple[str, str, int]]) -> list[ExportRow]:
    """Sum quantities of (code, name, quantity) tuples per (code, name)."""
    totals: dict[tuple[str, str], int] = {}
    for code, name, quantity in rows:
        key = (code, name)
        totals[key] = totals.get(key, 0) + int(quantity)
    return [
        ExportRow(code=code, name=name, total_quantity=total)
        for (code, name), total in sorted(totals.items())
    ]
