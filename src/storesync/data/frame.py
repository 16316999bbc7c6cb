"""Tabular view of items (pandas)."""

from __future__ import annotations

from typing import Sequence

import pandas as pd

from storesync.data.types import Item

_BASE_COLUMNS = ["id", "price", "modified_date"]


def items_to_frame(items: Sequence[Item]) -> pd.DataFrame:
    """One row per item, in collection order; extra fields become columns."""
    if not items:
        return pd.DataFrame(columns=_BASE_COLUMNS)
    rows = []
    for it in items:
        row = {"id": it.id, "price": it.price, "modified_date": it.modified_date}
        for k, v in it.extra.items():
            row.setdefault(k, v)
        rows.append(row)
    return pd.DataFrame(rows)


def format_table(items: Sequence[Item], max_rows: int = 50) -> str:
    df = items_to_frame(items)
    if df.empty:
        return "(no items)"
    return df.to_string(index=False, max_rows=max_rows)
