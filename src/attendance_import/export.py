"""Export import diagnostics as CSV or XLSX reports."""

from __future__ import annotations

import io
import json
from typing import Iterable, List, Union

import pandas as pd

from .notify import Diagnostic

REPORT_COLUMNS = ["level", "key", "params"]


def diagnostics_frame(diagnostics: Iterable[Union[Diagnostic, dict]]) -> pd.DataFrame:
    rows: List[dict] = []
    for d in diagnostics:
        item = d.as_dict() if isinstance(d, Diagnostic) else d
        rows.append(
            {
                "level": item.get("level"),
                "key": item.get("key"),
                "params": json.dumps(item.get("params") or {}, sort_keys=True, default=str),
            }
        )
    df = pd.DataFrame(rows)
    if df.empty:
        df = pd.DataFrame(columns=REPORT_COLUMNS)
    return df


def diagnostics_xlsx(diagnostics: Iterable[Union[Diagnostic, dict]]) -> io.BytesIO:
    bio = io.BytesIO()
    with pd.ExcelWriter(bio, engine="openpyxl") as writer:
        diagnostics_frame(diagnostics).to_excel(writer, index=False, sheet_name="Diagnostics")
    bio.seek(0)
    return bio


def diagnostics_csv(diagnostics: Iterable[Union[Diagnostic, dict]]) -> str:
    return diagnostics_frame(diagnostics).to_csv(index=False)


def write_report(diagnostics: Iterable[Union[Diagnostic, dict]], path: str) -> str:
    """Write a report; the extension picks the format (``.xlsx`` or CSV)."""
    if path.lower().endswith(".xlsx"):
        with open(path, "wb") as f:
            f.write(diagnostics_xlsx(diagnostics).getvalue())
    else:
        with open(path, "w", newline="", encoding="utf-8") as f:
            f.write(diagnostics_csv(diagnostics))
    return path
