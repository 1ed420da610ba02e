"""
CSV serialization of flat feature rows.

Format: header from the first row's keys, strings double-quoted, booleans as
1/0, None as an empty field, numbers via str(). csv.writer cannot quote
strings alone before Python 3.12 (QUOTE_STRINGS), so fields are formatted here.
"""
from pathlib import Path
from typing import Any, Dict, List


def format_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, str):
        escaped = value.replace('"', '""')
        return f'"{escaped}"'
    return str(value)


def rows_to_csv(rows: List[Dict[str, Any]]) -> str:
    if not rows:
        return ""
    header = ",".join(rows[0].keys())
    lines = [",".join(format_value(v) for v in row.values()) for row in rows]
    return "\n".join([header, *lines])


def write_csv(rows: List[Dict[str, Any]], output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(rows_to_csv(rows), encoding="utf-8")
