import csv
import io
from collections.abc import Iterable, Sequence
from typing import Any

from fastapi import Response


def to_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    """Every cell quoted; embedded quotes doubled. None becomes an empty cell."""
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow(["" if v is None else v for v in row])
    return buf.getvalue()


def dicts_to_csv(items: list[dict[str, Any]], headers: Sequence[str] | None = None) -> str:
    cols = list(headers) if headers is not None else (list(items[0].keys()) if items else [])
    return to_csv(cols, ([item.get(c) for c in cols] for item in items))


def csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Cache-Control": "no-cache",
        },
    )
