"""File actions — CSV and Excel import/export on the worker's filesystem.

These never touch the browser; the session argument is accepted only to
satisfy the handler contract.  Blocking file I/O runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import csv
import logging
from datetime import date, datetime, time
from typing import Any

from openpyxl import Workbook, load_workbook

from rpaworker.registry.action_registry import (
    ActionConfigError,
    ActionOutcome,
    VariableWrite,
    require_config,
)

logger = logging.getLogger("rpaworker.actions.files")


def _with_save_as(config: dict[str, Any], rows: list[Any]) -> ActionOutcome:
    save_as = config.get("saveAs")
    return ActionOutcome(
        output={"rows": rows},
        set_variable=VariableWrite(save_as, rows) if save_as else None,
    )


# ── CSV ─────────────────────────────────────────────────────────


def _read_csv(path: str, has_header: bool) -> list[Any]:
    with open(path, newline="", encoding="utf-8") as fh:
        records = [
            [cell.strip() for cell in record]
            for record in csv.reader(fh)
            if any(cell.strip() for cell in record)
        ]
    if not has_header or not records:
        return records
    headers, body = records[0], records[1:]
    return [
        {h: (record[i] if i < len(record) else "") for i, h in enumerate(headers)}
        for record in body
    ]


def _write_csv(path: str, data: list[Any], headers: list[str] | None) -> int:
    lines: list[list[Any]] = []
    if data and isinstance(data[0], dict):
        keys = list(headers or data[0].keys())
        lines.append(keys)
        for row in data:
            lines.append(["" if row.get(k) is None else row.get(k) for k in keys])
    else:
        if headers:
            lines.append(list(headers))
        lines.extend(list(row) if isinstance(row, (list, tuple)) else [row] for row in data)

    with open(path, "w", newline="", encoding="utf-8") as fh:
        csv.writer(fh, lineterminator="\n").writerows(lines)
    return len(lines)


async def csv_read(session: Any, config: dict[str, Any]) -> ActionOutcome:
    """Rows as dicts keyed by the header line, or as string lists when ``hasHeader`` is false."""
    require_config("csvRead", config, "filePath")
    rows = await asyncio.to_thread(
        _read_csv, str(config["filePath"]), config.get("hasHeader", True) is not False
    )
    logger.debug("csvRead %s: %d rows", config["filePath"], len(rows))
    return _with_save_as(config, rows)


async def csv_write(session: Any, config: dict[str, Any]) -> ActionOutcome:
    require_config("csvWrite", config, "filePath")
    data = config.get("data")
    if not isinstance(data, list):
        raise ActionConfigError("csvWrite", "data must be an array")
    written = await asyncio.to_thread(
        _write_csv, str(config["filePath"]), data, config.get("headers")
    )
    return ActionOutcome(output={"written": written})


# ── Excel ───────────────────────────────────────────────────────


def _cell_value(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return value


def _read_excel(path: str, sheet_name: str | None) -> list[dict[str, Any]]:
    wb = load_workbook(path, read_only=True, data_only=True)
    try:
        if sheet_name:
            if sheet_name not in wb.sheetnames:
                raise ActionConfigError("excelRead", f'sheet "{sheet_name}" not found')
            ws = wb[sheet_name]
        else:
            ws = wb.worksheets[0]

        rows: list[dict[str, Any]] = []
        headers: list[str] | None = None
        for values in ws.iter_rows(values_only=True):
            if headers is None:
                headers = ["" if v is None else str(v) for v in values]
                continue
            row = {
                h: _cell_value(v)
                for h, v in zip(headers, values)
                if h and v is not None and v != ""
            }
            if row:
                rows.append(row)
        return rows
    finally:
        wb.close()


def _write_excel(path: str, data: list[Any], sheet_name: str) -> None:
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name

    if data and isinstance(data[0], dict):
        headers: list[str] = []
        for row in data:
            for key in row:
                if key not in headers:
                    headers.append(key)
        ws.append(headers)
        for row in data:
            ws.append([row.get(h) for h in headers])
    else:
        for row in data:
            ws.append(list(row) if isinstance(row, (list, tuple)) else [row])
    wb.save(path)


async def excel_read(session: Any, config: dict[str, Any]) -> ActionOutcome:
    """First row is the header; blank cells are omitted from each row dict."""
    require_config("excelRead", config, "filePath")
    rows = await asyncio.to_thread(
        _read_excel, str(config["filePath"]), config.get("sheetName")
    )
    logger.debug("excelRead %s: %d rows", config["filePath"], len(rows))
    return _with_save_as(config, rows)


async def excel_write(session: Any, config: dict[str, Any]) -> ActionOutcome:
    require_config("excelWrite", config, "filePath")
    data = config.get("data")
    if not isinstance(data, list):
        raise ActionConfigError("excelWrite", "data must be an array")
    await asyncio.to_thread(
        _write_excel, str(config["filePath"]), data, config.get("sheetName") or "Sheet1"
    )
    return ActionOutcome(output={"written": len(data)})
