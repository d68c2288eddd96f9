"""Request log writers for CSV and JSON outputs."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

import pandas as pd

from ..analytics import AnalyticsRecord

REQUEST_COLUMNS = [
    "timestamp",
    "request_id",
    "endpoint",
    "ip",
    "status",
    "processing_time_ms",
    "country",
    "datacenter",
    "user_agent",
]


def export_requests_to_csv(records: Iterable[AnalyticsRecord], output_path: str | Path) -> Path:
    """Export request records to CSV, one row per record."""
    target = Path(output_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    dataframe = pd.DataFrame([record.to_dict() for record in records], columns=REQUEST_COLUMNS)
    dataframe.to_csv(target, index=False)
    return target


def export_requests_to_json(records: Iterable[AnalyticsRecord], output_path: str | Path) -> Path:
    """Write a formatted JSON document and return the destination path."""
    target = Path(output_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = {"requests": [record.to_dict() for record in records]}
    target.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    return target
