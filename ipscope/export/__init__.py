"""Export utilities for the request log."""

from .writers import export_requests_to_csv, export_requests_to_json

__all__ = [
    "export_requests_to_csv",
    "export_requests_to_json",
]
