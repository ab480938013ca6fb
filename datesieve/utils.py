"""
Utility functions for datesieve.
"""

import json
import logging
import sys
from typing import Any, List


def setup_logging(level: str = "INFO") -> None:
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stderr)
        ]
    )

    # Reduce noise from third-party libraries unless debugging
    if level.upper() != "DEBUG":
        for name in ("httpx", "httpcore", "pdfminer"):
            logging.getLogger(name).setLevel(logging.WARNING)


def load_result_rows(raw: str) -> List[dict]:
    """Accept a JSON array, or a provider-style object with ``results``/``organic``."""
    data: Any = json.loads(raw)
    if isinstance(data, dict):
        for key in ("results", "organic", "items"):
            if isinstance(data.get(key), list):
                data = data[key]
                break
    if not isinstance(data, list):
        raise ValueError("expected a JSON array of results (or an object with 'results')")
    rows = [r for r in data if isinstance(r, dict)]
    if len(rows) != len(data):
        raise ValueError("every result must be a JSON object")
    return rows
