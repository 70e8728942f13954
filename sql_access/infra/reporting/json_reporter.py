"""
JSON reporting utilities.

Small wrappers for ensuring a directory exists and writing JSON files
atomically: the document is written to a temporary file next to the
target and moved into place, so readers never see a half-written report.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any


def ensure_dir(directory: str) -> None:
    """Ensure a directory exists, creating it recursively if necessary."""
    logging.info("[jsonReporter] ensure_dir", extra={"dir": directory})
    Path(directory or ".").mkdir(parents=True, exist_ok=True)


def to_json(data: Any) -> str:
    # Values the json module cannot encode (Decimal, datetime) are written as strings.
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def write_json(file_path: str, data: Any) -> None:
    """Write an object to a JSON file, ensuring the directory exists."""
    directory = os.path.dirname(file_path) or "."
    ensure_dir(directory)
    logging.info("[jsonReporter] write_json", extra={"file": file_path})
    fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(to_json(data))
        os.replace(tmp_path, file_path)
    except BaseException:
        os.unlink(tmp_path)
        raise
