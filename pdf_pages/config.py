from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict

# Size/count budgets. Process-wide; each can be overridden from the environment.
DEFAULT_MAX_FILE_BYTES = 50 * 1024 * 1024
DEFAULT_MAX_TOTAL_PAGES = 1000
DEFAULT_MAX_OUTPUT_BYTES = 100 * 1024 * 1024

MAX_FILE_BYTES_ENV = "PDF_PAGES_MAX_FILE_BYTES"
MAX_TOTAL_PAGES_ENV = "PDF_PAGES_MAX_TOTAL_PAGES"
MAX_OUTPUT_BYTES_ENV = "PDF_PAGES_MAX_OUTPUT_BYTES"

# Name written into the producer/creator/author metadata of every output.
DEFAULT_PRODUCER = "PDF Tools"
PRODUCER_ENV = "PDF_PAGES_PRODUCER"

LOG_LEVEL_ENV = "PDF_PAGES_LOG_LEVEL"

PDF_MAGIC = b"%PDF"
PDF_CONTENT_TYPE = "application/pdf"

# Points per unit for crop margins.
UNIT_TO_POINTS: Dict[str, float] = {
    "mm": 2.834645669,
    "in": 72.0,
    "pt": 1.0,
}


@dataclass(frozen=True)
class Limits:
    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES
    max_total_pages: int = DEFAULT_MAX_TOTAL_PAGES
    max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def get_limits() -> Limits:
    return Limits(
        max_file_bytes=_env_int(MAX_FILE_BYTES_ENV, DEFAULT_MAX_FILE_BYTES),
        max_total_pages=_env_int(MAX_TOTAL_PAGES_ENV, DEFAULT_MAX_TOTAL_PAGES),
        max_output_bytes=_env_int(MAX_OUTPUT_BYTES_ENV, DEFAULT_MAX_OUTPUT_BYTES),
    )


def get_producer_name() -> str:
    return os.environ.get(PRODUCER_ENV, DEFAULT_PRODUCER)


def get_log_level() -> str:
    return os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()
