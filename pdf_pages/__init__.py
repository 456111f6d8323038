"""
pdf-pages: page assembly core for PDF tool pages (merge, split, extract, remove,
rotate, organize, crop, watermark, page numbers, compress, protect, unlock).

Version is read directly from pyproject.toml (single source of truth) so that
editable installs always reflect the current checkout, not the stale pip
metadata from the last ``pip install`` invocation.
"""
from __future__ import annotations

import re as _re
from pathlib import Path as _Path


def _get_version() -> str:
    """Read version from pyproject.toml (single source of truth).

    Fallback chain:
      1. Parse ``version = "X.Y.Z"`` from pyproject.toml in the repo root.
      2. importlib.metadata (works for non-editable pip installs).
      3. ``"0.0.0-dev"`` sentinel.
    """
    try:
        pyproject = _Path(__file__).resolve().parent.parent / "pyproject.toml"
        if pyproject.is_file():
            text = pyproject.read_text(encoding="utf-8")
            match = _re.search(r'^version\s*=\s*"([^"]+)"', text, _re.MULTILINE)
            if match:
                return match.group(1)
    except OSError:
        pass

    try:
        from importlib.metadata import PackageNotFoundError, version

        return version("pdf-pages")
    except PackageNotFoundError:
        pass

    return "0.0.0-dev"


__version__: str = _get_version()
