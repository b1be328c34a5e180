"""Whole-file writes that never leave a truncated file behind."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


def write_atomic(file_path: Path, text: str) -> None:
    """Write *text* to a temporary sibling, then rename it over *file_path*.

    Readers see either the previous content or the new content, never a
    partial write.
    """
    file_path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        dir=file_path.parent, prefix=f".{file_path.stem}-", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp_name, file_path)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise
