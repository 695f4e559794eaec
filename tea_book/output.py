from __future__ import annotations

from importlib.resources import files
from pathlib import Path

from .errors import ExportError


def write_text_output(path: str | Path, text: str) -> Path:
    out = Path(path)
    try:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text, encoding="utf-8", newline="\n")
    except OSError as e:
        raise ExportError(f"Failed to write {out}: {e}") from e
    return out


def write_stylesheet(out_dir: str | Path, relative_path: str) -> Path:
    """Copy the packaged EPUB stylesheet to where the manuscript metadata points."""
    css = (files("tea_book") / "assets" / "epub.css").read_text(encoding="utf-8")
    return write_text_output(Path(out_dir) / relative_path, css)
