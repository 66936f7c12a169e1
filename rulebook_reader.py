from __future__ import annotations

import logging
from pathlib import Path
from typing import TextIO

logger = logging.getLogger(__name__)


def safe_input_path(raw: str, *, root: Path | None = None) -> Path:
    """
    Validate a user-supplied rulebook path and return it resolved.

    Rejects empty paths, NUL bytes, '..' segments and, when `root` is
    given, anything that resolves outside of it.
    """
    if not raw.strip() or "\x00" in raw:
        raise ValueError(f"Invalid rulebook path: {raw!r}")

    candidate = Path(raw).expanduser()
    if ".." in candidate.parts:
        raise ValueError(f"Rulebook path may not contain '..': {raw}")

    resolved = candidate.resolve()
    if root is not None and not resolved.is_relative_to(root.resolve(strict=True)):
        raise ValueError(f"Rulebook {resolved} is outside {root}")

    if not resolved.is_file():
        if resolved.is_dir():
            raise IsADirectoryError(f"Rulebook path is a directory: {resolved}")
        raise FileNotFoundError(f"No such rulebook: {resolved}")

    return resolved


def read_rulebook(path: Path) -> str:
    """
    Read a rulebook source file in one go.
    """
    text = Path(path).read_text(encoding="utf-8")
    logger.debug("read %d characters from %s", len(text), path)
    return text


def read_source(stream: TextIO) -> str:
    """
    Read a whole text stream (e.g. stdin) up front.
    """
    text = stream.read()
    logger.debug("read %d characters from stream", len(text))
    return text
