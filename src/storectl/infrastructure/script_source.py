"""Line source for command scripts."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)


def read_script(path: str | Path, *, encoding: str = "utf-8") -> Iterator[tuple[int, str]]:
    """Yield ``(line_number, text)`` pairs from *path*, 1-based, newline stripped.

    The file is streamed, so an I/O or decode error may surface after some
    lines were already yielded. ``OSError`` and ``UnicodeDecodeError``
    propagate to the caller.
    """
    script = Path(path)
    logger.debug("Reading command script %s", script)
    with script.open(encoding=encoding) as fh:
        for number, line in enumerate(fh, start=1):
            yield number, line.rstrip("\r\n")
