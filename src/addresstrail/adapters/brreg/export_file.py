"""Open registry export files (plain or gzip-compressed JSON)."""

from __future__ import annotations

import gzip
from contextlib import contextmanager
from typing import TYPE_CHECKING

from addresstrail.domain.errors import InputFileMissingError

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path
    from typing import TextIO


@contextmanager
def open_export(path: Path) -> Iterator[TextIO]:
    """Yield a UTF-8 text stream over ``path``; ``.gz`` files are decompressed on the fly."""

    if not path.is_file():
        raise InputFileMissingError(f"Export file not found: {path}")
    if path.suffix == ".gz":
        handle = gzip.open(path, "rt", encoding="utf-8-sig")
    else:
        handle = path.open(encoding="utf-8-sig")
    with handle:
        yield handle
