"""Load raw ruby-txt resources and decode them to text."""

from __future__ import annotations

import logging
from pathlib import Path
from zipfile import BadZipFile, ZipFile

from aozorize.errors import EncodingFailure, IoFailure

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "cp932"


def read_text_resource(path: Path, encoding: str = DEFAULT_ENCODING) -> str:
    """Return the decoded text of a ``.txt`` file or a zip holding one ``.txt``."""
    path = Path(path)
    data = _read_bytes(path)
    try:
        return data.decode(encoding)
    except UnicodeDecodeError as exc:
        raise EncodingFailure(
            f"Invalid {encoding} byte sequence at offset {exc.start}: {path}", source=str(path)
        ) from exc
    except LookupError as exc:
        raise EncodingFailure(f"Unknown encoding {encoding!r}", source=str(path)) from exc


def _read_bytes(path: Path) -> bytes:
    try:
        if path.suffix.lower() != ".zip":
            return path.read_bytes()

        with ZipFile(path) as zf:
            members = [name for name in zf.namelist() if name.lower().endswith(".txt")]
            if not members:
                raise IoFailure(f".txt file is not found in {path}", source=str(path))
            if len(members) > 1:
                raise IoFailure(f"More than one .txt file in {path}: {members}", source=str(path))
            logger.debug("Reading %s from %s", members[0], path)
            return zf.read(members[0])
    except (OSError, BadZipFile) as exc:
        raise IoFailure(f"Cannot read {path}: {exc}", source=str(path)) from exc
