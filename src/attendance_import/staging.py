"""Staged CSV storage for two-step imports.

Uploaded content is decoded with the caller's encoding and written as UTF-8
under a fresh import id, so a later request can re-open it by id after the
user has chosen the column mapping.
"""

from __future__ import annotations

import csv
import io
import logging
import os
import re
import uuid
from typing import Iterator, List, Optional, Union

from .config import get_staging_dir

logger = logging.getLogger(__name__)

DELIMITERS = {"comma": ",", "semicolon": ";", "tab": "\t", "colon": ":"}
IMPORT_ID_RE = re.compile(r"^[0-9a-f]{32}$")


class StagingError(ValueError):
    pass


def resolve_delimiter(delimiter: Optional[str]) -> str:
    if not delimiter:
        return ","
    if delimiter in DELIMITERS:
        return DELIMITERS[delimiter]
    if len(delimiter) == 1:
        return delimiter
    raise StagingError(f"Unsupported delimiter: {delimiter!r}")


def new_import_id() -> str:
    return uuid.uuid4().hex


class StagedImport:
    """CSV content staged on disk under an import id."""

    def __init__(self, import_id: str, staging_dir: Optional[str] = None):
        if not IMPORT_ID_RE.match(import_id or ""):
            raise StagingError(f"Invalid import id: {import_id!r}")
        self.import_id = import_id
        self.staging_dir = staging_dir or get_staging_dir()
        self.columns: List[str] = []

    @property
    def path(self) -> str:
        return os.path.join(self.staging_dir, f"{self.import_id}.csv")

    @classmethod
    def create(
        cls,
        content: Union[bytes, str],
        encoding: Optional[str] = "utf-8",
        delimiter: Optional[str] = "comma",
        staging_dir: Optional[str] = None,
    ) -> "StagedImport":
        staged = cls(new_import_id(), staging_dir)
        staged.load(content, encoding, delimiter)
        return staged

    def load(
        self,
        content: Union[bytes, str],
        encoding: Optional[str] = "utf-8",
        delimiter: Optional[str] = "comma",
    ) -> None:
        if isinstance(content, bytes):
            try:
                text = content.decode(encoding or "utf-8")
            except (LookupError, UnicodeDecodeError) as e:
                raise StagingError(f"Cannot decode content: {e}")
        else:
            text = content
        text = text.lstrip("\ufeff")
        sep = resolve_delimiter(delimiter)
        try:
            reader = csv.reader(io.StringIO(text), delimiter=sep)
            rows = [r for r in reader if any(c.strip() for c in r)]
        except csv.Error as e:
            raise StagingError(f"Cannot parse content: {e}")
        if not rows:
            raise StagingError("Empty CSV")
        header = [h.strip() for h in rows[0]]
        if any(not h for h in header):
            raise StagingError("Empty column name in header")
        if len(set(h.lower() for h in header)) != len(header):
            raise StagingError("Duplicate column name in header")
        os.makedirs(self.staging_dir, exist_ok=True)
        with open(self.path, "w", newline="", encoding="utf-8") as f:
            w = csv.writer(f)
            w.writerow(header)
            w.writerows(rows[1:])
        logger.debug(f"Staged import {self.import_id}: {len(rows) - 1} data rows")

    def init(self) -> bool:
        """Open the staged file and read its header; False when unavailable."""
        if not os.path.exists(self.path):
            return False
        with open(self.path, "r", newline="", encoding="utf-8") as f:
            header = next(csv.reader(f), None)
        if not header:
            return False
        self.columns = header
        return True

    def rows(self) -> Iterator[List[str]]:
        with open(self.path, "r", newline="", encoding="utf-8") as f:
            reader = csv.reader(f)
            next(reader, None)
            for row in reader:
                yield row

    def cleanup(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)
