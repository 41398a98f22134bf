"""
Persistence adapters.

An adapter loads and saves a PersistedData document. Two are provided:

- MemoryAdapter keeps the document in process (tests, ephemeral sessions).
- FileAdapter writes a file atomically: the binary solve archive by
  default, or plain JSON when the path ends in ".json".

A missing file loads as defaults. A document written under a different
schema version is logged and replaced by defaults. A file that cannot be
decoded raises ArchiveFormatError rather than silently discarding history.

Example:
    >>> adapter = create_adapter("~/.kubetimr/history.ktmr")
    >>> data = adapter.load()
    >>> adapter.save(data)
"""

import json
import logging
import os
import time
from pathlib import Path
from typing import Optional, Union

from .._internal.archive_format import pack_archive, unpack_archive
from .models import CURRENT_SCHEMA_VERSION, PersistedData

logger = logging.getLogger(__name__)


class KubetimrError(Exception):
    """Base exception for kubetimr errors."""
    pass


class SchemaVersionError(KubetimrError):
    """Raised when a stored document has an unsupported schema version."""

    def __init__(self, found: int, expected: int = CURRENT_SCHEMA_VERSION):
        super().__init__(f"Schema version {found} is not supported (expected {expected})")
        self.found = found
        self.expected = expected


class ArchiveFormatError(KubetimrError):
    """Raised when a stored file cannot be decoded."""
    pass


class UnknownSessionError(KubetimrError):
    """Raised when a solve refers to a session that does not exist."""
    pass


def decode_document(document: dict) -> PersistedData:
    """
    Build PersistedData from a stored document.

    Raises:
        SchemaVersionError: Document was written under another schema
        ArchiveFormatError: Document is missing required fields
    """
    version = document.get("schema_version")
    if version != CURRENT_SCHEMA_VERSION:
        raise SchemaVersionError(version)
    try:
        return PersistedData.from_dict(document)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ArchiveFormatError(f"Malformed document: {e}") from e


class PersistenceAdapter:
    """Base adapter. Subclasses implement _read() and _write()."""

    def _read(self) -> Optional[dict]:
        """Stored document, or None when nothing has been saved yet."""
        raise NotImplementedError

    def _write(self, document: dict):
        raise NotImplementedError

    def load(self) -> PersistedData:
        document = self._read()
        if document is None:
            return PersistedData()
        try:
            return decode_document(document)
        except SchemaVersionError as e:
            logger.warning("%s; starting from defaults", e)
            return PersistedData()

    def save(self, data: PersistedData):
        self._write(data.to_dict())


class MemoryAdapter(PersistenceAdapter):
    """Keeps the last saved document in memory."""

    def __init__(self, document: Optional[dict] = None):
        self._document = document

    def _read(self) -> Optional[dict]:
        return self._document

    def _write(self, document: dict):
        self._document = document


class FileAdapter(PersistenceAdapter):
    """
    Stores the document in a file.

    Args:
        path: Target file. A ".json" suffix selects JSON, anything else the
              binary archive format.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()

    @property
    def is_json(self) -> bool:
        return self.path.suffix.lower() == ".json"

    def _read(self) -> Optional[dict]:
        if not self.path.exists():
            logger.info("No history at %s, starting empty", self.path)
            return None

        raw = self.path.read_bytes()
        try:
            if self.is_json:
                document = json.loads(raw)
                if not isinstance(document, dict):
                    raise ValueError("JSON document is not an object")
                return document
            archive = unpack_archive(raw)
        except ValueError as e:
            raise ArchiveFormatError(f"Cannot read {self.path}: {e}") from e

        # Header version is authoritative for archives.
        document = archive["document"]
        document["schema_version"] = archive["schema_version"]
        return document

    def _write(self, document: dict):
        if self.is_json:
            payload = json.dumps(document, indent=2).encode()
        else:
            payload = pack_archive(
                document,
                schema_version=document["schema_version"],
                saved_at_ms=int(time.time() * 1000),
            )

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_bytes(payload)
        os.replace(tmp, self.path)
        logger.debug("Saved %s bytes to %s", len(payload), self.path)


def create_adapter(path: Union[str, Path, None] = None) -> PersistenceAdapter:
    """
    Adapter for path, else KUBETIMR_DATA_PATH, else in-memory storage.
    """
    path = path or os.getenv("KUBETIMR_DATA_PATH")
    if not path:
        return MemoryAdapter()
    return FileAdapter(path)
