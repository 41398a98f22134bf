"""
History store module.

The SolveBook ledger, its persisted models, and adapters that load and
save them.
"""

from .book import SolveBook, new_id
from .models import (
    CURRENT_SCHEMA_VERSION,
    PersistedData,
    Scramble,
    Session,
    Settings,
    Solve,
)
from .persistence import (
    ArchiveFormatError,
    FileAdapter,
    KubetimrError,
    MemoryAdapter,
    PersistenceAdapter,
    SchemaVersionError,
    UnknownSessionError,
    create_adapter,
    decode_document,
)

__all__ = [
    # Ledger
    "SolveBook",
    "new_id",
    # Models
    "Scramble",
    "Session",
    "Solve",
    "Settings",
    "PersistedData",
    "CURRENT_SCHEMA_VERSION",
    # Persistence
    "PersistenceAdapter",
    "MemoryAdapter",
    "FileAdapter",
    "create_adapter",
    "decode_document",
    # Exceptions
    "KubetimrError",
    "SchemaVersionError",
    "ArchiveFormatError",
    "UnknownSessionError",
]
