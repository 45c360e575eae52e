"""
Services - the translation sync run and document I/O around it.
"""

from locsync.services.documents import (
    DocumentError,
    add_metadata,
    build_metadata,
    collect_files,
    document_format,
    document_id,
    dump_document,
    load_document,
    resolve_output_path,
    write_document,
)
from locsync.services.sync import (
    MAX_BATCH_SIZE,
    BatchResult,
    DocumentResult,
    SourceDocument,
    SyncResult,
    SyncStats,
    TranslationPlan,
    TranslationSync,
    collect_unique_strings,
    format_stats,
    plan_batches,
)

__all__ = [
    # Documents
    "DocumentError",
    "add_metadata",
    "build_metadata",
    "collect_files",
    "document_format",
    "document_id",
    "dump_document",
    "load_document",
    "resolve_output_path",
    "write_document",
    # Sync
    "MAX_BATCH_SIZE",
    "BatchResult",
    "DocumentResult",
    "SourceDocument",
    "SyncResult",
    "SyncStats",
    "TranslationPlan",
    "TranslationSync",
    "collect_unique_strings",
    "format_stats",
    "plan_batches",
]
