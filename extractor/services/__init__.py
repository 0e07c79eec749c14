"""Extractor services: entry storage, api enrichment stages and file index."""

from .api_features import (
    face_detection,
    log_public_api_privacy_hint,
    object_detection,
    similar_embeddings,
)
from .api_server import ApiServerConfig, EnrichmentTask, EntryEligibility, api_server_entry
from .dispatcher import Stage, bounded_dispatch, passthrough, pipe
from .entry_storage import EntryStorage, FileEntryStorage
from .error_budget import ERROR_THRESHOLD, ErrorBudget
from .extractor import extract, run_extractor
from .index_writer import read_index, write_index

__all__ = [
    "ERROR_THRESHOLD",
    "ApiServerConfig",
    "EnrichmentTask",
    "EntryEligibility",
    "EntryStorage",
    "ErrorBudget",
    "FileEntryStorage",
    "Stage",
    "api_server_entry",
    "bounded_dispatch",
    "extract",
    "face_detection",
    "log_public_api_privacy_hint",
    "object_detection",
    "passthrough",
    "pipe",
    "read_index",
    "run_extractor",
    "similar_embeddings",
    "write_index",
]
