"""Domain models."""

from extractor.models.entry import IMAGE_ENTRY_TYPES, Entry, EntryType, entry_type_from_filename

__all__ = ["IMAGE_ENTRY_TYPES", "Entry", "EntryType", "entry_type_from_filename"]
