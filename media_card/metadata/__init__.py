"""
Metadata extraction and enrichment.

- path_parser: filename, folder and capture date from a media reference
- datetime_format: user-defined date patterns (YYYY, MM, DD, HH, mm, ss)
- enricher: merges the media index record over extracted metadata
- models: ExtractedMetadata / EnrichedMetadata
"""

from media_card.metadata.datetime_format import compile_format, parse_with_format
from media_card.metadata.enricher import (
    MetadataEnricher,
    merge_metadata,
    normalize_file_metadata,
    normalize_index_record,
)
from media_card.metadata.models import EnrichedMetadata, ExtractedMetadata, parse_timestamp
from media_card.metadata.path_parser import extract_metadata

__all__ = [
    "EnrichedMetadata",
    "ExtractedMetadata",
    "MetadataEnricher",
    "compile_format",
    "extract_metadata",
    "merge_metadata",
    "normalize_file_metadata",
    "normalize_index_record",
    "parse_timestamp",
    "parse_with_format",
]
