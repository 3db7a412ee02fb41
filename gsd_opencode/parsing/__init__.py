from gsd_opencode.parsing.hashing import content_hash, hash_source_tree, scan_source
from gsd_opencode.parsing.models import (
    EntityKind,
    Extraction,
    ParseError,
    ParseResult,
    SourceFormat,
    SourceScan,
)
from gsd_opencode.parsing.parser import SourceParser, parse_source

__all__ = [
    "EntityKind",
    "Extraction",
    "ParseError",
    "ParseResult",
    "SourceFormat",
    "SourceScan",
    "SourceParser",
    "content_hash",
    "hash_source_tree",
    "parse_source",
    "scan_source",
]
