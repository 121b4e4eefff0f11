"""
Resolve a file extension from a file name, URL or ``data:`` URL.

The warehouse picks a reader from the extension of the staged file, so the
extension is all the type information an import needs.
"""

import re
from typing import Optional

# MIME types that can appear in data: URLs, mapped to the reader extension
MIME_TYPE_EXTENSIONS = {
    # JSON
    "application/json": ".json",
    "text/json": ".json",

    # JSON Lines / NDJSON
    "application/x-ndjson": ".jsonl",
    "application/ndjson": ".jsonl",
    "application/jsonlines": ".jsonl",
    "application/json-seq": ".jsonl",

    # Apache Parquet
    "application/vnd.apache.parquet": ".parquet",
    "application/x-parquet": ".parquet",
}

DEFAULT_BINARY_EXTENSION = ".bin"

_DATA_URL_MIME = re.compile(r"^data:([^;,]+)")


def extension_from_mime_type(mime_type: str) -> str:
    """Map a MIME type to an extension, falling back to a generic binary one."""
    return MIME_TYPE_EXTENSIONS.get(mime_type.lower(), DEFAULT_BINARY_EXTENSION)


def resolve_extension(source_name: str) -> Optional[str]:
    """
    Determine the extension (including the dot) for a source.

    Returns ``None`` when the type cannot be determined: an empty final path
    segment, a dotfile such as ``.gitignore`` or a name without a dot. Only
    the rightmost dot counts, so ``archive.tar.gz`` gives ``.gz``.
    """
    if source_name.startswith("data:"):
        match = _DATA_URL_MIME.match(source_name)
        if match:
            return extension_from_mime_type(match.group(1))
        # Malformed data URL
        return DEFAULT_BINARY_EXTENSION

    clean = source_name.split("#", 1)[0].split("?", 1)[0]
    filename = clean.rsplit("/", 1)[-1]

    # Hidden files without an extension
    if not filename or (filename[0] == "." and filename.find(".", 1) == -1):
        return None

    dot = filename.rfind(".")
    return filename[dot:] if dot > 0 else None
