"""Exception hierarchy for the documentation sync pipeline.

Everything below ``DocSyncError`` except ``ChangeDetectionError`` and
``ConfigError`` is recoverable: the pipeline records it and moves on to the
next item.
"""

from typing import Optional


class DocSyncError(Exception):
    """Base class for all docsync errors."""

    phase = "pipeline"

    def __init__(self, message: str, file_path: Optional[str] = None):
        super().__init__(message)
        self.file_path = file_path


class ConfigError(DocSyncError):
    phase = "config"


class ChangeDetectionError(DocSyncError):
    phase = "detecting"


class ParseError(DocSyncError):
    phase = "analyzing"


class MappingError(DocSyncError):
    phase = "mapping"


class GenerationError(DocSyncError):
    phase = "generating"


class ReviewError(DocSyncError):
    phase = "reviewing"


class WriteError(DocSyncError):
    phase = "applying"
