"""Boundaries between the pipeline and its external collaborators."""

from typing import List, Optional, Protocol

from docsync.models.api import CodeChange, ParsedCode
from docsync.models.docs import DocFile, DocumentationContext
from docsync.models.update import DocumentationUpdate, ReviewDecision


class ChangeSource(Protocol):
    def detect_from_git(self, commit: Optional[str] = None) -> List[CodeChange]: ...

    def detect_from_files(self, file_paths: List[str]) -> List[CodeChange]: ...


class CodeParser(Protocol):
    def parse(self, source: str, language: str) -> ParsedCode:
        """Extract the API surface of a source file; raises ``ParseError``."""
        ...


class DocumentationGenerator(Protocol):
    async def generate_update(self, doc_file: DocFile, context: DocumentationContext) -> DocumentationUpdate: ...


class Reviewer(Protocol):
    async def present_batch(self, updates: List[DocumentationUpdate]) -> List[ReviewDecision]:
        """Return one decision per update, in order."""
        ...
