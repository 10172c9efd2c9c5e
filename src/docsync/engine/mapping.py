"""Documentation index and reference finder.

Scans the configured documentation roots once per run and answers "where is
this element mentioned?" with line-level references and fenced code examples.
"""

import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from loguru import logger

from docsync.models.api import APIDiff, APIElement
from docsync.models.docs import AffectedDocumentation, CodeExample, DocReference

DOC_EXTENSIONS = {".md", ".mdx"}

FENCE_OPEN = re.compile(r"^```(\w+)?")
FENCE_CLOSE = re.compile(r"^```$")


def _base_path(pattern: str) -> Path:
    """Strip glob segments from a root pattern, e.g. ``docs/**/*.md`` -> ``docs``."""
    parts = []
    for part in Path(pattern).parts:
        if "*" in part or "?" in part:
            break
        parts.append(part)
    return Path(*parts) if parts else Path(".")


def _word_pattern(name: str) -> re.Pattern:
    return re.compile(rf"\b{re.escape(name)}\b")


def extract_code_blocks(content: str, file_path: str) -> List[CodeExample]:
    """Collect the bodies of fenced code blocks. Unterminated blocks are dropped."""
    blocks: List[CodeExample] = []
    in_block = False
    body: List[str] = []
    language = ""
    fence_line = 0

    for i, line in enumerate(content.split("\n")):
        if not in_block:
            match = FENCE_OPEN.match(line)
            if match:
                in_block = True
                language = match.group(1) or ""
                fence_line = i + 1
                body = []
            continue

        if FENCE_CLOSE.match(line):
            in_block = False
            blocks.append(
                CodeExample(
                    file_path=file_path,
                    code="\n".join(body),
                    language=language,
                    start_line=fence_line + 1,
                    end_line=i,
                )
            )
            continue

        body.append(line)

    return blocks


class DocumentationIndex:
    """In-memory snapshot of documentation files (path -> text), built once per run."""

    def __init__(self, roots: Iterable[str], extensions: Optional[Iterable[str]] = None):
        self.roots = list(roots)
        self.extensions = {ext.lower() for ext in (extensions or DOC_EXTENSIONS)}
        self._files: Dict[str, str] = {}

    def initialize(self) -> None:
        """Rebuild the index from disk. Roots that do not exist are skipped."""
        self._files = {}
        for root in self.roots:
            self._scan(_base_path(root))
        logger.debug(f"Indexed {len(self._files)} documentation files")

    def _is_doc_file(self, path: Path) -> bool:
        return path.suffix.lower() in self.extensions

    def _scan(self, path: Path) -> None:
        if not path.exists():
            logger.debug(f"Documentation root {path} does not exist, skipping")
            return

        if path.is_file():
            if self._is_doc_file(path):
                self._add(path)
            return

        try:
            entries = sorted(path.iterdir())
        except OSError as e:
            logger.warning(f"Cannot list documentation directory {path}: {e}")
            return

        for entry in entries:
            if entry.is_dir():
                self._scan(entry)
            elif self._is_doc_file(entry):
                self._add(entry)

    def _add(self, path: Path) -> None:
        """Read one file; undecodable bytes become U+FFFD, unreadable files are skipped."""
        key = str(path)
        if key in self._files:
            return
        try:
            self._files[key] = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning(f"Skipping unreadable documentation file {path}: {e}")

    @property
    def paths(self) -> List[str]:
        return list(self._files)

    def content(self, path: str) -> Optional[str]:
        return self._files.get(path)

    def items(self):
        return self._files.items()

    def __len__(self) -> int:
        return len(self._files)


class ReferenceFinder:
    """Word-boundary search for element names over a documentation index."""

    def __init__(self, index: DocumentationIndex):
        self.index = index

    def find_references(self, element: APIElement) -> List[DocReference]:
        """One reference per line that mentions the element's name as a whole word."""
        pattern = _word_pattern(element.name)
        references: List[DocReference] = []

        for file_path, content in self.index.items():
            lines = content.split("\n")
            for i, line in enumerate(lines):
                if not pattern.search(line):
                    continue
                context = "\n".join(lines[max(0, i - 1) : i + 2])
                references.append(
                    DocReference(file_path=file_path, line_number=i + 1, context=context, reference_type="name")
                )

        return references

    def find_code_examples(self, element: APIElement) -> List[CodeExample]:
        """Fenced code blocks whose body mentions the element's name as a whole word."""
        pattern = _word_pattern(element.name)
        return [
            block
            for file_path, content in self.index.items()
            for block in extract_code_blocks(content, file_path)
            if pattern.search(block.code)
        ]


class DocumentationMapper:
    """Maps a diff onto the documentation that mentions its changed elements."""

    def __init__(self, documentation_paths: Iterable[str]):
        self.index = DocumentationIndex(documentation_paths)
        self.finder = ReferenceFinder(self.index)

    def initialize(self) -> None:
        self.index.initialize()

    def map_affected_docs(self, diff: APIDiff) -> AffectedDocumentation:
        """Group references and examples for every changed element by file.

        Public elements with no hits at all are reported in ``missing_docs``.
        A line that mentions two changed elements is counted once for each.
        """
        affected = AffectedDocumentation()

        for element in diff.changed_elements():
            references = self.finder.find_references(element)
            examples = self.finder.find_code_examples(element)

            if not references and not examples:
                if element.is_public:
                    logger.debug(f"No documentation found for public {element.kind.value} {element.name}")
                    affected.missing_docs.append(element)
                continue

            affected.total_references += len(references)

            for reference in references:
                doc_file = affected.file_for(reference.file_path, self.index.content(reference.file_path) or "")
                doc_file.references.append(reference)

            for example in examples:
                doc_file = affected.file_for(example.file_path, self.index.content(example.file_path) or "")
                doc_file.examples.append(example)

        return affected
