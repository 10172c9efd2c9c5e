"""Types for documentation files, the references found in them and generation context."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from docsync.models.api import APIDiff, APIElement


@dataclass
class DocReference:
    """A line in a documentation file that mentions a changed element."""

    file_path: str
    line_number: int
    context: str  # the matching line plus one line either side
    reference_type: str = "name"


@dataclass
class CodeExample:
    """Body of one fenced code block."""

    file_path: str
    code: str
    language: str
    start_line: int
    end_line: int


@dataclass
class DocFile:
    path: str
    content: str
    references: List[DocReference] = field(default_factory=list)
    examples: List[CodeExample] = field(default_factory=list)


@dataclass
class AffectedDocumentation:
    """Documentation hits for a diff, grouped by file in discovery order."""

    files: Dict[str, DocFile] = field(default_factory=dict)
    total_references: int = 0
    missing_docs: List[APIElement] = field(default_factory=list)

    def file_for(self, path: str, content: str) -> DocFile:
        """Return the entry for path, creating it on first use."""
        if path not in self.files:
            self.files[path] = DocFile(path=path, content=content)
        return self.files[path]


@dataclass
class StyleGuide:
    tone: str
    formatting: str
    conventions: List[str]
    example_patterns: List[str]


@dataclass
class ProjectContext:
    language: str
    documentation_format: str
    framework: Optional[str] = None
    custom_guidelines: Optional[str] = None


@dataclass
class DocumentationContext:
    """Everything the generator needs besides the file being rewritten."""

    code_changes: APIDiff
    affected_files: List[DocFile]
    style_guide: StyleGuide
    project_context: ProjectContext
    examples: List[CodeExample]
