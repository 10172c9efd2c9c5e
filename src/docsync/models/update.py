"""Types for generated documentation updates and their review."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class ContentChange:
    type: str  # 'example', 'description', 'signature', 'addition'
    start_line: int
    end_line: int
    old_content: str
    new_content: str


@dataclass
class DocumentationUpdate:
    """Proposed replacement text for one documentation file."""

    file_path: str
    original_content: str
    updated_content: str
    changes: List[ContentChange] = field(default_factory=list)
    reasoning: str = ""


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class ReviewDecision:
    action: str  # 'approve', 'reject', 'edit'
    edited_content: Optional[str] = None
    feedback: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.action in ("approve", "edit")

    def content_for(self, update: DocumentationUpdate) -> str:
        """Text to write for an accepted update."""
        if self.action == "edit" and self.edited_content:
            return self.edited_content
        return update.updated_content
