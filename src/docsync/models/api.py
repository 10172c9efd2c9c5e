"""Types describing a code API surface and the changes between two versions of it."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


class ChangeSeverity(str, Enum):
    """Compatibility impact of an API change, ordered patch < minor < major < breaking."""

    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"
    BREAKING = "breaking"

    @property
    def rank(self) -> int:
        return SEVERITY_ORDER.index(self)

    def at_least(self, other: "ChangeSeverity") -> bool:
        """Check whether this severity meets the given threshold."""
        return self.rank >= ChangeSeverity(other).rank


SEVERITY_ORDER = [ChangeSeverity.PATCH, ChangeSeverity.MINOR, ChangeSeverity.MAJOR, ChangeSeverity.BREAKING]


class ElementKind(str, Enum):
    FUNCTION = "function"
    CLASS = "class"
    INTERFACE = "interface"
    TYPE = "type"
    CONSTANT = "constant"


class ChangeDetailKind(str, Enum):
    SIGNATURE = "signature"
    PARAMETERS = "parameters"
    RETURN_TYPE = "return_type"
    DOCUMENTATION = "documentation"


@dataclass(frozen=True)
class SourceLocation:
    """Position of an element in its source file (1-based lines)."""

    start_line: int = 0
    end_line: int = 0
    start_column: int = 0
    end_column: int = 0


@dataclass(frozen=True)
class Parameter:
    name: str
    type: Optional[str] = None
    optional: bool = False
    default_value: Optional[str] = None


@dataclass
class APIElement:
    """One exported code construct. Identity within a version is its name."""

    kind: ElementKind
    name: str
    signature: str
    is_public: bool = True
    parameters: Optional[List[Parameter]] = None
    return_type: Optional[str] = None
    documentation_text: Optional[str] = None
    location: SourceLocation = field(default_factory=SourceLocation)


@dataclass(frozen=True)
class ChangeDetail:
    kind: ChangeDetailKind
    description: str


@dataclass
class ModifiedAPI:
    """An element present in both versions with at least one difference."""

    old: APIElement
    new: APIElement
    changes: List[ChangeDetail]


@dataclass
class APIDiff:
    """Partition of all element names across two versions.

    Every name present in either version lands in exactly one bucket.
    """

    added: List[APIElement] = field(default_factory=list)
    removed: List[APIElement] = field(default_factory=list)
    modified: List[ModifiedAPI] = field(default_factory=list)
    unchanged: List[APIElement] = field(default_factory=list)

    @property
    def change_count(self) -> int:
        return len(self.added) + len(self.removed) + len(self.modified)

    def changed_elements(self) -> List[APIElement]:
        """Elements worth looking up in the docs: added, removed and the new side of modified."""
        return [*self.added, *self.removed, *(m.new for m in self.modified)]


@dataclass
class ImportStatement:
    source: str
    specifiers: List[str] = field(default_factory=list)
    is_default: bool = False


@dataclass
class ExportStatement:
    name: str
    is_default: bool = False


@dataclass
class ParsedCode:
    """Output of a parser. The syntax tree is opaque to everything downstream."""

    apis: List[APIElement]
    imports: List[ImportStatement] = field(default_factory=list)
    exports: List[ExportStatement] = field(default_factory=list)
    ast: Any = None


@dataclass
class CodeChange:
    """A changed source file as reported by change detection."""

    file_path: str
    change_type: str  # 'added', 'modified', 'deleted'
    language: str
    content: str
    previous_content: Optional[str] = None
