"""State management types for the docsync pipeline."""

import operator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Annotated, Dict, List, Optional, TypedDict, Union

from docsync.config import AgentConfig
from docsync.models.api import APIDiff, CodeChange, ParsedCode
from docsync.models.docs import AffectedDocumentation
from docsync.models.update import DocumentationUpdate, ReviewDecision


@dataclass
class AgentInput:
    """What to look at and how: ``mode`` is 'git' or 'files'."""

    mode: str
    config: AgentConfig
    target: Optional[Union[str, List[str]]] = None  # commit hash, or file paths
    auto_approve: bool = False


@dataclass
class AgentResult:
    success: bool
    updates_generated: int
    updates_applied: int
    errors: List[Exception] = field(default_factory=list)
    summary: str = ""


@dataclass(frozen=True)
class PipelineMetrics:
    files_analyzed: int = 0
    apis_changed: int = 0
    docs_updated: int = 0
    execution_time: float = 0.0  # seconds


class PipelineState(TypedDict, total=False):
    """
    State threaded through the pipeline graph for a single run.
    Each node adds or replaces specific fields; ``errors`` accumulates.
    """

    # Run identity
    session_id: str
    start_time: datetime
    input: AgentInput
    phase: str

    # Detection Node Output
    changes: List[CodeChange]

    # Analysis Node Output
    parsed_code: Dict[str, ParsedCode]
    diffs: List[APIDiff]

    # Mapping Node Output
    combined_diff: APIDiff
    affected_docs: AffectedDocumentation

    # Generation / Review / Apply Node Output
    updates: List[DocumentationUpdate]
    decisions: List[ReviewDecision]
    updates_applied: int

    # Global State
    metrics: PipelineMetrics
    errors: Annotated[List[Exception], operator.add]
    summary: str
