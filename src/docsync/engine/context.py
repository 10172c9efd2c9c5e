"""Context builder: bundles changes, affected docs and inferred style for the generator."""

import re
from typing import List

from docsync.config import AgentConfig
from docsync.models.api import APIDiff
from docsync.models.docs import (
    AffectedDocumentation,
    CodeExample,
    DocFile,
    DocumentationContext,
    ProjectContext,
    StyleGuide,
)

DEFAULT_STYLE_GUIDE = StyleGuide(
    tone="Direct and instructional, addressing the reader directly",
    formatting="Standard markdown formatting with code blocks",
    conventions=["Standard technical documentation"],
    example_patterns=["Usage snippets with inline comments"],
)

# (pattern, description) pairs checked against the combined documentation text
FORMATTING_PATTERNS = [
    (re.compile(r"^#{1,6}\s+", re.M), "Uses markdown headers for structure"),
    (re.compile(r"```\w*\n[\s\S]*?\n```", re.M), "Uses fenced code blocks for examples"),
    (re.compile(r"^\s*[-*+]\s+", re.M), "Uses bullet lists for enumeration"),
    (re.compile(r"^\s*\d+\.\s+", re.M), "Uses numbered lists for sequences"),
    (re.compile(r"\*\*[^*]+\*\*"), "Uses bold for emphasis"),
    (re.compile(r"`[^`]+`"), "Uses inline code formatting"),
]

CONVENTION_PATTERNS = [
    (re.compile(r"@param|@returns|@example|:param|:returns:", re.I), "Uses docstring-style annotations"),
    (re.compile(r"Parameters?:", re.I), "Documents parameters in dedicated sections"),
    (re.compile(r"Returns?:", re.I), "Documents return values explicitly"),
    (re.compile(r"Examples?:", re.I), "Includes example sections"),
    (re.compile(r"\{[A-Z][a-zA-Z]*\}|: [A-Z][a-zA-Z]*"), "Includes type information"),
]

LANGUAGE_HINTS = [
    (re.compile(r"\.py\b"), "Python"),
    (re.compile(r"\.tsx?\b"), "TypeScript"),
    (re.compile(r"\.jsx?\b"), "JavaScript"),
    (re.compile(r"\.java\b"), "Java"),
    (re.compile(r"\.go\b"), "Go"),
    (re.compile(r"\.rs\b"), "Rust"),
]


def _combined(doc_files: List[DocFile]) -> str:
    return "\n".join(doc_file.content for doc_file in doc_files)


def analyze_tone(doc_files: List[DocFile]) -> str:
    text = _combined(doc_files)
    second_person = re.search(r"\b(you|your)\b", text, re.I)
    imperative = re.search(r"^(create|use|implement|add|remove|update|configure)", text, re.I | re.M)

    if second_person or imperative:
        return "Direct and instructional, addressing the reader directly"
    if re.search(r"\b(we|our|us)\b", text, re.I):
        return "Collaborative and inclusive, using first-person plural"
    return "Formal and objective, using third-person perspective"


def analyze_formatting(doc_files: List[DocFile]) -> str:
    text = _combined(doc_files)
    found = [description for pattern, description in FORMATTING_PATTERNS if pattern.search(text)]
    return "; ".join(found) if found else "Standard markdown formatting"


def extract_conventions(doc_files: List[DocFile]) -> List[str]:
    text = _combined(doc_files)
    found = [description for pattern, description in CONVENTION_PATTERNS if pattern.search(text)]
    return found or ["Standard technical documentation"]


def extract_example_patterns(doc_files: List[DocFile]) -> List[str]:
    examples = [example for doc_file in doc_files for example in doc_file.examples]
    if not examples:
        return ["No code examples found"]

    patterns = []
    if any(re.search(r"//|/\*|#", ex.code) for ex in examples):
        patterns.append("Examples include explanatory comments")
    if any(re.search(r"^(import |from |require\()", ex.code, re.M) for ex in examples):
        patterns.append("Examples show import statements")
    if any(re.search(r"function\s+\w+|const\s+\w+\s*=\s*\(|def\s+\w+\(", ex.code, re.M) for ex in examples):
        patterns.append("Examples demonstrate complete function implementations")
    else:
        patterns.append("Examples show usage snippets")
    return patterns


def extract_style_guide(doc_files: List[DocFile]) -> StyleGuide:
    """Infer tone, formatting and conventions from existing documentation."""
    if not doc_files:
        return DEFAULT_STYLE_GUIDE

    return StyleGuide(
        tone=analyze_tone(doc_files),
        formatting=analyze_formatting(doc_files),
        conventions=extract_conventions(doc_files),
        example_patterns=extract_example_patterns(doc_files),
    )


def infer_language(code_paths: List[str]) -> str:
    joined = " ".join(code_paths)
    for pattern, language in LANGUAGE_HINTS:
        if pattern.search(joined):
            return language
    return "Unknown"


def build_context(diff: APIDiff, affected_docs: AffectedDocumentation, config: AgentConfig) -> DocumentationContext:
    """Build the generation context shared by every file in one run."""
    affected_files = list(affected_docs.files.values())
    examples: List[CodeExample] = [example for doc_file in affected_files for example in doc_file.examples]

    return DocumentationContext(
        code_changes=diff,
        affected_files=affected_files,
        style_guide=extract_style_guide(affected_files),
        project_context=ProjectContext(
            language=infer_language(config.code_paths),
            documentation_format=config.documentation_format,
            custom_guidelines=config.custom_style_guide,
        ),
        examples=examples,
    )
