"""LLM-backed generation of documentation updates."""

import difflib
import json
import re
from typing import Any, Dict, List, Optional

from langchain_core.exceptions import OutputParserException
from langchain_core.output_parsers import JsonOutputParser, StrOutputParser
from langchain_core.prompts import PromptTemplate
from langchain_groq import ChatGroq
from loguru import logger

from docsync.errors import GenerationError
from docsync.models.api import APIDiff
from docsync.models.docs import DocFile, DocumentationContext
from docsync.models.update import ContentChange, DocumentationUpdate, ValidationResult

# LLM prompt templates
UPDATE_TEMPLATE = """
You are an expert technical documentation writer tasked with updating documentation to reflect code changes.

Your responsibilities:
1. Update documentation to accurately reflect API changes
2. Preserve the original tone, style, and structure of the documentation
3. Update code examples to use the new API signatures
4. Maintain consistency with the project's documentation conventions

Style Guidelines:
- Tone: {tone}
- Formatting: {formatting}
- Conventions: {conventions}

Project Context:
{project_context}

Important Rules:
- Only update content that is affected by the code changes
- Preserve all markdown formatting and structure
- Keep code examples working and executable
- If a change is breaking, add appropriate warnings or migration notes
- Do not add unnecessary information or change the scope of the documentation

## Code Changes

{code_changes}

## Current Documentation

File: {file_path}

```markdown
{content}
```

{references}

{examples}

Return a strict JSON response with exactly these fields as shown in this example:
{{
    "updated_content": "The complete updated documentation content",
    "reasoning": "Brief explanation of what was changed and why",
    "changes": [{{"type": "example", "description": "What was changed in this section"}}]
}}

The updated_content must be the complete document that can directly replace the original file.
"""

MARKDOWN_BLOCK = re.compile(r"```markdown\s*([\s\S]*?)\s*```")
HEADER = re.compile(r"^#{1,6}\s+.+$", re.M)
LIST_ITEM = re.compile(r"^\s*[-*+]\s+", re.M)
CODE_BLOCK = re.compile(r"```[\s\S]*?```")


def format_code_changes(diff: APIDiff) -> str:
    sections: List[str] = []

    if diff.added:
        sections.append("### Added APIs\n")
        sections.extend(f"- **{api.name}** ({api.kind.value}): {api.signature}" for api in diff.added)

    if diff.removed:
        sections.append("\n### Removed APIs\n")
        sections.extend(f"- **{api.name}** ({api.kind.value}): {api.signature}" for api in diff.removed)

    if diff.modified:
        sections.append("\n### Modified APIs\n")
        for mod in diff.modified:
            sections.append(f"- **{mod.new.name}** ({mod.new.kind.value})")
            sections.append(f"  - Old: {mod.old.signature}")
            sections.append(f"  - New: {mod.new.signature}")
            if mod.changes:
                sections.append(f"  - Changes: {', '.join(c.description for c in mod.changes)}")

    return "\n".join(sections) if sections else "No API changes detected."


def format_references(doc_file: DocFile) -> str:
    if not doc_file.references:
        return ""

    lines = [
        "## References Found\n",
        f"This documentation file contains {len(doc_file.references)} reference(s) to the changed APIs:\n",
    ]
    for index, ref in enumerate(doc_file.references, start=1):
        lines.append(f'{index}. Line {ref.line_number} ({ref.reference_type}): "{ref.context}"')
    return "\n".join(lines)


def format_examples(doc_file: DocFile) -> str:
    if not doc_file.examples:
        return ""

    lines = ["## Code Examples Found\n", f"This documentation contains {len(doc_file.examples)} code example(s):\n"]
    for index, example in enumerate(doc_file.examples, start=1):
        lines.append(f"### Example {index} (Lines {example.start_line}-{example.end_line})")
        lines.append(f"```{example.language}")
        lines.append(example.code)
        lines.append("```\n")
    return "\n".join(lines)


def format_project_context(context: DocumentationContext) -> str:
    project = context.project_context
    lines = [f"- Language: {project.language}"]
    if project.framework:
        lines.append(f"- Framework: {project.framework}")
    lines.append(f"- Documentation Format: {project.documentation_format}")
    if project.custom_guidelines:
        lines.append(f"- Custom Guidelines: {project.custom_guidelines}")
    return "\n".join(lines)


def _change_type(old_lines: List[str], new_lines: List[str]) -> str:
    combined = "\n".join([*old_lines, *new_lines]).lower()
    if "```" in combined:
        return "example"
    if "(" in combined and ")" in combined:
        return "signature"
    if not old_lines:
        return "addition"
    return "description"


def compute_content_changes(original: str, updated: str) -> List[ContentChange]:
    """Line-level hunks between the original and updated text."""
    old_lines = original.split("\n")
    new_lines = updated.split("\n")
    matcher = difflib.SequenceMatcher(a=old_lines, b=new_lines, autojunk=False)

    changes: List[ContentChange] = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            continue
        old_section = old_lines[i1:i2]
        new_section = new_lines[j1:j2]
        changes.append(
            ContentChange(
                type=_change_type(old_section, new_section),
                start_line=i1 + 1,
                end_line=i1 + max(len(old_section), len(new_section)),
                old_content="\n".join(old_section),
                new_content="\n".join(new_section),
            )
        )
    return changes


def _is_valid_code_block(block: str) -> bool:
    lines = block.split("\n")
    if len(lines) < 2:
        return False
    return lines[0].strip().startswith("```") and lines[-1].strip() == "```"


def validate_update(update: DocumentationUpdate) -> ValidationResult:
    """Check a generated update for empty output and lost structure."""
    errors: List[str] = []
    warnings: List[str] = []

    if not update.updated_content or not update.updated_content.strip():
        errors.append("Updated content is empty")

    if update.updated_content == update.original_content:
        warnings.append("Updated content is identical to original")

    if HEADER.search(update.original_content) and not HEADER.search(update.updated_content):
        warnings.append("All markdown headers were removed")

    if LIST_ITEM.search(update.original_content) and not LIST_ITEM.search(update.updated_content):
        warnings.append("List formatting may have been removed")

    original_blocks = CODE_BLOCK.findall(update.original_content)
    updated_blocks = CODE_BLOCK.findall(update.updated_content)

    if original_blocks and not updated_blocks:
        warnings.append("All code examples were removed")

    for block in updated_blocks:
        if not _is_valid_code_block(block):
            errors.append(f"Code block has malformed markdown: {block[:50]}...")

    if updated_blocks and len(original_blocks) > len(updated_blocks) + 1:
        warnings.append(f"Number of code blocks decreased from {len(original_blocks)} to {len(updated_blocks)}")

    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)


class LLMDocumentationGenerator:
    """Drafts replacement text for a documentation file with a Groq-hosted model."""

    def __init__(
        self,
        groq_api_key: str,
        model: str = "llama-3.1-8b-instant",
        temperature: float = 0.3,
        max_retries: int = 3,
        llm: Optional[Any] = None,
    ):
        if llm is None:
            if not groq_api_key:
                raise GenerationError("Groq API key is required. Set the GROQ_API_KEY environment variable.")
            llm = ChatGroq(groq_api_key=groq_api_key, model=model, temperature=temperature)

        self.max_retries = max_retries
        self.chain = PromptTemplate.from_template(UPDATE_TEMPLATE) | llm | StrOutputParser()
        self._json_parser = JsonOutputParser()

    def _prompt_inputs(self, doc_file: DocFile, context: DocumentationContext) -> Dict[str, str]:
        style = context.style_guide
        return {
            "tone": style.tone,
            "formatting": style.formatting,
            "conventions": ", ".join(style.conventions),
            "project_context": format_project_context(context),
            "code_changes": format_code_changes(context.code_changes),
            "file_path": doc_file.path,
            "content": doc_file.content,
            "references": format_references(doc_file),
            "examples": format_examples(doc_file),
        }

    def parse_response(self, response: str, doc_file: DocFile) -> DocumentationUpdate:
        """Read the model's JSON answer, falling back to a markdown block or the raw text."""
        try:
            parsed = self._json_parser.parse(response)
            if not isinstance(parsed, dict) or not parsed.get("updated_content"):
                raise OutputParserException("Response missing updated_content field")
        except (OutputParserException, json.JSONDecodeError) as e:
            logger.debug(f"Unstructured response for {doc_file.path}: {e}")
            match = MARKDOWN_BLOCK.search(response)
            updated = match.group(1) if match else response
            return DocumentationUpdate(
                file_path=doc_file.path,
                original_content=doc_file.content,
                updated_content=updated.strip(),
                changes=[],
                reasoning="Parsed from unstructured response",
            )

        updated = parsed["updated_content"]
        return DocumentationUpdate(
            file_path=doc_file.path,
            original_content=doc_file.content,
            updated_content=updated,
            changes=compute_content_changes(doc_file.content, updated),
            reasoning=parsed.get("reasoning") or "No reasoning provided",
        )

    async def generate_update(self, doc_file: DocFile, context: DocumentationContext) -> DocumentationUpdate:
        """Generate and validate an update, retrying up to ``max_retries`` times."""
        inputs = self._prompt_inputs(doc_file, context)
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                response = await self.chain.ainvoke(inputs)
                update = self.parse_response(response, doc_file)

                validation = validate_update(update)
                if not validation.is_valid:
                    raise GenerationError(f"Validation failed: {', '.join(validation.errors)}", doc_file.path)
                for warning in validation.warnings:
                    logger.warning(f"{doc_file.path}: {warning}")

                return update
            except Exception as e:
                logger.debug(f"Attempt {attempt}/{self.max_retries} for {doc_file.path} failed: {e}")
                last_error = e

        raise GenerationError(
            f"Failed to generate update after {self.max_retries} attempts: {last_error}", doc_file.path
        ) from last_error
