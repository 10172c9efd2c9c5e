"""Agent configuration: loading, validation and the sample file written by ``docsync init``."""

import json
from pathlib import Path
from typing import List, Literal, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from docsync.errors import ConfigError
from docsync.models.api import ChangeSeverity

DEFAULT_CONFIG_PATH = ".docsync.json"


class AgentConfig(BaseModel):
    """Resolved settings for one agent run."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    documentation_paths: List[str] = Field(
        default_factory=lambda: ["docs/**/*.md", "README.md"], alias="documentationPaths"
    )
    code_paths: List[str] = Field(default_factory=lambda: ["src/**/*.py"], alias="codePaths")
    ignore_paths: List[str] = Field(
        default_factory=lambda: ["**/tests/**", "**/__pycache__/**", "build/**", "dist/**"],
        alias="ignorePaths",
    )
    min_severity: ChangeSeverity = Field(default=ChangeSeverity.MINOR, alias="minSeverity")
    llm_model: str = Field(default="llama-3.1-8b-instant", alias="llmModel")
    temperature: float = Field(default=0.3, ge=0, le=2)
    custom_style_guide: Optional[str] = Field(default=None, alias="customStyleGuide")
    documentation_format: Literal["markdown", "mdx"] = Field(default="markdown", alias="documentationFormat")
    decision_log_path: str = Field(default=".docsync-decisions.json", alias="decisionLogPath")

    @field_validator("documentation_paths", "code_paths")
    @classmethod
    def _non_empty(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("must be a non-empty list")
        return value


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> AgentConfig:
    """Load configuration from a JSON file, falling back to defaults when it is missing."""
    path = Path(config_path).resolve()
    if not path.exists():
        logger.warning(f"Configuration file not found at {path}. Using default configuration.")
        return AgentConfig()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in configuration file: {e}", str(path)) from e

    try:
        return AgentConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed:\n{e}", str(path)) from e


def create_sample_config(output_path: str = DEFAULT_CONFIG_PATH) -> Path:
    """Write a sample configuration file and return where it went."""
    path = Path(output_path).resolve()
    sample = AgentConfig().model_dump(mode="json", exclude_none=True)
    path.write_text(json.dumps(sample, indent=2), encoding="utf-8")
    logger.info(f"Sample configuration created at {path}")
    return path
