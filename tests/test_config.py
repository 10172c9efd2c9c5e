"""Tests for configuration loading."""

import json

import pytest

from docsync.config import AgentConfig, create_sample_config, load_config
from docsync.errors import ConfigError
from docsync.models.api import ChangeSeverity


def test_missing_file_falls_back_to_defaults(tmp_path):
    config = load_config(str(tmp_path / "absent.json"))

    assert config == AgentConfig()
    assert config.min_severity == ChangeSeverity.MINOR
    assert config.documentation_paths == ["docs/**/*.md", "README.md"]


def test_camel_case_keys_are_accepted(tmp_path):
    path = tmp_path / ".docsync.json"
    path.write_text(
        json.dumps({"documentationPaths": ["guide"], "minSeverity": "major", "temperature": 0.7}),
        encoding="utf-8",
    )

    config = load_config(str(path))

    assert config.documentation_paths == ["guide"]
    assert config.min_severity == ChangeSeverity.MAJOR
    assert config.temperature == 0.7
    assert config.code_paths == ["src/**/*.py"]


def test_invalid_json_raises_config_error(tmp_path):
    path = tmp_path / ".docsync.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigError, match="Invalid JSON"):
        load_config(str(path))


@pytest.mark.parametrize(
    "data",
    [
        {"codePaths": []},
        {"temperature": 3},
        {"minSeverity": "catastrophic"},
        {"documentationFormat": "rst"},
    ],
)
def test_invalid_values_raise_config_error(tmp_path, data):
    path = tmp_path / ".docsync.json"
    path.write_text(json.dumps(data), encoding="utf-8")

    with pytest.raises(ConfigError, match="validation failed") as exc_info:
        load_config(str(path))
    assert exc_info.value.file_path == str(path.resolve())


def test_sample_config_round_trips(tmp_path):
    output = create_sample_config(str(tmp_path / "sample.json"))

    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["documentation_paths"] == ["docs/**/*.md", "README.md"]
    assert load_config(str(output)) == AgentConfig()
