"""Detection Node: collect the code changes a run should look at."""

from typing import Any, Dict, List

from langchain_core.runnables import RunnableConfig
from loguru import logger

from docsync.errors import ChangeDetectionError
from docsync.models.state import AgentInput, PipelineState

NO_CHANGES_SUMMARY = "No code changes detected."


def _target_files(agent_input: AgentInput) -> List[str]:
    target = agent_input.target
    if not target:
        return []
    if isinstance(target, str):
        return [path.strip() for path in target.split(",") if path.strip()]
    return list(target)


async def detection_node(state: PipelineState, config: RunnableConfig) -> Dict[str, Any]:
    """Ask the change source for changed files according to the input mode."""
    logger.info("Executing Detection Node")
    detector = config["configurable"]["detector"]
    agent_input = state["input"]

    try:
        if agent_input.mode == "git":
            changes = detector.detect_from_git(agent_input.target)
        elif agent_input.mode == "files":
            changes = detector.detect_from_files(_target_files(agent_input))
        else:
            raise ChangeDetectionError(f"Unsupported mode: {agent_input.mode}")
    except ChangeDetectionError:
        raise
    except Exception as e:
        raise ChangeDetectionError(f"Failed to detect changes: {e}") from e

    logger.info(f"Detected {len(changes)} code changes")
    update: Dict[str, Any] = {"phase": "detecting", "changes": changes}
    if not changes:
        logger.info(NO_CHANGES_SUMMARY)
        update["summary"] = NO_CHANGES_SUMMARY
    return update


def route_after_detection(state: PipelineState) -> str:
    return "continue" if state.get("changes") else "stop"
