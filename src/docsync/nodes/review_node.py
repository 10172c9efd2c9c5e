"""Review Node: hand generated updates to the reviewer."""

from typing import Any, Dict, List

from langchain_core.runnables import RunnableConfig
from loguru import logger

from docsync.errors import ReviewError
from docsync.models.state import PipelineState
from docsync.models.update import ReviewDecision


def _rejected(feedback: str) -> ReviewDecision:
    return ReviewDecision(action="reject", feedback=feedback)


async def review_node(state: PipelineState, config: RunnableConfig) -> Dict[str, Any]:
    """Collect one decision per update. If review fails, every update is rejected."""
    logger.info("Executing Review Node")
    reviewer = config["configurable"]["reviewer"]
    updates = state.get("updates", [])
    errors: List[Exception] = []

    try:
        decisions = list(await reviewer.present_batch(updates)) if updates else []
    except Exception as e:
        logger.error(f"Review failed: {e}")
        error = ReviewError(f"Review failed: {e}")
        error.__cause__ = e
        errors.append(error)
        decisions = [_rejected("Review failed") for _ in updates]

    if len(decisions) < len(updates):
        decisions.extend(_rejected("No decision recorded") for _ in range(len(updates) - len(decisions)))

    approved = sum(1 for decision in decisions if decision.accepted)
    logger.info(f"{approved} of {len(updates)} updates approved")
    return {"phase": "reviewing", "decisions": decisions[: len(updates)], "errors": errors}
