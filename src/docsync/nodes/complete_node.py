"""Complete Node: final metrics and the human-readable run summary."""

import dataclasses
from datetime import datetime
from typing import Any, Dict, List

from loguru import logger

from docsync.models.state import PipelineMetrics, PipelineState


def build_summary(updates_generated: int, updates_applied: int, errors: List[Exception], metrics: PipelineMetrics) -> str:
    parts = [
        f"Generated {updates_generated} documentation update(s)",
        f"Applied {updates_applied} update(s)",
    ]
    if errors:
        parts.append(f"Encountered {len(errors)} error(s)")
    parts.append(f"Analyzed {metrics.files_analyzed} file(s)")
    parts.append(f"Found {metrics.apis_changed} API change(s)")
    return ". ".join(parts) + "."


async def complete_node(state: PipelineState) -> Dict[str, Any]:
    logger.info("Executing Complete Node")
    elapsed = (datetime.now() - state["start_time"]).total_seconds()
    metrics = dataclasses.replace(state["metrics"], execution_time=elapsed)

    summary = build_summary(
        len(state.get("updates", [])),
        state.get("updates_applied", 0),
        state.get("errors", []),
        metrics,
    )
    logger.info(summary)
    return {"phase": "complete", "metrics": metrics, "summary": summary}
