"""docsync workflow integration using LangGraph for orchestration."""

import argparse
import asyncio
import os
import sys
import uuid
from datetime import datetime
from typing import Any, Dict

from dotenv import load_dotenv
from langgraph.graph import END, StateGraph
from loguru import logger

from docsync.config import DEFAULT_CONFIG_PATH, AgentConfig, create_sample_config, load_config
from docsync.detection.change_detector import ChangeDetector
from docsync.errors import ConfigError
from docsync.generation.generator import LLMDocumentationGenerator
from docsync.interfaces import ChangeSource, CodeParser, DocumentationGenerator, Reviewer
from docsync.models.state import AgentInput, AgentResult, PipelineMetrics, PipelineState
from docsync.nodes.analysis_node import analysis_node, route_after_filter, severity_filter_node
from docsync.nodes.apply_node import apply_node
from docsync.nodes.complete_node import complete_node
from docsync.nodes.detection_node import detection_node, route_after_detection
from docsync.nodes.generation_node import generation_node
from docsync.nodes.mapping_node import mapping_node, route_after_mapping
from docsync.nodes.review_node import review_node
from docsync.parsing.python_parser import PythonAPIParser
from docsync.review.reviewer import ConsoleReviewer, DecisionLog


def create_workflow():
    """Create the docsync pipeline graph.

    detection -> analysis -> severity filter -> mapping -> generation -> review -> apply -> complete,
    with an early exit to END whenever detection, filtering or mapping comes up empty.
    """
    workflow = StateGraph(PipelineState)

    # Add nodes
    workflow.add_node("detection_node", detection_node)
    workflow.add_node("analysis_node", analysis_node)
    workflow.add_node("severity_filter_node", severity_filter_node)
    workflow.add_node("mapping_node", mapping_node)
    workflow.add_node("generation_node", generation_node)
    workflow.add_node("review_node", review_node)
    workflow.add_node("apply_node", apply_node)
    workflow.add_node("complete_node", complete_node)

    workflow.set_entry_point("detection_node")

    # Define edges
    workflow.add_conditional_edges(
        "detection_node", route_after_detection, {"continue": "analysis_node", "stop": END}
    )
    workflow.add_edge("analysis_node", "severity_filter_node")
    workflow.add_conditional_edges(
        "severity_filter_node", route_after_filter, {"continue": "mapping_node", "stop": END}
    )
    workflow.add_conditional_edges("mapping_node", route_after_mapping, {"continue": "generation_node", "stop": END})
    workflow.add_edge("generation_node", "review_node")
    workflow.add_edge("review_node", "apply_node")
    workflow.add_edge("apply_node", "complete_node")
    workflow.add_edge("complete_node", END)

    return workflow.compile()


def new_session_id() -> str:
    return f"session-{int(datetime.now().timestamp() * 1000)}-{uuid.uuid4().hex[:6]}"


class DocSyncAgent:
    """Runs the documentation sync pipeline against a set of collaborators.

    Each call to ``run`` starts from a fresh ``PipelineState``; nothing is
    shared between runs apart from the collaborators themselves.
    """

    def __init__(
        self,
        detector: ChangeSource,
        parser: CodeParser,
        generator: DocumentationGenerator,
        reviewer: Reviewer,
    ):
        self.collaborators: Dict[str, Any] = {
            "detector": detector,
            "parser": parser,
            "generator": generator,
            "reviewer": reviewer,
        }
        self.app = create_workflow()

    @staticmethod
    def initial_state(agent_input: AgentInput) -> PipelineState:
        return {
            "session_id": new_session_id(),
            "start_time": datetime.now(),
            "input": agent_input,
            "phase": "detecting",
            "updates": [],
            "updates_applied": 0,
            "metrics": PipelineMetrics(),
            "errors": [],
        }

    async def run(self, agent_input: AgentInput) -> AgentResult:
        """Run the pipeline once. Only an error no phase handles marks the run as failed."""
        state = self.initial_state(agent_input)
        logger.info(f"Starting documentation sync {state['session_id']} ({agent_input.mode} mode)")

        final_state: Dict[str, Any] = dict(state)
        try:
            async for values in self.app.astream(
                state, config={"configurable": self.collaborators}, stream_mode="values"
            ):
                final_state = values
        except Exception as e:
            logger.error(f"Pipeline failed: {e}")
            return AgentResult(
                success=False,
                updates_generated=len(final_state.get("updates", [])),
                updates_applied=final_state.get("updates_applied", 0),
                errors=[*final_state.get("errors", []), e],
                summary=f"Pipeline failed: {e}",
            )

        return AgentResult(
            success=True,
            updates_generated=len(final_state.get("updates", [])),
            updates_applied=final_state.get("updates_applied", 0),
            errors=list(final_state.get("errors", [])),
            summary=final_state.get("summary", ""),
        )


def create_agent(config: AgentConfig, repo_path: str = ".", auto_approve: bool = False) -> DocSyncAgent:
    """Wire the default collaborators: git detection, the Python parser, Groq generation, console review."""
    return DocSyncAgent(
        detector=ChangeDetector(config, repo_path),
        parser=PythonAPIParser(),
        generator=LLMDocumentationGenerator(
            groq_api_key=os.getenv("GROQ_API_KEY", ""),
            model=config.llm_model,
            temperature=config.temperature,
        ),
        reviewer=ConsoleReviewer(DecisionLog(config.decision_log_path), auto_approve=auto_approve),
    )


def run_agent(agent_input: AgentInput, repo_path: str = ".") -> AgentResult:
    """Synchronous wrapper around a default-wired agent run."""
    agent = create_agent(agent_input.config, repo_path, auto_approve=agent_input.auto_approve)
    return asyncio.run(agent.run(agent_input))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="docsync", description="Keep documentation in sync with code changes")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Run the documentation maintenance agent")
    run.add_argument("--files", nargs="+", help="Analyze specific files")
    run.add_argument("--commit", type=str, help="Analyze changes since a specific commit (default: HEAD~1)")
    run.add_argument("--config", type=str, default=DEFAULT_CONFIG_PATH, help="Path to configuration file")
    run.add_argument("--repo-path", type=str, default=".", help="Path to the Git repository")
    run.add_argument("--auto-approve", action="store_true", help="Approve every update without prompting")
    run.add_argument("--verbose", action="store_true", help="Enable verbose logging")

    init = subparsers.add_parser("init", help="Create a sample configuration file")
    init.add_argument("--output", type=str, default=DEFAULT_CONFIG_PATH, help="Output path for configuration file")

    return parser


def main():
    args = _build_parser().parse_args()

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if getattr(args, "verbose", False) else "INFO")

    if args.command == "init":
        create_sample_config(args.output)
        return

    load_dotenv()
    if not os.getenv("GROQ_API_KEY"):
        logger.error("GROQ_API_KEY environment variable is not set")
        sys.exit(1)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        logger.error(str(e))
        sys.exit(1)

    if args.files:
        agent_input = AgentInput(mode="files", config=config, target=args.files, auto_approve=args.auto_approve)
    else:
        agent_input = AgentInput(mode="git", config=config, target=args.commit, auto_approve=args.auto_approve)

    logger.info(f"Mode: {agent_input.mode}")
    result = run_agent(agent_input, os.path.abspath(args.repo_path))

    logger.info(result.summary)
    if result.errors:
        logger.error("Errors encountered during processing:")
        for error in result.errors:
            logger.error(f"- {type(error).__name__}: {error}")

    if not result.success:
        sys.exit(1)


if __name__ == "__main__":
    main()
