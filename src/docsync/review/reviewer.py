"""Interactive review of generated documentation updates."""

import difflib
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger
from rich.console import Console
from rich.prompt import Confirm, Prompt
from rich.rule import Rule
from rich.text import Text

from docsync.models.update import DocumentationUpdate, ReviewDecision


class DecisionLog:
    """Append-only JSON array of review decisions.

    Writes are fire-and-forget: any failure is logged and dropped so that
    audit logging can never fail a review.
    """

    def __init__(self, path: str = ".docsync-decisions.json"):
        self.path = Path(path)

    def record(self, update: DocumentationUpdate, decision: ReviewDecision) -> None:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "filePath": update.file_path,
            "action": decision.action,
            "reasoning": update.reasoning,
            "feedback": decision.feedback,
            "hadEditedContent": bool(decision.edited_content),
        }
        try:
            entries = json.loads(self.path.read_text(encoding="utf-8")) if self.path.exists() else []
            entries.append(entry)
            self.path.write_text(json.dumps(entries, indent=2), encoding="utf-8")
        except Exception as e:
            logger.warning(f"Failed to log review decision to {self.path}: {e}")


def render_diff(original: str, updated: str) -> Text:
    """Line diff coloured for the terminal."""
    text = Text()
    for line in difflib.ndiff(original.splitlines(), updated.splitlines()):
        marker, body = line[:2], line[2:]
        if marker == "+ ":
            text.append(f"+ {body}\n", style="green")
        elif marker == "- ":
            text.append(f"- {body}\n", style="red")
        elif marker == "  ":
            text.append(f"  {body}\n", style="dim")
    return text


class ConsoleReviewer:
    """Presents each update in the terminal and collects approve/reject/edit decisions."""

    def __init__(
        self,
        decision_log: Optional[DecisionLog] = None,
        auto_approve: bool = False,
        console: Optional[Console] = None,
    ):
        self.decision_log = decision_log or DecisionLog()
        self.auto_approve = auto_approve
        self.console = console or Console()

    def _show(self, update: DocumentationUpdate) -> None:
        self.console.print(Rule(f"Documentation Update: {update.file_path}", style="bold cyan"))
        self.console.print("[bold]Reasoning:[/bold]")
        self.console.print(update.reasoning, style="dim")
        self.console.print("\n[bold]Changes:[/bold]")
        self.console.print(render_diff(update.original_content, update.updated_content))

    def _prompt(self, update: DocumentationUpdate) -> ReviewDecision:
        action = Prompt.ask(
            "What would you like to do with this update?",
            choices=["approve", "reject", "edit"],
            default="approve",
            console=self.console,
        )

        if action == "reject":
            feedback = Prompt.ask(
                "Why are you rejecting this update? (optional)", default="", console=self.console
            )
            return ReviewDecision(action="reject", feedback=feedback or None)

        if action == "edit":
            self.console.print("[yellow]Current content:[/yellow]")
            self.console.print(update.updated_content)
            edited = Prompt.ask(
                "Paste your edited content (or press Enter to use suggested content)",
                default="",
                show_default=False,
                console=self.console,
            )
            return ReviewDecision(action="edit", edited_content=edited or update.updated_content)

        return ReviewDecision(action="approve")

    def present_update(self, update: DocumentationUpdate) -> ReviewDecision:
        self._show(update)

        if self.auto_approve:
            self.console.print("[green]✓ Auto-approved[/green]")
            decision = ReviewDecision(action="approve")
        else:
            decision = self._prompt(update)

        self.decision_log.record(update, decision)
        return decision

    async def present_batch(self, updates: List[DocumentationUpdate]) -> List[ReviewDecision]:
        """Review updates in order; after a rejection the user may skip the rest."""
        decisions: List[ReviewDecision] = []

        for i, update in enumerate(updates):
            self.console.print(f"\n[bold yellow]Review {i + 1} of {len(updates)}[/bold yellow]")
            decision = self.present_update(update)
            decisions.append(decision)

            is_last = i == len(updates) - 1
            if decision.action == "reject" and not is_last and not self.auto_approve:
                if not Confirm.ask("Continue reviewing remaining updates?", default=True, console=self.console):
                    remaining = len(updates) - len(decisions)
                    decisions.extend(ReviewDecision(action="reject", feedback="Skipped by user") for _ in range(remaining))
                    break

        return decisions
