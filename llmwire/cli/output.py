"""Output formatting utilities for the CLI."""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from llmwire.config import ModelEntry
from llmwire.llm.providers.base import ProviderAdapter
from llmwire.llm.types import FinishReason, GenericCompletionResult

FINISH_COLORS = {
    FinishReason.STOP: "green",
    FinishReason.TOOL_CALLS: "cyan",
    FinishReason.LENGTH: "yellow",
    FinishReason.CONTENT_FILTER: "red",
    FinishReason.ERROR: "bold red",
}


class OutputFormatter:
    """Rich-based output formatting for the llmwire CLI."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def format_provider_list(self, adapters: dict[str, ProviderAdapter]) -> None:
        table = Table(title="Registered Providers")
        table.add_column("Key", style="cyan", no_wrap=True)
        table.add_column("Adapter", no_wrap=True)
        table.add_column("Framing", no_wrap=True)
        table.add_column("Default URL")

        for key, adapter in adapters.items():
            table.add_row(key, type(adapter).__name__, adapter.framing, adapter.default_url)

        self.console.print(table)

    def format_model_list(self, models: list[ModelEntry], keys_set: dict[str, bool]) -> None:
        table = Table(title="Configured Models")
        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("Provider", no_wrap=True)
        table.add_column("Model ID", no_wrap=True)
        table.add_column("API Key")
        table.add_column("URL")

        for entry in models:
            if not entry.api_key_env:
                key = "[dim]-[/dim]"
            elif keys_set.get(entry.name):
                key = f"[green]{entry.api_key_env}[/green]"
            else:
                key = f"[red]{entry.api_key_env} (unset)[/red]"
            table.add_row(entry.name, entry.provider, entry.model_id, key, entry.url or "[dim]default[/dim]")

        self.console.print(table)

    def format_json(self, data: Any) -> None:
        text = json.dumps(data, indent=2, ensure_ascii=False, default=str)
        self.console.print(Syntax(text, "json", theme="monokai", word_wrap=True))

    def format_config(self, config: dict) -> None:
        self.format_json(config)

    def format_result(self, result: GenericCompletionResult, errors: list | None = None) -> None:
        color = FINISH_COLORS.get(result.finish_reason or "", "white")
        status = Text(
            f"complete={result.complete} finish_reason={result.finish_reason}", style=color
        )
        self.console.print(status)

        if result.thinking:
            self.console.print(Panel("".join(result.thinking), title="Thinking", style="dim"))
        if result.content:
            self.console.print(Panel(result.text, title="Content"))

        if result.tool_calls:
            table = Table(title="Tool Calls", show_lines=True)
            table.add_column("ID", style="cyan", no_wrap=True)
            table.add_column("Name", no_wrap=True)
            table.add_column("Arguments")
            for tc in result.tool_calls:
                table.add_row(tc.id or "", tc.name, json.dumps(tc.arguments, ensure_ascii=False))
            self.console.print(table)

        if result.images:
            self.console.print(f"[dim]Images:[/dim] {len(result.images)}")
        if result.grounding_metadata is not None:
            self.console.print("[dim]Grounding metadata:[/dim]")
            self.format_json(result.grounding_metadata)
        if result.error:
            self.console.print(f"[red]Error:[/red] {result.error}")
        for err in errors or []:
            self.console.print(f"[yellow]Parse error:[/yellow] {err}")
