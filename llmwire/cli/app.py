"""
Developer CLI for llmwire.

Usage:
    llmwire providers
    llmwire models
    llmwire convert-tools TOOLS.yaml --provider KEY
    llmwire replay CAPTURE (--provider KEY | --model NAME) [--chunk-size N]
    llmwire config show
    llmwire version
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console

from llmwire.config import LLMWireConfig, load_config
from llmwire.errors import LLMWireError
from llmwire.llm.registry import AdapterRegistry
from llmwire.llm.types import GenericCompletionResult

app = typer.Typer(name="llmwire", help="llmwire - multi-vendor LLM adapter tooling")
config_app = typer.Typer(help="Configuration management")

app.add_typer(config_app, name="config")

console = Console()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _get_config_path() -> Path | None:
    """Find config file in standard locations."""
    candidates = [
        Path.cwd() / "llmwire.yaml",
        Path.cwd() / "llmwire.yml",
        Path.home() / ".config" / "llmwire" / "config.yaml",
    ]
    for p in candidates:
        if p.is_file():
            return p
    return None


def _load(config: Path | None = None, profile: str | None = None) -> LLMWireConfig:
    cfg = load_config(config or _get_config_path(), profile=profile)
    logging.basicConfig(
        level=getattr(logging, cfg.logging.level.upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )
    return cfg


def _load_tools(path: Path) -> list[dict]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or []
    if isinstance(data, dict):
        data = data.get("tools", [])
    if not isinstance(data, list):
        raise typer.BadParameter(f"{path} must contain a list of tools")
    return data


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command()
def providers(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
):
    """List registered provider adapters."""
    from llmwire.cli.output import OutputFormatter

    registry = AdapterRegistry.default(_load(config))
    adapters = {key: registry.get(key) for key in registry.provider_names}
    OutputFormatter(console).format_provider_list(adapters)


@app.command()
def models(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
):
    """List configured models and whether their API keys are set."""
    from llmwire.cli.output import OutputFormatter

    cfg = _load(config)
    if not cfg.models:
        console.print("[dim]No models configured.[/dim]")
        return
    keys_set = {m.name: bool(m.api_key_env and os.environ.get(m.api_key_env)) for m in cfg.models}
    OutputFormatter(console).format_model_list(cfg.models, keys_set)


@app.command("convert-tools")
def convert_tools(
    tools_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="YAML or JSON tool list"),
    provider: str = typer.Option(..., "--provider", "-p", help="Provider key"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
):
    """Convert generic tools into a vendor's tool format."""
    from llmwire.cli.output import OutputFormatter

    registry = AdapterRegistry.default(_load(config))
    try:
        adapter = registry.get(provider)
        vendor_tools = adapter.converter.convert(_load_tools(tools_file))
    except LLMWireError as e:
        console.print(f"[red]Conversion failed:[/red] {e}")
        raise typer.Exit(1)

    OutputFormatter(console).format_json(vendor_tools)


@app.command()
def replay(
    capture: Path = typer.Argument(..., exists=True, dir_okay=False, help="Captured raw vendor stream"),
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="Provider key"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Configured model name"),
    chunk_size: int = typer.Option(64, "--chunk-size", "-n", min=1, help="Bytes per fragment"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
):
    """Replay a captured stream through the reassembler."""
    from llmwire.cli.output import OutputFormatter

    cfg = _load(config)
    model_id = None
    if model:
        try:
            entry = cfg.get_model(model)
        except KeyError:
            console.print(f"[red]Unknown model: {model}[/red]")
            raise typer.Exit(1)
        provider = provider or entry.provider
        model_id = entry.model_id
    if not provider:
        console.print("[red]Pass --provider or --model.[/red]")
        raise typer.Exit(1)

    registry = AdapterRegistry.default(cfg)
    try:
        adapter = registry.get(provider)
    except LLMWireError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    raw = capture.read_bytes()
    reassembler = adapter.create_reassembler(model_id)
    result = GenericCompletionResult()
    for start in range(0, len(raw), chunk_size):
        result.extend(adapter.process_response_buffer(raw[start:start + chunk_size], reassembler))
    result.extend(reassembler.finish())

    OutputFormatter(console).format_result(result, reassembler.errors)


@config_app.command("show")
def config_show(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
    profile: Optional[str] = typer.Option(None, help="Config profile name"),
):
    """Show effective config."""
    from llmwire.cli.output import OutputFormatter

    cfg = _load(config, profile)
    OutputFormatter(console).format_config(cfg.to_dict())


@app.command()
def version():
    """Show version."""
    console.print("llmwire v0.1.0")


def main():
    app()


if __name__ == "__main__":
    main()
