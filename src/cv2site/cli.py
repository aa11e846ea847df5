"""CLI interface using typer + rich."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from cv2site.clients.llm_client import LLMClient
from cv2site.config import AppConfig, load_config
from cv2site.export.site_bundle import write_bundle
from cv2site.models.document import RawDocument
from cv2site.models.resume import ResumeRecord, is_known
from cv2site.models.style import ColorScheme, LayoutStyle, StyleConfig
from cv2site.parsers.document_parser import read_document
from cv2site.pipeline.orchestrator import ResumeSitePipeline

app = typer.Typer(
    name="cv2site",
    help="Turn a CV into a portfolio website",
    no_args_is_help=True,
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


def _read_document(path: Path) -> RawDocument:
    if not path.exists():
        console.print(f"[red]File not found: {escape(str(path))}[/red]")
        raise typer.Exit(1)
    return read_document(path)


def _build_pipeline(config: AppConfig) -> ResumeSitePipeline:
    llm = LLMClient(
        api_key=os.environ.get("ANTHROPIC_API_KEY"),
        timeout=config.llm.timeout,
        model=config.llm.model,
        retry_policy=config.retry.to_policy(),
    )
    return ResumeSitePipeline(llm, config=config)


def _print_record(record: ResumeRecord) -> None:
    info = record.personal_info
    lines = [f"[bold]{escape(info.name)}[/bold]"]
    if is_known(info.email):
        lines.append(escape(info.email))
    lines.append(
        f"Experience: {len(record.experience)} | Education: {len(record.education)} | "
        f"Technical skills: {len(record.skills.technical)}"
    )
    console.print(Panel("\n".join(lines), title="CV data"))


@app.command()
def structure(
    resume: Path = typer.Argument(help="CV file (DOCX/TXT/MD)"),
    output: Path = typer.Option(None, "--output", "-o", help="Write the structured record as JSON"),
    config_path: Path = typer.Option(None, "--config", help="Path to config.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Extract and structure a CV without generating a website."""
    _setup_logging(verbose)
    config = load_config(config_path)
    document = _read_document(resume)
    pipeline = _build_pipeline(config)

    with console.status("Structuring CV..."):
        record = asyncio.run(pipeline.process_document(document))

    if record.is_failed:
        console.print(f"[red]Processing failed: {escape(str(record.metadata.get('error_message')))}[/red]")
        raise typer.Exit(1)

    _print_record(record)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(record.model_dump(), indent=2, ensure_ascii=False), encoding="utf-8")
        console.print(f"[green]Record saved: {output}[/green]")


@app.command()
def build(
    resume: Path = typer.Argument(help="CV file (DOCX/TXT/MD)"),
    output: Path = typer.Option(..., "--output", "-o", help="Output directory for the website"),
    layout: LayoutStyle = typer.Option(LayoutStyle.MODERN, "--layout", help="Layout style"),
    color_scheme: ColorScheme = typer.Option(ColorScheme.BLUE, "--color-scheme", help="Color scheme"),
    primary_color: str = typer.Option(None, "--primary-color", help="Primary color override, e.g. #ff0000"),
    heading_font: str = typer.Option(None, "--heading-font", help="Heading font family"),
    body_font: str = typer.Option(None, "--body-font", help="Body font family"),
    config_path: Path = typer.Option(None, "--config", help="Path to config.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Generate a portfolio website from a CV."""
    _setup_logging(verbose)
    config = load_config(config_path)
    document = _read_document(resume)
    style = StyleConfig.from_dict({
        "layout": layout.value,
        "color_scheme": color_scheme.value,
        "colors": {"primary": primary_color},
        "typography": {"heading_font": heading_font, "body_font": body_font},
    })
    pipeline = _build_pipeline(config)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Building website...", total=None)

        def on_phase(phase: str, detail: str) -> None:
            progress.update(task, description=detail)

        result = asyncio.run(pipeline.run(document, style, on_phase=on_phase))

    if result.artifact is None:
        console.print(f"[red]Processing failed: {escape(str(result.record.metadata.get('error_message')))}[/red]")
        raise typer.Exit(1)

    _print_record(result.record)
    written = write_bundle(result.artifact, output)
    tokens = result.metadata.get("tokens", {})
    console.print(
        Panel(
            f"Tier: {result.artifact.tier.value}\n"
            f"Tokens: {tokens.get('input', 0)} in / {tokens.get('output', 0)} out\n"
            f"Elapsed: {result.elapsed_seconds:.1f}s",
            title="Website",
        )
    )
    for path in written:
        console.print(f"[green]{path}[/green]")


if __name__ == "__main__":
    app()
