#!/usr/bin/env python3
"""CLI tool for pushscribe operations."""

import sys
from dataclasses import asdict
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from .analysis import AnalysisStage, ClaudeCliSummarizer, PromptTemplateRepository, render_prompt, sample_prompt_data
from .analysis.prompts import VARIANTS
from .analysis.stage import STAGE_NAME as ANALYSIS_STAGE
from .common import LockGuard, setup_logging
from .config import PipelineConfig
from .exceptions import TemplateError
from .models import QueueSummary
from .publish import JiraClient, JiraPublishStage
from .publish.stage import STAGE_NAME as PUBLISH_STAGE

console = Console()


def _load_config(config_path: Optional[str]) -> PipelineConfig:
    if config_path:
        return PipelineConfig.load(config_path)
    return PipelineConfig.from_env()


def _mask(value: str) -> str:
    if not value:
        return ""
    if len(value) > 10:
        return f"{value[:4]}...{value[-4:]}"
    return "***"


def _print_summary(title: str, summary: QueueSummary) -> None:
    table = Table(title=title)
    table.add_column("Outcome", style="cyan")
    table.add_column("Count", justify="right")
    table.add_row("processed", str(summary.processed))
    table.add_row("skipped", str(summary.skipped))
    table.add_row("diverted", str(summary.diverted), style="yellow" if summary.diverted else None)
    table.add_row("failed", str(summary.failed), style="red" if summary.failed else None)
    console.print(table)


@click.group()
@click.option("--config", "config_path", default=None, help="Configuration file path (defaults to environment)")
@click.pass_context
def cli(ctx, config_path):
    """Pushscribe: GitHub push summaries posted to Jira."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command()
@click.option("--host", default="0.0.0.0", help="Host to bind to")
@click.option("--port", default=8080, help="Port to listen on")
@click.pass_context
def serve(ctx, host, port):
    """Run the GitHub webhook receiver."""
    import uvicorn

    from .ingest import create_app

    try:
        config = _load_config(ctx.obj["config_path"])
    except Exception as e:
        console.print(f"❌ Error loading configuration: {e}", style="red")
        sys.exit(1)

    console.print(f"🚀 Webhook endpoint: http://{host}:{port}/webhook/github")
    uvicorn.run(create_app(config), host=host, port=port, log_level="info")


@cli.command()
@click.pass_context
def analyze(ctx):
    """Analyze queued webhooks and write reports to pending_analysis/."""
    try:
        config = _load_config(ctx.obj["config_path"])
    except Exception as e:
        console.print(f"❌ Error loading configuration: {e}", style="red")
        sys.exit(1)

    config.paths.ensure()
    setup_logging(config.paths.logs, "claude_analyze")

    lock = LockGuard(config.paths.locks, max_age=config.lock_max_age)
    if not lock.acquire(ANALYSIS_STAGE):
        console.print("⏳ Another analysis run is in progress, exiting")
        return

    try:
        console.print("🔍 Processing queued webhooks...")
        summarizer = ClaudeCliSummarizer(
            command=config.analysis.claude_command,
            timeout=config.analysis.summarizer_timeout,
        )
        summary = AnalysisStage(config, summarizer).run()
        _print_summary("Analysis", summary)
        console.print(f"✅ Total: {summary.total}, successful: {summary.processed_count}")
    finally:
        lock.release()


@cli.command()
@click.pass_context
def publish(ctx):
    """Post pending analysis reports to Jira."""
    try:
        config = _load_config(ctx.obj["config_path"])
    except Exception as e:
        console.print(f"❌ Error loading configuration: {e}", style="red")
        sys.exit(1)

    config.paths.ensure()
    setup_logging(config.paths.logs, "jira_hook")

    lock = LockGuard(config.paths.locks, max_age=config.lock_max_age)
    if not lock.acquire(PUBLISH_STAGE):
        console.print("⏳ Another publish run is in progress, exiting")
        return

    try:
        stage = JiraPublishStage(config)
        if stage.dry_run:
            console.print(f"⚠️  Jira dry run: comments are saved to {config.paths.dry_run}", style="yellow")
        console.print("📤 Processing analysis reports...")
        summary = stage.run()
        _print_summary("Publish", summary)
        console.print(f"✅ Total: {summary.total}, successful: {summary.processed_count}")
    finally:
        lock.release()


@cli.command("preview-prompt")
@click.argument("variant", default="normal", type=click.Choice(list(VARIANTS)))
@click.pass_context
def preview_prompt(ctx, variant):
    """Render a prompt template against sample push data."""
    try:
        config = _load_config(ctx.obj["config_path"])
        template = PromptTemplateRepository(config.analysis.templates_dir).load(variant)
    except TemplateError as e:
        console.print(f"❌ {e.message}", style="red")
        sys.exit(1)

    prompt = render_prompt(template, sample_prompt_data(variant))

    console.rule(f"prompts_{variant}.yaml")
    console.print("[bold]System prompt[/bold]")
    console.print(template.system_prompt, markup=False)
    console.print()
    console.print("[bold]User prompt[/bold]")
    console.print(prompt, markup=False)
    console.rule()
    console.print(f"Prompt size: {len(prompt.encode('utf-8'))} bytes")


@cli.command("config")
@click.pass_context
def show_config(ctx):
    """Show the effective configuration with secrets masked."""
    try:
        config = _load_config(ctx.obj["config_path"])
    except Exception as e:
        console.print(f"❌ Error loading configuration: {e}", style="red")
        sys.exit(1)

    table = Table(title="Pushscribe configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    jira = asdict(config.jira)
    jira["api_token"] = _mask(jira["api_token"])
    for key, value in jira.items():
        table.add_row(f"jira.{key}", str(value))
    for key, value in asdict(config.analysis).items():
        table.add_row(f"analysis.{key}", str(value))
    for key, value in config.paths.as_dict().items():
        table.add_row(f"paths.{key}", str(value))
    table.add_row("webhook_secret", _mask(config.webhook_secret) or "(not set)")
    table.add_row("lock_max_age", str(config.lock_max_age))
    table.add_row("jira configured", "✅" if config.jira.is_configured else "❌")

    console.print(table)


@cli.command("check-jira")
@click.pass_context
def check_jira(ctx):
    """Test the Jira connection with the configured credentials."""
    try:
        config = _load_config(ctx.obj["config_path"])
    except Exception as e:
        console.print(f"❌ Error loading configuration: {e}", style="red")
        sys.exit(1)

    if not config.jira.is_configured:
        console.print("⚠️  Jira credentials are not configured", style="yellow")
        sys.exit(1)

    try:
        user = JiraClient(config.jira).myself()
        console.print(f"✅ Connected to {config.jira.base_url} as {user.get('displayName', 'unknown')}")
    except Exception as e:
        console.print(f"❌ Jira connection failed: {e}", style="red")
        sys.exit(1)


if __name__ == "__main__":
    cli()
