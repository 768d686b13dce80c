"""ContentGuard CLI — run the moderation service and poke at the pipeline."""

import asyncio
import uuid

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from contentguard import __version__

console = Console()

_STATUS_STYLE = {
    "approved": "green",
    "pending": "yellow",
    "removed": "red",
    "reviewed": "cyan",
}


@click.group()
@click.version_option(version=__version__)
def main():
    """ContentGuard — automated content moderation.

    Classifies submitted content, applies per-category moderation rules,
    and streams decisions to moderator dashboards in real time.
    """


# ── Serve ────────────────────────────────────────────────────────────


@main.command()
@click.option("--host", default="127.0.0.1", help="Interface to bind")
@click.option("--port", default=8000, type=int, help="Port to listen on")
@click.option("--reload", is_flag=True, help="Restart on code changes (development)")
def serve(host: str, port: int, reload: bool):
    """Run the HTTP + WebSocket API."""
    import uvicorn

    from contentguard.config import get_settings
    from contentguard.logging_config import configure_logging

    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    console.print(f"\n[bold blue]ContentGuard[/] — serving on http://{host}:{port}\n")
    uvicorn.run(
        "web.backend.app.main:app",
        host=host,
        port=port,
        reload=reload,
        log_config=None,
    )


# ── Classify ─────────────────────────────────────────────────────────


@main.command()
@click.argument("text")
@click.option("--keywords-only", is_flag=True, help="Skip the external classifier")
def classify(text: str, keywords_only: bool):
    """Classify TEXT and show what the default rules would decide."""
    from contentguard.classifier import AnthropicClassifier, ClassifierAdapter
    from contentguard.config import get_settings
    from contentguard.rules import RuleEngine, default_rules

    settings = get_settings()
    external = None
    if not keywords_only:
        external = AnthropicClassifier(
            model=settings.CLASSIFIER_MODEL,
            api_key=settings.ANTHROPIC_API_KEY or None,
            timeout=settings.CLASSIFIER_TIMEOUT,
        )
    adapter = ClassifierAdapter(external)
    result = asyncio.run(adapter.classify(text))

    engine = RuleEngine(default_rules(), honor_flagged_hint=settings.HONOR_FLAGGED_HINT)
    decision = engine.decide(result.category, result.confidence, result.flagged_hint)
    style = _STATUS_STYLE.get(decision.status.value, "white")

    lines = [
        f"[bold]Category:[/]   {result.category.value}",
        f"[bold]Confidence:[/] {result.confidence}",
        f"[bold]Source:[/]     {result.source}",
        f"[bold]Decision:[/]   [{style}]{decision.status.value}[/] ({decision.reason})",
    ]
    if result.reasons:
        lines.append("")
        lines.extend(f"  • {r}" for r in result.reasons)
    console.print(Panel("\n".join(lines), title="Classification", expand=False))


# ── Rules ────────────────────────────────────────────────────────────


@main.command()
@click.option("--file", "rules_file", default=None, help="YAML rules file (defaults otherwise)")
def rules(rules_file: str | None):
    """List the moderation rules that would be seeded."""
    from contentguard.rules import default_rules, load_rules

    try:
        rule_set = load_rules(rules_file) if rules_file else default_rules()
    except Exception as e:
        console.print(f"[red]Failed to load rules:[/] {e}")
        raise SystemExit(1)

    table = Table(title=f"Moderation Rules ({len(rule_set)})")
    table.add_column("Name", style="cyan")
    table.add_column("Category")
    table.add_column("Sensitivity", justify="right", style="green")
    table.add_column("Action")
    table.add_column("Active")

    for rule in rule_set:
        table.add_row(
            rule.name,
            rule.category.value,
            str(rule.sensitivity),
            rule.auto_action.value,
            "[green]yes[/]" if rule.active else "[dim]no[/]",
        )
    console.print(table)


# ── Submit ───────────────────────────────────────────────────────────


@main.command()
@click.argument("text")
@click.option("--type", "content_type", default="text", help="Content type")
@click.option("--title", default="", help="Optional title stored in metadata")
@click.option("--user", "user_id", default="system", help="Submitting user id")
def submit(text: str, content_type: str, title: str, user_id: str):
    """Run TEXT through the full pipeline and print the analysis."""
    from contentguard.errors import ContentGuardError
    from contentguard.models import ContentSubmission
    from contentguard.service import ModerationService

    submission = ContentSubmission(
        type=content_type,
        content=text,
        content_id=str(uuid.uuid4()),
        user_id=user_id,
        metadata={"title": title} if title else {},
    )

    async def run():
        service = ModerationService.from_settings()
        await service.start()
        try:
            item = await service.submit(submission)
            await service.drain()
            analyses = await service.list_analyses(limit=50)
            return item, next((a for a in analyses if a["content_id"] == item.id), None)
        finally:
            await service.stop()

    try:
        item, analysis = asyncio.run(run())
    except ContentGuardError as e:
        console.print(f"[red]Submission rejected:[/] {e}")
        raise SystemExit(1)

    console.print(f"\n[green]Stored content[/] #{item.id} ({item.content_id})")
    if analysis is None:
        console.print(f"[yellow]No analysis produced for type '{item.type.value}'.[/]")
        return

    style = _STATUS_STYLE.get(analysis["status"], "white")
    console.print(
        f"  {analysis['category']} @ {analysis['confidence']} → "
        f"[{style}]{analysis['status']}[/]"
        f"{' [bold red](flagged)[/]' if analysis['flagged'] else ''}"
    )


if __name__ == "__main__":
    main()
