"""Main CLI entry point for math-vocab."""

from pathlib import Path
from typing import Optional

import click
import structlog
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from math_vocab import __version__
from math_vocab.config import AppConfig, get_config, set_config
from math_vocab.dictionary import MathCategory, TermDictionary
from math_vocab.exceptions import MathVocabError

logger = structlog.get_logger()
console = Console()


def setup_config(env_file: Optional[Path] = None) -> None:
    """Load configuration from environment."""
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    config = AppConfig.load(env_file)
    set_config(config)


def load_dictionary(path: Optional[str]) -> TermDictionary:
    """Dictionary from ``path``, the configured CSV, or the built-in vocabulary."""
    csv_path = Path(path) if path else get_config().dictionary_path
    if csv_path:
        return TermDictionary.from_csv(csv_path)
    return TermDictionary.builtin()


def parse_category(value: Optional[str]) -> Optional[MathCategory]:
    if not value:
        return None
    try:
        return MathCategory.parse(value)
    except ValueError:
        raise click.BadParameter(f"unknown category: {value}")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output")
@click.option("--log-file", type=click.Path(), help="Write JSON logs to file")
@click.option("--env-file", type=click.Path(exists=True), help="Path to .env file")
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx, verbose: bool, quiet: bool, log_file: Optional[str], env_file: Optional[str]) -> None:
    """Chinese mathematics vocabulary tool.

    Recognize math terms in notes and rank input suggestions.
    """
    from math_vocab.log import configure_logging

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    setup_config(Path(env_file) if env_file else None)

    verbosity = 1 if verbose else (-1 if quiet else 0)
    # -v and -q win over LOG_LEVEL
    level_name = None if (verbose or quiet) else get_config().log_level
    log_path = Path(log_file) if log_file else None
    configure_logging(verbosity=verbosity, log_file=log_path, level_name=level_name)


# =============================================================================
# Recognition
# =============================================================================


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--dictionary", type=click.Path(exists=True), help="Term dictionary CSV")
@click.option("--min-confidence", default=0.0, type=float, help="Hide weaker matches")
@click.option("--track", is_flag=True, help="Count recognized terms as usage before boosting")
def scan(file: str, dictionary: Optional[str], min_confidence: float, track: bool) -> None:
    """Recognize math terms in FILE.

    Examples:

        math-vocab scan notes/calculus.md

        math-vocab scan notes/calculus.md --dictionary terms.csv --min-confidence 0.7
    """
    from math_vocab.recognition import RecognitionCoordinator, UsageTracker

    text = Path(file).read_text(encoding="utf-8")
    usage = UsageTracker()
    coordinator = RecognitionCoordinator(load_dictionary(dictionary), usage)

    try:
        occurrences = coordinator.recognize(text)
        if track:
            for occurrence in occurrences:
                usage.record_usage(occurrence.text)
            occurrences = coordinator.recognize(text)
    except MathVocabError as e:
        logger.error("scan_failed", file=file, error=str(e))
        raise SystemExit(1)

    table = Table(title=f"Terms in {Path(file).name}", header_style="bold blue")
    table.add_column("Span", style="dim", justify="right")
    table.add_column("Term", style="cyan")
    table.add_column("Category", style="green")
    table.add_column("Code", style="yellow")
    table.add_column("Confidence", style="magenta", justify="right")

    shown = 0
    for occurrence in occurrences:
        if occurrence.confidence < min_confidence:
            continue
        label = f"{occurrence.text} (alias)" if occurrence.is_alias else occurrence.text
        table.add_row(
            f"{occurrence.start}-{occurrence.end}",
            label,
            occurrence.category.value,
            occurrence.suggested_code,
            f"{occurrence.confidence:.2f}",
        )
        shown += 1

    console.print(table)
    console.print(f"[bold]{shown}[/bold] term(s) recognized")


# =============================================================================
# Dictionary
# =============================================================================


@cli.command()
@click.option("--dictionary", type=click.Path(exists=True), help="Term dictionary CSV")
@click.option("--category", help="Only list one category (name or Chinese label)")
def terms(dictionary: Optional[str], category: Optional[str]) -> None:
    """List dictionary terms."""
    store = load_dictionary(dictionary)
    selected = parse_category(category)
    entries = store.get_by_category(selected) if selected else store.all_terms()

    table = Table(header_style="bold blue")
    table.add_column("Term", style="cyan")
    table.add_column("English")
    table.add_column("Category", style="green")
    table.add_column("Code", style="yellow")
    table.add_column("Aliases", style="dim")
    for term in entries:
        table.add_row(
            term.name,
            term.english_name or "",
            term.category.value,
            term.code,
            ", ".join(term.aliases),
        )
    console.print(table)


@cli.command()
@click.argument("query")
@click.option("-k", "limit", default=5, type=int, help="Maximum results")
@click.option("--dictionary", type=click.Path(exists=True), help="Term dictionary CSV")
def similar(query: str, limit: int, dictionary: Optional[str]) -> None:
    """Show dictionary terms similar to QUERY."""
    store = load_dictionary(dictionary)
    matches = store.find_similar(query, limit)
    if not matches:
        console.print(f"[yellow]No terms similar to {query}[/yellow]")
        return
    for term in matches:
        console.print(f"  {term.name} [dim]({term.category.value})[/dim]  {term.code}")


# =============================================================================
# Suggestions
# =============================================================================


@cli.command()
@click.argument("query")
@click.option("--category", help="Category detected around the cursor")
@click.option("--recent", multiple=True, help="Recently used term (repeatable)")
@click.option("--text", "surrounding", help="Text around the cursor to read context from")
@click.option("--dictionary", type=click.Path(exists=True), help="Term dictionary CSV")
def suggest(
    query: str,
    category: Optional[str],
    recent: tuple[str, ...],
    surrounding: Optional[str],
    dictionary: Optional[str],
) -> None:
    """Rank dictionary-based completions for QUERY.

    Examples:

        math-vocab suggest 导 --text "求函数的极限与导数"

        math-vocab suggest 矩 --category LINEAR_ALGEBRA --recent 向量
    """
    from math_vocab.ranking import (
        InputContext,
        StaticPreferenceProvider,
        Suggestion,
        SuggestionRanker,
        build_context,
    )

    store = load_dictionary(dictionary)
    candidates = {t.name: t for t in store.search(query)}
    for term in store.find_similar(query, 10):
        candidates.setdefault(term.name, term)

    suggestions = [
        Suggestion(
            text=term.name,
            code=term.code,
            description=f"{term.category.value}术语: {term.english_name or term.name}",
            category=term.category,
            type="formula" if "=" in term.code else "term",
            score=1.0 if term.name.startswith(query) else 0.5,
        )
        for term in candidates.values()
    ]

    detected = parse_category(category)
    context = None
    ranker = SuggestionRanker(StaticPreferenceProvider())
    try:
        if surrounding:
            context = build_context(surrounding, store, category=detected, recent_terms=recent)
            if context.detected_category is not None:
                console.print(f"[dim]Detected category: {context.detected_category.value}[/dim]")
        elif detected or recent:
            context = InputContext(detected_category=detected, recent_terms=recent)
        ranked = ranker.rank(suggestions, query, context)
    except MathVocabError as e:
        logger.error("suggest_failed", query=query, error=str(e))
        raise SystemExit(1)

    if not ranked:
        console.print(f"[yellow]No suggestions for {query}[/yellow]")
        return

    table = Table(header_style="bold blue")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Suggestion", style="cyan")
    table.add_column("Code", style="yellow")
    table.add_column("Category", style="green")
    table.add_column("Score", style="magenta", justify="right")
    for position, item in enumerate(ranked, 1):
        table.add_row(
            str(position),
            item.suggestion.text,
            item.suggestion.code,
            item.suggestion.category.value,
            f"{item.score:.3f}",
        )
    console.print(table)


@cli.command("config")
def show_config() -> None:
    """Show effective configuration."""
    from math_vocab.config import print_config_summary

    print_config_summary()


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
