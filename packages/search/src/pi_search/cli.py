"""
Command-line front end for pi-search.

    pi-search match QUERY TEXT...     score each TEXT against QUERY
    pi-search filter QUERY [--file]   filter lines through an offline controller
"""

from __future__ import annotations

import sys
from pathlib import Path

import typer

from pi_search.controller import SearchController
from pi_search.fuzzy import FuzzyMatcher

_APP = typer.Typer(name="pi-search", help="Fuzzy matching and offline search from the shell")


def _read_lines(file: Path | None) -> list[str]:
    if file is None:
        raw = sys.stdin.read()
    else:
        if not file.exists():
            typer.echo(f"No such file: {file}", err=True)
            raise typer.Exit(2)
        raw = file.read_text()
    return [line for line in raw.splitlines() if line.strip()]


def _alphabetical(a: str, b: str) -> int:
    return (a.lower() > b.lower()) - (a.lower() < b.lower())


@_APP.command("match")
def match_cmd(
    query: str = typer.Argument(..., help="Query to match"),
    texts: list[str] = typer.Argument(..., help="Texts to score"),
    case_sensitive: bool = typer.Option(False, "--case-sensitive", help="Do not fold case"),
) -> None:
    """Print score and matched indices for every TEXT that matches, best first."""
    scored = []
    for text in texts:
        result = FuzzyMatcher.match(query, text, case_sensitive)
        if result is not None:
            scored.append((text, result))

    if not scored:
        typer.echo(f"No match for {query!r}", err=True)
        raise typer.Exit(1)

    scored.sort(key=lambda pair: pair[1].score, reverse=True)
    for text, result in scored:
        indices = ",".join(str(i) for i in result.match_indices)
        typer.echo(f"{result.score:.3f}  {text}  [{indices}]")


@_APP.command("filter")
def filter_cmd(
    query: str = typer.Argument(..., help="Query to apply"),
    file: Path | None = typer.Option(None, "--file", "-f", help="Read items from a file instead of stdin"),
    fuzzy: bool = typer.Option(False, "--fuzzy", help="Use fuzzy matching"),
    threshold: float = typer.Option(0.3, "--threshold", min=0.0, max=1.0, help="Minimum fuzzy score"),
    case_sensitive: bool = typer.Option(False, "--case-sensitive", help="Do not fold case"),
    min_length: int = typer.Option(0, "--min-length", min=0, help="Minimum query length"),
    sort: bool = typer.Option(False, "--sort", help="Sort results alphabetically"),
) -> None:
    """Filter one-item-per-line input and print the displayed items."""
    controller: SearchController[str] = SearchController(
        debounce_ms=0,
        searchable_fields=lambda item: [item],
        fuzzy_search_enabled=fuzzy,
        fuzzy_threshold=threshold,
        case_sensitive=case_sensitive,
        min_search_length=min_length,
        comparator=_alphabetical if sort else None,
    )
    controller.set_items(_read_lines(file))
    controller.search_now(query)
    for item in controller.items:
        typer.echo(item)
    controller.dispose()


def main() -> None:
    _APP()


if __name__ == "__main__":
    main()
