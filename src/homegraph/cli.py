from __future__ import annotations

import logging
from pathlib import Path

import httpx
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .chat.llm import OllamaChatClient, resolve_completer
from .config import Settings
from .engine import ask_household, build_household_graph
from .graph.connections import find_connections
from .graph.context import graph_to_context
from .graph.load import DependencyUnavailable, LoadOptions
from .ingest.runner import IngestOptions, ingest_into_db
from .store import sqlite_store
from .store.sqlite_store import SqliteRecordStore


MAX_QUESTION_CHARS = 500

app = typer.Typer(add_completion=False, help="Household knowledge graph: build it, then ask it questions.")
console = Console()

graph_app = typer.Typer(add_completion=False, help="Inspect the household graph.")
app.add_typer(graph_app, name="graph")


@app.callback()
def main(
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level (default from HOMEGRAPH_LOG_LEVEL)"),
):
    settings = Settings()
    level = (log_level or settings.log_level or "WARNING").upper()
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _load_options(settings: Settings) -> LoadOptions:
    return LoadOptions(window_days=settings.window_days)


def _completer(settings: Settings):
    try:
        return resolve_completer(settings)
    except ValueError as e:
        console.print(f"{e}. Fix: set HOMEGRAPH_LLM_PROVIDER to anthropic, openai, ollama or none.", style="red")
        raise typer.Exit(code=2)


def _graph_for(db: Path, household: str):
    settings = Settings()
    conn = sqlite_store.connect(db)
    try:
        sqlite_store.init_db(conn)
        return build_household_graph(
            store=SqliteRecordStore(conn),
            household_id=household,
            options=_load_options(settings),
        )
    except DependencyUnavailable as e:
        console.print(str(e), style="red")
        raise typer.Exit(code=2)
    finally:
        conn.close()


@app.command()
def ingest(
    input: Path = typer.Option(..., "--input", exists=True, file_okay=True, dir_okay=False),
    db: Path = typer.Option(..., "--db", help="SQLite DB path to create/update"),
    household: str | None = typer.Option(None, "--household", help="Override the export's household id"),
):
    """Load a household JSON export into the SQLite record store."""
    conn = sqlite_store.connect(db)
    try:
        res = ingest_into_db(conn=conn, options=IngestOptions(input_path=input, household_id=household))
    except ValueError as e:
        raise typer.BadParameter(str(e))
    finally:
        conn.close()

    console.print(f"Household: {res['household_id']}")
    for kind, n in res["records"].items():
        if n:
            console.print(f"{kind}: {n}")
    console.print("Next: run `homegraph ask --db ... --household ... \"question\"`.")


@app.command()
def ask(
    db: Path = typer.Option(..., "--db", exists=True, file_okay=True, dir_okay=False),
    household: str = typer.Option(..., "--household", help="Household id"),
    question: str = typer.Argument(...),
    no_llm: bool = typer.Option(False, "--no-llm", help="Answer from the rules only"),
):
    """Ask a question about a household."""
    question = question.strip()
    if not question:
        raise typer.BadParameter("A question is required")
    if len(question) > MAX_QUESTION_CHARS:
        raise typer.BadParameter(f"Question must be under {MAX_QUESTION_CHARS} characters")

    settings = Settings()
    completer = None if no_llm else _completer(settings)

    conn = sqlite_store.connect(db)
    try:
        sqlite_store.init_db(conn)
        res = ask_household(
            store=SqliteRecordStore(conn),
            household_id=household,
            question=question,
            completer=completer,
            options=_load_options(settings),
        )
    except DependencyUnavailable as e:
        console.print(str(e), style="red")
        raise typer.Exit(code=2)
    finally:
        conn.close()

    console.print(res.answer, markup=False)
    if res.connections:
        console.print("\nConnections:", style="bold")
        for c in res.connections:
            console.print(f"- {c}", markup=False)
    if res.sources:
        console.print("\nSources:", style="bold")
        for s in res.sources:
            console.print(f"- {s['label']} ({s['type']}, {s['id']})", markup=False)
    console.print(f"\n{res.graph_summary} [answered by {res.answered_by}]", markup=False, style="dim")


@app.command()
def stats(
    db: Path = typer.Option(..., "--db", exists=True, file_okay=True, dir_okay=False),
    household: str = typer.Option(..., "--household", help="Household id"),
):
    """Show stored record counts for a household."""
    conn = sqlite_store.connect(db)
    try:
        sqlite_store.init_db(conn)
        counts = sqlite_store.count_by_household(conn, household)
    finally:
        conn.close()

    table = Table(title=f"Records for {household}")
    table.add_column("kind")
    table.add_column("count", justify="right")
    for kind, n in counts.items():
        table.add_row(kind, str(n))
    console.print(table)


@app.command()
def doctor():
    """Show which language model will be used, and check Ollama if it is the one."""
    settings = Settings()
    completer = _completer(settings)

    if completer is None:
        console.print("- No language model configured; answers come from the rules.", style="yellow")
        console.print("  Fix: set ANTHROPIC_API_KEY, OPENAI_API_KEY or HOMEGRAPH_OLLAMA_MODEL.", style="yellow")
        return

    console.print(f"- Provider: {type(completer).__name__} (model {completer.model})", style="green")
    if not isinstance(completer, OllamaChatClient):
        return

    url = completer.base_url
    try:
        r = httpx.get(f"{url}/api/tags", timeout=5.0)
        r.raise_for_status()
        models = [m.get("name") for m in (r.json().get("models") or []) if isinstance(m, dict)]
    except Exception as e:
        console.print(f"- Ollama not reachable at {url}: {e}", style="red")
        console.print("  Fix: start Ollama (`ollama serve`) then retry.", style="yellow")
        raise typer.Exit(code=1)

    if completer.model not in models:
        console.print(f"- Missing model: {completer.model}", style="yellow")
        console.print(f"  Fix: `ollama pull {completer.model}`", style="yellow")
        raise typer.Exit(code=1)
    console.print(f"- Model OK: {completer.model}", style="green")


@graph_app.command("build")
def graph_build(
    db: Path = typer.Option(..., "--db", exists=True, file_okay=True, dir_okay=False),
    household: str = typer.Option(..., "--household", help="Household id"),
):
    """Build the graph and show what it contains."""
    graph = _graph_for(db, household)

    console.print(graph.summary, markup=False)

    t1 = Table(title="Nodes by type")
    t1.add_column("type")
    t1.add_column("count", justify="right")
    for k, v in graph.nodes_by_type().items():
        t1.add_row(k, str(v))
    console.print(t1)

    t2 = Table(title="Edges by relation")
    t2.add_column("relation")
    t2.add_column("count", justify="right")
    for k, v in graph.edges_by_relation().items():
        t2.add_row(k, str(v))
    console.print(t2)


@graph_app.command("context")
def graph_context(
    db: Path = typer.Option(..., "--db", exists=True, file_okay=True, dir_okay=False),
    household: str = typer.Option(..., "--household", help="Household id"),
):
    """Print the text the language model would see."""
    graph = _graph_for(db, household)
    console.print(graph_to_context(graph), markup=False)


@graph_app.command("connections")
def graph_connections(
    db: Path = typer.Option(..., "--db", exists=True, file_okay=True, dir_okay=False),
    household: str = typer.Option(..., "--household", help="Household id"),
):
    """Print proactive insights mined from the graph."""
    graph = _graph_for(db, household)
    found = find_connections(graph)
    if not found:
        console.print("No connections found.", style="yellow")
        return
    for c in found:
        console.print(f"- {c}", markup=False)


if __name__ == "__main__":
    app()
