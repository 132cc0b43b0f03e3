"""CLI interface for docrag."""

import asyncio
import json
from collections.abc import Awaitable
from pathlib import Path
from typing import TypeVar

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from ....common.cancellation import CancellationToken
from ....common.exception_handler import format_exception_json
from ....composition import container
from ....config import settings, setup_logging
from ....core.domain import ChatMessage, Role, SearchOptions, SearchResult
from ....core.domain.exceptions import DocRagError

T = TypeVar("T")

app = typer.Typer(
    name="docrag",
    help="docrag - chat with your own documents",
    add_completion=False,
)

console = Console()

UserOption = typer.Option(..., "--user", "-u", envvar="DOCRAG_USER_ID", help="Owning user id")


def handle_cli_error(exc: Exception) -> None:
    """Display an error with its code; full JSON details in debug mode."""
    error_data = format_exception_json(exc, include_trace=settings.debug)

    if settings.debug:
        console.print(
            Panel(
                json.dumps(error_data, indent=2, default=str),
                title="[bold red]Error Details[/]",
                border_style="red",
            )
        )
        return

    error_code = error_data["error"].get("code", "UNKNOWN")
    console.print(f"\n[red]Error [{error_code}]:[/] {error_data['error']['message']}")
    console.print(f"[dim]Type: {error_data['error']['type']}[/]")
    console.print("[dim]Set DEBUG=true for full details[/]")


def run(awaitable: Awaitable[T]) -> T:
    """Run one command's coroutine, turning docrag errors into exit code 1."""

    async def _main() -> T:
        try:
            return await awaitable
        finally:
            if container.get_vector_store.cache_info().currsize:
                await container.get_vector_store().close()

    try:
        return asyncio.run(_main())
    except DocRagError as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)


def _startup() -> None:
    setup_logging(level=settings.log_level, json_format=settings.log_json)
    try:
        settings.validate_for_runtime()
    except DocRagError as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)


@app.command()
def ingest(
    paths: list[Path] = typer.Argument(..., exists=True, dir_okay=False, help="Files to index"),
    user_id: str = UserOption,
) -> None:
    """Index one or more documents for a user."""
    _startup()
    service = container.get_ingestion_service()

    async def _ingest() -> None:
        for path in paths:
            with console.status(f"[bold green]Indexing {path.name}...[/]"):
                report = await service.ingest_file(
                    user_id, path.name, path.read_bytes(), token=CancellationToken()
                )
            console.print(
                f"[green]✓[/] {path.name}: {report.chunk_count} chunks "
                f"[dim]({report.document_id})[/]"
            )

    run(_ingest())


def _print_results(title: str, results: list[SearchResult]) -> None:
    if not results:
        console.print("[yellow]No results above the similarity threshold.[/]")
        return

    table = Table(title=title)
    table.add_column("#", style="dim", width=3)
    table.add_column("Score", justify="right")
    table.add_column("Source", style="cyan")
    table.add_column("Excerpt")
    for i, result in enumerate(results, 1):
        excerpt = result.payload.content[:120].replace("\n", " ")
        table.add_row(
            str(i),
            f"{result.ranking_score:.3f}",
            f"{result.payload.filename} #{result.payload.chunk_index}",
            excerpt,
        )
    console.print(table)


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query"),
    user_id: str = UserOption,
    top_k: int = typer.Option(5, "--top-k", "-k", help="Number of results"),
    threshold: float = typer.Option(
        settings.similarity_threshold, "--threshold", "-t", help="Minimum similarity"
    ),
    rerank: bool = typer.Option(True, help="Apply lexical reranking"),
    hybrid: bool = typer.Option(False, "--hybrid", help="Score by similarity, keywords and recency"),
) -> None:
    """Search a user's documents."""
    _startup()
    service = container.get_retrieval_service()

    async def _search():
        options = SearchOptions(user_id=user_id, top_k=top_k, threshold=threshold)
        if hybrid:
            return await service.hybrid_search(query, options, token=CancellationToken())
        return await service.search(query, options, token=CancellationToken(), rerank=rerank)

    with console.status("[bold green]Searching...[/]"):
        results = run(_search())

    _print_results(f"Results for: {query}", results)


@app.command()
def similar(
    text: str = typer.Argument(..., help="Chunk text to find near duplicates of"),
    user_id: str = UserOption,
) -> None:
    """Find chunks that closely match a piece of text."""
    _startup()
    service = container.get_retrieval_service()

    with console.status("[bold green]Searching...[/]"):
        results = run(service.similar_chunks(text, user_id, token=CancellationToken()))

    _print_results("Similar chunks", results)


@app.command()
def related(
    document_id: str = typer.Argument(..., help="Document to find related documents for"),
    user_id: str = UserOption,
) -> None:
    """List other documents that resemble a document."""
    _startup()
    service = container.get_retrieval_service()

    with console.status("[bold green]Searching...[/]"):
        results = run(service.related_documents(document_id, user_id, token=CancellationToken()))

    _print_results(f"Related to {document_id}", results)


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question about your documents"),
    user_id: str = UserOption,
) -> None:
    """Ask a single question and get an answer."""
    _startup()
    service = container.get_chat_service()

    async def _ask():
        messages = [ChatMessage(Role.USER, question)]
        return await service.answer(messages, user_id, token=CancellationToken())

    with console.status("[bold green]Thinking...[/]"):
        answer = run(_ask())

    console.print(Markdown(answer.text))
    if answer.sources:
        console.print("\n[dim]Sources:[/]")
        for source in answer.sources:
            console.print(f"  [dim]{source.filename} #{source.chunk_index} ({source.score:.3f})[/]")


@app.command()
def stats(user_id: str | None = typer.Option(None, "--user", "-u", help="Limit to one user")) -> None:
    """Show the state of the vector collection."""
    _startup()
    store = container.get_vector_store()

    async def _stats():
        info = await store.collection_info()
        if user_id is None:
            return info, None, None
        return (
            info,
            await store.count_by_user(user_id),
            await store.list_document_ids_by_user(user_id),
        )

    info, user_count, document_ids = run(_stats())
    console.print(f"[bold]Collection[/] {info.name}: {info.points_count} vectors ({info.status})")
    if user_id is not None:
        console.print(f"[bold]User[/] {user_id}: {user_count} vectors in {len(document_ids)} documents")
        for document_id in sorted(document_ids):
            console.print(f"  [dim]{document_id}[/]")


@app.command()
def delete(
    document_id: str = typer.Argument(..., help="Document to delete"),
    user_id: str = UserOption,
) -> None:
    """Delete a user's document from the index."""
    _startup()
    service = container.get_ingestion_service()
    removed = run(service.delete_document(user_id, document_id))
    console.print(f"[green]✓[/] Deleted {removed} vectors for {document_id}")


@app.command()
def reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Drop and recreate the vector collection (deletes every user's data)."""
    _startup()
    if not yes:
        typer.confirm(
            f"This deletes all vectors in '{settings.qdrant_collection_name}'. Continue?",
            abort=True,
        )
    run(container.get_vector_store().recreate_collection())
    console.print(f"[green]✓[/] Recreated collection {settings.qdrant_collection_name}")


@app.command()
def health() -> None:
    """Check that the vector store is reachable."""
    setup_logging(level=settings.log_level, json_format=settings.log_json)
    healthy = run(container.get_vector_store().health_check())
    if healthy:
        console.print("✅ Qdrant reachable")
    else:
        console.print("❌ Qdrant unreachable")
        raise typer.Exit(1)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind address"),
    port: int = typer.Option(8000, help="Port"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "docrag.adapters.inbound.api.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    app()
