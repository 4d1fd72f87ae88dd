import asyncio
import logging
import sys
from pathlib import Path

from docsearch.config.settings import settings
from docsearch.container import configure_container, container
from docsearch.core.exceptions import DocSearchError
from docsearch.core.models.search import SearchState
from docsearch.core.services.document_store import DocumentStore
from docsearch.core.services.embedding_scheduler import EmbeddingScheduler
from docsearch.core.services.ingest_service import IngestService
from docsearch.core.services.search_controller import SearchController
from docsearch.core.services.search_service import SearchService
from docsearch.infrastructure.persistence.json_repository import StorePersister

logger = logging.getLogger(__name__)

USAGE = """Usage: python -m docsearch.presentation.cli <command> [args]
Commands:
  add <paths...>     extract files (folders are scanned) and add them
  embed              embed documents that have no embedding yet
  reembed            drop all embeddings and embed everything again
  search <query>     search documents
  interactive        read queries from stdin, results update as you type
  list               list documents
  remove <ids...>    remove documents
  clear              remove all documents"""


async def cmd_add(paths: list[str]) -> int:
    """Add command - ingest files and folders."""
    ingest_service = container.resolve(IngestService)
    failed = 0
    for path in paths:
        if _is_dir(path):
            report = await ingest_service.add_folder(path)
        else:
            report = await ingest_service.add_paths([path])
        for doc in report.added:
            print(f"added  {doc.id}  {doc.name}")
        failed += len(report.failed)
    return 1 if failed else 0


async def cmd_embed(reembed: bool = False) -> int:
    """Embed command - run the batch scheduler."""
    scheduler = container.resolve(EmbeddingScheduler)
    report = await (scheduler.reembed_all() if reembed else scheduler.run())
    print(f"embedded {len(report.embedded)}, failed {len(report.failed)}")
    return 1 if report.failed else 0


async def cmd_search(query: str) -> int:
    """Search command - rank documents for a query."""
    search_service = container.resolve(SearchService)
    _print_state(await search_service.search(query))
    return 0


async def cmd_interactive() -> int:
    """Interactive command - each stdin line replaces the pending query."""
    controller = container.resolve(SearchController)
    controller.subscribe(_print_state)
    print("Type a query per line, Ctrl-D to quit.")

    while True:
        line = await asyncio.to_thread(sys.stdin.readline)
        if not line:
            break
        controller.set_query(line.strip())

    await controller.wait()
    await controller.close()
    return 0


def _print_state(state: SearchState) -> None:
    print(f"mode: {state.mode.value}  query: '{state.query}'")
    for i, result in enumerate(state.results, 1):
        score = f"{result.score:.3f}" if result.score is not None else "-"
        print(f"{i:3}. {score:>6}  {result.document.name}  ({result.document.id})")


def cmd_list() -> int:
    store = container.resolve(DocumentStore)
    for doc in store.snapshot():
        marker = "*" if doc.is_embedded else " "
        print(f"{marker} {doc.id}  {doc.file_kind.value:7}  {doc.name}")
    return 0


def cmd_remove(ids: list[str]) -> int:
    removed = container.resolve(DocumentStore).remove(ids)
    print(f"removed {removed}")
    return 0


def cmd_clear() -> int:
    container.resolve(DocumentStore).clear()
    return 0


def _is_dir(path: str) -> bool:
    return Path(path).expanduser().is_dir()


async def _run(command: str, args: list[str]) -> int:
    try:
        if command == "add" and args:
            return await cmd_add(args)
        if command == "embed":
            return await cmd_embed()
        if command == "reembed":
            return await cmd_embed(reembed=True)
        if command == "search" and args:
            return await cmd_search(" ".join(args))
        if command == "interactive":
            return await cmd_interactive()
        if command == "list":
            return cmd_list()
        if command == "remove" and args:
            return cmd_remove(args)
        if command == "clear":
            return cmd_clear()
    finally:
        persister = container.resolve_optional(StorePersister)
        try:
            if persister is not None:
                await persister.flush()
        finally:
            await container.close()

    print(USAGE)
    return 1


def main():
    """CLI entry point."""
    logging.basicConfig(level=settings.log_level, format="%(message)s")

    if len(sys.argv) < 2:
        print(USAGE)
        sys.exit(1)

    configure_container(settings)

    try:
        code = asyncio.run(_run(sys.argv[1], sys.argv[2:]))
    except DocSearchError as e:
        logger.error(str(e))
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
