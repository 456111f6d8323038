"""Page selection: which source pages go into the output, and in what order.

``select`` is pure. It takes 1-based page numbers from the caller and returns
zero-based indices into the source document.
"""
from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Union

from .errors import AllPagesRemovedError, EmptySelectionError, RangeError
from .options import (
    EXTRACT_PAGES,
    ORGANIZE,
    REMOVE_PAGES,
    SPLIT,
    ExtractOptions,
    OperationOptions,
    OrganizeOptions,
    PageRange,
    RemoveOptions,
    SplitOptions,
    parse_options,
)


def identity(total_pages: int) -> List[int]:
    return list(range(total_pages))


def select_range(page_range: PageRange, total_pages: int) -> List[int]:
    start = max(1, page_range.start)
    end = min(total_pages, page_range.end)
    if start > end:
        raise RangeError(
            f"Invalid page range {page_range.start}-{page_range.end} for a {total_pages}-page document"
        )
    return list(range(start - 1, end))


def select_every(every_pages: int, total_pages: int) -> List[int]:
    # Samples one page out of every N (1, N+1, 2N+1, ...); it does not build N-page chunks.
    step = max(1, every_pages)
    return list(range(0, total_pages, step))


def select_listed(pages: Iterable[int], total_pages: int) -> List[int]:
    selected = [page - 1 for page in pages if 1 <= page <= total_pages]
    if not selected:
        raise EmptySelectionError(f"No valid pages selected (document has {total_pages} pages)")
    return selected


def select_excluding(pages_to_remove: Iterable[int], total_pages: int) -> List[int]:
    excluded = {page for page in pages_to_remove if 1 <= page <= total_pages}
    kept = [idx for idx in range(total_pages) if idx + 1 not in excluded]
    if not kept:
        raise AllPagesRemovedError("Refusing to remove all pages")
    return kept


def select(
    operation: str,
    options: Union[None, Mapping[str, Any], OperationOptions],
    total_pages: int,
) -> List[int]:
    options = parse_options(operation, options)

    if operation == SPLIT and isinstance(options, SplitOptions):
        if options.page_range is not None:
            return select_range(options.page_range, total_pages)
        if options.every_pages is not None:
            return select_every(options.every_pages, total_pages)
    elif operation == EXTRACT_PAGES and isinstance(options, ExtractOptions):
        return select_listed(options.pages, total_pages)
    elif operation == ORGANIZE and isinstance(options, OrganizeOptions):
        if options.page_order is not None:
            return select_listed(options.page_order, total_pages)
    elif operation == REMOVE_PAGES and isinstance(options, RemoveOptions):
        return select_excluding(options.pages_to_remove, total_pages)

    return identity(total_pages)
