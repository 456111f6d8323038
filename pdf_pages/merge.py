"""Concatenate several PDFs into one, in input order.

Each input is validated (size, header, parse, page count) and checked against
the cumulative page budget before any of its pages are copied. A failure on
any input aborts the whole merge; no partial output is returned.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

from .assembler import AssemblyResult, apply_metadata, check_input_size, check_output
from .config import PDF_MAGIC, Limits, get_limits
from .document import COMPATIBILITY, create, load
from .errors import (
    EmptyDocumentError,
    InvalidFormatError,
    NoValidFilesError,
    PageBudgetExceededError,
    PdfToolError,
)
from .options import MERGE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InputFile:
    name: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def _as_inputs(files: Iterable[Union[InputFile, bytes]]) -> List[InputFile]:
    inputs: List[InputFile] = []
    for position, entry in enumerate(files, start=1):
        if isinstance(entry, InputFile):
            inputs.append(entry)
        else:
            inputs.append(InputFile(name=f"file-{position}", data=bytes(entry or b"")))
    return inputs


def _named(exc: PdfToolError, name: str) -> PdfToolError:
    return type(exc)(f'Failed to process file "{name}": {exc.message}')


def merge(
    files: Iterable[Union[InputFile, bytes]],
    *,
    limits: Optional[Limits] = None,
) -> AssemblyResult:
    limits = limits or get_limits()
    inputs = _as_inputs(files)
    if not inputs:
        raise NoValidFilesError("No files provided for merge operation")

    output = create()
    total_pages = 0
    processed = 0

    for entry in inputs:
        if entry.size == 0:
            logger.warning("Skipping empty file: %s", entry.name)
            continue

        try:
            check_input_size(entry.data, limits, name=f'File "{entry.name}"')
            if entry.data[:4] != PDF_MAGIC:
                raise InvalidFormatError("Invalid PDF file format")
            source = load(entry.data)
            if source.page_count == 0:
                raise EmptyDocumentError("PDF has no pages")
            if total_pages + source.page_count > limits.max_total_pages:
                raise PageBudgetExceededError(
                    f"Total pages exceed limit (max {limits.max_total_pages} pages)"
                )
        except PdfToolError as exc:
            logger.debug("Rejecting %s: %s", entry.name, exc)
            raise _named(exc, entry.name) from exc

        for page in source.copy_pages(range(source.page_count)):
            output.add_page(page)
        total_pages += source.page_count
        processed += 1
        logger.debug("Merged %s (%d pages)", entry.name, source.page_count)

    if processed == 0:
        raise NoValidFilesError("No valid PDF files were processed")

    apply_metadata(output, MERGE)
    result = check_output(output.serialize(COMPATIBILITY), limits)
    logger.info("merge: %d files, %d pages, %d bytes", processed, total_pages, len(result))
    return AssemblyResult(data=result, operation=MERGE, page_count=total_pages)
