"""Document assembly pipeline.

Loaded -> Validated -> Selected -> Copied -> Transformed -> Serialized -> Done.
Any stage may raise; a result is only returned when every stage succeeded.
"""
from __future__ import annotations

import datetime as _dt
import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Sequence, Union, cast

from pypdf.constants import UserAccessPermissions

from . import transforms
from .config import PDF_CONTENT_TYPE, Limits, get_limits, get_producer_name
from .document import COMPATIBILITY, Document, SaveOptions, create, load
from .errors import EmptyDocumentError, EmptyOutputError, FileTooLargeError, OutputTooLargeError
from .options import (
    COMPRESS,
    CROP,
    MERGE,
    PAGE_NUMBERS,
    PROTECT,
    ROTATE,
    UNLOCK,
    WATERMARK,
    CropOptions,
    OperationOptions,
    PageNumberOptions,
    Permissions,
    ProtectOptions,
    RotateOptions,
    UnlockOptions,
    WatermarkOptions,
    parse_options,
)
from .selector import select

logger = logging.getLogger(__name__)

RawOptions = Union[None, str, Mapping[str, Any], OperationOptions]

# Every permission bit except the two reserved low bits.
_ALL_PERMISSIONS = 0xFFFFFFFC

_TITLES = {
    MERGE: "Merged PDF Document",
    PROTECT: "Protected PDF",
}


@dataclass
class AssemblyResult:
    data: bytes
    operation: str
    page_count: int
    warnings: List[str] = field(default_factory=list)
    attempts: int = 1

    @property
    def content_type(self) -> str:
        return PDF_CONTENT_TYPE

    @property
    def filename(self) -> str:
        return suggested_filename(self.operation)

    @property
    def size(self) -> int:
        return len(self.data)


def suggested_filename(operation: str, today: Optional[_dt.date] = None) -> str:
    today = today or _dt.date.today()
    return f"{operation}-document-{today.isoformat()}.pdf"


def check_input_size(data: bytes, limits: Limits, name: str = "Input file") -> None:
    if len(data) > limits.max_file_bytes:
        raise FileTooLargeError(
            f'{name} is too large ({len(data)} bytes, max {limits.max_file_bytes} bytes)'
        )


def check_output(data: bytes, limits: Limits) -> bytes:
    if len(data) == 0:
        raise EmptyOutputError("Generated PDF is empty")
    if len(data) > limits.max_output_bytes:
        raise OutputTooLargeError(
            f"Generated PDF is too large ({len(data)} bytes, max {limits.max_output_bytes} bytes)"
        )
    return data


def apply_metadata(document: Document, operation: str) -> None:
    """Stamp metadata identifying the output as a processed artifact."""
    producer = get_producer_name()
    label = operation.replace("-", " ")
    document.set_metadata(
        title=_TITLES.get(operation, f"{label.title()} PDF Document"),
        author=producer,
        subject=f"{label.capitalize()} PDF",
        keywords=f"pdf, {label}, secure",
        producer=f"{producer} - Secure PDF {label.title()}",
        creator=producer,
    )


def assemble(
    data: bytes,
    operation: str,
    options: RawOptions = None,
    *,
    limits: Optional[Limits] = None,
    save_options: SaveOptions = COMPATIBILITY,
    scale: Optional[float] = None,
    password: Optional[str] = None,
) -> AssemblyResult:
    """Run the single-document pipeline for ``operation`` over ``data``.

    ``scale`` applies a uniform page scale to every copied page (used by the
    compression ladder). ``password`` opens encrypted input.
    """
    limits = limits or get_limits()
    parsed = parse_options(operation, options)

    check_input_size(data, limits)
    source = load(data, password=password)
    if source.page_count == 0:
        raise EmptyDocumentError("PDF has no pages")
    logger.debug("%s: loaded %d pages", operation, source.page_count)

    indices = select(operation, parsed, source.page_count)
    logger.debug("%s: selected %d of %d pages", operation, len(indices), source.page_count)

    output = create()
    copied = [output.add_page(page) for page in source.copy_pages(indices)]
    if not copied:
        raise EmptyOutputError("Generated PDF has no pages")

    _transform(operation, parsed, copied, indices)
    if scale is not None and scale != 1.0:
        for page in copied:
            transforms.scale(page, scale)

    apply_metadata(output, operation)
    if isinstance(parsed, ProtectOptions):
        output.encrypt(parsed.password, parsed.password, permission_flags(parsed.permissions))

    result = check_output(output.serialize(save_options), limits)
    logger.info("%s: produced %d pages, %d bytes", operation, len(copied), len(result))
    return AssemblyResult(data=result, operation=operation, page_count=len(copied))


def _transform(operation: str, options: OperationOptions, pages: Sequence[Any], indices: Sequence[int]) -> None:
    if operation == ROTATE and isinstance(options, RotateOptions):
        wanted = set(options.pages) if options.pages is not None else None
        for page, source_idx in zip(pages, indices):
            if wanted is None or source_idx + 1 in wanted:
                transforms.rotate(page, options.angle)
    elif operation == CROP and isinstance(options, CropOptions):
        cropped = sum(1 for page in pages if transforms.crop(page, options))
        if cropped < len(pages):
            logger.debug("crop: skipped %d of %d pages", len(pages) - cropped, len(pages))
    elif operation == WATERMARK and isinstance(options, WatermarkOptions):
        for page in pages:
            transforms.watermark(page, options)
    elif operation == PAGE_NUMBERS and isinstance(options, PageNumberOptions):
        for position, page in enumerate(pages):
            transforms.page_number(page, position, options, total=len(pages))


def permission_flags(permissions: Permissions) -> UserAccessPermissions:
    """Translate the four user-facing switches into PDF permission bits."""
    value = _ALL_PERMISSIONS
    denied = {
        "printing": UserAccessPermissions.PRINT | UserAccessPermissions.PRINT_TO_REPRESENTATION,
        "modifying": UserAccessPermissions.MODIFY | UserAccessPermissions.ASSEMBLE_DOC,
        "copying": UserAccessPermissions.EXTRACT | UserAccessPermissions.EXTRACT_TEXT_AND_GRAPHICS,
        "annotating": UserAccessPermissions.ADD_OR_MODIFY | UserAccessPermissions.FILL_FORM_FIELDS,
    }
    for name, flags in denied.items():
        if not getattr(permissions, name):
            value &= ~int(flags)
    return UserAccessPermissions(value)


def protect(
    data: bytes,
    options: RawOptions,
    *,
    limits: Optional[Limits] = None,
) -> AssemblyResult:
    return assemble(data, PROTECT, options, limits=limits)


def unlock(
    data: bytes,
    options: RawOptions = None,
    *,
    limits: Optional[Limits] = None,
) -> AssemblyResult:
    parsed = cast(UnlockOptions, parse_options(UNLOCK, options))
    return assemble(data, UNLOCK, parsed, limits=limits, password=parsed.password)


def process(
    operation: str,
    data: Union[bytes, Sequence[Any]],
    options: RawOptions = None,
    *,
    limits: Optional[Limits] = None,
) -> AssemblyResult:
    """Single entry point: run ``operation`` with ``options`` over ``data``.

    ``data`` is one PDF as bytes, or for ``merge`` a sequence of bytes or
    ``InputFile`` entries in output order.
    """
    parsed = parse_options(operation, options)
    if operation == MERGE:
        from .merge import merge

        if isinstance(data, (bytes, bytearray)):
            data = [bytes(data)]
        return merge(data, limits=limits)
    if not isinstance(data, (bytes, bytearray)):
        raise TypeError(f"{operation} expects a single PDF as bytes")
    if operation == COMPRESS:
        from .compress import compress

        return compress(bytes(data), parsed, limits=limits)
    if operation == UNLOCK:
        return unlock(bytes(data), parsed, limits=limits)
    return assemble(bytes(data), operation, parsed, limits=limits)
