"""Document handle over pypdf.

A loaded ``Document`` wraps a ``PdfReader`` and is used as a page source; a
created ``Document`` wraps a fresh ``PdfWriter`` that receives copied pages.
Nothing here outlives a single call chain.
"""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, cast

from pypdf import PageObject, PasswordType, PdfReader, PdfWriter
from pypdf.constants import UserAccessPermissions
from pypdf.errors import PyPdfError

from .errors import PageIndexError, ParseError, PasswordError

logger = logging.getLogger(__name__)

# Page-level keys never carried into an output document. /AA holds
# additional actions (scripts triggered on page open/close).
_EXCLUDED_PAGE_KEYS = ("/AA",)


@dataclass(frozen=True)
class SaveOptions:
    """Serialization flags.

    ``use_object_streams`` re-packs the written document (flate-compressed
    content streams, identical objects merged). ``objects_per_batch`` is how
    many pages are packed per step, which keeps very large documents from
    being compressed in one pass.
    """

    use_object_streams: bool = False
    objects_per_batch: int = 50


COMPATIBILITY = SaveOptions(use_object_streams=False, objects_per_batch=50)


class Document:
    def __init__(self, reader: Optional[PdfReader] = None) -> None:
        self._reader = reader
        self._writer: Optional[PdfWriter] = None if reader is not None else PdfWriter()
        self._encryption: Optional[Dict[str, Any]] = None

    @property
    def pages(self) -> Sequence[PageObject]:
        if self._writer is not None:
            return self._writer.pages
        return cast(PdfReader, self._reader).pages

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def metadata(self) -> Dict[str, str]:
        if self._reader is None or self._reader.metadata is None:
            return {}
        return {str(key).lstrip("/"): str(value) for key, value in self._reader.metadata.items()}

    @property
    def is_encrypted(self) -> bool:
        return bool(self._reader is not None and self._reader.is_encrypted)

    def copy_pages(self, indices: Sequence[int]) -> List[PageObject]:
        """Return the pages at ``indices``, in that order.

        The returned pages still belong to this document; ``add_page`` on the
        target document clones them, so the source is never modified.
        """
        pages = self.pages
        total = len(pages)
        for idx in indices:
            if idx < 0 or idx >= total:
                raise PageIndexError(f"Page index {idx} is out of range (0-{total - 1})")
        return [pages[idx] for idx in indices]

    def add_page(self, page: PageObject) -> PageObject:
        """Append a clone of ``page`` and return the clone, now owned by this document."""
        return self._output().add_page(page, excluded_keys=_EXCLUDED_PAGE_KEYS)

    def set_metadata(self, **fields: Optional[str]) -> None:
        info = {f"/{key.capitalize()}": value for key, value in fields.items() if value is not None}
        if info:
            self._output().add_metadata(info)

    def encrypt(
        self,
        user_password: str,
        owner_password: Optional[str] = None,
        permissions: Optional[UserAccessPermissions] = None,
    ) -> None:
        request: Dict[str, Any] = {
            "user_password": user_password,
            "owner_password": owner_password or user_password,
        }
        if permissions is not None:
            request["permissions_flag"] = permissions
        self._encryption = request

    def serialize(self, options: SaveOptions = COMPATIBILITY) -> bytes:
        raw = _write(self._writer if self._writer is not None else PdfWriter(clone_from=self._reader))
        if not options.use_object_streams and self._encryption is None:
            return raw

        # Post-processing happens on a re-opened copy so this document is left as is.
        copy = PdfWriter(clone_from=PdfReader(io.BytesIO(raw)))
        if options.use_object_streams:
            _pack(copy, options.objects_per_batch)
        if self._encryption is not None:
            copy.encrypt(**self._encryption)
        return _write(copy)

    def _output(self) -> PdfWriter:
        if self._writer is None:
            self._writer = PdfWriter(clone_from=self._reader)
        return self._writer


def load(data: bytes, password: Optional[str] = None) -> Document:
    if not data:
        raise ParseError("Document is empty")
    try:
        reader = PdfReader(io.BytesIO(data))
        if reader.is_encrypted and reader.decrypt(password or "") == PasswordType.NOT_DECRYPTED:
            if password:
                raise PasswordError("Incorrect password for encrypted PDF")
            raise PasswordError("PDF is password protected; a password is required")
        # Force the page tree to be read so structural damage surfaces here.
        total = len(reader.pages)
    except PyPdfError as exc:
        raise ParseError(f"Could not parse PDF: {exc}") from exc
    except (ValueError, KeyError, IndexError, TypeError, AttributeError) as exc:
        raise ParseError(f"Could not parse PDF: {exc}") from exc

    logger.debug("Loaded PDF: %d bytes, %d pages", len(data), total)
    return Document(reader)


def create() -> Document:
    return Document()


def page_size(page: PageObject) -> Tuple[float, float]:
    box = page.mediabox
    return float(box.width), float(box.height)


def page_origin(page: PageObject) -> Tuple[float, float]:
    box = page.mediabox
    return float(box.left), float(box.bottom)


def page_rotation(page: PageObject) -> int:
    return int(page.rotation)


def _write(writer: PdfWriter) -> bytes:
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def _pack(writer: PdfWriter, batch_size: int) -> None:
    pages = list(writer.pages)
    batch_size = max(1, batch_size)
    for start in range(0, len(pages), batch_size):
        for page in pages[start : start + batch_size]:
            page.compress_content_streams()
        logger.debug("Packed content streams for pages %d-%d", start + 1, min(start + batch_size, len(pages)))
    writer.compress_identical_objects(remove_identicals=True, remove_orphans=True)
