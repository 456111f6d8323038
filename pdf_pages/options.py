"""Per-operation option records.

The browser posts one loosely typed JSON object per request; ``parse_options``
turns it into the dataclass for that operation so the rest of the pipeline
works with typed, validated fields.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple, Type, Union

from .config import UNIT_TO_POINTS
from .errors import UnsupportedOperationError, ValidationError

MERGE = "merge"
SPLIT = "split"
COMPRESS = "compress"
EXTRACT_PAGES = "extract-pages"
REMOVE_PAGES = "remove-pages"
ROTATE = "rotate"
PROTECT = "protect"
UNLOCK = "unlock"
WATERMARK = "watermark"
PAGE_NUMBERS = "page-numbers"
CROP = "crop"
ORGANIZE = "organize"

COMPRESSION_LEVELS = ("low", "medium", "high")
NUMBER_FORMATS = ("1", "i", "I", "a", "A")

_MISSING = object()


def _number(raw: Mapping[str, Any], key: str, default: Any = _MISSING) -> float:
    value = raw.get(key, _MISSING)
    if value is _MISSING or value is None:
        if default is _MISSING:
            raise ValidationError(f"Missing required option: {key}")
        return default
    if isinstance(value, bool):
        raise ValidationError(f"Option {key} must be a number")
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            raise ValidationError(f"Option {key} must be a number") from None
    if not isinstance(value, (int, float)):
        raise ValidationError(f"Option {key} must be a number")
    return float(value)


def _int(raw: Mapping[str, Any], key: str, default: Any = _MISSING) -> int:
    value = _number(raw, key, default)
    if value is default and default is not _MISSING:
        return default
    if not float(value).is_integer():
        raise ValidationError(f"Option {key} must be a whole number")
    return int(value)


def _int_list(raw: Mapping[str, Any], key: str, required: bool = True) -> Optional[Tuple[int, ...]]:
    value = raw.get(key)
    if value is None:
        if required:
            raise ValidationError(f"Missing required option: {key}")
        return None
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"Option {key} must be a list of page numbers")
    return tuple(_int({key: item}, key) for item in value)


def _str(raw: Mapping[str, Any], key: str, default: Any = _MISSING) -> str:
    value = raw.get(key)
    if value is None or value == "":
        if default is _MISSING:
            raise ValidationError(f"Missing required option: {key}")
        return default
    if not isinstance(value, str):
        raise ValidationError(f"Option {key} must be a string")
    return value


def _bool(raw: Mapping[str, Any], key: str, default: bool = False) -> bool:
    value = raw.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValidationError(f"Option {key} must be true or false")
    return value


@dataclass(frozen=True)
class MergeOptions:
    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "MergeOptions":
        return cls()


@dataclass(frozen=True)
class PageRange:
    start: int
    end: int


@dataclass(frozen=True)
class SplitOptions:
    page_range: Optional[PageRange] = None
    every_pages: Optional[int] = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "SplitOptions":
        page_range = raw.get("pageRange")
        if page_range is not None:
            if not isinstance(page_range, Mapping):
                raise ValidationError("Option pageRange must be an object with start and end")
            return cls(page_range=PageRange(_int(page_range, "start"), _int(page_range, "end")))
        if raw.get("everyPages") is not None:
            return cls(every_pages=_int(raw, "everyPages"))
        return cls()


@dataclass(frozen=True)
class CompressOptions:
    level: str = "medium"

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "CompressOptions":
        level = _str(raw, "compressionLevel", _str(raw, "level", "medium"))
        if level not in COMPRESSION_LEVELS:
            raise ValidationError(f"Unknown compression level: {level} (expected one of {', '.join(COMPRESSION_LEVELS)})")
        return cls(level=level)


@dataclass(frozen=True)
class ExtractOptions:
    pages: Tuple[int, ...]

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ExtractOptions":
        return cls(pages=_int_list(raw, "pages"))


@dataclass(frozen=True)
class RemoveOptions:
    pages_to_remove: Tuple[int, ...]

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "RemoveOptions":
        return cls(pages_to_remove=_int_list(raw, "pagesToRemove"))


@dataclass(frozen=True)
class RotateOptions:
    angle: int
    pages: Optional[Tuple[int, ...]] = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "RotateOptions":
        angle = _int(raw, "angle")
        if angle % 90 != 0:
            raise ValidationError("Rotation degrees must be a multiple of 90")
        return cls(angle=angle, pages=_int_list(raw, "pages", required=False))


@dataclass(frozen=True)
class Permissions:
    printing: bool = False
    modifying: bool = False
    copying: bool = False
    annotating: bool = False

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Permissions":
        return cls(
            printing=_bool(raw, "printing"),
            modifying=_bool(raw, "modifying"),
            copying=_bool(raw, "copying"),
            annotating=_bool(raw, "annotating"),
        )


@dataclass(frozen=True)
class ProtectOptions:
    password: str
    permissions: Permissions = field(default_factory=Permissions)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ProtectOptions":
        permissions = raw.get("permissions") or {}
        if not isinstance(permissions, Mapping):
            raise ValidationError("Option permissions must be an object")
        return cls(password=_str(raw, "password"), permissions=Permissions.from_dict(permissions))


@dataclass(frozen=True)
class UnlockOptions:
    password: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "UnlockOptions":
        return cls(password=_str(raw, "password", None))


@dataclass(frozen=True)
class WatermarkOptions:
    text: str
    position: str = "center"
    opacity: float = 0.3
    font_size: float = 12.0

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "WatermarkOptions":
        # Zero opacity or font size means "use the default", as the form sends 0 for untouched fields.
        opacity = _number(raw, "opacity", 0.0) or 0.3
        if not 0.0 < opacity <= 1.0:
            raise ValidationError("Option opacity must be between 0 and 1")
        font_size = _number(raw, "fontSize", 0.0) or 12.0
        if font_size < 0:
            raise ValidationError("Option fontSize must be positive")
        return cls(
            text=_str(raw, "text"),
            position=_str(raw, "position", "center"),
            opacity=opacity,
            font_size=font_size,
        )


@dataclass(frozen=True)
class PageNumberOptions:
    position: str = "bottom-center"
    font_size: float = 12.0
    start_number: int = 1
    format: str = "1"
    include_total: bool = False

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "PageNumberOptions":
        font_size = _number(raw, "fontSize", 0.0) or 12.0
        if font_size < 0:
            raise ValidationError("Option fontSize must be positive")
        start_number = _int(raw, "startNumber", None)
        if start_number is None:
            start_number = _int(raw, "startPage", None)
        number_format = _str(raw, "format", "1")
        if number_format not in NUMBER_FORMATS:
            raise ValidationError(f"Unknown page number format: {number_format}")
        return cls(
            position=_str(raw, "position", "bottom-center"),
            font_size=font_size,
            start_number=start_number or 1,
            format=number_format,
            include_total=_bool(raw, "includeTotalPages"),
        )


@dataclass(frozen=True)
class CropOptions:
    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0
    left: float = 0.0
    unit: str = "mm"

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "CropOptions":
        crop = raw.get("crop", raw)
        if not isinstance(crop, Mapping):
            raise ValidationError("Option crop must be an object with top, right, bottom, left and unit")
        unit = _str(crop, "unit", "mm")
        if unit not in UNIT_TO_POINTS:
            raise ValidationError(f"Unknown crop unit: {unit} (expected one of {', '.join(UNIT_TO_POINTS)})")
        margins = {side: _number(crop, side, 0.0) for side in ("top", "right", "bottom", "left")}
        for side, value in margins.items():
            if value < 0:
                raise ValidationError(f"Crop margin {side} must not be negative")
        return cls(unit=unit, **margins)

    def in_points(self) -> Tuple[float, float, float, float]:
        """Return (top, right, bottom, left) converted to points."""
        factor = UNIT_TO_POINTS[self.unit]
        return self.top * factor, self.right * factor, self.bottom * factor, self.left * factor


@dataclass(frozen=True)
class OrganizeOptions:
    page_order: Optional[Tuple[int, ...]] = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "OrganizeOptions":
        return cls(page_order=_int_list(raw, "pageOrder", required=False))


OperationOptions = Union[
    MergeOptions,
    SplitOptions,
    CompressOptions,
    ExtractOptions,
    RemoveOptions,
    RotateOptions,
    ProtectOptions,
    UnlockOptions,
    WatermarkOptions,
    PageNumberOptions,
    CropOptions,
    OrganizeOptions,
]

OPTION_TYPES: Dict[str, Type[Any]] = {
    MERGE: MergeOptions,
    SPLIT: SplitOptions,
    COMPRESS: CompressOptions,
    EXTRACT_PAGES: ExtractOptions,
    REMOVE_PAGES: RemoveOptions,
    ROTATE: RotateOptions,
    PROTECT: ProtectOptions,
    UNLOCK: UnlockOptions,
    WATERMARK: WatermarkOptions,
    PAGE_NUMBERS: PageNumberOptions,
    CROP: CropOptions,
    ORGANIZE: OrganizeOptions,
}

OPERATIONS = tuple(OPTION_TYPES)


def parse_options(
    operation: str,
    raw: Union[None, str, Mapping[str, Any], OperationOptions] = None,
) -> OperationOptions:
    """Build the typed options for ``operation``.

    ``raw`` may be ``None``, a JSON string (as posted in a form field), a
    mapping in the browser's camelCase shape, or an already parsed options
    object for the same operation.
    """
    option_type = OPTION_TYPES.get(operation)
    if option_type is None:
        raise UnsupportedOperationError(f"Unsupported operation: {operation}")
    if isinstance(raw, option_type):
        return raw
    if raw is None or raw == "":
        raw = {}
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValidationError(f"Options are not valid JSON: {exc}") from exc
    if not isinstance(raw, Mapping):
        raise ValidationError(f"Options for {operation} must be an object")
    return option_type.from_dict(raw)
