"""Size reduction by re-packing and page scaling.

There is no image re-encoding here. Each attempt rebuilds the document from
the original bytes with packed serialization, optionally shrinking every page
by a uniform factor, and the smallest result wins.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, cast

from .assembler import AssemblyResult, RawOptions, assemble
from .config import Limits, get_limits
from .document import SaveOptions
from .options import COMPRESS, CompressOptions, parse_options

logger = logging.getLogger(__name__)

PACKED_BATCH_SIZE = 10
LOW_RATIO_WARNING = 0.02


@dataclass(frozen=True)
class CompressionAttempt:
    scale: Optional[float]
    objects_per_batch: int
    target_ratio: float


def ladder(level: str) -> List[CompressionAttempt]:
    first_scale = 0.7 if level == "high" else 0.9
    return [
        CompressionAttempt(None, PACKED_BATCH_SIZE, 0.10),
        CompressionAttempt(first_scale, PACKED_BATCH_SIZE, 0.05),
        CompressionAttempt(0.6, PACKED_BATCH_SIZE, 0.02),
        CompressionAttempt(0.5, PACKED_BATCH_SIZE, 0.02),
    ]


def reduction_ratio(original_size: int, result_size: int) -> float:
    if original_size <= 0:
        return 0.0
    return (original_size - result_size) / original_size


def compress(
    data: bytes,
    options: RawOptions = None,
    *,
    limits: Optional[Limits] = None,
) -> AssemblyResult:
    limits = limits or get_limits()
    parsed = cast(CompressOptions, parse_options(COMPRESS, options))

    original_size = len(data)
    best: Optional[AssemblyResult] = None
    attempts = 0

    for attempt in ladder(parsed.level):
        attempts += 1
        result = assemble(
            data,
            COMPRESS,
            parsed,
            limits=limits,
            save_options=SaveOptions(use_object_streams=True, objects_per_batch=attempt.objects_per_batch),
            scale=attempt.scale,
        )
        if best is None or result.size < best.size:
            best = result
        ratio = reduction_ratio(original_size, best.size)
        logger.debug(
            "compress attempt %d (scale=%s): %d -> %d bytes, best ratio %.3f",
            attempts,
            attempt.scale,
            original_size,
            result.size,
            ratio,
        )
        if ratio >= attempt.target_ratio:
            break

    # The ladder is never empty, so at least one attempt produced a result.
    best = cast(AssemblyResult, best)
    best.attempts = attempts
    ratio = reduction_ratio(original_size, best.size)
    if ratio < LOW_RATIO_WARNING:
        message = (
            f"Compression achieved only {ratio:.1%} reduction "
            f"({original_size} -> {best.size} bytes); the document may already be optimized"
        )
        logger.warning(message)
        best.warnings.append(message)
    logger.info("compress: level=%s, %d attempts, %d -> %d bytes", parsed.level, attempts, original_size, best.size)
    return best
