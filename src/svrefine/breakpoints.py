from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from .align import AlignedColumn, AlignmentMatrix
from .errors import BreakpointNotFound
from .models import Breakpoint
from .svtypes import OP_CONS, OP_MATCH, OP_REF, SVStrategy
from .utils import clamp

logger = logging.getLogger(__name__)

DEFAULT_MIN_GAP = 1
DEFAULT_MIN_FLANK = 4
DEFAULT_MIN_QUALITY = 0.8


@dataclass(frozen=True)
class GapBlock:
    """A maximal run of non-match columns in the traced alignment, ``[start, end)``."""

    start: int
    end: int
    signature_len: int


def gap_blocks(path: List[AlignedColumn], signature: frozenset) -> List[GapBlock]:
    """Maximal gap runs of ``path`` together with their signature-op counts."""
    blocks: List[GapBlock] = []
    k = 0
    while k < len(path):
        if path[k].op == OP_MATCH:
            k += 1
            continue
        start = k
        while k < len(path) and path[k].op != OP_MATCH:
            k += 1
        sig = sum(1 for col in path[start:k] if col.op in signature)
        blocks.append(GapBlock(start=start, end=k, signature_len=sig))
    return blocks


def _centre_distance(matrix: AlignmentMatrix, path: List[AlignedColumn], block: GapBlock) -> int:
    # Doubled coordinates keep the midpoint arithmetic integral.
    first = path[block.start]
    cons_after, ref_after = _consumed_after(path, block.end)
    mid_i = first.cons_pos + cons_after
    mid_j = first.ref_pos + ref_after
    return abs(mid_i - (matrix.rows - 1)) + abs(mid_j - (matrix.cols - 1))


def _consumed_after(path: List[AlignedColumn], end: int) -> tuple[int, int]:
    """Consensus and reference positions right after column ``end - 1``."""
    last = path[end - 1]
    return (
        last.cons_pos + (0 if last.op == OP_REF else 1),
        last.ref_pos + (0 if last.op == OP_CONS else 1),
    )


def flank_quality(path: List[AlignedColumn], matrix: AlignmentMatrix, start: int, end: int) -> float:
    """Fraction of identical columns among the columns outside ``[start, end)``."""
    total = 0
    matches = 0
    for k, col in enumerate(path):
        if start <= k < end:
            continue
        total += 1
        if col.op == OP_MATCH and matrix.consensus[col.cons_pos] == matrix.reference[col.ref_pos]:
            matches += 1
    if total == 0:
        return 0.0
    return clamp(matches / total, 0.0, 1.0)


def locate_breakpoint(
    matrix: AlignmentMatrix,
    strategy: SVStrategy,
    *,
    min_gap: int = DEFAULT_MIN_GAP,
    min_flank: int = DEFAULT_MIN_FLANK,
    min_quality: float = DEFAULT_MIN_QUALITY,
) -> Breakpoint:
    """Find the SV junction in an alignment.

    The junction is the gap block with the longest run of the strategy's
    signature steps (reference-only for deletions, consensus-only for
    insertions). Ties go to the block closest to the centre of the matrix,
    then to the left-most block.

    Raises
    ------
    BreakpointNotFound
        No block qualifies, a flank has fewer than ``min_flank`` aligned
        columns, or the flank quality is below ``min_quality``.
    """
    path = matrix.path()
    candidates = [b for b in gap_blocks(path, strategy.signature) if b.signature_len >= max(1, min_gap)]
    if not candidates:
        raise BreakpointNotFound(f"No {strategy.sv_type.value} junction in alignment")

    block = min(
        candidates,
        key=lambda b: (-b.signature_len, _centre_distance(matrix, path, b), b.start),
    )

    left_flank = sum(1 for col in path[: block.start] if col.op == OP_MATCH)
    right_flank = sum(1 for col in path[block.end :] if col.op == OP_MATCH)
    if left_flank < max(1, min_flank) or right_flank < max(1, min_flank):
        raise BreakpointNotFound(
            f"Junction flanks too short (left={left_flank}, right={right_flank}, min={min_flank})"
        )

    quality = flank_quality(path, matrix, block.start, block.end)
    if quality < min_quality:
        raise BreakpointNotFound(f"Flank quality {quality:.3f} below minimum {min_quality:.3f}")

    first = path[block.start]
    cons_after, ref_after = _consumed_after(path, block.end)
    bp = Breakpoint(
        c_start=first.cons_pos - 1,
        c_end=cons_after,
        r_start=first.ref_pos,
        r_end=ref_after,
        g_start=block.start,
        g_end=block.end,
        quality=quality,
    )
    logger.debug(
        "Junction cons=(%d,%d) ref=[%d,%d) cols=[%d,%d) q=%.3f",
        bp.c_start,
        bp.c_end,
        bp.r_start,
        bp.r_end,
        bp.g_start,
        bp.g_end,
        bp.quality,
    )
    return bp
