from __future__ import annotations

from .align import AlignmentMatrix
from .models import Breakpoint, HomologyExtent

DEFAULT_MAX_HOMOLOGY = 50


def find_homology(
    matrix: AlignmentMatrix,
    breakpoint: Breakpoint,
    *,
    max_extent: int = DEFAULT_MAX_HOMOLOGY,
) -> HomologyExtent:
    """Microhomology around a junction.

    Counts how far the junction could slide left and right without changing
    the alignment: for a deletion, consensus bases flanking the junction that
    repeat the edges of the deleted reference span; for an insertion,
    reference bases flanking the junction that repeat the edges of the
    inserted consensus. Junctions that both delete and insert bases have no
    defined microhomology.
    """
    cons = matrix.consensus
    ref = matrix.reference
    deleted = breakpoint.r_end - breakpoint.r_start
    inserted = breakpoint.c_end - breakpoint.c_start - 1
    limit = max(0, int(max_extent))

    if deleted > 0 and inserted == 0:
        span = min(deleted, limit)
        left = 0
        while (
            left < span
            and breakpoint.c_start - left >= 0
            and cons[breakpoint.c_start - left] == ref[breakpoint.r_end - 1 - left]
        ):
            left += 1
        right = 0
        while (
            right < span
            and breakpoint.c_end + right < len(cons)
            and cons[breakpoint.c_end + right] == ref[breakpoint.r_start + right]
        ):
            right += 1
        return HomologyExtent(left=left, right=right)

    if inserted > 0 and deleted == 0:
        span = min(inserted, limit)
        left = 0
        while (
            left < span
            and breakpoint.r_start - 1 - left >= 0
            and ref[breakpoint.r_start - 1 - left] == cons[breakpoint.c_end - 1 - left]
        ):
            left += 1
        right = 0
        while (
            right < span
            and breakpoint.r_end + right < len(ref)
            and ref[breakpoint.r_end + right] == cons[breakpoint.c_start + 1 + right]
        ):
            right += 1
        return HomologyExtent(left=left, right=right)

    return HomologyExtent(left=0, right=0)
