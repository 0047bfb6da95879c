"""Consensus-to-reference alignment.

The consensus is aligned end to end against a reference window whose leading
and trailing bases may stay unaligned at no cost (semi-global alignment with
affine gaps, Gotoh). Only the traceback is kept: one ``uint8`` code per cell of
the ``(len(consensus) + 1) x (len(window) + 1)`` grid, stored row-major in a
flat buffer borrowed from a :class:`MatrixPool`.

Traceback code layout
---------------------
bits 0-1
    source of the best score in the cell (``0`` diagonal, ``1`` consensus-only
    step from the cell above, ``2`` reference-only step from the cell to the
    left).
bit 2
    the reference-gap score of the cell extends the gap of the left cell.
bit 3
    the consensus-gap score of the cell extends the gap of the cell above.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from .errors import AlignmentFailure
from .svtypes import OP_CONS, OP_MATCH, OP_REF, SVStrategy

logger = logging.getLogger(__name__)

SRC_DIAG = 0
SRC_UP = 1
SRC_LEFT = 2
SRC_MASK = 3
REF_GAP_EXTEND = 4
CONS_GAP_EXTEND = 8

_NEG_INF = -(1 << 40)

DEFAULT_MIN_ANCHOR = 8


class MatrixPool:
    """Reusable traceback arena.

    A single buffer is grown on demand and handed out for every alignment, so
    steady-state refinement does not allocate per candidate. A matrix obtained
    from the pool is only valid until the next :meth:`acquire`.
    """

    def __init__(self, initial_cells: int = 0) -> None:
        self._buffer = np.zeros(int(initial_cells), dtype=np.uint8)

    @property
    def capacity(self) -> int:
        return int(self._buffer.size)

    def acquire(self, rows: int, cols: int) -> np.ndarray:
        need = rows * cols
        if need > self._buffer.size:
            logger.debug("Growing traceback buffer: %d -> %d cells", self._buffer.size, need)
            self._buffer = np.zeros(need, dtype=np.uint8)
        return self._buffer[:need]


@dataclass(frozen=True)
class AlignedColumn:
    """One column of the traced alignment.

    ``cons_pos`` and ``ref_pos`` count the consensus and reference-window
    bases consumed *before* this column.
    """

    op: str
    cons_pos: int
    ref_pos: int


class AlignmentMatrix:
    """Traceback grid of one consensus-to-reference alignment."""

    def __init__(
        self,
        consensus: str,
        reference: str,
        trace: np.ndarray,
        score: int,
        end_col: int,
    ) -> None:
        self.consensus = consensus
        self.reference = reference
        self.rows = len(consensus) + 1
        self.cols = len(reference) + 1
        self.stride = self.cols
        self.trace = trace
        self.score = score
        self.end_col = end_col
        self._path: Optional[List[AlignedColumn]] = None

    @property
    def shape(self) -> tuple[int, int]:
        return self.rows, self.cols

    def code(self, i: int, j: int) -> int:
        return int(self.trace[i * self.stride + j])

    def path(self) -> List[AlignedColumn]:
        """Optimal alignment from the first consensus base to the last.

        Unaligned leading and trailing reference bases are not part of the path.
        """
        if self._path is None:
            self._path = self._traceback()
        return self._path

    def _traceback(self) -> List[AlignedColumn]:
        i = self.rows - 1
        j = self.end_col
        state = "H"
        ops: List[str] = []
        while i > 0:
            code = self.code(i, j)
            if state == "H":
                src = code & SRC_MASK
                if src == SRC_DIAG:
                    ops.append(OP_MATCH)
                    i -= 1
                    j -= 1
                elif src == SRC_UP:
                    state = "F"
                else:
                    state = "E"
            elif state == "F":
                ops.append(OP_CONS)
                i -= 1
                state = "F" if code & CONS_GAP_EXTEND else "H"
            else:
                ops.append(OP_REF)
                j -= 1
                state = "E" if code & REF_GAP_EXTEND else "H"
        ops.reverse()

        path: List[AlignedColumn] = []
        ci, rj = 0, j
        for op in ops:
            path.append(AlignedColumn(op=op, cons_pos=ci, ref_pos=rj))
            if op != OP_REF:
                ci += 1
            if op != OP_CONS:
                rj += 1
        return path

    def aligned_strings(self) -> tuple[str, str]:
        """Gapped consensus and reference rows, handy for logging."""
        top: List[str] = []
        bottom: List[str] = []
        for col in self.path():
            top.append(self.consensus[col.cons_pos] if col.op != OP_REF else "-")
            bottom.append(self.reference[col.ref_pos] if col.op != OP_CONS else "-")
        return "".join(top), "".join(bottom)


def align_consensus(
    consensus: str,
    reference: str,
    strategy: SVStrategy,
    *,
    pool: Optional[MatrixPool] = None,
    min_anchor: int = DEFAULT_MIN_ANCHOR,
) -> AlignmentMatrix:
    """Align ``consensus`` globally inside ``reference`` and return the traceback grid.

    Raises
    ------
    AlignmentFailure
        If either sequence is shorter than ``min_anchor`` or the best score is
        below ``strategy.min_score``.
    """
    consensus = consensus.upper()
    reference = reference.upper()
    n = len(consensus)
    m = len(reference)
    if n < min_anchor or m < min_anchor:
        raise AlignmentFailure(
            f"Sequences too short to anchor an alignment (consensus={n}, window={m}, min={min_anchor})"
        )

    sc = strategy.scoring
    cols = m + 1
    if pool is None:
        pool = MatrixPool()
    trace = pool.acquire(n + 1, cols)

    # Row 0: leading reference bases are free.
    h_prev = [0] * cols
    f_prev = [_NEG_INF] * cols
    trace[0:cols] = SRC_LEFT

    for i in range(1, n + 1):
        cb = consensus[i - 1]
        h_cur = [0] * cols
        f_cur = [0] * cols
        row = bytearray(cols)

        # Column 0: consensus bases before any reference base.
        h_cur[0] = sc.cons_gap_open + (i - 1) * sc.cons_gap_extend
        f_cur[0] = h_cur[0]
        row[0] = SRC_UP | (CONS_GAP_EXTEND if i > 1 else 0)

        e = _NEG_INF
        for j in range(1, cols):
            code = 0

            e_open = h_cur[j - 1] + sc.ref_gap_open
            e_ext = e + sc.ref_gap_extend
            if e_ext >= e_open:
                e = e_ext
                code |= REF_GAP_EXTEND
            else:
                e = e_open

            f_open = h_prev[j] + sc.cons_gap_open
            f_ext = f_prev[j] + sc.cons_gap_extend
            if f_ext >= f_open:
                f = f_ext
                code |= CONS_GAP_EXTEND
            else:
                f = f_open
            f_cur[j] = f

            best = h_prev[j - 1] + sc.substitution(cb, reference[j - 1])
            src = SRC_DIAG
            if f > best:
                best = f
                src = SRC_UP
            if e > best:
                best = e
                src = SRC_LEFT
            h_cur[j] = best
            row[j] = code | src

        trace[i * cols : (i + 1) * cols] = np.frombuffer(bytes(row), dtype=np.uint8)
        h_prev = h_cur
        f_prev = f_cur

    # Trailing reference bases are free: left-most best cell of the last row.
    score = max(h_prev)
    end_col = h_prev.index(score)
    if score < strategy.min_score:
        raise AlignmentFailure(f"Alignment score {score} below minimum {strategy.min_score}")

    return AlignmentMatrix(consensus, reference, trace, score, end_col)
