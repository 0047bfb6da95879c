from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet

# Alignment path operations.
OP_MATCH = "M"  # consensus and reference base aligned (match or mismatch)
OP_CONS = "I"  # consensus-only step (sequence absent from reference)
OP_REF = "D"  # reference-only step (sequence absent from consensus)


class SVType(str, Enum):
    DEL = "DEL"
    INS = "INS"
    DUP = "DUP"
    INV = "INV"


@dataclass(frozen=True)
class ScoringPolicy:
    """Affine-gap scoring used by the consensus-to-reference aligner.

    Gap penalties are split by direction: ``ref_gap_*`` applies to
    reference-only steps (a deletion in the consensus), ``cons_gap_*`` to
    consensus-only steps (an insertion). A gap of length ``k`` costs
    ``open + (k - 1) * extend``.
    """

    match: int
    mismatch: int
    ref_gap_open: int
    ref_gap_extend: int
    cons_gap_open: int
    cons_gap_extend: int

    def substitution(self, a: str, b: str) -> int:
        if a == b and a != "N":
            return self.match
        return self.mismatch


@dataclass(frozen=True)
class SVStrategy:
    """Per-type behaviour: scoring, junction signature and symbolic allele."""

    sv_type: SVType
    scoring: ScoringPolicy
    signature: FrozenSet[str]
    min_score: int = 1

    @property
    def symbolic_tag(self) -> str:
        return f"<{self.sv_type.value}>"


_DEL_SCORING = ScoringPolicy(
    match=5,
    mismatch=-4,
    ref_gap_open=-10,
    ref_gap_extend=-1,
    cons_gap_open=-10,
    cons_gap_extend=-4,
)

_INS_SCORING = ScoringPolicy(
    match=5,
    mismatch=-4,
    ref_gap_open=-10,
    ref_gap_extend=-4,
    cons_gap_open=-10,
    cons_gap_extend=-1,
)

_SYMMETRIC_SCORING = ScoringPolicy(
    match=5,
    mismatch=-4,
    ref_gap_open=-10,
    ref_gap_extend=-2,
    cons_gap_open=-10,
    cons_gap_extend=-2,
)

STRATEGIES: Dict[SVType, SVStrategy] = {
    SVType.DEL: SVStrategy(SVType.DEL, _DEL_SCORING, frozenset({OP_REF})),
    SVType.INS: SVStrategy(SVType.INS, _INS_SCORING, frozenset({OP_CONS})),
    SVType.DUP: SVStrategy(SVType.DUP, _SYMMETRIC_SCORING, frozenset({OP_REF, OP_CONS})),
    SVType.INV: SVStrategy(SVType.INV, _SYMMETRIC_SCORING, frozenset({OP_REF, OP_CONS})),
}


def get_strategy(sv_type: str | SVType) -> SVStrategy:
    """Look up the strategy for an SV type token such as ``"DEL"``."""
    try:
        key = SVType(str(sv_type.value if isinstance(sv_type, SVType) else sv_type).upper())
    except ValueError:
        supported = ", ".join(t.value for t in SVType)
        raise ValueError(f"SV analysis type not supported: {sv_type} (choose from {supported})") from None
    return STRATEGIES[key]
