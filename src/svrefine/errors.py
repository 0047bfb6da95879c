from __future__ import annotations

from .models import OUTCOME_ALIGNMENT_FAILED, OUTCOME_NO_BREAKPOINT


class RefinementError(RuntimeError):
    """A candidate could not be refined; the caller falls back to a symbolic allele."""

    outcome = "refinement_failed"


class AlignmentFailure(RefinementError):
    """No consensus-to-reference alignment reached the minimum score."""

    outcome = OUTCOME_ALIGNMENT_FAILED


class BreakpointNotFound(RefinementError):
    """The alignment carries no junction matching the SV type signature."""

    outcome = OUTCOME_NO_BREAKPOINT
