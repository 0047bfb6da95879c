"""svrefine: base-exact breakpoint refinement for structural-variant calls.

Candidate SV records carrying an assembled consensus are re-aligned against a
local reference window; the resulting split point replaces the approximate
call with REF/ALT alleles and SRQ/CE/INSLEN annotations. Most users should use
the CLI:

    svrefine annotate calls.bcf -g ref.fa -t DEL -f refined.bcf

"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
