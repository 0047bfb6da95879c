from __future__ import annotations

import logging

import pysam

from .entropy import entropy
from .models import AnnotatedVariant, Breakpoint, CandidateVariant, HomologyExtent, ReferenceWindow
from .svtypes import SVStrategy

logger = logging.getLogger(__name__)


def compose_refined(
    candidate: CandidateVariant,
    window: ReferenceWindow,
    consensus: str,
    breakpoint: Breakpoint,
    homology: HomologyExtent,
    *,
    emit_microhomology: bool = False,
) -> AnnotatedVariant:
    """Base-exact alleles from a located junction.

    REF and ALT share the reference base preceding the junction; REF carries
    the removed window span and ALT the inserted consensus bases.
    """
    anchor = window.sequence[breakpoint.r_start - 1]
    ref = anchor + window.sequence[breakpoint.r_start : breakpoint.r_end]
    alt = anchor + consensus[breakpoint.c_start + 1 : breakpoint.c_end]
    return AnnotatedVariant(
        pos0=window.start + breakpoint.r_start - 1,
        end=window.start + breakpoint.r_end,
        ref=ref,
        alt=alt,
        refined=True,
        inslen=breakpoint.inserted_length,
        srq=float(breakpoint.quality),
        ce=entropy(consensus),
        microhomlen=homology.length if emit_microhomology else None,
    )


def compose_fallback(candidate: CandidateVariant, chrom_seq: str, strategy: SVStrategy) -> AnnotatedVariant:
    """Symbolic representation: reference base at the original position plus ``<TYPE>``."""
    if 0 <= candidate.pos0 < len(chrom_seq):
        ref = chrom_seq[candidate.pos0].upper()
    else:
        ref = "N"
    return AnnotatedVariant(
        pos0=candidate.pos0,
        end=candidate.end,
        ref=ref,
        alt=strategy.symbolic_tag,
        refined=False,
    )


def apply_to_record(record: pysam.VariantRecord, annotated: AnnotatedVariant) -> None:
    """Write an annotation onto a record already bound to the output header."""
    if not annotated.refined:
        # Symbolic ALT keeps the record's span.
        record.alleles = (annotated.ref, annotated.alt)
        return

    record.pos = annotated.pos0 + 1
    record.alleles = (annotated.ref, annotated.alt)
    record.stop = annotated.end
    record.info["INSLEN"] = int(annotated.inslen)
    record.info["SRQ"] = float(annotated.srq)
    record.info["CE"] = float(annotated.ce)
    if annotated.microhomlen is not None:
        record.info["MICROHOMLEN"] = int(annotated.microhomlen)
