from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

OUTCOME_REFINED = "refined"
OUTCOME_INELIGIBLE = "ineligible"
OUTCOME_ALIGNMENT_FAILED = "alignment_failed"
OUTCOME_NO_BREAKPOINT = "no_breakpoint"


@dataclass(frozen=True)
class AnnotateConfig:
    """Settings for one annotation run.

    Attributes
    ----------
    sv_type:
        SV type to refine (DEL, INS, DUP, INV). Records of other types are
        dropped unless ``keep_other_types`` is set.
    max_length:
        Candidates longer than this keep a symbolic allele.
    genome:
        Reference FASTA (plain or gzipped).
    infile:
        Indexed input BCF / bgzipped VCF.
    outfile:
        Output path; ``.bcf`` writes BCF, ``.vcf.gz`` bgzipped VCF, anything
        else plain VCF.
    min_anchor:
        Minimum consensus and window length for an alignment attempt.
    min_flank:
        Minimum aligned columns on each side of a junction.
    min_quality:
        Minimum flank identity (SRQ) for a refined call.
    max_homology:
        Upper bound on each side of the microhomology search.
    emit_microhomology:
        Write MICROHOMLEN for refined records.
    keep_other_types:
        Write records of other SV types through unchanged.
    build_index:
        Build a CSI/tabix index for the output.
    """

    genome: Path
    infile: Path
    outfile: Path = Path("out.bcf")
    sv_type: str = "DEL"
    max_length: int = 500
    min_anchor: int = 8
    min_flank: int = 4
    min_quality: float = 0.8
    max_homology: int = 50
    emit_microhomology: bool = False
    keep_other_types: bool = False
    build_index: bool = True


@dataclass(frozen=True)
class CandidateVariant:
    """An SV record as read from the variant source.

    Coordinates are 0-based; ``end`` is exclusive and therefore equal to the
    1-based VCF END.

    Attributes
    ----------
    chrom:
        Contig name.
    pos0:
        0-based start (VCF POS - 1).
    end:
        0-based exclusive end.
    sv_type:
        SVTYPE INFO value, or None when absent.
    precise:
        PRECISE flag.
    consensus:
        Uppercased CONSENSUS INFO value, or None.
    record:
        Source ``pysam.VariantRecord``; not interpreted here.
    """

    chrom: str
    pos0: int
    end: int
    sv_type: Optional[str]
    precise: bool
    consensus: Optional[str]
    record: Any = None

    @property
    def sv_length(self) -> int:
        return max(1, self.end - self.pos0)


@dataclass(frozen=True)
class ReferenceWindow:
    """Uppercased reference slice ``[start, end)`` around a candidate."""

    chrom: str
    start: int
    end: int
    sequence: str

    @classmethod
    def around(cls, chrom_seq: str, chrom: str, pos0: int, end: int, flank: int) -> "ReferenceWindow":
        start = max(pos0 - flank, 0)
        stop = min(end + flank, len(chrom_seq))
        stop = max(stop, start)
        return cls(chrom=chrom, start=start, end=stop, sequence=chrom_seq[start:stop].upper())


@dataclass(frozen=True)
class Breakpoint:
    """Junction located in a consensus-to-reference alignment.

    ``[r_start, r_end)`` is the window span removed at the junction (empty
    for a pure insertion). ``c_start`` is the consensus index of the last base
    before the junction and ``c_end`` the first base after it, so
    ``consensus[c_start + 1:c_end]`` is the inserted sequence.
    ``[g_start, g_end)`` are the junction columns of the traced alignment.
    """

    c_start: int
    c_end: int
    r_start: int
    r_end: int
    g_start: int
    g_end: int
    quality: float

    @property
    def inserted_length(self) -> int:
        return self.c_end - self.c_start - 1

    @property
    def deleted_length(self) -> int:
        return self.r_end - self.r_start


@dataclass(frozen=True)
class HomologyExtent:
    left: int
    right: int

    @property
    def length(self) -> int:
        return self.left + self.right


@dataclass(frozen=True)
class AnnotatedVariant:
    """Output projection of one candidate."""

    pos0: int
    end: int
    ref: str
    alt: str
    refined: bool
    inslen: Optional[int] = None
    srq: Optional[float] = None
    ce: Optional[float] = None
    microhomlen: Optional[int] = None
