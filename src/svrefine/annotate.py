"""Annotation driver.

Streams the reference chromosome by chromosome, pulls the overlapping
candidates from the indexed variant file and refines every candidate of the
requested SV type. Refinement failures never abort a run: the candidate keeps
a symbolic allele instead.
"""

from __future__ import annotations

import logging
import time
from contextlib import ExitStack
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple, cast

import pysam
import pysam.bcftools

from .align import MatrixPool, align_consensus
from .breakpoints import locate_breakpoint
from .compose import apply_to_record, compose_fallback, compose_refined
from .errors import RefinementError
from .homology import find_homology
from .models import (
    OUTCOME_INELIGIBLE,
    OUTCOME_REFINED,
    AnnotateConfig,
    AnnotatedVariant,
    CandidateVariant,
    ReferenceWindow,
)
from .progress import NullReporter, ProgressReporter
from .svtypes import SVStrategy, get_strategy
from .report import render_report
from .utils import variant_write_mode, write_json
from .validation import validate_inputs

logger = logging.getLogger(__name__)

# INFO definitions replaced in the output header.
OUTPUT_INFO_FIELDS: List[Tuple[str, str, str]] = [
    ("END", "Integer", "End position of the structural variant"),
    ("INSLEN", "Integer", "Predicted length of the insertion"),
    ("SRQ", "Float", "Split-read consensus alignment quality"),
    ("CE", "Float", "Consensus sequence entropy"),
    ("MICROHOMLEN", "Integer", "Breakpoint micro-homology length"),
]


@dataclass
class RunSummary:
    """Counters for one annotation run."""

    sv_type: str
    max_length: int
    infile: str = ""
    outfile: str = ""
    chromosomes: int = 0
    records_total: int = 0
    refined: int = 0
    fallback: Dict[str, int] = field(default_factory=dict)
    other_types_written: int = 0
    other_types_dropped: int = 0
    srq_values: List[float] = field(default_factory=list)
    inslen_values: List[int] = field(default_factory=list)
    runtime_seconds: float = 0.0

    def record(self, outcome: str, annotated: AnnotatedVariant) -> None:
        self.records_total += 1
        if outcome == OUTCOME_REFINED:
            self.refined += 1
            self.srq_values.append(float(annotated.srq))
            self.inslen_values.append(int(annotated.inslen))
        else:
            self.fallback[outcome] = self.fallback.get(outcome, 0) + 1

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


def _info_str(record: pysam.VariantRecord, key: str) -> Optional[str]:
    value = record.info.get(key)
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        if not value:
            return None
        value = value[0]
    return str(value)


def candidate_from_record(record: pysam.VariantRecord) -> CandidateVariant:
    consensus = _info_str(record, "CONSENSUS")
    return CandidateVariant(
        chrom=str(record.contig),
        pos0=int(record.start),
        end=int(record.stop),
        sv_type=_info_str(record, "SVTYPE"),
        precise=bool(record.info.get("PRECISE", False)),
        consensus=consensus.upper() if consensus else None,
        record=record,
    )


def is_eligible(candidate: CandidateVariant, max_length: int) -> bool:
    return candidate.sv_length <= max_length and candidate.precise and bool(candidate.consensus)


def refine_candidate(
    candidate: CandidateVariant,
    chrom_seq: str,
    strategy: SVStrategy,
    config: AnnotateConfig,
    *,
    pool: Optional[MatrixPool] = None,
) -> Tuple[AnnotatedVariant, str]:
    """Refine one candidate or fall back to its symbolic form.

    Returns the annotation and an outcome label (``refined``, ``ineligible``,
    ``alignment_failed`` or ``no_breakpoint``).
    """
    if not is_eligible(candidate, config.max_length):
        return compose_fallback(candidate, chrom_seq, strategy), OUTCOME_INELIGIBLE

    consensus = cast(str, candidate.consensus)
    window = ReferenceWindow.around(chrom_seq, candidate.chrom, candidate.pos0, candidate.end, len(consensus))

    try:
        matrix = align_consensus(
            consensus,
            window.sequence,
            strategy,
            pool=pool,
            min_anchor=config.min_anchor,
        )
        breakpoint = locate_breakpoint(
            matrix,
            strategy,
            min_flank=config.min_flank,
            min_quality=config.min_quality,
        )
    except RefinementError as err:
        logger.debug("%s:%d falls back to %s: %s", candidate.chrom, candidate.pos0 + 1, strategy.symbolic_tag, err)
        return compose_fallback(candidate, chrom_seq, strategy), err.outcome

    homology = find_homology(matrix, breakpoint, max_extent=config.max_homology)
    annotated = compose_refined(
        candidate,
        window,
        consensus,
        breakpoint,
        homology,
        emit_microhomology=config.emit_microhomology,
    )
    return annotated, OUTCOME_REFINED


def build_output_header(header: pysam.VariantHeader) -> pysam.VariantHeader:
    """Rebuild ``header`` with single-value numeric END/INSLEN/SRQ/CE/MICROHOMLEN.

    htslib keeps removed IDs in its dictionary, so the replaced INFO lines are
    left out of a fresh header instead of being removed from a copy.
    """
    replaced = {key for key, _, _ in OUTPUT_INFO_FIELDS}
    out = pysam.VariantHeader()
    for rec in header.records:
        if rec.key == "fileformat":
            continue
        if rec.type == "INFO" and rec.get("ID") in replaced:
            continue
        out.add_record(rec)
    for sample in header.samples:
        out.add_sample(sample)
    for key, vtype, description in OUTPUT_INFO_FIELDS:
        out.info.add(key, number=1, type=vtype, description=description)
    return out


def index_variant_file(path: str | Path) -> Optional[Path]:
    """Build a CSI (BCF) or tabix (bgzipped VCF) index; plain VCF is left unindexed."""
    p = Path(path)
    mode = variant_write_mode(p)
    if mode == "wb":
        pysam.bcftools.index("--force", str(p))
        return p.with_name(p.name + ".csi")
    if mode == "wz":
        pysam.tabix_index(str(p), preset="vcf", force=True)
        return p.with_name(p.name + ".tbi")
    logger.warning("Output %s is uncompressed VCF; skipping index build.", p)
    return None


def annotate_variants(
    config: AnnotateConfig,
    *,
    reporter: Optional[ProgressReporter] = None,
) -> RunSummary:
    """Refine all candidates of ``config.sv_type`` and write the annotated file."""
    t0 = time.time()
    strategy = get_strategy(config.sv_type)
    reporter = reporter if reporter is not None else NullReporter()
    pool = MatrixPool()
    summary = RunSummary(
        sv_type=strategy.sv_type.value,
        max_length=int(config.max_length),
        infile=str(config.infile),
        outfile=str(config.outfile),
    )

    logger.info("Annotating %s (%s, max length %d)", config.infile, strategy.sv_type.value, config.max_length)

    with ExitStack() as stack:
        vcf_in = stack.enter_context(pysam.VariantFile(str(config.infile)))
        vcf_out = stack.enter_context(
            pysam.VariantFile(
                str(config.outfile),
                variant_write_mode(config.outfile),
                header=build_output_header(vcf_in.header),
            )
        )
        # The writer holds its own copy of the header; records are translated into it.
        out_header = vcf_out.header
        fasta = stack.enter_context(pysam.FastxFile(str(config.genome)))

        contigs = set(vcf_in.header.contigs)
        reporter.start(total=len(contigs), desc="Annotating")
        stack.callback(reporter.close)
        seen: Set[str] = set()

        for entry in fasta:
            chrom = entry.name
            if chrom not in contigs:
                continue
            seen.add(chrom)
            reporter.advance()
            summary.chromosomes += 1
            chrom_seq = entry.sequence

            # Refinement can move a record past its neighbours; buffer per
            # chromosome and write in refined position order.
            pending: List[Tuple[int, int, pysam.VariantRecord]] = []
            for record in vcf_in.fetch(chrom, 0, len(chrom_seq)):
                sv_type = _info_str(record, "SVTYPE")
                if sv_type is not None and sv_type != strategy.sv_type.value:
                    if config.keep_other_types:
                        record.translate(out_header)
                        pending.append((record.start, len(pending), record))
                        summary.other_types_written += 1
                    else:
                        summary.other_types_dropped += 1
                    continue

                candidate = candidate_from_record(record)
                annotated, outcome = refine_candidate(candidate, chrom_seq, strategy, config, pool=pool)
                record.translate(out_header)
                apply_to_record(record, annotated)
                summary.record(outcome, annotated)
                pending.append((record.start, len(pending), record))

            pending.sort(key=lambda item: (item[0], item[1]))
            for _, _, record in pending:
                vcf_out.write(record)

        missing = sorted(contigs - seen)
        for chrom in missing:
            logger.debug("Contig %s is not in the reference; its records are skipped", chrom)
        if missing:
            reporter.advance(len(missing))

    if config.build_index:
        index_path = index_variant_file(config.outfile)
        if index_path is not None:
            logger.info("Index written: %s", index_path)

    summary.runtime_seconds = float(time.time() - t0)
    logger.info(
        "Done. %d candidates: %d refined, %d symbolic",
        summary.records_total,
        summary.refined,
        sum(summary.fallback.values()),
    )
    return summary


def run_annotate(
    config: AnnotateConfig,
    *,
    reporter: Optional[ProgressReporter] = None,
    summary_json: Optional[Path] = None,
    report_dir: Optional[Path] = None,
    version: str = "",
) -> int:
    """Validate inputs, annotate and write the optional summary/report.

    Returns 0 on success and 2 when the inputs cannot be used or the files
    cannot be read or written; the cause is logged at ERROR.
    """
    try:
        validate_inputs(genome=config.genome, infile=config.infile, sv_type=config.sv_type)
        summary = annotate_variants(config, reporter=reporter)
    except (OSError, ValueError) as err:
        logger.error("%s", err)
        return 2

    run = summary.to_dict()
    if summary_json is not None:
        write_json(summary_json, run)
    if report_dir is not None:
        render_report(outdir=report_dir, version=version, run=run)
    return 0
