from pathlib import Path

import pytest

from svrefine.align import align_consensus
from svrefine.annotate import is_eligible, refine_candidate
from svrefine.breakpoints import locate_breakpoint
from svrefine.compose import compose_fallback, compose_refined
from svrefine.homology import find_homology
from svrefine.models import AnnotateConfig, CandidateVariant, ReferenceWindow
from svrefine.svtypes import get_strategy
from svrefine.toy_data import (
    DEL_END,
    DEL_START,
    INS_POS,
    INS_SEQ,
    deletion_consensus,
    insertion_consensus,
    make_toy_reference,
)

LEFT = "TCAGGCTTACCGATTGCAAG"
RIGHT = "CTTGACCGTAGTCAGGTACA"


def _config(**kw) -> AnnotateConfig:
    return AnnotateConfig(genome=Path("ref.fa"), infile=Path("in.bcf"), **kw)


def _candidate(pos0, end, consensus, *, sv_type="DEL", precise=True, chrom="chr1"):
    return CandidateVariant(
        chrom=chrom,
        pos0=pos0,
        end=end,
        sv_type=sv_type,
        precise=precise,
        consensus=consensus,
    )


def test_compose_refined_single_base_deletion():
    window = ReferenceWindow(chrom="chr1", start=1000, end=1041, sequence=LEFT + "A" + RIGHT)
    consensus = LEFT + RIGHT
    strategy = get_strategy("DEL")
    m = align_consensus(consensus, window.sequence, strategy)
    bp = locate_breakpoint(m, strategy)
    hom = find_homology(m, bp)

    out = compose_refined(_candidate(1015, 1025, consensus), window, consensus, bp, hom)
    assert out.refined
    assert out.ref == "GA"
    assert out.alt == "G"
    assert out.pos0 == 1019
    assert out.end == 1021
    assert out.inslen == 0
    assert out.srq == pytest.approx(1.0)
    assert 0.0 < out.ce <= 2.0
    assert out.microhomlen is None

    with_mh = compose_refined(
        _candidate(1015, 1025, consensus), window, consensus, bp, hom, emit_microhomology=True
    )
    assert with_mh.microhomlen == 0


def test_compose_fallback():
    strategy = get_strategy("DEL")
    out = compose_fallback(_candidate(5, 50, None), "acgtacgtac", strategy)
    assert (out.pos0, out.end) == (5, 50)
    assert out.ref == "C"
    assert out.alt == "<DEL>"
    assert not out.refined
    assert out.srq is None

    beyond = compose_fallback(_candidate(20, 50, None), "acgtacgtac", strategy)
    assert beyond.ref == "N"


def test_window_clamped_to_chromosome():
    w = ReferenceWindow.around("acgtACGTac", "chrX", 2, 8, 5)
    assert (w.start, w.end) == (0, 10)
    assert w.sequence == "ACGTACGTAC"


def test_refine_toy_deletion():
    chr1 = make_toy_reference()["chr1"]
    cand = _candidate(DEL_START - 3, DEL_END + 2, deletion_consensus(chr1))
    out, outcome = refine_candidate(cand, chr1, get_strategy("DEL"), _config())

    assert outcome == "refined"
    assert out.pos0 == DEL_START - 1
    assert out.end == DEL_END
    assert out.ref == chr1[DEL_START - 1 : DEL_END].upper()
    assert out.alt == "G"
    assert out.inslen == 0
    assert out.srq == pytest.approx(1.0)


def test_refine_toy_insertion():
    chr1 = make_toy_reference()["chr1"]
    cand = _candidate(INS_POS - 1, INS_POS, insertion_consensus(chr1), sv_type="INS")
    out, outcome = refine_candidate(cand, chr1, get_strategy("INS"), _config(sv_type="INS"))

    assert outcome == "refined"
    assert out.pos0 == INS_POS - 1
    assert out.end == INS_POS
    assert out.ref == "G"
    assert out.alt == "G" + INS_SEQ
    assert out.inslen == len(INS_SEQ)


def test_ineligible_candidates_fall_back():
    chr1 = make_toy_reference()["chr1"]
    strategy = get_strategy("DEL")
    consensus = deletion_consensus(chr1)

    too_long = _candidate(100, 700, consensus)
    assert not is_eligible(too_long, 500)
    out, outcome = refine_candidate(too_long, chr1, strategy, _config())
    assert outcome == "ineligible"
    assert (out.pos0, out.end, out.alt) == (100, 700, "<DEL>")

    imprecise = _candidate(DEL_START - 3, DEL_END + 2, consensus, precise=False)
    assert refine_candidate(imprecise, chr1, strategy, _config())[1] == "ineligible"

    no_consensus = _candidate(DEL_START - 3, DEL_END + 2, None)
    assert refine_candidate(no_consensus, chr1, strategy, _config())[1] == "ineligible"


def test_refinement_failures_fall_back():
    chr1 = make_toy_reference()["chr1"]
    strategy = get_strategy("DEL")

    short = _candidate(DEL_START - 3, DEL_END + 2, "ACG")
    out, outcome = refine_candidate(short, chr1, strategy, _config())
    assert outcome == "alignment_failed"
    assert out.alt == "<DEL>"

    seq = "GATTACAGGG" * 3
    chrom_seq = "ACGT" * 10 + seq + "TGCA" * 10
    substitution = _candidate(40, 70, seq.replace("GATTACA", "GATTAAA"))
    out, outcome = refine_candidate(substitution, chrom_seq, strategy, _config())
    assert outcome == "no_breakpoint"
    assert (out.pos0, out.end, out.ref) == (40, 70, "G")


def test_unknown_sv_type_rejected():
    assert get_strategy("dup").symbolic_tag == "<DUP>"
    assert get_strategy("INV").symbolic_tag == "<INV>"
    with pytest.raises(ValueError, match="not supported"):
        get_strategy("BND")
