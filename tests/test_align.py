import numpy as np
import pytest

from svrefine.align import MatrixPool, align_consensus
from svrefine.breakpoints import gap_blocks, locate_breakpoint
from svrefine.errors import AlignmentFailure, BreakpointNotFound
from svrefine.svtypes import OP_CONS, OP_MATCH, OP_REF, get_strategy

LEFT = "TCAGGCTTACCGATTGCAAG"
RIGHT = "CTTGACCGTAGTCAGGTACA"


def test_single_base_deletion_breakpoint():
    ref = LEFT + "A" + RIGHT
    cons = LEFT + RIGHT
    m = align_consensus(cons, ref, get_strategy("DEL"))
    bp = locate_breakpoint(m, get_strategy("DEL"))

    assert (bp.r_start, bp.r_end) == (20, 21)
    assert (bp.c_start, bp.c_end) == (19, 20)
    assert bp.inserted_length == 0
    assert bp.deleted_length == 1
    assert bp.quality == pytest.approx(1.0)


def test_path_ops_for_deletion():
    ref = LEFT + "A" + RIGHT
    m = align_consensus(LEFT + RIGHT, ref, get_strategy("DEL"))
    ops = "".join(col.op for col in m.path())
    assert ops == OP_MATCH * 20 + OP_REF + OP_MATCH * 20

    top, bottom = m.aligned_strings()
    assert top == LEFT + "-" + RIGHT
    assert bottom == ref


def test_longer_deletion_inside_wider_window():
    deleted = "AACCGGTTCT"
    ref = "GGGTTTAAAC" + LEFT + deleted + RIGHT + "TTGGCCAATG"
    m = align_consensus(LEFT + RIGHT, ref, get_strategy("DEL"))
    bp = locate_breakpoint(m, get_strategy("DEL"))
    assert ref[bp.r_start : bp.r_end] == deleted
    assert bp.c_start == len(LEFT) - 1
    assert bp.c_end == len(LEFT)


def test_insertion_breakpoint():
    ins = "ATTAGCCTTA"
    strategy = get_strategy("INS")
    m = align_consensus(LEFT + ins + RIGHT, LEFT + RIGHT, strategy)
    bp = locate_breakpoint(m, strategy)

    assert bp.r_start == bp.r_end == 20
    assert (bp.c_start, bp.c_end) == (19, 30)
    assert bp.inserted_length == len(ins)
    assert [b.signature_len for b in gap_blocks(m.path(), strategy.signature)] == [len(ins)]
    assert all(col.op == OP_CONS for col in m.path()[bp.g_start : bp.g_end])


def test_substitution_only_has_no_junction():
    m = align_consensus("GATTAAAGGG", "GATTACAGGG", get_strategy("DEL"))
    assert all(col.op == OP_MATCH for col in m.path())
    with pytest.raises(BreakpointNotFound):
        locate_breakpoint(m, get_strategy("DEL"))


def test_deletion_not_reported_for_insertion_type():
    ref = LEFT + "A" + RIGHT
    m = align_consensus(LEFT + RIGHT, ref, get_strategy("INS"))
    with pytest.raises(BreakpointNotFound):
        locate_breakpoint(m, get_strategy("INS"))


def test_short_flank_rejected():
    ref = LEFT + "A" + RIGHT
    m = align_consensus(LEFT + RIGHT, ref, get_strategy("DEL"))
    with pytest.raises(BreakpointNotFound):
        locate_breakpoint(m, get_strategy("DEL"), min_flank=25)


def test_quality_threshold():
    ref = LEFT + "A" + RIGHT
    # two mismatches in the right flank
    cons = LEFT + "CTTGTCCGTAGTCAGCTACA"
    m = align_consensus(cons, ref, get_strategy("DEL"))
    bp = locate_breakpoint(m, get_strategy("DEL"))
    assert bp.quality == pytest.approx(38 / 40)
    with pytest.raises(BreakpointNotFound):
        locate_breakpoint(m, get_strategy("DEL"), min_quality=0.99)


def test_too_short_sequences_fail():
    with pytest.raises(AlignmentFailure):
        align_consensus("ACGT", LEFT, get_strategy("DEL"))
    with pytest.raises(AlignmentFailure):
        align_consensus(LEFT, "ACGT", get_strategy("DEL"))


def test_unrelated_sequences_fail():
    with pytest.raises(AlignmentFailure):
        align_consensus("AAAAAAAAAA", "CCCCCCCCCCCC", get_strategy("DEL"))


def test_alignment_is_deterministic():
    ref = LEFT + "A" + RIGHT
    a = align_consensus(LEFT + RIGHT, ref, get_strategy("DEL"))
    b = align_consensus(LEFT + RIGHT, ref, get_strategy("DEL"))
    assert a.shape == b.shape == (41, 42)
    assert np.array_equal(a.trace, b.trace)
    assert a.score == b.score
    assert a.path() == b.path()


def test_matrix_pool_reuses_buffer():
    pool = MatrixPool()
    assert pool.capacity == 0
    ref = LEFT + "A" + RIGHT
    align_consensus(LEFT + RIGHT, ref, get_strategy("DEL"), pool=pool)
    grown = pool.capacity
    assert grown == 41 * 42

    m = align_consensus(LEFT, LEFT + "GG", get_strategy("DEL"), pool=pool)
    assert pool.capacity == grown
    assert m.trace.size == 21 * 23
