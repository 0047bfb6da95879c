from __future__ import annotations

import random
from pathlib import Path
from typing import Dict, List

import pysam

from .utils import ensure_outdir, write_json

# Planted events on chr1 (0-based, half-open).
DEL_START = 400
DEL_END = 460
INS_POS = 800
INS_SEQ = "ATTGCGGATCCAGTTGACTC"
FLANK = 30


def _write_fasta(path: Path, contigs: Dict[str, str]) -> None:
    lines: List[str] = []
    for name, seq in contigs.items():
        lines.append(f">{name}")
        for i in range(0, len(seq), 60):
            lines.append(seq[i : i + 60])
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def _random_seq(rng: random.Random, n: int) -> str:
    return "".join(rng.choice("ACGT") for _ in range(n))


def make_toy_reference(seed: int = 7) -> Dict[str, str]:
    """Two random contigs with junction bases fixed so the planted events carry no microhomology."""
    rng = random.Random(seed)
    chr1 = list(_random_seq(rng, 1200))
    chr1[DEL_START - 1] = "G"
    chr1[DEL_START] = "A"
    chr1[DEL_END - 1] = "T"
    chr1[DEL_END] = "C"
    chr1[INS_POS - 1] = "G"
    chr1[INS_POS] = "T"
    seq1 = "".join(chr1)
    # soft-masked stretch
    seq1 = seq1[:1000] + seq1[1000:1100].lower() + seq1[1100:]
    return {"chr1": seq1, "chr2": _random_seq(rng, 400)}


def deletion_consensus(ref: str) -> str:
    return (ref[DEL_START - FLANK : DEL_START] + ref[DEL_END : DEL_END + FLANK]).upper()


def insertion_consensus(ref: str) -> str:
    return (ref[INS_POS - FLANK : INS_POS] + INS_SEQ + ref[INS_POS : INS_POS + FLANK]).upper()


def make_candidate_header(contigs: Dict[str, str]) -> pysam.VariantHeader:
    header = pysam.VariantHeader()
    header.add_meta("fileformat", "VCFv4.2")
    for name, seq in contigs.items():
        header.contigs.add(name, length=len(seq))
    header.info.add("SVTYPE", number=1, type="String", description="Type of structural variant")
    header.info.add("END", number=1, type="Integer", description="End position of the structural variant")
    header.info.add("PRECISE", number=0, type="Flag", description="Precise structural variation")
    header.info.add("IMPRECISE", number=0, type="Flag", description="Imprecise structural variation")
    header.info.add("CONSENSUS", number=1, type="String", description="Split-read consensus sequence")
    header.formats.add("GT", number=1, type="String", description="Genotype")
    header.add_sample("SAMPLE")
    return header


def make_toy_data(*, outdir: str | Path) -> Dict[str, str]:
    """Create a tiny reference and an indexed SV candidate VCF for demos/tests.

    Candidates on chr1: an oversized precise deletion, a precise deletion
    with consensus (refinable), a precise insertion with consensus and an
    imprecise deletion; chr2 carries an inversion.

    Returns
    -------
    dict
        Paths to the generated files.
    """
    outdir_p = ensure_outdir(outdir)

    contigs = make_toy_reference()
    ref_fa = outdir_p / "toy_ref.fa"
    _write_fasta(ref_fa, contigs)
    pysam.faidx(str(ref_fa))

    chr1 = contigs["chr1"]
    chr2 = contigs["chr2"]
    header = make_candidate_header(contigs)

    vcf_path = outdir_p / "candidates.vcf"
    with pysam.VariantFile(str(vcf_path), "w", header=header) as vcf:
        specs = [
            ("chr1", 100, 700, "DEL", True, deletion_consensus(chr1)),
            ("chr1", DEL_START - 3, DEL_END + 2, "DEL", True, deletion_consensus(chr1)),
            ("chr1", INS_POS - 1, INS_POS, "INS", True, insertion_consensus(chr1)),
            ("chr1", 1010, 1090, "DEL", False, None),
            ("chr2", 100, 250, "INV", True, chr2[80:100] + chr2[230:250][::-1]),
        ]
        for i, (chrom, start, stop, svtype, precise, consensus) in enumerate(specs):
            seq = contigs[chrom]
            info: Dict[str, object] = {"SVTYPE": svtype}
            if precise:
                info["PRECISE"] = True
                info["CONSENSUS"] = consensus
            else:
                info["IMPRECISE"] = True
            rec = vcf.new_record(
                contig=chrom,
                start=start,
                stop=stop,
                alleles=(seq[start].upper(), f"<{svtype}>"),
                id=f"{svtype}{i:05d}",
                qual=60,
                filter="PASS",
                info=info,
            )
            rec.samples[0]["GT"] = (0, 1)
            vcf.write(rec)

    vcf_gz = outdir_p / "candidates.vcf.gz"
    pysam.tabix_compress(str(vcf_path), str(vcf_gz), force=True)
    pysam.tabix_index(str(vcf_gz), preset="vcf", force=True)

    summary = {
        "ref_fa": str(ref_fa),
        "candidates_vcf": str(vcf_gz),
        "outdir": str(outdir_p),
    }

    write_json(outdir_p / "toy_summary.json", summary)
    return summary
