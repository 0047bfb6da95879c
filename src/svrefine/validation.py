from __future__ import annotations

import logging
from pathlib import Path

import pysam

from .svtypes import get_strategy

logger = logging.getLogger(__name__)


def check_reference(genome: str | Path) -> None:
    """Ensure the reference FASTA exists, is a regular file and is non-empty."""
    ref = Path(genome)
    if not (ref.exists() and ref.is_file() and ref.stat().st_size > 0):
        raise FileNotFoundError(f"Reference file is missing: {ref}")


def _index_candidates(path: Path) -> list[Path]:
    return [
        path.with_name(path.name + ".csi"),
        path.with_name(path.name + ".tbi"),
    ]


def check_variant_index(vcf_path: str | Path) -> None:
    """Ensure the variant file is BCF or bgzipped VCF with a CSI/tabix index.

    Raises ValueError with fix instructions otherwise.
    """
    vcf = Path(vcf_path)
    if not vcf.exists():
        raise FileNotFoundError(f"Variant file is missing: {vcf}")

    if vcf.suffix == ".vcf":
        raise ValueError(
            "Variant file is uncompressed (.vcf); region queries need an index. Run: bgzip -c "
            + str(vcf)
            + " > "
            + str(vcf)
            + ".gz; tabix -p vcf "
            + str(vcf)
            + ".gz"
        )

    if not any(p.exists() for p in _index_candidates(vcf)):
        raise ValueError("Variant file is not indexed. Run: bcftools index " + str(vcf))


def check_variant_header(vcf_path: str | Path) -> int:
    """Open the variant file and return the number of contigs in its header."""
    with pysam.VariantFile(str(vcf_path)) as vcf:
        contigs = list(vcf.header.contigs)
    if not contigs:
        raise ValueError(f"Variant file header lists no contigs: {vcf_path}")
    return len(contigs)


def validate_inputs(*, genome: str | Path, infile: str | Path, sv_type: str) -> None:
    """All fatal setup checks, run once before any record is processed."""
    get_strategy(sv_type)
    check_reference(genome)
    check_variant_index(infile)
    n = check_variant_header(infile)
    logger.info("Variant header lists %d contigs", n)
