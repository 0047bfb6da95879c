from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def ensure_outdir(path: str | Path) -> Path:
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def write_json(path: str | Path, obj: Any) -> None:
    with open(path, "wt", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, sort_keys=True)


def variant_write_mode(path: str | Path) -> str:
    """pysam.VariantFile write mode for an output path (BCF, bgzipped VCF or plain VCF)."""
    name = str(path)
    if name.endswith(".bcf"):
        return "wb"
    if name.endswith(".vcf.gz") or name.endswith(".vcf.bgz"):
        return "wz"
    return "w"
