import json
import subprocess
import sys
from pathlib import Path

import pysam
import pytest

from svrefine.toy_data import make_toy_data
from svrefine.validation import check_variant_index, validate_inputs


def _run_cli(args: list[str]) -> subprocess.CompletedProcess:
    return subprocess.run(
        [sys.executable, "-m", "svrefine"] + args,
        check=False,
        capture_output=True,
        text=True,
    )


def test_cli_help() -> None:
    cp = _run_cli(["--help"])
    assert cp.returncode == 0
    assert "svrefine" in cp.stdout
    assert "annotate" in cp.stdout


def test_cli_make_toy_data_and_annotate(tmp_path: Path) -> None:
    toy_dir = tmp_path / "toy"
    cp = _run_cli(["make-toy-data", "--outdir", str(toy_dir)])
    assert cp.returncode == 0, cp.stderr
    toy = json.loads(cp.stdout)
    assert Path(toy["candidates_vcf"]).exists()

    out = tmp_path / "out.bcf"
    summary_json = tmp_path / "summary.json"
    cp = _run_cli(
        [
            "annotate",
            "-g",
            toy["ref_fa"],
            "-f",
            str(out),
            "--summary-json",
            str(summary_json),
            toy["candidates_vcf"],
        ]
    )
    assert cp.returncode == 0, cp.stderr
    assert out.exists()
    assert Path(str(out) + ".csi").exists()

    with pysam.VariantFile(str(out)) as vcf:
        alts = [r.alts for r in vcf]
    assert alts == [("<DEL>",), ("G",), ("<DEL>",)]

    summary = json.loads(summary_json.read_text())
    assert summary["refined"] == 1
    assert summary["sv_type"] == "DEL"


def test_cli_missing_reference(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    cp = _run_cli(["annotate", "-g", str(tmp_path / "missing.fa"), toy["candidates_vcf"]])
    assert cp.returncode != 0
    assert "Reference file is missing" in cp.stderr


def test_cli_unindexed_vcf_is_fatal(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    plain = Path(toy["outdir"]) / "candidates.vcf"
    cp = _run_cli(["annotate", "-g", toy["ref_fa"], "-f", str(tmp_path / "x.bcf"), str(plain)])
    assert cp.returncode == 2
    assert "tabix" in cp.stderr
    assert not (tmp_path / "x.bcf").exists()


def test_cli_dry_run_writes_nothing(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    out = tmp_path / "dry.bcf"
    cp = _run_cli(["annotate", "-g", toy["ref_fa"], "-f", str(out), "--dry-run", toy["candidates_vcf"]])
    assert cp.returncode == 0, cp.stderr
    assert "Dry-run" in cp.stdout
    assert not out.exists()


def test_cli_rejects_unknown_type(tmp_path: Path) -> None:
    cp = _run_cli(["annotate", "-g", "ref.fa", "-t", "BND", "in.bcf"])
    assert cp.returncode != 0
    assert "invalid choice" in cp.stderr


def test_unindexed_bgzip_is_fatal(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    gz = Path(toy["candidates_vcf"])
    moved = tmp_path / "copy.vcf.gz"
    moved.write_bytes(gz.read_bytes())
    with pytest.raises(ValueError, match="not indexed"):
        check_variant_index(moved)


def test_validate_inputs_ok(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    validate_inputs(genome=toy["ref_fa"], infile=toy["candidates_vcf"], sv_type="DEL")
    with pytest.raises(ValueError):
        validate_inputs(genome=toy["ref_fa"], infile=toy["candidates_vcf"], sv_type="CNV")
    with pytest.raises(FileNotFoundError):
        validate_inputs(genome=toy["ref_fa"], infile=tmp_path / "missing.bcf", sv_type="DEL")
