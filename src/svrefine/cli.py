from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .annotate import run_annotate
from .models import AnnotateConfig
from .progress import TqdmReporter
from .svtypes import SVType
from .toy_data import make_toy_data
from .validation import validate_inputs


def _setup_logging(verbosity: int, *, logfile: Optional[Path] = None) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    log_fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    logging.basicConfig(level=level, format=log_fmt, stream=sys.stderr)

    if logfile is not None:
        logfile.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(logfile)
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(log_fmt))
        logging.getLogger().addHandler(fh)


def _handle_error(err: Exception, *, log_path: Optional[Path] = None) -> int:
    if isinstance(err, FileNotFoundError) and not err.filename:
        msg = str(err)
    else:
        msg = f"{err.__class__.__name__}: {err}"

    sys.stderr.write(msg + "\n")
    if log_path is not None:
        sys.stderr.write(f"See log: {log_path}\n")
    return 2


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="svrefine",
        description=(
            "svrefine: refine structural-variant breakpoints to base-pair resolution by "
            "re-aligning split-read consensus sequences against the reference."
        ),
    )
    p.add_argument("--version", action="version", version=f"svrefine {__version__}")

    sub = p.add_subparsers(dest="cmd", required=True)

    # -----------------
    # annotate
    # -----------------
    a = sub.add_parser(
        "annotate",
        help="Refine precise SV candidates (BCF/VCF.GZ with CONSENSUS) against a reference.",
    )
    a.add_argument("infile", help="Input BCF or bgzipped VCF (indexed).")
    a.add_argument("-g", "--genome", required=True, help="Genomic reference FASTA (.fa/.fa.gz).")
    a.add_argument(
        "-t",
        "--type",
        dest="sv_type",
        default="DEL",
        choices=[t.value for t in SVType],
        help="SV type to refine.",
    )
    a.add_argument(
        "-m",
        "--maxlen",
        type=int,
        default=500,
        help="Max. SV size before symbolic alleles (e.g. <DEL>) are used.",
    )
    a.add_argument(
        "-f",
        "--outfile",
        default="out.bcf",
        help="Output file (.bcf, .vcf.gz or .vcf).",
    )

    # Refinement thresholds
    a.add_argument("--min-anchor", type=int, default=8, help="Minimum consensus/window length to align.")
    a.add_argument("--min-flank", type=int, default=4, help="Minimum aligned columns on each side of a junction.")
    a.add_argument("--min-quality", type=float, default=0.8, help="Minimum flank identity (SRQ) to refine.")
    a.add_argument("--max-homology", type=int, default=50, help="Max. microhomology extension per side.")

    # Outputs
    a.add_argument(
        "--emit-microhomology",
        action="store_true",
        help="Write MICROHOMLEN for refined records.",
    )
    a.add_argument(
        "--keep-other-types",
        action="store_true",
        help="Write records of other SV types unchanged instead of dropping them.",
    )
    a.add_argument("--no-index", action="store_true", help="Do not index the output file.")
    a.add_argument("--summary-json", default=None, help="Write run counters to this JSON file.")
    a.add_argument("--report-dir", default=None, help="Write report.html, plots and summary.json here.")
    a.add_argument("--log", default=None, help="Also write the log to this file.")
    a.add_argument("--dry-run", action="store_true", help="Validate inputs and print the planned output.")
    a.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v/-vv).")

    # -----------------
    # make-toy-data
    # -----------------
    t = sub.add_parser(
        "make-toy-data",
        help="Generate a tiny reference and SV candidate VCF for demos/tests.",
    )
    t.add_argument("--outdir", required=True, help="Output directory for toy data.")
    t.add_argument("--dry-run", action="store_true", help="Validate paths without writing files.")

    return p


# -----------------
# Command handlers
# -----------------

def cmd_make_toy_data(args: argparse.Namespace) -> int:
    outdir = Path(args.outdir).expanduser().resolve()
    if args.dry_run:
        print(f"Would write toy data into: {outdir}")
        return 0

    summary = make_toy_data(outdir=outdir)
    print(json.dumps(summary, indent=2))
    return 0


def cmd_annotate(args: argparse.Namespace) -> int:
    log_path = Path(args.log).expanduser().resolve() if args.log else None
    _setup_logging(args.verbose, logfile=None if args.dry_run else log_path)

    logger = logging.getLogger("svrefine")
    logger.info("svrefine %s", __version__)
    logger.info("Command: %s", " ".join(sys.argv))

    try:
        config = AnnotateConfig(
            genome=Path(args.genome),
            infile=Path(args.infile),
            outfile=Path(args.outfile),
            sv_type=str(args.sv_type),
            max_length=int(args.maxlen),
            min_anchor=int(args.min_anchor),
            min_flank=int(args.min_flank),
            min_quality=float(args.min_quality),
            max_homology=int(args.max_homology),
            emit_microhomology=bool(args.emit_microhomology),
            keep_other_types=bool(args.keep_other_types),
            build_index=not bool(args.no_index),
        )

        if args.dry_run:
            validate_inputs(genome=config.genome, infile=config.infile, sv_type=config.sv_type)
            print("Dry-run: inputs look OK.")
            print(f"SV type: {config.sv_type} (max length {config.max_length})")
            print("Planned outputs:")
            print(f"  {config.outfile}")
            if args.report_dir:
                print(f"  {Path(args.report_dir) / 'report.html'}")
            return 0

        config.outfile.parent.mkdir(parents=True, exist_ok=True)
        status = run_annotate(
            config,
            reporter=TqdmReporter(disable=args.verbose == 0),
            summary_json=Path(args.summary_json) if args.summary_json else None,
            report_dir=Path(args.report_dir) if args.report_dir else None,
            version=__version__,
        )
        if status == 0:
            print(str(config.outfile))
        return status
    except Exception as e:
        return _handle_error(e, log_path=log_path)


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.cmd == "annotate":
        return cmd_annotate(args)
    if args.cmd == "make-toy-data":
        return cmd_make_toy_data(args)

    parser.error(f"Unknown command: {args.cmd}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
