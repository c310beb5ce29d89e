from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import List, NoReturn, Optional

from . import __version__
from .alignment import load_haplotype_alignment
from .classifier import evaluate_alignment
from .models import EvalMetrics, PositionEvent
from .plotting import plot_error_counts, plot_event_positions
from .report import EventTsvWriter, format_summary, render_report, summary_dict
from .toy_data import make_toy_data
from .utils import ensure_outdir, write_json
from .validation import (
    AlignmentFormatError,
    AlignmentLengthError,
    AlignmentReadError,
    check_equal_lengths,
)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_MISSING_PREFIX = 3
EXIT_BAD_ARGUMENT = 4
EXIT_UNREADABLE_INPUT = 5
EXIT_MISSING_INPUT = 6
EXIT_READ_ERROR = 7
EXIT_UNEQUAL_LENGTH = 8
EXIT_MALFORMED_ALIGNMENT = 9
EXIT_OUTPUT_ERROR = 10

USAGE = (
    "hapsnpeval -p true_haplotype_prefix [options] input_alignment.fa\n"
    "       hapsnpeval --make-toy-data OUTDIR"
)


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        # "-p" given without a value is reported as a missing prefix, not a bad option.
        code = EXIT_MISSING_PREFIX if "--true_prefix" in message else EXIT_BAD_ARGUMENT
        self.print_usage(sys.stderr)
        self.exit(code, f"{self.prog}: error: {message}\n")


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


def _exit_code_for(err: Exception) -> int:
    if isinstance(err, AlignmentReadError):
        return EXIT_READ_ERROR
    if isinstance(err, AlignmentLengthError):
        return EXIT_UNEQUAL_LENGTH
    if isinstance(err, AlignmentFormatError):
        return EXIT_MALFORMED_ALIGNMENT
    if isinstance(err, (FileNotFoundError, PermissionError)):
        return EXIT_UNREADABLE_INPUT
    return EXIT_ERROR


def _handle_error(err: Exception, *, code: Optional[int] = None, log_path: Optional[Path] = None) -> int:
    sys.stderr.write(f"{err.__class__.__name__}: {err}\n")
    if log_path is not None:
        sys.stderr.write(f"See log: {log_path}\n")
    return _exit_code_for(err) if code is None else code


def _usage_error(parser: argparse.ArgumentParser, message: str, code: int) -> int:
    sys.stderr.write(message + "\n")
    parser.print_usage(sys.stderr)
    return code


def build_parser() -> argparse.ArgumentParser:
    p = _ArgumentParser(
        prog="hapsnpeval",
        usage=USAGE,
        description=(
            "HapSNPeval: score reconstructed haplotypes against the true haplotypes they were "
            "simulated from. Reads a FASTA multiple sequence alignment of two true and two test "
            "haplotypes and reports phase switches, false SNPs, false indels and bad base calls "
            "for each test haplotype."
        ),
    )
    p.add_argument("--version", action="version", version=f"hapsnpeval {__version__}")

    p.add_argument(
        "alignment",
        nargs="?",
        default=None,
        help="Path to the MSA of the two true and two test haplotypes, in aligned FASTA format.",
    )
    p.add_argument(
        "-p",
        "--true_prefix",
        "--true-prefix",
        dest="true_prefix",
        default=None,
        help="Prefix of the header string for each true haplotype (required).",
    )
    p.add_argument(
        "-o",
        "--position_output",
        "--position-output",
        dest="position_output",
        action="store_true",
        help="Print one line per classified event, by alignment position.",
    )

    # Optional outputs
    p.add_argument(
        "--outdir",
        default=None,
        help="Write summary.json, events.tsv.gz, plots and report.html into this directory.",
    )
    p.add_argument(
        "--events-tsv",
        default=None,
        help="Write per-position events to this TSV (.gz compresses). Overrides the --outdir default.",
    )
    p.add_argument(
        "--summary-json",
        default=None,
        help="Write the machine-readable summary to this path. Overrides the --outdir default.",
    )
    p.add_argument("--progress", action="store_true", help="Show a progress bar on stderr.")
    p.add_argument(
        "--make-toy-data",
        metavar="OUTDIR",
        default=None,
        help="Write a tiny alignment with known error counts into OUTDIR and exit.",
    )

    p.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v/-vv).")
    p.add_argument("--log-file", default=None, help="Also write log messages to this file.")

    return p


def _check_readable(path: str) -> None:
    with open(path, "rb"):
        pass


def _write_outputs(
    args: argparse.Namespace,
    *,
    summary: dict,
    metrics: EvalMetrics,
    events: List[PositionEvent],
    events_tsv: Optional[Path],
) -> None:
    logger = logging.getLogger("hapsnpeval")

    summary_json = Path(args.summary_json) if args.summary_json else None
    if args.outdir is not None:
        outdir = ensure_outdir(Path(args.outdir).expanduser().resolve())
        summary_json = summary_json or outdir / "summary.json"

        plots_dir = outdir / "plots"
        plots_dir.mkdir(parents=True, exist_ok=True)
        error_counts_png = plots_dir / "error_counts.png"
        event_positions_png = plots_dir / "event_positions.png"

        plot_error_counts(metrics=metrics, out_png=error_counts_png)
        plot_event_positions(
            events=events,
            width=int(summary["sites"]["width"]),
            out_png=event_positions_png,
        )
        plots_rel = {
            "error_counts": str(Path("plots") / error_counts_png.name),
            "event_positions": str(Path("plots") / event_positions_png.name),
        }

        report_path = render_report(
            outdir=outdir,
            version=__version__,
            summary=summary,
            plots=plots_rel,
            events_tsv=str(events_tsv) if events_tsv is not None else None,
        )
        logger.info("Report written: %s", report_path)

    if summary_json is not None:
        summary_json.parent.mkdir(parents=True, exist_ok=True)
        write_json(summary_json, summary)
        logger.info("Summary written: %s", summary_json)


def cmd_make_toy_data(args: argparse.Namespace) -> int:
    outdir = Path(args.make_toy_data).expanduser().resolve()
    try:
        summary = make_toy_data(outdir=outdir)
    except OSError as e:
        return _handle_error(e, code=EXIT_OUTPUT_ERROR)
    print(json.dumps(summary, indent=2))
    return EXIT_OK


def cmd_evaluate(args: argparse.Namespace) -> int:
    log_path = Path(args.log_file) if args.log_file else None
    _setup_logging(args.verbose, logfile=log_path)

    logger = logging.getLogger("hapsnpeval")
    logger.info("hapsnpeval %s", __version__)

    t0 = time.time()
    events: List[PositionEvent] = []
    collect_events = args.outdir is not None

    events_tsv: Optional[Path] = None
    if args.events_tsv:
        events_tsv = Path(args.events_tsv)
    elif args.outdir is not None:
        events_tsv = Path(args.outdir).expanduser().resolve() / "events.tsv.gz"

    try:
        haplotypes = load_haplotype_alignment(args.alignment, args.true_prefix)
    except Exception as e:
        return _handle_error(e, log_path=log_path)

    # Reject unequal lengths before any output file is created.
    try:
        check_equal_lengths(haplotypes)
    except Exception as e:
        return _handle_error(e, log_path=log_path)

    try:
        tsv_writer = EventTsvWriter(events_tsv) if events_tsv is not None else None
    except OSError as e:
        return _handle_error(e, code=EXIT_OUTPUT_ERROR, log_path=log_path)

    def on_event(ev: PositionEvent) -> None:
        if args.position_output:
            print(ev.message)
        if tsv_writer is not None:
            tsv_writer.write(ev)
        if collect_events:
            events.append(ev)

    try:
        result = evaluate_alignment(haplotypes, on_event=on_event, progress=bool(args.progress))
    except OSError as e:
        return _handle_error(e, code=EXIT_OUTPUT_ERROR, log_path=log_path)
    except Exception as e:
        return _handle_error(e, log_path=log_path)
    finally:
        if tsv_writer is not None:
            tsv_writer.close()

    summary = summary_dict(
        alignment_path=str(args.alignment),
        true_prefix=str(args.true_prefix),
        haplotypes=haplotypes,
        metrics=result.metrics,
        sites=result.sites,
        runtime_seconds=time.time() - t0,
        version=__version__,
    )
    try:
        _write_outputs(
            args, summary=summary, metrics=result.metrics, events=events, events_tsv=events_tsv
        )
    except OSError as e:
        return _handle_error(e, code=EXIT_OUTPUT_ERROR, log_path=log_path)

    print("\n".join(format_summary(result.metrics)))
    return EXIT_OK


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.make_toy_data is not None:
        return cmd_make_toy_data(args)
    if not args.true_prefix:
        return _usage_error(parser, "Missing true haplotype prefix argument.", EXIT_MISSING_PREFIX)
    if args.alignment is None:
        return _usage_error(parser, "Missing input alignment file path.", EXIT_MISSING_INPUT)
    try:
        _check_readable(args.alignment)
    except OSError:
        return _usage_error(parser, "Unable to open input alignment file.", EXIT_UNREADABLE_INPUT)

    return cmd_evaluate(args)


if __name__ == "__main__":
    raise SystemExit(main())
