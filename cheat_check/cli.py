"""Command line entry point: find files, compare them, report the matches."""

from __future__ import annotations

import argparse
import glob
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from pydantic import ValidationError

from cheat_check import __version__
from cheat_check.comparator import ComparisonOutcome
from cheat_check.documents import DocumentStore, decode_bytes
from cheat_check.errors import ComparisonFailed, ComparisonTimeout, DuplicateIdentity, UnreadableDocument
from cheat_check.models import CheckSettings, ExecutorKind, Metric
from cheat_check.pipeline import compare_store
from cheat_check.ranking import rank
from cheat_check.reporting import (
    build_report,
    print_summary,
    write_csv_report,
    write_html_report,
    write_json_report,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cheat-check",
        description="Find suspiciously similar files among a set of submissions.",
    )
    parser.add_argument("files", nargs="*", metavar="FILE", help="Files or globs of files to compare")
    parser.add_argument(
        "-s", "--sensitivity", type=float, required=True, metavar="SENSITIVITY",
        help="Lower bound for cheat detection, between 0 and 1 where 1 means identical files",
    )
    parser.add_argument(
        "-j", "--jobs", type=int, default=0, metavar="N",
        help="Number of calculations to run in parallel (default 0 = autodetect)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show additional debugging information")
    parser.add_argument("-l", "--log", type=Path, metavar="FILE", help="Log all comparisons to this file")
    parser.add_argument(
        "-D", "--damerau", action="store_true",
        help="Use Damerau-Levenshtein distance instead of Levenshtein distance (much slower)",
    )
    parser.add_argument(
        "-t", "--template", type=Path, metavar="FILE",
        help="Files identical to this one (e.g. untouched starter code) are not checked",
    )
    parser.add_argument("--case-fold", action="store_true", help="Ignore letter case")
    parser.add_argument("--collapse-whitespace", action="store_true", help="Treat any run of whitespace as one space")
    parser.add_argument("--fail-fast", action="store_true", help="Stop at the first comparison that fails")
    parser.add_argument("--timeout", type=float, metavar="SECONDS", help="Give up after this many seconds")
    parser.add_argument("--retries", type=int, default=0, metavar="N", help="Retry a failing comparison N times")
    parser.add_argument("--threads", action="store_true", help="Use threads instead of worker processes")
    parser.add_argument("--json", type=Path, metavar="FILE", help="Write the JSON report here")
    parser.add_argument("--csv", type=Path, metavar="FILE", help="Write ranked pairs as CSV here")
    parser.add_argument("--html", type=Path, metavar="FILE", help="Write an HTML report here")
    parser.add_argument("--plot", type=Path, metavar="FILE", help="Write a PNG similarity plot here")
    parser.add_argument("--no-progress", action="store_true", help="Disable the progress bar")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def configure_logging(verbose: bool, log_file: Optional[Path] = None) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT, force=True)
    comparisons = logging.getLogger("cheat_check.comparisons")
    comparisons.propagate = False
    for handler in list(comparisons.handlers):
        comparisons.removeHandler(handler)
        handler.close()
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(message)s"))
        comparisons.addHandler(file_handler)
        comparisons.setLevel(logging.DEBUG)
    else:
        comparisons.setLevel(logging.WARNING)


def filter_paths(patterns: Sequence[str]) -> List[Path]:
    """Expand globs into a deduplicated list of files, in pattern order."""
    found: List[Path] = []
    seen = set()
    for pattern in patterns:
        matches = sorted(glob.glob(pattern, recursive=True))
        files = [Path(m) for m in matches if os.path.isfile(m)]
        if not files:
            logger.warning(f'"{pattern}" didn\'t match any files.')
            continue
        for path in files:
            key = path.resolve()
            if key in seen:
                logger.debug(f"{path} matched more than once, comparing it once")
                continue
            seen.add(key)
            found.append(path)
    return found


def load_files(paths: Sequence[Path], settings: CheckSettings) -> DocumentStore:
    """Read every file into a store. Unreadable files become failing documents."""
    store = DocumentStore.from_settings(settings)
    for path in paths:
        identity = str(path)
        try:
            raw = path.read_bytes()
        except OSError as e:
            store.mark_unreadable(identity, f"cannot read file: {e.strerror or e}")
            continue
        store.load(identity, raw)
    return store


def read_template(path: Path) -> str:
    try:
        return decode_bytes(path.read_bytes(), str(path))
    except OSError as e:
        raise UnreadableDocument(str(path), f"cannot read template: {e.strerror or e}") from e


def settings_from_args(args: argparse.Namespace) -> CheckSettings:
    return CheckSettings(
        threshold=args.sensitivity,
        workers=args.jobs,
        fail_fast=args.fail_fast,
        timeout=args.timeout,
        metric=Metric.damerau if args.damerau else Metric.levenshtein,
        executor=ExecutorKind.thread if args.threads else ExecutorKind.process,
        retries=args.retries,
        case_fold=args.case_fold,
        collapse_whitespace=args.collapse_whitespace,
        progress=not args.no_progress,
    )


def write_outputs(args: argparse.Namespace, store: DocumentStore, outcome: ComparisonOutcome,
                  settings: CheckSettings, timed_out: bool = False) -> None:
    ranked = rank(outcome.scores, settings.threshold)
    report = build_report(ranked, outcome, settings.threshold, settings.metric, timed_out=timed_out)
    print_summary(report, sys.stdout)

    if args.json:
        write_json_report(args.json, report)
        logger.info(f"Wrote JSON report to {args.json}")
    if args.csv:
        write_csv_report(args.csv, report)
        logger.info(f"Wrote CSV report to {args.csv}")
    if args.html:
        write_html_report(args.html, report)
        logger.info(f"Wrote HTML report to {args.html}")
    if args.plot:
        from cheat_check.plotting import plot_results
        identities = [d.identity for d in store.all() if d.identity not in outcome.skipped]
        plot_results(identities, outcome.scores, ranked, args.plot, settings.threshold)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose, args.log)

    try:
        settings = settings_from_args(args)
    except ValidationError as e:
        parser.error(str(e))

    paths = filter_paths(args.files)
    # make sure we have enough files
    if len(paths) <= 1:
        logger.error(f"Got {len(paths)} files to compare, need at least 2.")
        return 1
    logger.info(f"Got {len(paths)} files to compare.")

    try:
        store = load_files(paths, settings)
    except DuplicateIdentity as e:
        logger.error(str(e))
        return 1

    if args.template:
        try:
            settings = settings.model_copy(update={"template": read_template(args.template)})
        except UnreadableDocument as e:
            logger.error(str(e))
            return 1

    try:
        outcome = compare_store(store, settings)
    except ComparisonFailed as e:
        logger.error(f"Stopped: {e}")
        return 1
    except ComparisonTimeout as e:
        logger.error(str(e))
        if e.partial is not None:
            write_outputs(args, store, e.partial, settings, timed_out=True)
        return 1

    write_outputs(args, store, outcome, settings)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
