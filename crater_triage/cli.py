"""
Command-line interface for the triage tool.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional, Tuple

from .comparison import merge_results
from .config import TriageSettings
from .errors import TriageError
from .graph import DependencyGraph
from .ice import collect_ice_entries
from .logs import LogCache
from .registry import IndexRepository, RegistryLoader
from .reporting import (
    export_impact_csv,
    export_roots_csv,
    log_impact_summary,
    log_total_impact,
    render_ice_report,
    render_roots_report,
    write_report,
)
from .results import comparison_to_dict, load_results, save_results
from .roots import find_root_regressions


logger = logging.getLogger(__name__)


def load_graph(settings: TriageSettings) -> DependencyGraph:
    """Load the registry snapshot and build its dependency graph."""
    if settings.update_index:
        IndexRepository(settings.index_dir, settings.index_url).ensure()
    records = RegistryLoader(settings.index_dir).load()
    return DependencyGraph.build(records)


def parse_root_spec(spec: str) -> Tuple[str, str]:
    """Split ``"name req"`` into its name and version requirement (``*`` when absent)."""
    name, _, req = spec.strip().partition(" ")
    return name, req.strip() or "*"


def cmd_merge(args, settings: TriageSettings) -> None:
    candidate = load_results(args.candidate)
    baseline = load_results(args.baseline)
    merged = merge_results(
        candidate,
        baseline,
        baseline_log_prefix=settings.baseline_log_prefix,
        candidate_log_prefix=settings.candidate_log_prefix,
    )
    if args.output == "-":
        json.dump({"crates": [comparison_to_dict(c) for c in merged.crates]}, sys.stdout)
        return
    results_file = save_results(merged, settings.output_dir / args.output)
    print(f"Merged results saved to: {results_file}")


def cmd_roots(args, settings: TriageSettings) -> None:
    results = load_results(args.results)
    graph = load_graph(settings)
    rows = find_root_regressions(results, graph)
    report_file = write_report(render_roots_report(rows), settings.output_dir)
    print(f"{len(rows)} root regressions written to: {report_file}")
    if args.csv:
        print(f"CSV saved to: {export_roots_csv(rows, settings.output_dir)}")


def cmd_ice(args, settings: TriageSettings) -> None:
    results = load_results(args.results)
    logs = LogCache(settings.log_dir, settings.candidate_run)
    logs.fetch(results.crates)
    entries = collect_ice_entries(results.crates, logs, settings.location_only_sources)
    report_file = write_report(render_ice_report(entries), settings.output_dir, args.report)
    print(f"{len(entries)} compiler crashes written to: {report_file}")


def cmd_impact(args, settings: TriageSettings) -> None:
    graph = load_graph(settings)
    roots = []
    for spec in args.roots:
        name, req = parse_root_spec(spec)
        matched = graph.find_roots(name, req)
        if not matched:
            logger.warning("No versions of %s match %s", name, req)
        roots.extend(matched)

    summaries = []
    for root in sorted(roots):
        summary = graph.impact_summary(root)
        log_impact_summary(summary, quiet=settings.quiet)
        summaries.append(summary)
    log_total_impact(graph.total_impact(roots))

    if args.csv:
        print(f"CSV saved to: {export_impact_csv(summaries, settings.output_dir)}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Triage compiler regression-test results against the crate dependency graph"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Output directory for reports. Default: ./output"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    index_args = argparse.ArgumentParser(add_help=False)
    index_args.add_argument(
        "--index-dir",
        default=None,
        help="Local checkout of the registry index. Default: crates.io-index"
    )
    index_args.add_argument("--index-url", default=None, help="Registry index git URL")
    index_args.add_argument(
        "--update-index",
        action="store_true",
        default=None,
        help="Clone or pull the registry index before loading it"
    )

    merge = subparsers.add_parser("merge", help="Merge a baseline run into a candidate run")
    merge.add_argument("candidate", help="Candidate result (JSON) file")
    merge.add_argument("baseline", help="Baseline result (JSON) file")
    merge.add_argument(
        "--output", "-o",
        default="results-merged.json",
        help="Merged file name inside the output directory, or - for stdout"
    )
    merge.add_argument("--log-base-url", default=None, help="Base URL of the published logs")
    merge.add_argument("--baseline-run", default=None, help="Log directory name of the baseline run")
    merge.add_argument("--candidate-run", default=None, help="Log directory name of the candidate run")
    merge.set_defaults(func=cmd_merge)

    roots = subparsers.add_parser(
        "roots", parents=[index_args], help="Report regressions not explained by a regressed dependent"
    )
    roots.add_argument("results", help="Merged result (JSON) file")
    roots.add_argument("--csv", action="store_true", help="Also export the rows as CSV")
    roots.set_defaults(func=cmd_roots)

    ice = subparsers.add_parser("ice", help="Group compiler crashes found in regressed logs")
    ice.add_argument("results", help="Merged result (JSON) file")
    ice.add_argument("--log-dir", default=None, help="Local log cache. Default: logs")
    ice.add_argument("--candidate-run", default=None, help="Log directory name of the candidate run")
    ice.add_argument("--report", default="ice-report.md", help="Report file name")
    ice.set_defaults(func=cmd_ice)

    impact = subparsers.add_parser(
        "impact", parents=[index_args], help="Show what breaks if the given versions break"
    )
    impact.add_argument("roots", nargs="+", help='Package and optional requirement, e.g. "url 1.7.0"')
    impact.add_argument("--quiet", action="store_true", help="Never list dependent crates")
    impact.add_argument("--csv", action="store_true", help="Also export the summaries as CSV")
    impact.set_defaults(func=cmd_impact)

    return parser


def main(argv: Optional[List[str]] = None):
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    settings = TriageSettings.from_args(args)

    try:
        args.func(args, settings)
    except (TriageError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
