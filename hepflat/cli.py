"""
Command-line interface for hepflat.

Usage:
    hepflat convert events.hepmc particles.parquet [--columnar]
    hepflat example edm4hep_testhepmc.parquet
    hepflat show events.hepmc
    hepflat info particles.parquet
    hepflat validate events.hepmc
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

import hepflat

from .errors import HepflatError

_ERRORS = (HepflatError, ValueError, FileNotFoundError, ImportError)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hepflat",
        description="Flatten HepMC event graphs into EDM4hep-style MCParticle collections.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {hepflat.__version__}"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Options shared by commands that write a store
    out_opts = argparse.ArgumentParser(add_help=False)
    out_opts.add_argument(
        "--to", dest="output_format", default=None,
        help="Output format: parquet or jsonl (auto-detected from extension if omitted)",
    )
    out_opts.add_argument(
        "--collection", default="MCParticles",
        help="Output collection name (default: MCParticles)",
    )
    out_opts.add_argument(
        "--stream", default="events",
        help="Output stream name (default: events)",
    )
    out_opts.add_argument(
        "--units", choices=["strict", "convert"], default="strict",
        help="'strict' rejects events not in GeV/mm; 'convert' rescales them",
    )
    out_opts.add_argument(
        "--unknown-charge", type=float, default=None,
        help="Charge to store for unknown PDG IDs (default: abort the event)",
    )
    out_opts.add_argument(
        "--columnar", action="store_true",
        help="Use the event-per-row Parquet layout",
    )
    out_opts.add_argument(
        "--quiet", "-q", action="store_true",
        help="Suppress progress output",
    )

    # --- convert ---
    convert_parser = subparsers.add_parser(
        "convert",
        parents=[out_opts],
        help="Convert HepMC3 events into a flat collection store",
    )
    convert_parser.add_argument("input", help="Input HepMC3 file")
    convert_parser.add_argument("output", help="Output file path")
    convert_parser.add_argument(
        "--from", dest="input_format", default=None,
        help="Input format (auto-detected from extension if omitted)",
    )
    convert_parser.add_argument(
        "--max-events", type=int, default=-1,
        help="Maximum number of events to convert (-1 for all)",
    )
    convert_parser.add_argument(
        "--validate", action="store_true",
        help="Validate each event graph before converting it",
    )
    convert_parser.add_argument(
        "--strict", action="store_true",
        help="With --validate, stop at the first invalid event",
    )

    # --- example ---
    example_parser = subparsers.add_parser(
        "example",
        parents=[out_opts],
        help="Build the reference example event, print it and write it out",
    )
    example_parser.add_argument("output", help="Output file path")
    example_parser.add_argument(
        "--hepmc", default=None,
        help="Also write the event graph as HepMC3 to this path",
    )

    # --- show ---
    show_parser = subparsers.add_parser(
        "show",
        help="Print event graphs from a HepMC3 file",
    )
    show_parser.add_argument("input", help="Input HepMC3 file")
    show_parser.add_argument(
        "--max-events", type=int, default=-1,
        help="Maximum number of events to print (-1 for all)",
    )
    show_parser.add_argument(
        "--flat", action="store_true",
        help="Also print the converted collection of each event",
    )

    # --- info ---
    info_parser = subparsers.add_parser(
        "info",
        help="Show information about a written store",
    )
    info_parser.add_argument("input", help="Store path (parquet/jsonl)")
    info_parser.add_argument(
        "--format", dest="input_format", default=None,
        help="Store format (auto-detected if omitted)",
    )
    info_parser.add_argument(
        "--json", dest="as_json", action="store_true",
        help="Output as JSON",
    )

    # --- validate ---
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate event graphs in a HepMC3 file",
    )
    validate_parser.add_argument("input", help="Input HepMC3 file")
    validate_parser.add_argument(
        "--format", dest="input_format", default=None,
        help="Input format (auto-detected if omitted)",
    )
    validate_parser.add_argument(
        "--max-events", type=int, default=-1,
        help="Maximum number of events to validate (-1 for all)",
    )
    validate_parser.add_argument(
        "--momentum-tolerance", type=float, default=1e-4,
        help="Relative tolerance for momentum balance per vertex (default: 1e-4)",
    )

    # --- schema ---
    schema_parser = subparsers.add_parser(
        "schema",
        help="Show known output layouts",
    )
    schema_sub = schema_parser.add_subparsers(dest="schema_cmd")
    schema_show = schema_sub.add_parser("show", help="Show known schema versions")
    schema_show.add_argument("--json", dest="as_json", action="store_true")

    # --- doctor ---
    doctor_parser = subparsers.add_parser(
        "doctor",
        help="Environment & capability check",
    )
    doctor_parser.add_argument("--json", dest="as_json", action="store_true")

    return parser


def _config(args: argparse.Namespace, **extra):
    from .convert import ConversionConfig

    return ConversionConfig(
        collection_name=args.collection,
        stream_name=args.stream,
        units=args.units,
        unknown_charge=args.unknown_charge,
        **extra,
    )


def _cmd_convert(args: argparse.Namespace) -> int:
    from .convert import convert

    try:
        result = convert(
            args.input,
            args.output,
            input_format=args.input_format,
            output_format=args.output_format,
            config=_config(args, validate=args.validate),
            max_events=args.max_events,
            strict_validation=args.strict,
            quiet=args.quiet,
            columnar=args.columnar,
        )
    except _ERRORS as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    report = result.get("validation")
    if report is not None and not report.is_valid:
        print(str(report), file=sys.stderr)
        return 2  # Validation errors (but conversion completed)

    return 0


def _cmd_example(args: argparse.Namespace) -> int:
    from .convert import convert_event, write
    from .example import build_example_event
    from .io.hepmc3 import write_hepmc3
    from .printing import format_collection, format_event

    evt = build_example_event()
    config = _config(args)
    if not args.quiet:
        print(format_event(evt))

    try:
        if args.hepmc:
            write_hepmc3(args.hepmc, [evt])
        n = write(args.output, [evt], format=args.output_format, config=config, columnar=args.columnar)
        if not args.quiet:
            print(format_collection(convert_event(evt, config)))
    except _ERRORS as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not args.quiet:
        print(f"Wrote {n} event(s) to {args.output}", file=sys.stderr)
    return 0


def _cmd_show(args: argparse.Namespace) -> int:
    from .convert import convert_event, read
    from .printing import format_collection, format_event

    try:
        for i, ev in enumerate(read(args.input)):
            if args.max_events >= 0 and i >= args.max_events:
                break
            print(format_event(ev))
            if args.flat:
                print(format_collection(convert_event(ev)))
    except _ERRORS as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def _cmd_info(args: argparse.Namespace) -> int:
    from .convert import info

    try:
        result = info(args.input, format=args.input_format)
    except _ERRORS as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.as_json:
        # Make JSON-serializable
        serializable = {}
        for k, v in result.items():
            if isinstance(v, list):
                serializable[k] = [list(x) if isinstance(x, tuple) else x for x in v]
            else:
                serializable[k] = v
        print(json.dumps(serializable, indent=2))
    else:
        print(f"Format:               {result['format']}")
        print(f"Events:               {result['n_events']}")
        print(f"Total records:        {result['total_records']}")
        print(f"Avg records/event:    {result['avg_records_per_event']:.1f}")

        for name, count in result['collections'].items():
            print(f"Collection:           {name} ({count} records)")

        if result['status_counts']:
            print(f"Status codes:         {result['status_counts']}")

        if result['top_particles']:
            print("Top particles:")
            for name, count in result['top_particles'][:10]:
                print(f"  {name:>20s}: {count}")

    return 0


def _cmd_validate(args: argparse.Namespace) -> int:
    from .convert import read
    from .validation import validate

    try:
        report = validate(
            read(args.input, format=args.input_format),
            max_events=args.max_events,
            momentum_tolerance=args.momentum_tolerance,
        )
    except _ERRORS as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(str(report))
    return 0 if report.is_valid else 2


def _cmd_schema(args: argparse.Namespace) -> int:
    from .schema import list_schemas

    if args.schema_cmd != "show":
        print("Error: missing schema subcommand (show)", file=sys.stderr)
        return 1

    schemas = list_schemas()
    if args.as_json:
        print(json.dumps(schemas, indent=2, sort_keys=True))
    else:
        for s in schemas:
            print(f"{s['name']}: {s['description']}")
    return 0


def _cmd_doctor(args: argparse.Namespace) -> int:
    from .doctor import doctor_report

    rep = doctor_report()
    if args.as_json:
        print(json.dumps(rep, indent=2, sort_keys=True))
    else:
        print(rep["summary"])
        for item in rep["checks"]:
            status = "OK" if item["ok"] else "FAIL"
            print(f"- {status}: {item['name']}: {item['detail']}")
    return 0 if all(c["ok"] for c in rep["checks"]) else 2


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "convert": _cmd_convert,
        "example": _cmd_example,
        "show": _cmd_show,
        "info": _cmd_info,
        "validate": _cmd_validate,
        "schema": _cmd_schema,
        "doctor": _cmd_doctor,
    }

    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    return handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
