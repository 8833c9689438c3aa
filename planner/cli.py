import argparse
import json
import logging
import sys

from application.exceptions import CsvFormatError
from domain.converters import encode
from domain.models import CatalogExercise, WorkoutPlan
from planner.adapters.plan_csv import export_plan_to_csv, parse_plan_csv


def _read_text(path):
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _write_output(text, output):
    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(text)
    else:
        print(text)


def _load_catalog(path):
    data = json.loads(_read_text(path))
    items = data.get("exercises", []) if isinstance(data, dict) else data
    return [CatalogExercise.model_validate(item) for item in items]


def cmd_export(args):
    plan = WorkoutPlan.model_validate_json(_read_text(args.input))
    _write_output(export_plan_to_csv(plan), args.output)


def cmd_import(args):
    catalog = _load_catalog(args.catalog) if args.catalog else []
    result = parse_plan_csv(_read_text(args.input), catalog)

    for row in result.unresolved:
        hint = f" (did you mean: {', '.join(row.suggestions)})" if row.suggestions else ""
        print(
            f"Warning: line {row.line_number}: no library exercise matches "
            f"'{row.description}'{hint}",
            file=sys.stderr,
        )

    _write_output(result.plan.model_dump_json(indent=2), args.output)
    if args.strict and result.unresolved:
        sys.exit(2)


def cmd_encode_order(args):
    for marker in args.markers:
        print(f"{marker}\t{encode(marker)}")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Workout plan CSV and order marker tools")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    export_parser = subparsers.add_parser("export", help="Convert a plan JSON file to CSV")
    export_parser.add_argument("input", help="Plan JSON file path")
    export_parser.add_argument("-o", "--output", help="Output CSV file path (default: stdout)")
    export_parser.set_defaults(func=cmd_export)

    import_parser = subparsers.add_parser("import", help="Convert a plan CSV file to JSON")
    import_parser.add_argument("input", help="Plan CSV file path")
    import_parser.add_argument("-c", "--catalog", help="Exercise catalog JSON file path")
    import_parser.add_argument("-o", "--output", help="Output JSON file path (default: stdout)")
    import_parser.add_argument(
        "--strict", action="store_true", help="Exit with status 2 if any row is unresolved"
    )
    import_parser.set_defaults(func=cmd_import)

    encode_parser = subparsers.add_parser("encode-order", help="Print sort keys of order markers")
    encode_parser.add_argument("markers", nargs="+", help="Order markers, e.g. A1 B2")
    encode_parser.set_defaults(func=cmd_encode_order)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        args.func(args)
    except FileNotFoundError as e:
        print(f"Error: File not found: {e.filename}", file=sys.stderr)
        sys.exit(1)
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON: {e}", file=sys.stderr)
        sys.exit(1)
    except CsvFormatError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: Invalid plan data: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
