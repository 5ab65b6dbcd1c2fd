"""
1) Read a GEDCOM file (or generate a synthetic one) into memory.
2) Parse it into individuals and families, tolerating malformed lines.
3) Report validation diagnostics (dangling references, cycles, impossible ages).
4) Assign generations around the focus person and compute a tree layout.
5) Write the layout as JSON and, optionally, a matplotlib or Graphviz preview.
"""

import argparse
from dataclasses import asdict
import json
import logging
from pathlib import Path
import sys

from config import DebugOptions
from family_layout import collect_ancestor_generations
from graph import build_relationship_maps, filter_by_max_trees
from layouts import AVAILABLE_LAYOUTS, build_config, compute_tree_layout
from models import Individual, ParseResult
from parsing import normalize_id, parse_gedcom
from plotting import plot_layout, write_dot
from samples import SAMPLES
from validation import validate_lineage, validate_references


# ============================================================================
# Helpers
# ============================================================================


def find_individual(parse_result: ParseResult, person_id: str) -> Individual:
    """Look up a person by id, with or without the surrounding @ signs."""
    wanted = normalize_id(person_id)
    for ind in parse_result.individuals:
        if ind.id == wanted:
            return ind
    raise KeyError(f"No individual with id {wanted}")


def load_input(args: argparse.Namespace) -> tuple[str, str]:
    """Return (label, GEDCOM text) for the file or the requested sample."""
    if args.sample:
        text = SAMPLES[args.sample](args.generations)
        return f"sample '{args.sample}' ({args.generations} generations)", text
    if args.file is None:
        raise SystemExit("error: a GEDCOM file or --sample is required")
    return str(args.file), args.file.read_text(encoding="utf-8", errors="replace")


def restrict_trees(parse_result: ParseResult, max_trees: int | None) -> ParseResult:
    if not max_trees:
        return parse_result
    individuals, families = filter_by_max_trees(parse_result.individuals, parse_result.families, max_trees)
    errors = validate_references(individuals, families) + validate_lineage(individuals, families)
    return ParseResult(individuals=individuals, families=families, validation_errors=errors)


def layout_overrides(args: argparse.Namespace) -> dict:
    overrides = {}
    if args.forward is not None:
        overrides["max_generations_forward"] = args.forward
    if args.backward is not None:
        overrides["max_generations_backward"] = args.backward
    if args.max_ancestors is not None:
        overrides["max_ancestors"] = args.max_ancestors
    return overrides


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gedtree",
        description="Parse a GEDCOM file and compute a family tree layout.",
    )
    parser.add_argument("file", nargs="?", type=Path, help="GEDCOM file to read")
    parser.add_argument("--sample", choices=sorted(SAMPLES), help="use a generated sample tree instead of a file")
    parser.add_argument("--generations", type=int, default=8, help="depth of the generated sample (default: 8)")
    parser.add_argument("--focus", help="id of the person the layout is centered on")
    parser.add_argument(
        "--layout",
        choices=[meta.id for meta in AVAILABLE_LAYOUTS],
        default="vertical",
        help="layout strategy (default: vertical)",
    )
    parser.add_argument("--forward", type=int, help="descendant generations to show")
    parser.add_argument("--backward", type=int, help="ancestor generations to show")
    parser.add_argument("--max-ancestors", type=int, help="ancestor layout depth")
    parser.add_argument("--max-trees", type=int, help="keep only the first N root families and their descendants")
    parser.add_argument("--json", type=Path, help="write the layout as JSON to this path")
    parser.add_argument("--plot", type=Path, help="render a matplotlib preview to this image path")
    parser.add_argument("--dot", type=Path, help="write Graphviz output with pinned positions (.dot/.png/.svg/.pdf)")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v for info logs, -vv for layout traces")
    return parser


# ============================================================================
# Main
# ============================================================================


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose > 1 else logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    debug = DebugOptions(trace_levels=args.verbose > 1, trace_layout=args.verbose > 1, trace_packing=args.verbose > 1)

    label, text = load_input(args)
    print(f"Parsing GEDCOM: {label}")
    result = parse_gedcom(text)
    print(f"  Found {len(result.individuals)} individuals and {len(result.families)} families")

    result = restrict_trees(result, args.max_trees)
    if args.max_trees:
        print(f"  Kept {len(result.families)} families from the first {args.max_trees} trees")

    print("Validating...")
    errors = result.validation_errors
    if errors:
        print(f"  Found {len(errors)} validation issues:")
        for err in errors[:10]:
            print(f"    - [{err.type}] {err.message}")
        if len(errors) > 10:
            print(f"    ... and {len(errors) - 10} more")
    else:
        print("  No validation issues found")

    overrides = layout_overrides(args)
    try:
        config = build_config(args.layout, None, overrides)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    focus = None
    if args.focus:
        try:
            focus = find_individual(result, args.focus).id
        except KeyError as e:
            print(f"error: {e.args[0]}", file=sys.stderr)
            return 2
        parent_family = build_relationship_maps(result.families).person_to_parent_family.get(focus)
        if parent_family is not None:
            depth = config.ancestor_depth if args.layout == "ancestor" else config.max_generations_backward
            generations = collect_ancestor_generations(result.families, parent_family.id, max(0, depth - 1))
            counts = [1] + [len(ids) for ids in generations]
            print(f"  Ancestor families above {focus} per generation: {' / '.join(map(str, counts))}")

    print(f"Computing {args.layout} layout...")
    layout = compute_tree_layout(result, focus, args.layout, overrides, debug)
    print(
        f"  Positioned {len(layout.person_positions)} people and {len(layout.family_positions)} families "
        f"in {layout.bounds.width:.0f} x {layout.bounds.height:.0f}"
    )

    if args.json:
        payload = {
            "layout": args.layout,
            "focus": focus,
            **asdict(layout),
            "validation_errors": [asdict(err) for err in errors],
        }
        args.json.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print(f"Layout JSON saved to {args.json}")

    if args.plot:
        plot_layout(layout, result.individuals, args.plot, config.box_width, config.box_height)

    if args.dot:
        write_dot(layout, result.individuals, args.dot)

    print("Done!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
