import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import yaml
from rich.logging import RichHandler

from patch_transform.cli.rich_display import (
    console,
    create_errors_table,
    err_console,
    print_error_panel,
    print_json_panel,
    print_result_panel,
    print_start_panel,
)
from patch_transform.models import PatchType, dump_model
from patch_transform.settings import get_settings


def _add_output_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        help="Output file for JSON (default: stdout)",
    )
    parser.add_argument(
        "--pretty",
        "-p",
        action="store_true",
        help="Format JSON with indentation",
    )
    parser.add_argument(
        "--rich",
        action="store_true",
        help="Show input, result and errors in Rich panels",
    )
    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Silent mode (only final result)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="patch-transform",
        description="Apply declarative patches between composite and composed documents.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Apply the patches of a file to a composite/composed pair
  patch-transform apply --patch patches.yaml --composite xr.yaml --composed cd.yaml

  # Only run the patches that write into the composed document
  patch-transform apply -P patches.yaml -c xr.yaml -d cd.yaml --only FromCompositeFieldPath

  # Render a whole composition
  patch-transform render --composition composition.yaml --composite xr.yaml --pretty

  # Print the templates with every PatchSet reference expanded
  patch-transform expand --composition composition.yaml
""",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    apply_parser = subparsers.add_parser(
        "apply", help="Apply one patch or a list of patches"
    )
    apply_parser.add_argument(
        "--patch", "-P", type=Path, required=True,
        help="Patch file: a single patch or a list of patches (JSON or YAML)",
    )
    apply_parser.add_argument(
        "--composite", "-c", type=Path, required=True, help="Composite document"
    )
    apply_parser.add_argument(
        "--composed", "-d", type=Path,
        help="Composed document (default: empty document)",
    )
    apply_parser.add_argument(
        "--only",
        action="append",
        choices=[t.value for t in PatchType],
        metavar="TYPE",
        help="Only apply patches of this type (repeatable)",
    )
    _add_output_arguments(apply_parser)

    render_parser = subparsers.add_parser(
        "render", help="Render every resource of a composition"
    )
    render_parser.add_argument(
        "--composition", "-C", type=Path, required=True,
        help="Composition file with patchSets and resources",
    )
    render_parser.add_argument(
        "--composite", "-c", type=Path, required=True, help="Composite document"
    )
    render_parser.add_argument(
        "--observed",
        type=Path,
        help="Observed composed documents keyed by resource name",
    )
    render_parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Stop at the first failing patch",
    )
    _add_output_arguments(render_parser)

    expand_parser = subparsers.add_parser(
        "expand", help="Expand PatchSet references of a composition"
    )
    expand_parser.add_argument(
        "--composition", "-C", type=Path, required=True,
        help="Composition file with patchSets and resources",
    )
    _add_output_arguments(expand_parser)

    return parser


def _configure_logging(quiet: bool) -> None:
    level = "ERROR" if quiet else get_settings().LOG_LEVEL.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _fail(message: str, args: argparse.Namespace) -> None:
    if args.rich and not args.quiet:
        print_error_panel(message)
    else:
        print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def _read_document(path: Optional[Path], args: argparse.Namespace, what: str) -> Any:
    """Read a JSON or YAML file; exit on a missing or unparsable file."""
    if path is None:
        return None
    if not path.exists():
        _fail(f"{what} file not found: {path}", args)
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        _fail(f"Invalid {what} file {path}: {e}", args)


def _handle_output(document: Any, args: argparse.Namespace, title: str) -> None:
    """Write the command result to a file, a Rich panel or stdout."""
    indent = get_settings().OUTPUT_INDENT if args.pretty else None
    output_json = json.dumps(document, indent=indent, ensure_ascii=False)

    if args.output:
        args.output.write_text(output_json, encoding="utf-8")
        if not args.quiet:
            if args.rich:
                console.print(f"[green]Result saved in:[/green] {args.output}")
            else:
                print(f"Result saved in: {args.output}", file=sys.stderr)
    elif args.rich and not args.quiet:
        print_json_panel(document, title=title)
    else:
        print(output_json)


def _run_apply(args: argparse.Namespace) -> tuple[Any, list[dict[str, Any]]]:
    from patch_transform.patches import apply_all

    patches = _read_document(args.patch, args, "Patch")
    composite = _read_document(args.composite, args, "Composite") or {}
    composed = _read_document(args.composed, args, "Composed") or {}
    if isinstance(patches, dict):
        patches = [patches]
    if not isinstance(patches, list):
        _fail(f"Patch file must hold a patch or a list of patches: {args.patch}", args)

    apply_all(patches, composite, composed, only=args.only)
    return {"composite": composite, "composed": composed}, []


def _run_render(args: argparse.Namespace) -> tuple[Any, list[dict[str, Any]]]:
    from patch_transform.render import render

    composition = _read_document(args.composition, args, "Composition")
    composite = _read_document(args.composite, args, "Composite") or {}
    observed = _read_document(args.observed, args, "Observed")

    result = render(composite, composition, observed=observed, strict=args.strict)
    if args.rich and not args.quiet:
        print_result_panel(len(result["resources"]), len(result["errors"]))
        if result["errors"]:
            console.print(create_errors_table(result["errors"]))
    return result, result["errors"]


def _run_expand(args: argparse.Namespace) -> tuple[Any, list[dict[str, Any]]]:
    from patch_transform.models import load_composition
    from patch_transform.patch_sets import composed_templates

    loaded = load_composition(_read_document(args.composition, args, "Composition"))
    templates = composed_templates(loaded.patch_sets, loaded.resources)
    expanded = [
        {
            "name": t.name,
            "base": t.base,
            "patches": [dump_model(p) for p in t.patches],
        }
        for t in templates
    ]
    return {"resources": expanded}, []


_COMMANDS = {
    "apply": _run_apply,
    "render": _run_render,
    "expand": _run_expand,
}


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point of the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.quiet)

    if args.rich and not args.quiet:
        sources = {
            key.capitalize(): getattr(args, key, None)
            for key in ("patch", "composition", "composite", "composed", "observed")
            if hasattr(args, key)
        }
        print_start_panel(args.command, sources)

    try:
        document, errors = _COMMANDS[args.command](args)
    except Exception as e:
        if args.rich and not args.quiet:
            console.print(f"[red]Error during {args.command}: {e}[/red]")
        else:
            print(f"Error during {args.command}: {e}", file=sys.stderr)
        sys.exit(1)

    _handle_output(document, args, title=args.command.capitalize())
    if errors:
        if not args.rich:
            for err in errors:
                print(
                    f"Error: {err['resource'] or '-'} patch {err['index']}: {err['message']}",
                    file=sys.stderr,
                )
        sys.exit(1)
