"""
CLI interface for Zentree.

Parses an abbreviation and prints the optimized tree as an outline or JSON.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from .config import OUTPUT_FORMATS, Config, get_config
from .core import Pipeline
from .dom import AbbreviationNode
from .exceptions import AbbreviationError
from .resources import ResourceResolver


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    cfg = get_config()

    parser = argparse.ArgumentParser(
        prog="zentree",
        description="Expand abbreviations like div>ul>li*3 into a markup tree",
    )

    parser.add_argument(
        "abbreviation",
        nargs="?",
        help="Abbreviation to parse (reads from stdin if not provided)",
    )

    parser.add_argument(
        "--format",
        "-f",
        choices=OUTPUT_FORMATS,
        default=cfg.output.format,
        dest="output_format",
        help=f"Output format (default: {cfg.output.format})",
    )

    parser.add_argument(
        "--indent",
        "-i",
        type=int,
        default=cfg.output.indent,
        help=f"Spaces per nesting level (default: {cfg.output.indent})",
    )

    parser.add_argument(
        "--no-resources",
        action="store_false",
        dest="resources",
        default=True,
        help="Do not resolve names against configured resources",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args(args)


def setup_logging(verbose: bool, cfg: Config) -> None:
    level = logging.DEBUG if verbose else getattr(logging, cfg.logging.level, logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def build_pipeline(cfg: Config, use_resources: bool = True) -> Pipeline:
    """Pipeline with a resource resolver when resources are configured."""
    pipeline = Pipeline()
    if use_resources and cfg.resources:
        pipeline.add_preprocessor(ResourceResolver(cfg.resources))
    return pipeline


def describe_node(node: AbbreviationNode) -> str:
    """One-line summary: name, attributes, text and counter."""
    parts = [node.name or ("#text" if node.is_text_node() else "?")]
    attrs = node.attribute_list()
    if attrs:
        parts.append(" ".join(f'{a.name}="{a.value}"' for a in attrs))
    if node.text:
        parts.append("{" + node.text + "}")
    if node.counter != 1 or (node.parent is not None and _has_repeated_sibling(node)):
        parts.append(f"@{node.counter}")
    return " ".join(parts)


def _has_repeated_sibling(node: AbbreviationNode) -> bool:
    return any(s is not node and s.counter != 1 for s in node.parent.children)


def format_tree(root: AbbreviationNode, indent: int = 2) -> str:
    """Indented outline of the root's descendants."""
    lines: list[str] = []

    def walk(node: AbbreviationNode, depth: int) -> None:
        for child in node.children:
            lines.append(" " * (indent * depth) + describe_node(child))
            walk(child, depth + 1)

    walk(root, 0)
    return "\n".join(lines)


def format_json(root: AbbreviationNode, indent: int = 2) -> str:
    return json.dumps([child.to_dict() for child in root.children], indent=indent)


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parsed = parse_args(args)
    cfg = get_config()
    setup_logging(parsed.verbose, cfg)

    abbreviation = parsed.abbreviation
    if abbreviation is None:
        abbreviation = sys.stdin.read()

    if parsed.indent < 0:
        print(f"Error: Indent must be >= 0, got {parsed.indent}", file=sys.stderr)
        return 1

    pipeline = build_pipeline(cfg, parsed.resources)
    try:
        tree = pipeline.parse(abbreviation)
    except AbbreviationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if parsed.output_format == "json":
        print(format_json(tree, parsed.indent))
    else:
        output = format_tree(tree, parsed.indent)
        if output:
            print(output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
