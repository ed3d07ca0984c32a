# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Command-line interface for the type graph index.

Usage:
    type-graph facts.json names --kind interface
    type-graph facts.yml query subclasses com.example.Animal
    type-graph facts.json dot --output graph.dot
    type-graph facts.json export
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from type_graph.config import Config, ConfigurationError
from type_graph.dag_node import GraphStructureError
from type_graph.fact_loader import load_facts
from type_graph.graph_builder import ClassGraphBuilder
from type_graph.logging_setup import setup_logging
from type_graph.models import EntityKind, FactFormatError

logger = logging.getLogger(__name__)

# Query operation -> ClassGraphBuilder method
QUERY_OPERATIONS: Dict[str, str] = {
    "subclasses": "get_names_of_subclasses_of",
    "superclasses": "get_names_of_superclasses_of",
    "subinterfaces": "get_names_of_subinterfaces_of",
    "superinterfaces": "get_names_of_superinterfaces_of",
    "implementing": "get_names_of_classes_implementing",
    "with-annotation": "get_names_of_classes_with_annotation",
    "annotations-on": "get_names_of_annotations_on_class",
    "meta-annotations": "get_names_of_meta_annotations_on_annotation",
    "with-meta-annotation": "get_names_of_annotations_with_meta_annotation",
}

# --kind value -> ClassGraphBuilder method
NAME_LISTINGS: Dict[str, str] = {
    "all": "get_names_of_all_classes",
    EntityKind.STANDARD: "get_names_of_all_standard_classes",
    EntityKind.INTERFACE: "get_names_of_all_interface_classes",
    EntityKind.ANNOTATION: "get_names_of_all_annotation_classes",
}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog="type-graph",
        description="Index type-relationship facts and query the type graph",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("facts", type=Path, help="Fact file (.json, .yml or .yaml)")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Configuration file. Default: ./.type_graph.yml if present",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Write structured JSON logs to this directory",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")

    subparsers = parser.add_subparsers(dest="command", required=True)

    names_parser = subparsers.add_parser("names", help="List entity names")
    names_parser.add_argument("--kind", choices=list(NAME_LISTINGS), default="all")

    query_parser = subparsers.add_parser("query", help="Run a reachability query")
    query_parser.add_argument("operation", choices=list(QUERY_OPERATIONS))
    query_parser.add_argument("name", help="Fully qualified entity name")

    dot_parser = subparsers.add_parser("dot", help="Render the graph as GraphViz .dot")
    dot_parser.add_argument("--output", type=Path, default=None)

    export_parser = subparsers.add_parser("export", help="Export the graph as JSON")
    export_parser.add_argument("--output", type=Path, default=None)

    return parser.parse_args(argv)


def _load_config(config_path: Optional[Path]) -> Config:
    if config_path is not None and not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")
    return Config(config_path=config_path)


def _configure_logging(args: argparse.Namespace, config: Config) -> None:
    level = logging.DEBUG if args.verbose else config.log_level
    if args.log_dir is not None:
        setup_logging(log_dir=args.log_dir, log_level=level, console_output=args.verbose)
    else:
        logging.basicConfig(
            level=level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            stream=sys.stderr,
        )


def _write_output(text: str, output: Optional[Path]) -> None:
    if output is None:
        print(text)
    else:
        output.write_text(text + "\n", encoding="utf-8")
        logger.info(f"Wrote {output}")


def run(args: argparse.Namespace, config: Config) -> None:
    """Build the graph from args.facts and execute the selected command.

    Raises:
        FileNotFoundError: If the fact file doesn't exist.
        FactFormatError: If the fact file is malformed.
        GraphStructureError: If the facts contain an inheritance cycle.
    """
    builder = ClassGraphBuilder.from_facts(load_facts(args.facts), config=config)

    if args.command == "names":
        names = getattr(builder, NAME_LISTINGS[args.kind])()
        _write_output("\n".join(names), None)
    elif args.command == "query":
        names = getattr(builder, QUERY_OPERATIONS[args.operation])(args.name)
        _write_output("\n".join(names), None)
    elif args.command == "dot":
        dot = builder.generate_class_graph_dot(size=config.dot_graph_size, layout=config.dot_layout)
        _write_output(dot, args.output)
    elif args.command == "export":
        _write_output(json.dumps(builder.export_to_dict(), indent=2), args.output)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point.

    Returns:
        Process exit status: 0 on success, 1 on invalid input.
    """
    args = parse_args(argv)

    try:
        config = _load_config(args.config)
        _configure_logging(args, config)
        run(args, config)
    except (ConfigurationError, FileNotFoundError, FactFormatError, GraphStructureError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"type-graph: error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
