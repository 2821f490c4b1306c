from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from lxml import etree

from .errors import ExtractionError
from .export import export_edges, export_gml, export_json, graph_to_dict
from .extract import extract
from .graph import random_ids, sequential_ids
from .loader import BACKENDS, load_model, metamodel_stats, summarize_metamodel
from .scan import scan_xmi


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Extract a node/edge graph from an Ecore metamodel.")
    parser.add_argument("--ecore", required=True, help="Path to .ecore/.xmi file")
    parser.add_argument(
        "--backend",
        choices=BACKENDS,
        default="pyecore",
        help="Model access backend (default: pyecore)",
    )
    parser.add_argument("--dump-metamodel", action="store_true", help="Print metamodel summary")
    parser.add_argument("--export-json", help="Write the extracted graph to JSON")
    parser.add_argument("--export-edges", help="Write the extracted edges to CSV")
    parser.add_argument("--export-gml", help="Write the extracted graph to GML")
    parser.add_argument(
        "--scan",
        help="Write a type-blind id/idref scan of the document to JSON instead of extracting",
    )
    parser.add_argument(
        "--lenient",
        action="store_true",
        help="Skip features whose type cannot be resolved instead of failing",
    )
    parser.add_argument("--seed-ids", action="store_true", help="Use sequential edge ids (e1, e2, ...)")
    parser.add_argument("--verbose", action="store_true", help="Verbose logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
        _configure_logging(args.verbose)
        logging.info("Parameters:")
        for name, value in vars(args).items():
            logging.info("%s: %s", name, value)

        if args.scan:
            try:
                payload = scan_xmi(Path(args.ecore).read_bytes())
            except (OSError, etree.XMLSyntaxError) as exc:
                logging.error("Failed to scan document: %s", exc)
                return 2
            with open(args.scan, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2, ensure_ascii=False)
            logging.info(
                "Wrote scan JSON: %s (nodes=%s edges=%s)",
                args.scan,
                len(payload["nodes"]),
                len(payload["edges"]),
            )
            return 0

        try:
            roots = load_model(args.ecore, backend=args.backend)
        except Exception as exc:  # noqa: BLE001
            logging.error("Failed to load metamodel: %s", exc)
            return 2
        id_factory = sequential_ids() if args.seed_ids else random_ids()
        try:
            stats = metamodel_stats(roots)
            logging.info(
                "Metamodel stats: packages=%s classes=%s enums=%s attributes=%s references=%s operations=%s",
                stats["packages"],
                stats["classes"],
                stats["enums"],
                stats["attributes"],
                stats["references"],
                stats["operations"],
            )
            if args.dump_metamodel:
                print(summarize_metamodel(roots))
            graph = extract(roots, id_factory=id_factory, strict=not args.lenient)
        except ExtractionError as exc:
            logging.error("Extraction failed: %s", exc)
            return 2

        if args.export_json:
            counts = export_json(graph, args.export_json)
            logging.info("Wrote JSON: %s (nodes=%s edges=%s)", args.export_json, counts["nodes"], counts["edges"])
        if args.export_edges:
            rows = export_edges(graph, args.export_edges)
            logging.info("Wrote edges: %s (edges=%s)", args.export_edges, len(rows))
        if args.export_gml:
            counts = export_gml(graph, args.export_gml)
            logging.info("Wrote GML: %s (nodes=%s edges=%s)", args.export_gml, counts["nodes"], counts["edges"])
        if not (args.export_json or args.export_edges or args.export_gml or args.dump_metamodel):
            print(json.dumps(graph_to_dict(graph), indent=2, ensure_ascii=False))
        return 0
    except KeyboardInterrupt:
        print("Stopped by user.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
