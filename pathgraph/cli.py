"""
Command-line interface for the Learning-Path Graph Engine.

Usage::

    # Validate a path stored as JSON (exit code 1 when invalid)
    python -m pathgraph.cli validate ./data/path.json

    # Compute a layout (suggested algorithm unless --algorithm is given)
    python -m pathgraph.cli layout ./data/path.json \\
        --algorithm hierarchical --config ./data/layout.json --out layout.json

    # Store a JSON path in SQLite, then lay it out from there
    python -m pathgraph.cli import ./data/path.json --db ./data/paths.db
    python -m pathgraph.cli layout --db ./data/paths.db --path-id <id>

A path file holds a ``LearningPath`` object (``id`` optional):
``{"title": ..., "nodes": [...], "connections": [{"from", "to", "type"}]}``.
"""

import argparse
import json
import logging
import os
import sys
from typing import Any, Dict, Optional

from pydantic import ValidationError

from pathgraph.config import DEFAULT_CONFIG, load_config, save_config
from pathgraph.errors import PathGraphError
from pathgraph.layout import LAYOUT_ALGORITHMS
from pathgraph.models import LearningPath
from pathgraph.service import PathService
from pathgraph.store import PathStore
from pathgraph.utils import setup_logging

logger = logging.getLogger(__name__)


# =========================================================================
# Helpers
# =========================================================================


def _read_path_file(file_path: str) -> LearningPath:
    with open(file_path, encoding="utf-8") as fh:
        data: Dict[str, Any] = json.load(fh)
    if not data.get("id"):
        data["id"] = os.path.splitext(os.path.basename(file_path))[0]
    return LearningPath.model_validate(data)


def _load_path(args) -> LearningPath:
    if args.db:
        if not args.path_id:
            raise SystemExit("--path-id is required with --db")
        return PathStore(args.db).load(args.path_id)
    if not args.file:
        raise SystemExit("a path file or --db/--path-id is required")
    return _read_path_file(args.file)


def _emit(payload: Dict[str, Any], out: Optional[str]) -> None:
    text = json.dumps(payload, indent=2)
    if out:
        os.makedirs(os.path.dirname(os.path.abspath(out)), exist_ok=True)
        with open(out, "w", encoding="utf-8") as fh:
            fh.write(text)
        logger.info("📄 Output → %s", out)
    else:
        print(text)


# =========================================================================
# Commands
# =========================================================================


def _cmd_validate(args) -> int:
    path = _load_path(args)
    result = PathService().validate(path)
    _emit(result.to_dict(), args.out)
    if result.valid:
        logger.info("✅ Path %s is valid.", path.id)
        return 0
    logger.error("❌ Path %s is invalid (%d error(s)).", path.id, len(result.errors))
    return 1


def _cmd_layout(args) -> int:
    config = load_config(args.config) if args.config else DEFAULT_CONFIG
    if args.save_config:
        save_config(config, args.save_config)

    service = PathService(config=config)
    path = service.load_path(_load_path(args))
    if args.algorithm:
        service.auto_layout(path.id, args.algorithm)
    layout = service.get_path_layout(path.id)
    _emit(layout.to_dict(), args.out)
    logger.info(
        "✅ Layout complete: nodes=%d, connections=%d, levels=%d, suggested=%s",
        layout.metadata.total_nodes,
        layout.metadata.total_connections,
        layout.metadata.levels,
        layout.metadata.suggested_layout,
    )
    return 0


def _cmd_import(args) -> int:
    path = PathService().load_path(_read_path_file(args.file))
    PathStore(args.db).save(path)
    logger.info("Imported path %s → %s", path.id, args.db)
    print(path.id)
    return 0


# =========================================================================
# CLI
# =========================================================================


def _parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="python -m pathgraph.cli",
        description="Learning-path prerequisite graphs: validation and layout.",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    def _source(p, file_required=False):
        if file_required:
            p.add_argument("file", help="Path JSON file.")
        else:
            p.add_argument("file", nargs="?", help="Path JSON file.")
            p.add_argument("--db", default=None, help="SQLite path store.")
            p.add_argument("--path-id", default=None)

    p_validate = sub.add_parser("validate", help="Structural validation.")
    _source(p_validate)
    p_validate.add_argument("--out", default=None)

    p_layout = sub.add_parser("layout", help="Compute a 2-D layout.")
    _source(p_layout)
    p_layout.add_argument(
        "--algorithm", choices=sorted(LAYOUT_ALGORITHMS), default=None,
        help="Force an algorithm instead of the suggested one.",
    )
    p_layout.add_argument(
        "--config", default=None, help="Layout config JSON to apply."
    )
    p_layout.add_argument(
        "--save-config", default=None,
        help="Save the effective layout config to a JSON file.",
    )
    p_layout.add_argument("--out", default=None)

    p_import = sub.add_parser("import", help="Store a JSON path in SQLite.")
    _source(p_import, file_required=True)
    p_import.add_argument("--db", required=True)

    return parser.parse_args(argv)


_COMMANDS = {
    "validate": _cmd_validate,
    "layout": _cmd_layout,
    "import": _cmd_import,
}


def main(argv=None) -> int:
    """CLI entry-point; returns the process exit code."""
    args = _parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)
    try:
        return _COMMANDS[args.command](args)
    except PathGraphError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        return 1
    except (ValidationError, json.JSONDecodeError, OSError) as exc:
        logger.error("Could not read input: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
