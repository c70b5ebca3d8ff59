"""CLI to recompute derived fields over a StoryForge database.

Usage:
    python -m backend.app.scripts.run_full_compute --db ./data/storyforge.db
    python -m backend.app.scripts.run_full_compute --kind puzzle --id p1
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

# Ensure project root is on path when run as __main__
if __name__ == "__main__":
    _root = Path(__file__).resolve().parents[3]
    if str(_root) not in sys.path:
        sys.path.insert(0, str(_root))

from backend.app.compute.base import ENTITY_TABLES
from backend.app.compute.errors import FieldComputationError
from backend.app.compute.orchestrator import ComputeOrchestrator
from backend.app.config import DEFAULT_DB_PATH
from backend.app.content.game_constants_loader import load_game_constants
from backend.app.db.migrate import apply_schema
from backend.app.db.store import EntityStore

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Recompute derived fields (act focus, resolution paths, threads, memory values)."
    )
    parser.add_argument(
        "--db",
        type=str,
        default=DEFAULT_DB_PATH,
        help="Path to SQLite database file (default: STORYFORGE_DB_PATH, else ./data/storyforge.db)",
    )
    parser.add_argument(
        "--constants",
        type=str,
        default=None,
        help="Optional YAML file overriding the built-in game constants",
    )
    parser.add_argument(
        "--kind",
        choices=sorted(ENTITY_TABLES),
        default=None,
        help="Recompute a single entity of this kind (requires --id)",
    )
    parser.add_argument("--id", dest="entity_id", type=str, default=None, help="Entity id for --kind")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable DEBUG logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if bool(args.kind) != bool(args.entity_id):
        parser.error("--kind and --id must be given together")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        # Relative --constants paths are taken from the working directory
        constants_path = Path(args.constants).resolve() if args.constants else None
        constants = load_game_constants(constants_path)
    except (FileNotFoundError, ValueError) as e:
        logger.error("Could not load game constants: %s", e)
        return 1

    apply_schema(args.db)
    with EntityStore(args.db) as store:
        orchestrator = ComputeOrchestrator(store, constants)
        try:
            if args.kind:
                result = orchestrator.compute_entity(args.kind, args.entity_id)
            else:
                result = orchestrator.compute_all().to_dict()
        except FieldComputationError as e:
            print(json.dumps(e.to_response(), indent=2))
            return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
