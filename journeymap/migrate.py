"""Document migration helper CLI for Journeymap.

Older journeys were saved as a bare list of checkpoints with no parent
links. This tool rewrites such files in the current document shape and
checks documents for damage before you open them.

Usage:
  journeymap-migrate upgrade old.json --out journey.json
  journeymap-migrate verify journey.json
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from journeymap.errors import ParseError
from journeymap.storage import load_document, save_document

logger = logging.getLogger(__name__)


def _is_legacy_file(path: Path) -> bool:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return isinstance(json.load(f), list)
    except (OSError, json.JSONDecodeError):
        return False


def upgrade(in_path: Path, out_path: Path, *, overwrite: bool = False) -> int:
    """Rewrite a document in the current shape. Returns the node count."""
    if out_path.exists() and not overwrite:
        raise FileExistsError(f"Refusing to overwrite existing file: {out_path}")
    was_legacy = _is_legacy_file(in_path)
    document = load_document(in_path)
    save_document(document.graph, out_path, music=document.music)
    logger.info("Upgraded %s (%s) -> %s", in_path,
                "legacy" if was_legacy else "current", out_path)
    return len(document.graph)


def verify(path: Path) -> int:
    try:
        document = load_document(path)
    except ParseError as exc:
        print(f"Journey verification FAILED: {exc}")
        return 1

    graph = document.graph
    slides = sum(len(n.slides) for n in graph)
    print("Journey verification")
    print(f"  File: {path}")
    print(f"  Format: {'legacy' if _is_legacy_file(path) else 'current'}")
    print(f"  Counts: nodes={len(graph)} roots={len(graph.roots())} slides={slides}")
    print(f"  Music: {document.music or '(none)'}")
    return 0


def _cmd_upgrade(args: argparse.Namespace) -> int:
    try:
        count = upgrade(Path(args.input), Path(args.out), overwrite=bool(args.overwrite))
    except (ParseError, FileExistsError) as exc:
        print(f"Upgrade failed: {exc}")
        return 1
    print(f"Wrote {count} checkpoints to {Path(args.out).expanduser().resolve()}")
    return 0


def _cmd_verify(args: argparse.Namespace) -> int:
    return verify(Path(args.input))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="journeymap-migrate")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_up = sub.add_parser("upgrade", help="Rewrite a document in the current format")
    p_up.add_argument("input", help="Input journey .json")
    p_up.add_argument("--out", required=True, help="Output .json path")
    p_up.add_argument("--overwrite", action="store_true", help="Replace --out if it exists")
    p_up.set_defaults(func=_cmd_upgrade)

    p_ver = sub.add_parser("verify", help="Check that a document loads cleanly")
    p_ver.add_argument("input", help="Journey .json to verify")
    p_ver.set_defaults(func=_cmd_verify)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
