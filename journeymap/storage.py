"""Reading and writing journey documents.

Document shape::

    {"nodes": [{"id": 1, "x": 100, "y": 80, "parentId": null,
                "label": "Start", "slides": [{"text": "...", "img": "..."}]}],
     "music": ""}

A bare list of nodes is the legacy format; it predates ``parentId`` and
is read as one linear chain in list order.
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from journeymap.config import JourneySettings
from journeymap.errors import ParseError
from journeymap.graph import Node, NodeGraph, Slide

logger = logging.getLogger(__name__)


@dataclass
class JourneyDocument:
    """A fully parsed document, ready to replace the in-memory state."""
    graph: NodeGraph
    music: str = ""


def is_legacy(data: Any) -> bool:
    return isinstance(data, list)


def migrate_legacy(items: List[Any]) -> List[Dict[str, Any]]:
    """Chain legacy nodes: each one's parent is the previous element."""
    migrated = []
    previous_id = None
    for item in items:
        if not isinstance(item, dict):
            raise ParseError(f"Legacy node entry is not an object: {item!r}")
        node = dict(item)
        node["parentId"] = previous_id
        previous_id = node.get("id")
        migrated.append(node)
    return migrated


def _number(value: Any, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ParseError(f"{what} must be a number, got {value!r}")
    return float(value)


def _node_id(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ParseError(f"{what} must be an integer, got {value!r}")
    return value


def slide_from_dict(data: Any) -> Slide:
    if not isinstance(data, dict):
        raise ParseError(f"Slide entry is not an object: {data!r}")
    text = data.get("text", "")
    img = data.get("img", "")
    if not isinstance(text, str) or not isinstance(img, str):
        raise ParseError("Slide text and img must be strings")
    return Slide(text=text, image_ref=img)


def node_from_dict(data: Any) -> Node:
    if not isinstance(data, dict):
        raise ParseError(f"Node entry is not an object: {data!r}")
    if "id" not in data:
        raise ParseError("Node entry is missing 'id'")

    node_id = _node_id(data["id"], "Node id")
    parent = data.get("parentId")
    parent_id = None if parent is None else _node_id(parent, f"parentId of node {node_id}")

    label = data.get("label", "")
    if not isinstance(label, str):
        raise ParseError(f"Label of node {node_id} must be a string")

    raw_slides = data.get("slides") or []
    if not isinstance(raw_slides, list):
        raise ParseError(f"Slides of node {node_id} must be a list")
    slides = [slide_from_dict(s) for s in raw_slides] or [Slide.placeholder()]

    return Node(
        id=node_id,
        x=_number(data.get("x", 0), f"x of node {node_id}"),
        y=_number(data.get("y", 0), f"y of node {node_id}"),
        parent_id=parent_id,
        label=label,
        slides=slides,
    )


def node_to_dict(node: Node) -> Dict[str, Any]:
    return {
        "id": node.id,
        "x": node.x,
        "y": node.y,
        "parentId": node.parent_id,
        "label": node.label,
        "slides": [{"text": s.text, "img": s.image_ref} for s in node.slides],
    }


def parse_document(data: Any, settings: Optional[JourneySettings] = None) -> JourneyDocument:
    """Build a complete document from decoded JSON, or raise ParseError."""
    if is_legacy(data):
        logger.info("Migrating legacy document with %d nodes", len(data))
        raw_nodes = migrate_legacy(data)
        music = ""
    elif isinstance(data, dict):
        if "nodes" not in data:
            raise ParseError("Document has no 'nodes' list")
        raw_nodes = data["nodes"]
        if not isinstance(raw_nodes, list):
            raise ParseError("'nodes' must be a list")
        music = data.get("music") or ""
        if not isinstance(music, str):
            raise ParseError("'music' must be a string")
    else:
        raise ParseError(f"Unsupported document type {type(data).__name__}")

    nodes = [node_from_dict(item) for item in raw_nodes]
    graph = NodeGraph.from_nodes(nodes, settings)
    return JourneyDocument(graph=graph, music=music)


def document_to_dict(graph: NodeGraph, music: str = "") -> Dict[str, Any]:
    return {
        "nodes": [node_to_dict(n) for n in graph],
        "music": music,
    }


def load_document(filepath: Path, settings: Optional[JourneySettings] = None) -> JourneyDocument:
    """Load a document from disk. Raises ParseError on any failure."""
    filepath = Path(filepath)
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ParseError(f"Could not decode JSON from '{filepath}': {e}") from e
    except OSError as e:
        raise ParseError(f"Could not read '{filepath}': {e}") from e

    try:
        return parse_document(data, settings)
    except ParseError as e:
        raise ParseError(f"Invalid journey document '{filepath}': {e}") from e


def save_document(graph: NodeGraph, filepath: Path, music: str = "") -> Path:
    """Write the full state to ``filepath`` via a temp file and rename."""
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    payload = document_to_dict(graph, music)

    fd, tmp_name = tempfile.mkstemp(dir=str(filepath.parent), prefix=".journey-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
        os.replace(tmp_name, filepath)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    logger.debug("Saved %d nodes to %s", len(graph), filepath)
    return filepath


def create_backup(filepath: Path, backup_dir: Path, keep: int = 10) -> Optional[Path]:
    """Copy a saved document to a timestamped backup and prune old ones."""
    filepath = Path(filepath)
    if not filepath.exists():
        return None

    backup_dir = Path(backup_dir)
    backup_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    backup_file = backup_dir / f"{filepath.stem}_{timestamp}.json"
    backup_file.write_bytes(filepath.read_bytes())

    # Clean old backups (keep last N)
    backups = sorted(backup_dir.glob(f"{filepath.stem}_*.json"), reverse=True)
    for old_backup in backups[keep:]:
        old_backup.unlink()
    return backup_file
