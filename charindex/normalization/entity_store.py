"""Read and write the confirmed/candidate entity JSON files."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Dict, List, Sequence

from charindex.normalization.models import Entity


def entity_file_payload(
    entities: Sequence[Entity],
    *,
    source: str,
    tier: str,
    pipeline: str = "charindex-discovery",
    coref_applied: bool = False,
) -> Dict[str, Any]:
    return {
        "metadata": {
            "source": source,
            "generated": datetime.now(UTC).isoformat(),
            "tier": tier,
            "count": len(entities),
            "pipeline": pipeline,
            "corefApplied": coref_applied,
        },
        "entities": [e.model_dump(mode="json", by_alias=True, exclude_none=True) for e in entities],
    }


def write_entities(path: str | Path, entities: Sequence[Entity], **metadata: Any) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = entity_file_payload(entities, **metadata)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def load_entities(path: str | Path) -> List[Entity]:
    """Load entities from a file written by `write_entities`.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the JSON root is not a mapping
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Entity file not found: {path}")
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Entity file root must be a mapping/dict: {path}")
    return [Entity.model_validate(item) for item in data.get("entities", []) or []]
