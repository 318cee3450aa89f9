"""Model graph accessors."""

from __future__ import annotations

from pathlib import Path

from idscheck.exceptions import ModelLoadError
from idscheck.graph.accessor import EntityRef, ModelGraph, RelationKind, TypedValue, ref_id, ref_ids, unwrap
from idscheck.graph.memory import MemoryModelGraph, ModelSnapshot, NodeSnapshot


def open_model(path: Path) -> ModelGraph:
    """Open a model file, picking the accessor from the file suffix."""
    suffix = Path(path).suffix.lower()
    if suffix == ".json":
        return MemoryModelGraph.load(Path(path))
    if suffix in {".ifc", ".ifczip", ".ifcxml"}:
        # ifcopenshell is only imported when an IFC file is actually opened
        from idscheck.graph.ifc import IfcModelGraph

        return IfcModelGraph.open(Path(path))
    raise ModelLoadError(f"Unsupported model file type: {suffix or path}", {"path": str(path)})


__all__ = [
    "EntityRef",
    "ModelGraph",
    "RelationKind",
    "TypedValue",
    "MemoryModelGraph",
    "ModelSnapshot",
    "NodeSnapshot",
    "open_model",
    "ref_id",
    "ref_ids",
    "unwrap",
]
