from __future__ import annotations

from pathlib import Path

import ifcopenshell
import ifcopenshell.api
import ifcopenshell.guid


def _owner_rel(model: ifcopenshell.file, ifc_class: str, **attributes) -> ifcopenshell.entity_instance:
    return model.create_entity(ifc_class, GlobalId=ifcopenshell.guid.new(), **attributes)


def _assign_layered_material(model: ifcopenshell.file, products, names: list[str]) -> None:
    layers = [
        model.create_entity(
            "IfcMaterialLayer",
            Material=model.create_entity("IfcMaterial", Name=name),
            LayerThickness=100.0,
        )
        for name in names
    ]
    layer_set = model.create_entity("IfcMaterialLayerSet", MaterialLayers=layers, LayerSetName="Composite")
    usage = model.create_entity(
        "IfcMaterialLayerSetUsage",
        ForLayerSet=layer_set,
        LayerSetDirection="AXIS2",
        DirectionSense="POSITIVE",
        OffsetFromReferenceLine=0.0,
    )
    _owner_rel(model, "IfcRelAssociatesMaterial", RelatedObjects=list(products), RelatingMaterial=usage)


def _assign_classification(model: ifcopenshell.file, products, system: str, identification: str) -> None:
    classification = model.create_entity("IfcClassification", Name=system)
    reference = model.create_entity(
        "IfcClassificationReference",
        Identification=identification,
        ReferencedSource=classification,
    )
    _owner_rel(
        model,
        "IfcRelAssociatesClassification",
        RelatedObjects=list(products),
        RelatingClassification=reference,
    )


def build_checked_ifc(path: Path | None = None) -> ifcopenshell.file:
    """Small IFC4 model exercising every relationship the facets follow.

    Walls "Wall_A" (rated F30, external, Concrete/Steel layers, Uniclass EF_25_10)
    and "Wall_B" (no rating) sit in storey "EG". "Wall_B" inherits its
    classification and a Pset_WallCommon from wall type "WT_Standard".
    A third wall "Wall_Loose" is not placed in any spatial structure.
    """
    model = ifcopenshell.api.run("project.create_file", version="IFC4")
    project = ifcopenshell.api.run("root.create_entity", model, ifc_class="IfcProject", name="IDS Test")
    site = ifcopenshell.api.run("root.create_entity", model, ifc_class="IfcSite", name="Site")
    building = ifcopenshell.api.run("root.create_entity", model, ifc_class="IfcBuilding", name="Building")
    storey = ifcopenshell.api.run("root.create_entity", model, ifc_class="IfcBuildingStorey", name="EG")
    ifcopenshell.api.run("aggregate.assign_object", model, relating_object=project, products=[site])
    ifcopenshell.api.run("aggregate.assign_object", model, relating_object=site, products=[building])
    ifcopenshell.api.run("aggregate.assign_object", model, relating_object=building, products=[storey])

    wall_a = ifcopenshell.api.run("root.create_entity", model, ifc_class="IfcWall", name="Wall_A")
    wall_b = ifcopenshell.api.run("root.create_entity", model, ifc_class="IfcWall", name="Wall_B")
    loose = ifcopenshell.api.run("root.create_entity", model, ifc_class="IfcWall", name="Wall_Loose")
    ifcopenshell.api.run("spatial.assign_container", model, products=[wall_a, wall_b], relating_structure=storey)

    pset_a = ifcopenshell.api.run("pset.add_pset", model, product=wall_a, name="Pset_WallCommon")
    ifcopenshell.api.run("pset.edit_pset", model, pset=pset_a, properties={"IsExternal": True, "FireRating": "F30"})

    wall_type = ifcopenshell.api.run("root.create_entity", model, ifc_class="IfcWallType", name="WT_Standard")
    _owner_rel(model, "IfcRelDefinesByType", RelatedObjects=[wall_b], RelatingType=wall_type)
    pset_type = ifcopenshell.api.run("pset.add_pset", model, product=wall_type, name="Pset_WallCommon")
    ifcopenshell.api.run("pset.edit_pset", model, pset=pset_type, properties={"IsExternal": False})

    _assign_layered_material(model, [wall_a], ["Concrete", "Steel"])
    _assign_classification(model, [wall_a], "Uniclass", "EF_25_10")
    _assign_classification(model, [wall_type], "Uniclass", "Ss_25")

    if path is not None:
        path.parent.mkdir(parents=True, exist_ok=True)
        model.write(str(path))
    return model


__all__ = ["build_checked_ifc"]
