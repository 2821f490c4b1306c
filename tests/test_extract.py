import dataclasses
from pathlib import Path

import pytest
from pyecore.ecore import (
    EAttribute,
    EClass,
    EDataType,
    EEnum,
    EGenericType,
    EInt,
    EOperation,
    EPackage,
    EParameter,
    EReference,
)

from ecore_graph.errors import DuplicateIdError, MalformedModelError, TypeResolutionError
from ecore_graph.extract import extract
from ecore_graph.graph import EdgeKind, NodeKind, sequential_ids
from ecore_graph.xml_model import load_xml_model, parse_xml_model

ZOO = Path(__file__).with_name("zoo.ecore")


def _animal_package():
    pkg = EPackage("zoo", nsURI="http://example.org/zoo", nsPrefix="zoo")
    string = EDataType("String", str)
    animal = EClass("Animal", abstract=True)
    animal.eStructuralFeatures.append(EAttribute("name", string))
    person = EClass("Person")
    dog = EClass("Dog", superclass=(animal,))
    dog.eStructuralFeatures.append(EReference("owner", person, lower=0, upper=1, containment=False))
    pkg.eClassifiers.extend([animal, dog, string])
    return pkg


def _without_ids(edges):
    return [dataclasses.replace(edge, id="") for edge in edges]


def test_animal_scenario_with_pyecore():
    graph = extract(_animal_package(), id_factory=sequential_ids())
    assert [node.id for node in graph.nodes] == ["Animal", "Dog"]
    animal = graph.node("Animal")
    assert animal.kind is NodeKind.CLASS
    assert animal.label == "Animal"
    assert animal.attributes == {"abstract": "true", "name": "String"}

    (supertype,) = graph.edges_from("Dog", EdgeKind.SUPERTYPE)
    assert supertype.target == "Animal"
    assert supertype.label is None

    (owner,) = graph.edges_from("Dog", EdgeKind.REFERENCE)
    assert owner.target == "Person"
    assert owner.label == "[0..1] owner"
    assert owner.containment is False
    # Person lives outside the processed package
    assert graph.dangling_targets() == ["Person"]


def test_pyecore_operations_and_enums():
    pkg = EPackage("ops")
    color = EEnum("Color", literals=["RED", "GREEN"])
    shape = EClass("Shape", abstract=True)
    shape.eOperations.append(EOperation("scale", params=(EParameter("factor", EInt),)))
    shape.eOperations.append(EOperation("color", eType=color))
    pkg.eClassifiers.extend([shape, color])

    graph = extract([pkg])
    assert graph.node("Shape").attributes == {
        "abstract": "true",
        "scale(factor EInt)": " void",
        "color()": " Color",
    }
    enum = graph.node("Color")
    assert enum.kind is NodeKind.ENUM
    assert list(enum.attributes) == ["RED", "GREEN"]


def test_pyecore_untyped_attribute_fails():
    pkg = EPackage("broken")
    cls = EClass("Broken")
    cls.eStructuralFeatures.append(EAttribute("mystery"))
    pkg.eClassifiers.append(cls)
    with pytest.raises(TypeResolutionError) as info:
        extract(pkg)
    assert info.value.feature_name == "mystery"


def test_zoo_graph():
    graph = extract(load_xml_model(str(ZOO)), id_factory=sequential_ids())
    assert [node.id for node in graph.nodes] == ["Animal", "Dog", "Toy", "Sound", "Color", "Person"]

    dog = graph.node("Dog")
    assert dog.attributes == {
        "bark(times EInt, loud EBoolean)": " Sound",
        "sleep()": " void",
    }
    assert [(e.kind, e.target, e.label) for e in graph.edges_from("Dog")] == [
        (EdgeKind.REFERENCE, "Person", "[0..1] owner"),
        (EdgeKind.REFERENCE, "Toy", "[0..*] toys"),
        (EdgeKind.REFERENCE, "Dog", "friends"),
        (EdgeKind.SUPERTYPE, "Animal", None),
    ]
    toys = graph.edges_from("Dog")[1]
    assert toys.containment is True

    assert graph.node("Toy").attributes == {"label": "String", "color": "Color"}
    assert graph.node("Sound").attributes == {"WOOF": "auto", "GROWL": "2"}
    assert graph.node("Person").attributes == {"age": "EInt"}
    (pets,) = graph.edges_from("Person")
    assert pets.label == "[1..*] pets"
    assert [edge.id for edge in graph.edges] == ["e1", "e2", "e3", "e4", "e5"]


def test_extraction_is_idempotent():
    roots = load_xml_model(str(ZOO))
    first = extract(roots)
    second = extract(roots)
    assert first.nodes == second.nodes
    assert _without_ids(first.edges) == _without_ids(second.edges)
    assert {e.id for e in first.edges}.isdisjoint({e.id for e in second.edges})


def test_every_classifier_yields_one_node():
    roots = load_xml_model(str(ZOO))
    graph = extract(roots)
    names = []
    stack = list(roots)
    while stack:
        pkg = stack.pop(0)
        names += [c.name for c in pkg.children("eClassifiers") if c.kind.name in ("CLASS", "ENUM")]
        stack += pkg.children("eSubpackages")
    assert sorted(node.id for node in graph.nodes) == sorted(names)


BROKEN = """<?xml version="1.0" encoding="UTF-8"?>
<ecore:EPackage xmi:version="2.0" xmlns:xmi="http://www.omg.org/XMI"
    xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"
    xmlns:ecore="http://www.eclipse.org/emf/2002/Ecore" name="broken">
  <eClassifiers xsi:type="ecore:EClass" name="Good">
    <eStructuralFeatures xsi:type="ecore:EAttribute" name="ok" eType="#//Text"/>
  </eClassifiers>
  <eClassifiers xsi:type="ecore:EClass" name="Bad">
    <eStructuralFeatures xsi:type="ecore:EAttribute" name="ok" eType="#//Text"/>
    <eStructuralFeatures xsi:type="ecore:EAttribute" name="lost"/>
    <eOperations name="run">
      <eParameters name="arg"/>
    </eOperations>
  </eClassifiers>
  <eClassifiers xsi:type="ecore:EDataType" name="Text"/>
</ecore:EPackage>
"""


def test_strict_mode_aborts_on_unresolved_attribute():
    with pytest.raises(TypeResolutionError) as info:
        extract(parse_xml_model(BROKEN))
    assert info.value.feature_name == "lost"
    assert info.value.owner == "Bad"


def test_lenient_mode_skips_only_offending_features(caplog):
    graph = extract(parse_xml_model(BROKEN), strict=False)
    assert [node.id for node in graph.nodes] == ["Good", "Bad"]
    assert graph.node("Bad").attributes == {"ok": "Text"}
    assert "lost" in caplog.text
    assert "arg" in caplog.text


def test_unresolved_parameter_names_operation():
    doc = BROKEN.replace('<eStructuralFeatures xsi:type="ecore:EAttribute" name="lost"/>', "")
    with pytest.raises(TypeResolutionError) as info:
        extract(parse_xml_model(doc))
    assert info.value.feature_name == "arg"
    assert info.value.owner == "Bad.run"


def test_duplicate_classifier_names_conflict():
    doc = BROKEN.replace('name="Good"', 'name="Text"').replace('name="lost"', 'name="lost" eType="#//Text"')
    doc = doc.replace('<eParameters name="arg"/>', '<eParameters name="arg" eType="#//Text"/>')
    doc = doc.replace('xsi:type="ecore:EDataType" name="Text"', 'xsi:type="ecore:EClass" name="Text"')
    with pytest.raises(DuplicateIdError) as info:
        extract(parse_xml_model(doc))
    assert info.value.ident == "Text"


def test_unnamed_classifier_is_malformed():
    doc = BROKEN.replace(' name="Good"', "")
    with pytest.raises(MalformedModelError):
        extract(parse_xml_model(doc))


def test_malformed_bound_is_reported():
    doc = BROKEN.replace(
        '<eStructuralFeatures xsi:type="ecore:EAttribute" name="lost"/>',
        '<eStructuralFeatures xsi:type="ecore:EReference" name="ref" eType="#//Good" upperBound="many"/>',
    )
    with pytest.raises(MalformedModelError):
        extract(parse_xml_model(doc))


def test_root_classifier_and_ignored_roots():
    (package,) = parse_xml_model(BROKEN)
    good, _, text = package.children("eClassifiers")
    graph = extract([good, text])
    assert [node.id for node in graph.nodes] == ["Good"]


def test_duplicate_operation_signature_last_wins(caplog):
    doc = BROKEN.replace(
        '<eStructuralFeatures xsi:type="ecore:EAttribute" name="lost"/>',
        '<eOperations name="stop" eType="#//Text"/><eOperations name="stop"/>',
    ).replace('<eParameters name="arg"/>', "")
    graph = extract(parse_xml_model(doc))
    assert graph.node("Bad").attributes["stop()"] == " void"
    assert "declared twice" in caplog.text


FLAGGED = """<?xml version="1.0" encoding="UTF-8"?>
<ecore:EPackage xmi:version="2.0" xmlns:xmi="http://www.omg.org/XMI"
    xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"
    xmlns:ecore="http://www.eclipse.org/emf/2002/Ecore" name="flags">
  <eClassifiers xsi:type="ecore:EClass" name="Base"/>
  <eClassifiers xsi:type="ecore:EClass" name="Shape" abstract="true" interface="true"/>
  <eClassifiers xsi:type="ecore:EClass" name="Box">
    <eGenericSuperTypes eClassifier="#//Base"/>
    <eStructuralFeatures xsi:type="ecore:EReference" name="r" eType="#//Base" derived="true" lowerBound="1"/>
  </eClassifiers>
</ecore:EPackage>
"""


def _flagged_package():
    pkg = EPackage("flags")
    base = EClass("Base")
    shape = EClass("Shape", abstract=True)
    shape.interface = True
    box = EClass("Box")
    box.eGenericSuperTypes.append(EGenericType(eClassifier=base))
    ref = EReference("r", base, lower=1, upper=1)
    ref.derived = True
    box.eStructuralFeatures.append(ref)
    pkg.eClassifiers.extend([base, shape, box])
    return [pkg]


def _flagged_roots(backend):
    if backend == "xml":
        return parse_xml_model(FLAGGED)
    return _flagged_package()


@pytest.mark.parametrize("backend", ["pyecore", "xml"])
def test_interface_flag(backend):
    graph = extract(_flagged_roots(backend))
    assert graph.node("Shape").attributes == {"abstract": "true", "interface": "true"}
    assert graph.node("Base").attributes == {}


@pytest.mark.parametrize("backend", ["pyecore", "xml"])
def test_derived_reference_flag(backend):
    graph = extract(_flagged_roots(backend))
    (ref,) = graph.edges_from("Box", EdgeKind.REFERENCE)
    assert ref.label == "[1..1] r"
    assert ref.target == "Base"
    assert ref.derived is True
    assert ref.containment is False


@pytest.mark.parametrize("backend", ["pyecore", "xml"])
def test_generic_supertypes_fallback(backend):
    graph = extract(_flagged_roots(backend))
    assert [(e.source, e.target) for e in graph.edges_from("Box", EdgeKind.SUPERTYPE)] == [("Box", "Base")]
