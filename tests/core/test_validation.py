import pytest

from orthobundle.core.trees import TreeNode, TreeStructure
from orthobundle.core.validation import validate_bundle
from orthobundle.errors import BundleValidationError


def test_consistent_bundle_passes(bundle_factory):
    report = validate_bundle(bundle_factory(), tag="STR")
    assert report.valid
    assert report.errors == []
    assert report.to_dict()["valid"] is True


def test_duplicate_species_ids(bundle_factory):
    bundle = bundle_factory(species=[
        (9606, "Homo sapiens", "Eukaryota"),
        (9606, "Homo sapiens sapiens", "Eukaryota"),
        (10090, "Mus musculus", "Eukaryota"),
        (7227, "Drosophila melanogaster", "Eukaryota"),
    ])
    report = bundle.report()
    assert not report.valid
    assert any("Duplicate species IDs: 9606" in e for e in report.errors)


def test_duplicate_group_ids(bundle_factory):
    bundle = bundle_factory(groups=["STR:COG0001", "STR:COG0001", "STR:NOG1"])
    assert any("Duplicate ortholog group IDs" in e for e in bundle.report().errors)


def test_duplicate_mapping_rows(bundle_factory):
    bundle = bundle_factory(mappings=[
        ("STR:COG0001", 9606, "9606.P1"),
        ("STR:COG0001", 9606, "9606.P1"),
        ("STR:NOG1", 7227, "7227.P9"),
    ])
    assert any("duplicate protein mapping rows" in e for e in bundle.report().errors)


def test_mapping_foreign_keys(bundle_factory):
    bundle = bundle_factory(mappings=[
        ("STR:COG0001", 9606, "9606.P1"),
        ("STR:NOG1", 7227, "7227.P9"),
        ("STR:COG9999", 7227, "7227.P2"),
        ("STR:NOG1", 4932, "4932.P1"),
    ])
    errors = bundle.report().errors
    assert any("unknown ortholog groups: STR:COG9999" in e for e in errors)
    assert any("unknown species: 4932" in e for e in errors)


def test_unreferenced_group(bundle_factory):
    bundle = bundle_factory(groups=["STR:COG0001", "STR:NOG1", "STR:NOG2"])
    assert any("without any protein mapping: STR:NOG2" in e for e in bundle.report().errors)


def test_leaf_set_must_equal_species_set(bundle_factory):
    bundle = bundle_factory(newick="((9606:1,10090:1):2,4932:3);")
    errors = bundle.report().errors
    assert any("Species missing from tree: 7227" in e for e in errors)
    assert any("Tree leaves not in species table: 4932" in e for e in errors)


def test_duplicate_leaves(bundle_factory):
    bundle = bundle_factory()
    nodes = [
        TreeNode(id=0, name="9606", parent_id=3, branch_length=1.0, is_tip=True),
        TreeNode(id=1, name="9606", parent_id=3, branch_length=1.0, is_tip=True),
        TreeNode(id=2, name="10090", parent_id=3, branch_length=1.0, is_tip=True),
        TreeNode(id=3, children_ids=[0, 1, 2]),
    ]
    object.__setattr__(bundle, "tree", TreeStructure._build_from_nodes(nodes, 3))
    assert any("Duplicate tree leaves: 9606" in e for e in bundle.report().errors)


def test_negative_branch_lengths(bundle_factory):
    bundle = bundle_factory(newick="((9606:-1,10090:1):2,7227:3);")
    assert "Tree has negative branch lengths" in bundle.report().errors


def test_missing_branch_lengths_only_warn(bundle_factory):
    report = bundle_factory(newick="((9606,10090),7227);").report()
    assert report.valid
    assert "Tree has no branch lengths" in report.warnings


def test_species_without_mappings_only_warn(bundle_factory):
    bundle = bundle_factory(mappings=[
        ("STR:COG0001", 9606, "9606.P1"),
        ("STR:NOG1", 9606, "9606.P9"),
    ])
    report = bundle.report()
    assert report.valid
    assert report.warnings == ["2 species have no protein mappings"]


def test_group_ids_must_carry_source_tag(bundle_factory):
    bundle = bundle_factory()
    assert bundle.report(tag="OMA").errors == [
        "Ortholog group IDs without source tag 'OMA': STR:COG0001, STR:NOG1"
    ]


def test_empty_tables(bundle_factory):
    bundle = bundle_factory(groups=[], mappings=[])
    errors = bundle.report().errors
    assert "Ortholog group table is empty" in errors
    assert "Protein mapping table is empty" in errors


def test_validate_raises_with_all_errors(bundle_factory):
    bundle = bundle_factory(groups=["STR:COG0001", "STR:NOG1", "STR:NOG2"], newick="((9606:1,10090:1):2,4932:3);")
    with pytest.raises(BundleValidationError) as excinfo:
        bundle.validate()
    assert len(excinfo.value.errors) == 3
    assert isinstance(excinfo.value, ValueError)
    assert "string 11.0" in str(excinfo.value)
