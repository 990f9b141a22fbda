import itertools

import pandas as pd
import pytest

from orthobundle.core.tables import (
    MAPPING_COLUMNS,
    check_prefix_injective,
    normalize_mappings,
    normalize_species,
    prefix_group_id,
    prefix_group_ids,
    read_table,
    split_group_id,
    write_table,
)


def test_prefix_and_split_are_inverse():
    assert prefix_group_id("STR", "COG0001") == "STR:COG0001"
    assert split_group_id("STR:COG0001") == ("STR", "COG0001")
    # Raw IDs may themselves contain the separator
    assert split_group_id(prefix_group_id("ODB", "a:b")) == ("ODB", "a:b")


def test_prefixing_distinct_sources_never_collides():
    tags = ["STR", "OMA", "ODB", "OMA2"]
    raw_ids = ["1", "COG0001", "2:1", "OMA:1", "A", ""]
    raw_ids = [r for r in raw_ids if r]

    produced = {}
    for tag, raw in itertools.product(tags, raw_ids):
        key = prefix_group_id(tag, raw)
        assert key not in produced, f"{(tag, raw)} collides with {produced[key]}"
        produced[key] = (tag, raw)


@pytest.mark.parametrize("tag", ["", "str", "S:R", "1AB", "ST R"])
def test_invalid_tags_rejected(tag):
    with pytest.raises(ValueError):
        prefix_group_id(tag, "COG0001")


def test_empty_raw_id_rejected():
    with pytest.raises(ValueError):
        prefix_group_id("STR", "")
    with pytest.raises(ValueError):
        prefix_group_ids("STR", pd.Series(["COG1", ""]))


def test_split_rejects_untagged_ids():
    for group_id in ["COG0001", ":COG0001", "str:COG1", "STR:"]:
        with pytest.raises(ValueError):
            split_group_id(group_id)


def test_check_prefix_injective():
    check_prefix_injective(["STR", "OMA", "ODB"])
    with pytest.raises(ValueError, match="Duplicate"):
        check_prefix_injective(["STR", "OMA", "STR"])
    with pytest.raises(ValueError):
        check_prefix_injective(["STR", "o:b"])


def test_prefix_group_ids_vectorised():
    out = prefix_group_ids("OMA", pd.Series([1, 22]))
    assert out.tolist() == ["OMA:1", "OMA:22"]


def test_normalize_species_fills_domain_and_casts_ids():
    df = pd.DataFrame({"species_name": ["Homo sapiens"], "species_id": ["9606"]})
    out = normalize_species(df)

    assert list(out.columns) == ["species_id", "species_name", "domain"]
    assert out["species_id"].tolist() == [9606]
    assert out["domain"].tolist() == [""]


def test_normalize_mappings_requires_columns():
    with pytest.raises(ValueError, match="protein_id"):
        normalize_mappings(pd.DataFrame({"group_id": ["a"], "species_id": [1]}))


def test_non_numeric_species_ids_rejected():
    with pytest.raises(ValueError):
        normalize_species(pd.DataFrame({"species_id": ["HUMAN"], "species_name": ["Homo sapiens"]}))


def test_write_then_read_table_keeps_column_order(tmp_path):
    df = pd.DataFrame(
        [("STR:COG1", 9606, "9606.P1"), ("STR:COG1", 10090, "10090.P1")],
        columns=MAPPING_COLUMNS,
    )
    path = write_table(df, tmp_path / "mappings.tsv", "mappings")

    assert path.read_text().splitlines()[0] == "group_id\tspecies_id\tprotein_id"
    loaded = read_table(path, "mappings")
    pd.testing.assert_frame_equal(loaded, normalize_mappings(df))


def test_read_table_unknown_kind(tmp_path):
    with pytest.raises(ValueError):
        read_table(tmp_path / "x.tsv", "proteins")
