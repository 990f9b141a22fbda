"""
Canonical table schemas and group-ID prefixing.

Every bundle carries three tables with a fixed column order, whatever
database they came from:

    species   species_id, species_name, domain
    groups    group_id
    mappings  group_id, species_id, protein_id

Group IDs are stored prefixed with the source tag ("STR:COG0001") so that
tables from different databases can be stacked without collisions.
"""

import re
from pathlib import Path
from typing import Dict, Iterable, List, Tuple, Union

import pandas as pd

SPECIES_COLUMNS = ["species_id", "species_name", "domain"]
GROUP_COLUMNS = ["group_id"]
MAPPING_COLUMNS = ["group_id", "species_id", "protein_id"]

TABLE_COLUMNS: Dict[str, List[str]] = {
    "species": SPECIES_COLUMNS,
    "groups": GROUP_COLUMNS,
    "mappings": MAPPING_COLUMNS,
}

TAG_PATTERN = re.compile(r"^[A-Z][A-Z0-9]*$")
TAG_SEPARATOR = ":"


def validate_tag(tag: str) -> str:
    """Return tag unchanged, or raise ValueError if it cannot be used as a prefix."""
    if not isinstance(tag, str) or not TAG_PATTERN.match(tag):
        raise ValueError(
            f"Invalid source tag {tag!r}: must match {TAG_PATTERN.pattern}"
        )
    return tag


def prefix_group_id(tag: str, raw_id: str) -> str:
    """
    Prefix a raw ortholog-group ID with its source tag.

    Tags never contain the separator, so the first separator always ends
    the tag and split_group_id inverts this exactly.
    """
    validate_tag(tag)
    raw_id = str(raw_id)
    if not raw_id:
        raise ValueError("Empty ortholog group ID")
    return f"{tag}{TAG_SEPARATOR}{raw_id}"


def split_group_id(group_id: str) -> Tuple[str, str]:
    """Inverse of prefix_group_id: returns (tag, raw_id)."""
    tag, sep, raw_id = str(group_id).partition(TAG_SEPARATOR)
    if not sep or not TAG_PATTERN.match(tag) or not raw_id:
        raise ValueError(f"Group ID {group_id!r} does not carry a source tag")
    return tag, raw_id


def prefix_group_ids(tag: str, group_ids: pd.Series) -> pd.Series:
    """Vectorised prefix_group_id."""
    validate_tag(tag)
    raw = group_ids.astype(str)
    if (raw == "").any():
        raise ValueError("Empty ortholog group ID")
    return tag + TAG_SEPARATOR + raw


def check_prefix_injective(tags: Iterable[str]) -> None:
    """
    Verify that a set of source tags yields collision-free prefixed IDs.

    Raises:
        ValueError: If a tag is malformed or appears twice
    """
    seen = set()
    for tag in tags:
        validate_tag(tag)
        if tag in seen:
            raise ValueError(f"Duplicate source tag: {tag}")
        seen.add(tag)


def normalize_species(df: pd.DataFrame) -> pd.DataFrame:
    """Coerce a species table to canonical columns and dtypes."""
    df = df.copy()
    if "domain" not in df.columns:
        df["domain"] = ""
    missing = [c for c in SPECIES_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Species table missing columns: {missing}")
    df = df[SPECIES_COLUMNS].copy()
    df["species_id"] = pd.to_numeric(df["species_id"], errors="raise").astype("int64")
    df["species_name"] = df["species_name"].fillna("").astype(str)
    df["domain"] = df["domain"].fillna("").astype(str)
    return df.reset_index(drop=True)


def normalize_groups(df: pd.DataFrame) -> pd.DataFrame:
    """Coerce a group table to canonical columns and dtypes."""
    if "group_id" not in df.columns:
        raise ValueError("Group table missing column: group_id")
    df = df[GROUP_COLUMNS].copy()
    df["group_id"] = df["group_id"].astype(str)
    return df.reset_index(drop=True)


def normalize_mappings(df: pd.DataFrame) -> pd.DataFrame:
    """Coerce a mapping table to canonical columns and dtypes."""
    missing = [c for c in MAPPING_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Mapping table missing columns: {missing}")
    df = df[MAPPING_COLUMNS].copy()
    df["group_id"] = df["group_id"].astype(str)
    df["species_id"] = pd.to_numeric(df["species_id"], errors="raise").astype("int64")
    df["protein_id"] = df["protein_id"].astype(str)
    return df.reset_index(drop=True)


_NORMALIZERS = {
    "species": normalize_species,
    "groups": normalize_groups,
    "mappings": normalize_mappings,
}


def read_table(path: Union[str, Path], kind: str) -> pd.DataFrame:
    """
    Read a published table (tab-separated, with header).

    Args:
        path: File to read
        kind: One of "species", "groups", "mappings"

    Returns:
        DataFrame in canonical column order
    """
    if kind not in TABLE_COLUMNS:
        raise ValueError(f"Unknown table kind: {kind}")
    df = pd.read_csv(path, sep="\t", dtype=str, keep_default_na=False)
    return _NORMALIZERS[kind](df)


def write_table(df: pd.DataFrame, path: Union[str, Path], kind: str) -> Path:
    """Write a table in the published format."""
    if kind not in TABLE_COLUMNS:
        raise ValueError(f"Unknown table kind: {kind}")
    path = Path(path)
    df[TABLE_COLUMNS[kind]].to_csv(path, sep="\t", index=False)
    return path
