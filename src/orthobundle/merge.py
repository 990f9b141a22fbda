"""Stacking tables from bundles of different sources."""

from typing import Iterable

import pandas as pd

from orthobundle.core.bundle import OrthologBundle

COMBINED_COLUMNS = ["source", "group_id", "species_id", "protein_id"]


def combine_mappings(bundles: Iterable[OrthologBundle]) -> pd.DataFrame:
    """
    Concatenate protein mappings of several bundles.

    Group IDs are already source-tagged, so rows from different databases
    stay distinguishable; a source column is added for convenience.

    Args:
        bundles: Bundles from distinct sources

    Returns:
        DataFrame with source, group_id, species_id, protein_id

    Raises:
        ValueError: If two bundles share a source or a group ID
    """
    frames = []
    owner = {}
    seen_sources = set()
    for bundle in bundles:
        if bundle.source in seen_sources:
            raise ValueError(f"More than one bundle from source '{bundle.source}'")
        seen_sources.add(bundle.source)
        for group_id in bundle.groups["group_id"]:
            if group_id in owner and owner[group_id] != bundle.source:
                raise ValueError(
                    f"Group ID {group_id} occurs in both {owner[group_id]} and {bundle.source}"
                )
            owner[group_id] = bundle.source
        df = bundle.mappings.copy()
        df.insert(0, "source", bundle.source)
        frames.append(df)

    if not frames:
        return pd.DataFrame(columns=COMBINED_COLUMNS)
    return pd.concat(frames, ignore_index=True)[COMBINED_COLUMNS]


def combine_species(bundles: Iterable[OrthologBundle]) -> pd.DataFrame:
    """
    Union of species tables, one row per species with the sources listing it.

    Returns:
        DataFrame with species_id, species_name, sources (comma-separated)
    """
    frames = []
    for bundle in bundles:
        df = bundle.species[["species_id", "species_name"]].copy()
        df["source"] = bundle.source
        frames.append(df)
    if not frames:
        return pd.DataFrame(columns=["species_id", "species_name", "sources"])
    stacked = pd.concat(frames, ignore_index=True)
    return (
        stacked.groupby("species_id", sort=True)
        .agg(species_name=("species_name", "first"), sources=("source", lambda s: ",".join(sorted(set(s)))))
        .reset_index()
    )
