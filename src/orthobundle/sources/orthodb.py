"""OrthoDB orthology dumps."""

import logging
from pathlib import Path
from typing import Optional, Union

import pandas as pd

from orthobundle.sources.base import SourceBase, read_delimited

logger = logging.getLogger(__name__)


class OrthoDBSource(SourceBase):
    """
    OrthoDB.

    Files:
        odb{version}_species.tab: taxid, orthodb_org_id, scientific_name,
            genome_asm_id, n_clustered_genes, n_ogs, mapping_type
        odb{version}_OG2genes.tab: og_id, gene_id

    Gene IDs are "{taxid}_{n}:{local_id}". OG IDs carry the clade they
    were computed at ("1234at2759" is a eukaryote-level group); pass
    level to keep a single clade.
    """

    species_columns = [
        "taxid",
        "orthodb_org_id",
        "scientific_name",
        "genome_asm_id",
        "n_clustered_genes",
        "n_ogs",
        "mapping_type",
    ]
    mapping_columns = ["og_id", "gene_id"]

    def __init__(self, level: Optional[str] = None):
        self.level = level

    @property
    def name(self) -> str:
        return "orthodb"

    @property
    def tag(self) -> str:
        return "ODB"

    @property
    def title(self) -> str:
        return "OrthoDB"

    def read_species(self, path: Union[str, Path]) -> pd.DataFrame:
        df = read_delimited(
            path,
            self.species_columns,
            usecols=["taxid", "scientific_name"],
        )
        out = pd.DataFrame({
            "species_id": df["taxid"],
            "species_name": df["scientific_name"],
            "domain": "",
        })
        logger.info(f"Read {len(out)} OrthoDB species from {path}")
        return out

    def read_mappings(self, path: Union[str, Path], species: pd.DataFrame) -> pd.DataFrame:
        df = read_delimited(path, self.mapping_columns, usecols=self.mapping_columns)
        if self.level is not None:
            df = df[df["og_id"].str.endswith(f"at{self.level}")]

        org = df["gene_id"].str.split(":", n=1).str[0]
        taxid = org.str.split("_", n=1).str[0]
        malformed = ~df["gene_id"].str.contains(":", regex=False) | ~taxid.str.isdigit()
        if malformed.any():
            bad = df.loc[malformed, "gene_id"].head(3).tolist()
            raise ValueError(f"OrthoDB gene IDs must look like '<taxid>_<n>:<id>': {bad}")

        out = pd.DataFrame({
            "group_id": df["og_id"],
            "species_id": taxid,
            "protein_id": df["gene_id"],
        }).reset_index(drop=True)
        logger.info(f"Read {len(out)} OrthoDB protein mappings from {path}")
        return out
