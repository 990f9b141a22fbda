"""STRING / eggNOG orthology dumps."""

import logging
from pathlib import Path
from typing import Union

import pandas as pd

from orthobundle.sources.base import SourceBase, read_delimited

logger = logging.getLogger(__name__)


class StringSource(SourceBase):
    """
    STRING database (COG/NOG ortholog groups from eggNOG).

    Files:
        species.v{version}.txt: taxon_id, STRING_type, STRING_name_compact,
            official_name_NCBI, domain
        COG.mappings.v{version}.txt: protein, start_position, end_position,
            orthologous_group, protein_annotation

    Protein IDs are "{taxon_id}.{accession}"; the taxon is read from the
    part before the first dot.
    """

    species_columns = [
        "taxon_id",
        "STRING_type",
        "STRING_name_compact",
        "official_name_NCBI",
        "domain",
    ]
    mapping_columns = [
        "protein",
        "start_position",
        "end_position",
        "orthologous_group",
        "protein_annotation",
    ]

    @property
    def name(self) -> str:
        return "string"

    @property
    def tag(self) -> str:
        return "STR"

    @property
    def title(self) -> str:
        return "STRING"

    def read_species(self, path: Union[str, Path]) -> pd.DataFrame:
        df = read_delimited(
            path,
            self.species_columns,
            usecols=["taxon_id", "official_name_NCBI", "domain"],
        )
        df = df.rename(columns={
            "taxon_id": "species_id",
            "official_name_NCBI": "species_name",
        })
        logger.info(f"Read {len(df)} STRING species from {path}")
        return df[["species_id", "species_name", "domain"]]

    def read_mappings(self, path: Union[str, Path], species: pd.DataFrame) -> pd.DataFrame:
        df = read_delimited(
            path,
            self.mapping_columns,
            usecols=["protein", "orthologous_group"],
        )
        malformed = ~df["protein"].str.contains(".", regex=False)
        if malformed.any():
            bad = df.loc[malformed, "protein"].head(3).tolist()
            raise ValueError(f"STRING protein IDs must look like '<taxid>.<accession>': {bad}")
        taxa = df["protein"].str.split(".", n=1).str[0]
        out = pd.DataFrame({
            "group_id": df["orthologous_group"],
            "species_id": taxa,
            "protein_id": df["protein"],
        })
        logger.info(f"Read {len(out)} STRING protein mappings from {path}")
        return out
