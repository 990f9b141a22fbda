"""Base class for orthology database sources."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Union

import pandas as pd


def count_comment_lines(path: Union[str, Path], prefix: str = "#") -> int:
    """Number of leading lines starting with prefix."""
    n = 0
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            if not line.startswith(prefix):
                break
            n += 1
    return n


def read_delimited(
    path: Union[str, Path],
    columns: List[str],
    usecols: List[str],
    sep: str = "\t",
    comment_prefix: str = "#",
) -> pd.DataFrame:
    """
    Read a headerless (or #-headed) delimited dump with a fixed column order.

    Args:
        path: File to read
        columns: Full column order of the file
        usecols: Subset of columns to keep
        sep: Field delimiter
        comment_prefix: Leading lines starting with this are skipped

    Returns:
        DataFrame of strings restricted to usecols
    """
    skip = count_comment_lines(path, comment_prefix)
    df = pd.read_csv(
        path,
        sep=sep,
        header=None,
        names=columns,
        usecols=usecols,
        skiprows=skip,
        dtype=str,
        keep_default_na=False,
        quoting=3,  # csv.QUOTE_NONE; annotations contain stray quotes
    )
    return df


class SourceBase(ABC):
    """
    An orthology database that bundles can be built from.

    Subclasses know the file layout of one database's public dumps and
    turn them into canonical species and mapping tables. Group IDs are
    returned raw; the curation step prefixes them with the source tag.
    """

    #: Column order of the species dump
    species_columns: List[str] = []
    #: Column order of the group/mapping dump
    mapping_columns: List[str] = []

    @property
    @abstractmethod
    def name(self) -> str:
        """Source name used in catalogs and on the command line (e.g. 'string')."""
        pass

    @property
    @abstractmethod
    def tag(self) -> str:
        """Prefix for ortholog group IDs (e.g. 'STR')."""
        pass

    @property
    @abstractmethod
    def title(self) -> str:
        """Human-readable database name."""
        pass

    @abstractmethod
    def read_species(self, path: Union[str, Path]) -> pd.DataFrame:
        """
        Parse the species dump.

        Returns:
            DataFrame with species_id, species_name, domain
        """
        pass

    @abstractmethod
    def read_mappings(self, path: Union[str, Path], species: pd.DataFrame) -> pd.DataFrame:
        """
        Parse the ortholog-group membership dump.

        Args:
            path: Mapping dump
            species: Output of read_species, for resolving species codes

        Returns:
            DataFrame with group_id (raw), species_id, protein_id
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name}, tag={self.tag})"
