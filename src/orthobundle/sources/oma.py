"""OMA (Orthologous MAtrix) orthology dumps."""

import logging
import re
from pathlib import Path
from typing import Union

import pandas as pd

from orthobundle.sources.base import SourceBase, read_delimited

logger = logging.getLogger(__name__)

_MEMBER = re.compile(r"^([A-Z0-9]{5})(\d+)$")


class OmaSource(SourceBase):
    """
    OMA Browser (OMA groups).

    Files:
        oma-species.txt: code, taxon_id, scientific_name, genome_source, release
        oma-groups.txt: group_number, fingerprint, member, member, ...

    Group rows are wide: one line per group, members tab-separated after
    the fingerprint. Members are OMA IDs whose five-character prefix is the
    species code from oma-species.txt.
    """

    species_columns = ["code", "taxon_id", "scientific_name", "genome_source", "release"]
    mapping_columns = ["group_number", "fingerprint", "members"]

    @property
    def name(self) -> str:
        return "oma"

    @property
    def tag(self) -> str:
        return "OMA"

    @property
    def title(self) -> str:
        return "OMA Browser"

    def read_species_codes(self, path: Union[str, Path]) -> pd.DataFrame:
        """Species dump including the OMA code column."""
        return read_delimited(
            path,
            self.species_columns,
            usecols=["code", "taxon_id", "scientific_name"],
        )

    def read_species(self, path: Union[str, Path]) -> pd.DataFrame:
        df = self.read_species_codes(path)
        out = pd.DataFrame({
            "species_id": df["taxon_id"],
            "species_name": df["scientific_name"],
            "domain": "",
            "code": df["code"],
        })
        logger.info(f"Read {len(out)} OMA species from {path}")
        return out

    def read_mappings(self, path: Union[str, Path], species: pd.DataFrame) -> pd.DataFrame:
        if "code" not in species.columns:
            raise ValueError("OMA mappings need the species table from OmaSource.read_species")
        code_to_taxon = dict(zip(species["code"], species["species_id"]))

        rows = []
        unknown_codes = set()
        with open(path, "r", encoding="utf-8") as f:
            for line_no, line in enumerate(f, 1):
                if line.startswith("#") or not line.strip():
                    continue
                fields = line.rstrip("\n").split("\t")
                if len(fields) < 3:
                    raise ValueError(f"{path}:{line_no}: expected group, fingerprint and members")
                group = fields[0]
                for member in fields[2:]:
                    member = member.strip()
                    if not member:
                        continue
                    match = _MEMBER.match(member)
                    if match is None:
                        raise ValueError(f"{path}:{line_no}: malformed OMA protein ID {member!r}")
                    taxon = code_to_taxon.get(match.group(1))
                    if taxon is None:
                        unknown_codes.add(match.group(1))
                        continue
                    rows.append((group, taxon, member))

        if unknown_codes:
            logger.warning(
                f"Skipped members of {len(unknown_codes)} species codes absent from the species table"
            )
        out = pd.DataFrame(rows, columns=["group_id", "species_id", "protein_id"])
        logger.info(f"Read {len(out)} OMA protein mappings from {path}")
        return out
