"""The four-table bundle published per orthology source and version."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import pandas as pd

from orthobundle.core.tables import (
    normalize_groups,
    normalize_mappings,
    normalize_species,
    read_table,
    write_table,
)
from orthobundle.core.trees import TreeStructure, load_tree
from orthobundle.core.validation import ValidationReport, validate_bundle
from orthobundle.errors import BundleValidationError

BUNDLE_FILES: Dict[str, str] = {
    "species": "species.tsv",
    "groups": "groups.tsv",
    "mappings": "mappings.tsv",
    "tree": "tree.nwk",
}
METADATA_FILE = "bundle.json"


@dataclass(frozen=True)
class OrthologBundle:
    """
    Species table, ortholog groups, protein mappings and species tree.

    A bundle is a read-only snapshot of one database release. Tables are
    kept in canonical column order (see orthobundle.core.tables) and the
    tree's leaves are labelled with species IDs.

    Attributes:
        source: Source name (e.g. "string")
        version: Database release the snapshot was built from
        species: species_id, species_name, domain
        groups: group_id (source-tagged)
        mappings: group_id, species_id, protein_id
        tree: Rooted species tree
        record_id: Catalog ID when the bundle came from a hub
        metadata: Free-form provenance (title, description, created, ...)
    """
    source: str
    version: str
    species: pd.DataFrame
    groups: pd.DataFrame
    mappings: pd.DataFrame
    tree: TreeStructure
    record_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "species", normalize_species(self.species))
        object.__setattr__(self, "groups", normalize_groups(self.groups))
        object.__setattr__(self, "mappings", normalize_mappings(self.mappings))

    @property
    def n_species(self) -> int:
        return len(self.species)

    @property
    def n_groups(self) -> int:
        return len(self.groups)

    @property
    def n_mappings(self) -> int:
        return len(self.mappings)

    @property
    def is_empty(self) -> bool:
        return self.species.empty or self.groups.empty or self.mappings.empty

    def species_ids(self) -> set:
        return set(self.species["species_id"].tolist())

    def group_ids(self) -> set:
        return set(self.groups["group_id"].tolist())

    def domains(self) -> set:
        """Taxonomic domains represented in the species table."""
        return set(self.species["domain"].tolist())

    def report(self, tag: Optional[str] = None) -> ValidationReport:
        """Run all consistency checks without raising."""
        return validate_bundle(self, tag=tag)

    def validate(self, tag: Optional[str] = None) -> "OrthologBundle":
        """
        Raise if any invariant is violated.

        Returns:
            self, so calls can be chained

        Raises:
            BundleValidationError
        """
        report = self.report(tag=tag)
        if not report.valid:
            raise BundleValidationError(report.errors, context=f"{self.source} {self.version}")
        return self

    def summary(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "version": self.version,
            "record_id": self.record_id,
            "n_species": self.n_species,
            "n_groups": self.n_groups,
            "n_mappings": self.n_mappings,
            "n_tips": self.tree.n_tips,
        }

    def save(self, directory: Union[str, Path]) -> Dict[str, Path]:
        """
        Write the bundle in the published layout.

        Args:
            directory: Target directory (created if needed)

        Returns:
            Mapping of table name to written path (tree included)
        """
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)

        paths = {}
        for kind in ("species", "groups", "mappings"):
            paths[kind] = write_table(getattr(self, kind), directory / BUNDLE_FILES[kind], kind)
        paths["tree"] = self.tree.write(directory / BUNDLE_FILES["tree"])

        meta = {"source": self.source, "version": self.version, **self.metadata}
        if self.record_id:
            meta["record_id"] = self.record_id
        (directory / METADATA_FILE).write_text(json.dumps(meta, indent=2) + "\n", encoding="utf-8")
        return paths

    @classmethod
    def from_files(
        cls,
        paths: Dict[str, Union[str, Path]],
        source: str,
        version: str,
        record_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "OrthologBundle":
        """
        Load a bundle from its four files.

        Args:
            paths: Keys "species", "groups", "mappings", "tree"
            source: Source name
            version: Database version
        """
        missing = [k for k in BUNDLE_FILES if k not in paths]
        if missing:
            raise ValueError(f"Missing bundle files: {missing}")
        return cls(
            source=source,
            version=version,
            species=read_table(paths["species"], "species"),
            groups=read_table(paths["groups"], "groups"),
            mappings=read_table(paths["mappings"], "mappings"),
            tree=load_tree(paths["tree"]),
            record_id=record_id,
            metadata=dict(metadata or {}),
        )

    @classmethod
    def load(cls, directory: Union[str, Path]) -> "OrthologBundle":
        """Load a bundle saved with save()."""
        directory = Path(directory)
        meta_path = directory / METADATA_FILE
        if not meta_path.exists():
            raise FileNotFoundError(f"No {METADATA_FILE} in {directory}")
        meta = json.loads(meta_path.read_text(encoding="utf-8"))
        source = meta.pop("source")
        version = meta.pop("version")
        record_id = meta.pop("record_id", None)
        paths = {kind: directory / name for kind, name in BUNDLE_FILES.items()}
        return cls.from_files(paths, source, version, record_id=record_id, metadata=meta)

    def __repr__(self) -> str:
        return (
            f"OrthologBundle(source={self.source!r}, version={self.version!r}, "
            f"species={self.n_species}, groups={self.n_groups}, mappings={self.n_mappings})"
        )
