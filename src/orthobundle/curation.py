"""
Building and publishing bundle snapshots.

Curation turns one database release (species dump + ortholog-group dump)
and a reference time tree into a validated OrthologBundle:

1. Parse the dumps with the source's parsers
2. Optionally keep one taxonomic domain
3. Label tree tips with species IDs (from names if needed)
4. Prune the tree to species present in both the table and the tree
5. Prefix group IDs with the source tag and derive the group table

Publishing writes the snapshot into a hub directory and registers it in
the hub's catalog. Published snapshots are never overwritten.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal, Optional, Union

import pandas as pd

from orthobundle.core.bundle import BUNDLE_FILES, OrthologBundle
from orthobundle.core.tables import normalize_mappings, normalize_species, prefix_group_ids
from orthobundle.core.trees import (
    TreeStructure,
    prune_to_tips,
    read_dendropy_tree,
    relabel_tips,
    tip_labels,
)
from orthobundle.hub.catalog import Catalog, CatalogRecord, FileEntry
from orthobundle.hub.fetch import sha256sum
from orthobundle.sources.base import SourceBase
from orthobundle.sources.registry import SourceRegistry, sources as default_registry

logger = logging.getLogger(__name__)


def _normalize_name(name: str) -> str:
    return " ".join(str(name).replace("_", " ").split()).lower()


def _resolve_source(source: Union[str, SourceBase], registry: Optional[SourceRegistry]) -> SourceBase:
    if isinstance(source, SourceBase):
        return source
    return (registry or default_registry).load(source)


def build_bundle(
    source: Union[str, SourceBase],
    species_file: Union[str, Path],
    mappings_file: Union[str, Path],
    tree_file: Union[str, Path],
    version: str,
    *,
    label_by: Literal["id", "name"] = "id",
    domain: Optional[str] = None,
    registry: Optional[SourceRegistry] = None,
) -> OrthologBundle:
    """
    Build a validated bundle from raw database dumps and a reference tree.

    Args:
        source: Source name or instance
        species_file: Species dump in the source's format
        mappings_file: Ortholog-group dump in the source's format
        tree_file: Newick reference tree (e.g. a TimeTree export)
        version: Database release the dumps belong to
        label_by: Whether tree tips are species IDs ("id") or scientific
            names ("name", underscores and case ignored)
        domain: Keep only species of this taxonomic domain (e.g. "Eukaryota")
        registry: Registry for resolving source names

    Returns:
        OrthologBundle

    Raises:
        ValueError: On malformed dumps or when no species survive
        BundleValidationError: If the result violates an invariant
    """
    src = _resolve_source(source, registry)
    logger.info(f"Building {src.name} {version} bundle")

    raw_species = src.read_species(species_file)
    raw_mappings = src.read_mappings(mappings_file, raw_species)

    species = normalize_species(raw_species).drop_duplicates()
    if domain is not None:
        if (species["domain"] == "").all():
            raise ValueError(f"{src.title} species dump carries no domain to filter on")
        species = species[species["domain"] == domain]
        logger.info(f"Kept {len(species)} species in domain {domain}")
        if species.empty:
            raise ValueError(f"No {src.title} species in domain {domain}")

    tree = read_dendropy_tree(path=tree_file)
    if label_by == "name":
        name_to_id = {
            _normalize_name(name): str(sid)
            for sid, name in zip(species["species_id"], species["species_name"])
        }
        mapping = {label: name_to_id[_normalize_name(label)]
                   for label in tip_labels(tree)
                   if _normalize_name(label) in name_to_id}
        unmatched = relabel_tips(tree, mapping)
        if unmatched:
            logger.info(f"{len(unmatched)} tree tips did not match a species name")
    elif label_by != "id":
        raise ValueError(f"label_by must be 'id' or 'name', got {label_by!r}")

    species_labels = set(species["species_id"].astype(str))
    leaves = set(tip_labels(tree))
    keep = species_labels & leaves
    dropped = species_labels - leaves
    if dropped:
        logger.warning(f"Dropping {len(dropped)} species absent from the reference tree")
    if not keep:
        raise ValueError("No species of the dump appear in the reference tree")

    prune_to_tips(tree, keep)
    species = species[species["species_id"].astype(str).isin(keep)]
    species = species.sort_values("species_id").reset_index(drop=True)

    mappings = normalize_mappings(raw_mappings)
    mappings = mappings[mappings["species_id"].isin(species["species_id"])]
    n_dups = int(mappings.duplicated().sum())
    if n_dups:
        logger.info(f"Removing {n_dups} duplicate mapping rows")
    mappings = mappings.drop_duplicates().copy()
    mappings["group_id"] = prefix_group_ids(src.tag, mappings["group_id"])
    mappings = mappings.sort_values(["group_id", "species_id", "protein_id"]).reset_index(drop=True)

    groups = pd.DataFrame({"group_id": sorted(mappings["group_id"].unique())})

    bundle = OrthologBundle(
        source=src.name,
        version=str(version),
        species=species,
        groups=groups,
        mappings=mappings,
        tree=TreeStructure.from_dendropy(tree),
    )
    bundle.validate(tag=src.tag)
    logger.info(
        f"Built {src.name} {version}: {bundle.n_species} species, "
        f"{bundle.n_groups} groups, {bundle.n_mappings} mappings"
    )
    return bundle


def publish_bundle(
    bundle: OrthologBundle,
    hub_dir: Union[str, Path],
    *,
    title: Optional[str] = None,
    description: Optional[str] = None,
    registry: Optional[SourceRegistry] = None,
) -> CatalogRecord:
    """
    Write a bundle snapshot into a hub and register it in the catalog.

    The snapshot goes to hub_dir/<source>/<version>/ and catalog.json gets
    a new record with the next OBH identifier and per-file sha256.

    Args:
        bundle: Bundle to publish (validated before writing)
        hub_dir: Hub directory (created if needed)
        title: Catalog title (default "<Source title> <version>")
        description: Catalog description

    Returns:
        The new CatalogRecord

    Raises:
        FileExistsError: If this source/version is already published
        BundleValidationError: If the bundle is inconsistent
    """
    hub_dir = Path(hub_dir)
    src = _resolve_source(bundle.source, registry)
    bundle.validate(tag=src.tag)

    catalog = Catalog.open_hub(hub_dir)
    if bundle.version in catalog.versions(bundle.source):
        existing = catalog.find(bundle.source, bundle.version)
        raise FileExistsError(
            f"{bundle.source} {bundle.version} is already published as {existing.id}"
        )

    rel_dir = Path(bundle.source) / bundle.version
    target = hub_dir / rel_dir
    if target.exists():
        raise FileExistsError(f"Snapshot directory {target} already exists")

    hub_dir.mkdir(parents=True, exist_ok=True)
    paths = bundle.save(target)
    files = {
        kind: FileEntry(
            path=(rel_dir / BUNDLE_FILES[kind]).as_posix(),
            sha256=sha256sum(paths[kind]),
        )
        for kind in BUNDLE_FILES
    }

    record = CatalogRecord(
        id=catalog.next_id(),
        source=bundle.source,
        version=bundle.version,
        files=files,
        title=title or f"{src.title} {bundle.version}",
        description=description or "",
        created=datetime.now(timezone.utc).isoformat(timespec="seconds"),
        n_species=bundle.n_species,
        n_groups=bundle.n_groups,
        n_mappings=bundle.n_mappings,
    )
    catalog.add(record)
    catalog.save()
    logger.info(f"Published {bundle.source} {bundle.version} as {record.id} in {hub_dir}")
    return record
