"""
orthobundle: ortholog-group, species and tree bundles for root inference.

Loads versioned snapshots of ortholog-group tables and species trees
built from STRING, OMA and OrthoDB, ready for evolutionary root analysis.
"""

__version__ = "0.1.0"

from orthobundle.config import HubConfig
from orthobundle.errors import (
    OrthobundleError,
    ResourceNotFoundError,
    CatalogError,
    ChecksumError,
    BundleValidationError,
)
from orthobundle.core.bundle import OrthologBundle
from orthobundle.core.trees import TreeStructure, load_tree
from orthobundle.core.validation import ValidationReport, validate_bundle
from orthobundle.hub import Catalog, fetch_bundle, fetch_record
from orthobundle.curation import build_bundle, publish_bundle
from orthobundle.merge import combine_mappings, combine_species
from orthobundle.rooting import RootingInput, prepare_rooting_input, run_root_inference
from orthobundle.sources import sources

__all__ = [
    "HubConfig",
    "OrthobundleError",
    "ResourceNotFoundError",
    "CatalogError",
    "ChecksumError",
    "BundleValidationError",
    "OrthologBundle",
    "TreeStructure",
    "load_tree",
    "ValidationReport",
    "validate_bundle",
    "Catalog",
    "fetch_bundle",
    "fetch_record",
    "build_bundle",
    "publish_bundle",
    "combine_mappings",
    "combine_species",
    "RootingInput",
    "prepare_rooting_input",
    "run_root_inference",
    "sources",
    "__version__",
]
