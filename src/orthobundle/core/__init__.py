"""Core data model: tables, trees and bundles."""

from orthobundle.core.tables import (
    SPECIES_COLUMNS,
    GROUP_COLUMNS,
    MAPPING_COLUMNS,
    prefix_group_id,
    split_group_id,
    check_prefix_injective,
    read_table,
    write_table,
)
from orthobundle.core.trees import TreeStructure, TreeNode, load_tree
from orthobundle.core.validation import ValidationReport, validate_bundle
from orthobundle.core.bundle import OrthologBundle, BUNDLE_FILES

__all__ = [
    "SPECIES_COLUMNS",
    "GROUP_COLUMNS",
    "MAPPING_COLUMNS",
    "prefix_group_id",
    "split_group_id",
    "check_prefix_injective",
    "read_table",
    "write_table",
    "TreeStructure",
    "TreeNode",
    "load_tree",
    "ValidationReport",
    "validate_bundle",
    "OrthologBundle",
    "BUNDLE_FILES",
]
