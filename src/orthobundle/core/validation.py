"""Consistency checks between the four objects of a bundle."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

import numpy as np
import pandas as pd

from orthobundle.core.tables import TAG_SEPARATOR

if TYPE_CHECKING:
    from orthobundle.core.bundle import OrthologBundle

# Cap on offending IDs quoted per message
_MAX_EXAMPLES = 5


@dataclass
class ValidationReport:
    """
    Outcome of validate_bundle.

    Attributes:
        valid: True when errors is empty
        errors: Violated invariants
        warnings: Suspicious but legal findings
    """
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {"valid": self.valid, "errors": list(self.errors), "warnings": list(self.warnings)}


def _examples(values) -> str:
    values = sorted(str(v) for v in values)
    shown = ", ".join(values[:_MAX_EXAMPLES])
    if len(values) > _MAX_EXAMPLES:
        shown += f", ... ({len(values)} total)"
    return shown


def _duplicates(series: pd.Series) -> list:
    return series[series.duplicated()].unique().tolist()


def validate_bundle(bundle: "OrthologBundle", tag: Optional[str] = None) -> ValidationReport:
    """
    Check every data-contract invariant of a bundle.

    Args:
        bundle: Bundle to check
        tag: If given, every group ID must carry this source tag

    Returns:
        ValidationReport listing all violations (does not stop at the first)
    """
    report = ValidationReport()
    species = bundle.species
    groups = bundle.groups
    mappings = bundle.mappings
    tree = bundle.tree

    if species.empty:
        report.errors.append("Species table is empty")
    if groups.empty:
        report.errors.append("Ortholog group table is empty")
    if mappings.empty:
        report.errors.append("Protein mapping table is empty")

    dup_species = _duplicates(species["species_id"])
    if dup_species:
        report.errors.append(f"Duplicate species IDs: {_examples(dup_species)}")

    dup_groups = _duplicates(groups["group_id"])
    if dup_groups:
        report.errors.append(f"Duplicate ortholog group IDs: {_examples(dup_groups)}")

    dup_rows = mappings.duplicated(subset=["group_id", "species_id", "protein_id"])
    if dup_rows.any():
        report.errors.append(f"{int(dup_rows.sum())} duplicate protein mapping rows")

    species_ids = set(species["species_id"].tolist())
    group_ids = set(groups["group_id"].tolist())
    mapped_groups = set(mappings["group_id"].tolist())
    mapped_species = set(mappings["species_id"].tolist())

    unknown_groups = mapped_groups - group_ids
    if unknown_groups:
        report.errors.append(
            f"Mappings reference unknown ortholog groups: {_examples(unknown_groups)}"
        )
    unknown_species = mapped_species - species_ids
    if unknown_species:
        report.errors.append(
            f"Mappings reference unknown species: {_examples(unknown_species)}"
        )
    unreferenced = group_ids - mapped_groups
    if unreferenced:
        report.errors.append(
            f"Ortholog groups without any protein mapping: {_examples(unreferenced)}"
        )

    unmapped_species = species_ids - mapped_species
    if unmapped_species:
        report.warnings.append(
            f"{len(unmapped_species)} species have no protein mappings"
        )

    dup_tips = tree.duplicate_tip_names()
    if dup_tips:
        report.errors.append(f"Duplicate tree leaves: {_examples(dup_tips)}")

    leaf_set = tree.tip_name_set
    species_labels = {str(s) for s in species_ids}
    missing_leaves = species_labels - leaf_set
    if missing_leaves:
        report.errors.append(f"Species missing from tree: {_examples(missing_leaves)}")
    extra_leaves = leaf_set - species_labels
    if extra_leaves:
        report.errors.append(f"Tree leaves not in species table: {_examples(extra_leaves)}")

    branch_lengths = tree.branch_lengths
    if not np.all(np.isfinite(branch_lengths)):
        report.errors.append("Tree has non-finite branch lengths")
    elif np.any(branch_lengths < 0):
        report.errors.append("Tree has negative branch lengths")
    non_root = np.delete(branch_lengths, tree.root_index)
    if non_root.size and np.all(non_root == 0):
        report.warnings.append("Tree has no branch lengths")

    if tag is not None:
        expected = tag + TAG_SEPARATOR
        untagged = [g for g in group_ids if not str(g).startswith(expected)]
        if untagged:
            report.errors.append(
                f"Ortholog group IDs without source tag {tag!r}: {_examples(untagged)}"
            )

    return report
