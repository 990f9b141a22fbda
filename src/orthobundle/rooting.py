"""
Handing a bundle to an external root-inference routine.

Root inference (assigning each ortholog group the tree node where it
most likely arose) is done by other software. This module only packages
a bundle into the inputs such a routine expects and collects its answer:

    >>> bundle = fetch_bundle("string", "11.0")
    >>> roots = run_root_inference(bundle, my_rooting_function, reference_species=9606)

The inferrer is any callable taking a RootingInput and returning a
mapping of group ID to root.
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Mapping, Optional

import pandas as pd

from orthobundle.core.bundle import OrthologBundle
from orthobundle.core.trees import TreeStructure

ROOTING_COLUMNS = ["protein_id", "group_id", "species_id"]


@dataclass(frozen=True)
class RootingInput:
    """
    Everything a root-inference routine needs.

    Attributes:
        mappings: protein_id, group_id, species_id rows for the selected groups
        tree: Species tree of the bundle
        reference_species: Species whose lineage roots are reported against
        groups: Selected group IDs, in request order
        source: Bundle source name
        version: Bundle version
    """
    mappings: pd.DataFrame
    tree: TreeStructure
    reference_species: int
    groups: List[str]
    source: str
    version: str

    @property
    def newick(self) -> str:
        return self.tree.to_newick()

    @property
    def species_ids(self) -> List[str]:
        """Tree tip labels, the species order used by most rooting tools."""
        return list(self.tree.tip_names)


RootInferrer = Callable[[RootingInput], Mapping[str, Any]]


def prepare_rooting_input(
    bundle: OrthologBundle,
    reference_species: int,
    groups: Optional[Iterable[str]] = None,
) -> RootingInput:
    """
    Select the data for a root-inference run.

    Args:
        bundle: Loaded bundle
        reference_species: Species ID to root against (e.g. 9606)
        groups: Group IDs to include (default: all groups of the bundle)

    Returns:
        RootingInput

    Raises:
        ValueError: If the reference species or any group is not in the bundle
    """
    reference_species = int(reference_species)
    if reference_species not in bundle.species_ids():
        raise ValueError(
            f"Reference species {reference_species} is not in the {bundle.source} {bundle.version} bundle"
        )

    if groups is None:
        selected = bundle.groups["group_id"].tolist()
    else:
        selected = list(dict.fromkeys(groups))
        known = bundle.group_ids()
        unknown = [g for g in selected if g not in known]
        if unknown:
            raise ValueError(f"Unknown ortholog groups: {unknown[:5]}")
        if not selected:
            raise ValueError("No ortholog groups selected")

    mappings = bundle.mappings[bundle.mappings["group_id"].isin(selected)]
    return RootingInput(
        mappings=mappings[ROOTING_COLUMNS].reset_index(drop=True),
        tree=bundle.tree,
        reference_species=reference_species,
        groups=selected,
        source=bundle.source,
        version=bundle.version,
    )


def run_root_inference(
    bundle: OrthologBundle,
    inferrer: RootInferrer,
    reference_species: int,
    groups: Optional[Iterable[str]] = None,
) -> pd.DataFrame:
    """
    Run an external root-inference routine on a bundle.

    Groups the inferrer leaves out get a missing root.

    Args:
        bundle: Loaded bundle
        inferrer: Callable(RootingInput) -> {group_id: root} (dict or Series)
        reference_species: Species ID to root against
        groups: Group IDs to include (default: all)

    Returns:
        DataFrame with group_id, root in request order

    Raises:
        ValueError: If the inferrer returns groups that were not requested
    """
    rooting_input = prepare_rooting_input(bundle, reference_species, groups)
    roots = inferrer(rooting_input)
    if roots is None:
        raise ValueError("Root inference returned nothing")
    # A Series iterates over values; key on its index like a dict
    roots = dict(roots.items())

    unexpected = set(roots) - set(rooting_input.groups)
    if unexpected:
        raise ValueError(f"Root inference returned unrequested groups: {sorted(unexpected)[:5]}")

    return pd.DataFrame({
        "group_id": rooting_input.groups,
        "root": [roots.get(g) for g in rooting_input.groups],
    })
