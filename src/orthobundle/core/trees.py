"""
Phylogenetic tree handling for orthology bundles.

Trees are parsed with dendropy and flattened into a TreeStructure: an
indexed, backend-free view of nodes, tips and branch lengths that bundles
carry around and validate against their species tables.

Pruning and relabelling operate on dendropy trees, since both are only
needed while a bundle is being curated.
"""

from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import dendropy
import numpy as np
from dendropy.utility.error import DataParseError

_NEWICK_SPECIAL = set(" ()[]':;,\t")


@dataclass
class TreeNode:
    """
    Generic tree node representation.

    Attributes:
        id: Unique node identifier (postorder index)
        name: Node label (species ID for tips, optional for internal nodes)
        parent_id: ID of parent node (None for root)
        children_ids: List of child node IDs
        branch_length: Length of branch leading to this node
        is_tip: Whether this is a leaf node
    """
    id: int
    name: Optional[str] = None
    parent_id: Optional[int] = None
    children_ids: List[int] = field(default_factory=list)
    branch_length: float = 0.0
    is_tip: bool = False


@dataclass
class TreeStructure:
    """
    Rooted tree with branch lengths, flattened for inspection.

    Attributes:
        n_nodes: Total number of nodes
        n_tips: Number of tip nodes
        nodes: List of TreeNode objects, indexed by id
        tip_indices: Indices of tip nodes
        internal_indices: Indices of internal nodes
        root_index: Index of root node
        postorder: Node indices in postorder (tips first, root last)
        branch_lengths: Array of branch lengths indexed by node
        parent_indices: Array of parent indices (-1 for root)
        tip_names: List of tip names in order of tip_indices
    """
    n_nodes: int
    n_tips: int
    nodes: List[TreeNode]
    tip_indices: List[int]
    internal_indices: List[int]
    root_index: int
    postorder: List[int]
    branch_lengths: np.ndarray
    parent_indices: np.ndarray
    tip_names: List[str]

    @classmethod
    def from_newick(cls, newick: str) -> "TreeStructure":
        """
        Parse a Newick string into a TreeStructure.

        Args:
            newick: Newick format tree string

        Returns:
            TreeStructure instance

        Raises:
            ValueError: If the string is not valid Newick
        """
        return cls.from_dendropy(read_dendropy_tree(newick=newick))

    @classmethod
    def from_file(cls, filepath: Union[str, Path]) -> "TreeStructure":
        """Load tree from Newick file."""
        return cls.from_dendropy(read_dendropy_tree(path=filepath))

    @classmethod
    def from_dendropy(cls, tree: dendropy.Tree) -> "TreeStructure":
        """Flatten a dendropy tree."""
        nodes = []
        node_to_idx = {}

        for i, node in enumerate(tree.postorder_node_iter()):
            node_to_idx[node] = i
            if node.taxon is not None:
                name = node.taxon.label
            else:
                name = node.label
            nodes.append(TreeNode(
                id=i,
                name=name,
                branch_length=node.edge_length if node.edge_length else 0.0,
                is_tip=node.is_leaf(),
            ))

        for node in tree.postorder_node_iter():
            idx = node_to_idx[node]
            if node.parent_node is not None:
                nodes[idx].parent_id = node_to_idx[node.parent_node]
            for child in node.child_nodes():
                nodes[idx].children_ids.append(node_to_idx[child])

        return cls._build_from_nodes(nodes, node_to_idx[tree.seed_node])

    @classmethod
    def _build_from_nodes(cls, nodes: List[TreeNode], root_index: int) -> "TreeStructure":
        """Build TreeStructure from list of nodes."""
        nodes = sorted(nodes, key=lambda n: n.id)

        tip_indices = [n.id for n in nodes if n.is_tip]
        internal_indices = [n.id for n in nodes if not n.is_tip]

        branch_lengths = np.array([n.branch_length for n in nodes], dtype=float)
        parent_indices = np.array(
            [n.parent_id if n.parent_id is not None else -1 for n in nodes],
            dtype=np.int64,
        )
        postorder = cls._compute_postorder(nodes, root_index)
        tip_names = [nodes[i].name or f"tip_{i}" for i in tip_indices]

        return cls(
            n_nodes=len(nodes),
            n_tips=len(tip_indices),
            nodes=nodes,
            tip_indices=tip_indices,
            internal_indices=internal_indices,
            root_index=root_index,
            postorder=postorder,
            branch_lengths=branch_lengths,
            parent_indices=parent_indices,
            tip_names=tip_names,
        )

    @staticmethod
    def _compute_postorder(nodes: List[TreeNode], root_index: int) -> List[int]:
        """Compute postorder traversal without recursion (trees can be deep)."""
        result = []
        stack = [(root_index, False)]
        while stack:
            node_id, expanded = stack.pop()
            if expanded:
                result.append(node_id)
                continue
            stack.append((node_id, True))
            for child_id in reversed(nodes[node_id].children_ids):
                stack.append((child_id, False))
        return result

    @property
    def tip_name_set(self) -> set:
        return set(self.tip_names)

    def duplicate_tip_names(self) -> List[str]:
        """Tip names occurring more than once, sorted."""
        counts = Counter(self.tip_names)
        return sorted(name for name, n in counts.items() if n > 1)

    def get_tip_index_map(self) -> Dict[str, int]:
        """Map tip names to their indices."""
        return {name: idx for idx, name in zip(self.tip_indices, self.tip_names)}

    def to_newick(self, precision: Optional[int] = None) -> str:
        """
        Serialize to Newick.

        Labels containing Newick metacharacters are single-quoted with
        embedded quotes doubled. The root branch length is omitted.

        Args:
            precision: Significant digits for branch lengths. By default
                lengths are written in full so that parsing the output
                gives back the same floats.
        """
        def fmt_length(length: float) -> str:
            if precision is None:
                return repr(float(length))
            return f"{length:.{precision}g}"

        def fmt_label(label: Optional[str]) -> str:
            if not label:
                return ""
            if any(c in _NEWICK_SPECIAL for c in label):
                return "'" + label.replace("'", "''") + "'"
            return label

        parts: Dict[int, str] = {}
        for node_id in self.postorder:
            node = self.nodes[node_id]
            if node.children_ids:
                text = "(" + ",".join(parts.pop(c) for c in node.children_ids) + ")"
            else:
                text = ""
            text += fmt_label(node.name)
            if node_id != self.root_index:
                text += ":" + fmt_length(node.branch_length)
            parts[node_id] = text

        return parts[self.root_index] + ";"

    def write(self, filepath: Union[str, Path]) -> Path:
        """Write tree to a Newick file."""
        filepath = Path(filepath)
        filepath.write_text(self.to_newick() + "\n", encoding="utf-8")
        return filepath

    def __repr__(self) -> str:
        return f"TreeStructure({self.n_tips} tips, {self.n_nodes} nodes)"


def read_dendropy_tree(
    path: Optional[Union[str, Path]] = None,
    newick: Optional[str] = None,
) -> dendropy.Tree:
    """
    Read a rooted Newick tree with dendropy.

    Underscores in labels are preserved so that labels survive a round trip
    unchanged.

    Args:
        path: Newick file
        newick: Newick string (alternative to path)

    Returns:
        dendropy.Tree

    Raises:
        ValueError: On parse errors, including duplicate tip labels
    """
    if (path is None) == (newick is None):
        raise ValueError("Provide exactly one of path or newick")

    kwargs = dict(schema="newick", rooting="force-rooted", preserve_underscores=True)
    try:
        if path is not None:
            return dendropy.Tree.get(path=str(path), **kwargs)
        return dendropy.Tree.get(data=newick, **kwargs)
    except DataParseError as e:
        source = path if path is not None else "newick string"
        raise ValueError(f"Could not parse tree from {source}: {e}") from e


def tip_labels(tree: dendropy.Tree) -> List[str]:
    """Labels of all tips of a dendropy tree, in traversal order."""
    return [leaf.taxon.label for leaf in tree.leaf_node_iter() if leaf.taxon is not None]


def relabel_tips(tree: dendropy.Tree, mapping: Dict[str, str]) -> List[str]:
    """
    Rename tip taxa in place.

    Args:
        tree: dendropy tree to modify
        mapping: old label -> new label

    Returns:
        Labels that had no entry in mapping (left unchanged)
    """
    unmapped = []
    for leaf in tree.leaf_node_iter():
        if leaf.taxon is None:
            continue
        new_label = mapping.get(leaf.taxon.label)
        if new_label is None:
            unmapped.append(leaf.taxon.label)
        else:
            leaf.taxon.label = new_label
    return unmapped


def prune_to_tips(tree: dendropy.Tree, keep: Iterable[str]) -> dendropy.Tree:
    """
    Restrict a tree to the given tip labels, in place.

    Unifurcations left behind by pruning are suppressed so that the
    remaining branch lengths add up along each path.

    Args:
        tree: dendropy tree to prune
        keep: Tip labels to retain

    Returns:
        The pruned tree (same object)

    Raises:
        ValueError: If none of the labels are present
    """
    keep = set(keep)
    present = set(tip_labels(tree))
    retained = keep & present
    if not retained:
        raise ValueError("None of the requested tips are present in the tree")

    tree.retain_taxa_with_labels(retained)
    tree.suppress_unifurcations()
    return tree


def load_tree(filepath: Union[str, Path]) -> TreeStructure:
    """
    Load a phylogenetic tree from file.

    Args:
        filepath: Path to Newick file

    Returns:
        TreeStructure
    """
    return TreeStructure.from_file(filepath)
