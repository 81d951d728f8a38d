"""
NetworkX view of the form tree.

The tree itself is the source of truth; this module only derives a DiGraph
(parent -> child edges, child order kept in an edge attribute) for
structural questions: subtree membership for the drag cycle guard, and the
integrity check that asserts the tree is a proper arborescence.
"""

from typing import Optional, Set

import networkx as nx

from formcraft.node_model import Node


class TreeIntegrityError(Exception):
    """Raised when a tree breaks the unique-id / single-parent invariants."""
    def __init__(self, message: str, node_id: Optional[str] = None, reason: str = ""):
        self.node_id = node_id
        self.reason = reason
        super().__init__(message)


def build_tree_graph(tree: Node) -> nx.DiGraph:
    """
    Build a directed graph with one vertex per node and an edge from each
    container to each of its children.

    Vertex attributes: kind, field_type, title.
    Edge attribute: order (position among siblings).
    """
    G = nx.DiGraph()
    stack = [tree]
    G.add_node(tree.id, kind=tree.kind, field_type=tree.field_type, title=tree.title)
    while stack:
        node = stack.pop()
        for order, child in enumerate(node.children or ()):
            G.add_node(child.id, kind=child.kind, field_type=child.field_type, title=child.title)
            G.add_edge(node.id, child.id, order=order)
            stack.append(child)
    return G


def subtree_ids(tree: Node, node_id: str) -> Set[str]:
    """node_id plus all of its descendants; empty set if node_id is absent."""
    G = build_tree_graph(tree)
    if node_id not in G:
        return set()
    return {node_id} | nx.descendants(G, node_id)


def is_within_subtree(tree: Node, ancestor_id: str, candidate_id: str) -> bool:
    """True if candidate_id is ancestor_id itself or one of its descendants."""
    return candidate_id in subtree_ids(tree, ancestor_id)


def check_tree_integrity(tree: Node) -> None:
    """
    Assert that every id in tree is unique and that the structure is a
    single rooted tree.

    Raises:
        TreeIntegrityError describing the first violation found.
    """
    seen = set()
    total = 0
    stack = [tree]
    while stack:
        node = stack.pop()
        total += 1
        if node.id in seen:
            raise TreeIntegrityError(
                f"Duplicate node id '{node.id}'", node_id=node.id, reason="duplicate_id"
            )
        seen.add(node.id)
        if node.is_container and node.children is None:
            raise TreeIntegrityError(
                f"Container '{node.id}' has no children sequence", node_id=node.id, reason="missing_children"
            )
        if not node.is_container and node.children is not None:
            raise TreeIntegrityError(
                f"Field '{node.id}' carries children", node_id=node.id, reason="field_with_children"
            )
        stack.extend(node.children or ())

    G = build_tree_graph(tree)
    if G.number_of_nodes() != total or not nx.is_arborescence(G):
        raise TreeIntegrityError(
            f"Tree rooted at '{tree.id}' is not an arborescence", node_id=tree.id, reason="not_a_tree"
        )
