"""
Pure structural edits on the form tree.

Every function takes the current root and returns a new root. Nodes on the
path from the root to the edit are rebuilt with dataclasses.replace; every
other subtree is reused by reference, so a no-op hands back the very same
tree object and renderers can skip redraws with an identity check.

Children are tuples. A relocation never splices a list that is also reachable
from the source or destination container: the node is first detached into a
new tree, and the insert runs against that new tree.
"""

import logging
from dataclasses import replace
from typing import Callable, FrozenSet, Optional, Tuple

from formcraft.node_model import Node, collect_ids, find_node, find_parent

logger = logging.getLogger(__name__)


def _clamp(index: int, upper: int) -> int:
    return max(0, min(index, upper))


def _update(tree: Node, node_id: str, fn: Callable[[Node], Node]) -> Tuple[Node, bool]:
    """
    Apply fn to the first node (depth-first) whose id is node_id.

    Returns (new_tree, found). Ancestors of the edited node are rebuilt,
    everything else is shared.
    """
    if tree.id == node_id:
        return fn(tree), True
    if not tree.is_container:
        return tree, False

    for pos, child in enumerate(tree.children):
        new_child, found = _update(child, node_id, fn)
        if found:
            if new_child is child:
                return tree, True
            children = tree.children[:pos] + (new_child,) + tree.children[pos + 1:]
            return replace(tree, children=children), True
    return tree, False


def _detach(container: Node, node_id: str) -> Tuple[Node, Optional[Node]]:
    """Remove node_id from below container. Returns (new_container, removed_node)."""
    for pos, child in enumerate(container.children or ()):
        if child.id == node_id:
            children = container.children[:pos] + container.children[pos + 1:]
            return replace(container, children=children), child
        if child.is_container:
            new_child, removed = _detach(child, node_id)
            if removed is not None:
                children = container.children[:pos] + (new_child,) + container.children[pos + 1:]
                return replace(container, children=children), removed
    return container, None


def _inserter(node: Node, index: Optional[int]) -> Callable[[Node], Node]:
    """Build an update fn inserting node at index (None = append) of a container."""
    def insert(container: Node) -> Node:
        children = container.children or ()
        pos = len(children) if index is None else _clamp(index, len(children))
        return replace(container, children=children[:pos] + (node,) + children[pos:])
    return insert


def insert_new(tree: Node, new_node: Node, parent_id: str, index: int) -> Node:
    """
    Insert a freshly created node as a child of parent_id at index.

    The index is clamped to [0, child count]. If parent_id is not a live
    container the node is appended to the root instead.
    """
    if find_node(tree, new_node.id) is not None:
        logger.warning(f"insert_new: id {new_node.id} already in tree, ignoring")
        return tree

    dest = find_node(tree, parent_id)
    if dest is None or not dest.is_container:
        logger.debug(f"insert_new: {parent_id!r} is not a container, appending to root")
        new_tree, _ = _update(tree, tree.id, _inserter(new_node, None))
        return new_tree

    new_tree, _ = _update(tree, dest.id, _inserter(new_node, index))
    return new_tree


def move(tree: Node, node_id: str, parent_id: str, index: int) -> Node:
    """
    Relocate node_id (with its subtree) under parent_id at index.

    index is the position the node occupies among the destination's
    children after it has been removed from its source. Within one
    container this is plain list-reorder semantics: [A, B, C] with A moved
    to index 1 gives [B, A, C].

    Returns the input tree unchanged when:
      - node_id is the root or is not in the tree
      - the destination is the node itself or one of its descendants
      - the node would end up where it already is
    A destination that is not a live container falls back to root append.
    """
    if node_id == tree.id:
        return tree

    node = find_node(tree, node_id)
    if node is None:
        logger.debug(f"move: node {node_id!r} not found")
        return tree

    dest = find_node(tree, parent_id)
    if dest is None or not dest.is_container:
        logger.debug(f"move: {parent_id!r} is not a container, appending to root")
        dest = tree
        index = None

    if dest.id in collect_ids(node):
        logger.debug(f"move: refusing to move {node_id!r} into its own subtree")
        return tree

    source = find_parent(tree, node_id)
    if source is not None and source.id == dest.id:
        current = next(pos for pos, c in enumerate(source.children) if c.id == node_id)
        last = len(source.children) - 1
        target = last if index is None else _clamp(index, last)
        if target == current:
            return tree

    detached, _ = _detach(tree, node_id)
    new_tree, _ = _update(detached, dest.id, _inserter(node, index))
    return new_tree


def rename(tree: Node, node_id: str, new_title: str) -> Node:
    """Set the title of the first node with node_id. Missing id is a no-op."""
    def retitle(node: Node) -> Node:
        if node.title == new_title:
            return node
        return replace(node, title=new_title)

    new_tree, found = _update(tree, node_id, retitle)
    if not found:
        logger.debug(f"rename: node {node_id!r} not found")
    return new_tree


def delete_subtree(tree: Node, node_id: str) -> Tuple[Node, FrozenSet[str]]:
    """
    Remove node_id and all its descendants.

    Returns (new_tree, removed_ids). The root cannot be deleted; deleting
    the root or a missing id returns (tree, frozenset()).
    """
    if node_id == tree.id:
        return tree, frozenset()

    new_tree, removed = _detach(tree, node_id)
    if removed is None:
        logger.debug(f"delete_subtree: node {node_id!r} not found")
        return tree, frozenset()
    return new_tree, frozenset(collect_ids(removed))
