"""
Drop-target addressing for the form editor.

The gesture layer identifies drop targets with loosely typed strings:

  "dropzone-{index}-{containerId}"   a gap between children of a container
  "{nodeId}"                         an existing node (direct drop)

Those strings are parsed once at the boundary into GapAddress / NodeAddress
and everything past that point works with the typed form.

Resolution never fails. Anything that cannot be resolved degrades to
"append to the root container" so a drop is never silently lost.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from formcraft.node_model import Node, find_node

logger = logging.getLogger(__name__)

DROPZONE_PREFIX = 'dropzone'


@dataclass(frozen=True)
class GapAddress:
    """Insertion slot `index` inside container `container_id` (0 = before first child)."""
    container_id: str
    index: int


@dataclass(frozen=True)
class NodeAddress:
    """A direct drop onto an existing node."""
    node_id: str


Address = Union[GapAddress, NodeAddress]


def parse_address(raw) -> Address:
    """
    Parse the gesture layer's string form into a typed address.

    The container id is everything after the second dash, so ids that
    themselves contain dashes survive. A dropzone string with a
    non-numeric index is treated as a node address and will fall back
    to root append on resolution.
    """
    text = '' if raw is None else str(raw)
    parts = text.split('-', 2)
    if len(parts) == 3 and parts[0] == DROPZONE_PREFIX and parts[2]:
        try:
            index = int(parts[1])
        except ValueError:
            logger.debug(f"Malformed dropzone index in address {text!r}")
            return NodeAddress(text)
        return GapAddress(container_id=parts[2], index=index)
    return NodeAddress(text)


def format_address(address: Address) -> str:
    """Inverse of parse_address, used when rendering drop zones."""
    if isinstance(address, GapAddress):
        return f"{DROPZONE_PREFIX}-{address.index}-{address.container_id}"
    return address.node_id


def gap_id(container_id: str, index: int) -> str:
    return format_address(GapAddress(container_id, index))


def _clamp(index: int, upper: int) -> int:
    return max(0, min(index, upper))


def _slot_after_removal(container: Node, index: int, exclude_id: Optional[str]) -> int:
    """
    Convert a slot counted on the visible list into a slot on the list with
    exclude_id already taken out.

    Removing a child shifts every later sibling down by one, so a slot past
    the removed child's position moves down by one as well.
    """
    children = container.children or ()
    index = _clamp(index, len(children))
    if exclude_id is None:
        return index
    for pos, child in enumerate(children):
        if child.id == exclude_id:
            return index - 1 if index > pos else index
    return index


def _child_count(container: Node, exclude_id: Optional[str]) -> int:
    children = container.children or ()
    return sum(1 for c in children if c.id != exclude_id)


def resolve_address(tree: Node, address: Address, exclude_id: Optional[str] = None) -> Tuple[str, int]:
    """
    Map an address to (destination container id, insertion index).

    Args:
        tree: Current root container
        address: Parsed drop target
        exclude_id: Id of the node being moved, if any. The returned index
            is then its position among the destination's children after it
            has been removed from its source.

    Returns:
        (container_id, index); the container is always a live container.
    """
    if isinstance(address, GapAddress):
        container = find_node(tree, address.container_id)
        if container is None or not container.is_container:
            logger.debug(f"Gap target {address.container_id!r} is not a container, using root")
            container = tree
        return container.id, _slot_after_removal(container, address.index, exclude_id)

    target = find_node(tree, address.node_id) if address.node_id else None
    if target is not None and target.is_container:
        return target.id, _child_count(target, exclude_id)

    if target is None:
        logger.debug(f"Drop target {address.node_id!r} not found, appending to root")
    return tree.id, _child_count(tree, exclude_id)


def resolve_raw(tree: Node, raw, exclude_id: Optional[str] = None) -> Tuple[str, int]:
    """Parse and resolve in one step."""
    return resolve_address(tree, parse_address(raw), exclude_id=exclude_id)
