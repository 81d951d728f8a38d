"""
Node model for FormCraft.

A form is a tree of nodes. Containers hold an ordered tuple of children and a
layout direction; fields are leaves carrying a primitive value type.

Nodes are frozen dataclasses. Nothing outside the tree mutator builds a new
children tuple, and nothing anywhere edits one in place.

Node schema:
{
  "id": "field_1736856000000",
  "kind": "field",             # or "container"
  "field_type": "string",      # string | number | boolean | empty  (fields)
                               # row | column                       (containers)
  "title": "New string",
  "children": None             # tuple of Node on containers, None on fields
}
"""

import time
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple


KIND_CONTAINER = 'container'
KIND_FIELD = 'field'
VALID_KINDS = frozenset([KIND_CONTAINER, KIND_FIELD])

DIRECTION_ROW = 'row'
DIRECTION_COLUMN = 'column'
VALID_DIRECTIONS = frozenset([DIRECTION_ROW, DIRECTION_COLUMN])

VALID_VALUE_TYPES = frozenset(['string', 'number', 'boolean'])

# Reserved field type for the transient "drop here" placeholder.
# Never projected into any derived artifact.
PLACEHOLDER_TYPE = 'empty'

ROOT_ID = 'root_vertical_layout'
ROOT_TITLE = 'Form'


@dataclass(frozen=True)
class Node:
    """One element of the form tree."""
    id: str
    kind: str
    field_type: str
    title: str
    children: Optional[Tuple['Node', ...]] = None

    @property
    def is_container(self) -> bool:
        return self.kind == KIND_CONTAINER

    @property
    def is_placeholder(self) -> bool:
        return self.kind == KIND_FIELD and self.field_type == PLACEHOLDER_TYPE


def make_root() -> Node:
    """Create the empty root container every session starts from."""
    return Node(id=ROOT_ID, kind=KIND_CONTAINER, field_type=DIRECTION_COLUMN,
                title=ROOT_TITLE, children=())


def default_title(field_type: str) -> str:
    return f"New {field_type}"


def make_node(kind: str, field_type: str, node_id: str, title: Optional[str] = None) -> Node:
    """
    Create a new container or field node.

    Raises:
        ValueError if kind is unknown or field_type does not belong to kind.
    """
    if kind not in VALID_KINDS:
        raise ValueError(f"Invalid kind '{kind}'. Valid: {sorted(VALID_KINDS)}")

    if kind == KIND_CONTAINER:
        if field_type not in VALID_DIRECTIONS:
            raise ValueError(f"Invalid container direction '{field_type}'. Valid: {sorted(VALID_DIRECTIONS)}")
        return Node(id=node_id, kind=kind, field_type=field_type,
                    title=title if title is not None else default_title(field_type),
                    children=())

    if field_type not in VALID_VALUE_TYPES and field_type != PLACEHOLDER_TYPE:
        raise ValueError(f"Invalid field type '{field_type}'. Valid: {sorted(VALID_VALUE_TYPES)}")
    return Node(id=node_id, kind=kind, field_type=field_type,
                title=title if title is not None else default_title(field_type))


def make_placeholder(node_id: str, title: str = 'Drop components here') -> Node:
    return Node(id=node_id, kind=KIND_FIELD, field_type=PLACEHOLDER_TYPE, title=title)


class IdFactory:
    """
    Mints node ids of the form field_<milliseconds>.

    Two drops inside the same millisecond would collide, so the factory
    remembers the last stamp it handed out and bumps past it.
    """

    def __init__(self, prefix: str = 'field', clock=None):
        self.prefix = prefix
        self._clock = clock or time.time
        self._last = 0

    def next_id(self, taken: Optional[Set[str]] = None) -> str:
        stamp = max(int(self._clock() * 1000), self._last + 1)
        candidate = f"{self.prefix}_{stamp}"
        while taken and candidate in taken:
            stamp += 1
            candidate = f"{self.prefix}_{stamp}"
        self._last = stamp
        return candidate


# --- Lookup helpers ---

def iter_nodes(node: Node) -> Iterator[Node]:
    """Depth-first, pre-order walk including node itself."""
    yield node
    for child in node.children or ():
        yield from iter_nodes(child)


def find_node(tree: Node, node_id: str) -> Optional[Node]:
    """Return the first node with node_id (depth-first), or None."""
    for node in iter_nodes(tree):
        if node.id == node_id:
            return node
    return None


def find_parent(tree: Node, node_id: str) -> Optional[Node]:
    """Return the container directly holding node_id, or None (root or missing)."""
    for node in iter_nodes(tree):
        for child in node.children or ():
            if child.id == node_id:
                return node
    return None


def collect_ids(node: Node) -> List[str]:
    """Ids of node and all its descendants, pre-order."""
    return [n.id for n in iter_nodes(node)]


def field_nodes(tree: Node) -> List[Node]:
    """Every real (non-placeholder) field reachable from tree, in tree order."""
    return [n for n in iter_nodes(tree) if n.kind == KIND_FIELD and not n.is_placeholder]


# --- Plain dict conversion (export, fixtures) ---

def node_to_dict(node: Node) -> Dict[str, Any]:
    data = {
        'id': node.id,
        'kind': node.kind,
        'field_type': node.field_type,
        'title': node.title,
    }
    if node.is_container:
        data['children'] = [node_to_dict(c) for c in node.children]
    return data


def node_from_dict(data: Dict[str, Any]) -> Node:
    kind = data.get('kind', KIND_FIELD)
    children = None
    if kind == KIND_CONTAINER:
        children = tuple(node_from_dict(c) for c in data.get('children', []))
    return Node(
        id=str(data['id']),
        kind=kind,
        field_type=data.get('field_type', ''),
        title=data.get('title', ''),
        children=children,
    )
