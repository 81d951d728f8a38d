"""
Edit Session - single owner of the form builder state.

The session holds one immutable SessionState snapshot:
  - tree: the authoritative form tree
  - data_schema / ui_layout_schema: projections of the tree
  - form_data: live values keyed by field id
  - selection: id of the node shown in the inspector (looked up on read)

Every transition computes a complete next snapshot and swaps it in with a
single assignment, so observers never see a tree whose schemas belong to a
different tree. Transitions return True when they committed a change and
False when the input degraded to a no-op.

Drag gestures add a little transient state (what is being dragged, which
drop target is hovered). That state never touches the snapshot; only a
successful drag_end commits.
"""

import copy
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional, Union

from formcraft.addressing import NodeAddress, parse_address, resolve_address
from formcraft.node_model import (
    KIND_FIELD,
    IdFactory,
    Node,
    collect_ids,
    field_nodes,
    find_node,
    make_node,
    make_root,
)
from formcraft.schema_projector import (
    project_data_schema,
    project_ui_layout_schema,
    prune_form_data,
    reconcile_form_data,
    seed_form_data,
)
from formcraft.tree_graph import check_tree_integrity, is_within_subtree
from formcraft.tree_mutator import delete_subtree, insert_new, move, rename

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NewComponentDrag:
    """A component dragged out of the palette."""
    kind: str
    field_type: str


@dataclass(frozen=True)
class ExistingNodeDrag:
    """A node already on the canvas being dragged somewhere else."""
    node_id: str


DragDescriptor = Union[NewComponentDrag, ExistingNodeDrag]


@dataclass(frozen=True)
class SessionState:
    """Immutable snapshot of everything the editor shows."""
    tree: Node
    data_schema: Dict[str, Any]
    ui_layout_schema: Dict[str, Any]
    form_data: Dict[str, Any]
    selection: Optional[str] = None


def initial_state() -> SessionState:
    root = make_root()
    return SessionState(
        tree=root,
        data_schema=project_data_schema(root),
        ui_layout_schema=project_ui_layout_schema(root),
        form_data={},
        selection=None,
    )


class EditSession:
    """
    Owns the form builder state and exposes the mutation API.

    Usage:
        session = EditSession()
        session.drop_new_component('container', 'column', 'root_vertical_layout')
        session.select(session.tree.children[0].id)
        session.rename_selected('Contact')
    """

    def __init__(self, strict_checks: bool = False, id_factory: Optional[IdFactory] = None):
        self._state = initial_state()
        self._ids = id_factory or IdFactory()
        self._strict_checks = strict_checks
        self._dragging: Optional[DragDescriptor] = None
        self._hovered: Optional[str] = None
        self._on_state_change: Optional[Callable[[SessionState], None]] = None
        self._on_hover_change: Optional[Callable[[Optional[str]], None]] = None

    # --- Read API ---

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def tree(self) -> Node:
        return self._state.tree

    @property
    def data_schema(self) -> Dict[str, Any]:
        return self._state.data_schema

    @property
    def ui_layout_schema(self) -> Dict[str, Any]:
        return self._state.ui_layout_schema

    @property
    def form_data(self) -> Dict[str, Any]:
        return self._state.form_data

    @property
    def selection(self) -> Optional[str]:
        return self._state.selection

    @property
    def selected_node(self) -> Optional[Node]:
        """The selected node in the current tree, or None if the id went stale."""
        if self._state.selection is None:
            return None
        return find_node(self._state.tree, self._state.selection)

    @property
    def dragging(self) -> Optional[DragDescriptor]:
        return self._dragging

    @property
    def hovered_address(self) -> Optional[str]:
        return self._hovered

    def snapshot(self) -> Dict[str, Any]:
        """Deep copies of the three derived artifacts, safe to hand to exporters."""
        return {
            'schema': copy.deepcopy(self._state.data_schema),
            'ui_schema': copy.deepcopy(self._state.ui_layout_schema),
            'form_data': copy.deepcopy(self._state.form_data),
        }

    def set_on_state_change(self, callback: Callable[[SessionState], None]):
        self._on_state_change = callback

    def set_on_hover_change(self, callback: Callable[[Optional[str]], None]):
        self._on_hover_change = callback

    # --- Commit ---

    def _commit(self, new_state: SessionState, action: str) -> bool:
        if self._strict_checks:
            check_tree_integrity(new_state.tree)
        self._state = new_state
        logger.info(f"Committed {action} ({len(new_state.data_schema['properties'])} fields)")
        if self._on_state_change:
            self._on_state_change(new_state)
        return True

    def _with_tree(self, new_tree: Node, **changes) -> SessionState:
        """Next state for new_tree with both schemas re-projected."""
        return replace(
            self._state,
            tree=new_tree,
            data_schema=project_data_schema(new_tree, previous=self._state.data_schema),
            ui_layout_schema=project_ui_layout_schema(new_tree),
            **changes,
        )

    # --- Transitions ---

    def drop_new_component(self, kind: str, field_type: str, raw_address) -> bool:
        """Create a node from the palette and insert it at the drop target."""
        tree = self._state.tree
        node_id = self._ids.next_id(taken=set(collect_ids(tree)))
        try:
            new_node = make_node(kind, field_type, node_id)
        except ValueError as e:
            logger.debug(f"Ignoring drop of unknown component: {e}")
            return False

        parent_id, index = resolve_address(tree, parse_address(raw_address))
        new_tree = insert_new(tree, new_node, parent_id, index)
        if new_tree is tree:
            return False

        form_data = self._state.form_data
        if kind == KIND_FIELD and not new_node.is_placeholder:
            form_data = seed_form_data(form_data, node_id)

        return self._commit(self._with_tree(new_tree, form_data=form_data),
                            f"drop_new {kind}/{field_type} -> {parent_id}[{index}]")

    def drop_existing_node(self, node_id: str, raw_address) -> bool:
        """
        Move an existing node to the drop target.

        Dropping a node onto itself, or anywhere inside its own subtree,
        is rejected as a no-op.
        """
        tree = self._state.tree
        if node_id == tree.id or find_node(tree, node_id) is None:
            logger.debug(f"Ignoring move of unknown or root node {node_id!r}")
            return False

        address = parse_address(raw_address)
        if isinstance(address, NodeAddress) and address.node_id == node_id:
            return False

        parent_id, index = resolve_address(tree, address, exclude_id=node_id)
        if is_within_subtree(tree, node_id, parent_id):
            logger.debug(f"Rejected move of {node_id!r} into its own subtree ({parent_id!r})")
            return False

        new_tree = move(tree, node_id, parent_id, index)
        if new_tree is tree:
            return False
        return self._commit(self._with_tree(new_tree), f"move {node_id} -> {parent_id}[{index}]")

    def rename_node(self, node_id: str, new_title: str) -> bool:
        tree = self._state.tree
        new_tree = rename(tree, node_id, new_title)
        if new_tree is tree:
            return False
        return self._commit(self._with_tree(new_tree), f"rename {node_id}")

    def rename_selected(self, new_title: str) -> bool:
        """Retitle the selected node; both schemas pick the new title up."""
        if self.selected_node is None:
            return False
        return self.rename_node(self._state.selection, new_title)

    def delete_node(self, node_id: str) -> bool:
        """Delete node_id and its subtree, scrubbing every artifact in one commit."""
        new_tree, removed = delete_subtree(self._state.tree, node_id)
        if not removed:
            return False

        selection = self._state.selection
        if selection in removed:
            selection = None

        next_state = self._with_tree(
            new_tree,
            form_data=reconcile_form_data(self._state.form_data, removed),
            selection=selection,
        )
        return self._commit(next_state, f"delete {node_id} ({len(removed)} nodes)")

    def delete_selected(self) -> bool:
        if self._state.selection is None:
            return False
        return self.delete_node(self._state.selection)

    def select(self, node_id: Optional[str]) -> bool:
        if node_id is not None and find_node(self._state.tree, node_id) is None:
            logger.debug(f"select: {node_id!r} not in tree, clearing selection")
            node_id = None
        if node_id == self._state.selection:
            return False
        return self._commit(replace(self._state, selection=node_id), f"select {node_id}")

    def clear_all(self) -> bool:
        """Back to a single empty root with empty artifacts."""
        fresh = initial_state()
        if self._state == fresh:
            return False
        return self._commit(fresh, "clear_all")

    def update_form_data(self, values: Dict[str, Any]) -> bool:
        """
        Write values entered in the live preview back into form data.
        Keys that are not reachable fields are ignored.
        """
        live_ids = {n.id for n in field_nodes(self._state.tree)}
        accepted = {k: v for k, v in values.items() if k in live_ids}
        if not accepted:
            return False

        merged = dict(self._state.form_data)
        merged.update(accepted)
        if merged == self._state.form_data:
            return False
        return self._commit(replace(self._state, form_data=merged), f"update_form_data {sorted(accepted)}")

    def load_tree(self, tree: Node) -> bool:
        """
        Replace the whole tree (e.g. a template), re-deriving every artifact.

        Raises:
            TreeIntegrityError if tree breaks the unique-id invariants.
        """
        check_tree_integrity(tree)
        selection = self._state.selection
        if selection is not None and find_node(tree, selection) is None:
            selection = None
        next_state = self._with_tree(
            tree,
            form_data=prune_form_data(self._state.form_data, tree),
            selection=selection,
        )
        return self._commit(next_state, "load_tree")

    # --- Gesture lifecycle ---

    def _set_hovered(self, raw: Optional[str]):
        if raw == self._hovered:
            return
        self._hovered = raw
        if self._on_hover_change:
            self._on_hover_change(raw)

    def drag_start(self, descriptor: DragDescriptor):
        self._dragging = descriptor
        self._set_hovered(None)

    def drag_over(self, raw_address: Optional[str]):
        if self._dragging is None:
            return
        self._set_hovered(None if raw_address is None else str(raw_address))

    def drag_end(self, raw_address: Optional[str]) -> bool:
        """Finish the gesture; commits only if something was dragged onto a target."""
        descriptor = self._dragging
        self._dragging = None
        self._set_hovered(None)

        if descriptor is None or raw_address is None:
            return False
        if isinstance(descriptor, NewComponentDrag):
            return self.drop_new_component(descriptor.kind, descriptor.field_type, raw_address)
        return self.drop_existing_node(descriptor.node_id, raw_address)

    def drag_cancel(self):
        """Abandon the gesture. The tree is not touched."""
        self._dragging = None
        self._set_hovered(None)
