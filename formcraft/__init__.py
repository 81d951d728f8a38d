"""
FormCraft - visual form builder engine.

The package keeps a nested form layout and its three derived artifacts
(data schema, UI layout schema, form data) consistent under drag-and-drop
editing:
- node_model: immutable form tree nodes
- addressing: drop-target parsing and resolution
- tree_mutator: pure insert / move / rename / delete
- schema_projector: schema and form-data projections
- edit_session: the state owner driving all of the above

Usage:
    from formcraft import EditSession
    session = EditSession()
    session.drop_new_component('field', 'string', 'root_vertical_layout')
"""

__version__ = "0.3.0"

from formcraft.addressing import GapAddress, NodeAddress, parse_address, resolve_address
from formcraft.edit_session import (
    EditSession,
    ExistingNodeDrag,
    NewComponentDrag,
    SessionState,
)
from formcraft.node_model import Node, ROOT_ID
from formcraft.tree_graph import TreeIntegrityError

__all__ = [
    'EditSession',
    'SessionState',
    'NewComponentDrag',
    'ExistingNodeDrag',
    'Node',
    'ROOT_ID',
    'GapAddress',
    'NodeAddress',
    'parse_address',
    'resolve_address',
    'TreeIntegrityError',
]
