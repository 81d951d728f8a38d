"""
Projections from the form tree to the derived artifacts.

Both schemas are always rebuilt from the full tree, never patched, so they
cannot drift from the tree they came from.

Data schema (JSON Schema shaped):
{
  "type": "object",
  "properties": {"field_1": {"type": "string", "title": "Name"}},
  "required": []
}

UI layout schema (JSON Forms shaped):
{
  "type": "VerticalLayout",
  "elements": [
    {"type": "HorizontalLayout", "label": "Row", "elements": [...]},
    {"type": "Control", "scope": "#/properties/field_1", "label": "Name",
     "options": {"format": "string"}}
  ]
}

Form data maps each field id to its value, or None when the field exists
but has not been filled in yet.
"""

from typing import Any, Dict, Iterable, List, Optional

from formcraft.node_model import DIRECTION_ROW, Node, field_nodes

LAYOUT_TYPES = {
    'column': 'VerticalLayout',
    'row': 'HorizontalLayout',
}

CONTROL_TYPE = 'Control'
SCOPE_PREFIX = '#/properties/'

# Explicit "no value yet" marker in form data
NO_VALUE = None


def control_scope(field_id: str) -> str:
    return f"{SCOPE_PREFIX}{field_id}"


def scope_to_field_id(scope: str) -> Optional[str]:
    if scope and scope.startswith(SCOPE_PREFIX):
        return scope[len(SCOPE_PREFIX):]
    return None


def project_data_schema(tree: Node, previous: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Build the data schema from every reachable field.

    Requiredness is not part of the tree, so `required` is carried over
    from the previous schema, minus ids that are no longer reachable.
    """
    properties = {}
    for node in field_nodes(tree):
        properties[node.id] = {
            'type': node.field_type,
            'title': node.title,
        }

    prior_required = (previous or {}).get('required', [])
    required = [fid for fid in prior_required if fid in properties]

    return {
        'type': 'object',
        'properties': properties,
        'required': required,
    }


def _project_element(node: Node) -> Dict[str, Any]:
    if node.is_container:
        return {
            'type': LAYOUT_TYPES.get(node.field_type, LAYOUT_TYPES['column']),
            'label': node.title,
            'elements': _project_children(node.children),
        }

    element = {
        'type': CONTROL_TYPE,
        'scope': control_scope(node.id),
        'label': node.title,
    }
    if node.field_type == 'string':
        element['options'] = {'format': 'string'}
    return element


def _project_children(children: Iterable[Node]) -> List[Dict[str, Any]]:
    return [_project_element(c) for c in children if not c.is_placeholder]


def project_ui_layout_schema(tree: Node) -> Dict[str, Any]:
    """Mirror the container structure; placeholders are left out entirely."""
    layout_type = 'HorizontalLayout' if tree.field_type == DIRECTION_ROW else 'VerticalLayout'
    return {
        'type': layout_type,
        'elements': _project_children(tree.children or ()),
    }


def reconcile_form_data(form_data: Dict[str, Any], removed_ids: Iterable[str]) -> Dict[str, Any]:
    """Copy of form_data without any of removed_ids."""
    removed = set(removed_ids)
    return {k: v for k, v in form_data.items() if k not in removed}


def seed_form_data(form_data: Dict[str, Any], field_id: str) -> Dict[str, Any]:
    """Copy of form_data with field_id present and set to NO_VALUE."""
    seeded = dict(form_data)
    seeded[field_id] = NO_VALUE
    return seeded


def prune_form_data(form_data: Dict[str, Any], tree: Node) -> Dict[str, Any]:
    """
    Fully reconcile form_data against tree: keep values of reachable
    fields, seed missing ones, drop everything else.
    """
    return {
        node.id: form_data.get(node.id, NO_VALUE)
        for node in field_nodes(tree)
    }
