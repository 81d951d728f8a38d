"""
Component palette for FormCraft.

The palette lists what can be dragged onto the canvas. The built-in palette
matches the classic set (two layouts, three input types); a palette.yaml
file can replace it:

    layouts:
      - key: vertical
        label: Vertical Layout
        kind: container
        field_type: column
        icon: view_agenda
    fields:
      - key: text
        label: Text Input
        kind: field
        field_type: string
        icon: text_fields

Invalid entries are skipped and reported in `validation_errors`, they never
stop the editor from starting.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from formcraft.node_model import KIND_CONTAINER, KIND_FIELD, VALID_DIRECTIONS, VALID_VALUE_TYPES

logger = logging.getLogger(__name__)

SECTIONS = ('layouts', 'fields')

DEFAULT_PALETTE = {
    'layouts': [
        {'key': 'vertical', 'label': 'Vertical Layout', 'kind': KIND_CONTAINER,
         'field_type': 'column', 'icon': 'view_agenda'},
        {'key': 'horizontal', 'label': 'Horizontal Layout', 'kind': KIND_CONTAINER,
         'field_type': 'row', 'icon': 'view_column'},
    ],
    'fields': [
        {'key': 'text', 'label': 'Text Input', 'kind': KIND_FIELD,
         'field_type': 'string', 'icon': 'text_fields'},
        {'key': 'number', 'label': 'Number Input', 'kind': KIND_FIELD,
         'field_type': 'number', 'icon': 'pin'},
        {'key': 'checkbox', 'label': 'Checkbox', 'kind': KIND_FIELD,
         'field_type': 'boolean', 'icon': 'check_box'},
    ],
}


@dataclass(frozen=True)
class PaletteItem:
    key: str
    label: str
    kind: str
    field_type: str
    icon: str = 'widgets'
    section: str = 'fields'


def _validate_item(item: Any, section: str, index: int) -> List[str]:
    """Validate a single palette entry. Returns list of error messages."""
    if not isinstance(item, dict):
        return [f"{section}[{index}]: entry must be a mapping"]

    errors = []
    key = item.get('key')
    if not key:
        return [f"{section}[{index}]: missing required 'key'"]

    if not re.match(r'^[a-z][a-z0-9_]*$', str(key)):
        errors.append(f"Item '{key}': key must be lowercase, start with a letter, use only a-z, 0-9, _")

    kind = item.get('kind')
    field_type = item.get('field_type')
    if kind == KIND_CONTAINER:
        if field_type not in VALID_DIRECTIONS:
            errors.append(f"Item '{key}': container field_type must be one of {sorted(VALID_DIRECTIONS)}")
    elif kind == KIND_FIELD:
        if field_type not in VALID_VALUE_TYPES:
            errors.append(f"Item '{key}': field field_type must be one of {sorted(VALID_VALUE_TYPES)}")
    else:
        errors.append(f"Item '{key}': invalid kind '{kind}' (must be: {KIND_CONTAINER}, {KIND_FIELD})")

    if 'label' in item and not isinstance(item['label'], str):
        errors.append(f"Item '{key}': 'label' must be a string")

    return errors


def parse_palette(definition: Any) -> Dict[str, Any]:
    """
    Validate a palette definition and build PaletteItems.

    Returns dict with:
      - items: list of valid PaletteItem in definition order
      - validation_errors: list of messages for skipped entries
    """
    if not isinstance(definition, dict):
        return {'items': [], 'validation_errors': ["Palette must be a mapping with 'layouts' and 'fields'"]}

    items: List[PaletteItem] = []
    errors: List[str] = []
    seen_keys = set()

    for section in SECTIONS:
        entries = definition.get(section, [])
        if not isinstance(entries, list):
            errors.append(f"'{section}' must be a list")
            continue

        for i, entry in enumerate(entries):
            entry_errors = _validate_item(entry, section, i)
            key = entry.get('key') if isinstance(entry, dict) else None
            if key and key in seen_keys:
                entry_errors.append(f"Duplicate item key '{key}'")
            if entry_errors:
                errors.extend(entry_errors)
                continue

            seen_keys.add(key)
            items.append(PaletteItem(
                key=key,
                label=entry.get('label', key.replace('_', ' ').title()),
                kind=entry['kind'],
                field_type=entry['field_type'],
                icon=entry.get('icon', 'widgets'),
                section=section,
            ))

    return {'items': items, 'validation_errors': errors}


class Palette:
    """Loaded palette with lookup by key."""

    def __init__(self, items: List[PaletteItem], validation_errors: Optional[List[str]] = None):
        self.items = list(items)
        self.validation_errors = list(validation_errors or [])
        self._by_key = {item.key: item for item in self.items}

    def get(self, key: str) -> Optional[PaletteItem]:
        return self._by_key.get(key)

    def section(self, name: str) -> List[PaletteItem]:
        return [item for item in self.items if item.section == name]

    @property
    def layouts(self) -> List[PaletteItem]:
        return self.section('layouts')

    @property
    def fields(self) -> List[PaletteItem]:
        return self.section('fields')


def default_palette() -> Palette:
    parsed = parse_palette(DEFAULT_PALETTE)
    return Palette(parsed['items'], parsed['validation_errors'])


def load_palette(path: Optional[Path] = None) -> Palette:
    """
    Load a palette from a YAML file, falling back to the built-in palette
    if path is None, missing, or not valid YAML.
    """
    if path is None:
        return default_palette()

    path = Path(path)
    if not path.exists():
        logger.warning(f"Palette file {path} not found, using built-in palette")
        return default_palette()

    try:
        with open(path, 'r', encoding='utf-8') as f:
            definition = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.warning(f"Invalid YAML in {path}: {e}")
        return default_palette()

    parsed = parse_palette(definition)
    for error in parsed['validation_errors']:
        logger.warning(f"Palette {path.name}: {error}")

    if not parsed['items']:
        logger.warning(f"Palette {path} defines no usable items, using built-in palette")
        fallback = default_palette()
        fallback.validation_errors = parsed['validation_errors']
        return fallback

    return Palette(parsed['items'], parsed['validation_errors'])
