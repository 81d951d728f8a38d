"""
NiceGUI rendering for the form builder.

Everything here is presentation: it draws the session state and forwards
HTML5 drag events and inspector input to the EditSession. No tree logic
lives in this module.
"""

from typing import Any, Callable, Dict, List, Optional

from nicegui import ui

from formcraft.addressing import gap_id
from formcraft.edit_session import EditSession, ExistingNodeDrag, NewComponentDrag
from formcraft.export import ARTIFACT_TITLES, ARTIFACTS, export_artifact
from formcraft.node_model import DIRECTION_ROW, Node
from formcraft.palette import Palette, PaletteItem
from formcraft.schema_projector import CONTROL_TYPE, scope_to_field_id

ZONE_IDLE = 'border-2 border-dashed border-gray-300 bg-gray-50 rounded'
ZONE_ACTIVE = 'border-2 border-dashed border-blue-500 bg-blue-50 rounded'


def render_palette(palette: Palette, session: EditSession) -> None:
    """Draggable palette entries, grouped into layouts and fields."""

    def palette_entry(item: PaletteItem):
        card = ui.card().props('draggable').classes('w-full p-2 cursor-move hover:border-blue-500')
        card.on('dragstart', lambda _: session.drag_start(NewComponentDrag(item.kind, item.field_type)))
        card.on('dragend', lambda _: session.drag_cancel())
        with card, ui.row().classes('items-center gap-2'):
            ui.icon(item.icon).classes('text-gray-500')
            ui.label(item.label)

    ui.label('LAYOUTS').classes('text-xs font-bold text-gray-400')
    for item in palette.layouts:
        palette_entry(item)
    ui.label('FORM FIELDS').classes('text-xs font-bold text-gray-400 mt-3')
    for item in palette.fields:
        palette_entry(item)


def _drop_zone(session: EditSession, zones: Dict[str, Any], address: str, horizontal: bool = False) -> None:
    size = 'w-6 self-stretch min-h-[60px]' if horizontal else 'h-6 w-full my-1'
    zone = ui.element('div').classes(f'{size} {ZONE_IDLE}')
    zones[address] = zone
    zone.on('dragover.prevent', lambda _: session.drag_over(address))
    zone.on('drop', lambda _: session.drag_end(address))


def _render_node(node: Node, session: EditSession, zones: Dict[str, Any]) -> None:
    selected = session.selection == node.id
    card = ui.card().props('draggable').classes(
        'w-full p-3' + (' ring-2 ring-blue-500' if selected else '')
    )
    card.on('dragstart.stop', lambda _: session.drag_start(ExistingNodeDrag(node.id)))
    card.on('dragend.stop', lambda _: session.drag_cancel())
    card.on('click.stop', lambda _: session.select(node.id))
    if node.is_container:
        card.on('dragover.prevent.stop', lambda _: session.drag_over(node.id))
        card.on('drop.stop', lambda _: session.drag_end(node.id))

    with card:
        with ui.row().classes('w-full items-center justify-between'):
            with ui.column().classes('gap-0'):
                ui.label(node.title).classes('font-medium')
                ui.label(f'Type: {node.field_type}').classes('text-sm text-gray-500')
            ui.button(icon='delete', on_click=lambda: session.delete_node(node.id)).props('flat dense color=grey')
        if node.is_container:
            render_children(node, session, zones)


def render_children(container: Node, session: EditSession, zones: Dict[str, Any]) -> None:
    """Children of a container with a drop zone before, between and after them."""
    horizontal = container.field_type == DIRECTION_ROW
    layout = ui.row().classes('w-full items-stretch no-wrap') if horizontal else ui.column().classes('w-full gap-0')
    with layout:
        _drop_zone(session, zones, gap_id(container.id, 0), horizontal)
        for index, child in enumerate(container.children):
            with ui.element('div').classes('flex-1 min-w-[160px]' if horizontal else 'w-full'):
                _render_node(child, session, zones)
            _drop_zone(session, zones, gap_id(container.id, index + 1), horizontal)


def render_inspector(session: EditSession) -> None:
    node = session.selected_node
    if node is None:
        ui.label('Select an element to inspect').classes('text-gray-500')
        return

    ui.input('Title', value=node.title,
             on_change=lambda e: session.rename_selected(e.value)).classes('w-full').props('outlined dense')
    ui.label('TYPE').classes('text-xs font-bold text-gray-400 mt-2')
    ui.label(node.field_type)
    ui.label('CATEGORY').classes('text-xs font-bold text-gray-400 mt-2')
    ui.label('layout' if node.is_container else 'field')
    ui.button('Delete', icon='delete', on_click=session.delete_selected).props('flat color=red')


def _render_control(element: Dict[str, Any], properties: Dict[str, Any],
                    form_data: Dict[str, Any], on_value: Callable[[str, Any], None]) -> None:
    field_id = scope_to_field_id(element.get('scope', ''))
    prop = properties.get(field_id)
    if prop is None:
        return
    label = element.get('label') or prop.get('title', field_id)
    value = form_data.get(field_id)
    handler = lambda e, fid=field_id: on_value(fid, e.value)

    if prop['type'] == 'boolean':
        ui.checkbox(label, value=bool(value), on_change=handler)
    elif prop['type'] == 'number':
        ui.number(label, value=value, on_change=handler).classes('w-full')
    else:
        ui.input(label, value=value or '', on_change=handler).classes('w-full')


def _render_layout(elements: List[Dict[str, Any]], horizontal: bool, properties: Dict[str, Any],
                   form_data: Dict[str, Any], on_value: Callable[[str, Any], None]) -> None:
    with (ui.row().classes('w-full no-wrap') if horizontal else ui.column().classes('w-full')):
        for element in elements:
            if element.get('type') == CONTROL_TYPE:
                _render_control(element, properties, form_data, on_value)
            else:
                _render_layout(element.get('elements', []), element.get('type') == 'HorizontalLayout',
                               properties, form_data, on_value)


def render_preview(session: EditSession) -> None:
    """Live form drawn from the UI layout schema; edits flow back into form data."""
    ui_schema = session.ui_layout_schema
    if not ui_schema.get('elements'):
        ui.label('Drag components onto the canvas to build a form').classes('text-gray-500')
        return

    def on_value(field_id: str, value: Any):
        session.update_form_data({field_id: value})

    _render_layout(ui_schema['elements'], ui_schema.get('type') == 'HorizontalLayout',
                   session.data_schema['properties'], session.form_data, on_value)


def render_code_panels(session: EditSession, fmt: str = 'json', indent: int = 2) -> None:
    language = 'yaml' if fmt == 'yaml' else 'json'
    for name in ARTIFACTS:
        ui.label(ARTIFACT_TITLES[name]).classes('text-xs font-bold text-gray-400 mt-2')
        ui.code(export_artifact(session, name, fmt=fmt, indent=indent), language=language).classes('w-full')


def highlight_drop_target(zones: Dict[str, Any], previous: Optional[str], current: Optional[str]) -> None:
    """Swap the hover style between drop zones without re-rendering the canvas."""
    if previous in zones:
        zones[previous].classes(ZONE_IDLE, remove=ZONE_ACTIVE)
    if current in zones:
        zones[current].classes(ZONE_ACTIVE, remove=ZONE_IDLE)
