"""
Main NiceGUI application for FormCraft.

Layout:
- left drawer: component palette (drag sources)
- center: the form canvas with drop zones, and the live preview
- right drawer: inspector for the selected element, and the code panels

Each browser page gets its own EditSession; the session is the only thing
that changes form state, the UI just re-renders after each commit.
"""

import logging
import sys

from dotenv import load_dotenv
from nicegui import ui

load_dotenv()

from formcraft.config import get_settings
from formcraft.edit_session import EditSession
from formcraft.palette import load_palette
from formcraft.ui_components import (
    highlight_drop_target,
    render_children,
    render_code_panels,
    render_inspector,
    render_palette,
    render_preview,
)

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger('formcraft.app')

palette = load_palette(settings.palette_path)
for error in palette.validation_errors:
    logger.warning(f"Palette: {error}")


@ui.page('/')
def main_page():
    session = EditSession(strict_checks=settings.strict_checks)
    state = {
        'zones': {},
        'tree': session.tree,
        'hovered': None,
        'selection': None,
        'export_format': 'json',
    }

    @ui.refreshable
    def canvas():
        state['zones'] = {}
        render_children(session.tree, session, state['zones'])

    @ui.refreshable
    def preview():
        render_preview(session)

    @ui.refreshable
    def inspector():
        render_inspector(session)

    @ui.refreshable
    def code_panels():
        render_code_panels(session, fmt=state['export_format'], indent=settings.export_indent)

    def on_state_change(new_state):
        code_panels.refresh()
        # Typing into the preview only changes form data; leave its inputs alone.
        if new_state.tree is not state['tree']:
            state['tree'] = new_state.tree
            canvas.refresh()
            preview.refresh()
        # Title edits come from the inspector itself; only rebuild it when the
        # selected element changes so the input keeps focus while typing.
        if new_state.selection != state['selection'] or session.selected_node is None:
            state['selection'] = new_state.selection
            inspector.refresh()

    def on_hover_change(address):
        highlight_drop_target(state['zones'], state['hovered'], address)
        state['hovered'] = address

    session.set_on_state_change(on_state_change)
    session.set_on_hover_change(on_hover_change)

    def set_export_format(e):
        state['export_format'] = e.value
        code_panels.refresh()

    with ui.dialog() as clear_dialog, ui.card():
        ui.label('Clear Form').classes('text-lg font-bold')
        ui.label('Are you sure you want to clear the entire form? '
                 'This will remove all fields and layouts.').classes('text-gray-500')
        with ui.row().classes('w-full justify-end'):
            ui.button('Cancel', on_click=clear_dialog.close).props('flat')

            def confirm_clear():
                session.clear_all()
                clear_dialog.close()
                ui.notify('Form cleared')

            ui.button('Yes, clear form', on_click=confirm_clear).props('color=negative')

    with ui.header().classes('items-center justify-between bg-slate-800'):
        ui.label('FormCraft').classes('text-xl font-bold')
        ui.button('Clear Form', icon='delete_sweep', on_click=clear_dialog.open).props('flat color=white')

    with ui.left_drawer(value=True, bordered=True).classes('bg-white p-4'):
        render_palette(palette, session)

    with ui.right_drawer(value=True, bordered=True).classes('bg-white p-4 w-96'):
        ui.label('INSPECTOR').classes('text-xs font-bold text-gray-400')
        inspector()
        ui.separator().classes('my-4')
        with ui.row().classes('w-full items-center justify-between'):
            ui.label('CODE').classes('text-xs font-bold text-gray-400')
            ui.toggle(['json', 'yaml'], value='json', on_change=set_export_format).props('dense')
        code_panels()

    with ui.column().classes('w-full p-4 gap-6'):
        with ui.card().classes('w-full p-4'):
            ui.label('Form Editor').classes('text-lg font-semibold')
            canvas()
        with ui.card().classes('w-full p-4'):
            ui.label('Preview').classes('text-lg font-semibold')
            preview()


if __name__ in {"__main__", "__mp_main__"}:
    ui.run(
        title='FormCraft',
        host=settings.host,
        port=settings.port,
        reload=not getattr(sys, 'frozen', False),
    )
