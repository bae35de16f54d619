"""
Main NiceGUI application for the StoryMate flowchart editor.

Renders the flowchart with ui.echart, provides toolbar controls with
ui.row / ui.button, and a preview pane that walks the story. All graph
changes go through EditorController; persistence goes through the
storage backend selected in config.json / STORYMATE_* variables.
"""

import logging
import sys

from dotenv import load_dotenv
from nicegui import run, ui

load_dotenv()

from storymate.chart_builder import build_echart_options, normalize_click_payload, resolve_click_target
from storymate.config import get_settings
from storymate.edit.geometry import input_handle, output_handle
from storymate.flowchart.models import Connection, Point
from storymate.paths import ensure_db_dir
from storymate.session import EditorSession
from storymate.storage import create_backend

settings = get_settings()
logging.basicConfig(
    level=getattr(logging, str(settings['log_level']).upper(), logging.INFO),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)

if settings['storage_backend'] == 'file':
    ensure_db_dir()


@ui.page('/')
def index():
    ui.navigate.to('/project/demo')


@ui.page('/project/{project_id}')
async def editor_page(project_id: str):
    session = EditorSession(project_id, create_backend(settings))
    session.add_listener(lambda level, message: ui.notify(message, type=level, position='bottom'))

    chart = None
    preview_container = None
    status_label = None

    def refresh_chart():
        chart.options.clear()
        chart.options.update(build_echart_options(session.graph, session.controller.state))
        chart.update()

    def refresh_status():
        state = session.controller.state
        status_label.set_text(f"{len(session.graph)} nodes · {len(session.graph.connections())} connections · {state.mode}")

    def refresh_all(*_):
        refresh_chart()
        refresh_status()
        render_preview()

    session.controller.set_on_state_change(lambda _state: refresh_all())

    # --- Toolbar actions ---

    def add_story():
        session.controller.add_story_node()
        refresh_all()

    def add_decision():
        session.controller.add_decision_node()
        refresh_all()

    def delete_selected():
        controller = session.controller
        if controller.state.selected_edge is not None:
            controller.delete_selected_edge()
        elif not controller.delete_selected_node() and controller.state.selected_node_id:
            ui.notify('Start and End nodes cannot be deleted', type='warning', position='bottom')
        refresh_all()

    async def save():
        snapshot = session.snapshot()
        session.report_save(await run.io_bound(session.write, snapshot))

    def toggle_preview():
        session.toggle_preview()
        refresh_all()

    def zoom_by(factor: float):
        controller = session.controller
        controller.begin_zoom()
        controller.update_zoom(factor)
        controller.end_zoom()

    def show_issues():
        issues = session.validate()
        if not issues:
            ui.notify('No problems found', type='positive', position='bottom')
            return
        with ui.dialog() as dialog, ui.card().classes('w-[32rem]'):
            ui.label('Flowchart check').classes('text-lg font-bold')
            for issue in issues:
                color = 'text-red-400' if issue.severity == 'ERROR' else 'text-amber-400'
                ui.label(f"{issue.code}: {issue.message}").classes(f'text-sm {color}')
            ui.button('Close', on_click=dialog.close)
        dialog.open()

    # --- Node edit sheet ---

    def open_editor(node_id: str):
        node = session.graph.find_node(node_id)
        if node is None:
            return
        with ui.dialog() as dialog, ui.card().classes('w-96'):
            ui.label(f"{node.kind.title} NODE").classes('text-lg font-bold')
            text = ui.textarea('Text', value=node.text).classes('w-full')
            with ui.row():
                pos_x = ui.number('X', value=node.position.x, step=10)
                pos_y = ui.number('Y', value=node.position.y, step=10)

            def apply():
                controller = session.controller
                controller.edit_node(node_id, text=text.value)
                delta = Point((pos_x.value or 0) - node.position.x, (pos_y.value or 0) - node.position.y)
                if delta != Point(0, 0):
                    controller.begin_node_drag(node_id)
                    controller.update_node_drag(node_id, delta)
                    controller.end_node_drag()
                dialog.close()
                refresh_all()

            with ui.row():
                ui.button('Save', on_click=apply)
                ui.button('Cancel', on_click=dialog.close).props('flat')
        dialog.open()

    # --- Chart events ---

    def handle_point_click(e):
        payload = normalize_click_payload({
            'componentType': e.component_type,
            'name': e.name,
            'seriesType': e.series_type,
            'value': e.value,
            'dataType': getattr(e, 'data_type', None),
            'data': e.data,
        })
        target = resolve_click_target(payload, session.graph)
        controller = session.controller
        if isinstance(target, Connection):
            controller.select_edge(target.from_id, target.to_id)
        elif target is not None:
            if controller.state.is_connecting:
                return
            if controller.state.selected_node_id == target:
                open_editor(target)
            else:
                controller.select_node(target)
        else:
            controller.deselect_all()
        refresh_all()

    def connect_from_selected():
        """Two-tap connect: tap 'Connect', then tap the target node."""
        controller = session.controller
        source_id = controller.state.selected_node_id
        if source_id is None:
            ui.notify('Select a node to connect from', type='info', position='bottom')
            return
        source = session.graph.find_node(source_id)
        controller.begin_connection_drag(source_id, output_handle(source, controller.state.viewport))
        ui.notify('Tap the node to connect to', type='info', position='bottom')

    def handle_connect_click(e):
        controller = session.controller
        if not controller.state.is_connecting:
            handle_point_click(e)
            return
        target = resolve_click_target(normalize_click_payload({'componentType': 'series', 'name': e.name}), session.graph)
        if isinstance(target, str):
            node = session.graph.find_node(target)
            controller.update_connection_drag(input_handle(node, controller.state.viewport))
        if not controller.end_connection_drag():
            ui.notify('Those nodes cannot be connected', type='warning', position='bottom')
        refresh_all()

    # --- Preview pane ---

    def render_preview():
        preview_container.clear()
        if not session.controller.state.is_preview:
            preview_container.set_visibility(False)
            return
        preview_container.set_visibility(True)
        step = session.current_step()
        with preview_container:
            if step is None:
                ui.label(f"⚠️ {session.preview_message or 'No starting node found'}").classes('text-red-400 font-bold')
                return
            ui.label(step.node.kind.title).classes('text-xl font-bold')
            if step.node.text:
                ui.markdown(step.node.text)
            if step.warning:
                ui.label(f"⚠️ {step.warning}").classes('text-amber-400')
            if step.is_terminal:
                ui.label('THE END').classes('text-lg')
                ui.button('Restart', on_click=lambda: (session.restart_preview(), render_preview()))
                return
            if step.choices and step.action == 'choose':
                ui.label('Choose your path:').classes('text-cyan-400 font-bold')
            for choice in step.choices:
                caption = 'Continue' if step.action == 'continue' else choice.display_text
                ui.button(caption, on_click=lambda c=choice: (session.choose(c.id), render_preview())).classes('w-full')
            with ui.row():
                ui.button('Back', on_click=lambda: (session.back(), render_preview())).props('flat')
                ui.button('Restart', on_click=lambda: (session.restart_preview(), render_preview())).props('flat')

    # --- Layout ---

    with ui.row().classes('w-full items-center gap-2 p-2 bg-slate-900'):
        ui.label(f'StoryMate · {project_id}').classes('text-lg font-bold text-white')
        ui.button('+ Story', on_click=add_story).props('color=amber')
        ui.button('+ Choice', on_click=add_decision).props('color=blue')
        ui.button('Connect', on_click=connect_from_selected).props('flat')
        ui.button('Delete', on_click=delete_selected).props('color=negative flat')
        ui.button('Check', on_click=show_issues).props('flat')
        ui.button('Preview', on_click=toggle_preview).props('flat')
        ui.button('-', on_click=lambda: zoom_by(1 / 1.25)).props('flat dense')
        ui.button('+', on_click=lambda: zoom_by(1.25)).props('flat dense')
        ui.button('Save', on_click=save).props('color=positive')
        status_label = ui.label('').classes('text-xs text-gray-400 ml-auto')

    with ui.row().classes('w-full no-wrap'):
        chart = ui.echart(build_echart_options(session.graph), on_point_click=handle_connect_click).classes('w-full h-[80vh]')
        preview_container = ui.card().classes('w-96 h-[80vh] overflow-y-auto')

    result = session.apply_load(await run.io_bound(session.fetch))
    logger.info(f"Opened project {project_id} ({result.source})")
    refresh_all()


if __name__ in {"__main__", "__mp_main__"}:
    ui.run(
        title='StoryMate',
        port=8081,
        reload=not getattr(sys, 'frozen', False),
    )
