"""
ECharts options builder for the StoryMate flowchart canvas.

This module handles conversion of a FlowchartGraph plus the current
EditorState into ECharts-compatible options, and maps chart click events
back to node ids and connections.
"""

from typing import Any, Dict, Optional, Union

from storymate.edit.constants import NODE_HEIGHT, NODE_WIDTH
from storymate.edit.controller import EditorState
from storymate.flowchart.graph import FlowchartGraph
from storymate.flowchart.models import Connection, NodeKind

# Event keys we request from ECharts click events
REQUESTED_EVENT_KEYS = ['componentType', 'name', 'seriesType', 'value', 'dataType', 'data']

BACKGROUND_COLOR = '#1e1b2e'
EDGE_COLOR = '#bdbdbd'
SELECTED_COLOR = '#ffffff'
HOVER_COLOR = '#00e5ff'

NODE_COLORS = {
    NodeKind.START: '#4dcc4d',
    NodeKind.STORY: '#ffcc33',
    NodeKind.DECISION: '#6699ff',
    NodeKind.END: '#e64d4d',
}

LABEL_MAX_CHARS = 24


def _short_label(text: str) -> str:
    text = (text or '').strip().replace('\n', ' ')
    if len(text) > LABEL_MAX_CHARS:
        return text[:LABEL_MAX_CHARS - 1] + '…'
    return text


def build_echart_options(graph: FlowchartGraph, state: Optional[EditorState] = None) -> Dict[str, Any]:
    """
    Build ECharts options from a flowchart graph.

    Args:
        graph: The graph to draw; node positions are used as-is (no layout)
        state: Current editor state for selection/hover styling and pan/zoom

    Returns:
        ECharts options dict ready for ui.echart()
    """
    state = state or EditorState()

    e_nodes = []
    for node in graph:
        is_selected = node.id == state.selected_node_id
        is_hovered = node.id == state.hovered_node_id

        border_color = 'transparent'
        border_width = 0
        if is_selected:
            border_color, border_width = SELECTED_COLOR, 4
        elif is_hovered:
            border_color, border_width = HOVER_COLOR, 4

        e_nodes.append({
            'id': node.id,
            'name': node.id,
            'value': node.kind.value,
            'x': node.position.x,
            'y': node.position.y,
            'symbol': 'rect',
            'symbolSize': [NODE_WIDTH, NODE_HEIGHT],
            'itemStyle': {
                'color': NODE_COLORS[node.kind],
                'borderColor': border_color,
                'borderWidth': border_width,
            },
            'label': {
                'show': True,
                'formatter': f"{node.kind.title}\n{_short_label(node.display_text)}",
                'color': '#111111',
                'fontWeight': 'bold',
            },
            # Positions only change through EditorController
            'draggable': False,
            'tooltip': {'formatter': node.display_text},
        })

    e_links = []
    for connection in graph.connections():
        is_selected = connection == state.selected_edge
        e_links.append({
            'source': connection.from_id,
            'target': connection.to_id,
            'value': connection.key,
            'symbol': ['none', 'arrow'],
            'symbolSize': 10,
            'lineStyle': {
                'color': SELECTED_COLOR if is_selected else EDGE_COLOR,
                'width': 4 if is_selected else 2,
                'curveness': 0.2,
                'opacity': 1.0,
            },
            'tooltip': {'show': False},
        })

    return {
        'backgroundColor': BACKGROUND_COLOR,
        'tooltip': {},
        'animation': False,
        'series': [{
            'type': 'graph',
            'layout': 'none',
            'roam': False,
            'zoom': state.zoom,
            'data': e_nodes,
            'links': e_links,
            'edgeSymbol': ['none', 'arrow'],
            'emphasis': {'focus': 'adjacency'},
        }],
    }


def normalize_click_payload(raw_payload: Any) -> Dict[str, Any]:
    """Normalize NiceGUI chart click payloads into a dictionary for easier parsing."""
    if isinstance(raw_payload, dict):
        return raw_payload
    if isinstance(raw_payload, (list, tuple)):
        return {
            REQUESTED_EVENT_KEYS[i]: raw_payload[i]
            for i in range(min(len(raw_payload), len(REQUESTED_EVENT_KEYS)))
        }
    if isinstance(raw_payload, str):
        return {'name': raw_payload}
    return {}


def resolve_click_target(payload: Dict[str, Any], graph: FlowchartGraph) -> Optional[Union[str, Connection]]:
    """
    Return what a normalized click payload refers to: a node id, a
    Connection, or None if it does not match anything in the graph.
    """
    if not isinstance(payload, dict):
        return None
    component = payload.get('componentType')
    if component not in (None, 'series'):
        return None

    if payload.get('dataType') == 'edge':
        data = payload.get('data') or {}
        connection = None
        if isinstance(data, dict) and data.get('source') and data.get('target'):
            connection = Connection(data['source'], data['target'])
        elif isinstance(payload.get('value'), str):
            connection = Connection.from_key(payload['value'])
        if connection and graph.has_connection(connection.from_id, connection.to_id):
            return connection
        return None

    node_id = payload.get('name')
    if node_id and node_id in graph:
        return node_id
    return None
