"""
Flowchart editing system for StoryMate.

This package provides the editor interaction layer:
- EditorController: selection, drags, pan/zoom and preview mode state
- geometry: handle positions, Bezier edge paths, midpoints and hit tests
- constants: node and handle dimensions shared with the canvas builder

Usage:
    from storymate.edit import EditorController
    controller = EditorController(graph)
    controller.begin_connection_drag(start_id, point)
"""

from storymate.edit.constants import (
    NODE_WIDTH,
    NODE_HEIGHT,
    HANDLE_SIZE,
    SNAP_RADIUS,
    EDGE_HIT_TOLERANCE,
    CUT_BUTTON_RADIUS,
)
from storymate.edit.controller import EditorController, EditorState
from storymate.edit.geometry import CubicBezier, Viewport, edge_path, hit_test, midpoint

__all__ = [
    'EditorController',
    'EditorState',
    'CubicBezier',
    'Viewport',
    'edge_path',
    'hit_test',
    'midpoint',
    'NODE_WIDTH',
    'NODE_HEIGHT',
    'HANDLE_SIZE',
    'SNAP_RADIUS',
    'EDGE_HIT_TOLERANCE',
    'CUT_BUTTON_RADIUS',
]
