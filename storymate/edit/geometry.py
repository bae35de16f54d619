"""
Geometry helpers for the flowchart canvas.

Node positions live in world space. The viewport maps them to screen
space (screen = world * zoom + pan). Edges are drawn as cubic Beziers from
the source's output handle to the target's input handle.
"""

import math
from dataclasses import dataclass
from typing import List, Tuple

from storymate.edit.constants import (
    CONTROL_OFFSET_CAP,
    CONTROL_OFFSET_FACTOR,
    CURVE_SAMPLES,
    INPUT_HANDLE_X,
    NODE_HEIGHT,
    NODE_WIDTH,
    OUTPUT_HANDLE_X,
)
from storymate.flowchart.models import FlowNode, Point


@dataclass(frozen=True)
class Viewport:
    """Canvas pan offset (screen pixels) and zoom scale."""
    pan: Point = Point(0.0, 0.0)
    zoom: float = 1.0

    def to_screen(self, point: Point) -> Point:
        return Point(point.x * self.zoom + self.pan.x, point.y * self.zoom + self.pan.y)

    def to_world(self, point: Point) -> Point:
        return Point((point.x - self.pan.x) / self.zoom, (point.y - self.pan.y) / self.zoom)


def input_handle(node: FlowNode, viewport: Viewport = Viewport()) -> Point:
    """Screen position of the node's input (left) handle."""
    return viewport.to_screen(Point(node.position.x + INPUT_HANDLE_X, node.position.y))


def output_handle(node: FlowNode, viewport: Viewport = Viewport()) -> Point:
    """Screen position of the node's output (right) handle."""
    return viewport.to_screen(Point(node.position.x + OUTPUT_HANDLE_X, node.position.y))


def node_contains(node: FlowNode, point: Point, viewport: Viewport = Viewport()) -> bool:
    """True if a screen point falls inside the node's body rectangle."""
    world = viewport.to_world(point)
    return (abs(world.x - node.position.x) <= NODE_WIDTH / 2
            and abs(world.y - node.position.y) <= NODE_HEIGHT / 2)


@dataclass(frozen=True)
class CubicBezier:
    p0: Point
    p1: Point
    p2: Point
    p3: Point

    def point_at(self, t: float) -> Point:
        """Standard cubic Bezier evaluation."""
        u = 1.0 - t
        a, b, c, d = u ** 3, 3 * u ** 2 * t, 3 * u * t ** 2, t ** 3
        return Point(
            a * self.p0.x + b * self.p1.x + c * self.p2.x + d * self.p3.x,
            a * self.p0.y + b * self.p1.y + c * self.p2.y + d * self.p3.y,
        )

    def midpoint(self) -> Point:
        return self.point_at(0.5)

    def sample(self, segments: int = CURVE_SAMPLES) -> List[Point]:
        """segments + 1 points along the curve, endpoints included."""
        segments = max(1, segments)
        return [self.point_at(i / segments) for i in range(segments + 1)]


def curve_between(start: Point, end: Point, zoom: float = 1.0) -> CubicBezier:
    """
    Horizontal S-curve from start to end. The control offset shrinks with
    the horizontal distance, so vertically stacked nodes get a near-straight elbow.
    """
    control = min(abs(end.x - start.x) * CONTROL_OFFSET_FACTOR, CONTROL_OFFSET_CAP * zoom)
    return CubicBezier(
        start,
        Point(start.x + control, start.y),
        Point(end.x - control, end.y),
        end,
    )


def edge_path(from_node: FlowNode, to_node: FlowNode, viewport: Viewport = Viewport()) -> CubicBezier:
    return curve_between(output_handle(from_node, viewport), input_handle(to_node, viewport), viewport.zoom)


def midpoint(curve: CubicBezier) -> Point:
    return curve.point_at(0.5)


def point_to_segment_distance(point: Point, start: Point, end: Point) -> Tuple[float, float]:
    """Distance from point to the segment start-end, and the clamped projection t."""
    px, py = point.x, point.y
    x1, y1 = start.x, start.y
    dx, dy = end.x - x1, end.y - y1

    if dx == 0 and dy == 0:
        return math.hypot(px - x1, py - y1), 0.0

    t = max(0.0, min(1.0, ((px - x1) * dx + (py - y1) * dy) / (dx * dx + dy * dy)))
    closest_x, closest_y = x1 + t * dx, y1 + t * dy
    return math.hypot(px - closest_x, py - closest_y), t


def distance_to_curve(point: Point, curve: CubicBezier, segments: int = CURVE_SAMPLES) -> float:
    samples = curve.sample(segments)
    return min(
        point_to_segment_distance(point, a, b)[0]
        for a, b in zip(samples, samples[1:])
    )


def hit_test(point: Point, curve: CubicBezier, tolerance: float) -> bool:
    """True if point lies within tolerance of the rendered curve."""
    return distance_to_curve(point, curve) <= tolerance
