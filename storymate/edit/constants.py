"""
Shared constants for the flowchart editor.

These values are used by the geometry helpers, the editor controller and
the ECharts canvas builder. Keep them in sync with the node rendering!
"""

# Node body size in world units
NODE_WIDTH = 100.0
NODE_HEIGHT = 55.0

# Connection handles sit just outside the left/right edges of a node
HANDLE_SIZE = 24.0
HANDLE_OFFSET = 8.0
INPUT_HANDLE_X = -(NODE_WIDTH / 2 + HANDLE_OFFSET)
OUTPUT_HANDLE_X = NODE_WIDTH / 2 + HANDLE_OFFSET

# Distance in pixels from an input handle that counts as "over" it
SNAP_RADIUS = HANDLE_SIZE + 10

# Bezier control point offset is min(|dx| * factor, cap)
CONTROL_OFFSET_FACTOR = 0.5
CONTROL_OFFSET_CAP = 100.0

# Distance in pixels to detect a tap on an edge
EDGE_HIT_TOLERANCE = 12.0

# Radius in pixels of the "cut" button drawn at an edge midpoint
CUT_BUTTON_RADIUS = 14.0

# Line segments used to approximate a curve for hit testing
CURVE_SAMPLES = 24

# New nodes are placed to the right of the rightmost node
NEW_NODE_X_STEP = 200.0
NEW_NODE_Y = 150.0

# Canvas zoom bounds
MIN_ZOOM = 0.25
MAX_ZOOM = 3.0
