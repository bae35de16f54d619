"""
Branching-story flowchart core.

- FlowchartGraph: node store with consistent edge bookkeeping
- rules: connection legality table and replacement policy
- StoryWalker: preview/interpreter over a graph
- validate_flowchart: structural checks for loaded graphs
- graph_to_dict / graph_from_dict: wire format
"""

from storymate.flowchart.models import Connection, FlowNode, NodeKind, Point
from storymate.flowchart.graph import FlowchartGraph
from storymate.flowchart.rules import can_connect, plan_connection, ConnectionPlan
from storymate.flowchart.interpreter import StoryWalker, PreviewStep, available_choices
from storymate.flowchart.validation import Issue, validate_flowchart, format_issue
from storymate.flowchart.serialization import graph_to_dict, graph_from_dict

__all__ = [
    'Connection',
    'FlowNode',
    'NodeKind',
    'Point',
    'FlowchartGraph',
    'can_connect',
    'plan_connection',
    'ConnectionPlan',
    'StoryWalker',
    'PreviewStep',
    'available_choices',
    'Issue',
    'validate_flowchart',
    'format_issue',
    'graph_to_dict',
    'graph_from_dict',
]
