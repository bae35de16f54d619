"""
StoryMate flowchart core.

Branching-story graph model, editor interaction state machine, story
preview walker and the persistence boundary used by the NiceGUI host.
"""

__version__ = "0.1.0"
