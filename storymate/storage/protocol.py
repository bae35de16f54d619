"""
FlowchartStore Protocol Definition.

This module defines the interface the editor session needs from persistence.
Both FileBackend (local JSON files) and HttpBackend (REST API) conform to it.
"""

from typing import Optional, Protocol, runtime_checkable

from storymate.flowchart.graph import FlowchartGraph


@runtime_checkable
class FlowchartStore(Protocol):
    """
    Abstract protocol for flowchart storage.
    
    Implementations raise PersistenceError for failures; "nothing saved
    yet" is not a failure and is reported as None.
    """
    
    @property
    def backend_type(self) -> str:
        """Return the backend type identifier ('file' or 'http')."""
        ...
    
    def load_flowchart(self, project_id: str) -> Optional[FlowchartGraph]:
        """
        Load the flowchart for a project.
        
        Args:
            project_id: Project identifier
            
        Returns:
            The stored graph, or None if the project has no saved flowchart
            
        Raises:
            PersistenceError: the store could not be read
        """
        ...
    
    def save_flowchart(self, project_id: str, graph: FlowchartGraph) -> None:
        """
        Save the flowchart for a project, replacing any previous version.
        
        Args:
            project_id: Project identifier
            graph: Graph to store (callers pass a snapshot)
            
        Raises:
            PersistenceError: the store rejected the write
        """
        ...
