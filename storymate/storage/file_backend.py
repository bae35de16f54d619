"""
File-based Storage Backend for StoryMate.

Implements the FlowchartStore protocol using one JSON file per project:
- {root}/{project_id}.json: serialized flowchart
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from storymate.errors import PersistenceError
from storymate.flowchart.graph import FlowchartGraph
from storymate.flowchart.serialization import graph_from_dict, graph_to_dict

logger = logging.getLogger(__name__)


class FileBackend:
    """Local JSON storage for flowcharts."""
    
    def __init__(self, root_dir: Union[str, Path]):
        self.root_dir = Path(root_dir)
        self.root_dir.mkdir(parents=True, exist_ok=True)
    
    @property
    def backend_type(self) -> str:
        return "file"
    
    def _path_for(self, project_id: str) -> Path:
        safe_id = "".join(c for c in str(project_id) if c.isalnum() or c in ("-", "_"))
        if not safe_id:
            raise PersistenceError(f"Invalid project id: {project_id!r}", project_id)
        return self.root_dir / f"{safe_id}.json"
    
    def list_projects(self):
        """Return project ids that have a saved flowchart."""
        return sorted(p.stem for p in self.root_dir.glob("*.json"))
    
    def load_flowchart(self, project_id: str) -> Optional[FlowchartGraph]:
        path = self._path_for(project_id)
        if not path.exists():
            logger.info(f"No saved flowchart for project {project_id}")
            return None
        
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            graph = graph_from_dict(data)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Could not read flowchart {path.name}: {e}", project_id) from e
        
        logger.info(f"Loaded flowchart for project {project_id} with {len(graph)} nodes")
        return graph
    
    def save_flowchart(self, project_id: str, graph: FlowchartGraph) -> None:
        path = self._path_for(project_id)
        payload = graph_to_dict(graph, project_id)
        
        # Write to a temp file first so a failed save never truncates the old one
        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self.root_dir, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(f"Could not write flowchart {path.name}: {e}", project_id) from e
        
        logger.info(f"Saved flowchart for project {project_id} with {len(graph)} nodes")
    
    def delete_flowchart(self, project_id: str) -> None:
        path = self._path_for(project_id)
        if path.exists():
            path.unlink()
