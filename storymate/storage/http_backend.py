"""
HTTP Storage Backend for StoryMate.

Implements the FlowchartStore protocol against the StoryMate REST API:
- GET  {base_url}/projects/{project_id}/flowchart
- POST {base_url}/projects/{project_id}/flowchart

Authentication is a bearer token supplied by the caller; obtaining and
refreshing it is outside this module.
"""

import logging
from typing import Optional

import requests

from storymate.errors import PersistenceError
from storymate.flowchart.graph import FlowchartGraph
from storymate.flowchart.serialization import graph_from_dict, graph_to_dict

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class HttpBackend:
    """REST API storage for flowcharts."""
    
    def __init__(self, base_url: str, token: Optional[str] = None,
                 session: Optional[requests.Session] = None,
                 timeout: float = DEFAULT_TIMEOUT):
        """
        Initialize HttpBackend.
        
        Args:
            base_url: API root, e.g. "https://api.example.com/api"
            token: Optional bearer token
            session: Optional requests.Session (injected in tests)
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"
    
    @property
    def backend_type(self) -> str:
        return "http"
    
    def _url(self, project_id: str) -> str:
        return f"{self.base_url}/projects/{project_id}/flowchart"
    
    def load_flowchart(self, project_id: str) -> Optional[FlowchartGraph]:
        url = self._url(project_id)
        logger.info(f"GET {url}")
        try:
            response = self._session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise PersistenceError(f"Could not reach server: {e}", project_id) from e
        
        if response.status_code == 404:
            logger.info(f"No saved flowchart for project {project_id}")
            return None
        
        try:
            response.raise_for_status()
            graph = graph_from_dict(response.json())
        except requests.HTTPError as e:
            raise PersistenceError(f"Loading flowchart failed: {e}", project_id) from e
        except ValueError as e:
            raise PersistenceError(f"Server returned an invalid flowchart: {e}", project_id) from e
        
        logger.info(f"Response: flowchart with {len(graph)} nodes")
        return graph
    
    def save_flowchart(self, project_id: str, graph: FlowchartGraph) -> None:
        url = self._url(project_id)
        payload = graph_to_dict(graph, project_id)
        logger.info(f"POST {url} ({len(payload['nodes'])} nodes)")
        try:
            response = self._session.post(url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.HTTPError as e:
            raise PersistenceError(f"Saving flowchart failed: {e}", project_id) from e
        except requests.RequestException as e:
            raise PersistenceError(f"Could not reach server: {e}", project_id) from e
        logger.info("Response: flowchart saved")
