"""
Tests for storage backends.

Tests both FileBackend and HttpBackend implementations.
"""

import json
from unittest.mock import MagicMock

import pytest
import requests

from storymate.errors import PersistenceError
from storymate.flowchart import FlowchartGraph, FlowNode, NodeKind, Point
from storymate.storage import FileBackend, FlowchartStore, HttpBackend, create_backend, get_backend_type


@pytest.fixture
def graph():
    return FlowchartGraph([
        FlowNode(id="start", kind=NodeKind.START, text="You awake", position=Point(100, 100), outgoing=["end"]),
        FlowNode(id="end", kind=NodeKind.END, text="End of route", position=Point(400, 150)),
    ])


def make_response(status_code=200, payload=None, json_error=None):
    response = MagicMock()
    response.status_code = status_code
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Error")
    return response


class TestFileBackend:
    """Tests for FileBackend local JSON storage."""

    @pytest.fixture
    def backend(self, tmp_path):
        return FileBackend(tmp_path / "flowcharts")

    def test_conforms_to_protocol(self, backend):
        assert isinstance(backend, FlowchartStore)
        assert backend.backend_type == "file"

    def test_missing_project_loads_none(self, backend):
        assert backend.load_flowchart("nothing-here") is None

    def test_save_then_load(self, backend, graph):
        backend.save_flowchart("proj-1", graph)

        path = backend.root_dir / "proj-1.json"
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["projectId"] == "proj-1"
        assert [n["id"] for n in data["nodes"]] == ["start", "end"]

        loaded = backend.load_flowchart("proj-1")
        assert [n.id for n in loaded] == ["start", "end"]
        assert loaded.find_node("start").outgoing == ["end"]
        assert backend.list_projects() == ["proj-1"]

    def test_save_replaces_previous_version(self, backend, graph):
        backend.save_flowchart("p", graph)
        graph.disconnect("start", "end")
        backend.save_flowchart("p", graph)
        assert backend.load_flowchart("p").connections() == []
        assert list(backend.root_dir.glob("*.tmp")) == []

    def test_corrupt_file_raises(self, backend):
        (backend.root_dir / "broken.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(PersistenceError) as excinfo:
            backend.load_flowchart("broken")
        assert excinfo.value.project_id == "broken"

    def test_project_id_is_sanitized(self, backend, graph):
        backend.save_flowchart("../evil", graph)
        assert (backend.root_dir / "evil.json").exists()
        with pytest.raises(PersistenceError):
            backend.load_flowchart("../")

    def test_delete(self, backend, graph):
        backend.save_flowchart("p", graph)
        backend.delete_flowchart("p")
        assert backend.load_flowchart("p") is None


class TestHttpBackend:
    """Tests for HttpBackend with a mocked requests session."""

    @pytest.fixture
    def session(self):
        session = requests.Session()
        session.get = MagicMock()
        session.post = MagicMock()
        return session

    @pytest.fixture
    def backend(self, session):
        return HttpBackend("https://api.example.com/api/", token="secret", session=session, timeout=3.0)

    def test_headers(self, backend, session):
        assert backend.backend_type == "http"
        assert session.headers["Authorization"] == "Bearer secret"
        assert session.headers["Accept"] == "application/json"

    def test_no_token_no_auth_header(self, session):
        HttpBackend("https://api.example.com", session=session)
        assert "Authorization" not in session.headers

    def test_load(self, backend, session, graph):
        from storymate.flowchart import graph_to_dict
        session.get.return_value = make_response(200, graph_to_dict(graph, "p1"))

        loaded = backend.load_flowchart("p1")

        session.get.assert_called_once_with("https://api.example.com/api/projects/p1/flowchart", timeout=3.0)
        assert [n.id for n in loaded] == ["start", "end"]

    def test_load_404_is_none(self, backend, session):
        session.get.return_value = make_response(404)
        assert backend.load_flowchart("p1") is None

    def test_load_server_error_raises(self, backend, session):
        session.get.return_value = make_response(500)
        with pytest.raises(PersistenceError):
            backend.load_flowchart("p1")

    def test_load_invalid_json_raises(self, backend, session):
        session.get.return_value = make_response(200, json_error=ValueError("bad json"))
        with pytest.raises(PersistenceError):
            backend.load_flowchart("p1")

    def test_load_connection_error_raises(self, backend, session):
        session.get.side_effect = requests.ConnectionError("down")
        with pytest.raises(PersistenceError) as excinfo:
            backend.load_flowchart("p1")
        assert "Could not reach server" in str(excinfo.value)

    def test_save_posts_payload(self, backend, session, graph):
        session.post.return_value = make_response(200)

        backend.save_flowchart("p1", graph)

        args, kwargs = session.post.call_args
        assert args[0] == "https://api.example.com/api/projects/p1/flowchart"
        assert kwargs["json"]["projectId"] == "p1"
        assert [n["id"] for n in kwargs["json"]["nodes"]] == ["start", "end"]
        assert kwargs["timeout"] == 3.0

    def test_save_rejected_raises(self, backend, session, graph):
        session.post.return_value = make_response(403)
        with pytest.raises(PersistenceError):
            backend.save_flowchart("p1", graph)

    def test_save_timeout_raises(self, backend, session, graph):
        session.post.side_effect = requests.Timeout("slow")
        with pytest.raises(PersistenceError):
            backend.save_flowchart("p1", graph)


class TestFactory:
    """Tests for backend factory."""

    def test_get_backend_type(self):
        assert get_backend_type({}) == "file"
        assert get_backend_type({"storage_backend": "HTTP"}) == "http"
        assert get_backend_type({"storage_backend": "carrier-pigeon"}) == "file"

    def test_create_file_backend(self, tmp_path):
        backend = create_backend({"storage_backend": "file", "data_dir": str(tmp_path)})
        assert isinstance(backend, FileBackend)
        assert backend.root_dir == tmp_path

    def test_create_http_backend(self, tmp_path):
        session = requests.Session()
        settings = {
            "storage_backend": "http",
            "api_url": "https://api.example.com",
            "api_token": "t",
            "api_timeout": "5",
            "data_dir": str(tmp_path),
        }
        backend = create_backend(settings, session=session)
        assert isinstance(backend, HttpBackend)
        assert backend.timeout == 5.0
        assert session.headers["Authorization"] == "Bearer t"

    def test_force_backend(self, tmp_path):
        backend = create_backend({"storage_backend": "http", "data_dir": str(tmp_path)}, force_backend="file")
        assert isinstance(backend, FileBackend)
