"""
Shared fixtures: an in-memory EAV table and a counting mock write API.
"""

import json
import sqlite3
from urllib.parse import parse_qs

import httpx
import pytest

EAV_SCHEMA = """
    CREATE TABLE redcap_data (
        project_id INTEGER NOT NULL,
        event_name TEXT,
        record TEXT NOT NULL,
        field_name TEXT NOT NULL,
        value TEXT
    );
    CREATE INDEX idx_redcap_data_lookup ON redcap_data(project_id, field_name, value);
"""


@pytest.fixture
def eav_conn():
    """In-memory SQLite connection with an empty EAV table."""
    conn = sqlite3.connect(":memory:", isolation_level=None)
    conn.executescript(EAV_SCHEMA)
    yield conn
    conn.close()


@pytest.fixture
def seed(eav_conn):
    """Insert (project_id, record, field_name, value[, event_name]) rows."""

    def _seed(*rows):
        for row in rows:
            project_id, record, field_name, value, *rest = row
            event_name = rest[0] if rest else None
            eav_conn.execute(
                "INSERT INTO redcap_data (project_id, event_name, record, field_name, value) "
                "VALUES (?, ?, ?, ?, ?)",
                (project_id, event_name, record, field_name, value),
            )

    return _seed


class MockWriteApi:
    """Stands in for the remote record import endpoint.

    Records every request and answers with a fixed status and body, or
    raises the configured transport exception.
    """

    def __init__(self, status_code=200, body=None, exc=None):
        self.status_code = status_code
        self.body = body
        self.exc = exc
        self.requests = []

    @property
    def calls(self):
        return len(self.requests)

    def form(self, index=-1):
        """Decoded form fields of a recorded request."""
        fields = parse_qs(self.requests[index].content.decode())
        return {key: values[0] for key, values in fields.items()}

    def data(self, index=-1):
        """Decoded JSON ``data`` array of a recorded request."""
        return json.loads(self.form(index)["data"])

    def __call__(self, request):
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc(f"simulated failure for {request.url}", request=request)
        if isinstance(self.body, (dict, list)):
            return httpx.Response(self.status_code, json=self.body)
        return httpx.Response(self.status_code, text=self.body or "")


@pytest.fixture
def write_api():
    """Mock write API answering HTTP 200."""
    return MockWriteApi()


@pytest.fixture
def http_client(write_api):
    """httpx client routed to the mock write API."""
    with httpx.Client(transport=httpx.MockTransport(write_api)) as client:
        yield client
