"""Shared fixtures: an in-memory Zendesk served through httpx.MockTransport."""

import re

import httpx
import pytest

BASE_URL = "https://acme.zendesk.com"

_AUDITS_PATH = re.compile(r"/api/v2/tickets/(\d+)/audits\.json")
_USER_PATH = re.compile(r"/api/v2/users/(\d+)\.json")


class FakeZendesk:
    """Answers the handful of endpoints the report needs."""

    def __init__(self):
        self.tickets: list[dict] = []
        self.audits: dict[int, list[dict]] = {}
        self.users: dict[int, dict] = {}
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/api/v2/users/me.json":
            return httpx.Response(200, json={"user": {"id": 1, "name": "Admin", "role": "admin"}})
        if path == "/api/v2/tickets.json":
            return httpx.Response(200, json={
                "tickets": self.tickets,
                "meta": {"has_more": False, "after_cursor": None},
                "links": {"next": None},
            })
        match = _AUDITS_PATH.fullmatch(path)
        if match:
            return httpx.Response(200, json={
                "audits": self.audits.get(int(match.group(1)), []),
                "meta": {"has_more": False},
                "links": {"next": None},
            })
        match = _USER_PATH.fullmatch(path)
        if match and int(match.group(1)) in self.users:
            return httpx.Response(200, json={"user": self.users[int(match.group(1))]})
        return httpx.Response(404, json={"error": "RecordNotFound", "description": "Not found"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self):
        from ticket_metrics.client import ZendeskClient

        return ZendeskClient(
            url=BASE_URL,
            email="agent@example.com",
            token="abc123",
            transport=self.transport,
        )

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


@pytest.fixture
def fake_zendesk() -> FakeZendesk:
    return FakeZendesk()
