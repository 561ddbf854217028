from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from flowdesk.api import create_app
from flowdesk.config import AppConfig, GatewayConfig
from flowdesk.editor import GraphEditor
from flowdesk.examples import load_catalog
from flowdesk.gateway import PersistenceGateway

BASE_URL = "http://service.test/api/v1"


class FakeService:
    """In-memory stand-in for the workflow service behind httpx.MockTransport."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.workflows: dict[str, dict] = {}
        self.fail_with: int | None = None
        self.raise_error: Exception | None = None
        self.prediction: object = {"text": "done"}
        self._next_id = 1

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raise_error is not None:
            raise self.raise_error
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, text="service unavailable")

        path = request.url.path.removeprefix("/api/v1")
        method = request.method

        if path == "/workflows" and method == "POST":
            payload = json.loads(request.content)
            workflow_id = f"wf-{self._next_id}"
            self._next_id += 1
            self.workflows[workflow_id] = {**payload, "id": workflow_id}
            return httpx.Response(200, json=self.workflows[workflow_id])
        if path == "/workflows" and method == "GET":
            return httpx.Response(
                200,
                json=[
                    {"id": wf_id, "name": wf["name"], "description": wf.get("description", "")}
                    for wf_id, wf in self.workflows.items()
                ],
            )
        if path.startswith("/workflows/"):
            workflow_id = path.removeprefix("/workflows/")
            if method == "PUT":
                self.workflows[workflow_id] = {**json.loads(request.content), "id": workflow_id}
                return httpx.Response(200, json=self.workflows[workflow_id])
            if workflow_id not in self.workflows:
                return httpx.Response(404, json={"message": "not found"})
            if method == "GET":
                return httpx.Response(200, json=self.workflows[workflow_id])
            if method == "DELETE":
                del self.workflows[workflow_id]
                return httpx.Response(204)
        if path == "/predictions" and method == "POST":
            return httpx.Response(200, json=self.prediction)
        if path == "/executions" and method == "GET":
            return httpx.Response(
                200,
                json=[{"workflowId": request.url.params["workflowId"], "status": "success"}],
            )
        return httpx.Response(404, text="no route")


@pytest.fixture()
def service() -> FakeService:
    return FakeService()


@pytest.fixture()
def gateway(service: FakeService) -> PersistenceGateway:
    return PersistenceGateway(GatewayConfig(base_url=BASE_URL), transport=service.transport)


@pytest.fixture()
def notices() -> list[str]:
    return []


@pytest.fixture()
def make_editor(gateway: PersistenceGateway, notices: list[str]) -> Callable[..., GraphEditor]:
    def factory(**kwargs) -> GraphEditor:
        kwargs.setdefault("examples", load_catalog())
        kwargs.setdefault("notify", notices.append)
        return GraphEditor(gateway, **kwargs)

    return factory


@pytest.fixture()
def editor(make_editor) -> GraphEditor:
    return make_editor()


@pytest.fixture()
def client(gateway: PersistenceGateway) -> TestClient:
    app = create_app(AppConfig(), gateway=gateway)
    return TestClient(app)
