from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, assert_never

import httpx
from pydantic import TypeAdapter, ValidationError

from .config import GatewayConfig
from .diagram import Theme, render
from .graph import prune_dangling_edges
from .models import NodeKind, TaskChain, Workflow, WorkflowSummary

logger = logging.getLogger(__name__)

_SUMMARIES = TypeAdapter(list[WorkflowSummary])


class GatewayError(Exception):
    """Raised when the workflow service cannot be reached or rejects a request."""

    def __init__(self, message: str, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


def external_name(kind: NodeKind) -> str:
    match kind:
        case NodeKind.AI_AGENT:
            return "llmNode"
        case NodeKind.TOOL:
            return "toolNode"
        case NodeKind.TRIGGER:
            return "triggerNode"
        case NodeKind.OUTPUT:
            return "outputNode"
        case _:
            assert_never(kind)


WIRE_TYPES: dict[str, str] = {kind.value: external_name(kind) for kind in NodeKind}
_INTERNAL_TYPES: dict[str, str] = {wire: internal for internal, wire in WIRE_TYPES.items()}


def to_external(type_name: str) -> str:
    """Editor type tag to service type tag. Unknown tags pass through."""
    return WIRE_TYPES.get(type_name, type_name)


def to_internal(type_name: str) -> str:
    return _INTERNAL_TYPES.get(type_name, type_name)


def to_wire(workflow: Workflow) -> dict[str, Any]:
    payload = prune_dangling_edges(workflow).to_wire()
    payload["nodes"] = [{**node, "type": to_external(node["type"])} for node in payload["nodes"]]
    return payload


def from_wire(payload: dict[str, Any]) -> Workflow:
    nodes = [
        {**node, "type": to_internal(node.get("type", ""))}
        for node in payload.get("nodes") or []
        if isinstance(node, dict)
    ]
    return Workflow.model_validate({**payload, "nodes": nodes, "edges": payload.get("edges") or []})


@dataclass(frozen=True, slots=True)
class ExportFile:
    filename: str
    media_type: str
    content: str


def _file_stem(name: str | None) -> str:
    return (name or "").strip() or "workflow"


def export_json(obj: Any, name: str | None = None) -> ExportFile:
    return ExportFile(
        filename=f"{_file_stem(name)}.json",
        media_type="application/json",
        content=json.dumps(obj, indent=2),
    )


def export_workflow(workflow: Workflow) -> ExportFile:
    return export_json(to_wire(workflow), workflow.name)


def export_chain_json(chain: TaskChain) -> ExportFile:
    return export_json(chain.to_wire(), chain.name)


def export_svg(chain: TaskChain, theme: str | Theme | None = None) -> ExportFile:
    return ExportFile(
        filename=f"{_file_stem(chain.name)}.svg",
        media_type="image/svg+xml",
        content=render(chain, theme),
    )


class PersistenceGateway:
    def __init__(
        self,
        config: GatewayConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self._transport = transport

    def headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        payload: Any = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.request(
                    method,
                    url,
                    json=payload,
                    params=params,
                    headers=self.headers(),
                )
        except httpx.HTTPError as exc:
            raise GatewayError(f"Failed to reach workflow service at {url}: {exc}") from exc

        if response.is_error:
            raise GatewayError(
                f"API error: {response.status_code} {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        if "application/json" not in response.headers.get("content-type", ""):
            return response.text
        try:
            return response.json()
        except ValueError as exc:
            raise GatewayError(
                f"Invalid JSON from {method} {path}",
                status_code=response.status_code,
                body=response.text,
            ) from exc

    async def save(self, workflow: Workflow) -> str | None:
        body = to_wire(workflow)
        if workflow.id:
            logger.info("Updating workflow %s", workflow.id)
            result = await self._request("PUT", f"/workflows/{workflow.id}", payload=body)
        else:
            logger.info("Creating workflow %r", workflow.name)
            result = await self._request("POST", "/workflows", payload=body)

        saved_id = result.get("id") if isinstance(result, dict) else None
        return str(saved_id) if saved_id else workflow.id

    async def load(self, workflow_id: str) -> Workflow:
        result = await self._request("GET", f"/workflows/{workflow_id}")
        if not isinstance(result, dict):
            raise GatewayError(f"Unexpected workflow payload for {workflow_id}", body=str(result))
        try:
            return from_wire(result)
        except ValidationError as exc:
            raise GatewayError(f"Workflow {workflow_id} could not be read: {exc}", body=json.dumps(result)) from exc

    async def list_workflows(self) -> list[WorkflowSummary]:
        result = await self._request("GET", "/workflows")
        try:
            return _SUMMARIES.validate_python(result)
        except ValidationError as exc:
            raise GatewayError(f"Unexpected workflow listing: {exc}", body=str(result)) from exc

    async def delete(self, workflow_id: str) -> None:
        logger.info("Deleting workflow %s", workflow_id)
        await self._request("DELETE", f"/workflows/{workflow_id}")

    async def execute(self, workflow: Workflow) -> Any:
        logger.info("Executing workflow %s", workflow.id or workflow.name)
        return await self._request("POST", "/predictions", payload={"workflow": to_wire(workflow)})

    async def execution_history(self, workflow_id: str) -> Any:
        return await self._request("GET", "/executions", params={"workflowId": workflow_id})
