from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from . import graph
from .examples import ExampleCatalog
from .gateway import GatewayError, PersistenceGateway
from .models import Edge, Node, Position, Workflow, WorkflowSummary
from .nodes import NodeRegistry, default_registry
from .properties import UNCHANGED, FormField, apply_change, form_for
from .viewport import Viewport, clamp_zoom, fit

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[str], bool]
NotifyCallback = Callable[[str], None]
Listener = Callable[[Workflow], None]

CONFIRM_NEW = "Create a new workflow? Any unsaved changes will be lost."
CONFIRM_EXAMPLE = "Load example workflow? Any unsaved changes will be lost."
NAME_REQUIRED = "Please provide a workflow name"
SAVE_SUCCEEDED = "Workflow saved successfully!"
SAVE_FAILED = "Failed to save workflow. Please try again."
LOAD_FAILED = "Failed to load workflow. Please try again."
EXECUTE_FAILED = "Failed to execute workflow. Please check the console for details."
EXAMPLE_NOT_FOUND = "Example workflow not found."
LIST_FAILED = "Failed to fetch saved workflows."
DELETE_FAILED = "Failed to delete workflow. Please try again."


def _always_confirm(message: str) -> bool:
    return True


class GraphEditor:
    def __init__(
        self,
        gateway: PersistenceGateway | None = None,
        *,
        registry: NodeRegistry | None = None,
        examples: ExampleCatalog | None = None,
        confirm: ConfirmCallback | None = None,
        notify: NotifyCallback | None = None,
        default_name: str = "New Workflow",
        viewport_size: tuple[float, float] = (1200.0, 800.0),
    ) -> None:
        self.gateway = gateway
        self.registry = registry or default_registry()
        self.examples = examples if examples is not None else ExampleCatalog()
        self.default_name = default_name
        self.viewport_size = viewport_size
        self._confirm = confirm or _always_confirm
        self._notify = notify

        self.workflow = graph.reset(default_name)
        self.selected_node_id: str | None = None
        self.viewport = Viewport()
        self.saved_workflows: list[WorkflowSummary] = []
        self.execution_results: Any = None
        self.notices: list[str] = []

        self.is_saving = False
        self.is_executing = False
        self.is_loading = False

        self._listeners: list[Listener] = []
        self._ids = graph.NodeIdFactory()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_workflow(self, workflow: Workflow) -> bool:
        if workflow is self.workflow:
            return False
        self.workflow = workflow
        for listener in list(self._listeners):
            listener(workflow)
        return True

    def notify(self, message: str) -> None:
        self.notices.append(message)
        if self._notify is not None:
            self._notify(message)

    def drain_notices(self) -> list[str]:
        notices, self.notices = self.notices, []
        return notices

    @property
    def needs_confirmation(self) -> bool:
        return bool(self.workflow.nodes)

    def _confirmed(self, message: str, confirmed: bool | None) -> bool:
        if not self.needs_confirmation:
            return True
        if confirmed is not None:
            return confirmed
        return self._confirm(message)

    @property
    def selected_node(self) -> Node | None:
        return graph.find_node(self.workflow, self.selected_node_id)

    def select(self, node_id: str | None) -> Node | None:
        node = graph.find_node(self.workflow, node_id)
        self.selected_node_id = node.id if node is not None else None
        return node

    def clear_selection(self) -> None:
        self.selected_node_id = None

    def set_viewport(self, x: float, y: float, zoom: float = 1.0) -> Viewport:
        self.viewport = Viewport(x=x, y=y, zoom=clamp_zoom(zoom))
        return self.viewport

    def fit_view(self) -> Viewport:
        width, height = self.viewport_size
        self.viewport = fit(self.workflow.nodes, width, height)
        return self.viewport

    def drop(self, payload: dict[str, Any] | str | None, screen_x: float, screen_y: float) -> Node | None:
        """Create a node from a palette drop at a screen position."""
        type_name = payload.get("type") if isinstance(payload, dict) else payload
        spec = self.registry.find(type_name)
        if spec is None:
            logger.warning("Ignoring drop with unknown node type %r", type_name)
            return None

        position = self.viewport.project(screen_x, screen_y)
        node_id = self._ids.next_id(spec.kind)
        self._set_workflow(
            graph.add_node(self.workflow, spec.kind, position, node_id=node_id, registry=self.registry)
        )
        return graph.find_node(self.workflow, node_id)

    def connect(self, source: str, target: str) -> Edge | None:
        updated = graph.add_edge(self.workflow, source, target)
        if not self._set_workflow(updated):
            logger.warning("Ignoring edge %s -> %s: unknown endpoint", source, target)
            return None
        return updated.edges[-1]

    def disconnect(self, edge_id: str) -> bool:
        return self._set_workflow(graph.remove_edge(self.workflow, edge_id))

    def update_property(self, node_id: str, key: str, raw_value: Any) -> Node | None:
        """Commit one form field. Returns None when the node is unknown or the value is rejected."""
        node = graph.find_node(self.workflow, node_id)
        if node is None:
            return None
        updated = apply_change(node, key, raw_value)
        if updated is UNCHANGED:
            return None
        self._set_workflow(graph.replace_node(self.workflow, updated))
        return updated

    def node(self, node_id: str) -> Node | None:
        return graph.find_node(self.workflow, node_id)

    def form(self, node_id: str) -> list[FormField] | None:
        node = graph.find_node(self.workflow, node_id)
        return form_for(node) if node is not None else None

    def rename_node(self, node_id: str, label: str) -> Node | None:
        self._set_workflow(graph.update_label(self.workflow, node_id, label))
        return graph.find_node(self.workflow, node_id)

    def move_node(self, node_id: str, x: float, y: float) -> Node | None:
        self._set_workflow(graph.move_node(self.workflow, node_id, Position(x=x, y=y)))
        return graph.find_node(self.workflow, node_id)

    def delete_node(self, node_id: str) -> bool:
        changed = self._set_workflow(graph.remove_node(self.workflow, node_id))
        if changed and self.selected_node_id == node_id:
            self.selected_node_id = None
        return changed

    def set_metadata(self, name: str | None = None, description: str | None = None) -> Workflow:
        update: dict[str, str] = {}
        if name is not None:
            update["name"] = name
        if description is not None:
            update["description"] = description
        if update:
            self._set_workflow(self.workflow.model_copy(update=update))
        return self.workflow

    def new_workflow(self, confirmed: bool | None = None) -> bool:
        if not self._confirmed(CONFIRM_NEW, confirmed):
            return False
        self._set_workflow(graph.reset(self.default_name))
        self.selected_node_id = None
        self.execution_results = None
        self.viewport = Viewport()
        return True

    def load_example(self, example_id: str, confirmed: bool | None = None) -> bool:
        example = self.examples.get(example_id)
        if example is None:
            logger.error("Example workflow not found: %s", example_id)
            self.notify(EXAMPLE_NOT_FOUND)
            return False
        if not self._confirmed(CONFIRM_EXAMPLE, confirmed):
            return False

        self._set_workflow(graph.replace_graph(self.workflow, [], []))
        self._set_workflow(
            Workflow(
                id=None,
                name=example.name,
                description=example.description,
                nodes=list(example.nodes),
                edges=list(example.edges),
            )
        )
        self.fit_view()
        self.selected_node_id = None
        self.execution_results = None
        logger.info("Example workflow loaded: %s (%d nodes)", example_id, len(example.nodes))
        return True

    def _require_gateway(self) -> PersistenceGateway:
        if self.gateway is None:
            raise RuntimeError("No persistence gateway configured")
        return self.gateway

    async def save(self) -> str | None:
        if self.is_saving:
            logger.info("Save already in progress; ignoring request")
            return None
        if not self.workflow.name.strip():
            self.notify(NAME_REQUIRED)
            return None

        gateway = self._require_gateway()
        self.is_saving = True
        try:
            saved_id = await gateway.save(self.workflow)
        except GatewayError:
            logger.exception("Error saving workflow")
            self.notify(SAVE_FAILED)
            return None
        finally:
            self.is_saving = False

        if not saved_id:
            logger.warning("Workflow service returned no id for %r", self.workflow.name)
            return None

        if saved_id != self.workflow.id:
            self._set_workflow(self.workflow.model_copy(update={"id": saved_id}))
        self._remember_saved(saved_id)
        self.notify(SAVE_SUCCEEDED)
        return saved_id

    def _remember_saved(self, workflow_id: str) -> None:
        summary = WorkflowSummary(
            id=workflow_id,
            name=self.workflow.name,
            description=self.workflow.description,
        )
        for index, existing in enumerate(self.saved_workflows):
            if existing.id == workflow_id:
                self.saved_workflows[index] = summary
                return
        self.saved_workflows.append(summary)

    async def load(self, workflow_id: str) -> bool:
        if self.is_loading:
            logger.info("Load already in progress; ignoring request for %s", workflow_id)
            return False

        gateway = self._require_gateway()
        self.is_loading = True
        try:
            loaded = await gateway.load(workflow_id)
        except GatewayError:
            logger.exception("Error loading workflow %s", workflow_id)
            self.notify(LOAD_FAILED)
            return False
        finally:
            self.is_loading = False

        self._set_workflow(loaded.model_copy(update={"id": loaded.id or workflow_id}))
        self.selected_node_id = None
        return True

    async def refresh_saved_workflows(self) -> list[WorkflowSummary]:
        gateway = self._require_gateway()
        try:
            self.saved_workflows = await gateway.list_workflows()
        except GatewayError:
            logger.exception("Error fetching saved workflows")
            self.notify(LIST_FAILED)
        return self.saved_workflows

    async def delete_saved(self, workflow_id: str) -> bool:
        gateway = self._require_gateway()
        try:
            await gateway.delete(workflow_id)
        except GatewayError:
            logger.exception("Error deleting workflow %s", workflow_id)
            self.notify(DELETE_FAILED)
            return False
        self.saved_workflows = [wf for wf in self.saved_workflows if wf.id != workflow_id]
        if self.workflow.id == workflow_id:
            self._set_workflow(self.workflow.model_copy(update={"id": None}))
        return True

    async def execute(self) -> Any:
        if self.is_executing:
            logger.info("Execution already in progress; ignoring request")
            return None

        gateway = self._require_gateway()
        self.is_executing = True
        self.execution_results = None
        try:
            self.execution_results = await gateway.execute(self.workflow)
        except GatewayError:
            logger.exception("Error executing workflow")
            self.notify(EXECUTE_FAILED)
            return None
        finally:
            self.is_executing = False
        return self.execution_results

    def snapshot(self) -> dict[str, Any]:
        return {
            "workflow": self.workflow.to_wire(),
            "selectedNodeId": self.selected_node_id,
            "viewport": self.viewport.model_dump(),
            "isSaving": self.is_saving,
            "isExecuting": self.is_executing,
            "isLoading": self.is_loading,
            "savedWorkflows": [summary.to_wire() for summary in self.saved_workflows],
            "executionResults": self.execution_results,
        }
