from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .chain import ChainParseError, parse_chain
from .config import AppConfig, app_config
from .diagram import THEMES, render
from .editor import CONFIRM_EXAMPLE, CONFIRM_NEW, GraphEditor
from .examples import load_catalog
from .gateway import (
    ExportFile,
    GatewayError,
    PersistenceGateway,
    export_chain_json,
    export_svg,
    export_workflow,
)
from .models import TaskChain
from .properties import form_for, summarize

logger = logging.getLogger(__name__)

router = APIRouter()


class DropRequest(BaseModel):
    type: str | None = None
    x: float = 0.0
    y: float = 0.0


class ConnectRequest(BaseModel):
    source: str
    target: str


class SelectRequest(BaseModel):
    node_id: str | None = None


class PropertyChange(BaseModel):
    key: str
    value: Any = None


class NodePatch(BaseModel):
    label: str | None = None
    x: float | None = None
    y: float | None = None


class MetadataPatch(BaseModel):
    name: str | None = None
    description: str | None = None


class ConfirmRequest(BaseModel):
    confirm: bool = False


class DiagramRequest(BaseModel):
    chain: TaskChain | None = None
    source: str | None = None
    theme: str | None = None
    scope: str = ""


def get_editor(request: Request) -> GraphEditor:
    return request.app.state.editor


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def editor_state(editor: GraphEditor, **extra: Any) -> dict[str, Any]:
    notices = editor.drain_notices()
    return {
        **extra,
        "editor": editor.snapshot(),
        "notice": notices[-1] if notices else None,
    }


def attachment(export: ExportFile) -> Response:
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


def resolve_chain(body: DiagramRequest) -> TaskChain:
    if body.source is not None:
        try:
            return parse_chain(body.source)
        except ChainParseError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
    return body.chain or TaskChain()


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/node-types")
def list_node_types(editor: GraphEditor = Depends(get_editor)) -> list[str]:
    return editor.registry.list_types()


@router.get("/node-catalog")
def node_catalog(editor: GraphEditor = Depends(get_editor)) -> list[dict[str, str]]:
    return editor.registry.list_specs()


@router.get("/config")
def config(settings: AppConfig = Depends(get_config)) -> dict[str, dict[str, object]]:
    return settings.public_settings()


@router.get("/themes")
def themes() -> dict[str, dict[str, str]]:
    return {name: theme.as_dict() for name, theme in THEMES.items()}


@router.get("/examples")
def examples(editor: GraphEditor = Depends(get_editor)) -> list[dict[str, object]]:
    return editor.examples.summaries()


@router.get("/editor")
def get_state(editor: GraphEditor = Depends(get_editor)) -> dict[str, Any]:
    return editor_state(editor)


@router.patch("/editor")
def update_metadata(body: MetadataPatch, editor: GraphEditor = Depends(get_editor)) -> dict[str, Any]:
    editor.set_metadata(name=body.name, description=body.description)
    return editor_state(editor)


@router.post("/editor/drop")
def drop_node(body: DropRequest, editor: GraphEditor = Depends(get_editor)) -> dict[str, Any]:
    node = editor.drop(body.type, body.x, body.y)
    if node is None:
        raise HTTPException(status_code=400, detail=f"Unknown node type: {body.type}")
    return editor_state(editor, node=node.to_wire())


@router.post("/editor/connect")
def connect_nodes(body: ConnectRequest, editor: GraphEditor = Depends(get_editor)) -> dict[str, Any]:
    edge = editor.connect(body.source, body.target)
    if edge is None:
        raise HTTPException(status_code=404, detail="Source or target node not found")
    return editor_state(editor, edge=edge.to_wire())


@router.delete("/editor/edges/{edge_id}")
def delete_edge(edge_id: str, editor: GraphEditor = Depends(get_editor)) -> dict[str, Any]:
    if not editor.disconnect(edge_id):
        raise HTTPException(status_code=404, detail="Edge not found")
    return editor_state(editor)


@router.post("/editor/select")
def select_node(body: SelectRequest, editor: GraphEditor = Depends(get_editor)) -> dict[str, Any]:
    editor.select(body.node_id)
    return editor_state(editor)


@router.get("/editor/nodes/{node_id}/form")
def node_form(node_id: str, editor: GraphEditor = Depends(get_editor)) -> dict[str, Any]:
    node = editor.node(node_id)
    if node is None:
        raise HTTPException(status_code=404, detail="Node not found")
    return {
        "nodeId": node_id,
        "fields": [field.as_dict() for field in form_for(node)],
        "summary": [{"label": label, "value": value} for label, value in summarize(node, editor.registry)],
    }


@router.patch("/editor/nodes/{node_id}/properties")
def update_property(
    node_id: str,
    body: PropertyChange,
    editor: GraphEditor = Depends(get_editor),
) -> dict[str, Any]:
    if editor.node(node_id) is None:
        raise HTTPException(status_code=404, detail="Node not found")
    updated = editor.update_property(node_id, body.key, body.value)
    return editor_state(editor, applied=updated is not None)


@router.patch("/editor/nodes/{node_id}")
def update_node(node_id: str, body: NodePatch, editor: GraphEditor = Depends(get_editor)) -> dict[str, Any]:
    node = editor.node(node_id)
    if node is None:
        raise HTTPException(status_code=404, detail="Node not found")
    if body.label is not None:
        editor.rename_node(node_id, body.label)
    if body.x is not None or body.y is not None:
        editor.move_node(
            node_id,
            body.x if body.x is not None else node.position.x,
            body.y if body.y is not None else node.position.y,
        )
    return editor_state(editor)


@router.delete("/editor/nodes/{node_id}")
def delete_node(node_id: str, editor: GraphEditor = Depends(get_editor)) -> dict[str, Any]:
    if not editor.delete_node(node_id):
        raise HTTPException(status_code=404, detail="Node not found")
    return editor_state(editor)


@router.post("/editor/new")
def new_workflow(body: ConfirmRequest | None = None, editor: GraphEditor = Depends(get_editor)) -> dict[str, Any]:
    if not editor.new_workflow(confirmed=bool(body and body.confirm)):
        raise HTTPException(status_code=409, detail=CONFIRM_NEW)
    return editor_state(editor)


@router.post("/editor/examples/{example_id}")
def load_example(
    example_id: str,
    body: ConfirmRequest | None = None,
    editor: GraphEditor = Depends(get_editor),
) -> dict[str, Any]:
    if example_id not in editor.examples:
        editor.load_example(example_id)
        return editor_state(editor, loaded=False)
    if not editor.load_example(example_id, confirmed=bool(body and body.confirm)):
        raise HTTPException(status_code=409, detail=CONFIRM_EXAMPLE)
    return editor_state(editor, loaded=True)


@router.post("/editor/save")
async def save_workflow(editor: GraphEditor = Depends(get_editor)) -> dict[str, Any]:
    saved_id = await editor.save()
    return editor_state(editor, id=saved_id)


@router.post("/editor/load/{workflow_id}")
async def load_workflow(workflow_id: str, editor: GraphEditor = Depends(get_editor)) -> dict[str, Any]:
    loaded = await editor.load(workflow_id)
    return editor_state(editor, loaded=loaded)


@router.post("/editor/execute")
async def execute_workflow(editor: GraphEditor = Depends(get_editor)) -> dict[str, Any]:
    result = await editor.execute()
    return editor_state(editor, result=result)


@router.get("/editor/saved")
async def saved_workflows(editor: GraphEditor = Depends(get_editor)) -> dict[str, Any]:
    await editor.refresh_saved_workflows()
    return editor_state(editor)


@router.delete("/editor/saved/{workflow_id}")
async def delete_saved_workflow(workflow_id: str, editor: GraphEditor = Depends(get_editor)) -> dict[str, Any]:
    deleted = await editor.delete_saved(workflow_id)
    return editor_state(editor, deleted=deleted)


@router.get("/editor/executions")
async def execution_history(editor: GraphEditor = Depends(get_editor)) -> Any:
    if not editor.workflow.id or editor.gateway is None:
        raise HTTPException(status_code=409, detail="Save the workflow before viewing its executions")
    try:
        return await editor.gateway.execution_history(editor.workflow.id)
    except GatewayError as exc:
        logger.warning("Could not fetch execution history: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@router.get("/editor/export")
def export_current(editor: GraphEditor = Depends(get_editor)) -> Response:
    return attachment(export_workflow(editor.workflow))


@router.post("/diagram")
def diagram(body: DiagramRequest, settings: AppConfig = Depends(get_config)) -> Response:
    chain = resolve_chain(body)
    theme = body.theme or settings.diagram_defaults()["default_theme"]
    return Response(content=render(chain, theme, scope=body.scope), media_type="image/svg+xml")


@router.post("/diagram/export")
def export_diagram(body: DiagramRequest, settings: AppConfig = Depends(get_config)) -> Response:
    chain = resolve_chain(body)
    theme = body.theme or settings.diagram_defaults()["default_theme"]
    return attachment(export_svg(chain, theme))


@router.post("/diagram/export.json")
def export_diagram_json(body: DiagramRequest) -> Response:
    return attachment(export_chain_json(resolve_chain(body)))


def create_app(
    config: AppConfig = app_config,
    gateway: PersistenceGateway | None = None,
) -> FastAPI:
    logging.basicConfig(level=config.logging_level())

    editor_defaults = config.editor_defaults()
    editor = GraphEditor(
        gateway or PersistenceGateway(config.gateway_config()),
        examples=load_catalog(config.load_examples()),
        default_name=str(editor_defaults["default_name"]),
        viewport_size=(
            float(editor_defaults["viewport_width"]),
            float(editor_defaults["viewport_height"]),
        ),
    )

    app = FastAPI(title="Flowdesk", version="0.3.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://127.0.0.1:5173", "http://localhost:5173"],
        allow_origin_regex=r"^https?://(127\.0\.0\.1|localhost):\d+$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.config = config
    app.state.editor = editor
    app.include_router(router)
    logger.info("Editor ready with %d example workflows", len(editor.examples))
    return app


app = create_app()


def main() -> None:
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
