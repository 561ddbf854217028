from __future__ import annotations

import xml.etree.ElementTree as ET

from flowdesk.editor import CONFIRM_EXAMPLE, CONFIRM_NEW, EXAMPLE_NOT_FOUND, SAVE_FAILED, SAVE_SUCCEEDED


def _drop(client, node_type: str, x: float = 0, y: float = 0) -> dict:
    response = client.post("/editor/drop", json={"type": node_type, "x": x, "y": y})
    assert response.status_code == 200
    return response.json()["node"]


def test_catalog_endpoints(client) -> None:
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/node-types").json() == ["aiAgent", "tool", "trigger", "output"]
    catalog = client.get("/node-catalog").json()
    assert [entry["label"] for entry in catalog] == ["AI Agent", "Tool", "Trigger", "Output"]
    assert set(client.get("/themes").json()) == {"blue", "green", "purple", "dark"}
    example_ids = [entry["id"] for entry in client.get("/examples").json()]
    assert "example-customer-support" in example_ids

    settings = client.get("/config").json()
    assert settings["diagram"]["default_theme"] == "blue"
    assert "api_key" not in settings["gateway"]


def test_drop_connect_and_edit_nodes(client) -> None:
    trigger = _drop(client, "trigger")
    tool = _drop(client, "tool", 200, 0)
    assert tool["data"]["properties"] == {"toolType": "API", "endpoint": "", "method": "GET", "headers": {}}

    assert client.post("/editor/drop", json={"type": "unknown"}).status_code == 400
    assert client.post("/editor/connect", json={"source": trigger["id"], "target": "nope"}).status_code == 404

    edge = client.post("/editor/connect", json={"source": trigger["id"], "target": tool["id"]}).json()["edge"]
    assert edge["animated"] is True

    changed = client.patch(f"/editor/nodes/{tool['id']}/properties", json={"key": "headers", "value": '{"X": "1"}'})
    assert changed.json()["applied"] is True
    rejected = client.patch(f"/editor/nodes/{tool['id']}/properties", json={"key": "headers", "value": "{oops"})
    assert rejected.json()["applied"] is False

    client.patch(f"/editor/nodes/{tool['id']}", json={"label": "Fetch", "x": 5})
    state = client.get("/editor").json()["editor"]
    stored = next(node for node in state["workflow"]["nodes"] if node["id"] == tool["id"])
    assert stored["data"]["label"] == "Fetch"
    assert stored["position"] == {"x": 5.0, "y": 0.0}
    assert stored["data"]["properties"]["headers"] == {"X": "1"}

    form = client.get(f"/editor/nodes/{tool['id']}/form").json()
    assert [field["key"] for field in form["fields"]] == ["toolType", "endpoint", "method", "headers"]
    assert form["summary"] == [{"label": "Type", "value": "API"}, {"label": "Method", "value": "GET"}]

    client.post("/editor/select", json={"node_id": tool["id"]})
    assert client.delete(f"/editor/nodes/{tool['id']}").status_code == 200
    state = client.get("/editor").json()["editor"]
    assert state["selectedNodeId"] is None
    assert state["workflow"]["edges"] == []
    assert client.get(f"/editor/nodes/{tool['id']}/form").status_code == 404


def test_gated_actions_need_confirmation(client) -> None:
    assert client.post("/editor/new").status_code == 200
    _drop(client, "output")

    refused = client.post("/editor/new", json={"confirm": False})
    assert refused.status_code == 409
    assert refused.json()["detail"] == CONFIRM_NEW

    refused = client.post("/editor/examples/example-content-generation", json={})
    assert refused.status_code == 409
    assert refused.json()["detail"] == CONFIRM_EXAMPLE

    loaded = client.post("/editor/examples/example-content-generation", json={"confirm": True}).json()
    assert loaded["loaded"] is True
    assert len(loaded["editor"]["workflow"]["nodes"]) == 6

    missing = client.post("/editor/examples/example-missing", json={"confirm": True}).json()
    assert missing["loaded"] is False
    assert missing["notice"] == EXAMPLE_NOT_FOUND


def test_save_load_execute_round_trip(client, service) -> None:
    client.patch("/editor", json={"name": "Remote"})
    _drop(client, "aiAgent")

    saved = client.post("/editor/save").json()
    assert saved["id"] == "wf-1"
    assert saved["notice"] == SAVE_SUCCEEDED
    assert service.body()["nodes"][0]["type"] == "llmNode"

    client.post("/editor/new", json={"confirm": True})
    loaded = client.post("/editor/load/wf-1").json()
    assert loaded["loaded"] is True
    assert loaded["editor"]["workflow"]["name"] == "Remote"

    executed = client.post("/editor/execute").json()
    assert executed["result"] == {"text": "done"}

    history = client.get("/editor/executions").json()
    assert history == [{"workflowId": "wf-1", "status": "success"}]

    listing = client.get("/editor/saved").json()
    assert listing["editor"]["savedWorkflows"] == [{"id": "wf-1", "name": "Remote", "description": ""}]


def test_save_failure_is_reported_as_notice(client, service) -> None:
    _drop(client, "tool")
    service.fail_with = 502
    response = client.post("/editor/save")
    assert response.status_code == 200
    assert response.json()["notice"] == SAVE_FAILED


def test_export_current_workflow(client) -> None:
    client.patch("/editor", json={"name": "Exported"})
    response = client.get("/editor/export")
    assert response.headers["content-type"].startswith("application/json")
    assert 'filename="Exported.json"' in response.headers["content-disposition"]
    assert response.json()["name"] == "Exported"

    client.post("/editor/drop", json={"type": "aiAgent", "x": 0, "y": 0})
    exported = client.get("/editor/export").json()
    assert [node["type"] for node in exported["nodes"]] == ["llmNode"]


def test_diagram_rendering(client) -> None:
    chain = {
        "name": "Upload",
        "tasks": [
            {"name": "Wait", "taskReferenceName": "wait_for_upload"},
            {"name": "Auth", "taskReferenceName": "generate_auth"},
        ],
    }
    response = client.post("/diagram", json={"chain": chain, "theme": "green"})
    assert response.headers["content-type"].startswith("image/svg+xml")
    assert ET.fromstring(response.text).get("height") == "410"

    exported = client.post("/diagram/export", json={"chain": chain})
    assert 'filename="Upload.svg"' in exported.headers["content-disposition"]

    as_json = client.post("/diagram/export.json", json={"chain": chain})
    assert 'filename="Upload.json"' in as_json.headers["content-disposition"]
    assert [task["taskReferenceName"] for task in as_json.json()["tasks"]] == ["wait_for_upload", "generate_auth"]

    bad = client.post("/diagram", json={"source": "{broken"})
    assert bad.status_code == 400
    assert bad.json()["detail"].startswith("Invalid JSON: ")
