import pytest
from fastapi.testclient import TestClient

from smil_timeline.server import app

MOVING_SQUARE = (
    '<rect width="10" height="10">'
    '<animateTransform attributeName="transform" type="translate" from="0 0" to="100 0" dur="1s" fill="freeze"/>'
    "</rect>"
)


@pytest.fixture
def client():
    return TestClient(app)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_delays(client):
    payload = {
        "animations": [
            {"id": "a", "targetElementId": "el", "dur": "2s"},
            {"id": "b", "targetElementId": "el", "dur": "1s"},
        ],
        "chains": [
            {
                "id": "c1",
                "entries": [
                    {"animationId": "a"},
                    {"animationId": "b", "trigger": "end", "delaySeconds": 0.5},
                ],
            }
        ],
    }
    response = client.post("/api/timeline/delays", json=payload)
    assert response.status_code == 200
    data = response.json()
    assert data["delays"] == {"a": 0.0, "b": 2500.0}
    assert data["blocked"] == []
    assert data["maxDuration"] == pytest.approx(3.5)


def test_delays_of_endless_timeline(client):
    payload = {"animations": [{"id": "loop", "targetElementId": "el", "dur": "1s", "repeatCount": "indefinite"}]}
    response = client.post("/api/timeline/delays", json=payload)
    assert response.status_code == 200
    assert response.json()["maxDuration"] is None


def test_delays_rejects_untargeted_animation(client):
    response = client.post("/api/timeline/delays", json={"animations": [{"id": "a"}]})
    assert response.status_code == 422


def test_reproject(client):
    payload = {
        "animations": [
            {"id": "rot", "targetElementId": "el", "kind": "transform", "transformKind": "rotate", "from": "0", "to": "360"},
            {"id": "fade", "targetElementId": "other", "attributeName": "opacity", "from": "1", "to": "0"},
        ],
        "deltas": [{"elementId": "el", "from": [1, 0, 0, 1, 0, 0], "to": [1, 0, 0, 1, 10, 20]}],
    }
    response = client.post("/api/animations/reproject", json=payload)
    assert response.status_code == 200
    data = response.json()
    assert data["changed"] == ["rot"]
    assert data["animations"][0]["from"] == "0,10,20"
    assert data["animations"][0]["to"] == "360,10,20"
    assert data["animations"][1]["from"] == "1"


def test_compile_elements(client):
    payload = {"animations": [{"id": "fade", "targetElementId": "r1", "attributeName": "opacity", "from": "1", "to": "0"}]}
    response = client.post("/api/animations/compile", json=payload)
    assert response.status_code == 200
    data = response.json()
    assert len(data["elements"]) == 1
    assert data["elements"][0].startswith('<animate attributeName="opacity"')
    assert data["svgContent"] is None


def test_compile_document(client):
    payload = {
        "animations": [{"id": "fade", "targetElementId": "r1", "attributeName": "opacity", "from": "1", "to": "0"}],
        "svgContent": '<svg xmlns="http://www.w3.org/2000/svg"><rect id="r1" width="1" height="1"/></svg>',
    }
    response = client.post("/api/animations/compile", json=payload)
    assert response.status_code == 200
    assert 'attributeName="opacity"' in response.json()["svgContent"]


def test_compile_rejects_bad_markup(client):
    payload = {"animations": [], "svgContent": "<svg"}
    response = client.post("/api/animations/compile", json=payload)
    assert response.status_code == 400


def test_bounds_of_serialized_elements(client):
    response = client.post("/api/export/bounds", json={"serializedElements": MOVING_SQUARE})
    assert response.status_code == 200
    data = response.json()
    assert data["minX"] == pytest.approx(0)
    assert data["maxX"] == pytest.approx(110)
    assert data["height"] == pytest.approx(10)


def test_bounds_of_document(client):
    svg = f'<svg xmlns="http://www.w3.org/2000/svg">{MOVING_SQUARE}</svg>'
    response = client.post("/api/export/bounds", json={"svgContent": svg})
    assert response.status_code == 200
    assert response.json()["width"] == pytest.approx(110)


def test_bounds_not_found(client):
    response = client.post("/api/export/bounds", json={"serializedElements": ""})
    assert response.status_code == 404


def test_bounds_needs_content(client):
    response = client.post("/api/export/bounds", json={})
    assert response.status_code == 400


def test_freeze(client):
    svg = '<svg xmlns="http://www.w3.org/2000/svg"><rect x="0"><animate attributeName="x" from="0" to="100" dur="2s"/></rect></svg>'
    response = client.post("/api/export/freeze", json={"svgContent": svg, "time": 1})
    assert response.status_code == 200
    data = response.json()
    assert 'x="50"' in data["svgContent"]
    assert "<animate" not in data["svgContent"]
    assert data["time"] == 1


def test_freeze_rejects_bad_markup(client):
    response = client.post("/api/export/freeze", json={"svgContent": "<svg", "time": 1})
    assert response.status_code == 400
