from io import BytesIO

import numpy as np
import pytest
from PIL import Image as PILImage

from conftest import FakeFace, fake_backend_factory, make_gradient
from face_censor import api_server
from face_censor.models.face_engine import FaceEngine
from face_censor.repositories.pixel_buffer_repository import PixelBufferRepository
from face_censor.services.detection_service import DetectionService

FACES = [FakeFace(bbox=np.array([8.0, 8.0, 40.0, 40.0]), det_score=0.93)]


def upload_payload(width=48, height=48, filename="face.png"):
    out = BytesIO()
    PILImage.fromarray(make_gradient(width, height).pixels).save(out, format="PNG")
    out.seek(0)
    return {"image": (out, filename)}


def install_engine(monkeypatch, engine):
    monkeypatch.setattr(api_server, "face_engine", engine)
    monkeypatch.setattr(api_server, "detection_service", DetectionService(engine, min_confidence=0.0))


@pytest.fixture
def client(monkeypatch, ready_engine):
    install_engine(monkeypatch, ready_engine(FACES))
    monkeypatch.setattr(api_server, "sessions", {})
    api_server.app.config["TESTING"] = True
    with api_server.app.test_client() as client:
        yield client


def upload(client, **kwargs):
    response = client.post("/api/upload", data=upload_payload(**kwargs), content_type="multipart/form-data")
    assert response.status_code == 200, response.get_json()
    return response.get_json()["session_id"]


def decode_data_url(url):
    import base64
    return PixelBufferRepository().decode(base64.b64decode(url.split(",", 1)[1]))


def test_health_reports_detector_state(client):
    body = client.get("/api/health").get_json()
    assert body["status"] == "healthy"
    assert body["detector"] == "ready"
    assert body["active_sessions"] == 0


def test_upload_returns_dimensions(client):
    response = client.post("/api/upload", data=upload_payload(30, 20), content_type="multipart/form-data")
    body = response.get_json()
    assert body["success"] is True
    assert (body["width"], body["height"]) == (30, 20)


def test_upload_rejects_missing_and_bad_files(client):
    assert client.post("/api/upload", data={}, content_type="multipart/form-data").status_code == 400

    bad_type = client.post("/api/upload", data=upload_payload(filename="face.txt"),
                           content_type="multipart/form-data")
    assert bad_type.status_code == 400

    garbage = client.post("/api/upload", data={"image": (BytesIO(b"nope"), "face.png")},
                          content_type="multipart/form-data")
    assert garbage.status_code == 400


def test_censor_detects_and_pixelates(client):
    session_id = upload(client)

    response = client.post("/api/censor", json={"session_id": session_id, "block_size": 8})
    body = response.get_json()

    assert response.status_code == 200
    assert body["face_count"] == 1
    assert body["block_size"] == 8
    assert body["detections"] == [{"x": 8, "y": 8, "width": 32, "height": 32, "confidence": 0.93}]

    censored = decode_data_url(body["image"])
    original = make_gradient(48, 48)
    # first 8x8 block of the face samples (12, 12)
    assert np.all(censored.pixels[8:16, 8:16] == original.pixels[12, 12])
    assert np.array_equal(censored.pixels[0:8], original.pixels[0:8])


def test_block_size_rerenders_from_original(client):
    session_id = upload(client)
    client.post("/api/censor", json={"session_id": session_id, "block_size": 8})

    response = client.post("/api/block-size", json={"session_id": session_id, "block_size": 16})
    body = response.get_json()

    assert response.status_code == 200
    assert body["block_size"] == 16
    censored = decode_data_url(body["image"])
    original = make_gradient(48, 48)
    assert np.all(censored.pixels[8:24, 8:24] == original.pixels[16, 16])


def test_block_size_before_censor_is_rejected(client):
    session_id = upload(client)
    response = client.post("/api/block-size", json={"session_id": session_id, "block_size": 10})
    assert response.status_code == 400


@pytest.mark.parametrize("block_size", [0, -1, 4, 31, "big", 7.5, True])
def test_out_of_range_block_size_is_rejected(client, block_size):
    session_id = upload(client)
    response = client.post("/api/censor", json={"session_id": session_id, "block_size": block_size})
    assert response.status_code == 400


def test_unknown_session(client):
    assert client.post("/api/censor", json={"session_id": "missing"}).status_code == 400
    assert client.post("/api/block-size", json={"session_id": "missing", "block_size": 10}).status_code == 400
    assert client.get("/api/download/missing").status_code == 404


def test_censor_waits_for_model(client, monkeypatch):
    install_engine(monkeypatch, FaceEngine(backend_factory=fake_backend_factory(FACES)))
    session_id = upload(client)

    response = client.post("/api/censor", json={"session_id": session_id})

    assert response.status_code == 503
    assert "unloaded" in response.get_json()["message"]


def test_download_serves_png_attachment(client):
    session_id = upload(client)
    assert client.get(f"/api/download/{session_id}").status_code == 404

    client.post("/api/censor", json={"session_id": session_id, "block_size": 10})
    response = client.get(f"/api/download/{session_id}")

    assert response.status_code == 200
    assert response.mimetype == "image/png"
    assert "censored-image.png" in response.headers["Content-Disposition"]
    assert PixelBufferRepository().decode(response.data).pixels.shape == (48, 48, 4)


def test_clear_session(client):
    session_id = upload(client)

    assert client.post("/api/clear-session", json={"session_id": session_id}).get_json()["success"] is True
    assert client.post("/api/clear-session", json={"session_id": session_id}).get_json()["success"] is False
    assert client.get("/api/health").get_json()["active_sessions"] == 0


def test_upload_rejects_zero_byte_file(client):
    response = client.post("/api/upload", data={"image": (BytesIO(b""), "face.png")},
                           content_type="multipart/form-data")

    assert response.status_code == 400
    assert response.get_json()["success"] is False
