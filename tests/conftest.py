import numpy as np
import pytest

from face_censor.models.face_engine import FaceEngine
from face_censor.models.pixel_buffer import PixelBuffer


def make_gradient(width: int, height: int) -> PixelBuffer:
    """Every pixel distinct enough to tell samples apart: R=x, G=y, B mixes both, A opaque."""
    ys, xs = np.mgrid[0:height, 0:width]
    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[:, :, 0] = xs % 256
    pixels[:, :, 1] = ys % 256
    pixels[:, :, 2] = (xs * 7 + ys * 13) % 256
    pixels[:, :, 3] = 255
    return PixelBuffer(pixels=pixels)


class FakeFace(dict):
    """Mimics insightface.app.common.Face: a dict with attribute access."""

    def __getattr__(self, name):
        return self.get(name)


class FakeFaceAnalysis:
    def __init__(self, faces):
        self.faces = faces
        self.calls = []

    def get(self, img_bgr):
        self.calls.append(img_bgr)
        return list(self.faces)


def fake_backend_factory(faces, calls=None):
    def _factory(model_name, ctx_id, det_size):
        if calls is not None:
            calls.append((model_name, ctx_id, det_size))
        return FakeFaceAnalysis(faces)
    return _factory


@pytest.fixture
def gradient():
    return make_gradient


@pytest.fixture
def ready_engine():
    def _build(faces):
        engine = FaceEngine(model_name="fake", ctx_id=0, det_size=64,
                            backend_factory=fake_backend_factory(faces))
        engine.load()
        return engine
    return _build
