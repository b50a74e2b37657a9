import io

import pytest
import torch
import torch.nn.functional as F
from PIL import Image

from cancercam.entity.config_entity import Settings


class StaticHeadModel(torch.nn.Module):
    """
    Stand-in for the exported classifier.

    Output [1, 2 + side*side]: fixed class score and confidence, then the
    input's channel-mean pooled down to side x side (so the heatmap is in
    [0, 1] and depends on the image).
    """

    def __init__(self, class_score: float, confidence: float, side: int = 7):
        super().__init__()
        self.class_score = class_score
        self.confidence = confidence
        self.side = side

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        b = x.shape[0]
        pooled = F.adaptive_avg_pool2d(x.permute(0, 3, 1, 2), [self.side, self.side])
        heatmap = pooled.mean(dim=1).reshape(b, -1)
        head = torch.stack(
            [torch.full([b], self.class_score), torch.full([b], self.confidence)], dim=1
        )
        return torch.cat([head, heatmap.clamp(0.0, 1.0)], dim=1)


class RaisingModel(torch.nn.Module):
    def forward(self, x):
        raise RuntimeError("boom")


def png_bytes(size=(500, 500), color=(128, 128, 128), mode="RGB") -> bytes:
    buf = io.BytesIO()
    Image.new(mode, size, color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def make_model_file(tmp_path):
    def _make(class_score: float = 0.0, confidence: float = 0.87, side: int = 7, name: str = "model.pt"):
        path = tmp_path / "models" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        scripted = torch.jit.script(StaticHeadModel(class_score, confidence, side))
        torch.jit.save(scripted, str(path))
        return str(path)

    return _make


@pytest.fixture
def make_settings(tmp_path):
    def _make(model_path: str = "missing.pt", **overrides):
        values = dict(
            model_path=model_path,
            device="cpu",
            image_size=224,
            artifacts_dir=str(tmp_path / "artifacts"),
            artifacts_url_prefix="/artifacts",
            inference_timeout_s=30.0,
            load_model_on_startup=False,
        )
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def gray_png():
    return png_bytes()
