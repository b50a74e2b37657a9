import threading

import pytest
import torch

from cancercam.backend.services.model_registry import ModelRegistry, ModelState
from cancercam.exception.exception import NotReadyError


class CountingLoader:
    def __init__(self, block: threading.Event = None, fail: bool = False):
        self.calls = 0
        self.block = block
        self.fail = fail
        self.started = threading.Event()

    def __call__(self, path, device):
        self.calls += 1
        self.started.set()
        if self.block is not None:
            self.block.wait(timeout=10)
        if self.fail:
            raise FileNotFoundError(path)
        return torch.nn.Identity()


def test_handle_not_available_before_load():
    registry = ModelRegistry("model.pt", loader=CountingLoader())
    assert registry.state is ModelState.NOT_LOADED
    with pytest.raises(NotReadyError):
        registry.get_handle()


def test_ensure_loaded_is_idempotent():
    loader = CountingLoader()
    registry = ModelRegistry("model.pt", loader=loader)

    assert registry.ensure_loaded() is ModelState.READY
    handle = registry.get_handle()
    assert registry.ensure_loaded() is ModelState.READY

    assert loader.calls == 1
    assert registry.get_handle() is handle


def test_concurrent_callers_do_not_trigger_duplicate_loads():
    release = threading.Event()
    loader = CountingLoader(block=release)
    registry = ModelRegistry("model.pt", loader=loader)

    first = registry.start_background_load()
    assert loader.started.wait(timeout=5)

    # while the first load is in flight
    assert registry.state is ModelState.LOADING
    results = []
    others = [threading.Thread(target=lambda: results.append(registry.ensure_loaded())) for _ in range(5)]
    for t in others:
        t.start()
    for t in others:
        t.join(timeout=5)
    assert results == [ModelState.LOADING] * 5
    with pytest.raises(NotReadyError):
        registry.get_handle()

    release.set()
    first.join(timeout=5)

    assert loader.calls == 1
    assert registry.state is ModelState.READY
    assert registry.start_background_load() is first


def test_failed_load_is_terminal():
    loader = CountingLoader(fail=True)
    registry = ModelRegistry("missing.pt", loader=loader)

    assert registry.ensure_loaded() is ModelState.FAILED
    assert registry.ensure_loaded() is ModelState.FAILED
    assert loader.calls == 1
    assert "missing.pt" in registry.error
    with pytest.raises(NotReadyError):
        registry.get_handle()


def test_default_loader_reads_torchscript(make_model_file, make_settings):
    registry = ModelRegistry.from_settings(make_settings(make_model_file()))
    assert registry.ensure_loaded() is ModelState.READY

    out = registry.get_handle()(torch.zeros(1, 224, 224, 3))
    assert tuple(out.shape) == (1, 2 + 49)


def test_default_loader_missing_file_fails(make_settings, tmp_path):
    registry = ModelRegistry.from_settings(make_settings(str(tmp_path / "nope.pt")))
    assert registry.ensure_loaded() is ModelState.FAILED
