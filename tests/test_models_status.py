from __future__ import annotations

import pytest

from openclaw_desk.core.models_status import ModelsController


@pytest.fixture
def controller(api):
    return ModelsController(api.models)


@pytest.mark.asyncio
async def test_refresh(controller, host):
    status = await controller.refresh("p1")
    assert status.ok
    assert status.stdout == "default: unset"
    assert controller.status is status


@pytest.mark.asyncio
async def test_set_default_trims_model(controller, host):
    status = await controller.set_default("p1", "  ollama/qwen2.5  ")
    assert host.commands("models_set_default") == [{"profileId": "p1", "model": "ollama/qwen2.5"}]
    assert status.stdout == "default: ollama/qwen2.5"


@pytest.mark.asyncio
async def test_blank_model_is_ignored(controller, host):
    assert await controller.set_default("p1", "") is None
    assert host.calls == []


@pytest.mark.asyncio
async def test_reset(controller):
    await controller.refresh("p1")
    controller.reset()
    assert controller.status is None
