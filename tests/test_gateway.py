from __future__ import annotations

import pytest

from openclaw_desk.bridge import BridgeError
from openclaw_desk.core.gateway import GatewayController


@pytest.fixture
def controller(api):
    return GatewayController(api.gateway)


@pytest.mark.asyncio
async def test_status_fetches_log_tail(controller, host):
    status = await controller.refresh("p1")

    assert status.ok
    assert status.stdout == "gateway status: ok"
    assert host.commands("gateway_status") == [{"profileId": "p1"}]
    assert host.commands("gateway_logs") == [{"lines": 200}]
    assert controller.logs.out == "last 200 lines"


@pytest.mark.asyncio
async def test_custom_log_line_count(api, host):
    controller = GatewayController(api.gateway, log_lines=50)
    await controller.start("p1")
    assert host.commands("gateway_logs") == [{"lines": 50}]


@pytest.mark.asyncio
async def test_non_zero_exit_is_still_the_snapshot(controller, host):
    host.gateway_exit_code = 3
    host.gateway_stderr = "already running"

    status = await controller.restart("p1")

    assert not status.ok
    assert controller.status is status
    assert controller.status.stderr == "already running"
    assert controller.logs is not None


@pytest.mark.asyncio
async def test_failed_call_keeps_previous_state(controller, host):
    await controller.refresh("p1")
    previous_status, previous_logs = controller.status, controller.logs
    host.failures["gateway_stop"] = BridgeError("spawn failed")

    with pytest.raises(BridgeError):
        await controller.stop("p1")

    assert controller.status is previous_status
    assert controller.logs is previous_logs


@pytest.mark.asyncio
async def test_refresh_logs_only(controller, host):
    logs = await controller.refresh_logs()
    assert logs.out == "last 200 lines"
    assert host.commands("gateway_status") == []


@pytest.mark.asyncio
async def test_reset(controller):
    await controller.refresh("p1")
    controller.reset()
    assert controller.status is None
    assert controller.logs is None
