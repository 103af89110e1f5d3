"""Tests for controller activation and the process singleton."""

from __future__ import annotations

import asyncio

import pytest
from structlog.testing import capture_logs

import scribe.core.controller as controller_module
from conftest import FakeControl, FakeEditor, StubClient
from scribe.config import Settings
from scribe.core.controller import AssistController, close_controller, get_controller
from scribe.core.errors import SetupError
from scribe.core.types import HostBindings
from scribe.notify import SafeNotifier


def _config(**overrides) -> Settings:
    values = {"debounce_s": 0.02, "cooldown_s": 1.5}
    values.update(overrides)
    return Settings(**values)


def _controller(editor, notifier, control=None, client=None, clock=None, runner=None):
    kwargs = {"config": _config()}
    if clock is not None:
        kwargs["clock"] = clock
    return AssistController(
        editor,
        notifier,
        runner or (lambda code: None),
        run_control=control,
        client=client or StubClient(),
        **kwargs,
    )


@pytest.fixture()
def reset_singleton():
    controller_module._controller = None
    yield
    controller_module._controller = None


# ─────────────────────────────────────────────────────────────────────────────
# Activation
# ─────────────────────────────────────────────────────────────────────────────

class TestActivation:
    def test_activate_wires_listeners(self, notifier, control):
        editor = FakeEditor(["let a = 1;"])
        ctl = _controller(editor, notifier, control)

        assert ctl.activate() is True

        assert ctl.activated
        assert len(control.listeners) == 1
        assert len(editor.listeners) == 1
        assert ctl.interceptor is not None
        assert ctl.trigger is not None

    def test_second_activation_is_a_logged_noop(self, notifier):
        control = FakeControl(listeners=[lambda: None])
        editor = FakeEditor(["let a = 1;"])
        ctl = _controller(editor, notifier, control)
        ctl.activate()
        trigger = ctl.trigger

        with capture_logs() as logs:
            assert ctl.activate() is True

        assert [entry["event"] for entry in logs] == ["controller_already_active"]
        assert len(control.listeners) == 1
        assert len(editor.listeners) == 1
        assert ctl.trigger is trigger
        assert notifier.calls == []

    def test_missing_editor_aborts_without_raising(self, notifier, control):
        ctl = _controller(None, notifier, control)

        with capture_logs() as logs:
            assert ctl.activate() is False

        assert not ctl.activated
        assert control.listeners == []
        assert notifier.calls == []
        assert logs[0]["event"] == "controller_setup_failed"
        assert logs[0]["log_level"] == "error"

    def test_missing_run_control_still_wires_trigger(self, notifier):
        editor = FakeEditor(["x"])
        ctl = _controller(editor, notifier, control=None)

        with capture_logs() as logs:
            assert ctl.activate() is True

        assert len(editor.listeners) == 1
        assert "run_control_missing" in [entry["event"] for entry in logs]

    def test_notifier_is_wrapped(self, notifier):
        ctl = _controller(FakeEditor(["x"]), notifier)
        assert isinstance(ctl._notifier, SafeNotifier)
        assert ctl._notifier.inner is notifier


# ─────────────────────────────────────────────────────────────────────────────
# Shared client
# ─────────────────────────────────────────────────────────────────────────────

class TestSharedClient:
    @pytest.mark.asyncio
    async def test_run_and_trigger_share_one_client(self, notifier, control, clock):
        editor = FakeEditor(["let x = 1;", "oops()"])
        client = StubClient(reply="ok")

        def runner(code: str) -> None:
            raise RuntimeError("oops is not defined")

        ctl = _controller(editor, notifier, control, client=client, clock=clock, runner=runner)
        ctl.activate()

        control.click()
        await ctl.interceptor.drain()
        editor.type_line(1, "//")
        await asyncio.sleep(0.1)
        await ctl.trigger.drain()

        assert len(client.prompts) == 2
        assert "oops is not defined" in client.prompts[0]
        assert "let x = 1;" in client.prompts[1]
        assert editor.lines[1] == "// ok"

    @pytest.mark.asyncio
    async def test_close_leaves_injected_client_open(self, notifier):
        client = StubClient()
        ctl = _controller(FakeEditor(["x"]), notifier, client=client)
        ctl.activate()

        await ctl.close()

        assert client.closed is False

    @pytest.mark.asyncio
    async def test_close_cancels_pending_trigger(self, notifier, clock):
        editor = FakeEditor(["let x = 1;", ""])
        client = StubClient(reply="ok")
        ctl = _controller(editor, notifier, client=client, clock=clock)
        ctl.activate()

        editor.type_line(1, "//")
        await ctl.close()
        await asyncio.sleep(0.1)

        assert client.prompts == []


# ─────────────────────────────────────────────────────────────────────────────
# Singleton
# ─────────────────────────────────────────────────────────────────────────────

class TestSingleton:
    @pytest.mark.asyncio
    async def test_get_controller_returns_same_instance(self, reset_singleton, notifier, control):
        host = HostBindings(
            editor=FakeEditor(["x"]),
            notifier=notifier,
            runner=lambda code: None,
            run_control=control,
        )
        first = get_controller(host)
        second = get_controller()

        assert first is second
        assert first.activate() is True

        await close_controller()
        assert controller_module._controller is None

    def test_get_controller_without_bindings_raises(self, reset_singleton):
        with pytest.raises(SetupError):
            get_controller()

    @pytest.mark.asyncio
    async def test_close_controller_without_instance_is_noop(self, reset_singleton):
        await close_controller()
        assert controller_module._controller is None
