"""Process lifecycle tests: signal handling, drain, forced exit, startup failure."""

from __future__ import annotations

import signal
import socket
import threading
import time
from types import SimpleNamespace

import pytest
import uvicorn

from myapp.core.config import AppSettings
from myapp.main import create_app
from myapp.server import GracefulServer, ShutdownManager, build_server, run


class ExitRecorder:
    def __init__(self) -> None:
        self.codes: list[int] = []
        self.called = threading.Event()

    def __call__(self, code: int) -> None:
        self.codes.append(code)
        self.called.set()


@pytest.fixture
def fake_server() -> SimpleNamespace:
    return SimpleNamespace(should_exit=False)


def test_sigterm_starts_drain_and_arms_timer(fake_server: SimpleNamespace) -> None:
    recorder = ExitRecorder()
    manager = ShutdownManager(fake_server, timeout=30.0, exit_func=recorder)

    manager.handle_signal(signal.SIGTERM)

    assert fake_server.should_exit is True
    assert manager.shutting_down
    assert manager.timer_armed
    assert manager.complete() == 0
    assert not manager.timer_armed
    assert recorder.codes == []


def test_sigint_drains_without_timer(fake_server: SimpleNamespace) -> None:
    manager = ShutdownManager(fake_server, timeout=30.0, exit_func=ExitRecorder())

    manager.handle_signal(signal.SIGINT)

    assert fake_server.should_exit is True
    assert not manager.timer_armed
    assert manager.complete() == 0


def test_forced_exit_after_timeout(fake_server: SimpleNamespace) -> None:
    recorder = ExitRecorder()
    manager = ShutdownManager(fake_server, timeout=0.05, exit_func=recorder)

    manager.handle_signal(signal.SIGTERM)

    assert recorder.called.wait(timeout=5)
    assert recorder.codes == [1]


def test_completed_drain_cancels_forced_exit(fake_server: SimpleNamespace) -> None:
    recorder = ExitRecorder()
    manager = ShutdownManager(fake_server, timeout=0.2, exit_func=recorder)

    manager.handle_signal(signal.SIGTERM)
    manager.complete()

    assert not recorder.called.wait(timeout=0.5)


def test_repeated_signal_keeps_single_timer(fake_server: SimpleNamespace) -> None:
    manager = ShutdownManager(fake_server, timeout=30.0, exit_func=ExitRecorder())

    manager.handle_signal(signal.SIGTERM)
    timer = manager._timer
    manager.handle_signal(signal.SIGTERM)

    assert manager._timer is timer
    manager.complete()


def test_sigterm_after_sigint_arms_timer(fake_server: SimpleNamespace) -> None:
    manager = ShutdownManager(fake_server, timeout=30.0, exit_func=ExitRecorder())

    manager.handle_signal(signal.SIGINT)
    assert not manager.timer_armed
    manager.handle_signal(signal.SIGTERM)

    assert manager.timer_armed
    manager.complete()


def _settings(**overrides) -> AppSettings:
    values = dict(
        environment="test",
        log_level="WARNING",
        log_json=True,
        host="127.0.0.1",
        port=3000,
        shutdown_timeout=30.0,
    )
    values.update(overrides)
    return AppSettings(_env_file=None, **values)


def test_build_server_uses_settings() -> None:
    server = build_server(_settings(port=4567))

    assert isinstance(server, GracefulServer)
    assert server.config.host == "127.0.0.1"
    assert server.config.port == 4567
    assert server.lifecycle.timeout == 30.0


def test_uvicorn_signal_hook_delegates_to_lifecycle() -> None:
    server = build_server(_settings())

    server.handle_exit(signal.SIGTERM, None)

    assert server.should_exit is True
    assert server.lifecycle.timer_armed
    server.lifecycle.complete()


def _wait_until(predicate, timeout: float = 10.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.05)
    return False


def test_sigterm_stops_accepting_connections() -> None:
    settings = _settings()
    config = uvicorn.Config(
        create_app(settings),
        host="127.0.0.1",
        port=0,
        log_config=None,
        access_log=False,
    )
    recorder = ExitRecorder()
    server = GracefulServer(config, settings=settings, exit_func=recorder)
    thread = threading.Thread(target=server.run, daemon=True)
    thread.start()

    assert _wait_until(lambda: server.started)
    port = server.servers[0].sockets[0].getsockname()[1]
    with socket.create_connection(("127.0.0.1", port), timeout=5):
        pass

    server.handle_exit(signal.SIGTERM, None)
    thread.join(timeout=10)

    assert not thread.is_alive()
    assert server.lifecycle.complete() == 0
    assert recorder.codes == []
    with pytest.raises(OSError):
        socket.create_connection(("127.0.0.1", port), timeout=1)


def test_port_in_use_terminates_startup() -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as taken:
        taken.bind(("127.0.0.1", 0))
        taken.listen()
        port = taken.getsockname()[1]

        with pytest.raises(SystemExit) as excinfo:
            run(_settings(port=port))

    assert excinfo.value.code == 1


def test_importing_app_module_builds_nothing() -> None:
    import myapp.main

    assert "app" not in vars(myapp.main)
