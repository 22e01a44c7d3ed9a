"""my-app — process entry point.

Runs the FastAPI app on uvicorn and owns the process lifecycle:

  1. SIGTERM stops accepting connections, drains in-flight requests, exits 0.
     If the drain outlasts ``shutdown_timeout`` the process exits 1.
  2. SIGINT drains the same way without the forced-exit timer.
"""

from __future__ import annotations

import os
import signal
import sys
import threading
from collections.abc import Callable, Iterable
from socket import socket
from types import FrameType

import structlog
import uvicorn

from myapp.core.config import AppSettings, settings as default_settings
from myapp.main import create_app

from servicekit.logging import flush_logging

log = structlog.get_logger()


class ShutdownManager:
    """Turns termination signals into a graceful drain of the HTTP server."""

    def __init__(
        self,
        server: uvicorn.Server,
        *,
        timeout: float = 30.0,
        forced_signals: Iterable[int] = (signal.SIGTERM,),
        exit_func: Callable[[int], None] = os._exit,
    ) -> None:
        self._server = server
        self.timeout = timeout
        self._forced_signals = frozenset(forced_signals)
        self._exit = exit_func
        self._timer: threading.Timer | None = None
        self.shutting_down = False

    @property
    def timer_armed(self) -> bool:
        return self._timer is not None

    def handle_signal(self, sig: int) -> None:
        name = signal.Signals(sig).name
        if self.shutting_down:
            log.info("shutdown_already_in_progress", signal=name)
        else:
            log.info(f"{name} received, shutting down gracefully", signal=name)
            self.shutting_down = True
            # uvicorn closes its listeners and waits for open connections
            self._server.should_exit = True

        if sig in self._forced_signals and self._timer is None:
            self._arm_timer()

    def _arm_timer(self) -> None:
        # A thread rather than a loop callback: fires even if the loop is stuck
        timer = threading.Timer(self.timeout, self._force_exit)
        timer.daemon = True
        timer.start()
        self._timer = timer

    def _force_exit(self) -> None:
        log.error("Forced shutdown after timeout", timeout=self.timeout)
        flush_logging()
        self._exit(1)

    def complete(self) -> int:
        """Cancel the forced-exit timer once the server has drained."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        log.info("Process terminated")
        flush_logging()
        return 0


class GracefulServer(uvicorn.Server):
    """uvicorn server whose signal hooks delegate to a ``ShutdownManager``."""

    def __init__(
        self,
        config: uvicorn.Config,
        *,
        settings: AppSettings,
        exit_func: Callable[[int], None] = os._exit,
    ) -> None:
        super().__init__(config)
        self.settings = settings
        self.lifecycle = ShutdownManager(
            self, timeout=settings.shutdown_timeout, exit_func=exit_func
        )

    def handle_exit(self, sig: int, frame: FrameType | None) -> None:
        self.lifecycle.handle_signal(sig)

    async def startup(self, sockets: list[socket] | None = None) -> None:
        await super().startup(sockets=sockets)
        if self.started:
            log.info(
                f"Server started on port {self.config.port}",
                port=self.config.port,
                environment=self.settings.environment,
                pid=os.getpid(),
            )


def build_server(settings: AppSettings | None = None) -> GracefulServer:
    settings = settings or default_settings
    config = uvicorn.Config(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_config=None,
        access_log=False,
    )
    return GracefulServer(config, settings=settings)


def run(settings: AppSettings | None = None) -> int:
    """Serve until a termination signal drains the server; return the exit code."""
    server = build_server(settings)
    # uvicorn exits the process itself when the port cannot be bound
    server.run()
    if not server.started:
        log.error("server_failed_to_start")
        flush_logging()
        return 1
    return server.lifecycle.complete()


def main() -> None:
    sys.exit(run())
