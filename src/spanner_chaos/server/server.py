"""Server – MockServer lifecycle.

Binds the mock service to an ephemeral plaintext port on the loopback
interface. ``stop`` waits for termination and raises
:class:`ServerTeardownError` if the server does not go away in time, so a
leaked listener fails the test run instead of the next one.
"""
from __future__ import annotations

from concurrent import futures
from types import TracebackType
from typing import Any, Sequence

import grpc

from spanner_chaos.config.settings import HarnessSettings
from spanner_chaos.kernel.errors import ServerStartError, ServerTeardownError
from spanner_chaos.observability.logging import get_logger
from spanner_chaos.protocol import add_database_servicer_to_server
from spanner_chaos.server.service import MockDatabaseService

logger = get_logger(__name__)


class MockServer:
    """In-process gRPC server hosting a :class:`MockDatabaseService`.

    Usage::

        with MockServer(settings=HarnessSettings(abort_probability=0.0)) as server:
            channel = server.channel()
            ...
    """

    def __init__(
        self,
        service: MockDatabaseService | None = None,
        settings: HarnessSettings | None = None,
    ) -> None:
        self._settings = settings or HarnessSettings()
        self.service = service or MockDatabaseService(self._settings)
        self._server: grpc.Server | None = None
        self._executor: futures.ThreadPoolExecutor | None = None
        self._port: int | None = None

    @property
    def port(self) -> int:
        if self._port is None:
            raise ServerStartError("Mock server has not been started")
        return self._port

    @property
    def address(self) -> str:
        return f"{self._settings.host}:{self.port}"

    @property
    def is_running(self) -> bool:
        return self._server is not None

    def start(self) -> MockServer:
        if self._server is not None:
            raise ServerStartError(f"Mock server already running at {self.address}")
        executor = futures.ThreadPoolExecutor(
            max_workers=self._settings.max_workers,
            thread_name_prefix="mock-db",
        )
        server = grpc.server(executor)
        add_database_servicer_to_server(self.service, server)
        try:
            port = server.add_insecure_port(f"{self._settings.host}:0")
        except RuntimeError as exc:
            executor.shutdown(wait=False)
            raise ServerStartError(
                f"Cannot bind mock server on {self._settings.host}", cause=exc
            ) from exc
        if port == 0:
            executor.shutdown(wait=False)
            raise ServerStartError(f"Cannot bind mock server on {self._settings.host}")
        server.start()
        self._server, self._executor, self._port = server, executor, port
        logger.info("mock_server.started", address=self.address)
        return self

    def stop(self) -> None:
        if self._server is None:
            return
        server, executor, address = self._server, self._executor, self.address
        self._server = None
        terminated = server.stop(self._settings.shutdown_grace).wait(
            self._settings.shutdown_timeout
        )
        if not terminated:
            logger.error("mock_server.stop_timeout", address=address)
            raise ServerTeardownError(address, self._settings.shutdown_timeout)
        # In-flight handlers were cancelled by stop(), so their delays end promptly.
        if executor is not None:
            executor.shutdown(wait=True)
        logger.info("mock_server.stopped", address=address)

    def channel(self, interceptors: Sequence[Any] = ()) -> grpc.Channel:
        """Open a plaintext channel to this server, optionally intercepted."""
        channel = grpc.insecure_channel(self.address)
        if interceptors:
            channel = grpc.intercept_channel(channel, *interceptors)
        return channel

    def __enter__(self) -> MockServer:
        return self.start()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop()


__all__ = ["MockServer"]
