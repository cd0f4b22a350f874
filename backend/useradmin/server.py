"""Process supervisor: runs the registered runnables and owns storage shutdown.

A *runnable* is any object with a ``name`` attribute and a
``run(stop_event)`` method that blocks until ``stop_event`` is set or the
runnable fails. :class:`Server` launches every registered runnable on its own
worker thread and waits for all of them (join-all). Raising
:class:`~useradmin.services._shared.errors.CanceledError` counts as a clean
stop; any other exception is logged and reported, never restarted.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Protocol

from flask import Flask
from werkzeug.serving import BaseWSGIServer, make_server
from werkzeug.wsgi import ClosingIterator

from useradmin.core.config import BaseConfig
from useradmin.core.database import Database, get_database
from useradmin.core.logger import get_logger
from useradmin.factory import create_app
from useradmin.services._shared.errors import CanceledError


class Runnable(Protocol):
    name: str

    def run(self, stop_event: threading.Event) -> None: ...


class ServiceRegistry:
    """Ordered collection of runnables launched by :class:`Server`."""

    def __init__(self, runnables: Iterable[Runnable] = ()) -> None:
        self._runnables: list[Runnable] = list(runnables)

    def register(self, runnable: Runnable) -> None:
        self._runnables.append(runnable)

    def __iter__(self) -> Iterator[Runnable]:
        return iter(self._runnables)

    def __len__(self) -> int:
        return len(self._runnables)


class InFlightTracker:
    """WSGI middleware counting requests whose response is not closed yet."""

    def __init__(self, app: Any) -> None:
        self.app = app
        self._active = 0
        self._cond = threading.Condition()

    @property
    def active(self) -> int:
        with self._cond:
            return self._active

    def __call__(self, environ, start_response):
        with self._cond:
            self._active += 1
        try:
            body = self.app(environ, start_response)
        except BaseException:
            self._release()
            raise
        return ClosingIterator(body, self._release)

    def _release(self) -> None:
        with self._cond:
            self._active -= 1
            if self._active <= 0:
                self._cond.notify_all()

    def wait_idle(self, timeout: float | None) -> bool:
        """Block until no request is in flight. Returns ``False`` on timeout."""
        with self._cond:
            return self._cond.wait_for(lambda: self._active <= 0, timeout=timeout)


class HTTPServer:
    """
    HTTP listener runnable built on :func:`werkzeug.serving.make_server`.

    On stop it stops accepting connections and waits up to
    ``shutdown_timeout`` seconds for in-flight requests. Requests still running
    after that are canceled through ``abort_event`` before the listening
    socket closes.
    """

    name = "http"

    def __init__(
        self,
        app: Flask,
        *,
        host: str,
        port: int,
        shutdown_timeout: float = 30.0,
        abort_event: threading.Event | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.app = app
        self.host = host
        self.port = port
        self.shutdown_timeout = shutdown_timeout
        self.abort_event = abort_event or threading.Event()
        self.log = log or get_logger("apiserver")
        self.tracker = InFlightTracker(app)
        self.ready = threading.Event()
        self._server: BaseWSGIServer | None = None

    @property
    def server_port(self) -> int | None:
        """Port actually bound (useful when configured with port ``0``)."""
        return self._server.server_port if self._server is not None else None

    def run(self, stop_event: threading.Event) -> None:
        server = make_server(self.host, self.port, self.tracker, threaded=True)
        self._server = server
        serve_thread = threading.Thread(
            target=server.serve_forever, name=f"{self.name}-serve", daemon=True
        )
        serve_thread.start()
        self.log.info("http.listening host=%s port=%s", self.host, server.server_port)
        self.ready.set()

        try:
            stop_event.wait()
            self.log.info("http.shutting_down grace=%ss", self.shutdown_timeout)
            server.shutdown()
            serve_thread.join()
            if not self.tracker.wait_idle(self.shutdown_timeout):
                self.log.warning(
                    "http.shutdown_timeout in_flight=%s", self.tracker.active
                )
                self.abort_event.set()
        finally:
            server.server_close()
            self.log.info("http.stopped")


@dataclass(slots=True)
class RunReport:
    """Outcome of :meth:`Server.run`; ``failures`` maps runnable name to error."""

    failures: dict[str, BaseException] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


class Server:
    """
    Build the dependency graph and supervise the runnables.

    :param config: Config passed to :func:`create_app`.
    :param stop_event: Shared stop signal. Inside the app it refuses new
        requests; running ones are canceled only once the HTTP grace period
        expires.
    """

    def __init__(
        self,
        config: str | type[BaseConfig] | object | None = None,
        *,
        stop_event: threading.Event | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.stop_event = stop_event or threading.Event()
        self.log = log or get_logger("server")
        self.abort_event = threading.Event()
        self.app = create_app(
            config, shutdown_event=self.stop_event, abort_event=self.abort_event
        )
        self.database: Database = get_database(self.app)
        self.http = HTTPServer(
            self.app,
            host=self.app.config.get("HTTP_HOST", "0.0.0.0"),
            port=int(self.app.config.get("HTTP_PORT", 8000)),
            shutdown_timeout=float(self.app.config.get("SHUTDOWN_TIMEOUT_SECONDS", 30)),
            abort_event=self.abort_event,
        )
        self.registry = ServiceRegistry([self.http])

    def run(self, stop_event: threading.Event | None = None) -> RunReport:
        """
        Run every registered runnable until all of them returned.

        ``stop_event`` defaults to the event the app was wired with. Storage
        is closed exactly once after all runnables stopped.
        """
        stop_event = stop_event or self.stop_event
        report = RunReport()
        runnables = list(self.registry)
        try:
            if not runnables:
                return report
            with ThreadPoolExecutor(
                max_workers=len(runnables), thread_name_prefix="runnable"
            ) as pool:
                futures = {pool.submit(r.run, stop_event): r for r in runnables}
                for future, runnable in futures.items():
                    exc = future.exception()
                    if exc is None or isinstance(exc, CanceledError):
                        self.log.info("runnable.stopped", extra={"runnable": runnable.name})
                        continue
                    self.log.error(
                        "runnable.failed name=%s",
                        runnable.name,
                        exc_info=exc,
                        extra={"runnable": runnable.name},
                    )
                    report.failures[runnable.name] = exc
        finally:
            self.database.close()
        return report
