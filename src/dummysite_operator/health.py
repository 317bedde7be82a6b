"""Health check endpoints for the operator."""

from __future__ import annotations

import threading
from typing import Any, Callable

from werkzeug.serving import BaseWSGIServer, make_server
from werkzeug.wrappers import Request, Response


def create_health_app(is_ready: Callable[[], bool]) -> Callable[..., Any]:
    """Create a WSGI app serving ``/healthz`` and ``/readyz``.

    Args:
        is_ready: Returns True once the controller may reconcile, i.e. the
            DummySite cache has completed its initial list

    Returns:
        WSGI application
    """

    def health_app(environ: dict[str, Any], start_response: Any) -> list[bytes]:
        request = Request(environ)
        path = request.path

        if path == "/healthz":
            response = Response('{"status":"ok"}', mimetype="application/json", status=200)
        elif path == "/readyz":
            if is_ready():
                response = Response('{"status":"ready"}', mimetype="application/json", status=200)
            else:
                response = Response('{"status":"not ready"}', mimetype="application/json", status=503)
        else:
            response = Response('{"error":"not found"}', mimetype="application/json", status=404)

        return response(environ, start_response)

    return health_app


def start_health_server(port: int, is_ready: Callable[[], bool]) -> BaseWSGIServer:
    """Serve the health endpoints from a background thread.

    Returns:
        The running server; call ``shutdown()`` to stop it
    """
    server = make_server("", port, create_health_app(is_ready), threaded=True)
    thread = threading.Thread(target=server.serve_forever, name="health-server", daemon=True)
    thread.start()
    return server
