"""A small HTTPS server with pattern routes and client authorization."""

from __future__ import annotations

import json
import re
import ssl
import threading
from dataclasses import dataclass, field
from enum import Enum
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Pattern, Tuple, Union
from urllib.parse import urlsplit

from deckbuddy.clientids import ClientIds
from deckbuddy.logcategories import SERVER

_BASE64_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_METHODS = frozenset({"GET", "PUT", "DELETE", "POST", "HEAD", "OPTIONS", "PATCH", "CONNECT", "TRACE"})
_TLS_RANGES = {
    "SecureProtocols": (ssl.TLSVersion.TLSv1_2, ssl.TLSVersion.MAXIMUM_SUPPORTED),
    "TlsV1_2": (ssl.TLSVersion.TLSv1_2, ssl.TLSVersion.TLSv1_2),
    "TlsV1_2OrLater": (ssl.TLSVersion.TLSv1_2, ssl.TLSVersion.MAXIMUM_SUPPORTED),
    "TlsV1_3": (ssl.TLSVersion.TLSv1_3, ssl.TLSVersion.TLSv1_3),
    "TlsV1_3OrLater": (ssl.TLSVersion.TLSv1_3, ssl.TLSVersion.MAXIMUM_SUPPORTED),
}


@dataclass
class Request:
    """An incoming request as seen by route handlers."""

    method: str
    path: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""


@dataclass
class Response:
    """A response produced by a route handler."""

    status: int = HTTPStatus.OK
    body: Any = b""
    headers: Dict[str, str] = field(default_factory=dict)

    def to_bytes(self) -> Tuple[bytes, str]:
        """Return the encoded body and its content type."""
        if isinstance(self.body, (dict, list)):
            return json.dumps(self.body).encode("utf-8"), "application/json"
        if isinstance(self.body, str):
            return self.body.encode("utf-8"), "text/plain; charset=utf-8"
        return bytes(self.body), "application/octet-stream"


Handler = Callable[..., Any]
AfterHandler = Callable[[Request, Response], Optional[Response]]


@dataclass(frozen=True)
class _Route:
    pattern: Pattern[str]
    methods: FrozenSet[str]
    handler: Handler


def _lenient_b64decode(text: str) -> bytes:
    """Decode base64, ignoring characters outside the alphabet and missing padding."""
    out = bytearray()
    bits = 0
    nbits = 0
    for char in text:
        index = _BASE64_ALPHABET.find(char)
        if index < 0:
            continue
        bits = (bits << 6) | index
        nbits += 6
        if nbits >= 8:
            nbits -= 8
            out.append((bits >> nbits) & 0xFF)
            bits &= (1 << nbits) - 1
    return bytes(out)


def get_authorization_id(headers: Mapping[str, str]) -> str:
    """Extract the client id from a ``Basic`` authorization header, or ''."""
    raw = next((value for key, value in headers.items() if key.lower() == "authorization"), "")
    auth = " ".join(raw.split())

    prefix_length = 6
    if len(auth) > prefix_length and auth[:prefix_length].lower() == "basic ":
        client_id = _lenient_b64decode(auth[prefix_length:])
        if client_id:
            return client_id.decode("utf-8", errors="replace")
    return ""


def _compile_path(path: str) -> Pattern[str]:
    pieces = path.split("<arg>")
    return re.compile("([^/]+)".join(re.escape(piece) for piece in pieces))


def _normalize_methods(method: Union[str, Iterable[str]]) -> FrozenSet[str]:
    names = method.split("|") if isinstance(method, str) else list(method)
    methods = frozenset(name.strip().upper() for name in names)
    unknown = methods - _METHODS
    if not methods or unknown:
        raise ValueError(f"unsupported HTTP method(s): {sorted(unknown) or method!r}")
    return methods


def _to_response(result: Any) -> Response:
    if isinstance(result, Response):
        return result
    if result is None:
        return Response()
    if isinstance(result, int) and not isinstance(result, bool):
        return Response(status=int(result))
    return Response(body=result)


def _protocol_key(protocol: Any) -> str:
    return str(protocol.value) if isinstance(protocol, Enum) else str(protocol)


class HttpServer:
    """Routes requests to handlers and serves them over TLS."""

    def __init__(self, api_version: int, client_ids: ClientIds) -> None:
        self.api_version = api_version
        self._client_ids = client_ids
        self._routes: List[_Route] = []
        self._after_handlers: List[AfterHandler] = []
        self._server: Optional[ThreadingHTTPServer] = None
        self._thread: Optional[threading.Thread] = None

    def start_server(
        self,
        port: int,
        cert_file: Union[str, Path],
        key_file: Union[str, Path],
        protocol: Any = "SecureProtocols",
    ) -> bool:
        """Start listening on ``port``; False when the server cannot be started."""
        minimum, maximum = _TLS_RANGES[_protocol_key(protocol)]

        if self._server is not None:
            SERVER.warning("Server is already running!")
            return False

        try:
            Path(cert_file).read_bytes()
        except OSError:
            SERVER.warning("Failed to load SSL certificate from %s", cert_file)
            return False
        try:
            Path(key_file).read_bytes()
        except OSError:
            SERVER.warning("Failed to load SSL key from %s", key_file)
            return False

        context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        context.minimum_version = minimum
        context.maximum_version = maximum
        try:
            context.load_cert_chain(str(cert_file), str(key_file))
        except (ssl.SSLError, OSError) as exc:
            SERVER.warning("Failed to load SSL certificate or key: %s", exc)
            return False

        try:
            server = ThreadingHTTPServer(("", port), self._handler_class())
        except OSError:
            SERVER.warning("Server could not start listening at port %s", port)
            return False

        server.daemon_threads = True
        server.socket = context.wrap_socket(server.socket, server_side=True, do_handshake_on_connect=False)
        self._server = server
        self._thread = threading.Thread(target=server.serve_forever, name="https-server", daemon=True)
        self._thread.start()
        SERVER.info("Server started listening at port %s", port)
        return True

    def route(self, path: str, method: Union[str, Iterable[str]], handler: Handler) -> bool:
        """Register ``handler(request, *args)`` for a path where ``<arg>`` matches one segment."""
        self._routes.append(_Route(_compile_path(path), _normalize_methods(method), handler))
        return True

    def after_request(self, handler: AfterHandler) -> None:
        """Register ``handler(request, response)`` run on every response."""
        self._after_handlers.append(handler)

    def is_authorized(self, headers: Mapping[str, str]) -> bool:
        return get_authorization_id(headers) in self._client_ids

    def dispatch(self, request: Request) -> Response:
        """Produce the response for ``request`` from the registered routes."""
        response = Response(status=HTTPStatus.NOT_FOUND)
        for route in self._routes:
            if request.method.upper() not in route.methods:
                continue
            match = route.pattern.fullmatch(request.path)
            if match is None:
                continue
            try:
                response = _to_response(route.handler(request, *match.groups()))
            except Exception:
                SERVER.exception("Handler for %s %s failed", request.method, request.path)
                response = Response(status=HTTPStatus.INTERNAL_SERVER_ERROR)
            break

        for after in self._after_handlers:
            replaced = after(request, response)
            if replaced is not None:
                response = replaced
        return response

    def stop(self) -> None:
        """Stop serving and release the listening socket."""
        if self._server is None:
            return
        self._server.shutdown()
        self._server.server_close()
        if self._thread is not None:
            self._thread.join()
        self._server = None
        self._thread = None

    def _handler_class(self) -> type:
        owner = self

        class _RequestHandler(BaseHTTPRequestHandler):
            protocol_version = "HTTP/1.1"

            def _handle(self) -> None:
                length = int(self.headers.get("Content-Length") or 0)
                body = self.rfile.read(length) if length > 0 else b""
                request = Request(
                    method=self.command,
                    path=urlsplit(self.path).path,
                    headers=dict(self.headers.items()),
                    body=body,
                )
                response = owner.dispatch(request)
                payload, content_type = response.to_bytes()
                self.send_response(int(response.status))
                headers = {"Content-Type": content_type, **response.headers}
                for name, value in headers.items():
                    self.send_header(name, value)
                self.send_header("Content-Length", str(len(payload)))
                self.end_headers()
                if self.command != "HEAD":
                    self.wfile.write(payload)

            do_GET = do_POST = do_PUT = do_DELETE = do_PATCH = do_HEAD = do_OPTIONS = _handle

            def log_message(self, format: str, *args: Any) -> None:
                SERVER.debug(format, *args)

        return _RequestHandler