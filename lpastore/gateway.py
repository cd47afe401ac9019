"""A local stand-in for the API gateway that forwards requests to the lambdas."""

from __future__ import annotations

import argparse
import json
import logging
import re
import secrets
import urllib.error
import urllib.request
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import unquote, urlsplit

from lpastore.handler import ProxyResponse

log = logging.getLogger(__name__)

LPA_PATH = re.compile(r"/lpas/(M(?:-[0-9A-Z]{4}){3})")
UPDATE_PATH = re.compile(r"/lpas/(M(?:-[0-9A-Z]{4}){3})/updates")
_EXISTS = re.compile(r"An LPA with UID (M-[A-Z0-9-]+) exists")
_DOES_NOT_EXIST = re.compile(r"An LPA with UID (M-[A-Z0-9-]+) does not exist")

_UID_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
_HTML_ESCAPES = str.maketrans(
    {"&": "&amp;", "'": "&#39;", "<": "&lt;", ">": "&gt;", '"': "&#34;"}
)
_SKIPPED_HEADERS = frozenset({"content-length", "host", "transfer-encoding", "connection"})

DEFAULT_LAMBDA_URL = "http://lambda-{name}:8080/2015-03-31/functions/function/invocations"
DEFAULT_STORE_URL = "http://localhost:8080"

Transport = Callable[[str, str, bytes, Mapping[str, list[str]]], tuple[int, bytes]]

_PACT_LPA: dict[str, Any] = {
    "lpaType": "personal-welfare",
    "channel": "online",
    "donor": {
        "uid": "34cd75eb-17bc-434a-b922-4772ce3e0439",
        "firstNames": "Homer",
        "lastName": "Zoller",
        "dateOfBirth": "1960-04-06",
        "address": {
            "line1": "79 Bury Rd",
            "town": "Hampton Lovett",
            "postcode": "WR9 2PF",
            "country": "GB",
        },
        "contactLanguagePreference": "en",
    },
    "attorneys": [
        {
            "uid": "cbb60db5-b450-4811-b0af-bca9f789fcfa",
            "firstNames": "Jake",
            "lastName": "Vallar",
            "dateOfBirth": "2001-01-17",
            "status": "active",
            "appointmentType": "original",
            "address": {"line1": "71 South Western Terrace", "town": "Milton", "country": "AU"},
            "channel": "paper",
        }
    ],
    "trustCorporations": [
        {
            "uid": "1d95993a-ffbb-484c-b2fe-f4cca51801da",
            "name": "Trust us Corp.",
            "companyNumber": "666123321",
            "address": {"line1": "103 Line 1", "town": "Town", "country": "GB"},
            "status": "active",
            "appointmentType": "original",
            "channel": "paper",
        }
    ],
    "certificateProvider": {
        "uid": "4fe2ac67-17cc-4e9b-a9d6-ce30b5f9c82e",
        "firstNames": "Some",
        "lastName": "Provider",
        "phone": "[phone]",
        "channel": "paper",
        "address": {"line1": "71 South Western Terrace", "town": "Milton", "country": "AU"},
    },
    "lifeSustainingTreatmentOption": "option-a",
    "signedAt": "2000-01-02T12:13:14Z",
    "witnessedByCertificateProviderAt": "2000-01-02T13:13:14Z",
    "howAttorneysMakeDecisions": "jointly",
}


def _urllib_transport(
    method: str, url: str, body: bytes, headers: Mapping[str, list[str]]
) -> tuple[int, bytes]:
    request = urllib.request.Request(url, data=body, method=method)
    for name, values in headers.items():
        if name.lower() in _SKIPPED_HEADERS:
            continue
        for value in values:
            request.add_header(name, value)
    try:
        with urllib.request.urlopen(request) as response:
            return response.status, response.read()
    except urllib.error.HTTPError as exc:
        return exc.code, exc.read()


def random_uid() -> str:
    """A random LPA UID of the form M-XXXX-XXXX-XXXX."""

    def chunk() -> str:
        return "".join(_UID_ALPHABET[b % 36] for b in secrets.token_bytes(4))

    return f"M-{chunk()}-{chunk()}-{chunk()}"


def _text_error(status: int, message: str) -> ProxyResponse:
    return ProxyResponse(
        status,
        message + "\n",
        {"Content-Type": "text/plain; charset=utf-8", "X-Content-Type-Options": "nosniff"},
    )


@dataclass(frozen=True)
class Route:
    """Which lambda a request goes to, for which UID, with what body."""

    lambda_name: str
    uid: str = ""
    body: bytes = b""


class Gateway:
    """Routes HTTP requests to lambdas, remapping UIDs set up by test states."""

    def __init__(
        self,
        transport: Transport | None = None,
        lambda_url: str = DEFAULT_LAMBDA_URL,
        store_url: str = DEFAULT_STORE_URL,
    ) -> None:
        self._transport = transport or _urllib_transport
        self._lambda_url = lambda_url
        self._store_url = store_url.rstrip("/")
        self.uid_map: dict[str, str] = {}

    def route(self, method: str, path: str, body: bytes) -> Route | None:
        """The route for a request, or None when no lambda handles it."""
        lpa_match = LPA_PATH.fullmatch(path)
        update_match = UPDATE_PATH.fullmatch(path)
        uid = ""
        if lpa_match and method == "PUT":
            name, uid = "create", lpa_match[1]
        elif lpa_match and method == "GET":
            name, uid = "get", lpa_match[1]
        elif update_match and method == "POST":
            name, uid = "update", update_match[1]
        elif path == "/lpas" and method == "POST":
            name = "getlist"
            for old_uid, new_uid in self.uid_map.items():
                body = body.replace(old_uid.encode(), new_uid.encode())
        else:
            return None
        return Route(name, self.uid_map.get(uid, uid), body)

    def dispatch(
        self, method: str, path: str, headers: Mapping[str, list[str]], body: bytes
    ) -> ProxyResponse:
        """Answer one HTTP request."""
        if path == "/_pact_state":
            try:
                self.handle_pact_state(body, headers)
            except Exception as exc:
                log.error("Error setting up state: %s", exc)
                return _text_error(500, str(exc))
            return ProxyResponse(200)

        route = self.route(method, path, body)
        if route is None:
            return _text_error(404, f"couldn't match URL: {path.translate(_HTML_ESCAPES)}")

        payload: dict[str, Any] = {
            "path": path,
            "httpMethod": method,
            "multiValueHeaders": {name: list(values) for name, values in headers.items()},
            "body": route.body.decode("utf-8", "replace"),
        }
        if route.uid:
            payload["pathParameters"] = {"uid": route.uid}

        _, raw = self._transport(
            "POST",
            self._lambda_url.format(name=route.lambda_name),
            json.dumps(payload).encode(),
            {},
        )
        try:
            data = json.loads(raw)
            status = data.get("statusCode")
            response_body = data.get("body") or ""
            if isinstance(status, bool) or not isinstance(status, int):
                raise ValueError("missing status code")
            if not isinstance(response_body, str):
                raise ValueError("body must be a string")
        except (ValueError, AttributeError):
            return _text_error(502, "invalid response from lambda")

        return ProxyResponse(status, response_body, {"Content-Type": "application/json"})

    def handle_pact_state(self, body: bytes | str, headers: Mapping[str, list[str]]) -> None:
        """Set up a provider state; raises when it cannot be set up."""
        data = json.loads(body)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError("state request must be a JSON object")
        state = data.get("state") or ""
        if not isinstance(state, str):
            raise ValueError("state must be a string")

        if match := _EXISTS.fullmatch(state):
            old_uid = match[1]
            self.uid_map[old_uid] = random_uid()
            status, _ = self._transport(
                "PUT",
                f"{self._store_url}/lpas/{old_uid}",
                json.dumps(_PACT_LPA).encode(),
                {name: list(values) for name, values in headers.items()},
            )
            if status >= 400:
                raise RuntimeError(f"request failed with status code {status}")

        if match := _DOES_NOT_EXIST.fullmatch(state):
            self.uid_map[match[1]] = random_uid()


def _make_handler(gateway: Gateway) -> type[BaseHTTPRequestHandler]:
    class _Handler(BaseHTTPRequestHandler):
        timeout = 10

        def _serve(self) -> None:
            length = int(self.headers.get("Content-Length") or 0)
            body = self.rfile.read(length) if length else b""
            headers: dict[str, list[str]] = {}
            for name in self.headers.keys():
                headers.setdefault(name, self.headers.get_all(name) or [])
            path = unquote(urlsplit(self.path).path)
            response = gateway.dispatch(self.command, path, headers, body)
            payload = response.body.encode()
            self.send_response(response.status_code)
            for name, value in response.headers.items():
                self.send_header(name, value)
            self.send_header("Content-Length", str(len(payload)))
            self.end_headers()
            self.wfile.write(payload)

        do_GET = do_POST = do_PUT = do_DELETE = do_PATCH = _serve

    return _Handler


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Forward HTTP requests to local lambdas.")
    parser.add_argument("--host", default="")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--lambda-url", default=DEFAULT_LAMBDA_URL)
    parser.add_argument("--store-url", default=DEFAULT_STORE_URL)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    gateway = Gateway(lambda_url=args.lambda_url, store_url=args.store_url)
    with ThreadingHTTPServer((args.host, args.port), _make_handler(gateway)) as server:
        log.info("running on port %d", args.port)
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass
    return 0