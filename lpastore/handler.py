"""Handling of update requests arriving through an API gateway."""

from __future__ import annotations

import dataclasses
import datetime as dt
import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Protocol

from lpastore.dispatch import validate_update
from lpastore.models import FieldError, Lpa, Update, UpdateRejected


@dataclass
class ProxyRequest:
    """A request as delivered by the API gateway."""

    body: str = ""
    path: str = ""
    http_method: str = ""
    headers: dict[str, list[str]] = field(default_factory=dict)
    path_parameters: dict[str, str] = field(default_factory=dict)


@dataclass
class ProxyResponse:
    """A response handed back to the API gateway."""

    status_code: int
    body: str = ""
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Problem:
    """An error response with a code, a description and field errors."""

    status: int
    code: str
    detail: str
    errors: tuple[FieldError, ...] = ()

    def respond(self) -> ProxyResponse:
        document: dict[str, Any] = {"code": self.code, "detail": self.detail}
        if self.errors:
            document["errors"] = [
                {"source": error.source, "detail": error.detail} for error in self.errors
            ]
        return ProxyResponse(self.status, json.dumps(document, separators=(",", ":")))


PROBLEM_INTERNAL_SERVER_ERROR = Problem(500, "INTERNAL_SERVER_ERROR", "Internal server error")
PROBLEM_INVALID_REQUEST = Problem(400, "INVALID_REQUEST", "Invalid request")
PROBLEM_NOT_FOUND = Problem(404, "NOT_FOUND", "Record not found")
PROBLEM_UNAUTHORISED = Problem(401, "UNAUTHORISED", "Invalid JWT")


class _EventClient(Protocol):
    def send_lpa_updated(self, uid: str, change_type: str) -> None: ...


class _Store(Protocol):
    def get(self, uid: str) -> Lpa | None: ...

    def put_changes(self, lpa: Lpa, update: Update) -> None: ...


class _Verifier(Protocol):
    def verify_header(self, request: ProxyRequest) -> str: ...


class _Logger(Protocol):
    def error(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None: ...


class UpdateHandler:
    """Verifies, validates, applies and stores an update to an LPA.

    The verifier returns the subject of the request's token, or raises when
    the token cannot be verified.
    """

    def __init__(
        self,
        event_client: _EventClient,
        store: _Store,
        verifier: _Verifier,
        logger: _Logger | None = None,
    ) -> None:
        self._event_client = event_client
        self._store = store
        self._verifier = verifier
        self._logger = logger or logging.getLogger("lpastore.update")

    def handle_event(self, request: ProxyRequest) -> ProxyResponse:
        try:
            subject = self._verifier.verify_header(request)
        except Exception:
            self._logger.info("Unable to verify JWT from header")
            return PROBLEM_UNAUTHORISED.respond()

        self._logger.debug("Successfully parsed JWT from event header")

        try:
            update = Update.from_json(request.body)
        except ValueError as exc:
            self._logger.error("error unmarshalling request", extra={"err": str(exc)})
            return PROBLEM_INTERNAL_SERVER_ERROR.respond()

        uid = (request.path_parameters or {}).get("uid", "")
        try:
            lpa = self._store.get(uid)
        except Exception as exc:
            self._logger.error("error fetching LPA", extra={"err": str(exc)})
            return PROBLEM_INTERNAL_SERVER_ERROR.respond()

        if lpa is None or not lpa.uid:
            self._logger.debug("Uid not found")
            return PROBLEM_NOT_FOUND.respond()

        update.author = subject or ""

        try:
            validate_update(update, lpa).apply(lpa)
        except UpdateRejected as rejected:
            return dataclasses.replace(
                PROBLEM_INVALID_REQUEST, errors=tuple(rejected.errors)
            ).respond()

        update.id = str(uuid.uuid4())
        update.uid = lpa.uid
        update.applied = dt.datetime.now(dt.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

        try:
            self._store.put_changes(lpa, update)
        except Exception as exc:
            self._logger.error("error saving changes", extra={"err": str(exc)})
            return PROBLEM_INTERNAL_SERVER_ERROR.respond()

        body = lpa.to_json()

        try:
            self._event_client.send_lpa_updated(lpa.uid, update.type)
        except Exception as exc:
            self._logger.error("unexpected error occurred", extra={"err": str(exc)})

        return ProxyResponse(201, body)