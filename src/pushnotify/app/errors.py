"""RFC 7807 Problem Details for the JSON API.

Provides :class:`ApiProblem`, an exception that renders itself as an
``application/problem+json`` response, the problem-type URNs used by
the API, and a Flask error-handler registration function that also
maps the domain exceptions from :mod:`pushnotify.core.errors`.

Usage::

    raise ApiProblem(MALFORMED, "Request body is not valid JSON", 400)
"""

from __future__ import annotations

import logging
from typing import Any

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from pushnotify.core.errors import (
    CorruptStoreError,
    NotFoundError,
    PersistenceError,
)

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Problem-type URNs
# ---------------------------------------------------------------------------
_P = "urn:pushnotify:error:"

MALFORMED = _P + "malformed"
NOT_FOUND = _P + "notFound"
STORAGE = _P + "storage"
SERVER_INTERNAL = _P + "serverInternal"

# Content type for RFC 7807 responses
PROBLEM_CONTENT_TYPE = "application/problem+json"


# ---------------------------------------------------------------------------
# Problem exception
# ---------------------------------------------------------------------------


class ApiProblem(Exception):
    """An RFC 7807 *problem details* object that doubles as an exception.

    Raise anywhere in request handling to produce a standards-compliant
    error response.  The registered Flask error handler catches it and
    calls :meth:`to_response`.

    Parameters
    ----------
    error_type:
        A URN string (one of the constants above) or ``"about:blank"``
        for generic HTTP errors.
    detail:
        Human-readable explanation of the problem.
    status:
        HTTP status code (default 400).
    title:
        Short summary; omitted when *error_type* is self-explanatory.

    """

    def __init__(
        self,
        error_type: str,
        detail: str,
        status: int = 400,
        *,
        title: str | None = None,
    ) -> None:
        self.error_type = error_type
        self.detail = detail
        self.status = status
        self.title = title
        super().__init__(detail)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the RFC 7807 JSON structure."""
        body: dict[str, Any] = {
            "type": self.error_type,
            "detail": self.detail,
            "status": self.status,
        }
        if self.title is not None:
            body["title"] = self.title
        return body

    def to_response(self):
        """Build a Flask :class:`~flask.Response`."""
        resp = jsonify(self.to_dict())
        resp.status_code = self.status
        resp.headers["Content-Type"] = PROBLEM_CONTENT_TYPE
        resp.headers["Cache-Control"] = "no-store"
        return resp


# ---------------------------------------------------------------------------
# Flask error handler registration
# ---------------------------------------------------------------------------


def register_error_handlers(app: Flask) -> None:
    """Attach handlers that produce RFC 7807 responses for all errors."""

    @app.errorhandler(ApiProblem)
    def _handle_api_problem(exc: ApiProblem):
        return exc.to_response()

    @app.errorhandler(NotFoundError)
    def _handle_not_found(exc: NotFoundError):
        return ApiProblem(NOT_FOUND, str(exc), 404).to_response()

    @app.errorhandler(CorruptStoreError)
    def _handle_corrupt(exc: CorruptStoreError):
        log.error("Store is corrupt: %s", exc)
        return ApiProblem(
            STORAGE,
            "The notification store could not be read",
            500,
        ).to_response()

    @app.errorhandler(PersistenceError)
    def _handle_persistence(exc: PersistenceError):
        log.error("Store could not be saved: %s", exc)
        return ApiProblem(
            STORAGE,
            "The change was applied but could not be saved",
            500,
        ).to_response()

    @app.errorhandler(HTTPException)
    def _handle_http_exception(exc: HTTPException):
        problem = ApiProblem(
            "about:blank",
            exc.description or "An error occurred",
            exc.code or 500,
            title=exc.name,
        )
        return problem.to_response()

    @app.errorhandler(Exception)
    def _handle_unhandled(exc: Exception):
        # HTTPException subclasses and domain errors are caught above;
        # this covers genuine 500s.
        log.exception("Unhandled exception during request")
        problem = ApiProblem(
            SERVER_INTERNAL,
            "An unexpected internal error occurred",
            500,
        )
        return problem.to_response()
