"""Remote graph store exceptions.

``RemoteNotFoundError`` and ``RemoteNotImplementedError`` are the
*degraded* answers: the commit engine treats them as soft successes on
delete and as failures (flagging a degraded endpoint) on create/update.
Everything else is a ``RemoteFailureError``.
"""

from __future__ import annotations


class RemoteStoreError(Exception):
    """Base exception for remote graph store calls."""

    error_code = "remote_error"
    degraded = False

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        path: str = "",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.path = path


class RemoteFailureError(RemoteStoreError):
    """Any non-2xx answer other than not-found / not-implemented, or a transport error."""

    error_code = "remote_failure"


class RemoteNotFoundError(RemoteStoreError):
    """The entity, or the route itself, does not exist on the server."""

    error_code = "remote_not_found"
    degraded = True


class RemoteNotImplementedError(RemoteStoreError):
    """The server does not implement the requested operation yet."""

    error_code = "remote_not_implemented"
    degraded = True
