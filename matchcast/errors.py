"""Error kinds raised by the failover engine and the stores."""

from __future__ import annotations


class MatchcastError(Exception):
    """Base error carrying the HTTP status the API layer should answer with."""

    status_code = 500


class NotFoundError(MatchcastError):
    status_code = 404


class InvalidArgumentError(MatchcastError):
    status_code = 400


class ConflictError(MatchcastError):
    """The channel was written by someone else between our read and our write."""

    status_code = 409


class StorageError(MatchcastError):
    status_code = 500

