# SPDX-License-Identifier: Apache-2.0

from hfq.util.consts import FAILURE_STATUS


class QueryError(Exception):
    """Base of every failure reported by the query service.

    Facade operations return these as values; they never escape a facade
    call.
    """

    def __init__(self, message, status=FAILURE_STATUS, detail=None):
        super(QueryError, self).__init__(message)
        self.message = message
        self.status = status
        self.detail = message if detail is None else detail

    def __str__(self):
        return self.message

    def __eq__(self, other):
        return type(self) is type(other) and \
            (self.message, self.status, self.detail) == \
            (other.message, other.status, other.detail)

    def __hash__(self):
        return hash((type(self), self.message, self.status, self.detail))


class IdentityNotFoundError(QueryError):
    """Named user context absent and no persisted fallback."""


class ChannelNotConfiguredError(QueryError):
    """Requested channel is unknown to the connection profile."""


class EndorsementError(QueryError):
    """A peer returned a structured failure."""


class MalformedResponseError(QueryError):
    """A result is present but misses expected fields."""


class EmptyResultError(QueryError):
    """No result came back."""


class DecodeError(QueryError):
    """Binary or JSON payload failed to decode."""


def wrap_error(error):
    """Turn any exception into a QueryError, keeping QueryErrors as-is."""
    if isinstance(error, QueryError):
        return error
    return QueryError(str(error) or error.__class__.__name__)
