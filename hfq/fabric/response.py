# SPDX-License-Identifier: Apache-2.0

import json
import logging
from collections.abc import Mapping

from hfq.fabric.errors import DecodeError, EmptyResultError, \
    EndorsementError, MalformedResponseError
from hfq.util.consts import ERROR_STATUS_FLOOR, FAILURE_STATUS, \
    SUCCESS_MESSAGE, SUCCESS_STATUS
from hfq.util.utils import get_field

_logger = logging.getLogger(__name__)

PAYLOAD_RESULTS_MISSING = "payload results missing"
UNKNOWN_RESULTS = "unknown or missing results"


class QueryResult(object):
    """Single return contract of chaincode queries.

    status == 200 iff the query succeeded and payload holds the decoded
    application data; otherwise payload is None and message/detail
    describe the failure.
    """

    __slots__ = ('status', 'payload', 'message', 'detail')

    def __init__(self, status, payload=None, message='', detail=''):
        self.status = status
        self.payload = payload
        self.message = message
        self.detail = detail

    @classmethod
    def from_error(cls, error):
        """Failure result of a QueryError."""
        return cls(error.status, None, error.message, error.detail)

    @property
    def ok(self):
        return self.status == SUCCESS_STATUS

    def as_tuple(self):
        return self.status, self.payload, self.message, self.detail

    def to_dict(self):
        return {'statusCode': self.status, 'payload': self.payload,
                'message': self.message, 'detail': self.detail}

    def __iter__(self):
        return iter(self.as_tuple())

    def __eq__(self, other):
        if not isinstance(other, QueryResult):
            return NotImplemented
        return self.as_tuple() == other.as_tuple()

    def __repr__(self):
        return "QueryResult(status={!r}, payload={!r}, message={!r}," \
               " detail={!r})".format(*self.as_tuple())


def decode_json(text):
    """Parse text as JSON.

    :param text: str
    :return: (True, value) when text is JSON, else (False, None)
    """
    try:
        return True, json.loads(text)
    except (TypeError, ValueError):
        return False, None


def decode_payload(payload):
    """Decode proposal response payload bytes.

    UTF-8 text that parses as JSON gives the JSON value, other text is
    kept as-is. Invalid UTF-8 sequences are replaced rather than failing.

    :param payload: bytes or str
    :return: decoded value
    """
    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = bytes(payload).decode('utf-8')
        except UnicodeDecodeError as e:
            _logger.warning(DecodeError(
                "payload is not valid UTF-8: {}".format(e)))
            payload = bytes(payload).decode('utf-8', errors='replace')
    ok, value = decode_json(payload)
    return value if ok else payload


def serialize_error(error):
    """Plain dict of an error object, its message under 'message'."""
    plain = {'name': error.__class__.__name__,
             'message': str(error.args[0]) if len(error.args) == 1
             else str(error)}
    for key, value in vars(error).items():
        if not key.startswith('_'):
            plain.setdefault(key, value)
    return plain


class EmptyProposalResult(object):
    """No per-endorser result sequence came back."""


class EndorserErrorResult(object):
    """The first endorser answered with an error object."""

    def __init__(self, error):
        self.error = error


class PayloadResult(object):
    """The first endorser answered with a response payload."""

    def __init__(self, status, payload):
        self.status = status
        self.payload = payload


class UnknownProposalResult(object):
    """A result sequence of an unrecognized shape."""

    def __init__(self, raw):
        self.raw = raw


def classify(proposal_results):
    """Decode raw proposal results into one of the result variants.

    :param proposal_results: sequence of per-endorser results
    :return: EmptyProposalResult, EndorserErrorResult, PayloadResult or
     UnknownProposalResult
    """
    if proposal_results is None or \
            isinstance(proposal_results, (str, bytes, Mapping)) or \
            not isinstance(proposal_results, (list, tuple)):
        return EmptyProposalResult()
    if not proposal_results:
        return UnknownProposalResult(proposal_results)
    first = proposal_results[0]
    if isinstance(first, BaseException):
        return EndorserErrorResult(first)
    response = get_field(first, 'response')
    payload = get_field(response, 'payload')
    status = get_field(response, 'status')
    if payload:
        return PayloadResult(status, payload)
    # an empty payload is a result only for a successful response
    if payload is not None and isinstance(status, int) and \
            status < ERROR_STATUS_FLOOR:
        return PayloadResult(status, payload)
    return UnknownProposalResult(first)


def endorsement_error(error):
    """EndorsementError of an endorser error object.

    The message of chaincode errors is itself a JSON document carrying
    status and msg; any other message is reported verbatim with status 202.
    A nested status of 200 is reported as 202, the call still failed.
    """
    message = serialize_error(error)['message']
    ok, nested = decode_json(message)
    if ok and isinstance(nested, Mapping) and 'status' in nested \
            and 'msg' in nested:
        try:
            status = int(nested['status'])
        except (TypeError, ValueError):
            status = FAILURE_STATUS
        if status == SUCCESS_STATUS:
            status = FAILURE_STATUS
        return EndorsementError(str(nested['msg']), status=status)
    return EndorsementError(message, status=FAILURE_STATUS)


def normalize(proposal_results):
    """Convert raw proposal results into a QueryResult.

    Never raises.

    :param proposal_results: sequence of per-endorser results
    :return: QueryResult
    """
    result = classify(proposal_results)

    if isinstance(result, EmptyProposalResult):
        _logger.error("normalize - payload results are missing")
        return QueryResult.from_error(
            EmptyResultError(PAYLOAD_RESULTS_MISSING, detail=''))

    if isinstance(result, EndorserErrorResult):
        error = endorsement_error(result.error)
        _logger.error("normalize - endorser error: {}".format(error))
        return QueryResult.from_error(error)

    if isinstance(result, PayloadResult):
        payload = decode_payload(result.payload)
        _logger.debug("normalize - response status {}".format(
            result.status))
        return QueryResult(result.status, payload, SUCCESS_MESSAGE,
                           SUCCESS_MESSAGE)

    _logger.error("normalize - unknown or missing results in query ::"
                  " {}".format(result.raw))
    return QueryResult.from_error(
        MalformedResponseError(UNKNOWN_RESULTS, detail=''))
