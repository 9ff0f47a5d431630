# SPDX-License-Identifier: Apache-2.0

import logging

from hfq.fabric import block_decoder
from hfq.fabric.errors import ChannelNotConfiguredError, EmptyResultError, \
    MalformedResponseError, wrap_error
from hfq.fabric.response import QueryResult, normalize
from hfq.fabric.session import Session
from hfq.util.consts import CC_TYPE_INSTALLED, CC_TYPE_INSTANTIATED, \
    CRAWL_BY_NUMBER, LEDGER_QUERY_HISTOGRAM, QUERY_CHAINCODE_HISTOGRAM
from hfq.util.metrics import MetricsSink
from hfq.util.utils import get_field, to_bytes

_logger = logging.getLogger(__name__)

_default_metrics = None


def default_metrics():
    """The MetricsSink registered in the process-wide prometheus registry."""
    global _default_metrics
    if _default_metrics is None:
        _default_metrics = MetricsSink()
    return _default_metrics


def _channel_not_defined(channel_name):
    return ChannelNotConfiguredError(
        'Channel {} was not defined in the connection profile'.format(
            channel_name))


def describe_chaincodes(response):
    """Flatten a chaincode query response into readable descriptors.

    :param response: ChaincodeQueryResponse with a chaincodes list
    :return: list of "name: ..., version: ..., path: ..." strings
    :raises MalformedResponseError: when the response lists no chaincodes
     field
    """
    chaincodes = get_field(response, 'chaincodes')
    if chaincodes is None:
        raise MalformedResponseError("chaincode query response has no"
                                     " chaincodes")
    details = []
    for cc in chaincodes:
        detail = 'name: {}, version: {}, path: {}'.format(
            get_field(cc, 'name'), get_field(cc, 'version'),
            get_field(cc, 'path'))
        _logger.debug(detail)
        details.append(detail)
    return details


class QueryService(object):
    """Read-only operations against the ledger.

    Every operation is a terminal boundary: failures come back as values,
    a failed QueryResult for chaincode queries and a QueryError instance
    for ledger inspection, and are never raised. Each call is timed and
    counted in the metrics sink.
    """

    def __init__(self, session=None, metrics=None):
        """
        :param session: Session providing client and channel handles
        :param metrics: MetricsSink, defaults to the process-wide one
        """
        self._session = session if session is not None else Session()
        self._metrics = metrics if metrics is not None \
            else default_metrics()

    @property
    def session(self):
        return self._session

    @property
    def metrics(self):
        return self._metrics

    async def query_chaincode(self, peer_names, channel_name, chaincode_name,
                              fcn, args, org_name=None, user_name=None):
        """Send a query proposal to the endorsing peers.

        :param peer_names: peer name(s) to target, empty for the channel's
         peers
        :param channel_name: name of the channel
        :param chaincode_name: chaincode id
        :param fcn: chaincode function
        :param args: list of string arguments
        :param org_name: organization of the identity
        :param user_name: user of the identity
        :return: QueryResult
        """
        labels = {'channel': channel_name or '',
                  'chaincode': chaincode_name or '', 'function': fcn or ''}
        with self._metrics.measure(QUERY_CHAINCODE_HISTOGRAM,
                                   labels) as measurement:
            try:
                client = await self._session.resolve_client(org_name,
                                                            user_name)
                channel = await self._session.resolve_channel(
                    org_name, user_name, channel_name)
                if channel is None:
                    raise _channel_not_defined(channel_name)

                request = {
                    'targets': peer_names,
                    'chaincode_id': chaincode_name,
                    'fcn': fcn,
                    'args': args,
                    'tx_id': client.new_transaction_id(),
                }
                results = await channel.send_transaction_proposal(request)
                _logger.debug('query_chaincode - results received')
                result = normalize(results)
            except Exception as e:
                _logger.error('Failed to query due to error: {}'.format(e),
                              exc_info=True)
                result = QueryResult.from_error(wrap_error(e))
            if not result.ok:
                measurement.fail()
            return result

    async def _inspect(self, function, body):
        """Run a ledger inspection body under metrics and error capture.

        :param function: operation name used as the histogram label
        :param body: coroutine function producing the response
        :return: the response, or a QueryError
        """
        with self._metrics.measure(LEDGER_QUERY_HISTOGRAM,
                                   {'function': function}) as measurement:
            try:
                return await body()
            except Exception as e:
                measurement.fail()
                _logger.error('{} - failed to query due to error: {}'.format(
                    function, e), exc_info=True)
                return wrap_error(e)

    async def _query_channel(self, function, org_name, user_name,
                             channel_name, call):
        async def body():
            channel = await self._session.resolve_channel(
                org_name, user_name, channel_name)
            if channel is None:
                raise _channel_not_defined(channel_name)
            response = await call(channel)
            if response is None:
                raise EmptyResultError('response_payload is null')
            _logger.debug('{} - response received'.format(function))
            return response

        return await self._inspect(function, body)

    async def get_block_by_number(self, peer_name, channel_name,
                                  block_number, org_name=None,
                                  user_name=None):
        """Get a block by its number.

        :return: the decoded block, or a QueryError
        """
        return await self._query_channel(
            'get_block_by_number', org_name, user_name, channel_name,
            lambda channel: channel.query_block(int(block_number),
                                                peer_name))

    async def get_transaction_by_id(self, peer_name, channel_name, tx_id,
                                    org_name=None, user_name=None):
        """Get a processed transaction by its id.

        :return: the processed transaction, or a QueryError
        """
        return await self._query_channel(
            'get_transaction_by_id', org_name, user_name, channel_name,
            lambda channel: channel.query_transaction(tx_id, peer_name))

    async def get_block_by_hash(self, peer_name, channel_name, block_hash,
                                org_name=None, user_name=None):
        """Get a block by its header hash.

        :param block_hash: hex encoded hash
        :return: the decoded block, or a QueryError
        """
        return await self._query_channel(
            'get_block_by_hash', org_name, user_name, channel_name,
            lambda channel: channel.query_block_by_hash(
                to_bytes(block_hash), peer_name))

    async def get_channel_info(self, peer_name, channel_name,
                               org_name=None, user_name=None):
        """Queries the state of the channel (height, current block hash).

        :return: the blockchain info, or a QueryError
        """
        return await self._query_channel(
            'get_channel_info', org_name, user_name, channel_name,
            lambda channel: channel.query_info(peer_name))

    async def get_chaincodes(self, peer_name, channel_name, cc_type,
                             org_name=None, user_name=None):
        """List chaincodes installed on a peer or instantiated on a channel.

        :param cc_type: "installed" queries the peer with the admin identity,
         any other value the channel's instantiated chaincodes
        :return: list of descriptors, or a QueryError
        """
        async def body():
            if cc_type == CC_TYPE_INSTALLED:
                client = await self._session.resolve_client(org_name,
                                                            user_name)
                _logger.debug('Successfully got the client for the'
                              ' organization "{}"'.format(client.org_name))
                response = await client.query_installed_chaincodes(
                    peer_name, use_admin=True)
            else:
                channel = await self._session.resolve_channel(
                    org_name, user_name, channel_name)
                if channel is None:
                    raise _channel_not_defined(channel_name)
                response = await channel.query_instantiated_chaincodes(
                    peer_name, use_admin=True)
            if response is None:
                raise EmptyResultError('response is null')
            return describe_chaincodes(response)

        return await self._inspect('get_chaincodes', body)

    async def get_installed_chaincodes(self, peer_name, org_name=None,
                                       user_name=None):
        return await self.get_chaincodes(peer_name, None, CC_TYPE_INSTALLED,
                                         org_name, user_name)

    async def get_instantiated_chaincodes(self, peer_name, channel_name,
                                          org_name=None, user_name=None):
        return await self.get_chaincodes(peer_name, channel_name,
                                         CC_TYPE_INSTANTIATED, org_name,
                                         user_name)

    async def get_channels(self, peer_name, org_name=None, user_name=None):
        """Names of the channels a peer has joined.

        :return: the channel query response, or a QueryError
        """
        async def body():
            client = await self._session.resolve_client(org_name, user_name)
            response = await client.query_channels(peer_name)
            if response is None:
                raise EmptyResultError('response_payloads is null')
            for ch in get_field(response, 'channels') or []:
                _logger.debug('channel id: {}'.format(
                    get_field(ch, 'channel_id')))
            return response

        return await self._inspect('get_channels', body)

    async def crawl_block(self, block_number_or_hash,
                          option=CRAWL_BY_NUMBER, peer_name=None,
                          channel_name=None, org_name=None, user_name=None):
        """Fetch a block and crawl it into transaction records.

        :param block_number_or_hash: block number, or hex hash
        :param option: "by_number", any other value fetches by hash
        :return: CrawledBlock, None for a block without transactions, or a
         QueryError
        """
        async def body():
            channel = await self._session.resolve_channel(
                org_name, user_name, channel_name)
            if channel is None:
                raise _channel_not_defined(channel_name)
            if option == CRAWL_BY_NUMBER:
                raw_block = await channel.query_block(
                    int(block_number_or_hash), peer_name)
            else:
                raw_block = await channel.query_block_by_hash(
                    to_bytes(block_number_or_hash), peer_name)
            if not raw_block:
                return None
            return block_decoder.crawl_block(raw_block)

        return await self._inspect('crawl_block', body)
