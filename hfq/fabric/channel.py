# SPDX-License-Identifier: Apache-2.0

import logging
import re

_logger = logging.getLogger(__name__)

CHANNEL_NAME_PATTERN = "^[a-z][a-z0-9.-]*$"


class Channel(object):
    """Read-only handle on a channel declared in the connection profile.

    Calls run with the client's current user context unless an admin
    request is made, and go to the channel's profile peers unless targets
    are given.
    """

    def __init__(self, name, client, peers=None):
        """Construct channel instance

        Args:
            name (str): a unique name serves as the identifier of the channel
            client (object): fabric client instance, which provides
            operational context
            peers (list): peer names the profile lists for the channel
        """
        if not re.match(CHANNEL_NAME_PATTERN, name):
            raise ValueError(
                "Channel name is invalid. It should be a string and match"
                " {}, but got {}".format(CHANNEL_NAME_PATTERN, name))

        self._name = name
        self._client = client
        self._peer_names = list(peers or [])

    @property
    def name(self):
        return self._name

    @property
    def client(self):
        return self._client

    @property
    def peers(self):
        """Peer names of the channel."""
        return self._peer_names

    def _targets(self, targets):
        return self._client.get_target_peers(targets or self._peer_names)

    def _requestor(self, admin=False):
        if admin:
            return self._client.get_admin_user()
        return self._client.user_context

    async def send_transaction_proposal(self, request):
        """Send a query proposal to the endorsing peers.

        :param request: dict with targets, chaincode_id, fcn, args and tx_id
        :return: list of per-endorser results
        """
        tx_id = request.get('tx_id')
        requestor = tx_id.user if tx_id is not None else self._requestor()
        proposal = {
            'chaincode_id': request['chaincode_id'],
            'fcn': request.get('fcn', 'query'),
            'args': list(request.get('args') or []),
            'channel_id': self._name,
            'tx_id': str(tx_id) if tx_id is not None else None,
        }
        _logger.debug("send proposal {} to channel {}".format(
            proposal['fcn'], self._name))
        return await self._client.connector.send_transaction_proposal(
            requestor, proposal, self._targets(request.get('targets')),
            self._client.request_timeout)

    async def query_block(self, block_number, targets=None):
        return await self._client.connector.query_block(
            self._requestor(), self._name, self._targets(targets),
            block_number, self._client.request_timeout)

    async def query_block_by_hash(self, block_hash, targets=None):
        return await self._client.connector.query_block_by_hash(
            self._requestor(), self._name, self._targets(targets),
            block_hash, self._client.request_timeout)

    async def query_transaction(self, tx_id, targets=None):
        return await self._client.connector.query_transaction(
            self._requestor(), self._name, self._targets(targets), tx_id,
            self._client.request_timeout)

    async def query_info(self, targets=None):
        return await self._client.connector.query_info(
            self._requestor(), self._name, self._targets(targets),
            self._client.request_timeout)

    async def query_instantiated_chaincodes(self, targets=None,
                                            use_admin=False):
        return await self._client.connector.query_instantiated_chaincodes(
            self._requestor(use_admin), self._name, self._targets(targets),
            self._client.request_timeout)

    def __str__(self):
        return "[{}:name={}]".format(self.__class__.__name__, self._name)
