# SPDX-License-Identifier: Apache-2.0

from abc import ABCMeta, abstractmethod


class Connector(metaclass=ABCMeta):
    """Wire capability the client delegates peer calls to.

    Implementations own transport, TLS and proposal signing. Every call
    receives the requesting user, the target peers and a deadline in
    seconds; the query service does not retry.

    Block calls return decoded blocks with ``header``, ``data`` and
    ``metadata`` sections. Proposal calls return one entry per endorser,
    either an exception instance or a proposal response exposing
    ``response.status`` and ``response.payload``.
    """

    @abstractmethod
    async def send_transaction_proposal(self, requestor, request, targets,
                                        timeout):
        """Send a read-only proposal to the endorsing peers.

        :param requestor: User signing the proposal
        :param request: dict with chaincode_id, fcn, args, channel_id, tx_id
        :param targets: list of Peer
        :param timeout: deadline in seconds
        :return: list of per-endorser results
        """

    @abstractmethod
    async def query_block(self, requestor, channel_name, targets,
                          block_number, timeout):
        """Fetch a decoded block by number."""

    @abstractmethod
    async def query_block_by_hash(self, requestor, channel_name, targets,
                                  block_hash, timeout):
        """Fetch a decoded block by its raw header hash bytes."""

    @abstractmethod
    async def query_transaction(self, requestor, channel_name, targets,
                                tx_id, timeout):
        """Fetch a processed transaction by id."""

    @abstractmethod
    async def query_info(self, requestor, channel_name, targets, timeout):
        """Fetch the blockchain info (height, current and previous hash)."""

    @abstractmethod
    async def query_instantiated_chaincodes(self, requestor, channel_name,
                                            targets, timeout):
        """List chaincodes instantiated on a channel."""

    @abstractmethod
    async def query_installed_chaincodes(self, requestor, targets, timeout):
        """List chaincodes installed on the peers."""

    @abstractmethod
    async def query_channels(self, requestor, targets, timeout):
        """List channels the peers have joined."""
