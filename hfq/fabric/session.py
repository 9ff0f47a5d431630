# SPDX-License-Identifier: Apache-2.0

import logging

from hfq.fabric.client import Client
from hfq.fabric.config.default import get_config_setting, \
    org_profile_setting
from hfq.fabric.errors import IdentityNotFoundError

_logger = logging.getLogger(__name__)


class _ClientSlot(object):
    """Cached client with the identity it was built for."""

    def __init__(self, org_name, user_name, client):
        self.org_name = org_name
        self.user_name = user_name
        self.client = client

    def serves(self, org_name, user_name):
        return (not org_name or org_name == self.org_name) and \
            (not user_name or user_name == self.user_name)


class _ChannelSlot(object):
    """Cached channel with the client it was derived from."""

    def __init__(self, client, channel):
        self.client = client
        self.channel = channel


class Session(object):
    """Caches one client handle and one channel handle.

    A refresh builds a new handle and swaps the cached slot in a single
    assignment, so concurrent callers see either the old or the new handle.
    Sessions are independent of each other; a process may hold several.
    """

    def __init__(self, connector=None, client_factory=None, timeout=None):
        """
        :param connector: Connector handed to the clients this session builds
        :param client_factory: coroutine function (org_name, user_name) ->
         Client, replaces the connection profile based construction
        :param timeout: per-call deadline for the built clients, in seconds
        """
        self._connector = connector
        self._timeout = timeout
        self._client_factory = client_factory or self._build_client
        self._client_slot = None
        self._channel_slot = None

    async def _build_client(self, org_name, user_name):
        """Build a client from the network and organization profiles."""
        client = Client(connector=self._connector, timeout=self._timeout)
        client.load_from_config(
            get_config_setting('network-connection-profile-path'))
        if org_name:
            org_profile = get_config_setting(org_profile_setting(org_name))
            if org_profile:
                client.load_from_config(org_profile)
            else:
                _logger.warning("No connection profile configured for org"
                                " {}".format(org_name))
            client.org_name = org_name

        await client.init_credential_stores()

        if user_name:
            user = await client.get_user_context(user_name, True)
            if user is None:
                user = client.get_default_user_context()
                if user is None:
                    raise IdentityNotFoundError(
                        "User {} was not found".format(user_name))
                _logger.debug("User {} was not found, using previous user"
                              " context {} instead".format(user_name,
                                                           user.name))
            else:
                _logger.debug("User {} of Org {} was found".format(
                    user_name, org_name))
        return client

    async def resolve_client(self, org_name=None, user_name=None,
                             force_refresh=False):
        """Get a client initialized with the network end points.

        :param org_name: organization, defaults to the 'org-name' setting
        :param user_name: user, defaults to the 'user-name' setting
        :param force_refresh: build a new client even if one is cached
        :return: Client
        :raises IdentityNotFoundError: when the user context is unknown
        """
        slot = self._client_slot
        if slot is not None and not force_refresh and \
                slot.serves(org_name, user_name):
            return slot.client

        org_name = org_name or get_config_setting('org-name')
        user_name = user_name or get_config_setting('user-name')
        _logger.debug("resolve_client - building client for org {}".format(
            org_name))
        client = await self._client_factory(org_name, user_name)
        self._client_slot = _ClientSlot(org_name, user_name, client)
        return client

    async def resolve_channel(self, org_name=None, user_name=None,
                              channel_name=None, force_refresh=False):
        """Get a channel handle from the cached client.

        :param org_name: organization, defaults to the 'org-name' setting
        :param user_name: user, defaults to the 'user-name' setting
        :param channel_name: channel, defaults to the 'channel-name' setting
        :param force_refresh: derive the handle again even if one is cached
        :return: Channel, or None when the profile does not define it
        """
        channel_name = channel_name or get_config_setting('channel-name')
        client = await self.resolve_client(org_name, user_name)

        slot = self._channel_slot
        if slot is not None and not force_refresh and \
                slot.client is client and \
                (not channel_name or slot.channel.name == channel_name):
            return slot.channel

        channel = client.get_channel(channel_name) if channel_name else None
        if channel is None:
            return None
        self._channel_slot = _ChannelSlot(client, channel)
        return channel

    @property
    def client(self):
        """The cached client, None before the first resolution."""
        slot = self._client_slot
        return slot.client if slot else None

    @property
    def channel(self):
        """The cached channel, None before the first resolution."""
        slot = self._channel_slot
        return slot.channel if slot else None
