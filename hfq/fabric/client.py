# SPDX-License-Identifier: Apache-2.0

import json
import logging

from hfq.fabric.channel import Channel
from hfq.fabric.config.default import get_config_setting, request_timeout
from hfq.fabric.errors import IdentityNotFoundError
from hfq.fabric.organization import create_org
from hfq.fabric.peer import Peer
from hfq.fabric.tx_context import TransactionID
from hfq.fabric.user import User, user_state_key
from hfq.util.keyvaluestore import FileKeyValueStore
from hfq.util.utils import merge_options

_logger = logging.getLogger(__name__)


def default_user_key(org_name):
    return "default_user." + org_name


class Client(object):
    """Read-side interaction handler.

    A client is built from connection profiles, holds the credential store,
    the current user context and the channel handles, and hands wire calls
    to its connector.
    """

    def __init__(self, net_profile=None, connector=None, timeout=None):
        """ Construct client

        :param net_profile: path of a connection profile to load
        :param connector: Connector performing the peer calls
        :param timeout: per-call deadline in seconds, defaults to the
         'request-timeout' setting
        """
        self._connector = connector
        self._request_timeout = timeout
        self._org_name = None
        self.kv_store_path = None
        self._state_store = None
        self._user_context = None
        self.network_info = dict()

        self._organizations = dict()
        self._channels = dict()
        self._peers = dict()

        if net_profile:
            _logger.debug("Init client with profile={}".format(net_profile))
            self.load_from_config(net_profile)

    def load_from_config(self, profile_path):
        """
        Merge a connection profile from an external file into network_info.

        Organization profiles are loaded over the network profile; peers
        are (re)built from the merged result.

        :param profile_path: The connection profile file path
        :return: self
        """
        with open(profile_path, 'r') as profile:
            merge_options(self.network_info, json.load(profile))

        peers = self.get_net_info('peers') or {}
        _logger.debug("Import peers = {}".format(list(peers.keys())))
        for name in peers:
            peer = Peer(name=name)
            if peer.init_with_bundle(peers[name]):
                self._peers[name] = peer
        return self

    def get_net_info(self, *key_path):
        """
        Get the info from self.network_info
        :param key_path: path of the key, e.g., a.b.c means info['a']['b']['c']
        :return: The value, or None
        """
        result = self.network_info
        if result:
            for k in key_path:
                try:
                    result = result[k]
                except (KeyError, TypeError):
                    _logger.warning(f'No key path {key_path} exists'
                                    f' in net info')
                    return None

        return result

    @property
    def org_name(self):
        """The organization the client acts for."""
        if self._org_name:
            return self._org_name
        return self.get_net_info('client', 'organization')

    @org_name.setter
    def org_name(self, org_name):
        self._org_name = org_name

    @property
    def connector(self):
        if self._connector is None:
            raise ValueError("No connector configured for the client")
        return self._connector

    @connector.setter
    def connector(self, connector):
        self._connector = connector

    @property
    def request_timeout(self):
        if self._request_timeout is None:
            return request_timeout()
        return self._request_timeout

    @property
    def state_store(self):
        return self._state_store

    @property
    def organizations(self):
        return self._organizations

    @property
    def peers(self):
        return self._peers

    async def init_credential_stores(self):
        """Open the credential store and load the profile's identities.

        The store path comes from client.credentialStore.path of the
        profile, or the 'credential-store-path' setting.

        :raises ValueError: when no store path is configured
        """
        self.kv_store_path = \
            self.get_net_info('client', 'credentialStore', 'path') or \
            get_config_setting('credential-store-path')
        if not self.kv_store_path:
            raise ValueError("No credential store path in the connection"
                             " profile")
        self._state_store = FileKeyValueStore(self.kv_store_path)

        orgs = self.get_net_info('organizations') or {}
        for name in orgs:
            _logger.debug("create org with name={}".format(name))
            self._organizations[name] = create_org(name, orgs[name],
                                                   self._state_store)

    async def get_user_context(self, name, check_persistence=True):
        """Load a user context and make it the current one.

        Profile users are looked up first, then the credential store.

        :param name: Name of the user
        :param check_persistence: whether to look into the credential store
        :return: User instance or None
        """
        org_name = self.org_name
        org = self._organizations.get(org_name)
        user = org.get_user(name) if org else None
        if user is None and check_persistence and self._state_store and \
                org_name:
            if self._state_store.get_value(user_state_key(name, org_name)):
                user = User(name, org_name, self._state_store)
        if user is None or not user.is_enrolled():
            return None
        self.set_user_context(user)
        return user

    def set_user_context(self, user):
        """Make user the current context and persist it as the default."""
        self._user_context = user
        if self._state_store is not None and user.org:
            self._state_store.set_value(default_user_key(user.org),
                                        user.name)

    @property
    def user_context(self):
        return self._user_context

    def get_default_user_context(self):
        """The current user context, else the persisted default one.

        :return: User instance or None
        """
        if self._user_context is not None:
            return self._user_context
        org_name = self.org_name
        if self._state_store is None or not org_name:
            return None
        name = self._state_store.get_value(default_user_key(org_name))
        if not name:
            return None
        if not self._state_store.get_value(user_state_key(name, org_name)):
            return None
        user = User(name, org_name, self._state_store)
        if not user.is_enrolled():
            return None
        self._user_context = user
        return user

    def get_admin_user(self):
        """The org admin for elevated queries, else the current user."""
        org = self._organizations.get(self.org_name)
        if org is not None and org.admin is not None:
            return org.admin
        return self._user_context

    def new_transaction_id(self, admin=False):
        """Create a transaction id signed for by the current identity.

        :param admin: use the admin identity
        :return: TransactionID
        :raises IdentityNotFoundError: when no identity is loaded
        """
        user = self.get_admin_user() if admin else self._user_context
        if user is None or not user.is_enrolled():
            raise IdentityNotFoundError(
                "No user context loaded to create a transaction id")
        return TransactionID(user, admin)

    def new_channel(self, name):
        """Create a channel handler instance with given name.

        :param name: The name of the channel.
        :return: The inited channel.
        """
        _logger.debug("New channel with name = {}".format(name))
        if name not in self._channels:
            peers = self.get_net_info('channels', name, 'peers') or {}
            self._channels[name] = Channel(name, self, list(peers))
        return self._channels[name]

    def get_channel(self, name):
        """Get a channel declared in the connection profile.

        :param name: The name of the channel.
        :return: the channel instance or None
        """
        if name in self._channels:
            return self._channels[name]
        channels = self.network_info.get('channels') or {}
        if name not in channels:
            _logger.warning(f"Channel {name} is not defined in the"
                            f" connection profile")
            return None
        return self.new_channel(name)

    def get_peer(self, name):
        """
        Get a peer instance with the name.
        :param name:  Name of the peer node.
        :return: The peer instance or None.
        """
        if name in self._peers:
            return self._peers[name]
        _logger.warning(f"Cannot find peer with name {name}")
        return None

    def get_target_peers(self, peers):
        """Resolve peer names and/or Peer instances.

        :param peers: a peer name, a Peer, or a list of both. Empty means
         every peer of the client's organization.
        :return: list of Peer
        :raises ValueError: when a peer is unknown or none is left
        """
        if not peers:
            org = self._organizations.get(self.org_name)
            peers = org.peers if org else []
        if isinstance(peers, (str, Peer)):
            peers = [peers]

        target_peers = []
        for _peer in peers:
            if isinstance(_peer, Peer):
                target_peers.append(_peer)
            elif isinstance(_peer, str):
                peer = self.get_peer(_peer)
                if peer is None:
                    raise ValueError(f'Cannot find peer with name {_peer}')
                target_peers.append(peer)
            else:
                raise ValueError(
                    f'{_peer} should be a peer name or a Peer instance')

        if not target_peers:
            raise ValueError("No functional peer provided")
        return target_peers

    async def query_installed_chaincodes(self, peers=None, use_admin=True):
        """Queries chaincodes installed on the peers.

        :param peers: peer names and/or Peer instances
        :param use_admin: sign with the org admin identity
        :return: A ChaincodeQueryResponse
        """
        requestor = self.get_admin_user() if use_admin \
            else self._user_context
        return await self.connector.query_installed_chaincodes(
            requestor, self.get_target_peers(peers), self.request_timeout)

    async def query_channels(self, peers=None):
        """Queries the channels joined by the peers.

        :param peers: peer names and/or Peer instances
        :return: A ChannelQueryResponse
        """
        return await self.connector.query_channels(
            self._user_context, self.get_target_peers(peers),
            self.request_timeout)

    def __str__(self):
        return "[{}:org={}]".format(self.__class__.__name__, self.org_name)
