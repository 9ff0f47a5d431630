# Copyright. All Rights Reserved.
#
# SPDX-License-Identifier: Apache-2.0

import logging
import base64

from hfq.fabric.user import create_user

_logger = logging.getLogger(__name__ + ".organization")

ADMIN_USER_NAME = 'admin'


def _handle_key_type(key):
    """Read the pem of a key or cert given as a path or profile object."""

    key_pem = None
    if isinstance(key, str):
        with open(key, 'rb') as f:
            key_pem = f.read()

    elif isinstance(key, dict):
        if 'pem' in key:
            key_pem = key.get('pem')
            if isinstance(key_pem, str):
                key_pem = key_pem.encode('utf-8')
            if not key_pem.startswith(b'-----'):
                key_pem = base64.standard_b64decode(key_pem)

        elif 'path' in key:
            with open(key.get('path'), 'rb') as f:
                key_pem = f.read()
    else:
        raise ValueError("was not able to determine key type/configuration"
                         " used in connection profile: {}".format(key))

    return key_pem


class Organization(object):
    """ An organization of the connection profile and its identities. """

    def __init__(self, name='org', state_store=None):
        """
        :param name: Name of the organization
        :param state_store: credential store the users persist into
        """
        self._name = name
        self._mspid = None
        self._peers = []
        self._state_store = state_store
        self._users = dict()
        self._admin = None

    @property
    def name(self):
        return self._name

    @property
    def mspid(self):
        return self._mspid

    @property
    def peers(self):
        return self._peers

    @property
    def admin(self):
        return self._admin

    def _load_user(self, name, key, cert):
        try:
            key_pem = _handle_key_type(key)
            cert_pem = _handle_key_type(cert)
        except (ValueError, IOError) as e:
            _logger.error("error happened initializing user {} via bundle:"
                          " {}".format(name, e))
            return None
        return create_user(name, self._name, self._state_store,
                           self._mspid, key_pem, cert_pem)

    def init_with_bundle(self, info):
        """
        Init the organization with given info dict
        :param info: Dict of the organization section of a profile
        :return: True or False
        """
        if 'mspid' in info:
            self._mspid = info['mspid']
        if 'peers' in info:
            self._peers = info['peers']
        ok = True
        users = info.get('users', {})
        for name in users:
            user = self._load_user(name, users[name].get('private_key'),
                                   users[name].get('cert'))
            if user is None:
                ok = False
                continue
            self._users[name] = user
        if 'adminPrivateKey' in info and 'signedCert' in info:
            self._admin = self._load_user(ADMIN_USER_NAME,
                                          info['adminPrivateKey'],
                                          info['signedCert'])
            ok = ok and self._admin is not None
        return ok

    def get_user(self, name):
        """
        Return user instance with the name.
        :param name: Name of the user
        :return: User instance or None
        """
        return self._users.get(name)


def create_org(name, info, state_store):
    """ Factory method to construct an organization instance
    :param name: Name of the organization
    :param info: Info dict for initialization
    :param state_store: State store for data cache
    :return: an organization instance
    """
    org = Organization(name=name, state_store=state_store)
    org.init_with_bundle(info)
    return org
