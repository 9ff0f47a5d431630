# Copyright 281165273@qq.com. All Rights Reserved.
#
# SPDX-License-Identifier: Apache-2.0

import os
from hashlib import sha256

NONCE_SIZE = 24


class TransactionID(object):
    """ Nonce and transaction id of a proposal. """

    def __init__(self, user, admin=False):
        """
        :param user: the signing user, its msp id and cert make up the
         creator identity
        :param admin: whether the id belongs to an admin request
        """
        self._user = user
        self._admin = admin
        self._nonce = os.urandom(NONCE_SIZE)
        cert = user.enrollment.cert
        if isinstance(cert, str):
            cert = cert.encode('utf-8')
        identity = (user.msp_id or '').encode('utf-8') + cert
        self._tx_id = sha256(self._nonce + identity).hexdigest()

    @property
    def tx_id(self):
        """ Get transaction id."""
        return self._tx_id

    @property
    def nonce(self):
        """ Get nonce"""
        return self._nonce

    @property
    def user(self):
        return self._user

    @property
    def is_admin(self):
        return self._admin

    def __str__(self):
        return self._tx_id
