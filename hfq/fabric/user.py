# Copyright IBM Corp. 2017 All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
import logging

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.serialization import load_pem_private_key

_logger = logging.getLogger(__name__ + ".user")


def user_state_key(name, org):
    return "user." + name + "." + org


class Enrollment(object):
    """Private key and certificate of an enrolled identity."""

    def __init__(self, private_key, cert):
        self._private_key = private_key
        self._cert = cert

    @property
    def private_key(self):
        return self._private_key

    @property
    def cert(self):
        return self._cert


class User(object):
    """A user context backed by the credential store."""

    def __init__(self, name, org, state_store):
        """Constructor for a user.

        The state persisted under the user's key is restored when present.

        :param name: name
        :param org: org
        :param state_store: credential store, None for a transient user
        :return: An instance of user object
        """
        self._name = name
        self._org = org
        self._state_store = state_store
        self._state_store_key = user_state_key(name, org)
        self._roles = []
        self._enrollment = None
        self._msp_id = None

        if state_store is not None and \
                state_store.get_value(self._state_store_key):
            self._restore_state()

    @property
    def name(self):
        return self._name

    @property
    def org(self):
        return self._org

    @property
    def roles(self):
        return self._roles

    @roles.setter
    def roles(self, roles):
        self._roles = roles
        self._save_state()

    @property
    def enrollment(self):
        return self._enrollment

    @enrollment.setter
    def enrollment(self, enrollment):
        self._enrollment = enrollment
        self._save_state()

    @property
    def msp_id(self):
        return self._msp_id

    @msp_id.setter
    def msp_id(self, msp_id):
        self._msp_id = msp_id
        self._save_state()

    def is_enrolled(self):
        """Check if user enrolled

        :return: boolean
        """
        return self._enrollment is not None

    def _save_state(self):
        """Persistent user state."""
        if self._state_store is None:
            return
        state = {
            'name': self.name, 'org': self.org, 'roles': self.roles,
            'msp_id': self.msp_id, 'enrollment': None
        }
        if self.enrollment:
            state['enrollment'] = {
                'private_key': self.enrollment.private_key.private_bytes(
                    encoding=serialization.Encoding.PEM,
                    format=serialization.PrivateFormat.PKCS8,
                    encryption_algorithm=serialization.NoEncryption()
                ).decode('utf-8'),
                'cert': _pem_text(self.enrollment.cert)
            }
        try:
            self._state_store.set_json(self._state_store_key, state)
        except (IOError, TypeError, ValueError) as e:
            raise IOError("Cannot serialize the user", e)

    def _restore_state(self):
        """Restore user state."""
        try:
            state = self._state_store.get_json(self._state_store_key)
            self._name = state['name']
            self._org = state['org']
            self._roles = state['roles']
            self._msp_id = state['msp_id']
            enrollment = state['enrollment']
            if enrollment:
                private_key = load_pem_private_key(
                    enrollment['private_key'].encode('utf-8'), password=None)
                self._enrollment = Enrollment(
                    private_key, enrollment['cert'].encode('utf-8'))
        except (KeyError, TypeError, ValueError) as e:
            raise IOError("Cannot deserialize the user", e)

    def __str__(self):
        return "[{}:name={},org={},msp_id={}]".format(
            self.__class__.__name__, self._name, self._org, self._msp_id)


def _pem_text(cert):
    if isinstance(cert, bytes):
        return cert.decode('utf-8')
    return cert


def validate(user):
    """Check the user.

    :param user: A user object
    :return: A validated user object
    :raises ValueError: When user property is invalid
    """
    if not user:
        raise ValueError("User cannot be empty.")

    if not user.name:
        raise ValueError("Missing user name.")

    enrollment = user.enrollment
    if not enrollment:
        raise ValueError("Missing user enrollment.")

    if not enrollment.cert:
        raise ValueError("Missing user enrollment cert.")

    if not enrollment.private_key:
        raise ValueError("Missing user enrollment key.")

    if not user.msp_id:
        raise ValueError("Missing msp id.")

    return user


def create_user(name, org, state_store, msp_id, key_pem, cert_pem):
    """Create user

    :param name: user's name
    :param org: org name
    :param state_store: user state store
    :param msp_id: msp id for the user
    :param key_pem: identity private key pem encoded
    :param cert_pem: identity public cert pem encoded
    :return: a user instance
    """

    _logger.debug("Create user with {}:{}:{}".format(name, org, msp_id))

    private_key = load_pem_private_key(key_pem, None)

    user = User(name, org, state_store)
    user._msp_id = msp_id
    user.enrollment = Enrollment(private_key, cert_pem)

    return validate(user)
