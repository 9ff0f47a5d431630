# Copyright IBM Corp. 2016 All Rights Reserved.
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
import tempfile
import unittest
from shutil import rmtree

from hfq.fabric.client import Client
from hfq.fabric.errors import IdentityNotFoundError
from hfq.fabric.peer import Peer
from test.unit.util import CHANNEL_NAME, MSP_ID, ORG_NAME, PEER_NAME, \
    USER_NAME, FakeConnector, run, write_profiles


class ClientTest(unittest.TestCase):

    def setUp(self):
        self.base_path = tempfile.mkdtemp()
        self.network_path, self.org_path, self.store_path = \
            write_profiles(self.base_path)
        self.connector = FakeConnector()
        self.client = Client(self.network_path, connector=self.connector)

    def tearDown(self):
        rmtree(self.base_path)

    def test_load_from_config(self):
        self.assertIsNone(self.client.org_name)
        self.client.load_from_config(self.org_path)

        self.assertEqual(self.client.org_name, ORG_NAME)
        self.assertEqual(self.client.get_net_info('organizations', ORG_NAME,
                                                  'mspid'), MSP_ID)
        self.assertEqual(self.client.get_net_info('client', 'credentialStore',
                                                  'path'), self.store_path)
        self.assertIsNone(self.client.get_net_info('client', 'missing'))
        self.assertEqual(self.client.get_peer(PEER_NAME).endpoint,
                         'localhost:7051')

    def test_get_channel(self):
        channel = self.client.get_channel(CHANNEL_NAME)
        self.assertEqual(channel.name, CHANNEL_NAME)
        self.assertEqual(channel.peers, [PEER_NAME])
        self.assertIs(self.client.get_channel(CHANNEL_NAME), channel)

        self.assertIsNone(self.client.get_channel('unknown'))

    def test_get_target_peers(self):
        peer = Peer(name='other', endpoint='other:7051')
        targets = self.client.get_target_peers([PEER_NAME, peer])
        self.assertEqual([p.name for p in targets], [PEER_NAME, 'other'])
        self.assertEqual(len(self.client.get_target_peers(PEER_NAME)), 1)

        with self.assertRaises(ValueError):
            self.client.get_target_peers(['unknown'])
        with self.assertRaises(ValueError):
            self.client.get_target_peers([42])

    def test_credential_store_and_user_context(self):
        self.client.load_from_config(self.org_path)
        run(self.client.init_credential_stores())

        self.assertIsNone(self.client.user_context)
        user = run(self.client.get_user_context(USER_NAME))
        self.assertEqual(user.name, USER_NAME)
        self.assertEqual(user.msp_id, MSP_ID)
        self.assertIs(self.client.user_context, user)
        self.assertIsNone(run(self.client.get_user_context('ghost')))

        # a new client finds the persisted default user
        other = Client(self.network_path)
        other.load_from_config(self.org_path)
        run(other.init_credential_stores())
        default = other.get_default_user_context()
        self.assertEqual(default.name, USER_NAME)
        self.assertTrue(default.is_enrolled())

    def test_credential_store_missing(self):
        with self.assertRaises(ValueError):
            run(self.client.init_credential_stores())

    def test_admin_user(self):
        self.client.load_from_config(self.org_path)
        run(self.client.init_credential_stores())
        run(self.client.get_user_context(USER_NAME))

        admin = self.client.get_admin_user()
        self.assertEqual(admin.name, 'admin')
        self.assertEqual(self.client.new_transaction_id(admin=True).user,
                         admin)

    def test_new_transaction_id(self):
        with self.assertRaises(IdentityNotFoundError):
            self.client.new_transaction_id()

        self.client.load_from_config(self.org_path)
        run(self.client.init_credential_stores())
        run(self.client.get_user_context(USER_NAME))
        first = self.client.new_transaction_id()
        second = self.client.new_transaction_id()
        self.assertEqual(len(first.tx_id), 64)
        self.assertEqual(len(first.nonce), 24)
        self.assertNotEqual(first.tx_id, second.tx_id)

    def test_query_installed_chaincodes_uses_admin(self):
        self.client.load_from_config(self.org_path)
        run(self.client.init_credential_stores())
        run(self.client.get_user_context(USER_NAME))
        self.connector.responses['query_installed_chaincodes'] = \
            {'chaincodes': []}

        response = run(self.client.query_installed_chaincodes())

        self.assertEqual(response, {'chaincodes': []})
        name, requestor, targets = self.connector.calls[0]
        self.assertEqual(name, 'query_installed_chaincodes')
        self.assertEqual(requestor.name, 'admin')
        self.assertEqual(targets, [PEER_NAME])

    def test_missing_connector(self):
        client = Client(self.network_path)
        with self.assertRaises(ValueError):
            client.connector


if __name__ == '__main__':
    unittest.main()
