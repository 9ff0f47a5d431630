# SPDX-License-Identifier: Apache-2.0

import asyncio
import binascii
import json
import os

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from hfq.fabric.connector import Connector

loop = asyncio.new_event_loop()

ORG_NAME = 'org1'
MSP_ID = 'Org1MSP'
PEER_NAME = 'peer0.org1.example.com'
CHANNEL_NAME = 'mychannel'
USER_NAME = 'user1'


def run(coro):
    return loop.run_until_complete(coro)


def generate_identity(common_name):
    """PEM private key and a placeholder certificate for common_name."""
    private_key = ec.generate_private_key(ec.SECP256R1())
    key_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption())
    cert_pem = ('-----BEGIN CERTIFICATE-----\n{}\n'
                '-----END CERTIFICATE-----\n').format(
        binascii.b2a_hex(common_name.encode()).decode()).encode()
    return key_pem, cert_pem


def _write(path, content):
    with open(path, 'wb') as f:
        f.write(content)
    return path


def write_profiles(base_path, with_admin=True):
    """Write a network and an org1 connection profile under base_path.

    :return: (network profile path, org profile path, store path)
    """
    msp_path = os.path.join(base_path, 'msp')
    os.makedirs(msp_path, exist_ok=True)
    store_path = os.path.join(base_path, 'store')

    key_pem, cert_pem = generate_identity(USER_NAME)
    org = {
        'mspid': MSP_ID,
        'peers': [PEER_NAME],
        'users': {
            USER_NAME: {
                'private_key': {'path': _write(
                    os.path.join(msp_path, 'user1_sk'), key_pem)},
                'cert': {'path': _write(
                    os.path.join(msp_path, 'user1-cert.pem'), cert_pem)},
            }
        }
    }
    if with_admin:
        admin_key, admin_cert = generate_identity('Admin')
        org['adminPrivateKey'] = {'pem': admin_key.decode()}
        org['signedCert'] = {'pem': admin_cert.decode()}

    network = {
        'name': 'test-network',
        'organizations': {ORG_NAME: org},
        'peers': {
            PEER_NAME: {
                'url': 'localhost:7051',
                'grpcOptions': {
                    'grpc.ssl_target_name_override': PEER_NAME
                },
                'tlsCACerts': {'path': os.path.join(msp_path, 'tlsca.pem')}
            }
        },
        'channels': {CHANNEL_NAME: {'peers': {PEER_NAME: {}}}}
    }
    org_profile = {
        'client': {
            'organization': ORG_NAME,
            'credentialStore': {'path': store_path}
        }
    }
    network_path = _write(os.path.join(base_path, 'network.json'),
                          json.dumps(network).encode())
    org_path = _write(os.path.join(base_path, 'org1.json'),
                      json.dumps(org_profile).encode())
    return network_path, org_path, store_path


class FakeConnector(Connector):
    """Connector answering from canned responses and recording calls."""

    def __init__(self, **responses):
        self.responses = responses
        self.calls = []

    async def _answer(self, name, requestor, targets, *args):
        self.calls.append((name, requestor, [t.name for t in targets]) +
                          args)
        response = self.responses.get(name)
        if isinstance(response, Exception):
            raise response
        return response

    async def send_transaction_proposal(self, requestor, request, targets,
                                        timeout):
        return await self._answer('send_transaction_proposal', requestor,
                                  targets, request)

    async def query_block(self, requestor, channel_name, targets,
                          block_number, timeout):
        return await self._answer('query_block', requestor, targets,
                                  channel_name, block_number)

    async def query_block_by_hash(self, requestor, channel_name, targets,
                                  block_hash, timeout):
        return await self._answer('query_block_by_hash', requestor, targets,
                                  channel_name, block_hash)

    async def query_transaction(self, requestor, channel_name, targets,
                                tx_id, timeout):
        return await self._answer('query_transaction', requestor, targets,
                                  channel_name, tx_id)

    async def query_info(self, requestor, channel_name, targets, timeout):
        return await self._answer('query_info', requestor, targets,
                                  channel_name)

    async def query_instantiated_chaincodes(self, requestor, channel_name,
                                            targets, timeout):
        return await self._answer('query_instantiated_chaincodes',
                                  requestor, targets, channel_name)

    async def query_installed_chaincodes(self, requestor, targets, timeout):
        return await self._answer('query_installed_chaincodes', requestor,
                                  targets)

    async def query_channels(self, requestor, targets, timeout):
        return await self._answer('query_channels', requestor, targets)


def make_envelope(tx_id, ns_rwset=None, with_action=True,
                  type_string='ENDORSER_TRANSACTION'):
    """A decoded block data envelope."""
    channel_header = {
        'type': 3,
        'timestamp': '2019-06-04 09:12:30',
        'channel_id': CHANNEL_NAME,
        'tx_id': tx_id,
    }
    if type_string is not None:
        channel_header['type_string'] = type_string
    data = {'actions': []}
    if with_action:
        data['actions'].append({
            'payload': {
                'action': {
                    'proposal_response_payload': {
                        'extension': {
                            'results': {
                                'data_model': 0,
                                'ns_rwset': ns_rwset or []
                            }
                        }
                    }
                }
            }
        })
    return {'signature': b'', 'payload': {
        'header': {'channel_header': channel_header},
        'data': data
    }}


def make_block(number=5, previous_hash=b'aa' * 32, data_hash=b'bb' * 32,
               envelopes=None, metadata=None):
    """A decoded block with hex rendered header hashes."""
    return {
        'header': {
            'number': number,
            'previous_hash': previous_hash,
            'data_hash': data_hash,
        },
        'data': {'data': envelopes if envelopes is not None else []},
        'metadata': {
            'metadata': metadata if metadata is not None
            else [{'value': {}}, {'value': {'index': 0}}, [0]]
        }
    }


def kv_rwset(namespace, key, value):
    return {
        'namespace': namespace,
        'rwset': {
            'reads': [{'key': key, 'version': {'block_num': '3',
                                               'tx_num': '0'}}],
            'range_queries_info': [],
            'writes': [{'key': key, 'is_delete': False, 'value': value}],
        }
    }
