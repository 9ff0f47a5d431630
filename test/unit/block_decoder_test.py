# Copyright Sudheesh Singanamalla 2018 All Rights Reserved.
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

import hashlib
import unittest

from pyasn1.codec.der import decoder as der_decoder

from hfq.fabric.block_decoder import BlockHeader, BlockHeaderAsn, \
    CrawledBlock, HeaderType, compute_block_hash, crawl_block, \
    encode_block_header
from hfq.fabric.errors import MalformedResponseError
from test.unit.util import make_block, make_envelope, kv_rwset

PREVIOUS_HASH = b'\xaa' * 32
DATA_HASH = b'\xbb' * 32

# 30 47: SEQUENCE of 71 bytes; 02 01 05: INTEGER 5; 04 20: OCTET STRING(32)
REFERENCE_DER = b'\x30\x47\x02\x01\x05' + b'\x04\x20' + PREVIOUS_HASH + \
    b'\x04\x20' + DATA_HASH


class BlockHeaderHashTest(unittest.TestCase):
    """Test for the block header hash"""

    def test_der_encoding(self):
        self.assertEqual(encode_block_header(5, PREVIOUS_HASH, DATA_HASH),
                         REFERENCE_DER)

    def test_der_integer_encoding(self):
        der = encode_block_header(0, b'', b'')
        self.assertEqual(der, b'\x30\x07\x02\x01\x00\x04\x00\x04\x00')

        # 128 needs a leading zero octet to stay positive
        der = encode_block_header(128, b'', b'')
        self.assertEqual(der, b'\x30\x08\x02\x02\x00\x80\x04\x00\x04\x00')

    def test_block_hash_matches_reference(self):
        expected = hashlib.sha256(REFERENCE_DER).digest()
        self.assertEqual(compute_block_hash(5, PREVIOUS_HASH, DATA_HASH),
                         expected)

    def test_block_hash_is_deterministic(self):
        first = compute_block_hash(42, PREVIOUS_HASH, DATA_HASH)
        for _ in range(3):
            self.assertEqual(compute_block_hash(42, PREVIOUS_HASH,
                                                DATA_HASH), first)
        self.assertNotEqual(compute_block_hash(43, PREVIOUS_HASH, DATA_HASH),
                            first)

    def test_der_round_trip(self):
        number = 2 ** 63 + 7
        der = encode_block_header(number, PREVIOUS_HASH, DATA_HASH)
        decoded, rest = der_decoder.decode(der, asn1Spec=BlockHeaderAsn())
        self.assertEqual(rest, b'')
        self.assertEqual(int(decoded['Number']), number)
        self.assertEqual(bytes(decoded['PreviousHash']), PREVIOUS_HASH)
        self.assertEqual(bytes(decoded['DataHash']), DATA_HASH)

    def test_header_from_raw(self):
        header = BlockHeader.from_raw({'number': '5',
                                       'previous_hash': 'aa' * 32,
                                       'data_hash': b'bb' * 32})
        self.assertEqual(header.number, 5)
        self.assertEqual(header.previous_hash, PREVIOUS_HASH)
        self.assertEqual(header.data_hash, DATA_HASH)
        self.assertEqual(header.computed_block_hash,
                         hashlib.sha256(REFERENCE_DER).digest())

    def test_header_rejects_negative_number(self):
        with self.assertRaises(ValueError):
            BlockHeader(-1, b'', b'')


class CrawlBlockTest(unittest.TestCase):
    """Test for crawling decoded blocks"""

    def test_block_without_transactions(self):
        self.assertIsNone(crawl_block(make_block(envelopes=[])))

        block = make_block()
        del block['data']
        self.assertIsNone(crawl_block(block))

    def test_crawl_single_transaction(self):
        rwset = [kv_rwset('mycc', 'a', b'100')]
        block = make_block(envelopes=[make_envelope('tx1', rwset)])

        crawled = crawl_block(block)

        self.assertIsInstance(crawled, CrawledBlock)
        self.assertEqual(crawled.header.number, 5)
        self.assertEqual(crawled.header.computed_block_hash,
                         hashlib.sha256(REFERENCE_DER).digest())
        self.assertEqual(crawled.tx_code, [0])
        self.assertEqual(len(crawled.transactions), 1)
        tx = crawled.transactions[0]
        self.assertEqual(tx.tx_id, 'tx1')
        self.assertEqual(tx.channel_id, 'mychannel')
        self.assertEqual(tx.timestamp, '2019-06-04 09:12:30')
        self.assertEqual(tx.tx_type, 'ENDORSER_TRANSACTION')
        self.assertEqual(tx.ns_rwset, rwset)

    def test_transactions_keep_block_order(self):
        tx_ids = ['tx{}'.format(i) for i in range(5)]
        block = make_block(envelopes=[make_envelope(t) for t in tx_ids])

        crawled = crawl_block(block)

        self.assertEqual([tx.tx_id for tx in crawled.transactions], tx_ids)

    def test_transaction_without_action(self):
        block = make_block(envelopes=[
            make_envelope('tx1', [kv_rwset('mycc', 'a', b'1')]),
            make_envelope('config', with_action=False),
        ])
        block['data']['data'][1]['payload']['data'] = {}

        crawled = crawl_block(block)

        self.assertEqual(len(crawled.transactions), 2)
        self.assertEqual(crawled.transactions[1].tx_id, 'config')
        self.assertEqual(crawled.transactions[1].ns_rwset, [])

    def test_type_label_fallback(self):
        block = make_block(envelopes=[
            make_envelope('tx1', type_string=None),
            make_envelope('tx2', type_string=None),
        ])
        channel_header = \
            block['data']['data'][1]['payload']['header']['channel_header']
        channel_header['typeString'] = 'CONFIG'

        crawled = crawl_block(block)

        self.assertEqual(crawled.transactions[0].tx_type,
                         'ENDORSER_TRANSACTION')
        self.assertEqual(crawled.transactions[1].tx_type, 'CONFIG')
        self.assertEqual(HeaderType.convert_to_string(99), 'UNKNOWN_TYPE')

    def test_last_metadata_entry_is_kept_verbatim(self):
        block = make_block(envelopes=[make_envelope('tx1')],
                           metadata=[{}, {}, [0, 11, 254]])
        self.assertEqual(crawl_block(block).tx_code, [0, 11, 254])

    def test_missing_metadata(self):
        block = make_block(envelopes=[make_envelope('tx1')], metadata=[])
        with self.assertRaises(MalformedResponseError):
            crawl_block(block)

        del block['metadata']
        with self.assertRaises(MalformedResponseError):
            crawl_block(block)

    def test_malformed_transaction(self):
        block = make_block(envelopes=[make_envelope('tx1')])
        action = block['data']['data'][0]['payload']['data']['actions'][0]
        del action['payload']['action']

        with self.assertRaises(MalformedResponseError) as cm:
            crawl_block(block)
        self.assertIn('proposal_response_payload', str(cm.exception))

    def test_malformed_header_hash(self):
        block = make_block(previous_hash='not hex',
                           envelopes=[make_envelope('tx1')])
        with self.assertRaises(MalformedResponseError):
            crawl_block(block)

    def test_to_dict(self):
        block = make_block(envelopes=[make_envelope('tx1')])

        published = crawl_block(block).to_dict()

        self.assertEqual(published['header']['number'], 5)
        self.assertEqual(published['header']['previous_hash'], 'aa' * 32)
        self.assertEqual(published['header']['data_hash'], 'bb' * 32)
        self.assertEqual(published['header']['block_hash'],
                         hashlib.sha256(REFERENCE_DER).hexdigest())
        self.assertEqual(published['data'][0]['tx_id'], 'tx1')
        self.assertEqual(published['data'][0]['ns_rwset'], [])
        self.assertEqual(published['tx_code'], [0])


if __name__ == '__main__':
    unittest.main()
