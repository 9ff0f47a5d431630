# Copyright sudheesh.info 2018 All Rights Reserved.
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

import binascii
import logging
from hashlib import sha256

from pyasn1.codec.der import encoder as der_encoder
from pyasn1.type import namedtype, univ

from hfq.fabric.errors import MalformedResponseError
from hfq.util.utils import get_field, lookup, to_bytes

_logger = logging.getLogger(__name__ + ".block_decoder")

type_as_string = {
    0: 'MESSAGE',  # Used for messages which are signed but opaque
    1: 'CONFIG',  # Used for messages which express the channel config
    2: 'CONFIG_UPDATE',  # Used for transactions that update the channel config
    3: 'ENDORSER_TRANSACTION',  # Used to submit endorser based transactions
    4: 'ORDERER_TRANSACTION',  # Used internally by the orderer for management
    5: 'DELIVER_SEEK_INFO',  # Used to instruct the Deliver API to seek
    6: 'CHAINCODE_PACKAGE'  # Used to packaging chaincode artifacts for install
}


class HeaderType(object):
    """
        Names of channel header types
    """

    @staticmethod
    def convert_to_string(type_value):
        return type_as_string.get(type_value, 'UNKNOWN_TYPE')


class BlockHeaderAsn(univ.Sequence):
    """ASN.1 layout the ledger hashes a block header with.

    The field order is part of the hash and must not change.
    """
    componentType = namedtype.NamedTypes(
        namedtype.NamedType('Number', univ.Integer()),
        namedtype.NamedType('PreviousHash', univ.OctetString()),
        namedtype.NamedType('DataHash', univ.OctetString()),
    )


def encode_block_header(number, previous_hash, data_hash):
    """DER encoding of a block header.

    Args:
        number (int): block number
        previous_hash (bytes): raw hash of the previous block header
        data_hash (bytes): raw hash of the block data

    Returns: DER bytes of the (Number, PreviousHash, DataHash) sequence
    """
    header_asn = BlockHeaderAsn()
    header_asn['Number'] = number
    header_asn['PreviousHash'] = previous_hash
    header_asn['DataHash'] = data_hash
    return der_encoder.encode(header_asn)


def compute_block_hash(number, previous_hash, data_hash):
    """SHA-256 over the DER encoded block header.

    A pure function of its arguments, equal to the hash the ledger itself
    links the next block to.

    Args:
        number (int): block number
        previous_hash (bytes): raw hash of the previous block header
        data_hash (bytes): raw hash of the block data

    Returns: the 32 byte digest
    """
    return sha256(
        encode_block_header(number, previous_hash, data_hash)).digest()


class BlockHeader(object):
    """Header fields of a block and the hash recomputed from them."""

    def __init__(self, number, previous_hash, data_hash):
        if number < 0:
            raise ValueError("block number must not be negative, got"
                             " {}".format(number))
        self.number = number
        self.previous_hash = previous_hash
        self.data_hash = data_hash
        self.computed_block_hash = compute_block_hash(number, previous_hash,
                                                      data_hash)

    @classmethod
    def from_raw(cls, raw_header):
        """Build from a decoded block header.

        The decoder renders both hashes as hex, see decode_block_header.
        """
        return cls(int(get_field(raw_header, 'number')),
                   to_bytes(get_field(raw_header, 'previous_hash')),
                   to_bytes(get_field(raw_header, 'data_hash')))

    def to_dict(self):
        return {
            'number': self.number,
            'previous_hash': binascii.b2a_hex(self.previous_hash).decode(),
            'data_hash': binascii.b2a_hex(self.data_hash).decode(),
            'block_hash':
                binascii.b2a_hex(self.computed_block_hash).decode(),
        }


class TransactionRecord(object):
    """One transaction of a crawled block.

    ns_rwset keeps the namespace read/write sets as decoded, in order; it
    is empty for transactions without a chaincode action.
    """

    def __init__(self, timestamp, channel_id, tx_id, tx_type, ns_rwset):
        self.timestamp = timestamp
        self.channel_id = channel_id
        self.tx_id = tx_id
        self.tx_type = tx_type
        self.ns_rwset = ns_rwset

    def to_dict(self):
        return {
            'timestamp': self.timestamp,
            'channel_id': self.channel_id,
            'tx_id': self.tx_id,
            'tx_type': self.tx_type,
            'ns_rwset': self.ns_rwset,
        }


class CrawledBlock(object):
    """Header, transactions and terminal validation code of a block."""

    def __init__(self, header, transactions, tx_code):
        self.header = header
        self.transactions = transactions
        self.tx_code = tx_code

    def to_dict(self):
        """The structure published for a crawled block."""
        return {
            'header': self.header.to_dict(),
            'data': [tx.to_dict() for tx in self.transactions],
            'tx_code': self.tx_code,
        }


def _type_label(channel_header):
    for key in ('type_string', 'typeString'):
        label = get_field(channel_header, key)
        if label:
            return label
    return HeaderType.convert_to_string(get_field(channel_header, 'type'))


def decode_read_write_sets(payload_data):
    """Namespace read/write sets of the first chaincode action.

    Args:
        payload_data: data section of a transaction payload

    Returns: list of namespace read/write sets, empty without an action
    """
    actions = get_field(payload_data, 'actions')
    if not actions or not actions[0]:
        return []
    ns_rwset = lookup(actions[0], 'payload', 'action',
                      'proposal_response_payload', 'extension', 'results',
                      'ns_rwset')
    return list(ns_rwset or [])


def decode_transaction_record(envelope):
    """Extract a TransactionRecord from a block data envelope.

    Args:
        envelope: decoded envelope of the block data section

    Returns: TransactionRecord
    """
    payload = lookup(envelope, 'payload')
    channel_header = lookup(payload, 'header', 'channel_header')
    return TransactionRecord(
        timestamp=get_field(channel_header, 'timestamp'),
        channel_id=get_field(channel_header, 'channel_id'),
        tx_id=get_field(channel_header, 'tx_id'),
        tx_type=_type_label(channel_header),
        ns_rwset=decode_read_write_sets(get_field(payload, 'data')))


def last_transaction_code(raw_block):
    """Last entry of the block metadata array, verbatim.

    Raises:
        MalformedResponseError: when the metadata array is absent or empty
    """
    try:
        metadata = lookup(raw_block, 'metadata', 'metadata')
    except KeyError:
        metadata = None
    if not metadata:
        raise MalformedResponseError("block metadata is missing")
    return metadata[-1]


def crawl_block(raw_block):
    """Crawl a decoded block into a CrawledBlock.

    The header hash is recomputed from the header fields rather than taken
    from the answering peer.

    Args:
        raw_block: decoded block with header, data and metadata sections

    Returns: CrawledBlock, or None when the block carries no transactions

    Raises:
        MalformedResponseError: when an expected field is missing or
         cannot be decoded
    """
    try:
        txs = lookup(raw_block, 'data', 'data')
    except KeyError:
        txs = None
    if not txs:
        _logger.debug("crawl_block - block has no transaction data")
        return None

    tx_code = last_transaction_code(raw_block)
    try:
        header = BlockHeader.from_raw(lookup(raw_block, 'header'))
        transactions = [decode_transaction_record(envelope)
                        for envelope in txs]
    except (KeyError, IndexError, TypeError, ValueError,
            binascii.Error) as e:
        _logger.error("crawl_block - malformed block: {!r}".format(e))
        raise MalformedResponseError(
            "malformed block: {}".format(_describe(e)))

    _logger.debug("crawl_block - block {} with {} transactions".format(
        header.number, len(transactions)))
    return CrawledBlock(header, transactions, tx_code)


def _describe(error):
    if isinstance(error, KeyError) and error.args:
        path = error.args[0]
        if isinstance(path, tuple):
            return "missing field {}".format(
                '.'.join(str(k) for k in path))
    return str(error)
