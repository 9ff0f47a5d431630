# SPDX-License-Identifier: Apache-2.0

import binascii
import logging
from collections.abc import Mapping

_logger = logging.getLogger(__name__)

_MISSING = object()


def get_field(obj, name, default=None):
    """Read a field from a mapping or an attribute-style object.

    Results handed back by the network layer come either as decoded dicts or
    as protobuf messages, so both access styles are tried.

    :param obj: mapping or object
    :param name: key or attribute name
    :param default: value returned when the field is absent
    :return: the field value or default
    """
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def lookup(obj, *key_path):
    """Walk a nested structure along key_path.

    Integer path elements index into sequences.

    :param obj: root mapping or object
    :param key_path: path of the key, e.g., a.b.c means obj['a']['b']['c']
    :return: The value
    :raises KeyError: when an element of the path is absent
    """
    result = obj
    for k in key_path:
        if isinstance(k, int):
            try:
                result = result[k]
            except (IndexError, TypeError):
                raise KeyError(key_path)
            continue
        result = get_field(result, k, _MISSING)
        if result is _MISSING:
            raise KeyError(key_path)
    return result


def to_bytes(value):
    """Convert a hex encoded value to raw bytes.

    The block decoder renders hashes with binascii.b2a_hex, so str and
    bytes input are both hex text.

    :param value: hex str or hex bytes, None for an empty value
    :return: raw bytes
    """
    if value is None:
        return b''
    if isinstance(value, str):
        value = value.encode('ascii')
    return binascii.a2b_hex(bytes(value))


def merge_options(current_options, additional_options):
    """Deep merge additional options into current options

    :param current_options: current options, updated in place
    :param additional_options: additional options to be merged
    :return: result
    """
    result = current_options
    for prop in additional_options:
        if prop in result and isinstance(result[prop], dict) \
                and isinstance(additional_options[prop], dict):
            merge_options(result[prop], additional_options[prop])
        else:
            result[prop] = additional_options[prop]
    return result
