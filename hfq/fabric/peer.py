# Copyright 281165273@qq.com. All Rights Reserved.
#
# SPDX-License-Identifier: Apache-2.0

import logging

DEFAULT_PEER_ENDPOINT = 'localhost:7051'

_logger = logging.getLogger(__name__ + ".peer")


class Peer(object):
    """ A peer node of the connection profile.

    Holds what the connector needs to reach the peer; no connection is
    opened here.
    """

    def __init__(self, name='peer', endpoint=DEFAULT_PEER_ENDPOINT,
                 tls_ca_cert_file=None, opts=None):
        """
        :param name: Name of the peer
        :param endpoint: Endpoint of the peer's gRPC service
        :param tls_ca_cert_file: file path of tls root ca's certificate
        :param opts: grpc options as a dict
        """
        self._name = name
        self._endpoint = endpoint
        self._grpc_options = dict(opts or {})
        self._tls_ca_certs_path = tls_ca_cert_file
        self._ssl_target_name = None

    def init_with_bundle(self, info):
        """
        Init the peer with given info dict
        :param info: Dict including all info, e.g., endpoint, grpc option
        :return: True or False
        """
        try:
            self._endpoint = info['url']
            self._grpc_options = info.get('grpcOptions', {})
            if 'tlsCACerts' in info:
                self._tls_ca_certs_path = info['tlsCACerts'].get('path')
            self._ssl_target_name = self._grpc_options.get(
                'grpc.ssl_target_name_override')
        except (KeyError, AttributeError) as e:
            _logger.error("Peer {} bundle is invalid: {}".format(
                self._name, e))
            return False
        return True

    @property
    def name(self):
        return self._name

    @property
    def endpoint(self):
        return self._endpoint

    @property
    def grpc_options(self):
        return self._grpc_options

    @property
    def tls_ca_certs_path(self):
        return self._tls_ca_certs_path

    @property
    def ssl_target_name(self):
        return self._ssl_target_name

    def __str__(self):
        return "[{}:name={},endpoint={}]".format(
            self.__class__.__name__, self._name, self._endpoint)
