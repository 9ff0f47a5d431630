# Copyright 2009-2017 SAP SE or an SAP affiliate company.
# All Rights Reserved.
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
import os

from hfq.util.consts import DEFAULT_REQUEST_TIMEOUT

DEFAULT = {
    'network-connection-profile-path': 'network.json',
    'credential-store-path': None,
    'org-name': None,
    'user-name': None,
    'channel-name': None,
    'request-timeout': DEFAULT_REQUEST_TIMEOUT,
}

_settings = {}


def _env_name(name):
    return name.upper().replace('-', '_').replace('.', '_')


def get_config_setting(name, default=None):
    """Look up a setting.

    The environment (e.g. ORG_NAME for 'org-name') overrides values given
    with set_config_setting, which override DEFAULT.

    :param name: setting name
    :param default: value returned when the setting is unknown
    :return: the setting value
    """
    env_value = os.environ.get(_env_name(name))
    if env_value is not None:
        return env_value
    if name in _settings:
        return _settings[name]
    return DEFAULT.get(name, default)


def set_config_setting(name, value):
    """Set a setting for the current process."""
    _settings[name] = value


def reset_config_settings():
    """Drop every value given with set_config_setting."""
    _settings.clear()


def org_profile_setting(org_name):
    """Setting name holding the connection profile path of an org."""
    return '{}-connection-profile-path'.format(org_name)


def request_timeout():
    """The per-call deadline handed to the connector, in seconds."""
    return float(get_config_setting('request-timeout',
                                    DEFAULT_REQUEST_TIMEOUT))
