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
#
import json
import logging
import os
from abc import ABCMeta, abstractmethod

import rx

_logger = logging.getLogger(__name__)


class KeyValueStore(metaclass=ABCMeta):
    """ Credential store holding serialized user contexts. """

    @abstractmethod
    def set_value(self, key, value):
        """Set a value with a specific key.

        :param key: key
        :param value: value
        """

    @abstractmethod
    def get_value(self, key):
        """Get a value with a specific key.

        :param key: key
        :return: value or None
        """

    def set_json(self, key, obj):
        """Serialize obj as JSON under key."""
        return self.set_value(key, json.dumps(obj, sort_keys=True))

    def get_json(self, key):
        """Load the JSON document stored under key.

        :param key: key
        :return: the decoded document, None when the key is absent
        :raises ValueError: when the stored text is not JSON
        """
        value = self.get_value(key)
        if value is None:
            return None
        return json.loads(value)

    def async_get_value(self, key, scheduler=None):
        """Get a value with a specific key on a scheduler.

        :param key: key
        :param scheduler: rx scheduler
        :return: an observable emitting the value
        """
        return rx.start(lambda: self.get_value(key), scheduler)

    def async_set_value(self, key, value, scheduler=None):
        """Set a value with a specific key on a scheduler.

        :param key: key
        :param value: value
        :param scheduler: rx scheduler
        :return: an observable emitting True once written
        """
        return rx.start(lambda: self.set_value(key, value), scheduler)


class FileKeyValueStore(KeyValueStore):
    """ Credential store keeping one file per key under a directory. """

    def __init__(self, path):
        """Open the store, creating the directory when needed.

        :param path: directory of the store
        """
        self.path = path
        _make_dir(path)

    def _file_path(self, key):
        if not key or os.sep in key or key in ('.', '..'):
            raise ValueError("Invalid key for credential store: {}".format(
                key))
        return os.path.join(self.path, key)

    def set_value(self, key, value):
        """Set a value with a specific key.

        Returns: True when success
        Raises: File manipulate exceptions
        """
        with open(self._file_path(key), 'w') as f:
            f.write(value)
        return True

    def get_value(self, key):
        """Get a value with a specific key.

        :param key: key
        :return: value, None when nothing is stored under the key
        """
        try:
            with open(self._file_path(key)) as f:
                return f.read()
        except IOError:
            _logger.debug("No value stored for key {}".format(key))
            return None

    def __str__(self):
        return "[{}:path={}]".format(self.__class__.__name__, self.path)


def _make_dir(path):
    try:
        os.makedirs(path)
    except OSError:
        if not os.path.isdir(path):
            raise


def file_key_value_store(path):
    """Factory method for creating file key value store.

    :param path: path
    :return: an instance of file key value store
    """
    return FileKeyValueStore(path)
