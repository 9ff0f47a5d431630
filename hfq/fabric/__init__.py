# SPDX-License-Identifier: Apache-2.0
#

from .client import Client  # noqa
from .query import QueryService  # noqa
from .session import Session  # noqa
