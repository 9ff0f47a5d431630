# SPDX-License-Identifier: Apache-2.0

SUCCESS_STATUS = 200
# Proposal responses at or above this status are endorsement failures
ERROR_STATUS_FLOOR = 400
# Returned by every failure that carries no status of its own
FAILURE_STATUS = 202

SUCCESS_MESSAGE = "Success"

CC_TYPE_INSTALLED = "installed"
CC_TYPE_INSTANTIATED = "instantiated"

CRAWL_BY_NUMBER = "by_number"

DEFAULT_REQUEST_TIMEOUT = 30  # s

# metrics
REQUEST_COUNTER = "hfq_request_count"
ERROR_REQUEST_COUNTER = "hfq_error_request_count"
QUERY_CHAINCODE_HISTOGRAM = "hfq_query_chaincode_duration"
LEDGER_QUERY_HISTOGRAM = "hfq_ledger_query_duration"
