# SPDX-License-Identifier: Apache-2.0

import logging
import time
from contextlib import contextmanager

from prometheus_client import CollectorRegistry, Counter, Histogram, \
    REGISTRY

from hfq.util.consts import REQUEST_COUNTER, ERROR_REQUEST_COUNTER, \
    QUERY_CHAINCODE_HISTOGRAM, LEDGER_QUERY_HISTOGRAM

_logger = logging.getLogger(__name__)


class Measurement(object):
    """Outcome holder handed to the body of MetricsSink.measure."""

    def __init__(self):
        self.failed = False
        self.elapsed = None

    def fail(self):
        self.failed = True


class MetricsSink(object):
    """Request counters and duration histograms of the query service.

    Counters and histograms are prometheus_client collectors, which are
    safe to update from concurrent calls.
    """

    def __init__(self, registry=None):
        """
        :param registry: CollectorRegistry to register into, defaults to
         the process-wide prometheus registry. Pass a fresh registry to keep
         several sinks in one process.
        """
        if registry is None:
            registry = REGISTRY
        self.registry = registry
        self._counters = {
            REQUEST_COUNTER: Counter(
                REQUEST_COUNTER, 'Counter of requests',
                registry=registry),
            ERROR_REQUEST_COUNTER: Counter(
                ERROR_REQUEST_COUNTER, 'Counter of error requests',
                registry=registry),
        }
        self._histograms = {
            QUERY_CHAINCODE_HISTOGRAM: Histogram(
                QUERY_CHAINCODE_HISTOGRAM,
                'Histogram of chaincode query duration',
                ['channel', 'chaincode', 'function'],
                registry=registry),
            LEDGER_QUERY_HISTOGRAM: Histogram(
                LEDGER_QUERY_HISTOGRAM,
                'Histogram of ledger query duration',
                ['function'],
                registry=registry),
        }

    def increment(self, name):
        """Increment the counter called name."""
        self._counters[name].inc()

    def observe(self, name, labels, duration):
        """Record a duration in seconds into the histogram called name.

        :param name: histogram name
        :param labels: dict of label values
        :param duration: elapsed seconds
        """
        self._histograms[name].labels(**labels).observe(duration)

    def sample(self, name, labels=None):
        """Current value of a sample, None when it was never recorded."""
        return self.registry.get_sample_value(name, labels or {})

    @contextmanager
    def measure(self, histogram, labels):
        """Time the enclosed call and count it.

        The body marks a failed call with ``measurement.fail()``; an
        exception escaping the body also counts as a failure.

        :param histogram: histogram name
        :param labels: dict of label values
        """
        measurement = Measurement()
        start = time.perf_counter()
        try:
            yield measurement
        except Exception:
            measurement.fail()
            raise
        finally:
            measurement.elapsed = time.perf_counter() - start
            self.observe(histogram, labels, measurement.elapsed)
            self.increment(REQUEST_COUNTER)
            if measurement.failed:
                self.increment(ERROR_REQUEST_COUNTER)
