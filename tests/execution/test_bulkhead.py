"""Tests for the admission-control bulkhead."""

import threading

import pytest

from order_spine.core.errors import BulkheadFullError
from order_spine.execution.bulkhead import Bulkhead


class TestBulkhead:
    def test_admits_up_to_limit(self):
        bulkhead = Bulkhead("addOrder", max_concurrent=2)

        assert bulkhead.try_acquire()
        assert bulkhead.try_acquire()
        assert bulkhead.try_acquire() is False
        assert bulkhead.in_flight == 2
        assert bulkhead.stats.rejected == 1

    def test_release_frees_a_slot(self):
        bulkhead = Bulkhead("addOrder", max_concurrent=1)
        bulkhead.try_acquire()
        bulkhead.release()

        assert bulkhead.try_acquire()

    def test_release_without_acquire(self):
        with pytest.raises(RuntimeError):
            Bulkhead("x", max_concurrent=1).release()

    def test_admit_releases_on_error(self):
        bulkhead = Bulkhead("getOrders", max_concurrent=1)

        with pytest.raises(KeyError):
            with bulkhead.admit():
                raise KeyError("boom")

        assert bulkhead.in_flight == 0

    def test_admit_at_capacity_raises(self):
        bulkhead = Bulkhead("getOrders", max_concurrent=1)

        with bulkhead.admit():
            with pytest.raises(BulkheadFullError):
                with bulkhead.admit():
                    pass

    def test_k_plus_one_concurrent_call_is_rejected(self):
        """With limit K, the (K+1)-th concurrent call never runs."""
        limit = 5
        bulkhead = Bulkhead("getOrders", max_concurrent=limit)
        entered = threading.Barrier(limit + 1)
        release = threading.Event()
        invoked = []

        def hold():
            with bulkhead.admit():
                invoked.append(1)
                entered.wait()
                release.wait(5)

        threads = [threading.Thread(target=hold) for _ in range(limit)]
        for t in threads:
            t.start()
        entered.wait()

        with pytest.raises(BulkheadFullError):
            with bulkhead.admit():
                invoked.append("extra")

        release.set()
        for t in threads:
            t.join()

        assert invoked.count("extra") == 0
        assert bulkhead.stats.peak_in_flight == limit
        assert bulkhead.in_flight == 0

    def test_rejects_bad_limit(self):
        with pytest.raises(ValueError):
            Bulkhead("x", max_concurrent=0)
