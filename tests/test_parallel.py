"""Tests for partitioning, parallel map and parallel reduce."""

import logging
import operator
import threading
import time

import pytest
from fpseq import (
    EmptyCollectionError,
    InvalidArgumentError,
    ParallelConfig,
    Partition,
    Sequence,
    WorkerFailure,
    partition,
    seq,
)
from fpseq.config import PARALLEL_ENV
from fpseq.logger import get_logger
from fpseq.parallel import parallel_map, parallel_reduce


class RecordingHandler(logging.Handler):
    def __init__(self):
        super(RecordingHandler, self).__init__(level=logging.DEBUG)
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def log_records():
    handler = RecordingHandler()
    logger = get_logger().get_logger()
    logger.addHandler(handler)
    yield handler.records
    logger.removeHandler(handler)


class TestPartition:
    @pytest.mark.parametrize("size", [0, 1, 5, 10, 17, 100])
    @pytest.mark.parametrize("workers", [1, 2, 3, 4, 7])
    def test_contiguous_and_complete(self, size, workers):
        parts = partition(size, workers)
        assert len(parts) == workers
        assert sum(part.length for part in parts) == size
        start = 0
        for part in parts:
            assert part.start == start
            start = part.end
        assert start == size

    def test_extra_elements_go_first(self):
        assert [part.length for part in partition(10, 4)] == [3, 3, 2, 2]
        assert [part.length for part in partition(11, 4)] == [3, 3, 3, 2]
        assert [part.length for part in partition(8, 4)] == [2, 2, 2, 2]

    def test_more_workers_than_elements(self):
        assert partition(2, 3) == [Partition(0, 1), Partition(1, 1), Partition(2, 0)]

    @pytest.mark.parametrize("workers", [0, -1, 1.5, True, "4"])
    def test_invalid_workers(self, workers):
        with pytest.raises(InvalidArgumentError):
            partition(10, workers)


class TestParallelMap:
    def test_plus_one(self):
        c = seq(1, 2, 3)
        assert c.pmap(lambda n: n + 1) == seq(2, 3, 4)

    def test_matches_sequential_for_every_worker_count(self):
        s = Sequence(range(23))
        expected = s.map(lambda n: n * n - 1)
        for workers in range(1, s.size() + 1):
            assert s.pmap(lambda n: n * n - 1, workers=workers) == expected

    def test_more_workers_than_elements(self):
        assert seq(1, 2).pmap(operator.neg, workers=8) == seq(-1, -2)

    def test_empty(self):
        assert Sequence().pmap(operator.neg) == Sequence()

    def test_source_untouched(self):
        s = seq(1, 2, 3, 4)
        s.pmap(operator.neg, workers=2)
        assert s == seq(1, 2, 3, 4)

    @pytest.mark.parametrize("workers", [0, -3])
    def test_invalid_workers(self, workers):
        with pytest.raises(InvalidArgumentError):
            seq(1, 2, 3).pmap(operator.neg, workers=workers)

    def test_unknown_backend(self):
        with pytest.raises(InvalidArgumentError):
            seq(1, 2, 3).pmap(operator.neg, backend="fibers")

    def test_each_worker_has_its_own_thread(self):
        seen = set()
        lock = threading.Lock()
        barrier = threading.Barrier(4, timeout=5)

        def record(n):
            if n % 3 == 0:
                barrier.wait()
            with lock:
                seen.add(threading.get_ident())
            return n

        # partitions of 12 over 4 workers start at 0, 3, 6 and 9
        assert Sequence(range(12)).pmap(record, workers=4) == Sequence(range(12))
        assert len(seen) == 4

    def test_out_of_order_completion(self):
        def slow_first(n):
            if n < 3:
                time.sleep(0.05)
            return n * 10

        assert Sequence(range(8)).pmap(slow_first, workers=4) == Sequence(range(0, 80, 10))

    def test_worker_failure(self):
        def fail_on_five(n):
            if n == 5:
                raise ValueError("five")
            return n

        with pytest.raises(WorkerFailure) as exc_info:
            Sequence(range(8)).pmap(fail_on_five, workers=4)
        failure = exc_info.value
        assert failure.worker == 2
        assert failure.partition == Partition(4, 2)
        assert isinstance(failure.__cause__, ValueError)

    def test_lowest_failing_worker_reported(self):
        def always_fail(n):
            raise RuntimeError(n)

        with pytest.raises(WorkerFailure) as exc_info:
            Sequence(range(8)).pmap(always_fail, workers=4)
        assert exc_info.value.worker == 0


class TestParallelReduce:
    def test_sum_one_to_hundred(self):
        s = Sequence(range(1, 101))
        assert s.preduce(operator.add, workers=4) == s.reduce(operator.add)

    def test_default_workers(self):
        assert Sequence(range(1, 101)).preduce(operator.add) == 5050

    def test_invariant_for_commutative_operators(self):
        s = Sequence([3, 9, 1, 7, 4, 8, 2, 6, 5])
        for func in (operator.add, operator.mul, max, min):
            expected = s.reduce(func)
            for workers in range(1, s.size() + 1):
                assert s.preduce(func, workers=workers) == expected

    def test_non_commutative_operator_depends_on_workers(self):
        s = Sequence(range(1, 9))
        one = s.preduce(operator.sub, workers=1)
        two = s.preduce(operator.sub, workers=2)
        assert one == s.reduce(operator.sub) == -34
        assert two == (1 - 2 - 3 - 4) - (5 - 6 - 7 - 8) == 8
        assert one != two

    def test_partials_combined_in_worker_order(self):
        def slow_concat(a, b):
            if a.startswith("a"):
                time.sleep(0.05)
            return a + b

        s = Sequence("abcdefgh")
        assert s.preduce(slow_concat, workers=4) == "abcdefgh"

    def test_single_element(self):
        assert seq(42).preduce(operator.add, workers=1) == 42

    def test_one_element_partitions(self):
        assert seq(1, 2, 3).preduce(operator.add, workers=3) == 6

    def test_empty(self):
        with pytest.raises(EmptyCollectionError):
            Sequence().preduce(operator.add)

    def test_more_workers_than_elements(self):
        with pytest.raises(InvalidArgumentError):
            seq(1, 2).preduce(operator.add, workers=3)

    def test_zero_workers(self):
        with pytest.raises(InvalidArgumentError):
            seq(1, 2).preduce(operator.add, workers=0)

    def test_worker_failure(self):
        with pytest.raises(WorkerFailure) as exc_info:
            seq(4, 2, 1, 0).preduce(operator.floordiv, workers=2)
        assert exc_info.value.worker == 1
        assert isinstance(exc_info.value.__cause__, ZeroDivisionError)


class TestConfiguredWorkers:
    def test_env_worker_count(self, monkeypatch):
        monkeypatch.setenv(PARALLEL_ENV, "workers=3")
        with pytest.raises(InvalidArgumentError):
            seq(1, 2).preduce(operator.add)
        assert seq(1, 2, 3).preduce(operator.add) == 6

    def test_explicit_argument_wins(self, monkeypatch):
        monkeypatch.setenv(PARALLEL_ENV, "workers=8")
        assert seq(1, 2).preduce(operator.add, workers=2) == 3

    def test_explicit_config(self):
        config = ParallelConfig(workers=2)
        assert seq(1, 2).preduce(operator.add, config=config) == 3


class TestProcessBackend:
    def test_map(self):
        s = Sequence(range(10))
        assert s.pmap(operator.neg, workers=3, backend="processes") == s.map(operator.neg)

    def test_reduce(self):
        s = Sequence(range(1, 101))
        assert s.preduce(operator.add, workers=4, backend="processes") == 5050

    def test_worker_failure(self):
        with pytest.raises(WorkerFailure) as exc_info:
            parallel_reduce([4, 2, 1, 0], operator.floordiv, 2, backend="processes")
        assert exc_info.value.worker == 1
        assert isinstance(exc_info.value.__cause__, ZeroDivisionError)

    def test_same_partitions_as_threads(self):
        values = list(range(13))
        assert parallel_map(values, operator.neg, 5, "processes") == \
            parallel_map(values, operator.neg, 5, "threads")


class TestLogging:
    def test_worker_failure_logged_at_error(self, log_records):
        def fail_on_five(n):
            if n == 5:
                raise ValueError("five")
            return n

        with pytest.raises(WorkerFailure):
            Sequence(range(8)).pmap(fail_on_five, workers=4)
        errors = [r for r in log_records if r.levelno == logging.ERROR]
        assert len(errors) == 1
        assert "worker 2 failed on partition (4, 2)" in errors[0].getMessage()

    def test_partition_plans_logged_at_debug(self, log_records):
        Sequence(range(8)).pmap(operator.neg, workers=4)
        Sequence(range(8)).preduce(operator.add, workers=2)
        plans = [r.getMessage() for r in log_records if r.levelno == logging.DEBUG]
        assert "pmap: 8 elements, 4 workers, threads" in plans
        assert "preduce: 8 elements, 2 workers, threads" in plans
