"""
Index range partitioning, worker dispatch and the combine pass behind Sequence.pmap and
Sequence.preduce.

A call splits the source into one contiguous Partition per worker, runs one task per partition
and blocks until every task has finished. Partition boundaries depend only on the source size
and the worker count, and partial results are combined in worker index order, so the outcome
never depends on which worker finishes first.
"""

from collections import namedtuple
from concurrent.futures import ThreadPoolExecutor
from multiprocessing import Pool

from fpseq.config import check_workers, check_backend
from fpseq.errors import EmptyCollectionError, InvalidArgumentError, WorkerFailure
from fpseq.logger import get_logger
from fpseq.util import CPU_COUNT, pack, unpack

logger = get_logger()


class Partition(namedtuple("Partition", ["start", "length"])):
    """A worker's contiguous slice of indices, [start, start + length)."""

    __slots__ = ()

    @property
    def end(self):
        return self.start + self.length


def partition(size, workers):
    """
    Split size indices into workers contiguous partitions. The first size % workers partitions
    receive one extra element.

    >>> partition(10, 4)
    [Partition(start=0, length=3), Partition(start=3, length=3), Partition(start=6, length=2), Partition(start=8, length=2)]

    >>> partition(2, 3)
    [Partition(start=0, length=1), Partition(start=1, length=1), Partition(start=2, length=0)]

    :param size: number of elements to split
    :param workers: number of partitions, must be positive
    :return: list of Partition in index order
    """
    check_workers(workers)
    if size < 0:
        raise InvalidArgumentError(f"size must not be negative, got {size}")
    chunk, extra = divmod(size, workers)
    partitions = []
    start = 0
    for index in range(workers):
        length = chunk + 1 if index < extra else chunk
        partitions.append(Partition(start, length))
        start += length
    return partitions


def reduce_range(func, values, start, end):
    """Left reduce values[start:end] without copying; the range must not be empty."""
    result = values[start]
    for i in range(start + 1, end):
        result = func(result, values[i])
    return result


def _map_range(func, values, part):
    for i in range(part.start, part.end):
        values[i] = func(values[i])


def _reduce_partition(func, values, part, results, index):
    results[index] = reduce_range(func, values, part.start, part.end)


def _map_chunk(func, chunk):
    return [func(value) for value in chunk]


def _reduce_chunk(func, chunk):
    return reduce_range(func, chunk, 0, len(chunk))


def _failure(index, part, exc):
    logger.err("worker %d failed on partition %s: %r", index, tuple(part), exc)
    failure = WorkerFailure(index, part, exc)
    failure.__cause__ = exc
    return failure


def _run_threads(jobs):
    """
    Run each (part, func, args) job on its own thread and wait for all of them. Failures are
    raised after the barrier, lowest worker index first.
    """
    with ThreadPoolExecutor(max_workers=len(jobs), thread_name_prefix="fpseq") as executor:
        futures = [executor.submit(func, *args) for _, func, args in jobs]
    for index, ((part, _, _), future) in enumerate(zip(jobs, futures)):
        exc = future.exception()
        if exc is not None:
            raise _failure(index, part, exc)
    return [future.result() for future in futures]


def _run_processes(task, func, values, parts, workers):
    """
    Ship each partition, packed with dill, to a process pool and collect the per partition
    results in index order.
    """
    processes = min(workers, CPU_COUNT)
    results = []
    with Pool(processes=processes) as pool:
        pending = [
            pool.apply_async(unpack, (pack(task, (func, values[part.start:part.end])),))
            for part in parts
        ]
        for index, (part, result) in enumerate(zip(parts, pending)):
            try:
                results.append(result.get())
            except Exception as exc:  # pylint: disable=broad-except
                raise _failure(index, part, exc)
    return results


def parallel_map(values, func, workers, backend="threads"):
    """
    Apply func to every element of values using workers concurrent workers.

    The source is copied once and each worker overwrites its own partition of the copy, so no
    element is written twice and no locking is needed.

    :param values: source elements, left untouched
    :param func: per element function
    :param workers: number of partitions, must be positive
    :param backend: "threads" or "processes"
    :return: new list of mapped values
    """
    check_workers(workers)
    check_backend(backend)
    buffer = list(values)
    if not buffer:
        return buffer
    parts = [part for part in partition(len(buffer), workers) if part.length]
    logger.d("pmap: %d elements, %d workers, %s", len(buffer), workers, backend)
    if backend == "processes":
        chunks = _run_processes(_map_chunk, func, buffer, parts, workers)
        for part, chunk in zip(parts, chunks):
            buffer[part.start:part.end] = chunk
        return buffer
    _run_threads([(part, _map_range, (func, buffer, part)) for part in parts])
    return buffer


def parallel_reduce(values, func, workers, backend="threads"):
    """
    Reduce values with func using workers concurrent workers.

    Each worker left reduces its own partition into one slot of a partial results list. The
    partials are then left reduced in worker index order. func must be associative and
    commutative for the result to match a sequential left reduce; otherwise the result may
    change with the worker count, because the worker count decides where partitions split.

    >>> from operator import add
    >>> parallel_reduce(list(range(1, 101)), add, 4)
    5050

    :param values: source elements
    :param func: binary function
    :param workers: number of partitions, between 1 and len(values)
    :param backend: "threads" or "processes"
    :return: reduced value
    """
    check_workers(workers)
    check_backend(backend)
    if not values:
        raise EmptyCollectionError("reduce of an empty sequence")
    if workers > len(values):
        raise InvalidArgumentError(
            f"workers ({workers}) must not exceed the number of elements ({len(values)})"
        )
    parts = partition(len(values), workers)
    logger.d("preduce: %d elements, %d workers, %s", len(values), workers, backend)
    if backend == "processes":
        partials = _run_processes(_reduce_chunk, func, values, parts, workers)
    else:
        partials = [None] * workers
        _run_threads([
            (part, _reduce_partition, (func, values, part, partials, index))
            for index, part in enumerate(parts)
        ])
    return reduce_range(func, partials, 0, len(partials))
