"""
The Sequence container and its combinators.

A Sequence owns a private copy of its elements and is never modified after construction; every
transformation returns a new Sequence.
"""

import collections
from functools import cmp_to_key

from fpseq.config import ParallelConfig
from fpseq.errors import EmptyCollectionError, InvalidArgumentError
from fpseq.parallel import parallel_map, parallel_reduce, reduce_range
from fpseq.util import is_iterable


class Sequence(object):
    """
    Ordered, fixed size collection supporting functional combinators.

    >>> Sequence([1, 2, 3]).map(lambda x: x * 2)
    Sequence([2, 4, 6])
    """

    def __init__(self, values=(), parallel=None):
        """
        Copy values into a new Sequence.
        :param values: any iterable of elements
        :param parallel: ParallelConfig used by map, or None for sequential map
        """
        if isinstance(values, Sequence):
            values = values._values
        self._values = list(values)
        self._parallel = parallel

    def _wrap(self, values):
        return Sequence(values, parallel=self._parallel)

    # Construction

    @classmethod
    def empty(cls):
        """
        >>> Sequence.empty().size()
        0
        """
        return cls()

    @classmethod
    def of_size(cls, size, fill=None):
        """
        Create a Sequence of size preallocated elements, each set to fill.

        >>> Sequence.of_size(3)
        Sequence([None, None, None])

        :param size: number of elements
        :param fill: initial value of every element
        :return: Sequence of size elements
        """
        if size < 0:
            raise InvalidArgumentError(f"size must not be negative, got {size}")
        return cls([fill] * size)

    @classmethod
    def of(cls, *elements):
        """
        >>> Sequence.of(1, 2, 3)
        Sequence([1, 2, 3])
        """
        return cls(elements)

    @classmethod
    def from_array(cls, array, length=None):
        """
        Copy an array like source, or only its first length elements.

        >>> Sequence.from_array((1, 2, 3, 4), 2)
        Sequence([1, 2])
        """
        if length is None:
            return cls(array)
        if length < 0 or length > len(array):
            raise InvalidArgumentError(
                f"length must be between 0 and {len(array)}, got {length}"
            )
        return cls(array[i] for i in range(length))

    @classmethod
    def from_list(cls, source):
        """Copy a list like source such as a list or collections.deque."""
        return cls(source)

    @classmethod
    def from_iterable(cls, iterable):
        """Drain iterable into a new Sequence."""
        return cls(iterable)

    @classmethod
    def from_range(cls, source, begin, end):
        """
        Copy the elements at positions [begin, end) of an iterable.

        >>> Sequence.from_range(iter("abcdef"), 1, 4)
        Sequence(['b', 'c', 'd'])
        """
        if begin < 0 or end < begin:
            raise InvalidArgumentError(f"invalid range [{begin}, {end})")
        values = []
        for index, value in enumerate(source):
            if index >= end:
                break
            if index >= begin:
                values.append(value)
        return cls(values)

    # Read surface

    def size(self):
        return len(self._values)

    def __len__(self):
        return len(self._values)

    def __iter__(self):
        return iter(self._values)

    def __getitem__(self, item):
        if isinstance(item, slice):
            return self._wrap(self._values[item])
        return self._values[item]

    def __eq__(self, other):
        if isinstance(other, Sequence):
            return self._values == other._values
        return NotImplemented

    def __add__(self, other):
        return self.concat(other)

    def __str__(self):
        """
        >>> str(Sequence([1, 2, 3]))
        '[1,2,3]'
        """
        return "[" + ",".join(str(value) for value in self._values) + "]"

    def __repr__(self):
        return f"Sequence({self._values!r})"

    def to_list(self):
        return list(self._values)

    def to_tuple(self):
        return tuple(self._values)

    def to_deque(self):
        return collections.deque(self._values)

    # Sequential operators

    def head(self):
        """
        Returns the first element of the sequence.

        >>> Sequence([1, 2, 3]).head()
        1

        Raises EmptyCollectionError when the sequence is empty.

        :return: first element of sequence
        """
        if not self._values:
            raise EmptyCollectionError("head of an empty sequence")
        return self._values[0]

    def tail(self):
        """
        Returns the sequence without its first element, or an empty sequence when empty.

        >>> Sequence([1, 2, 3]).tail()
        Sequence([2, 3])

        :return: sequence without the first element
        """
        return self._wrap(self._values[1:])

    def each(self, func):
        """
        Calls func on each element in order, for side effects.
        :param func: function to call
        """
        for value in self._values:
            func(value)

    def filter(self, func):
        """
        Filters sequence to include only elements where func is True.

        >>> Sequence([1, 2, 3]).filter(lambda x: x % 2 == 0)
        Sequence([2])

        :param func: predicate to filter on
        :return: filtered sequence
        """
        return self._wrap(value for value in self._values if func(value))

    def slice(self, begin, end):
        """
        Returns the elements at positions [begin, end).

        >>> Sequence([1, 2, 3]).slice(1, 3)
        Sequence([2, 3])

        :param begin: first position, inclusive
        :param end: last position, exclusive
        :return: sliced sequence
        """
        if not 0 <= begin <= end <= len(self._values):
            raise InvalidArgumentError(
                f"invalid slice [{begin}, {end}) of a sequence of size {len(self._values)}"
            )
        return self._wrap(self._values[begin:end])

    def count(self, func):
        """
        Counts the elements for which func is True.

        >>> Sequence([1, 2, 3]).count(lambda x: x % 2 == 0)
        1
        """
        return sum(1 for value in self._values if func(value))

    def sort(self, less=None):
        """
        Returns a sorted copy. less(a, b) must be True when a goes before b and define a strict
        weak ordering; by default elements are compared with <. The sort is stable, equal
        elements keep their relative order.

        >>> Sequence([1, 3, 2]).sort(lambda a, b: a > b)
        Sequence([3, 2, 1])

        :param less: ordering predicate
        :return: sorted sequence
        """
        if less is None:
            return self._wrap(sorted(self._values))

        def compare(a, b):
            if less(a, b):
                return -1
            if less(b, a):
                return 1
            return 0

        return self._wrap(sorted(self._values, key=cmp_to_key(compare)))

    def map(self, func):
        """
        Maps f onto the elements of the sequence. Sequences built with pseq run through pmap.

        >>> Sequence([1, 2, 3, 4]).map(lambda x: x * -1)
        Sequence([-1, -2, -3, -4])

        :param func: function to map with
        :return: sequence with func mapped onto it
        """
        if self._parallel is not None:
            return self.pmap(func, config=self._parallel)
        return self._wrap(func(value) for value in self._values)

    def reduce_left(self, func):
        """
        Reduce sequence of elements using func, from the left: func(func(e0, e1), e2)...

        >>> Sequence([1, 2, 3]).reduce_left(lambda x, y: x + y)
        6

        Raises EmptyCollectionError when the sequence is empty.

        :param func: two parameter, associative reduce function
        :return: reduced value using func
        """
        if not self._values:
            raise EmptyCollectionError("reduce of an empty sequence")
        return reduce_range(func, self._values, 0, len(self._values))

    reduce = reduce_left

    def reduce_right(self, func):
        """
        Reduce sequence of elements using func, from the right. The accumulator is the first
        argument, so the chain is func(func(e[n-1], e[n-2]), e[n-3])...

        >>> Sequence(["a", "b", "c"]).reduce_right(lambda acc, x: acc + x)
        'cba'

        :param func: two parameter reduce function
        :return: reduced value using func
        """
        if not self._values:
            raise EmptyCollectionError("reduce of an empty sequence")
        result = self._values[-1]
        for value in reversed(self._values[:-1]):
            result = func(result, value)
        return result

    def fold_left(self, zero_value, func):
        """
        Fold the sequence from the left, starting with zero_value:
        func(func(zero_value, e0), e1)...

        Every intermediate result must be an instance of type(zero_value), otherwise TypeError
        is raised. A zero_value of None disables the check.

        >>> Sequence(["a", "bc", "de"]).fold_left("", lambda acc, x: acc + x.upper())
        'ABCDE'

        :param zero_value: initial accumulator
        :param func: two parameter function, accumulator first
        :return: folded value
        """
        if not self._values:
            raise EmptyCollectionError("fold of an empty sequence")
        result = zero_value
        for value in self._values:
            result = _check_fold_type(zero_value, func(result, value))
        return result

    fold = fold_left

    def fold_right(self, zero_value, func):
        """
        Fold the sequence from the right, starting with zero_value, the accumulator staying the
        first argument: func(func(zero_value, e[n-1]), e[n-2])...

        >>> Sequence(["a", "b", "c"]).fold_right(">", lambda acc, x: acc + x)
        '>cba'
        """
        if not self._values:
            raise EmptyCollectionError("fold of an empty sequence")
        result = zero_value
        for value in reversed(self._values):
            result = _check_fold_type(zero_value, func(result, value))
        return result

    def concat(self, *others):
        """
        Returns this sequence followed by each of others.

        >>> Sequence([1]).concat(Sequence([2, 3]), [4])
        Sequence([1, 2, 3, 4])
        """
        values = list(self._values)
        for other in others:
            values.extend(other)
        return self._wrap(values)

    # Parallel operators

    def pmap(self, func, workers=None, backend=None, config=None):
        """
        Concurrent map. The sequence is split into one contiguous partition per worker and each
        worker maps its own partition. The result equals map(func) for any worker count.

        >>> Sequence([1, 2, 3]).pmap(lambda x: x + 1, workers=2)
        Sequence([2, 3, 4])

        :param func: per element function; any exception it raises surfaces as WorkerFailure
        :param workers: number of workers, defaults to the configured count (4)
        :param backend: "threads" or "processes"
        :param config: ParallelConfig to use instead of the environment
        :return: mapped sequence
        """
        cfg = (config or ParallelConfig.from_env()).resolve(workers, backend)
        return self._wrap(parallel_map(self._values, func, cfg.workers, cfg.backend))

    def preduce(self, func, workers=None, backend=None, config=None):
        """
        Concurrent left reduce. Each worker reduces its partition and the partial results are
        combined in worker order.

        func must be associative and commutative. The worker count moves the partition
        boundaries, so for other operators different worker counts may give different results.

        >>> Sequence(range(1, 101)).preduce(lambda x, y: x + y, workers=4)
        5050

        Raises EmptyCollectionError when the sequence is empty and InvalidArgumentError when
        workers exceeds the number of elements.

        :param func: associative, commutative two parameter function
        :param workers: number of workers, between 1 and size()
        :param backend: "threads" or "processes"
        :param config: ParallelConfig to use instead of the environment
        :return: reduced value
        """
        cfg = (config or ParallelConfig.from_env()).resolve(workers, backend)
        return parallel_reduce(self._values, func, cfg.workers, cfg.backend)


def _check_fold_type(zero_value, result):
    if zero_value is not None and not isinstance(result, type(zero_value)):
        raise TypeError(
            f"fold step returned {type(result).__name__}, "
            f"expected {type(zero_value).__name__} like the initial value"
        )
    return result


def seq(*args):
    """
    Primary entrypoint for building a Sequence.

    >>> seq(1, 2, 3)
    Sequence([1, 2, 3])

    >>> seq([1, 2, 3])
    Sequence([1, 2, 3])

    >>> seq(1)
    Sequence([1])

    :param args: a single iterable to copy, or the elements themselves
    :return: Sequence
    """
    return Sequence(_elements(args))


def pseq(*args, workers=None, backend=None):
    """
    Same as seq, except map runs through pmap for this sequence and the sequences derived
    from it.

    >>> pseq(1, 2, 3).map(lambda x: x * 2)
    Sequence([2, 4, 6])
    """
    cfg = ParallelConfig.from_env().resolve(workers, backend)
    return Sequence(_elements(args), parallel=cfg)


def _elements(args):
    if len(args) == 1 and (isinstance(args[0], list) or is_iterable(args[0])):
        return args[0]
    return args


def concat(first, *others):
    """
    Concatenate sequences into a new one.

    >>> concat(seq(1), seq(2, 3), seq(4))
    Sequence([1, 2, 3, 4])
    """
    if not isinstance(first, Sequence):
        first = Sequence(first)
    return first.concat(*others)
