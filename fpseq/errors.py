class FunctionalError(Exception):
    """
    Base class of the errors raised by fpseq itself. Errors raised by caller supplied functions
    are never wrapped, except when they escape a parallel worker (see WorkerFailure).
    """


class EmptyCollectionError(FunctionalError, IndexError):
    """
    Raised by operations that need at least one element (head, reductions and folds) when
    called on an empty Sequence.

    >>> from fpseq import seq
    >>> seq().head()
    Traceback (most recent call last):
     ...
    fpseq.errors.EmptyCollectionError: head of an empty sequence
    """


class InvalidArgumentError(FunctionalError, ValueError):
    """
    Raised for arguments outside an operation's contract, such as a non positive worker count.
    """


class WorkerFailure(FunctionalError):
    """
    Raised on the calling thread when a function supplied to a parallel operation fails inside
    a worker. The original exception is chained as __cause__.
    """

    def __init__(self, worker, partition, cause):
        super(WorkerFailure, self).__init__(
            f"worker {worker} failed on partition {tuple(partition)}: {cause!r}"
        )
        self.worker = worker
        self.partition = partition
