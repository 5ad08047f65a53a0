"""
Package for functional collections: an immutable Sequence with sequential and parallel
map/filter/fold/reduce combinators, and a chainable match expression for guarded value dispatch.
Imports the primary entrypoints at sequence.seq, sequence.pseq and patterns.match
"""

from fpseq.sequence import Sequence, seq, pseq, concat
from fpseq.patterns import match, Matcher, Expression
from fpseq.parallel import Partition, partition
from fpseq.config import ParallelConfig, DEFAULT_WORKERS
from fpseq.errors import (
    FunctionalError,
    EmptyCollectionError,
    InvalidArgumentError,
    WorkerFailure,
)
from fpseq.util import identity, compose

__license__ = "MIT"
__version__ = "0.1.0"
__status__ = "Development"
