"""Runtime configuration for the parallel operators."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Literal

from fpseq.errors import InvalidArgumentError

PARALLEL_ENV = "FPSEQ_PARALLEL"
DEFAULT_WORKERS = 4
BACKENDS = ("threads", "processes")


def check_workers(workers) -> int:
    """
    Validate a worker count, which must be a positive int (bools are rejected).

    >>> check_workers(2)
    2
    """
    if isinstance(workers, bool) or not isinstance(workers, int) or workers <= 0:
        raise InvalidArgumentError(f"workers must be a positive integer, got {workers!r}")
    return workers


def check_backend(backend) -> str:
    if backend not in BACKENDS:
        raise InvalidArgumentError(
            f"backend must be one of {', '.join(BACKENDS)}, got {backend!r}"
        )
    return backend


@dataclass(frozen=True)
class ParallelConfig:
    """Worker count and execution backend used by Sequence.pmap and Sequence.preduce."""

    workers: int = DEFAULT_WORKERS
    backend: Literal["threads", "processes"] = "threads"

    def __post_init__(self) -> None:
        check_workers(self.workers)
        check_backend(self.backend)

    @classmethod
    def from_env(cls, base: "ParallelConfig | None" = None) -> "ParallelConfig":
        """
        Merge ``FPSEQ_PARALLEL`` overrides into ``base`` (or the defaults). The variable holds a
        comma separated list of tokens: ``workers=<n>``, ``threads`` or ``processes``.
        """
        cfg = base if base is not None else cls()
        raw = os.getenv(PARALLEL_ENV)
        if not raw:
            return cfg
        tokens = [segment.strip() for segment in raw.split(",") if segment.strip()]
        for token in tokens:
            lowered = token.lower()
            if lowered in BACKENDS:
                cfg = replace(cfg, backend=lowered)
                continue
            if lowered.startswith("workers="):
                value = lowered.split("=", 1)[1].strip()
                try:
                    workers = int(value)
                except ValueError:
                    raise InvalidArgumentError(
                        f"{PARALLEL_ENV}: workers must be an integer, got {value!r}"
                    ) from None
                cfg = replace(cfg, workers=workers)
                continue
            raise InvalidArgumentError(f"{PARALLEL_ENV}: unknown token {token!r}")
        return cfg

    def resolve(self, workers=None, backend=None) -> "ParallelConfig":
        """Return a copy with explicit per call arguments taking precedence."""
        if workers is None and backend is None:
            return self
        return ParallelConfig(
            workers=self.workers if workers is None else workers,
            backend=self.backend if backend is None else backend,
        )
