"""Proof-of-work miner.

Searches for a 32-byte nonce whose work hash meets a difficulty. Every trial
draws a fresh random nonce; trials are independent, so the search can be
spread over several workers racing for the first result.

Cancellation is cooperative: the loop checks its cancel token and deadline
between trials and raises :class:`MiningCancelledError` when either fires.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import threading
import time
from collections.abc import Callable
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass

from powgate.core import pow as core_pow
from powgate.core.bindings import AuxBindings
from powgate.core.errors import MiningCancelledError
from powgate.core.settings import settings
from powgate.utils.hash import HashAlgorithm, HashFunction, get_hash_function

logger = logging.getLogger(__name__)

RandomSource = Callable[[int], bytes]
ProgressCallback = Callable[[int], None]


@dataclass(frozen=True)
class PowSolution:
    """Winning nonce together with the hashes that prove it."""

    load_hash: bytes
    nonce: bytes
    work_hash: bytes
    difficulty: int
    trials: int


class Miner:
    """Nonce search over an injected random source and hash function."""

    def __init__(
        self,
        random_source: RandomSource | None = None,
        hash_function: HashFunction | None = None,
        *,
        hash_algorithm: HashAlgorithm | None = None,
        progress_interval: int | None = None,
    ) -> None:
        """Initialize the miner.

        Args:
            random_source: Callable returning ``n`` random bytes. Defaults to
                ``secrets.token_bytes``; tests substitute a seeded generator.
            hash_function: Digest function. Takes precedence over ``hash_algorithm``.
            hash_algorithm: Name of the digest function when ``hash_function`` is
                not given. Defaults to the configured algorithm.
            progress_interval: Trials between progress callbacks.
        """
        self._random_source = random_source or secrets.token_bytes
        self._hash_function = hash_function or get_hash_function(
            hash_algorithm or settings.hash_algorithm
        )
        interval = (
            settings.progress_interval if progress_interval is None else progress_interval
        )
        if interval < 1:
            raise ValueError("progress_interval must be positive")
        self._progress_interval = interval

    @property
    def hash_function(self) -> HashFunction:
        return self._hash_function

    def load_hash(self, payload: bytes, bindings: AuxBindings | None = None) -> bytes:
        """Return the load hash this miner would search against."""
        return core_pow.compute_load_hash(payload, bindings, self._hash_function)

    def verify(self, load_hash: bytes, nonce: bytes, work_hash: bytes, difficulty: int) -> bool:
        """Check a solution with this miner's hash function."""
        return core_pow.verify(load_hash, nonce, work_hash, difficulty, self._hash_function)

    def solve(
        self,
        payload: bytes,
        bindings: AuxBindings | None = None,
        difficulty: int = 0,
        *,
        cancel: threading.Event | None = None,
        timeout: float | None = None,
        progress: ProgressCallback | None = None,
    ) -> PowSolution:
        """Search for a nonce whose work hash meets ``difficulty``.

        Args:
            payload: Content bytes being submitted.
            bindings: Optional tag/timestamp bound into the load hash.
            difficulty: Required leading zero bytes.
            cancel: Event that aborts the search once set.
            timeout: Seconds after which the search is abandoned.
            progress: Called with the trial count every ``progress_interval`` trials.

        Returns:
            The first solution found

        Raises:
            InvalidDifficultyError: If difficulty is out of range
            MiningCancelledError: If ``cancel`` is set or ``timeout`` elapses
        """
        core_pow.validate_difficulty(difficulty)
        load_hash = self.load_hash(payload, bindings)
        deadline = time.monotonic() + timeout if timeout is not None else None
        stop_events = (cancel,) if cancel is not None else ()
        solution = self._search(load_hash, difficulty, stop_events, deadline, progress)
        logger.debug(
            "Found work %s at difficulty %d after %d trials",
            solution.work_hash.hex(),
            difficulty,
            solution.trials,
        )
        return solution

    def solve_parallel(
        self,
        payload: bytes,
        bindings: AuxBindings | None = None,
        difficulty: int = 0,
        *,
        workers: int | None = None,
        cancel: threading.Event | None = None,
        timeout: float | None = None,
        progress: ProgressCallback | None = None,
    ) -> PowSolution:
        """Race ``workers`` independent searches and return the first solution.

        Workers share only the read-only load hash and a one-shot ``found``
        event. The first worker to finish sets it; the others notice at their
        next trial and exit. ``progress`` receives each worker's own trial count.
        """
        core_pow.validate_difficulty(difficulty)
        workers = settings.workers if workers is None else workers
        if workers < 1:
            raise ValueError("workers must be positive")
        if workers == 1:
            return self.solve(
                payload, bindings, difficulty, cancel=cancel, timeout=timeout, progress=progress
            )

        load_hash = self.load_hash(payload, bindings)
        deadline = time.monotonic() + timeout if timeout is not None else None
        found = threading.Event()
        stop_events = (found,) if cancel is None else (found, cancel)

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="powgate-miner") as pool:
            pending = {
                pool.submit(self._search, load_hash, difficulty, stop_events, deadline, progress)
                for _ in range(workers)
            }
            try:
                while pending:
                    done, pending = wait(pending, return_when=FIRST_COMPLETED)
                    for future in done:
                        exc = future.exception()
                        if exc is None:
                            found.set()
                            solution = future.result()
                            logger.debug(
                                "Worker found work %s after %d trials",
                                solution.work_hash.hex(),
                                solution.trials,
                            )
                            return solution
                        if not isinstance(exc, MiningCancelledError):
                            raise exc
                raise MiningCancelledError("all mining workers were cancelled")
            finally:
                found.set()

    async def solve_async(
        self,
        payload: bytes,
        bindings: AuxBindings | None = None,
        difficulty: int = 0,
        *,
        workers: int = 1,
        timeout: float | None = None,
        progress: ProgressCallback | None = None,
    ) -> PowSolution:
        """Run the search in a worker thread without blocking the event loop.

        Cancelling the awaiting task stops the search at its next trial.
        """
        cancel = threading.Event()
        try:
            return await asyncio.to_thread(
                self.solve_parallel,
                payload,
                bindings,
                difficulty,
                workers=workers,
                cancel=cancel,
                timeout=timeout,
                progress=progress,
            )
        except asyncio.CancelledError:
            cancel.set()
            raise

    def _search(
        self,
        load_hash: bytes,
        difficulty: int,
        stop_events: tuple[threading.Event, ...],
        deadline: float | None,
        progress: ProgressCallback | None,
    ) -> PowSolution:
        random_source = self._random_source
        hash_function = self._hash_function
        interval = self._progress_interval
        trials = 0
        while True:
            if any(event.is_set() for event in stop_events):
                raise MiningCancelledError("mining cancelled", trials=trials)
            if deadline is not None and time.monotonic() >= deadline:
                raise MiningCancelledError("mining deadline exceeded", trials=trials)
            nonce = random_source(core_pow.NONCE_SIZE_BYTES)
            candidate = core_pow.compute_work_hash(load_hash, nonce, hash_function)
            trials += 1
            if core_pow.meets_difficulty(candidate, difficulty):
                return PowSolution(
                    load_hash=load_hash,
                    nonce=nonce,
                    work_hash=candidate,
                    difficulty=difficulty,
                    trials=trials,
                )
            if progress is not None and trials % interval == 0:
                progress(trials)
