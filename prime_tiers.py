#!/usr/bin/env python3
# prime_tiers.py
# Decide primality of n < 2^128 and count primes in [a, n].
# Modes:
#   isprime  -> exact test: small-prime table, then parallel 6k±1 trial division up to isqrt(n)
#               Example: python prime_tiers.py isprime 1000000007 --jobs 4
#   fast     -> deterministic Miller-Rabin below 2^64, BPSW (Miller-Rabin base 2 + strong Lucas) above
#               Example: python prime_tiers.py fast 340282366920938463463374607431768211297 --rounds 4 --seed 7
#   count    -> number of primes in [2, N]
#               Example: python prime_tiers.py count 10000000 --jobs 4
#   range    -> number of primes in [A, N]; narrow spans are filtered, wide spans are sieved
#               Example: python prime_tiers.py range 10 20
#   primes   -> list primes in [A, N] from a sieve (optionally streamed, one JSON value per line)
#               Example: python prime_tiers.py primes 100 200 --stream
#   bench    -> time both primality tiers, both counting paths and the sequential/parallel sieve
#               Example: python prime_tiers.py bench --N 2000000 --jobs 4
#   selftest -> quick built-in smoke tests
#               Example: python prime_tiers.py selftest
#
# Python 3.8+

import argparse
import hashlib
import json
import logging
import os
import random
import sys
import time as _t
from math import isqrt
from statistics import median
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple
from functools import lru_cache
from concurrent.futures import FIRST_COMPLETED, ProcessPoolExecutor, as_completed, wait

logger = logging.getLogger("prime_tiers")

# Primality queries accept 0 <= n < MAX_N
MAX_N = 1 << 128
SMALL_PRIME_LIMIT = 100_000
# Miller-Rabin with these bases is exact for every n < 3.3 * 10^24
MR_BASES_64 = (2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37)
BPSW_BASE = 2
RANGE_FILTER_THRESHOLD = 10_000
# Work sizes: k-values per trial-division block, integers per sieve segment,
# integers per filter block.
TRIAL_CHUNK = 1 << 16
SIEVE_SEGMENT = 1 << 22
FILTER_CHUNK = 1_000
# jobs=None only fans out to a process pool above this many unit operations
PARALLEL_MIN_WORK = 1 << 24

_COUNTERS = {
    'prime_calls': 0,
    'prp_calls': 0,
    'mr_rounds': 0,
    'lucas_calls': 0,
    'bpsw_calls': 0,
    'trial_blocks': 0,
    'sieve_builds': 0,
    'sieve_segments': 0,
    'filter_blocks': 0,
}


class InvalidArgument(ValueError):
    """Raised for out-of-domain inputs: n < 2 for a sieve, a > n for a range, n >= 2^128."""


class DiscriminantFactor(Exception):
    def __init__(self, D):
        super().__init__(D)
        self.value = D


def counters() -> Dict[str, int]:
    """Snapshot of this process's call counters (pool workers keep their own)."""
    return _COUNTERS.copy()


def reset_counters() -> None:
    for key in _COUNTERS:
        _COUNTERS[key] = 0

# ---------- tiny logging with caps ----------
def _mk_logger(verbose: int = 0, cap: int = 200):
    """
    Create logger functions with verbosity control and capping.

    :param verbose: Verbosity level (0: off, 1: summary, 2: capped logs, 3+: uncapped).
    :param cap: Max logs before capping at verbose=2.
    :return: (log function, summary function)
    """
    count = {"n": 0}
    def log(*args, **kwargs):
        if verbose <= 1:
            return
        if count["n"] < cap or verbose >= 3:
            print(*args, file=sys.stderr, **{k: v for k, v in kwargs.items() if k != "file"})
        count["n"] += 1
    def summary(*args, **kwargs):
        if verbose >= 1:
            print(*args, file=sys.stderr, **{k: v for k, v in kwargs.items() if k != "file"})
    return log, summary

def _configure_logging(verbose: int = 0) -> None:
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format='%(asctime)s - %(message)s')

# ---------- input checks ----------
def _check_int(value, name: str = "n", upper: Optional[int] = None) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0:
        raise InvalidArgument(f"{name} must be non-negative, got {value}")
    if upper is not None and value >= upper:
        raise InvalidArgument(f"{name} must be below 2**{upper.bit_length() - 1}, got {value}")
    return value

def _check_positive(value: Optional[int], name: str, default: int) -> int:
    if value is None:
        return default
    if value < 1:
        raise InvalidArgument(f"{name} must be >= 1, got {value}")
    return value

def _resolve_jobs(jobs: Optional[int], work: int) -> int:
    """
    Number of worker processes for a job of `work` unit operations.
    None means all CPUs for large jobs and inline execution for small ones.
    """
    if jobs is None:
        return (os.cpu_count() or 1) if work >= PARALLEL_MIN_WORK else 1
    return _check_positive(jobs, "jobs", 1)

# ---------- deterministic RNG ----------
def _rng_for_n(seed: Optional[int], n: int) -> random.Random:
    """
    Deterministic RNG per (seed, n). If seed is None, a fresh OS-seeded
    generator; the module-level `random` state is never shared.

    :param seed: Optional seed for reproducibility.
    :param n: Number under test.
    :return: random.Random instance.
    """
    if seed is None:
        return random.Random()
    b = f"{seed}:{n}".encode()
    h = hashlib.blake2b(b, digest_size=16).digest()
    return random.Random(int.from_bytes(h, "big"))

# ---------- process pool fan-out ----------
def _fan_out(fn: Callable, tasks: Iterable[tuple], workers: int, window: Optional[int] = None) -> Iterator:
    """
    Run fn(*task) for each task on a process pool and yield the results as
    they complete. At most `window` tasks are in flight, so huge task
    streams are never materialised. Closing the generator cancels whatever
    has not started and waits for the running tasks.
    """
    window = window or 4 * workers
    with ProcessPoolExecutor(max_workers=workers) as executor:
        pending = set()
        try:
            for task in tasks:
                pending.add(executor.submit(fn, *task))
                if len(pending) >= window:
                    done, pending = wait(pending, return_when=FIRST_COMPLETED)
                    for future in done:
                        yield future.result()
            while pending:
                future = next(as_completed(pending))
                pending.discard(future)
                yield future.result()
        finally:
            for future in pending:
                future.cancel()

# ---------- small prime table ----------
def _sieve_flags(limit: int) -> bytearray:
    """Sequential Sieve of Eratosthenes flags for [0, limit]."""
    flags = bytearray(b"\x01") * (limit + 1)
    flags[0] = 0
    if limit >= 1:
        flags[1] = 0
    for p in range(2, isqrt(limit) + 1):
        if flags[p]:
            start = p * p
            flags[start::p] = bytes(len(range(start, limit + 1, p)))
    return flags

class SmallPrimeTable:
    """
    All primes below `limit`, ascending. Read-only after construction, so one
    instance is shared by every caller.
    """

    def __init__(self, limit: int = SMALL_PRIME_LIMIT):
        if limit < 2:
            raise InvalidArgument(f"table limit must be >= 2, got {limit}")
        self.limit = limit
        flags = _sieve_flags(limit - 1)
        self._primes = tuple(i for i, v in enumerate(flags) if v)
        self._members = frozenset(self._primes)

    def contains(self, n: int) -> bool:
        return n in self._members

    __contains__ = contains

    def divisors(self) -> Tuple[int, ...]:
        return self._primes

    def __len__(self) -> int:
        return len(self._primes)

    def __iter__(self) -> Iterator[int]:
        return iter(self._primes)

    def __repr__(self) -> str:
        return f"SmallPrimeTable(limit={self.limit}, primes={len(self._primes)})"

@lru_cache(maxsize=None)
def small_prime_table(limit: int = SMALL_PRIME_LIMIT) -> SmallPrimeTable:
    return SmallPrimeTable(limit)

# ---------- modular arithmetic ----------
def mod_pow(base: int, exp: int, modulus: int) -> int:
    """
    base**exp mod modulus by square-and-multiply over the bits of exp.
    Python integers widen as needed, so the products never truncate.
    """
    if modulus <= 0:
        raise ValueError("modulus must be a positive integer.")
    if exp < 0:
        raise ValueError("exp must be non-negative.")
    if modulus == 1:
        return 0
    result = 1
    base %= modulus
    while exp:
        if exp & 1:
            result = (result * base) % modulus
        exp >>= 1
        base = (base * base) % modulus
    return result

@lru_cache(maxsize=200_000)
def jacobi(a: int, n: int) -> int:
    """
    Compute the Jacobi symbol (a/n).

    :param a: Numerator.
    :param n: Denominator (odd positive integer).
    :return: Jacobi symbol value.
    """
    if n <= 0 or n % 2 == 0:
        raise ValueError("n must be a positive odd integer.")
    a %= n
    result = 1
    while a:
        while a % 2 == 0:
            a //= 2
            if n % 8 in (3, 5):
                result = -result
        a, n = n, a
        if a % 4 == 3 and n % 4 == 3:
            result = -result
        a %= n
    if n == 1:
        return result
    else:
        return 0

def is_square(n: int) -> bool:
    """
    Check if n is a perfect square.
    """
    if n < 0:
        return False
    r = isqrt(n)
    return r * r == n

# ---------- trial division ----------
def _trial_block(n: int, k_lo: int, k_hi: int) -> Optional[int]:
    """
    Worker: scan 6k-1 and 6k+1 for k in [k_lo, k_hi); return a proper divisor of n or None.
    """
    for c in range(6 * k_lo, 6 * k_hi, 6):
        if n % (c - 1) == 0 and c - 1 < n:
            return c - 1
        if n % (c + 1) == 0 and c + 1 < n:
            return c + 1
    return None

def trial_division(n: int, lo: int, hi: int, jobs: Optional[int] = None, chunk: Optional[int] = None) -> Optional[int]:
    """
    Look for a divisor of n among the integers 6k±1 in [lo, hi].

    Multiples of 2 and 3 are never candidates, so callers screen those first.
    Block edges may test a few 6k±1 values up to 6 outside [lo, hi]; any
    divisor found is still a proper divisor of n.

    :param n: Number to test.
    :param lo: Smallest candidate divisor of interest.
    :param hi: Largest candidate divisor of interest, usually isqrt(n).
    :param jobs: Worker processes (None: automatic, 1: inline).
    :param chunk: k-values per block handed to a worker.
    :return: A proper divisor of n, or None when no candidate divides n.
    """
    chunk = _check_positive(chunk, "chunk", TRIAL_CHUNK)
    k_lo = max(1, lo // 6)
    k_hi = hi // 6 + 2
    if k_hi <= k_lo:
        return None
    workers = _resolve_jobs(jobs, 2 * (k_hi - k_lo))
    if workers == 1:
        _COUNTERS['trial_blocks'] += 1
        return _trial_block(n, k_lo, k_hi)
    logger.debug("trial division of %d: k in [%d, %d) over %d workers", n, k_lo, k_hi, workers)
    blocks = ((n, start, min(start + chunk, k_hi)) for start in range(k_lo, k_hi, chunk))
    results = _fan_out(_trial_block, blocks, workers)
    try:
        for divisor in results:
            _COUNTERS['trial_blocks'] += 1
            if divisor is not None:
                logger.debug("divisor %d found for %d", divisor, n)
                return divisor
    finally:
        results.close()
    return None

def is_prime(n: int, jobs: Optional[int] = None, chunk: Optional[int] = None) -> bool:
    """
    Exact primality test for 0 <= n < 2^128.

    Below SMALL_PRIME_LIMIT the answer is a table lookup. Above it, every
    table prime up to isqrt(n) is tried, then every 6k±1 from the table
    bound up to isqrt(n), fanned out over a process pool. Never wrong, but
    costs O(sqrt(n)) divisions for large primes.

    :param n: Number to test.
    :param jobs: Worker processes for the trial division (None: automatic).
    :param chunk: k-values per trial-division block.
    :return: True iff n is prime.
    """
    _check_int(n, "n", MAX_N)
    if jobs is not None:
        _check_positive(jobs, "jobs", 1)
    chunk = _check_positive(chunk, "chunk", TRIAL_CHUNK)
    _COUNTERS['prime_calls'] += 1
    table = small_prime_table()
    if n < table.limit:
        return n in table
    root = isqrt(n)
    for p in table.divisors():
        if p > root:
            return True
        if n % p == 0:
            return False
    if root < table.limit:
        return True
    return trial_division(n, table.limit, root, jobs, chunk) is None

# ---------- Miller–Rabin ----------
def _mr_witness(a: int, n: int, d: int, s: int) -> bool:
    """
    Check if a is a Miller-Rabin witness for composite n.
    """
    x = mod_pow(a, d, n)
    if x == 1 or x == n - 1:
        return False
    for _ in range(s - 1):
        x = (x * x) % n
        if x == n - 1:
            return False
    return True  # composite

def miller_rabin(n: int, rounds: int = 5, seed: Optional[int] = None,
                 rng: Optional[random.Random] = None, bases: Optional[Iterable[int]] = None) -> bool:
    """
    Miller-Rabin compositeness test.

    Witnesses are `bases` when given, otherwise `rounds` values drawn
    uniformly from [2, n-2] with `rng` (or a generator derived from
    (seed, n)). Stops at the first witness that proves n composite. With no
    witness to test (rounds < 1 and no bases, or empty bases) it raises
    InvalidArgument instead of reporting a probable prime.

    :param n: Number to test.
    :param rounds: Number of random witnesses when `bases` is None.
    :param seed: Seed for the derived generator.
    :param rng: Random source; takes precedence over seed.
    :param bases: Explicit witnesses.
    :return: False if n is proven composite, True if n is a probable prime.
    """
    if bases is None:
        if rounds < 1:
            raise InvalidArgument(f"rounds must be at least 1 (got {rounds})")
    else:
        bases = tuple(bases)
        if not bases:
            raise InvalidArgument("bases must not be empty")
    _COUNTERS['prp_calls'] += 1
    if n < 2:
        return False
    if n < 4:
        return True
    if n % 2 == 0:
        return False
    d = n - 1
    s = 0
    while d % 2 == 0:
        d //= 2
        s += 1
    if bases is None:
        if rng is None:
            rng = _rng_for_n(seed, n)
        bases = (rng.randrange(2, n - 1) for _ in range(rounds))
    for a in bases:
        if a % n == 0:
            continue
        _COUNTERS['mr_rounds'] += 1
        if _mr_witness(a, n, d, s):
            return False
    return True

def _mr_deterministic_64(n: int) -> bool:
    """
    Deterministic Miller-Rabin for n < 2^64 using known strong bases.
    """
    for p in MR_BASES_64:
        if n % p == 0:
            return n == p
    return miller_rabin(n, bases=MR_BASES_64)

# ---------- Lucas ----------
def selfridge_params(n: int) -> Tuple[int, int, int]:
    """
    Selfridge method A: first D in 5, -7, 9, -11, ... with Jacobi(D/n) = -1;
    then P=1, Q=(1-D)/4. n must be odd and not a perfect square, or the
    search never ends.

    Raises DiscriminantFactor(D) when Jacobi(D/n) = 0 for some D before that,
    i.e. gcd(D, n) > 1. n is then prime only if n == |D|.
    """
    D = 5
    while True:
        j = jacobi(D, n)
        if j == -1:
            break
        if j == 0:
            raise DiscriminantFactor(D)
        D = -D - 2 if D > 0 else -D + 2
    P = 1
    Q = (1 - D) // 4  # guaranteed integer, D ≡ 1 mod 4
    return P, Q, D

def lucas_sequence(P: int, Q: int, n: int, k: int) -> Tuple[int, int, int]:
    """
    Fast-doubling Lucas: return (U_k, V_k, Q^k) mod n for odd n.
    Start from k=1 state (U1=1, V1=P, Q^1=Q).
    """
    if k == 0:
        return 0, 2 % n, 1 % n
    U = 1 % n
    V = P % n
    Qk = Q % n
    inv2 = pow(2, -1, n)
    D = (P * P - 4 * Q) % n
    # skip leading '1' bit of k
    for b in bin(k)[3:]:
        # double
        U = (U * V) % n
        V = (V * V - 2 * Qk) % n
        Qk = (Qk * Qk) % n
        if b == '1':
            # increment
            U, V = ((P * U + V) * inv2) % n, ((D * U + P * V) * inv2) % n
            Qk = (Qk * Q) % n
    return U, V, Qk

def _lucas_setup(n: int):
    """
    Shared screening for the Lucas tests. Returns a final verdict (bool) or
    the Selfridge parameters (P, Q, D) to run the sequence with.
    """
    _COUNTERS['lucas_calls'] += 1
    if n < 2:
        return False
    if n % 2 == 0:
        return n == 2
    if n == 3:
        return True
    if is_square(n):
        return False
    try:
        return selfridge_params(n)
    except DiscriminantFactor as e:
        # D divides n: prime only when n is |D| itself (5, 11, ...)
        return abs(e.value) == n

def lucas_prp(n: int) -> bool:
    """Lucas probable-prime test with Selfridge parameters: U_{n+1} ≡ 0 (mod n)."""
    setup = _lucas_setup(n)
    if isinstance(setup, bool):
        return setup
    P, Q, _ = setup
    U, _, _ = lucas_sequence(P, Q, n, n + 1)
    return U == 0

def strong_lucas_prp(n: int) -> bool:
    """
    Strong Lucas probable-prime test with Selfridge parameters.
    n + 1 = d * 2^s with d odd; passes iff U_d ≡ 0 or V_{d*2^r} ≡ 0 for some 0 <= r < s.
    """
    setup = _lucas_setup(n)
    if isinstance(setup, bool):
        return setup
    P, Q, _ = setup
    d = n + 1
    s = 0
    while d % 2 == 0:
        d //= 2
        s += 1
    U, V, Qm = lucas_sequence(P, Q, n, d)
    if U == 0:
        return True
    for _ in range(s):
        if V == 0:
            return True
        V = (V * V - 2 * Qm) % n
        Qm = (Qm * Qm) % n
    return False

# ---------- Baillie-PSW probable prime test ----------
def bpsw(n: int, base: int = BPSW_BASE) -> bool:
    """
    Baillie-PSW: one Miller-Rabin round, then the strong Lucas test,
    evaluated in that order and stopping at the first failure.

    No composite is known to pass, but none is proven not to exist.
    """
    _COUNTERS['bpsw_calls'] += 1
    if n < 2:
        return False
    for p in (2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37):
        if n % p == 0:
            return n == p
    if is_square(n):
        return False
    stages = (
        lambda m: miller_rabin(m, bases=(base,)),
        strong_lucas_prp,
    )
    return all(stage(n) for stage in stages)

def is_prime_fast(n: int, rounds: int = 0, seed: Optional[int] = None,
                  rng: Optional[random.Random] = None) -> bool:
    """
    Fast primality test for 0 <= n < 2^128, in two certainty tiers.

    n < 2^64: Miller-Rabin with the twelve prime bases 2..37. This base set
    has no strong pseudoprime below 3.3 * 10^24, so the answer is exact.

    n >= 2^64: Baillie-PSW. No counterexample is known, but the test is not
    proven correct. `rounds` extra random-witness Miller-Rabin rounds
    (from `rng`, or from a generator derived from (seed, n)) can be added;
    they never reject a prime.

    :param n: Number to test.
    :param rounds: Extra random Miller-Rabin rounds above 2^64.
    :param seed: Seed for the extra witnesses.
    :param rng: Random source for the extra witnesses.
    :return: True if n is prime (n < 2^64) or a BPSW probable prime.
    """
    _check_int(n, "n", MAX_N)
    if rounds < 0:
        raise InvalidArgument(f"rounds must be non-negative, got {rounds}")
    if n <= 1:
        return False
    if n <= 3:
        return True
    if n % 2 == 0 or n % 3 == 0:
        return False
    if n < (1 << 64):
        return _mr_deterministic_64(n)
    logger.debug("BPSW tier for %d", n)
    if not bpsw(n):
        return False
    if rounds > 0:
        return miller_rabin(n, rounds, seed=seed, rng=rng)
    return True

# ---------- parallel sieve ----------
class Sieve:
    """
    Sieve of Eratosthenes table over [0, limit]: flags[i] == 1 iff i is prime.
    """

    def __init__(self, limit: int, flags: bytearray):
        if len(flags) != limit + 1:
            raise ValueError(f"expected {limit + 1} flags, got {len(flags)}")
        self.limit = limit
        self.flags = flags

    def __len__(self) -> int:
        return self.limit + 1

    def __contains__(self, i: int) -> bool:
        return 0 <= i <= self.limit and self.flags[i] == 1

    def is_prime(self, i: int) -> bool:
        if not 0 <= i <= self.limit:
            raise IndexError(f"{i} is outside the sieve [0, {self.limit}]")
        return self.flags[i] == 1

    def _bounds(self, a: int, b: Optional[int]) -> Tuple[int, int]:
        b = self.limit if b is None else b
        if a > b:
            raise InvalidArgument(f"a must not exceed b (a={a}, b={b})")
        return max(a, 0), min(b, self.limit)

    def count(self, a: int = 0, b: Optional[int] = None) -> int:
        """Number of primes in [a, b] (b defaults to the sieve limit)."""
        a, b = self._bounds(a, b)
        if a > b:
            return 0
        return self.flags.count(1, a, b + 1)

    def primes(self, a: int = 0, b: Optional[int] = None) -> Iterator[int]:
        a, b = self._bounds(a, b)
        i = self.flags.find(1, a, b + 1)
        while i != -1:
            yield i
            i = self.flags.find(1, i + 1, b + 1)

    def __repr__(self) -> str:
        return f"Sieve(limit={self.limit})"

def _mark_segment(lo: int, hi: int, base_primes: List[int]) -> Tuple[int, bytearray]:
    """
    Worker: flags for [lo, hi) with multiples of every base prime p cleared from p*p on.
    """
    flags = bytearray(b"\x01") * (hi - lo)
    for p in base_primes:
        start = p * p
        if start >= hi:
            break
        if start < lo:
            start = ((lo + p - 1) // p) * p
        flags[start - lo::p] = bytes(len(range(start, hi, p)))
    # 0 and 1 are not prime
    for i in (0, 1):
        if lo <= i < hi:
            flags[i - lo] = 0
    return lo, flags

def build_sieve(n: int, jobs: Optional[int] = None, segment: Optional[int] = None) -> Sieve:
    """
    Build the sieve over [0, n].

    Base primes up to isqrt(n) are fixed first; then each worker owns a
    disjoint segment of [0, n] and clears multiples of every base prime in
    it, so no flag is ever written by two workers.

    :param n: Upper bound (inclusive), at least 2.
    :param jobs: Worker processes (None: automatic, 1: inline).
    :param segment: Integers per segment.
    :return: Sieve
    """
    _check_int(n)
    if n < 2:
        raise InvalidArgument("n must be greater than or equal to 2.")
    segment = _check_positive(segment, "segment", SIEVE_SEGMENT)
    _COUNTERS['sieve_builds'] += 1
    root_flags = _sieve_flags(isqrt(n))
    base_primes = [p for p, v in enumerate(root_flags) if v]
    bounds = [(lo, min(lo + segment, n + 1), base_primes) for lo in range(0, n + 1, segment)]
    workers = min(_resolve_jobs(jobs, n + 1), len(bounds))
    logger.debug("sieve to %d: %d base primes, %d segments, %d workers",
                 n, len(base_primes), len(bounds), workers)
    flags = bytearray(n + 1)
    if workers == 1:
        results = (_mark_segment(*task) for task in bounds)
    else:
        results = _fan_out(_mark_segment, bounds, workers)
    for lo, seg in results:
        _COUNTERS['sieve_segments'] += 1
        flags[lo:lo + len(seg)] = seg
    return Sieve(n, flags)

# ---------- prime counting ----------
def _count_block(lo: int, hi: int) -> int:
    """
    Worker: number of primes in [lo, hi) by the exact test, run inline.
    """
    return sum(1 for i in range(lo, hi) if is_prime(i, jobs=1))

def _filter_count(lo: int, hi: int, jobs: Optional[int] = None) -> int:
    size = hi - lo + 1
    workers = _resolve_jobs(jobs, size * isqrt(hi))
    if workers == 1:
        _COUNTERS['filter_blocks'] += 1
        return _count_block(lo, hi + 1)
    logger.debug("filtering [%d, %d] over %d workers", lo, hi, workers)
    blocks = ((start, min(start + FILTER_CHUNK, hi + 1)) for start in range(lo, hi + 1, FILTER_CHUNK))
    total = 0
    for found in _fan_out(_count_block, blocks, workers):
        _COUNTERS['filter_blocks'] += 1
        total += found
    return total

def prime_count_range(a: int, n: int, jobs: Optional[int] = None, threshold: Optional[int] = None) -> int:
    """
    Count primes in [a, n].

    Spans below `threshold` (default RANGE_FILTER_THRESHOLD) run each integer
    through is_prime; wider spans build the sieve up to n and count its flags
    in [a, n]. threshold=0 always sieves.

    :param a: Lower bound (inclusive).
    :param n: Upper bound (inclusive).
    :param jobs: Worker processes (None: automatic, 1: inline).
    :param threshold: Span below which the filter path is used.
    :return: Number of primes p with a <= p <= n.
    """
    _check_int(a, "a")
    _check_int(n, "n")
    if threshold is None:
        threshold = RANGE_FILTER_THRESHOLD
    _check_int(threshold, "threshold")
    if a > n:
        raise InvalidArgument(f"a must not exceed n (a={a}, n={n})")
    if n < 2:
        return 0
    lo = max(a, 2)
    if n - lo < threshold:
        return _filter_count(lo, n, jobs)
    return build_sieve(n, jobs).count(lo, n)

def prime_count(n: int, jobs: Optional[int] = None, threshold: Optional[int] = None) -> int:
    """Count primes in [2, n]."""
    _check_int(n, "n")
    if n < 2:
        return 0
    return prime_count_range(2, n, jobs, threshold)

# ---------- Benchmarking ----------
def _timed(fn, *args, **kwargs):
    t0 = _t.perf_counter()
    out = fn(*args, **kwargs)
    return out, _t.perf_counter() - t0

def run_bench(N: int, jobs: Optional[int] = None, repeats: int = 3) -> Dict:
    """
    Median timings of both primality tiers on N, of both counting paths
    (filter and sieve) on the RANGE_FILTER_THRESHOLD-wide window ending at N,
    and of the sieve up to N, sequential against parallel.
    """
    if _check_int(N, "N") < 2:
        raise InvalidArgument(f"bench needs N >= 2, got {N}")
    jobs = jobs or (os.cpu_count() or 1)
    start = _t.time()
    lo = max(2, N - RANGE_FILTER_THRESHOLD + 1)
    rows = {}
    for name, fn, args, kwargs in (
        ("is_prime", is_prime, (N,), {}),
        ("is_prime_fast", is_prime_fast, (N,), {}),
        ("count_filter", prime_count_range, (lo, N), {"jobs": jobs, "threshold": N + 1}),
        ("count_sieve", prime_count_range, (lo, N), {"jobs": jobs, "threshold": 0}),
        ("sieve_sequential", prime_count, (N,), {"jobs": 1}),
        ("sieve_parallel", prime_count, (N,), {"jobs": jobs}),
    ):
        outs, times = [], []
        for _ in range(repeats):
            out, elapsed = _timed(fn, *args, **kwargs)
            outs.append(out)
            times.append(elapsed)
        rows[name] = {"result": outs[0], "time_s": median(times)}
    seq, par = rows["sieve_sequential"]["time_s"], rows["sieve_parallel"]["time_s"]
    return {
        "method": "bench",
        "N": N,
        "jobs": jobs,
        "repeats": repeats,
        "results": rows,
        "speedup": seq / par if par else None,
        "elapsed": _t.time() - start,
    }

# ---------- Helpers ----------
def _emit(out, args: argparse.Namespace):
    """
    Emit JSON or stream.
    """
    if isinstance(out, Iterator):
        for item in out:
            print(json.dumps(item))
    else:
        print(json.dumps(out, indent=2))

def _selftest() -> Dict:
    results = {}
    results["is_prime"] = {n: is_prime(n) for n in (0, 1, 2, 3, 4, 9, 97, 100_003, 1_000_000_007)}
    results["is_prime_fast"] = {n: is_prime_fast(n) for n in (561, 2047, 1_000_000_007, (1 << 89) - 1)}
    results["prime_count"] = {n: prime_count(n) for n in (1, 2, 10, 100, 20_000)}
    results["prime_count_range"] = prime_count_range(10, 20)
    results["lucas_pseudoprime_323"] = {"lucas": lucas_prp(323), "strong_lucas": strong_lucas_prp(323)}
    ok = (
        results["prime_count"][10] == 4
        and results["prime_count"][20_000] == 2262
        and results["prime_count_range"] == 4
        and results["is_prime_fast"][(1 << 89) - 1]
        and not results["is_prime_fast"][561]
    )
    return {"method": "selftest", "ok": ok, "results": results}

# ---------- Main ----------
def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Tiered primality tests and parallel prime counting")
    subparsers = parser.add_subparsers(dest="mode", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--verbose', type=int, default=0)

    isprime_parser = subparsers.add_parser("isprime", parents=[common])
    isprime_parser.add_argument('N', type=int)
    isprime_parser.add_argument('--jobs', type=int)
    isprime_parser.add_argument('--chunk', type=int)

    fast_parser = subparsers.add_parser("fast", parents=[common])
    fast_parser.add_argument('N', type=int)
    fast_parser.add_argument('--rounds', type=int, default=0)
    fast_parser.add_argument('--seed', type=int)

    count_parser = subparsers.add_parser("count", parents=[common])
    count_parser.add_argument('N', type=int)
    count_parser.add_argument('--jobs', type=int)
    count_parser.add_argument('--threshold', type=int)

    range_parser = subparsers.add_parser("range", parents=[common])
    range_parser.add_argument('A', type=int)
    range_parser.add_argument('N', type=int)
    range_parser.add_argument('--jobs', type=int)
    range_parser.add_argument('--threshold', type=int)

    primes_parser = subparsers.add_parser("primes", parents=[common])
    primes_parser.add_argument('A', type=int)
    primes_parser.add_argument('N', type=int)
    primes_parser.add_argument('--jobs', type=int)
    primes_parser.add_argument('--stream', action='store_true')

    bench_parser = subparsers.add_parser("bench", parents=[common])
    bench_parser.add_argument('--N', type=int, default=1_000_000)
    bench_parser.add_argument('--jobs', type=int)
    bench_parser.add_argument('--repeats', type=int, default=3)

    subparsers.add_parser("selftest", parents=[common])
    return parser

def main(argv: Optional[List[str]] = None):
    args = build_arg_parser().parse_args(argv)
    _configure_logging(args.verbose)
    log, summary = _mk_logger(args.verbose)

    try:
        if args.mode == "isprime":
            out = {"method": "isprime", "N": args.N, "prime": is_prime(args.N, args.jobs, args.chunk)}
        elif args.mode == "fast":
            prime = is_prime_fast(args.N, args.rounds, args.seed)
            tier = "miller_rabin_64" if args.N < (1 << 64) else "bpsw"
            out = {"method": "fast", "N": args.N, "tier": tier, "prime": prime}
        elif args.mode == "count":
            out = {"method": "count", "N": args.N, "count": prime_count(args.N, args.jobs, args.threshold)}
        elif args.mode == "range":
            out = {"method": "range", "A": args.A, "N": args.N, "count": prime_count_range(args.A, args.N, args.jobs, args.threshold)}
        elif args.mode == "primes":
            if args.A > args.N:
                raise InvalidArgument(f"a must not exceed n (a={args.A}, n={args.N})")
            sieve = build_sieve(args.N, args.jobs)
            if args.stream:
                log(f"streaming primes in [{args.A}, {args.N}]")
                _emit(sieve.primes(args.A, args.N), args)
                summary(f"Summary: {counters()}")
                return
            primes = list(sieve.primes(args.A, args.N))
            out = {"method": "primes", "A": args.A, "N": args.N, "count": len(primes), "primes": primes}
        elif args.mode == "bench":
            out = run_bench(args.N, args.jobs, args.repeats)
        elif args.mode == "selftest":
            out = _selftest()
    except InvalidArgument as e:
        logger.error("%s: %s", args.mode, e)
        raise SystemExit(f"Error: {e}")

    out["counters"] = counters()
    summary(f"Summary: {out['counters']}")
    _emit(out, args)

if __name__ == "__main__":
    main()
