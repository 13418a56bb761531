#!/usr/bin/env python3
#
#   Running independent modular trials, optionally on a thread pool
#

from concurrent.futures import ThreadPoolExecutor
from itertools import islice
from typing import Callable, Iterable, Iterator, Tuple, TypeVar

T = TypeVar("T")
R = TypeVar("R")

def run_trials(trial : Callable[[T], R], candidates : Iterable[T], workers : int = 1) -> Iterator[Tuple[T, R]]:
    """
    Yields (candidate, trial(candidate)) in the order of the candidates. With more than one worker, batches of
    `workers` candidates are evaluated concurrently; the consumer stops the stream by not asking for more, so at most
    one batch of work is wasted.
    """
    candidates = iter(candidates)

    if workers <= 1:
        for c in candidates:
            yield c, trial(c)
        return

    with ThreadPoolExecutor(max_workers=workers) as pool:
        while True:
            batch = list(islice(candidates, workers))
            if len(batch) == 0:
                return
            yield from zip(batch, pool.map(trial, batch))

########################################################################################################################
#   Unit Tests
########################################################################################################################

import unittest

class TestTrials(unittest.TestCase):

    def test_serial(self):
        self.assertEqual(list(run_trials(lambda x: x * x, range(5))), [(i, i * i) for i in range(5)])

    def test_parallel_keeps_order(self):
        self.assertEqual(list(run_trials(lambda x: -x, range(11), workers=4)), [(i, -i) for i in range(11)])

    def test_early_stop(self):
        seen = []
        def trial(x):
            seen.append(x)
            return x
        for c,_ in run_trials(trial, range(100), workers=3):
            if c == 4:
                break
        # the batch holding 4 is [3, 4, 5]
        self.assertEqual(sorted(seen), [0, 1, 2, 3, 4, 5])

    def test_errors_propagate(self):
        def trial(x):
            if x == 2:
                raise ValueError("bad trial")
            return x
        with self.assertRaises(ValueError):
            list(run_trials(trial, range(4), workers=2))
