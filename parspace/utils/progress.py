"""Progress Tracking for Partition Sampling
=========================================

Thin ``tqdm`` wrapper used by :func:`parspace.find_partitions` to show the
iteration count together with the number of live chains and patterns.
"""

import time

from tqdm import tqdm


class SamplingProgress:
    """Progress tracker for the partition sampler."""

    def __init__(
        self,
        max_iterations: int,
        desc: str = "Partition sampling",
        verbose: bool = True,
    ):
        """Initialize progress tracker.

        Parameters
        ----------
        max_iterations : int
            Iteration budget of the run
        desc : str
            Description for progress display
        verbose : bool
            Whether to show progress
        """
        self.max_iterations = max_iterations
        self.desc = desc
        self.verbose = verbose
        self.iteration = 0
        self.start_time = time.time()

        if self.verbose:
            self.pbar = tqdm(total=max_iterations, desc=desc, unit="iter")
        else:
            self.pbar = None

    def update(self, n_chains: int, n_patterns: int, n: int = 1):
        """Advance by ``n`` iterations and refresh the chain/pattern counts."""
        self.iteration += n
        if self.pbar is None:
            return

        self.pbar.update(n)
        self.pbar.set_postfix({"chains": n_chains, "patterns": n_patterns})

    @property
    def elapsed(self) -> float:
        return time.time() - self.start_time

    def close(self):
        if self.pbar is not None:
            self.pbar.close()
