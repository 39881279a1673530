"""Result container for partition searches."""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd

from parspace.core.chain import Chain
from parspace.core.volume import VolumeEstimate


@dataclass
class Results:
    """Outcome of :func:`parspace.find_partitions`.

    Attributes
    ----------
    chains : list[Chain]
        Final chains, one per discovered (pattern, region).
    volumes : dict[int, VolumeEstimate]
        Volume estimates keyed by ``chain_id``; empty unless requested.
    n_iters : int
        Number of sampler iterations completed.
    elapsed : float
        Wall-clock duration of the run in seconds.
    stop_reason : str
        Budget that ended the run: ``"n_iters"``, ``"max_time"`` or
        ``"max_regions"``.
    """

    chains: list[Chain] = field(default_factory=list)
    volumes: dict[int, VolumeEstimate] = field(default_factory=dict)
    n_iters: int = 0
    elapsed: float = 0.0
    stop_reason: str = "n_iters"

    @property
    def patterns(self) -> list[Hashable]:
        """Distinct pattern labels in first-seen chain order."""
        return list(dict.fromkeys(chain.pattern for chain in self.chains))

    @property
    def n_regions(self) -> int:
        return len(self.chains)

    def get_chains(self, pattern: Hashable) -> list[Chain]:
        return [chain for chain in self.chains if chain.pattern == pattern]

    def summary(self) -> dict[str, Any]:
        return {
            "n_regions": self.n_regions,
            "n_patterns": len(self.patterns),
            "n_iters": self.n_iters,
            "elapsed": self.elapsed,
            "stop_reason": self.stop_reason,
            "n_samples": sum(chain.n_samples for chain in self.chains),
        }

    def to_dataframe(self, parm_names: list[str] | None = None) -> pd.DataFrame:
        """One row per recorded chain step.

        Columns are ``chain_id``, ``pattern``, ``step``, one column per
        parameter (``p1 .. pd`` unless ``parm_names`` is given),
        ``acceptance`` and ``radius``, plus ``volume`` and
        ``corrected_volume`` when volumes were estimated.
        """
        frames = []
        for chain in self.chains:
            mat = chain.to_matrix()
            names = parm_names or [f"p{i + 1}" for i in range(mat.shape[1])]
            df = pd.DataFrame(mat, columns=names)
            df.insert(0, "step", np.arange(chain.n_samples))
            df.insert(0, "pattern", [chain.pattern] * chain.n_samples)
            df.insert(0, "chain_id", chain.chain_id)
            df["acceptance"] = chain.acceptance
            df["radius"] = chain.radii
            if self.volumes:
                estimate = self.volumes.get(chain.chain_id)
                df["volume"] = np.nan if estimate is None else estimate.volume
                df["corrected_volume"] = (
                    np.nan if estimate is None else estimate.corrected_volume
                )
            frames.append(df)

        if not frames:
            return pd.DataFrame(
                columns=["chain_id", "pattern", "step", "acceptance", "radius"]
            )
        return pd.concat(frames, ignore_index=True)
