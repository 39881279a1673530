"""Sampling chain record.

A :class:`Chain` is the append-only history of one random walk inside a
region: every visited point, whether the move into it was accepted, and the
proposal radius used for that step.

Merging another chain's history into a chain grows its sample cloud but
does not move the walk: the current position and the acceptance window
seen by radius adaptation only ever come from the chain's own steps.
"""

from __future__ import annotations

from collections.abc import Hashable, Sequence

import numpy as np


def as_pattern(label) -> Hashable:
    """Make a pattern label hashable; arrays and lists become tuples."""
    if isinstance(label, np.ndarray):
        return tuple(label.tolist())
    if isinstance(label, list):
        return tuple(as_pattern(x) for x in label)
    return label


class Chain:
    """One random-walk trajectory through a single pattern region.

    Parameters
    ----------
    pattern : Hashable
        Label of the region the chain explores. Read-only afterwards.
    all_parms : sequence of array_like
        Visited parameter vectors in sampling order. A rejected step
        re-records the point the chain stayed at.
    acceptance : sequence of bool
        Whether each step's proposal was accepted.
    radii : sequence of float
        Proposal radius used at each step.
    radius : float
        Proposal radius the next step will use.
    chain_id : int
        Identity assigned by the sampler; survives merges.
    """

    def __init__(
        self,
        pattern: Hashable,
        all_parms: Sequence = (),
        acceptance: Sequence[bool] = (),
        radii: Sequence[float] = (),
        radius: float = 0.1,
        chain_id: int = 0,
    ):
        self._pattern = as_pattern(pattern)
        self.all_parms = [np.asarray(p, dtype=float) for p in all_parms]
        self.acceptance = [bool(a) for a in acceptance]
        self.radii = [float(r) for r in radii]
        self.radius = float(radius)
        self.chain_id = chain_id
        if not len(self.all_parms) == len(self.acceptance) == len(self.radii):
            raise ValueError(
                "all_parms, acceptance and radii must have equal length, got "
                f"{len(self.all_parms)}, {len(self.acceptance)}, {len(self.radii)}"
            )

        self._current = self.all_parms[-1] if self.all_parms else None
        # acceptance flags of this chain's own steps, never extended by merges
        self._own_acceptance = list(self.acceptance)

    @classmethod
    def seed(
        cls,
        parms: Sequence[float],
        pattern: Hashable,
        radius: float,
        chain_id: int = 0,
    ) -> Chain:
        """Start a chain at ``parms``; the seed counts as an accepted step."""
        return cls(
            pattern=pattern,
            all_parms=[parms],
            acceptance=[True],
            radii=[radius],
            radius=radius,
            chain_id=chain_id,
        )

    @property
    def pattern(self) -> Hashable:
        return self._pattern

    def add(self, parms, accepted: bool, radius: float) -> None:
        """Record one step and move the chain to ``parms``."""
        parms = np.asarray(parms, dtype=float)
        self.all_parms.append(parms)
        self.acceptance.append(bool(accepted))
        self.radii.append(float(radius))
        self._own_acceptance.append(bool(accepted))
        self._current = parms

    def merge(self, other: Chain) -> None:
        """Concatenate ``other``'s history onto this chain.

        The chain keeps walking from its own current point.
        """
        self.all_parms.extend(other.all_parms)
        self.acceptance.extend(other.acceptance)
        self.radii.extend(other.radii)

    @property
    def current_parms(self) -> np.ndarray:
        return self._current

    @property
    def n_steps(self) -> int:
        """Steps taken by this chain itself, seed included."""
        return len(self._own_acceptance)

    def recent_acceptance(self, n: int) -> list[bool]:
        """Acceptance flags of this chain's last ``n`` own steps."""
        return self._own_acceptance[-n:]

    @property
    def n_samples(self) -> int:
        return len(self.all_parms)

    @property
    def n_dims(self) -> int:
        return len(self.all_parms[0]) if self.all_parms else 0

    @property
    def n_accepted(self) -> int:
        return sum(self.acceptance)

    @property
    def acceptance_rate(self) -> float:
        if not self.acceptance:
            return float("nan")
        return self.n_accepted / len(self.acceptance)

    def to_matrix(self) -> np.ndarray:
        """Samples as an ``(n_samples, n_dims)`` array."""
        return np.vstack(self.all_parms)

    def __repr__(self) -> str:
        return (
            f"Chain(chain_id={self.chain_id}, pattern={self.pattern!r}, "
            f"n_samples={self.n_samples}, radius={self.radius:.4g})"
        )
