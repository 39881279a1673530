"""Sampler options and validation.

This module provides the :class:`Options` dataclass consumed by
:func:`parspace.find_partitions` and :func:`parspace.make_unique`. Options
are a frozen snapshot: a run never observes a change made after it started.

Options can be given flat or grouped into sections, either as a dict or as
a YAML file::

    partitions:
      init_parms: [[0.2, 0.5], [0.8, 0.5]]
      bounds: [[0, 1], [0, 1]]
      proposal:
        radius: 0.1
      adaptation:
        policy: adapt
        target_rate: 0.2
        adapt_interval: 10
        kappa: 0.5
        min_radius: 0.0001
        max_radius: 1.0
      deduplication:
        max_merge: 1
        scale: 2.0
        dedup_interval: 100
      budget:
        n_iters: 1000
        max_time: 60
        max_regions: 10
      execution:
        parallel: false
        n_workers: 4
        seed: 2024
        show_progress: false
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Union

import numpy as np
import yaml

from parspace.core.exceptions import OptionsError
from parspace.utils.logging import get_logger

logger = get_logger(__name__)

ADAPTATION_POLICIES = ("adapt", "none")

# section name -> {key in section: Options field}
_SECTIONS: dict[str, dict[str, str]] = {
    "proposal": {"radius": "radius", "bounds": "bounds"},
    "adaptation": {
        "policy": "adapt_radius",
        "target_rate": "target_rate",
        "adapt_interval": "adapt_interval",
        "kappa": "kappa",
        "min_radius": "min_radius",
        "max_radius": "max_radius",
    },
    "deduplication": {
        "max_merge": "max_merge",
        "scale": "scale",
        "dedup_interval": "dedup_interval",
    },
    "budget": {
        "n_iters": "n_iters",
        "max_time": "max_time",
        "max_regions": "max_regions",
    },
    "execution": {
        "parallel": "parallel",
        "n_workers": "n_workers",
        "seed": "seed",
        "show_progress": "show_progress",
    },
}


def _is_int(value: Any) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool)


def _as_vectors(value) -> tuple[tuple[float, ...], ...] | None:
    """Nested sequences as tuples of float tuples; None if not that shape."""
    if isinstance(value, (str, bytes)):
        return None
    try:
        vectors = tuple(value)
        if any(isinstance(v, (str, bytes)) for v in vectors):
            return None
        return tuple(tuple(float(x) for x in v) for v in vectors)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class Options:
    """Configuration for a partition search.

    Attributes
    ----------
    init_parms : tuple[tuple[float, ...], ...]
        Starting points; one chain is seeded at each.
    bounds : tuple[tuple[float, float], ...] | None
        Per-dimension ``(low, high)``. Proposals outside are rejected.
    radius : float
        Initial radius of the hypersphere proposal.
    n_iters : int
        Maximum number of sampler iterations (one step per chain each).
    max_time : float | None
        Wall-clock budget in seconds, checked between iterations.
    max_regions : int | None
        Stop once this many chains remain after deduplication.
    max_merge : int
        Maximum number of redundant chains merged into a group's
        representative. ``0`` discards redundant chains without merging.
    scale : float
        Ellipsoid scalar shared by the intersection test and volume
        estimation.
    dedup_interval : int
        Iterations between deduplication passes.
    adapt_radius : str | Callable
        ``"adapt"``, ``"none"`` or a callable ``policy(chain, options)``.
    target_rate : float
        Acceptance rate the adaptive policy steers towards.
    adapt_interval : int
        Steps between radius adaptations.
    kappa : float
        Adaptation gain; the radius is multiplied by
        ``exp(kappa * (rate - target_rate))``.
    min_radius, max_radius : float
        Clamp for the adapted radius.
    parallel : bool
        Advance chains on a thread pool between deduplication passes.
    n_workers : int | None
        Thread pool size. ``None`` lets the executor decide.
    seed : int | None
        Master seed. Runs with equal seeds are identical.
    show_progress : bool
        Show a tqdm progress bar.
    """

    init_parms: tuple = ()
    bounds: tuple | None = None

    # Proposal
    radius: float = 0.10

    # Budget
    n_iters: int = 1000
    max_time: float | None = None
    max_regions: int | None = None

    # Deduplication
    max_merge: int = 1
    scale: float = 2.0
    dedup_interval: int = 100

    # Adaptation
    adapt_radius: Union[str, Callable] = "adapt"
    target_rate: float = 0.20
    adapt_interval: int = 10
    kappa: float = 0.5
    min_radius: float = 1e-4
    max_radius: float = 1.0

    # Execution
    parallel: bool = False
    n_workers: int | None = None
    seed: int | None = None
    show_progress: bool = False

    def __post_init__(self):
        # normalise nested lists so the snapshot is hashable and immutable;
        # malformed shapes are left for validate() to report
        shape_errors: dict[str, str] = {}

        init_parms = _as_vectors(self.init_parms)
        if init_parms is None:
            shape_errors["init_parms"] = (
                f"init_parms must be a sequence of parameter vectors, got: {self.init_parms!r}"
            )
            init_parms = ()
        object.__setattr__(self, "init_parms", init_parms)

        if self.bounds is not None:
            bounds = _as_vectors(self.bounds)
            if bounds is None:
                shape_errors["bounds"] = (
                    f"bounds must be a sequence of (low, high) pairs, got: {self.bounds!r}"
                )
            object.__setattr__(self, "bounds", bounds)

        object.__setattr__(self, "_shape_errors", shape_errors)

    @property
    def n_dims(self) -> int:
        if self.init_parms:
            return len(self.init_parms[0])
        if self.bounds is not None:
            return len(self.bounds)
        return 0

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> Options:
        """Create Options from a flat or sectioned dictionary.

        Parameters
        ----------
        config_dict : dict
            Options keyed by field name, optionally grouped into the
            ``proposal``, ``adaptation``, ``deduplication``, ``budget`` and
            ``execution`` sections. A flat key wins over a sectioned one.

        Returns
        -------
        Options
            Options object. Call :meth:`raise_if_invalid` to enforce
            validity; problems are also logged here as warnings.
        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}

        for section, mapping in _SECTIONS.items():
            values = config_dict.get(section) or {}
            for key, value in values.items():
                if key in mapping:
                    kwargs[mapping[key]] = value
                else:
                    logger.warning(f"Ignoring unknown option '{section}.{key}'")

        for key, value in config_dict.items():
            if key in _SECTIONS:
                continue
            if key in known:
                kwargs[key] = value
            else:
                logger.warning(f"Ignoring unknown option '{key}'")

        options = cls(**kwargs)

        for error in options.validate():
            logger.warning(f"Options validation: {error}")

        return options

    @classmethod
    def from_yaml(cls, path: str | Path) -> Options:
        """Load Options from a YAML file.

        The file may hold the options at top level or under a
        ``partitions:`` key.
        """
        config_path = Path(path)
        with open(config_path, encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}

        if not isinstance(config, dict):
            raise OptionsError(
                f"Options file must contain a mapping, got {type(config).__name__}",
                error_context={"path": str(config_path)},
            )
        if "partitions" in config:
            config = config["partitions"] or {}

        logger.info(f"Options loaded from: {config_path}")
        return cls.from_dict(config)

    def validate(self) -> list[str]:
        """Validate option values.

        Returns
        -------
        list[str]
            List of validation error messages (empty if valid).
        """
        errors: list[str] = list(self._shape_errors.values())

        # Starting points and bounds
        if not self.init_parms and "init_parms" not in self._shape_errors:
            errors.append("init_parms must contain at least one starting point")
        n_dims = self.n_dims
        if any(len(p) != n_dims for p in self.init_parms):
            errors.append("all init_parms must have the same dimension")
        if n_dims == 0 and self.init_parms:
            errors.append("init_parms must not be empty vectors")

        if self.bounds is not None:
            if len(self.bounds) != n_dims:
                errors.append(
                    f"bounds must have one (low, high) pair per dimension, "
                    f"got {len(self.bounds)} for {n_dims} dimensions"
                )
            for i, bound in enumerate(self.bounds):
                if len(bound) != 2 or not bound[0] < bound[1]:
                    errors.append(f"bounds[{i}] must be (low, high) with low < high, got: {bound}")
            if not errors:
                low, high = np.array(self.bounds).T
                for j, p in enumerate(self.init_parms):
                    if np.any(np.asarray(p) < low) or np.any(np.asarray(p) > high):
                        errors.append(f"init_parms[{j}] lies outside bounds: {p}")

        # Proposal and adaptation
        if not self.radius > 0:
            errors.append(f"radius must be positive, got: {self.radius}")
        if not 0 < self.min_radius <= self.max_radius:
            errors.append(
                f"need 0 < min_radius <= max_radius, got: {self.min_radius}, {self.max_radius}"
            )
        if not 0.0 < self.target_rate < 1.0:
            errors.append(f"target_rate must be in (0, 1), got: {self.target_rate}")
        if not _is_int(self.adapt_interval) or self.adapt_interval < 1:
            errors.append(f"adapt_interval must be positive int, got: {self.adapt_interval}")
        if not self.kappa > 0:
            errors.append(f"kappa must be positive, got: {self.kappa}")
        if not callable(self.adapt_radius) and self.adapt_radius not in ADAPTATION_POLICIES:
            errors.append(
                f"adapt_radius must be one of {list(ADAPTATION_POLICIES)} or callable, "
                f"got: {self.adapt_radius!r}"
            )

        # Deduplication
        if not _is_int(self.max_merge) or self.max_merge < 0:
            errors.append(f"max_merge must be non-negative int, got: {self.max_merge}")
        if not self.scale > 0:
            errors.append(f"scale must be positive, got: {self.scale}")
        if not _is_int(self.dedup_interval) or self.dedup_interval < 1:
            errors.append(f"dedup_interval must be positive int, got: {self.dedup_interval}")

        # Budget
        if not _is_int(self.n_iters) or self.n_iters < 1:
            errors.append(f"n_iters must be positive int, got: {self.n_iters}")
        if self.max_time is not None and not self.max_time >= 0:
            errors.append(f"max_time must be non-negative, got: {self.max_time}")
        if self.max_regions is not None and (
            not _is_int(self.max_regions) or self.max_regions < 1
        ):
            errors.append(f"max_regions must be positive int, got: {self.max_regions}")

        # Execution
        if self.n_workers is not None and (not _is_int(self.n_workers) or self.n_workers < 1):
            errors.append(f"n_workers must be positive int, got: {self.n_workers}")

        return errors

    def is_valid(self) -> bool:
        return len(self.validate()) == 0

    def raise_if_invalid(self) -> None:
        """Raise :class:`OptionsError` listing every validation problem."""
        errors = self.validate()
        if errors:
            raise OptionsError("Invalid options: " + "; ".join(errors), errors=errors)

    def to_dict(self) -> dict[str, Any]:
        """Convert options to the sectioned dictionary form."""
        out: dict[str, Any] = {
            "init_parms": [list(p) for p in self.init_parms],
            "bounds": None if self.bounds is None else [list(b) for b in self.bounds],
        }
        for section, mapping in _SECTIONS.items():
            out[section] = {
                key: getattr(self, name)
                for key, name in mapping.items()
                if name != "bounds"
            }
        return out
