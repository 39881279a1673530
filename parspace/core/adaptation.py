"""Proposal radius adaptation.

Two interchangeable policies share the signature ``policy(chain, options)``
and update ``chain.radius`` in place:

- :func:`adapt` steers the acceptance rate towards ``options.target_rate``
- :func:`no_adaption` leaves the radius fixed

The sampler picks one policy with :func:`resolve_adaptation` before the run
starts.
"""

from __future__ import annotations

from collections.abc import Callable

import numpy as np

from parspace.core.chain import Chain
from parspace.core.exceptions import OptionsError

AdaptationPolicy = Callable[[Chain, object], None]


def adapt(chain: Chain, options) -> None:
    """Rescale the proposal radius from the trailing acceptance window.

    Every ``options.adapt_interval`` own steps the acceptance rate over the
    last ``adapt_interval`` steps is compared with ``options.target_rate``:
    a higher rate grows the radius, a lower rate shrinks it, by the factor
    ``exp(kappa * (rate - target_rate))``. The result is clamped to
    ``[min_radius, max_radius]``.
    """
    interval = options.adapt_interval
    if chain.n_steps == 0 or chain.n_steps % interval != 0:
        return

    rate = np.mean(chain.recent_acceptance(interval))
    radius = chain.radius * np.exp(options.kappa * (rate - options.target_rate))
    chain.radius = float(np.clip(radius, options.min_radius, options.max_radius))


def no_adaption(chain: Chain, options) -> None:
    """Keep the proposal radius fixed."""
    return None


_POLICIES: dict[str, AdaptationPolicy] = {
    "adapt": adapt,
    "none": no_adaption,
}


def resolve_adaptation(options) -> AdaptationPolicy:
    """Select the adaptation policy named by ``options.adapt_radius``."""
    policy = options.adapt_radius
    if callable(policy):
        return policy
    try:
        return _POLICIES[policy]
    except (KeyError, TypeError):
        message = f"unknown adaptation policy: {policy!r}"
        raise OptionsError(message, errors=[message]) from None
