"""Test data factories."""

from tests.factories.chain_factory import (
    make_gaussian_chain,
    make_short_chain,
    make_sphere_chain,
)

__all__ = ["make_gaussian_chain", "make_short_chain", "make_sphere_chain"]
