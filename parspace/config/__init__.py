"""Sampler configuration."""

from parspace.config.options import Options

__all__ = ["Options"]
