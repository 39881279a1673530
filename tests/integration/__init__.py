"""
Integration Tests for parspace
==============================

End-to-end partition searches: discovery, deduplication during a run,
budgets, determinism across execution modes, and volume estimation.
"""
