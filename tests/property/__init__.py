"""Property-based tests for geometric invariants."""
