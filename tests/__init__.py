"""
parspace Test Suite
===================

Test Categories:
- Unit Tests: chains, intersection, deduplication, adaptation, volumes, options
- Integration Tests: end-to-end partition searches
- Property Tests: geometric invariants of the intersection test

Requirements:
- pytest >= 6.2.0
- hypothesis >= 6.0.0
"""
