"""
Unit Tests Package.

Tests for single components: classification, round-trip arithmetic,
event building, failure policies and the X and ephemeris adapters.
"""
