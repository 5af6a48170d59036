"""
Integration Tests Package.

These tests wire the mention processor, dedup guard, reply sweep and
orchestrator together with a real SQLite store, a scripted ephemeris
gateway and a mocked X client.
"""
