"""
Real Functionality Tests Package.

These tests run against an in-memory SQLite store instead of mocks:
- Upsert and due-event queries
- Reply bookkeeping across repeated runs

Mock vs Real Strategy:
- Mock: External APIs (X, Supabase)
- Real: SQLite store, timestamps, reply sweep
"""
