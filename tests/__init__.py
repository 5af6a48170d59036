"""
Test Suite for Celestial Echo.

Structure:
    tests/
    ├── conftest.py          # Shared fixtures and configuration
    ├── unit/                # Pure logic and mocked adapters
    │   ├── test_classifier.py
    │   ├── test_round_trip.py
    │   ├── test_events.py
    │   ├── test_dedup.py
    │   ├── test_ephemeris.py
    │   ├── test_database.py
    │   └── test_x_client.py
    ├── integration/         # Components wired together (mocked X)
    │   ├── test_mentions_integration.py
    │   └── test_bot_cycle.py
    └── real/                # Real SQLite store
        ├── test_database_real.py
        └── test_reply_worker_real.py

Run tests:
    pytest tests/                    # All tests
    pytest tests/unit/               # Unit tests only
    pytest tests/real/               # Real functionality tests only
    pytest tests/integration/        # Integration tests only
    pytest tests/ -m real            # Tests marked @pytest.mark.real
"""
