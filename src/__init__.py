"""
Celestial Echo - Light round-trip times for celestial bodies, on X.

Mention @celestial_echo with the name of a body ("@celestial_echo Mars")
and the bot asks JPL HORIZONS how far away it is, then replies once a
signal would have made the round trip.

Modules:
    bot: Orchestrator running one ingestion pass and one reply sweep
    mentions: Per-mention resolution and dedup-guarded replies
    ephemeris: Ephemeris Gateway - runs the HORIZONS lookup process
    classifier: Tagged interpretation of the lookup's exit status
    round_trip: Delay, deadline and reply formatting
    events: PendingEvent records
    dedup: Dedup Guard for disambiguation replies
    cursor: Ingestion high-water mark
    reply_worker: Deferred Reply Scheduler
    x_client: Twikit adapter for mentions and replies
    database: Supabase store
    database_sqlite: SQLite store

Entry Point:
    python -m src.bot
"""

__version__ = "0.1.0"
