"""Domain layer (pure logic).

- Keep puzzle rules, generation and session transitions here.
- Avoid I/O: no Redis, no DB sessions, no HTTP/FastAPI.
- Prefer deterministic functions (time/random passed in as arguments).
"""
