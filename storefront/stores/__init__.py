"""Data stores for persistence and locking.

Stores handle:
- PostgreSQL: engine/session, listing repository, conditional stock UPDATE
- Redis: distributed purchase locks with TTL
- In-process locks for single-worker deployments

No business rules in stores - that belongs in services.
"""
