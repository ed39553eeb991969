"""
Pydantic schema definitions for API payloads.

Schemas are separated from the SQLite rows the services read so the
API representation can evolve independently of persistence.
"""
