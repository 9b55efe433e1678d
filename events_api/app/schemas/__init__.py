"""
Pydantic schema definitions for API payloads.

Each domain (users, events, registrations) defines its own Pydantic
models for responses.  Schemas are separated from database rows so the
API representation never leaks storage-only columns such as password
digests.
"""
