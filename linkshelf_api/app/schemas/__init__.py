"""
Pydantic schema definitions for API payloads.

Schemas are separated from the SQL rows to decouple the API
representation from persistence.
"""
