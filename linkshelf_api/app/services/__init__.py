"""
Service layer.

Each service encapsulates the business logic for one concern and is
constructed around an injected ``Database``, so handlers never touch
SQL directly.
"""
