"""
Version 1 of the API.

Served under ``/api`` without a version segment, matching the paths
the web client already calls.
"""
