"""Configuration, logging, security and database plumbing."""
