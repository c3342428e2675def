"""Verification session lookup: store adapters, models and resolver."""
