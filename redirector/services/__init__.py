"""
Services module for business logic separation.

This module contains the counter cache and the services built on it,
keeping counting and aggregation separate from API endpoints and the store.
"""
