#!/usr/bin/env python3
"""
Test suite configuration.

All tests run against in-memory SQLite and mocked Redis, so no external
service is required:

    python -m pytest tests/ -v

    # Skip the tests that touch the database
    python -m pytest tests/ -v -m "not db"

Shared doubles and sample candidates live in tests/mocks/matcher_mocks.py.
"""
