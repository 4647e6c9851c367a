#!/usr/bin/env python3
"""
Test suite for the subsidy matching engine.

    # Run all tests
    python -m pytest tests/ -v

    # Skip the SQLite-backed repository tests
    python -m pytest tests/ -v -m "not db"

Repository tests run against an in-memory SQLite database; no external
PostgreSQL, Redis or reasoning service is needed.
"""
