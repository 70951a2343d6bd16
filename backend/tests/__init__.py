"""
Test Suite

This module contains all tests for the civic escalation service.

Structure:
    tests/
    ├── __init__.py         # This file
    ├── conftest.py         # Pytest fixtures
    ├── fakes.py            # In-memory repositories and builders
    ├── unit/               # Engine, repository, service and utility tests
    └── integration/        # API endpoint tests

To run tests:
    pytest tests/
    pytest tests/unit/
    pytest tests/integration/
"""
