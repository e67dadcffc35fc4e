"""
Test Suite

Tests for the DACO application workflow backend.

Structure:
    tests/
    ├── __init__.py         # This file
    ├── conftest.py         # Pytest fixtures
    ├── fakes.py            # In-memory repositories and sender
    ├── unit/               # Unit tests
    │   ├── test_engine/    # State machine, audit log, revisions, validation
    │   ├── test_services/  # Application service, scheduler, notifications
    │   ├── test_repositories/
    │   └── test_utils/     # Utility tests
    └── integration/        # Integration tests
        └── test_api/       # API endpoint tests

To run tests:
    pytest backend/tests/
    pytest backend/tests/unit/
    pytest backend/tests/integration/
"""
