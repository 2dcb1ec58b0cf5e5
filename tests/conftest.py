"""
Test Configuration

- Environment is set before any box_office module reads settings at import time
- Unit tests (tests/**/unit/) drive use cases against an AsyncMock unit of work
- Integration tests (tests/**/integration/) run against a fresh SQLite file per test
"""

# =============================================================================
# Environment setup MUST happen before any box_office import
# =============================================================================
import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    test_dir = Path(__file__).parent
    test_log_dir = test_dir / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)

    # Nothing should reach a real PostgreSQL from the test suite
    os.environ['DATABASE_URL'] = f'sqlite+aiosqlite:///{test_dir / "test_log" / "default.db"}'
    os.environ.setdefault('DEPLOY_ENV', 'test')


_early_setup_test_environment()

import pytest  # noqa: E402


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        path = str(item.path)
        if f'{os.sep}unit{os.sep}' in path:
            item.add_marker(pytest.mark.unit)
        elif f'{os.sep}integration{os.sep}' in path:
            item.add_marker(pytest.mark.integration)
