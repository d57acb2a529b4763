import pytest
import structlog


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo configure_logging so a test's captured stderr is never reused."""
    yield
    structlog.reset_defaults()
