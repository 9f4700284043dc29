# Ensure project root is on sys.path so 'toolkit_core' and 'tests.fixtures' are
# importable when running pytest without installing the package.
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).parent.resolve()
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def reset_error_aggregator():
    """Keep structured error counts from leaking between tests."""
    yield
    from toolkit_core.logging_config import error_aggregator

    error_aggregator.clear()
