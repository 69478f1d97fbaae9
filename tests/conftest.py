import pathlib
import site

import pytest
from rowbinder.binding import get_registry

HERE = pathlib.Path(pathlib.Path(__file__).resolve()).parent
site.addsitedir(HERE)


@pytest.fixture(autouse=True)
def clear_registry():
    """Clear the default plan registry before and after each test to ensure test isolation."""
    get_registry().clear()
    yield
    get_registry().clear()


pytest_plugins = [
    'tests.fixtures.targets',
    'tests.fixtures.sqlite',
]
