import pytest

from drivenmicro.app.container import DIContainer
from drivenmicro.config import ApplicationConfig, Environment, reset_config, set_config
from drivenmicro.persistence.memory import MemoryStore


@pytest.fixture
def app_config():
    config = ApplicationConfig.for_environment(Environment.TESTING)
    set_config(config)
    yield config
    reset_config()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def container():
    container = DIContainer()
    yield container
    container.shutdown()
