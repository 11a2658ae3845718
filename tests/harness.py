"""Test harness for unit and integration tests.

Integration tests assume a migrated PostgreSQL reachable at DATABASE__URL
(``python scripts/run_migrations.py`` against it first).
"""

import pytest_asyncio

from recon.util.di import Component
from tests.di import build_test_container


def create_env_fixture(unmock: set[Component] | None = None):
    """Return a fixture yielding a request container over a fresh test container.

    Each test gets its own container, so in-memory state never leaks
    between tests. Components named in ``unmock`` are the real ones.

    Usage:
        # Unit tests - everything in memory
        unit_env = create_env_fixture()

        # Integration tests - real persistence, assumes postgres running
        integration_env = create_env_fixture(unmock={"persistence"})

        @pytest.mark.asyncio
        async def test_register(unit_env):
            user_service = await unit_env.get(UserService)
            user = await user_service.register(...)
            assert user.role == UserRole.SUPER_USER
    """

    @pytest_asyncio.fixture
    async def _test_environment():
        container = build_test_container(unmock=unmock or set())

        async with container() as request_container:
            yield request_container

        await container.close()

    return _test_environment
