import pytest


@pytest.fixture(scope="module")
def anyio_backend() -> str:
    # pydantic-ai schedules work with asyncio.create_task, so only asyncio is supported.
    return "asyncio"
