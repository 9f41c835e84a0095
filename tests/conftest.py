import asyncio

import pytest


@pytest.fixture(autouse=True)
def _event_loop():
    """Give each test a current event loop; ``asyncio.run`` in other tests clears it."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    asyncio.set_event_loop(None)
    loop.close()
