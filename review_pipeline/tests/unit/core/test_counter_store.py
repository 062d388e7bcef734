import asyncio

import pytest

from review_pipeline.core.counter_store import CounterStore
from review_pipeline.tests.helpers import create_review_row


@pytest.fixture
def store(session_factory) -> CounterStore:
    return CounterStore(session_factory=session_factory)


@pytest.mark.asyncio
@pytest.mark.parametrize("counter", ["likes", "views"])
async def test_concurrent_increments_are_not_lost(store: CounterStore, published_review_id: int, counter: str):
    await asyncio.gather(*(store.increment(published_review_id, counter) for _ in range(10)))

    assert await store.increment(published_review_id, counter, delta=0) == 10


@pytest.mark.asyncio
async def test_increment_returns_new_value(store: CounterStore, published_review_id: int):
    assert await store.increment(published_review_id, "likes") == 1
    assert await store.increment(published_review_id, "likes", delta=2) == 3


@pytest.mark.asyncio
async def test_decrement_clamps_at_zero(store: CounterStore, session_factory):
    review_id = await create_review_row(session_factory, slug="dune", likes=1)

    assert await store.decrement(review_id, "likes") == 0
    assert await store.decrement(review_id, "likes") == 0
    assert await store.decrement(review_id, "likes", delta=5) == 0


@pytest.mark.asyncio
async def test_missing_review_returns_none(store: CounterStore):
    assert await store.increment(404, "views") is None
    assert await store.decrement(404, "likes") is None


@pytest.mark.asyncio
async def test_unknown_field_is_rejected(store: CounterStore, published_review_id: int):
    with pytest.raises(ValueError):
        await store.increment(published_review_id, "title")


@pytest.mark.asyncio
async def test_negative_delta_is_rejected(store: CounterStore, published_review_id: int):
    with pytest.raises(ValueError):
        await store.increment(published_review_id, "views", delta=-1)
