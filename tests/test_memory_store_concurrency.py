"""
Concurrency behavior of InMemoryProductStore.

These run real threads against one store:
- Adjustments of the same product never lose updates or go negative.
- A product's lock never delays work on another product.
- Update racing delete never resurrects the deleted product.
"""

import threading

import pytest

from stock_ledger.exceptions import InsufficientStock, LockAcquireTimeout, NotFound
from stock_ledger.models import ProductChanges, ProductDraft
from stock_ledger.store import InMemoryProductStore


def _run_together(*targets, timeout: float = 5.0) -> None:
    """Start all targets behind a barrier so they contend as closely as possible."""
    barrier = threading.Barrier(len(targets))

    def gated(fn):
        def run():
            barrier.wait(timeout=timeout)
            fn()
        return run

    threads = [threading.Thread(target=gated(fn)) for fn in targets]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=timeout)
    assert not any(t.is_alive() for t in threads)


def test_two_concurrent_decreases_exactly_one_wins():
    store = InMemoryProductStore()
    product = store.create(ProductDraft(name="Widget", stock_quantity=5))
    outcomes: list[object] = []

    def decrease():
        try:
            outcomes.append(store.decrease_stock(product.id, 4).stock_quantity)
        except InsufficientStock as exc:
            outcomes.append(exc)

    _run_together(decrease, decrease)

    successes = [o for o in outcomes if isinstance(o, int)]
    failures = [o for o in outcomes if isinstance(o, InsufficientStock)]
    assert successes == [1]
    assert len(failures) == 1
    assert failures[0].available == 1
    assert store.get(product.id).stock_quantity == 1


def test_concurrent_increments_are_not_lost():
    store = InMemoryProductStore()
    product = store.create(ProductDraft(name="Widget", stock_quantity=0))
    workers, per_worker = 8, 50

    def bump():
        for _ in range(per_worker):
            store.increase_stock(product.id, 1)

    _run_together(*[bump] * workers)

    assert store.get(product.id).stock_quantity == workers * per_worker


def test_mixed_adjustments_never_drive_stock_negative():
    store = InMemoryProductStore()
    product = store.create(ProductDraft(name="Widget", stock_quantity=10))
    observed: list[int] = []
    rejected: list[int] = []

    def drain():
        for _ in range(40):
            try:
                observed.append(store.decrease_stock(product.id, 3).stock_quantity)
            except InsufficientStock:
                rejected.append(1)
            observed.append(store.get(product.id).stock_quantity)

    def refill():
        for _ in range(40):
            observed.append(store.increase_stock(product.id, 2).stock_quantity)

    _run_together(drain, drain, refill)

    assert min(observed) >= 0
    decreased = 3 * (80 - len(rejected))
    assert store.get(product.id).stock_quantity == 10 + 2 * 40 - decreased


def test_held_product_lock_does_not_block_other_products():
    store = InMemoryProductStore(lock_timeout=0.1)
    busy = store.create(ProductDraft(name="busy", stock_quantity=5))
    free = store.create(ProductDraft(name="free", stock_quantity=5))

    # Simulate a long-running adjustment of `busy`.
    assert store.lock_backend.acquire(store.lock_key(busy.id), None)
    try:
        assert store.decrease_stock(free.id, 1).stock_quantity == 4
        assert store.get(busy.id).stock_quantity == 5
        assert [p.id for p in store.list()] == [free.id, busy.id]

        with pytest.raises(LockAcquireTimeout):
            store.decrease_stock(busy.id, 1)
    finally:
        store.lock_backend.release(store.lock_key(busy.id))

    assert store.get(busy.id).stock_quantity == 5


def test_update_racing_delete_never_resurrects():
    for _ in range(50):
        store = InMemoryProductStore()
        product = store.create(ProductDraft(name="Widget", stock_quantity=5))
        update_outcome: list[object] = []

        def update():
            try:
                update_outcome.append(store.update(product.id, ProductChanges(name="renamed")))
            except NotFound as exc:
                update_outcome.append(exc)

        def delete():
            store.delete(product.id)

        _run_together(update, delete)

        assert len(update_outcome) == 1
        with pytest.raises(NotFound):
            store.get(product.id)
        assert store.list() == []
