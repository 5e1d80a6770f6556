from concurrent.futures import ThreadPoolExecutor

from sqlalchemy import delete

from workcenter.db import SessionLocal, run_with_retry
from workcenter.models.order import OrderSequence
from workcenter.services.sequence import allocate_next, ensure_sequence, format_order_number


def _current(db) -> int:
    db.expire_all()
    return db.get(OrderSequence, 1).current


def test_format_order_number():
    assert format_order_number(1) == "ORD000001"
    assert format_order_number(42) == "ORD000042"
    assert format_order_number(123456) == "ORD123456"


def test_allocations_are_sequential(db):
    numbers = [run_with_retry(db, lambda: allocate_next(db)) for _ in range(3)]
    assert numbers == ["ORD000001", "ORD000002", "ORD000003"]
    assert _current(db) == 3


def test_bootstraps_missing_counter_row(db):
    db.execute(delete(OrderSequence))
    db.commit()

    assert run_with_retry(db, lambda: allocate_next(db)) == "ORD000001"
    assert _current(db) == 1


def test_ensure_sequence_is_idempotent(db):
    ensure_sequence(db)
    ensure_sequence(db)
    db.commit()
    assert db.query(OrderSequence).count() == 1


def test_rolled_back_allocation_leaves_no_gap(db):
    allocate_next(db)
    db.rollback()

    assert run_with_retry(db, lambda: allocate_next(db)) == "ORD000001"


def test_concurrent_allocations_are_unique_and_contiguous(db):
    db.query(OrderSequence).filter(OrderSequence.id == 1).update({"current": 41})
    db.commit()

    def allocate(_):
        session = SessionLocal()
        try:
            return run_with_retry(session, lambda: allocate_next(session), retries=10)
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=8) as pool:
        numbers = list(pool.map(allocate, range(20)))

    assert len(set(numbers)) == 20
    assert sorted(numbers) == [format_order_number(n) for n in range(42, 62)]
    assert _current(db) == 61
