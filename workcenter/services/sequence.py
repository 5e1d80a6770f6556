from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from workcenter.errors import ConcurrencyFailure
from workcenter.models.order import OrderSequence

SEQUENCE_ID = 1
ORDER_PREFIX = "ORD"
ORDER_DIGITS = 6


def format_order_number(value: int) -> str:
    return f"{ORDER_PREFIX}{value:0{ORDER_DIGITS}d}"


def ensure_sequence(db: Session) -> None:
    """Создаёт строку счётчика, если её ещё нет (повторный вызов ничего не делает)."""
    if db.get(OrderSequence, SEQUENCE_ID) is None:
        db.add(OrderSequence(id=SEQUENCE_ID, current=0))
        try:
            db.flush()
        except IntegrityError as e:
            # параллельный bootstrap успел раньше
            raise ConcurrencyFailure("Order sequence bootstrap conflict") from e


def _increment(db: Session) -> int:
    # UPDATE берёт блокировку строки до конца транзакции, так что
    # параллельные выдачи выстраиваются в очередь, а не читают одно значение
    return db.execute(
        update(OrderSequence)
        .where(OrderSequence.id == SEQUENCE_ID)
        .values(current=OrderSequence.current + 1)
        .execution_options(synchronize_session=False)
    ).rowcount


def allocate_next(db: Session) -> str:
    """
    Выдаёт следующий номер заказа (ORD000001, ORD000002, ...).

    Работает в транзакции вызывающего: приращение становится постоянным только
    вместе с его commit(), поэтому откат создания заказа не оставляет дыр.
    Ошибки хранилища (ожидание блокировки, сериализация) -> ConcurrencyFailure,
    вызывающий повторяет всю транзакцию.
    """
    try:
        if _increment(db) == 0:
            ensure_sequence(db)
            _increment(db)
        current = db.execute(
            select(OrderSequence.current).where(OrderSequence.id == SEQUENCE_ID)
        ).scalar_one()
    except OperationalError as e:
        raise ConcurrencyFailure("Could not allocate an order number") from e
    return format_order_number(current)
