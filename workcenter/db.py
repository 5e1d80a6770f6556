from typing import Callable, TypeVar

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker, declarative_base

from workcenter import config  # импортируем настройки
from workcenter.errors import ConcurrencyFailure
from workcenter.logger import setup_logger

logger = setup_logger(__name__)

Base = declarative_base()

T = TypeVar("T")


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # тесты и локальный запуск: одна база на несколько потоков
        return {"connect_args": {"check_same_thread": False, "timeout": 30}}
    return {"pool_pre_ping": True, "pool_size": 10, "max_overflow": 20}


# Создаём engine
engine = create_engine(config.DATABASE_URL, **_engine_kwargs(config.DATABASE_URL))

# Фабрика сессий
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Dependency для FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Создаёт таблицы и строку счётчика заказов."""
    import workcenter.models  # noqa: F401
    from workcenter.services.sequence import ensure_sequence

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        ensure_sequence(db)
        db.commit()
    finally:
        db.close()


def run_with_retry(db: Session, work: Callable[[], T], retries: int = None) -> T:
    """
    Выполняет единицу работы в одной транзакции и коммитит её.

    Повторяется только ConcurrencyFailure (блокировки, сериализация, гонка
    уникальных ключей под нагрузкой); любая другая ошибка откатывает
    транзакцию и уходит наверх как есть.
    """
    attempts = 1 + (config.ALLOCATION_RETRIES if retries is None else retries)
    for attempt in range(1, attempts + 1):
        try:
            result = work()
            db.commit()
            return result
        except ConcurrencyFailure:
            db.rollback()
            if attempt == attempts:
                raise
            logger.warning(f"Transaction conflict, retrying ({attempt}/{attempts - 1})")
        except OperationalError as e:
            db.rollback()
            if attempt == attempts:
                raise ConcurrencyFailure("Could not complete the operation, please retry") from e
            logger.warning(f"Store error, retrying ({attempt}/{attempts - 1}): {e.orig}")
        except Exception:
            db.rollback()
            raise


def flush_or_conflict(db: Session) -> None:
    """flush(), где нарушение уникальности под гонкой = ConcurrencyFailure."""
    try:
        db.flush()
    except IntegrityError as e:
        raise ConcurrencyFailure("Concurrent update detected") from e
