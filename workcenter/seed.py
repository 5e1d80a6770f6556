# workcenter/seed.py: python -m workcenter.seed
from workcenter.db import SessionLocal, init_db
from workcenter.logger import setup_logger
from workcenter.models.user import User
from workcenter.services.settings import BRAND_NAME, get_settings, set_setting
from workcenter import config
from workcenter.utils.enums import UserRole, UserStatus
from workcenter.utils.security import hash_password

logger = setup_logger(__name__)

DEFAULT_USERS = [
    {"name": "Jordan S", "username": "jordan.admin", "role": UserRole.ADMIN.value, "password": "739204"},
    {"name": "Kaden S", "username": "kaden.standard", "role": UserRole.STANDARD.value, "password": "418672"},
]


def run_seed():
    # таблицы + строка счётчика заказов
    init_db()

    db = SessionLocal()
    try:
        # существующее название не перезаписываем
        if not get_settings(db, [BRAND_NAME]):
            set_setting(db, BRAND_NAME, config.DEFAULT_BRAND_NAME)

        for u in DEFAULT_USERS:
            user = db.query(User).filter(User.username == u["username"]).first()
            if user is None:
                user = User(username=u["username"], password_hash=hash_password(u["password"]))
                db.add(user)
            user.name = u["name"]
            user.role = u["role"]
            user.status = UserStatus.ACTIVE.value
        db.commit()
        logger.info("Seed complete")
        for u in DEFAULT_USERS:
            print(f"- {u['username']} / {u['password']} ({u['role']})")
    finally:
        db.close()


if __name__ == "__main__":
    run_seed()
