import os
import sys
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

# -----------------------------------------------------------
# 加入專案根目錄到 sys.path，這樣才 import 得到 core / domains
# -----------------------------------------------------------
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

# -----------------------------------------------------------
# 一定要 Import 具體的 Model (Payment)，不然 metadata 會是空的
# -----------------------------------------------------------
from sqlmodel import SQLModel  # noqa: E402

import domains.payment.model  # noqa: E402,F401
from core.config import load_settings  # noqa: E402

target_metadata = SQLModel.metadata

config = context.config

# 用環境變數的 DATABASE_URL，而不是 ini 裡的死字串
database_url = load_settings().database_url
if database_url:
    config.set_main_option("sqlalchemy.url", database_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
