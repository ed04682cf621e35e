from logging.config import fileConfig

from sqlalchemy import create_engine, pool
from alembic import context

from app.core.config import get_settings
from app.models import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Every ADT and pharmacy table is registered on Base via app.models.
target_metadata = Base.metadata

settings = get_settings()


def get_url() -> str:
    """
    DATABASE_URL from Settings; alembic.ini carries no sqlalchemy.url so
    migrations always target the same database as the API.
    """
    return str(settings.database_url)


def _configure_kwargs(url: str) -> dict:
    # SQLite cannot ALTER most constraints in place (CHECK on stock
    # quantity, enum columns); batch mode rebuilds the table instead.
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "compare_server_default": True,
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations_offline() -> None:
    """Emit SQL to stdout without a live connection (alembic upgrade --sql)."""
    url = get_url()
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_kwargs(url),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    url = get_url()
    connectable = create_engine(url, future=True, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, **_configure_kwargs(url))

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
