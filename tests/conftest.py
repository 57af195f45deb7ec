"""
Shared test setup.

Django is configured once per run from DATABASE_URL when it points at
PostgreSQL, in-memory SQLite otherwise. The `store` fixture runs a test
against both the in-memory and the Django-backed store.
"""

import os
from datetime import datetime, timedelta, timezone

import pytest

from stock_ledger.retry import RetryPolicy
from stock_ledger.store import InMemoryProductStore


def _configure_django_if_needed() -> None:
    from django.conf import settings

    if settings.configured:
        return

    from stock_ledger.config import database_settings

    database_url = os.environ.get("DATABASE_URL", "")
    if not database_url.startswith(("postgres://", "postgresql://")):
        database_url = "sqlite://:memory:"

    settings.configure(
        SECRET_KEY="test",
        INSTALLED_APPS=["stock_ledger.inventory"],
        DATABASES={"default": database_settings(database_url)},
        ALLOWED_HOSTS=["testserver"],
        TIME_ZONE="UTC",
        USE_TZ=True,
    )

    import django

    django.setup()


def pytest_configure(config) -> None:
    _configure_django_if_needed()


class TickingClock:
    """Deterministic clock: every call is one second after the previous one."""

    def __init__(self) -> None:
        self.now = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture(scope="session")
def product_table():
    """Create the ProductRecord table for the session, dropping any leftover."""
    from django.db import connection

    from stock_ledger.inventory.models import ProductRecord

    table = ProductRecord._meta.db_table
    leftover = table in connection.introspection.table_names()

    with connection.schema_editor() as editor:
        if leftover:
            editor.delete_model(ProductRecord)
        editor.create_model(ProductRecord)

    yield ProductRecord

    with connection.schema_editor() as editor:
        editor.delete_model(ProductRecord)


@pytest.fixture
def django_store(product_table, clock):
    from stock_ledger.inventory.store import DjangoProductStore

    yield DjangoProductStore(retry=RetryPolicy(attempts=3, backoff=0), clock=clock)

    product_table.objects.all().delete()


@pytest.fixture(params=["memory", "django"])
def store(request, clock):
    if request.param == "memory":
        return InMemoryProductStore(clock=clock)
    return request.getfixturevalue("django_store")
