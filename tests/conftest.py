"""
Pytest configuration and fixtures
"""

import pytest
from sqlalchemy import create_engine, func, select
from processors.sui_package_indexer import models  # noqa: F401 registers tables
from processors.sui_package_indexer.processor import SuiIndexer
from tests.factories import PACKAGE_P
from utils.models.general_models import Base
from utils.session import Session


@pytest.fixture
def sqlite_url(tmp_path):
    return f"sqlite:///{tmp_path / 'indexer.db'}"


@pytest.fixture
def engine(sqlite_url):
    """File backed sqlite database with all tables created"""
    engine = create_engine(sqlite_url).execution_options(
        schema_translate_map={"per_schema": None}
    )
    Base.metadata.create_all(engine)
    Session.configure(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def processor():
    indexer = SuiIndexer()
    indexer.set_filter_package(PACKAGE_P)
    return indexer.build()


@pytest.fixture
def count_rows(engine):
    def _count_rows(model) -> int:
        with Session() as session:
            return session.scalar(select(func.count()).select_from(model))

    return _count_rows
