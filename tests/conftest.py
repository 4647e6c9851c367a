"""
Pytest configuration and fixtures.

This file provides pytest-specific configuration and shared fixtures.
Fakes for external collaborators live in tests/mocks/.
"""

from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.models import CompanyProfile, SubsidyCandidate


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "db: marks tests as requiring a database (deselect with '-m \"not db\"')"
    )


@pytest.fixture
def sqlite_session_factory():
    """Session factory bound to a fresh in-memory SQLite database with all tables."""
    from database.models import Base

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def today():
    return date(2025, 3, 1)


@pytest.fixture
def breton_farm():
    return CompanyProfile(
        id="profile-1",
        company_name="Ferme du Trégor",
        sector="Agriculture",
        region="Bretagne",
        employees="12",
        naf_label="Culture de légumes",
    )


@pytest.fixture
def breton_farm_subsidy():
    return SubsidyCandidate(
        id="sub-agri",
        title="Aide agricole bretonne",
        region=["Bretagne"],
        primary_sector="agriculture",
    )
