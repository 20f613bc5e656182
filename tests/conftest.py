"""Pytest fixtures for Gatekeeper test suite"""

import os
import tempfile
import pytest
from datetime import date
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment BEFORE importing any gatekeeper modules
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["TESTING"] = "true"

# Create the test engine BEFORE importing gatekeeper modules
# StaticPool keeps one connection so every thread sees the same in-memory database
_test_engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool
)
_TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

# Patch the database module before any other imports
from gatekeeper import database
database.engine = _test_engine
database.SessionLocal = _TestingSessionLocal

# NOW import the rest of the modules
from gatekeeper.database import Base
from gatekeeper.models import Block, AutomaticBlock, Statistic
from gatekeeper.config import Config, GateConfig
from gatekeeper.resolver import RequestContext
from gatekeeper.utils.network_utils import ip_to_long

# Create all tables
Base.metadata.create_all(bind=_test_engine)

TODAY = date(2024, 5, 17)


@pytest.fixture(scope="function")
def test_engine():
    """Return the test database engine"""
    # Clear all data between tests
    Base.metadata.drop_all(bind=_test_engine)
    Base.metadata.create_all(bind=_test_engine)
    yield _test_engine


@pytest.fixture(scope="function")
def test_db(test_engine):
    """Create a test database session"""
    db = _TestingSessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()


@pytest.fixture(scope="function")
def client(test_engine, test_db):
    """Create a test client"""
    from fastapi.testclient import TestClient
    from gatekeeper.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def today():
    """Fixed date used for automatic blocks and statistics"""
    return TODAY


@pytest.fixture
def gate_config():
    """Configuration without reverse DNS so tests never hit the network"""
    return Config(gate=GateConfig(reverse_dns=False))


@pytest.fixture
def make_context():
    """Factory for request contexts from a direct connection"""
    def _make(remote_addr="203.0.113.7", headers=None, **kwargs):
        return RequestContext(
            headers=headers or {"User-Agent": "pytest-agent", "Referer": "https://example.com/"},
            remote_addr=remote_addr,
            method=kwargs.pop("method", "GET"),
            path=kwargs.pop("path", "/index"),
            **kwargs
        )
    return _make


@pytest.fixture
def exact_block(test_db):
    """Exact block rule for 198.51.100.4"""
    rule = Block(host="198.51.100.4", is_block=True)
    test_db.add(rule)
    test_db.commit()
    test_db.refresh(rule)
    return rule


@pytest.fixture
def period_block(test_db):
    """Range rule covering 192.0.2.0 - 192.0.2.255"""
    rule = Block(
        is_period=True,
        is_block=True,
        period_start=ip_to_long("192.0.2.0"),
        period_stop=ip_to_long("192.0.2.255"),
        comment="TEST-NET-1"
    )
    test_db.add(rule)
    test_db.commit()
    test_db.refresh(rule)
    return rule


@pytest.fixture
def hostname_block(test_db):
    """Hostname rule matching any host containing 'evilbot'"""
    rule = Block(host="evilbot", is_hostname=True, is_block=True)
    test_db.add(rule)
    test_db.commit()
    test_db.refresh(rule)
    return rule


@pytest.fixture
def add_automatic_block(test_db, today):
    """Factory for automatic-block records dated today"""
    def _add(ip, drop_block=None, day=None):
        record = AutomaticBlock(ip=ip, date=day or today, drop_block=drop_block)
        test_db.add(record)
        test_db.commit()
        test_db.refresh(record)
        return record
    return _add


@pytest.fixture
def sample_statistic(test_db, today):
    """Existing counters for 203.0.113.7"""
    stat = Statistic(date=today, ip="203.0.113.7", hostname="old.example.net", visits=4, visits_drops=1, requests=9)
    test_db.add(stat)
    test_db.commit()
    test_db.refresh(stat)
    return stat


@pytest.fixture
def temp_config_file():
    """Create a temporary config file for testing"""
    config_content = """
gate:
  address_headers:
    - x-real-ip
    - x-forwarded-for
  reverse_dns: false

web:
  port: 9090
"""
    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
        f.write(config_content)
        f.flush()
        yield f.name
    os.unlink(f.name)
