"""Database models for Gatekeeper"""

from sqlalchemy import (
    Column, Integer, BigInteger, String, Date, DateTime, Boolean, Text, JSON, UniqueConstraint
)
from datetime import datetime
from gatekeeper.database import Base


class Block(Base):
    """An administrator-authored block rule.

    A rule is one of three kinds:
    - exact: ``host`` holds a literal address
    - period: ``is_period`` set, ``period_start``/``period_stop`` hold an
      inclusive IPv4 range as 32-bit integers
    - hostname: ``is_hostname`` set, ``host`` is a substring matched against
      the reverse-DNS hostname (or compared literally with the address)
    """
    __tablename__ = "blocks"

    id = Column(Integer, primary_key=True, index=True)
    host = Column(String(255), nullable=True, index=True)
    is_block = Column(Boolean, default=True, nullable=False)
    is_hostname = Column(Boolean, default=False, nullable=False)
    is_period = Column(Boolean, default=False, nullable=False)
    period_start = Column(BigInteger, nullable=True)
    period_stop = Column(BigInteger, nullable=True)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.now)

    def __repr__(self):
        return f"<Block {self.host or f'{self.period_start}-{self.period_stop}'} - block={self.is_block}>"


class AutomaticBlock(Base):
    """Daily record written by the automatic-block classifier"""
    __tablename__ = "automatic_blocks"
    __table_args__ = (UniqueConstraint("ip", "date", name="uq_automatic_blocks_ip_date"),)

    id = Column(Integer, primary_key=True, index=True)
    ip = Column(String(45), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    drop_block = Column(Integer, nullable=True)  # 1 = allow, any other code = block, NULL = block
    created_at = Column(DateTime, default=datetime.now)

    def __repr__(self):
        return f"<AutomaticBlock {self.ip} - {self.date} - {self.drop_block}>"


class Visit(Base):
    """A single checked request. Rows are never updated."""
    __tablename__ = "visits"

    id = Column(Integer, primary_key=True, index=True)
    ip = Column(String(45), nullable=True, index=True)
    is_blocked = Column(Boolean, default=False, nullable=False)
    page = Column(Text, nullable=True)
    method = Column(String(10), nullable=True)
    referer = Column(Text, nullable=True)
    user_agent = Column(String(255), nullable=True)
    request_data = Column(JSON, nullable=True)  # headers, post, get
    created_at = Column(DateTime, default=datetime.now, nullable=False, index=True)

    def __repr__(self):
        return f"<Visit {self.ip} - {self.method} {self.page} - blocked={self.is_blocked}>"


class Statistic(Base):
    """Per-day, per-address visit counters"""
    __tablename__ = "statistics"
    __table_args__ = (UniqueConstraint("date", "ip", name="uq_statistics_date_ip"),)

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)
    ip = Column(String(45), nullable=False, index=True)
    hostname = Column(String(255), nullable=True)
    visits = Column(Integer, default=0, nullable=False)
    visits_drops = Column(Integer, default=0, nullable=False)
    requests = Column(Integer, default=0, nullable=False)

    def __repr__(self):
        return f"<Statistic {self.date} {self.ip} - {self.visits}/{self.visits_drops}>"
