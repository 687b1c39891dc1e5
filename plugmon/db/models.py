"""
SQLAlchemy ORM models for the plug store.

Declares the ``plug``, ``result`` and ``average`` tables. The models are
only used to create the schema; all runtime access goes through
parameterized statements executed by the storage gateway.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-002)
- 2026-10-13: Add average table (STORY-005)

TODO:
- None
"""

from sqlalchemy import BigInteger, Double, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Metric columns shared by the result and average tables, in insert order.
METRIC_COLUMNS: tuple[str, ...] = (
    "voltage",
    "current",
    "active_power",
    "apparent_power",
    "reactive_power",
    "power_factor",
)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all plug store models."""

    pass


class Plug(Base):
    """A smart plug, identified by its unique name."""

    __tablename__ = "plug"

    plug_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    plug_name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)

    def __repr__(self) -> str:
        """Return string representation of the Plug."""
        return f"Plug(plug_id={self.plug_id!r}, plug_name={self.plug_name!r})"


class PlugResult(Base):
    """One raw power reading from a plug.

    Duplicates (same plug, same timestamp) are allowed; rows are never
    updated after insert.

    Attributes:
        result_id: Surrogate key.
        plug_id: Owning plug.
        timestamp_ms: Reading time in epoch milliseconds.
        voltage: Volts.
        current: Amperes.
        active_power: Watts.
        apparent_power: Volt-amperes.
        reactive_power: Volt-amperes reactive.
        power_factor: Ratio between active and apparent power.
    """

    __tablename__ = "result"
    __table_args__ = (Index("ix_result_plug_timestamp", "plug_id", "timestamp_ms"),)

    result_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    plug_id: Mapped[int] = mapped_column(ForeignKey("plug.plug_id"), nullable=False)
    timestamp_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)
    voltage: Mapped[float] = mapped_column(Double, nullable=False)
    current: Mapped[float] = mapped_column(Double, nullable=False)
    active_power: Mapped[float] = mapped_column(Double, nullable=False)
    apparent_power: Mapped[float] = mapped_column(Double, nullable=False)
    reactive_power: Mapped[float] = mapped_column(Double, nullable=False)
    power_factor: Mapped[float] = mapped_column(Double, nullable=False)

    def __repr__(self) -> str:
        """Return string representation of the PlugResult."""
        return (
            f"PlugResult(plug_id={self.plug_id!r}, "
            f"timestamp_ms={self.timestamp_ms!r}, "
            f"active_power={self.active_power!r})"
        )


class PlugAverage(Base):
    """Mean of a plug's results over one fixed-width bucket.

    Logically unique per (plug_id, bucket_start_ms, duration_ms). The
    index on that key is deliberately not unique: duplicates are
    detected and reported by the aggregation service.
    """

    __tablename__ = "average"
    __table_args__ = (
        Index("ix_average_bucket", "plug_id", "bucket_start_ms", "duration_ms"),
    )

    average_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    plug_id: Mapped[int] = mapped_column(ForeignKey("plug.plug_id"), nullable=False)
    bucket_start_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)
    duration_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)
    voltage: Mapped[float] = mapped_column(Double, nullable=False)
    current: Mapped[float] = mapped_column(Double, nullable=False)
    active_power: Mapped[float] = mapped_column(Double, nullable=False)
    apparent_power: Mapped[float] = mapped_column(Double, nullable=False)
    reactive_power: Mapped[float] = mapped_column(Double, nullable=False)
    power_factor: Mapped[float] = mapped_column(Double, nullable=False)

    def __repr__(self) -> str:
        """Return string representation of the PlugAverage."""
        return (
            f"PlugAverage(plug_id={self.plug_id!r}, "
            f"bucket_start_ms={self.bucket_start_ms!r}, "
            f"duration_ms={self.duration_ms!r})"
        )
