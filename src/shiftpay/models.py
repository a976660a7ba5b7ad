from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

class Base(DeclarativeBase):
    pass


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class Employer(Base):
    __tablename__ = "employer"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str | None] = mapped_column(String(20))

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )

    rates: Mapped[list["Rate"]] = relationship(
        back_populates="employer",
        cascade="all, delete-orphan",
    )

    shifts: Mapped[list["Shift"]] = relationship(
        back_populates="employer",
        cascade="all, delete-orphan",
    )


class Rate(Base):
    __tablename__ = "rate"

    id: Mapped[int] = mapped_column(primary_key=True)
    employer_id: Mapped[int] = mapped_column(
        ForeignKey("employer.id"), nullable=False
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    base_rate: Mapped[float] = mapped_column(Float, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="ILS", nullable=False)

    employer: Mapped["Employer"] = relationship(back_populates="rates")

    shifts: Mapped[list["Shift"]] = relationship(back_populates="rate")


class Shift(Base):
    __tablename__ = "shift"
    __table_args__ = (
        Index("ix_shift_start_time", "start_time"),
        Index("ix_shift_employer_start_time", "employer_id", "start_time"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    employer_id: Mapped[int] = mapped_column(
        ForeignKey("employer.id"), nullable=False
    )
    rate_id: Mapped[int] = mapped_column(ForeignKey("rate.id"), nullable=False)

    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    break_minutes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)

    # Calculated at write time from the rate in effect
    regular_hours: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    overtime_hours1: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    overtime_hours2: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    total_hours: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    regular_earnings: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    overtime_earnings1: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    overtime_earnings2: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    total_earnings: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )

    employer: Mapped["Employer"] = relationship(back_populates="shifts")
    rate: Mapped["Rate"] = relationship(back_populates="shifts")
