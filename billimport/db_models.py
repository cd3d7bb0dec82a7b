from datetime import UTC, datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


def utc_now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class JobExecution(Base):
    __tablename__ = "job_executions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    job_name: Mapped[str] = mapped_column(String(128), index=True)
    status: Mapped[str] = mapped_column(String(16), default="STARTING", index=True)
    exit_code: Mapped[str] = mapped_column(String(32), default="UNKNOWN")
    exit_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_time: Mapped[datetime] = mapped_column(DateTime, default=utc_now)
    end_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    read_count: Mapped[int] = mapped_column(Integer, default=0)
    write_count: Mapped[int] = mapped_column(Integer, default=0)
    filter_count: Mapped[int] = mapped_column(Integer, default=0)
    last_updated: Mapped[datetime] = mapped_column(DateTime, default=utc_now)

    failed_bills: Mapped[list["FailedElectricityBill"]] = relationship(
        back_populates="job_execution", cascade="all, delete-orphan"
    )


class ElectricityBill(Base):
    __tablename__ = "electricity_bills"
    __table_args__ = (UniqueConstraint("consumer_no", "area", name="uq_consumer_area"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    consumer_no: Mapped[str] = mapped_column(String(32), nullable=False)
    area: Mapped[str] = mapped_column(String(64), nullable=False)
    consumer_name: Mapped[str] = mapped_column(String(128), nullable=False)
    billing_month: Mapped[str] = mapped_column(String(7), nullable=False)
    units_consumed: Mapped[int] = mapped_column(Integer, nullable=False)
    amount_due: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)


class FailedElectricityBill(Base):
    __tablename__ = "failed_electricity_bills"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    job_execution_id: Mapped[int] = mapped_column(ForeignKey("job_executions.id", ondelete="CASCADE"), index=True)
    row_number: Mapped[int] = mapped_column(Integer)
    raw_data: Mapped[str] = mapped_column(Text)
    error_message: Mapped[str] = mapped_column(Text)
    failed_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)

    job_execution: Mapped[JobExecution] = relationship(back_populates="failed_bills")
