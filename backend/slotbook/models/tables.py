from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Integer,
    String,
    Text,
    UniqueConstraint,
    false,
    text,
    true,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()
metadata = Base.metadata


class WeeklyScheduleDays(Base):
    __tablename__ = 'weekly_schedule_days'
    __table_args__ = (
        UniqueConstraint('business_id', 'weekday', name='uq_schedule_business_weekday'),
    )

    id = Column(Integer, primary_key=True)
    business_id = Column(Integer, nullable=False, index=True)
    weekday = Column(Integer, nullable=False)  # 0 = Sunday ... 6 = Saturday
    is_available = Column(Boolean, nullable=False, server_default=false())
    start_time = Column(String(5), nullable=False, server_default=text("'09:00'"))
    end_time = Column(String(5), nullable=False, server_default=text("'17:00'"))
    updated_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))


class SlotOverrides(Base):
    __tablename__ = 'slot_overrides'
    __table_args__ = (
        UniqueConstraint('business_id', 'weekday', 'slot_time', name='uq_override_business_weekday_time'),
    )

    id = Column(Integer, primary_key=True)
    business_id = Column(Integer, nullable=False, index=True)
    weekday = Column(Integer, nullable=False)
    slot_time = Column(String(5), nullable=False)
    enabled = Column(Boolean, nullable=False, server_default=true())


class AvailabilityBlocks(Base):
    __tablename__ = 'availability_blocks'

    id = Column(Integer, primary_key=True)
    business_id = Column(Integer, nullable=False, index=True)
    block_date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5))
    end_time = Column(String(5))
    reason = Column(Text)
    is_all_day = Column(Boolean, nullable=False, server_default=false())
    created_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))


class Bookings(Base):
    __tablename__ = 'bookings'
    __table_args__ = (
        UniqueConstraint('business_id', 'slot_date', 'slot_time', name='uq_booking_business_slot'),
    )

    id = Column(Integer, primary_key=True)
    business_id = Column(Integer, nullable=False, index=True)
    slot_date = Column(Date, nullable=False)
    slot_time = Column(String(5), nullable=False)
    duration_minutes = Column(Integer, nullable=False, server_default=text('60'))
    order_id = Column(String(64))
    lock_id = Column(String(32), unique=True)
    created_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))


class ReservationLocks(Base):
    """
    One row per (business, date, time) key.

    The row is live only while state == 'held' and expires_at > now.
    A dead row is reused by rotating lock_id, so the unique key never has
    to be deleted before a new hold can be granted.
    """
    __tablename__ = 'reservation_locks'
    __table_args__ = (
        UniqueConstraint('business_id', 'slot_date', 'slot_time', name='uq_lock_business_slot'),
    )

    id = Column(Integer, primary_key=True)
    lock_id = Column(String(32), nullable=False, unique=True)
    business_id = Column(Integer, nullable=False)
    slot_date = Column(Date, nullable=False)
    slot_time = Column(String(5), nullable=False)
    duration_minutes = Column(Integer, nullable=False, server_default=text('60'))
    state = Column(String(16), nullable=False, server_default=text("'held'"))  # held / released / promoted
    created_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
