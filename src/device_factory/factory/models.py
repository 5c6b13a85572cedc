"""SQLAlchemy models for device factory data, its history and VIN links."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from device_factory.common.models import Base, TimestampMixin, utcnow
from device_factory.factory.states import DeviceState


class DeviceFactoryDataModel(Base, TimestampMixin):
    __tablename__ = "device_factory_data"
    __table_args__ = (
        UniqueConstraint("imei", "serial_number", name="uq_factory_imei_serial"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    manufacturing_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    model: Mapped[str | None] = mapped_column(String(255), nullable=True)
    imei: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    serial_number: Mapped[str] = mapped_column(
        String(128), unique=True, nullable=False, index=True
    )
    platform_version: Mapped[str | None] = mapped_column(String(64), nullable=True)
    iccid: Mapped[str | None] = mapped_column(String(64), nullable=True)
    ssid: Mapped[str | None] = mapped_column(String(128), nullable=True)
    bssid: Mapped[str | None] = mapped_column(String(64), nullable=True)
    msisdn: Mapped[str | None] = mapped_column(String(64), nullable=True)
    imsi: Mapped[str | None] = mapped_column(String(64), nullable=True)
    record_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    factory_admin: Mapped[str | None] = mapped_column(String(255), nullable=True)
    state: Mapped[str] = mapped_column(
        String(32), nullable=False, default=DeviceState.PROVISIONED.value, index=True
    )
    package_serial_number: Mapped[str | None] = mapped_column(String(128), nullable=True)
    device_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    region: Mapped[str | None] = mapped_column(String(32), nullable=True)
    is_stolen: Mapped[bool] = mapped_column(Boolean, default=False)
    is_faulty: Mapped[bool] = mapped_column(Boolean, default=False)


class DeviceFactoryDataHistoryModel(Base):
    """Append-only snapshot of a factory record at each state-changing action.

    ``factory_id`` carries no foreign key so rows outlive the deleted record.
    """

    __tablename__ = "device_factory_data_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    factory_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    manufacturing_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    model: Mapped[str | None] = mapped_column(String(255), nullable=True)
    imei: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    serial_number: Mapped[str | None] = mapped_column(String(128), nullable=True)
    platform_version: Mapped[str | None] = mapped_column(String(64), nullable=True)
    iccid: Mapped[str | None] = mapped_column(String(64), nullable=True)
    ssid: Mapped[str | None] = mapped_column(String(128), nullable=True)
    bssid: Mapped[str | None] = mapped_column(String(64), nullable=True)
    msisdn: Mapped[str | None] = mapped_column(String(64), nullable=True)
    imsi: Mapped[str | None] = mapped_column(String(64), nullable=True)
    record_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    factory_admin: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    state: Mapped[str | None] = mapped_column(String(32), nullable=True)
    package_serial_number: Mapped[str | None] = mapped_column(String(128), nullable=True)
    device_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    region: Mapped[str | None] = mapped_column(String(32), nullable=True)
    action: Mapped[str] = mapped_column(String(32), nullable=False)
    created_timestamp: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )


class VinDetailsModel(Base):
    __tablename__ = "vin_details"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    vin: Mapped[str] = mapped_column(String(17), unique=True, nullable=False, index=True)
    region: Mapped[str | None] = mapped_column(String(32), nullable=True)
    reference_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("device_factory_data.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )


class DeviceAssociationModel(Base):
    """Device id to factory record link, maintained by the association service."""

    __tablename__ = "device_association"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    device_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    factory_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("device_factory_data.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )


SNAPSHOT_FIELDS = (
    "manufacturing_date", "model", "imei", "serial_number", "platform_version",
    "iccid", "ssid", "bssid", "msisdn", "imsi", "record_date", "factory_admin",
    "created_date", "state", "package_serial_number", "device_type", "region",
)
