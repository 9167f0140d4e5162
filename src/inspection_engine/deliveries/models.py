"""SQLAlchemy model for government deliveries."""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from inspection_engine.common.models import Base, TimestampMixin, generate_uuid


class DeliveryStatus(str, enum.Enum):
    AWAITING_DEPARTURE = "aguardando_saida"
    IN_TRANSIT = "em_transito"
    DELIVERED = "entregue"
    PENDING_ISSUE = "com_pendencia"


class GovernmentDeliveryModel(Base, TimestampMixin):
    __tablename__ = "government_deliveries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    inspection_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("inspections.id", ondelete="CASCADE"),
        unique=True, nullable=False,
    )
    driver_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("drivers.id", ondelete="SET NULL"), nullable=True
    )

    agency: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    agency_cnpj: Mapped[Optional[str]] = mapped_column(String(18), nullable=True)
    delivery_address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(2), nullable=True, index=True)

    invoice_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    invoice_series: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    nfe_key: Mapped[Optional[str]] = mapped_column(String(44), nullable=True)

    carrier: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    vehicle_plate: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    departed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    expected_delivery_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    delivered_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    receiver_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    receiver_role: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    receiver_document: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    receiver_signature: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(
        String(20), default=DeliveryStatus.AWAITING_DEPARTURE.value, nullable=False, index=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
