"""SQLAlchemy models for inspections, checklist items and photos."""

import enum
from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from inspection_engine.common.models import Base, TimestampMixin, generate_uuid


class ProcessType(str, enum.Enum):
    INSTALACAO_ENTRADA_TARGET = "instalacao_entrada_target"
    ENTRADA_CBMAQ = "entrada_cbmaq"
    SAIDA_CBMAQ = "saida_cbmaq"
    ENTRADA_DNM = "entrada_dnm"
    SAIDA_DNM = "saida_dnm"
    ENTREGA_GOVERNO = "entrega_governo"


class InspectionStatus(str, enum.Enum):
    IN_PROGRESS = "em_andamento"
    FINALIZED = "finalizada"
    APPROVED = "aprovada"
    REJECTED = "reprovada"


class ItemStatus(str, enum.Enum):
    OK = "A"
    NEEDS_REPAIR = "B"
    NOT_APPLICABLE = "C"


class PhotoType(str, enum.Enum):
    HORIMETER = "horimeter"
    IDENTIFICATION_PLATES = "identification_plates"
    ENGINE = "engine"
    FRONT = "front"
    SIDES = "sides"
    REAR = "rear"
    CABIN = "cabin"
    KEYS = "keys"
    TOOLBOX = "toolbox"


class InspectionModel(Base, TimestampMixin):
    __tablename__ = "inspections"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    inspection_date: Mapped[date] = mapped_column(Date, nullable=False)
    process_type: Mapped[str] = mapped_column(String(40), nullable=False, index=True)
    model: Mapped[str] = mapped_column(String(100), nullable=False)
    model_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("machine_models.id", ondelete="SET NULL"), nullable=True
    )
    serial_number: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    horimeter: Mapped[int] = mapped_column(Integer, nullable=False)
    freight_responsible: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=InspectionStatus.IN_PROGRESS.value, nullable=False, index=True
    )

    # Signatures
    entry_signature: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    entry_technician_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    entry_technician_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    entry_signature_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    exit_signature: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    exit_technician_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    exit_technician_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    exit_signature_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    driver_signature: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    driver_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    driver_signature_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    driver_documents_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Observations
    general_observations: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    has_fault_codes: Mapped[bool] = mapped_column(Boolean, default=False)
    fault_codes_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    codes_corrected: Mapped[bool] = mapped_column(Boolean, default=False)

    # Approval
    approved_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    approval_observations: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_by: Mapped[str] = mapped_column(String(36), nullable=False, index=True)


class InspectionItemModel(Base, TimestampMixin):
    __tablename__ = "inspection_items"
    __table_args__ = (
        UniqueConstraint(
            "inspection_id", "category", "item_description", name="uq_inspection_item"
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    inspection_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("inspections.id", ondelete="CASCADE"), nullable=False, index=True
    )
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    item_description: Mapped[str] = mapped_column(String(500), nullable=False)
    entry_status: Mapped[Optional[str]] = mapped_column(String(1), nullable=True)
    exit_status: Mapped[Optional[str]] = mapped_column(String(1), nullable=True)
    problem_description: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)


class InspectionPhotoModel(Base, TimestampMixin):
    __tablename__ = "inspection_photos"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    inspection_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("inspections.id", ondelete="CASCADE"), nullable=False, index=True
    )
    photo_type: Mapped[str] = mapped_column(String(40), nullable=False)
    photo_url: Mapped[str] = mapped_column(String(500), nullable=False)
    media_type: Mapped[str] = mapped_column(String(10), default="image", nullable=False)
