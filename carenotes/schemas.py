"""Request and response bodies exchanged over the HTTP API."""

from __future__ import annotations

import enum
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from carenotes.models import (
    AuditLogAction,
    AuditLogActorType,
    AuditLogStatus,
    BedState,
    ImportFormat,
    MaintenanceState,
)


class BedStatus(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    number: str
    status: BedState
    last_updated: datetime


class OccupancyMetrics(BaseModel):
    """Bed counts for an organization; ``occupancy_rate`` is occupied/total."""

    total: int = Field(ge=0)
    occupied: int = Field(ge=0)
    available: int = Field(ge=0)
    maintenance: int = Field(ge=0)
    occupancy_rate: float = Field(ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _counts_fit_total(self) -> "OccupancyMetrics":
        if self.occupied + self.available + self.maintenance > self.total:
            raise ValueError("bed counts exceed the total number of beds")
        return self

    @classmethod
    def compute(
        cls, *, total: int, occupied: int, available: int, maintenance: int
    ) -> "OccupancyMetrics":
        rate = occupied / total if total > 0 else 0.0
        return cls(
            total=total,
            occupied=occupied,
            available=available,
            maintenance=maintenance,
            occupancy_rate=rate,
        )


class MaintenanceStatus(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    bed_id: UUID
    type: str
    start_date: date
    expected_end_date: date | None = None
    status: MaintenanceState


class BedOverview(BaseModel):
    beds: list[BedStatus]
    metrics: OccupancyMetrics
    maintenance: list[MaintenanceStatus]


class BankTransactionIn(BaseModel):
    transaction_date: date
    description: str = Field(min_length=1, max_length=255)
    amount: Decimal = Field(max_digits=12, decimal_places=2)
    reference: str | None = Field(default=None, max_length=128)

    @field_validator("amount")
    @classmethod
    def _non_zero(cls, value: Decimal) -> Decimal:
        if value == 0:
            raise ValueError("amount must not be zero")
        return value


class BankImportCreate(BaseModel):
    account_id: str = Field(min_length=1, max_length=64)
    format: ImportFormat = ImportFormat.CSV
    statement_date: date | None = None
    transactions: list[BankTransactionIn] = Field(min_length=1, max_length=5000)


class VerificationType(str, enum.Enum):
    ADMINISTRATION = "ADMINISTRATION"
    WITNESS = "WITNESS"
    CONTROLLED_DRUG = "CONTROLLED_DRUG"


class BarcodeType(str, enum.Enum):
    RESIDENT = "RESIDENT"
    STAFF = "STAFF"


class PINVerification(BaseModel):
    staff_id: UUID
    pin: str = Field(max_length=32)
    type: VerificationType = VerificationType.ADMINISTRATION


class WitnessVerification(BaseModel):
    administrator_id: UUID
    witness_id: UUID
    witness_pin: str = Field(max_length=32)
    type: VerificationType = VerificationType.ADMINISTRATION


class BarcodeScan(BaseModel):
    code: str = Field(min_length=1, max_length=64)


class BarcodeData(BaseModel):
    code: str
    type: BarcodeType
    entity_id: UUID
    display_name: str


class PinUpdate(BaseModel):
    new_pin: str = Field(max_length=32)


class VerificationResult(BaseModel):
    """Outcome of a staff verification check."""

    success: bool
    message: str | None = None
    hint: str | None = None
    data: dict[str, Any] | None = None
    retry: bool = False
    locked: bool = False
    requires_manager: bool = False
    requires_change: bool = False
    expired: bool = False
    requires_escalation: bool = False
    attempts_left: int | None = None


class AuditLogEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    actor: str | None
    actor_type: AuditLogActorType
    action: AuditLogAction
    status: AuditLogStatus
    entity_type: str
    entity_id: str | None
    occurred_at: datetime
    metadata_json: dict[str, Any] | None = Field(default=None, serialization_alias="metadata")


class BankTransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    position: int
    transaction_date: date
    description: str
    amount: Decimal
    reference: str | None = None


class BankImportOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    account_id: str
    format: ImportFormat
    statement_date: date | None
    imported_by: str
    transaction_count: int
    created_at: datetime
    transactions: list[BankTransactionOut]
