from __future__ import annotations

import enum
import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Enum, ForeignKey, Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from carenotes.models.base import Base, TimestampMixin


class ImportFormat(str, enum.Enum):
    """Bank statement file formats accepted by the importer."""

    CSV = "CSV"
    OFX = "OFX"
    QIF = "QIF"


class BankImport(Base, TimestampMixin):
    """One imported bank statement."""

    __tablename__ = "bank_imports"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), index=True
    )
    account_id: Mapped[str] = mapped_column(String(64), nullable=False)
    format: Mapped[ImportFormat] = mapped_column(
        Enum(ImportFormat, name="bank_import_format"), default=ImportFormat.CSV, nullable=False
    )
    statement_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    imported_by: Mapped[str] = mapped_column(String(255), nullable=False)
    transaction_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    transactions: Mapped[list["BankTransaction"]] = relationship(
        back_populates="bank_import", cascade="all, delete-orphan", order_by="BankTransaction.position"
    )


class BankTransaction(Base):
    """A statement line belonging to a bank import."""

    __tablename__ = "bank_transactions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    bank_import_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("bank_imports.id", ondelete="CASCADE"), index=True
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    reference: Mapped[str | None] = mapped_column(String(128), nullable=True)

    bank_import: Mapped[BankImport] = relationship(back_populates="transactions")
