from __future__ import annotations

import enum
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List

from sqlalchemy import (
    String, Integer, Boolean, DateTime, Date, Numeric, ForeignKey, Text,
    Enum as SAEnum, UniqueConstraint, Index, CheckConstraint, func
)

from sqlalchemy.orm import (
    DeclarativeBase, Mapped, mapped_column, relationship
)


# base
class Base(DeclarativeBase):
    pass

# enums = status
class PaymentType(str, enum.Enum):
    CASH = "cash"
    CREDIT = "credit"

class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    PIX = "pix"
    DEBIT_CARD = "debit_card"
    CREDIT_CARD = "credit_card"
    TRANSFER = "transfer"

class SaleStatus(str, enum.Enum):
    OPEN = "open"
    PAID = "paid"
    CANCELED = "canceled"

class ReceivableStatus(str, enum.Enum):
    OPEN = "open"
    PARTIAL = "partial"
    OVERDUE = "overdue"
    PAID = "paid"

class ExpenseType(str, enum.Enum):
    FIXED = "fixed"
    VARIABLE = "variable"

# models
class CustomerORM(Base):
    __tablename__ = "customers"
    __table_args__ = (
        Index("ix_customers_name", "name"),
        Index("ix_customers_phone", "phone"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(140), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    cpf: Mapped[Optional[str]] = mapped_column(String(14), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    sales: Mapped[List["SaleORM"]] = relationship(back_populates="customer")
    receivables: Mapped[List["ReceivableORM"]] = relationship(back_populates="customer")

class ProductORM(Base):
    __tablename__ = "products"
    __table_args__ = (
        Index("ix_products_name", "name"),
        Index("ix_products_brand", "brand"),
        CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    name: Mapped[str] = mapped_column(String(140), nullable=False)
    brand: Mapped[str] = mapped_column(String(80), nullable=False, default="")
    # tamanho/volume, ex.: "100ml"
    size: Mapped[str] = mapped_column(String(40), nullable=False, default="")

    purchase_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    sale_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    stock_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # exclusão lógica
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    sale_items: Mapped[List["SaleItemORM"]] = relationship(back_populates="product")

class SaleORM(Base):
    __tablename__ = "sales"
    __table_args__ = (
        Index("ix_sales_status", "status"),
        Index("ix_sales_payment_type", "payment_type"),
        Index("ix_sales_date", "sale_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    sale_date: Mapped[date] = mapped_column(Date, nullable=False)
    customer_id: Mapped[Optional[int]] = mapped_column(ForeignKey("customers.id"), nullable=True)

    payment_type: Mapped[PaymentType] = mapped_column(
        SAEnum(PaymentType, name="payment_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=PaymentType.CASH,
    )

    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    discount_percent: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=0)
    discount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    status: Mapped[SaleStatus] = mapped_column(
        SAEnum(SaleStatus, name="sale_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=SaleStatus.OPEN,
    )
    canceled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # relações
    customer: Mapped[Optional["CustomerORM"]] = relationship(back_populates="sales")

    items: Mapped[List["SaleItemORM"]] = relationship(
        back_populates="sale", cascade="all, delete-orphan", order_by="SaleItemORM.id"
    )
    receivables: Mapped[List["ReceivableORM"]] = relationship(
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="ReceivableORM.installment_number",
    )
    payments: Mapped[List["PaymentORM"]] = relationship(
        back_populates="sale", order_by="PaymentORM.id"
    )

class SaleItemORM(Base):
    __tablename__ = "sale_items"
    __table_args__ = (
        Index("ix_sale_items_sale", "sale_id"),
        CheckConstraint("quantity > 0", name="ck_sale_items_quantity_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    sale_id: Mapped[int] = mapped_column(ForeignKey("sales.id"), nullable=False)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), nullable=False)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    # custo unitário congelado no momento da venda
    unit_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    sale: Mapped["SaleORM"] = relationship(back_populates="items")
    product: Mapped["ProductORM"] = relationship(back_populates="sale_items")

class ReceivableORM(Base):
    __tablename__ = "receivables"
    __table_args__ = (
        UniqueConstraint("sale_id", "installment_number", name="uq_receivables_sale_number"),
        Index("ix_receivables_due", "due_date", "status"),
        Index("ix_receivables_customer", "customer_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    sale_id: Mapped[int] = mapped_column(ForeignKey("sales.id"), nullable=False)
    customer_id: Mapped[Optional[int]] = mapped_column(ForeignKey("customers.id"), nullable=True)

    installment_number: Mapped[int] = mapped_column(Integer, nullable=False)  # 1..N
    installment_count: Mapped[int] = mapped_column(Integer, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    # cache: o status derivado (services.receivables.derive_status) é a fonte de verdade
    status: Mapped[ReceivableStatus] = mapped_column(
        SAEnum(ReceivableStatus, name="receivable_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ReceivableStatus.OPEN,
    )

    # venda cancelada -> parcela anulada
    voided_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    sale: Mapped["SaleORM"] = relationship(back_populates="receivables")
    customer: Mapped[Optional["CustomerORM"]] = relationship(back_populates="receivables")
    payments: Mapped[List["PaymentORM"]] = relationship(
        back_populates="receivable", order_by="PaymentORM.payment_date"
    )

    @property
    def is_voided(self) -> bool:
        return self.voided_at is not None

    @property
    def installment_label(self) -> str:
        return f"{self.installment_number}/{self.installment_count}"

class PaymentORM(Base):
    __tablename__ = "payments"
    __table_args__ = (
        Index("ix_payments_receivable", "receivable_id"),
        Index("ix_payments_date", "payment_date"),
        CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    # opcional: venda à vista é paga direto na venda
    receivable_id: Mapped[Optional[int]] = mapped_column(ForeignKey("receivables.id"), nullable=True)
    sale_id: Mapped[int] = mapped_column(ForeignKey("sales.id"), nullable=False)
    customer_id: Mapped[Optional[int]] = mapped_column(ForeignKey("customers.id"), nullable=True)

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    method: Mapped[PaymentMethod] = mapped_column(
        SAEnum(PaymentMethod, name="payment_method", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=PaymentMethod.CASH,
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    sale: Mapped["SaleORM"] = relationship(back_populates="payments")
    receivable: Mapped[Optional["ReceivableORM"]] = relationship(back_populates="payments")

class ExpenseORM(Base):
    __tablename__ = "expenses"
    __table_args__ = (
        Index("ix_expenses_date", "expense_date"),
        Index("ix_expenses_type_paid", "type", "is_paid"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    expense_date: Mapped[date] = mapped_column(Date, nullable=False)
    category: Mapped[str] = mapped_column(String(60), nullable=False)
    description: Mapped[str] = mapped_column(String(200), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    type: Mapped[ExpenseType] = mapped_column(
        SAEnum(ExpenseType, name="expense_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ExpenseType.VARIABLE,
    )

    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
