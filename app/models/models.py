from __future__ import annotations

import json
import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    Enum,
    Index,
    Integer,
    PrimaryKeyConstraint,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

from app.models.base import Base
from app.models.shop_enums import EventType, ShopPlan
from app.utils.datetime_utils import utc_now


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


class UUIDMixin:
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)


class AuditMixin:
    """Audit fields shared by mutable tables: created_date, updated_date"""
    created_date: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_date: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utc_now, nullable=False
    )


class Shop(AuditMixin, Base):
    """A merchant store, identified by its platform domain.

    Carries the plan and the usage counter for the current billing cycle.
    """

    __tablename__ = "tbl_shops"
    __table_args__ = (
        CheckConstraint("recommendations_used >= 0", name="ck_shops_used_non_negative"),
    )

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    plan: Mapped[ShopPlan] = mapped_column(
        Enum(ShopPlan, name="shop_plan", native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=ShopPlan.FREE,
        server_default=text("'Free'"),
    )
    recommendations_used: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    billing_cycle_start: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=utc_now
    )


class RecommendationOverride(UUIDMixin, AuditMixin, Base):
    """Merchant-curated recommendation list for one source product."""

    __tablename__ = "tbl_recommendation_overrides"
    __table_args__ = (
        UniqueConstraint("shop_domain", "handle", name="uq_recommendation_override_handle"),
        Index("ix_recommendation_overrides_shop_updated", "shop_domain", "updated_date"),
    )

    shop_domain: Mapped[str] = mapped_column(String(255), nullable=False)
    handle: Mapped[str] = mapped_column(String(255), nullable=False)
    source_product: Mapped[str] = mapped_column(Text, nullable=False)
    # recommended_products is TEXT in database, storing a JSON list of product ids
    recommended_products: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))

    @property
    def recommended_product_ids(self) -> list[str]:
        return json.loads(self.recommended_products) if self.recommended_products else []


class AnalyticsCounter(Base):
    """Daily counter for one (shop, source, recommended, event type) combination."""

    __tablename__ = "tbl_recommendation_analytics"
    __table_args__ = (
        UniqueConstraint(
            "shop_domain",
            "source_product_id",
            "recommended_product_id",
            "event_type",
            "event_date",
            name="uq_recommendation_analytics_key",
        ),
        CheckConstraint("count > 0", name="ck_recommendation_analytics_count_positive"),
        Index("ix_recommendation_analytics_shop_date", "shop_domain", "event_date"),
    )

    # SQLite only autoincrements INTEGER primary keys
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    handle: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    shop_domain: Mapped[str] = mapped_column(String(255), nullable=False)
    source_product_id: Mapped[str] = mapped_column(Text, nullable=False)
    recommended_product_id: Mapped[str] = mapped_column(Text, nullable=False)
    event_type: Mapped[EventType] = mapped_column(
        Enum(EventType, name="analytics_event_type", native_enum=False, values_callable=_enum_values),
        nullable=False,
    )
    event_date: Mapped[date] = mapped_column(Date, nullable=False)
    count: Mapped[int] = mapped_column(BigInteger, nullable=False, server_default=text("1"))


class CatalogProduct(Base):
    """Cached product detail used to render resolved recommendations."""

    __tablename__ = "tbl_catalog_products"
    __table_args__ = (
        PrimaryKeyConstraint("shop_domain", "product_id", name="pk_catalog_products"),
    )

    shop_domain: Mapped[str] = mapped_column(String(255), nullable=False)
    product_id: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    handle: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(Text)
    image_alt: Mapped[Optional[str]] = mapped_column(Text)
    # Prices arrive as decimal strings from the platform and are passed through unchanged
    price_amount: Mapped[Optional[str]] = mapped_column(String(32))
    currency_code: Mapped[Optional[str]] = mapped_column(String(3))
    variant_id: Mapped[Optional[str]] = mapped_column(Text)
    updated_date: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utc_now, nullable=False
    )
