from datetime import datetime
from sqlalchemy import Integer, String, DateTime, Boolean, ForeignKey, Text, UniqueConstraint, JSON
from sqlalchemy.orm import relationship, Mapped, mapped_column

from menusync.db.base import Base


# helpers
now = datetime.utcnow


class MenuGroup(Base):
    __tablename__ = "menu_groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    tenant_id: Mapped[str] = mapped_column(String(64), index=True)
    name: Mapped[str] = mapped_column(String(255))
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    service_availability: Mapped[dict] = mapped_column(JSON)  # {"monday": [{"start_time": "00:00", "end_time": "23:59"}], ...}
    last_synced_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    sync_status: Mapped[str | None] = mapped_column(String(16), nullable=True)  # success|error|cleared
    sync_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=now, onupdate=now)

    memberships: Mapped[list["MenuGroupCategory"]] = relationship(
        "MenuGroupCategory",
        back_populates="menu_group",
        cascade="all, delete",
        order_by="MenuGroupCategory.display_order",
    )


class MenuCategory(Base):
    """registry category, the local view of one remote platform category."""
    __tablename__ = "menu_categories"
    __table_args__ = (
        UniqueConstraint("tenant_id", "source_category_id", name="uq_menu_categories_source"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    tenant_id: Mapped[str] = mapped_column(String(64), index=True)
    name: Mapped[str] = mapped_column(String(255))
    source_category_id: Mapped[str | None] = mapped_column(String(64), nullable=True)  # POS category id, set only for system categories
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=now, onupdate=now)

    items: Mapped[list["MenuCategoryItem"]] = relationship(
        "MenuCategoryItem",
        back_populates="category",
        cascade="all, delete",
        order_by="MenuCategoryItem.display_order",
    )
    memberships: Mapped[list["MenuGroupCategory"]] = relationship(
        "MenuGroupCategory", back_populates="category", cascade="all, delete"
    )

    @property
    def origin(self) -> str:
        return "system" if self.source_category_id is not None else "custom"

    @property
    def is_system(self) -> bool:
        return self.source_category_id is not None


class MenuCategoryItem(Base):
    __tablename__ = "menu_category_items"
    __table_args__ = (
        UniqueConstraint("menu_category_id", "pos_item_id", name="uq_menu_category_items_item"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    menu_category_id: Mapped[int] = mapped_column(ForeignKey("menu_categories.id", ondelete="CASCADE"))
    pos_item_id: Mapped[str] = mapped_column(String(64), index=True)
    pos_item_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now)

    category: Mapped[MenuCategory] = relationship("MenuCategory", back_populates="items")


class MenuGroupCategory(Base):
    __tablename__ = "menu_group_categories"
    __table_args__ = (
        UniqueConstraint("menu_group_id", "menu_category_id", name="uq_menu_group_categories_pair"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    menu_group_id: Mapped[int] = mapped_column(ForeignKey("menu_groups.id", ondelete="CASCADE"))
    menu_category_id: Mapped[int] = mapped_column(ForeignKey("menu_categories.id", ondelete="CASCADE"))
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now)

    menu_group: Mapped[MenuGroup] = relationship("MenuGroup", back_populates="memberships")
    category: Mapped[MenuCategory] = relationship("MenuCategory", back_populates="memberships")


class ConfigOverride(Base):
    __tablename__ = "config_overrides"
    __table_args__ = (
        UniqueConstraint("scope", "entity_ref", "menu_group_id", name="uq_config_overrides_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    scope: Mapped[str] = mapped_column(String(32))  # item|modifier_option
    entity_ref: Mapped[str] = mapped_column(String(512))
    menu_group_id: Mapped[int] = mapped_column(ForeignKey("menu_groups.id", ondelete="CASCADE"), index=True)
    pos_item_id: Mapped[str] = mapped_column(String(64), index=True)
    modifier_group_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    modifier_option_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    price_override: Mapped[int | None] = mapped_column(Integer, nullable=True)  # minor units, null means base price
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=now, onupdate=now)


class SyncRecord(Base):
    __tablename__ = "sync_records"
    __table_args__ = (
        UniqueConstraint("scope", "entity_ref", "menu_group_id", name="uq_sync_records_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    scope: Mapped[str] = mapped_column(String(32))
    entity_ref: Mapped[str] = mapped_column(String(512))
    menu_group_id: Mapped[int] = mapped_column(ForeignKey("menu_groups.id", ondelete="CASCADE"), index=True)
    pos_item_id: Mapped[str] = mapped_column(String(64), index=True)
    status: Mapped[str] = mapped_column(String(16), default="unsynced")  # unsynced|success|error
    error_detail: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_synced_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=now, onupdate=now)


class MenuSyncHistory(Base):
    __tablename__ = "menu_sync_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(64), index=True)
    menu_group_id: Mapped[int | None] = mapped_column(Integer, nullable=True)  # null when every group was synced together
    sync_type: Mapped[str] = mapped_column(String(16))  # menu_group|all|clear
    menu_type: Mapped[str] = mapped_column(String(64))
    item_count: Mapped[int] = mapped_column(Integer, default=0)
    category_count: Mapped[int] = mapped_column(Integer, default=0)
    modifier_group_count: Mapped[int] = mapped_column(Integer, default=0)
    skipped_count: Mapped[int] = mapped_column(Integer, default=0)
    custom_price_count: Mapped[int] = mapped_column(Integer, default=0)
    success: Mapped[bool] = mapped_column(Boolean, default=False)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    synced_at: Mapped[datetime] = mapped_column(DateTime, default=now)
