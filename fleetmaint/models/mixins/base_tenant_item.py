# fleetmaint/models/mixins/base_tenant_item.py
from sqlalchemy import String, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime

class BaseTenantItemMixin:
    """
    Base mixin for all tenant scoped records (part / service note / part usage).

    Invariants:
    - Immutable identity
    - Belongs to exactly one tenant
    - Timestamps maintained by system
    """
    # =========
    # Identity & tenant
    # =========
    id :Mapped[str] = mapped_column(String(36), primary_key=True,comment="Record UUID")

    tenant_id :Mapped[str] = mapped_column(String(36), nullable=False, index=True,comment="Owning tenant ID")
    # =========
    # ⏱ Timestamps
    # =========
    created_at :Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="Creation timestamp"
    )

    updated_at :Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
        comment="Last update timestamp"
    )
