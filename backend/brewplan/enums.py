# Overview: Closed status/category enums and the lifecycle adjacency tables.

"""
BrewPlan status vocabulary (authoritative)

Every status column is backed by one of the enums below and persisted by
value through sqlalchemy.Enum, so the database never holds a status the code
does not know about.

Adjacency tables map EVERY member of their enum to its allowed successors.
_require_exhaustive() runs at import time: adding a member to a status enum
without a table entry breaks the import instead of silently allowing (or
forbidding) transitions.
"""

from __future__ import annotations

from enum import Enum


class RecipeStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


class BatchStatus(str, Enum):
    PLANNED = "planned"
    BREWING = "brewing"
    FERMENTING = "fermenting"
    CONDITIONING = "conditioning"
    READY_TO_PACKAGE = "ready_to_package"
    PACKAGED = "packaged"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DUMPED = "dumped"


class InventoryCategory(str, Enum):
    GRAIN = "grain"
    HOP = "hop"
    YEAST = "yeast"
    ADJUNCT = "adjunct"
    WATER_CHEMISTRY = "water_chemistry"
    PACKAGING = "packaging"
    CLEANING = "cleaning"
    OTHER = "other"


class UsageStage(str, Enum):
    MASH = "mash"
    BOIL = "boil"
    WHIRLPOOL = "whirlpool"
    FERMENT = "ferment"
    DRY_HOP = "dry_hop"
    PACKAGE = "package"
    OTHER = "other"


class PackageFormat(str, Enum):
    KEG_50L = "keg_50l"
    KEG_30L = "keg_30l"
    KEG_20L = "keg_20l"
    CAN_375ML = "can_375ml"
    CAN_355ML = "can_355ml"
    BOTTLE_330ML = "bottle_330ml"
    BOTTLE_500ML = "bottle_500ml"
    OTHER = "other"


FORMAT_LABELS = {
    PackageFormat.KEG_50L: "50L Keg",
    PackageFormat.KEG_30L: "30L Keg",
    PackageFormat.KEG_20L: "20L Keg",
    PackageFormat.CAN_375ML: "375ml Can",
    PackageFormat.CAN_355ML: "355ml Can",
    PackageFormat.BOTTLE_330ML: "330ml Bottle",
    PackageFormat.BOTTLE_500ML: "500ml Bottle",
    PackageFormat.OTHER: "Other",
}


class MovementType(str, Enum):
    RECEIVED = "received"
    CONSUMED = "consumed"
    ADJUSTED = "adjusted"
    TRANSFERRED = "transferred"
    RETURNED = "returned"
    WRITTEN_OFF = "written_off"


class Unit(str, Enum):
    KG = "kg"
    G = "g"
    ML = "ml"
    L = "l"
    EACH = "each"


class VesselType(str, Enum):
    FERMENTER = "fermenter"
    BRITE = "brite"
    KETTLE = "kettle"
    HOT_LIQUOR_TANK = "hot_liquor_tank"
    MASH_TUN = "mash_tun"
    OTHER = "other"


class VesselStatus(str, Enum):
    AVAILABLE = "available"
    IN_USE = "in_use"
    CLEANING = "cleaning"
    MAINTENANCE = "maintenance"
    OUT_OF_SERVICE = "out_of_service"


class PurchaseOrderStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACKNOWLEDGED = "acknowledged"
    PARTIALLY_RECEIVED = "partially_received"
    RECEIVED = "received"
    CANCELLED = "cancelled"


class CustomerType(str, Enum):
    VENUE = "venue"
    BOTTLE_SHOP = "bottle_shop"
    DISTRIBUTOR = "distributor"
    TAPROOM = "taproom"
    MARKET = "market"
    OTHER = "other"


class OrderStatus(str, Enum):
    DRAFT = "draft"
    CONFIRMED = "confirmed"
    PICKING = "picking"
    DISPATCHED = "dispatched"
    DELIVERED = "delivered"
    INVOICED = "invoiced"
    PAID = "paid"
    CANCELLED = "cancelled"


class OrderChannel(str, Enum):
    WHOLESALE = "wholesale"
    TAPROOM = "taproom"
    ONLINE = "online"
    MARKET = "market"
    OTHER = "other"


class QualityCheckType(str, Enum):
    PRE_FERMENT = "pre_ferment"
    MID_FERMENT = "mid_ferment"
    POST_FERMENT = "post_ferment"
    PRE_PACKAGE = "pre_package"
    PACKAGED = "packaged"
    OTHER = "other"


class QualityCheckResult(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    PENDING = "pending"


# ================================================================================
# ADJACENCY TABLES
# ================================================================================

BATCH_TRANSITIONS: dict[BatchStatus, frozenset[BatchStatus]] = {
    BatchStatus.PLANNED: frozenset({BatchStatus.BREWING, BatchStatus.CANCELLED}),
    BatchStatus.BREWING: frozenset({BatchStatus.FERMENTING, BatchStatus.DUMPED}),
    BatchStatus.FERMENTING: frozenset({BatchStatus.CONDITIONING, BatchStatus.DUMPED}),
    BatchStatus.CONDITIONING: frozenset({BatchStatus.READY_TO_PACKAGE, BatchStatus.DUMPED}),
    BatchStatus.READY_TO_PACKAGE: frozenset({BatchStatus.PACKAGED, BatchStatus.DUMPED}),
    BatchStatus.PACKAGED: frozenset({BatchStatus.COMPLETED}),
    BatchStatus.COMPLETED: frozenset(),
    BatchStatus.CANCELLED: frozenset(),
    BatchStatus.DUMPED: frozenset(),
}

# Explicit (user-driven) PO transitions. PARTIALLY_RECEIVED and RECEIVED are
# only entered through receiving, see PO_RECEIPT_STATUSES.
PO_TRANSITIONS: dict[PurchaseOrderStatus, frozenset[PurchaseOrderStatus]] = {
    PurchaseOrderStatus.DRAFT: frozenset({PurchaseOrderStatus.SENT, PurchaseOrderStatus.CANCELLED}),
    PurchaseOrderStatus.SENT: frozenset({PurchaseOrderStatus.ACKNOWLEDGED, PurchaseOrderStatus.CANCELLED}),
    PurchaseOrderStatus.ACKNOWLEDGED: frozenset({PurchaseOrderStatus.CANCELLED}),
    PurchaseOrderStatus.PARTIALLY_RECEIVED: frozenset({PurchaseOrderStatus.CANCELLED}),
    PurchaseOrderStatus.RECEIVED: frozenset(),
    PurchaseOrderStatus.CANCELLED: frozenset(),
}

ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.DRAFT: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PICKING, OrderStatus.DISPATCHED, OrderStatus.CANCELLED}),
    OrderStatus.PICKING: frozenset({OrderStatus.DISPATCHED}),
    OrderStatus.DISPATCHED: frozenset({OrderStatus.DELIVERED, OrderStatus.INVOICED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.INVOICED}),
    OrderStatus.INVOICED: frozenset({OrderStatus.PAID}),
    OrderStatus.PAID: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

# Batches still holding a vessel / still in production
ACTIVE_BATCH_STATUSES = frozenset({
    BatchStatus.PLANNED,
    BatchStatus.BREWING,
    BatchStatus.FERMENTING,
    BatchStatus.CONDITIONING,
    BatchStatus.READY_TO_PACKAGE,
    BatchStatus.PACKAGED,
})

# Batches whose recipe ingredients count as allocated stock
ALLOCATING_BATCH_STATUSES = frozenset({BatchStatus.PLANNED, BatchStatus.BREWING})

# POs whose unreceived remainder counts as on order, and which accept receipts
OPEN_PO_STATUSES = frozenset({
    PurchaseOrderStatus.SENT,
    PurchaseOrderStatus.ACKNOWLEDGED,
    PurchaseOrderStatus.PARTIALLY_RECEIVED,
})


def _require_exhaustive(table: dict, enum_cls: type[Enum]) -> None:
    missing = [m.value for m in enum_cls if m not in table]
    if missing:
        raise RuntimeError(
            f"{enum_cls.__name__} adjacency table is missing: {', '.join(missing)}"
        )


_require_exhaustive(BATCH_TRANSITIONS, BatchStatus)
_require_exhaustive(PO_TRANSITIONS, PurchaseOrderStatus)
_require_exhaustive(ORDER_TRANSITIONS, OrderStatus)


def is_terminal(table: dict, status: Enum) -> bool:
    return not table[status]


def coerce_enum(enum_cls, value, *, field: str):
    """
    Convert a raw value (member or its string value) into an enum member.

    Raises ValidationError naming the field and the allowed values.
    """
    from .errors import ValidationError

    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"Invalid {field} '{value}'. Must be one of: {allowed}")
