# Central pricing shared by the quote endpoint, the cart and checkout
import os
from typing import Optional

from schemas import (
    CategoryKind,
    CustomizationSelection,
    JewelryType,
    MetalType,
    PurchaseType,
    MIN_RING_SIZE,
)

DISPLAY_EXCHANGE_RATE = float(os.getenv("DISPLAY_EXCHANGE_RATE", "83.50"))

BASE_RING_SIZE = MIN_RING_SIZE
RING_SIZE_STEP = 1.02

JEWELRY_TYPE_COSTS = {
    JewelryType.RING: 200,
    JewelryType.PENDANT: 150,
    JewelryType.ENGAGEMENT_RING: 350,
    JewelryType.OTHER: 100,
}

METAL_TYPE_COSTS = {
    MetalType.GOLD_14K_YELLOW: 300,
    MetalType.GOLD_14K_WHITE: 320,
    MetalType.GOLD_18K_YELLOW: 450,
    MetalType.GOLD_18K_WHITE: 480,
    MetalType.GOLD_22K_YELLOW: 600,
    MetalType.GOLD_22K_WHITE: 630,
    MetalType.SILVER: 100,
    MetalType.PANCH_DHATU: 80,
}

RING_MOUNTS = (JewelryType.RING, JewelryType.ENGAGEMENT_RING)


def _check_exhaustive(table, enum_cls):
    missing = set(enum_cls) - set(table)
    if missing:
        raise RuntimeError(f"{enum_cls.__name__} costs missing for: {sorted(m.name for m in missing)}")


_check_exhaustive(JEWELRY_TYPE_COSTS, JewelryType)
_check_exhaustive(METAL_TYPE_COSTS, MetalType)


def is_mounted(selection: CustomizationSelection) -> bool:
    return selection.purchase_type == PurchaseType.MOUNTED


def ring_size_applies(category_kind: CategoryKind, selection: CustomizationSelection) -> bool:
    if category_kind == CategoryKind.RING:
        return True
    return is_mounted(selection) and selection.jewelry_type in RING_MOUNTS


def ring_size_multiplier(ring_size: Optional[int]) -> float:
    """2% compounding per size above the baseline. Sizes at or below it are not discounted."""
    if ring_size is None:
        return 1.0
    increment = ring_size - BASE_RING_SIZE
    if increment <= 0:
        return 1.0
    return RING_SIZE_STEP ** increment


def compute_price(base_price: float, category_kind: CategoryKind, selection: CustomizationSelection) -> float:
    """
    Unit price in the base currency for a product with the given selection.

    Mounting fields are ignored unless the purchase type is mounted, and an
    unset jewelry or metal type adds nothing. The result is not rounded.
    """
    price = base_price

    if ring_size_applies(category_kind, selection):
        price *= ring_size_multiplier(selection.ring_size)

    if is_mounted(selection):
        if selection.jewelry_type is not None:
            price += JEWELRY_TYPE_COSTS[selection.jewelry_type]
        if selection.metal_type is not None:
            price += METAL_TYPE_COSTS[selection.metal_type]

    return price


def effective_selection(category_kind: CategoryKind, selection: CustomizationSelection) -> CustomizationSelection:
    """
    Drop the fields that cannot affect the price of this product.

    Only gemstones can be mounted. When a ring size applies but was not
    chosen, the baseline size is filled in.
    """
    update = {}
    if category_kind != CategoryKind.GEMSTONE:
        update["purchase_type"] = PurchaseType.LOOSE
    selection = selection.model_copy(update=update)

    update = {}
    if not is_mounted(selection):
        update["jewelry_type"] = None
        update["metal_type"] = None
    if not ring_size_applies(category_kind, selection):
        update["ring_size"] = None
    elif selection.ring_size is None:
        update["ring_size"] = BASE_RING_SIZE
    return selection.model_copy(update=update)


def customization_label(category_kind: CategoryKind, selection: CustomizationSelection) -> str:
    if category_kind == CategoryKind.RING:
        return f"Size: {selection.ring_size or BASE_RING_SIZE}"
    if category_kind != CategoryKind.GEMSTONE:
        return ""
    if not is_mounted(selection):
        return "Loose Stone"

    jewelry = selection.jewelry_type.value if selection.jewelry_type else "Jewelry"
    label = f"Mounted in {jewelry}"
    if selection.metal_type is not None:
        label += f" ({selection.metal_type.value})"
    if selection.jewelry_type in RING_MOUNTS:
        label += f", Size: {selection.ring_size or BASE_RING_SIZE}"
    return label


def to_display(price: float, rate: float = DISPLAY_EXCHANGE_RATE) -> float:
    return round(price * rate, 2)
