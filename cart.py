# Cart and wishlist line-item aggregation. Every function returns a new list.
from typing import List

from pricing import RING_MOUNTS
from schemas import CustomizationSelection, LineItem, ProductSnapshot, PurchaseType, WishlistEntry

KEY_SEPARATOR = "|"
UNSET = "-"


def _part(value) -> str:
    if value is None:
        return UNSET
    return getattr(value, "name", str(value))


def derive_key(product_id: int, selection: CustomizationSelection) -> str:
    """
    Stable identity for a product configuration.

    Enum names never contain the separator, so distinct configurations get
    distinct keys. Mounting fields are ignored for loose purchases, and the
    ring size is ignored for mounts that are not rings.
    """
    mounted = selection.purchase_type == PurchaseType.MOUNTED
    sized = not mounted or selection.jewelry_type in RING_MOUNTS
    parts = [
        str(product_id),
        _part(selection.ring_size if sized else None),
        _part(selection.purchase_type),
        _part(selection.jewelry_type if mounted else None),
        _part(selection.metal_type if mounted else None),
    ]
    return KEY_SEPARATOR.join(parts)


def find_line_item(items: List[LineItem], key: str):
    for it in items:
        if it.key == key:
            return it
    return None


def add_line_item(
    items: List[LineItem],
    product_id: int,
    selection: CustomizationSelection,
    unit_price: float,
    snapshot: ProductSnapshot,
    customization: str = "",
) -> List[LineItem]:
    key = derive_key(product_id, selection)
    if find_line_item(items, key) is not None:
        # first price wins
        return [it.model_copy(update={"quantity": it.quantity + 1}) if it.key == key else it for it in items]

    new_item = LineItem(
        key=key,
        product_id=product_id,
        quantity=1,
        unit_price=unit_price,
        customization=customization,
        product=snapshot,
    )
    return [*items, new_item]


def remove_line_item(items: List[LineItem], key: str) -> List[LineItem]:
    return [it for it in items if it.key != key]


def update_quantity(items: List[LineItem], key: str, quantity: int) -> List[LineItem]:
    if quantity < 1:
        return remove_line_item(items, key)
    return [it.model_copy(update={"quantity": quantity}) if it.key == key else it for it in items]


def item_count(items: List[LineItem]) -> int:
    return sum(it.quantity for it in items)


def cart_total(items: List[LineItem]) -> float:
    return sum(it.unit_price * it.quantity for it in items)


# Wishlist: one entry per product, no quantities

def in_wishlist(entries: List[WishlistEntry], product_id: int) -> bool:
    return any(e.product_id == product_id for e in entries)


def add_wishlist_entry(entries: List[WishlistEntry], product_id: int, price: float, snapshot: ProductSnapshot) -> List[WishlistEntry]:
    if in_wishlist(entries, product_id):
        return list(entries)
    return [*entries, WishlistEntry(product_id=product_id, price=price, product=snapshot)]


def remove_wishlist_entry(entries: List[WishlistEntry], product_id: int) -> List[WishlistEntry]:
    return [e for e in entries if e.product_id != product_id]
