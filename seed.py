# Demo catalog loaded when SEED_DEMO_DATA=true
from database import Store
from logger import get_logger
from schemas import CategoryKind

logger = get_logger(__name__)

CATEGORIES = [
    (1, "Emeralds", "emeralds", "Precious green gemstones known for their vibrant color and astrological significance", CategoryKind.GEMSTONE),
    (2, "Ruby", "ruby", "Deep red gemstones symbolizing passion, energy, and success", CategoryKind.GEMSTONE),
    (3, "Yellow Sapphire", "yellow-sapphire", "Bright yellow gemstones associated with wisdom and prosperity", CategoryKind.GEMSTONE),
    (4, "Rings", "rings", "Elegant rings featuring precious stones and metals", CategoryKind.RING),
    (5, "Necklaces", "necklaces", "Stunning necklaces and pendants for every occasion", CategoryKind.OTHER),
    (6, "Earrings", "earrings", "Beautiful earrings from studs to statement pieces", CategoryKind.OTHER),
    (7, "Bracelets", "bracelets", "Elegant bracelets and bangles for wrist adornment", CategoryKind.OTHER),
    (8, "Gemstones", "gemstones", "Loose precious and semi-precious gemstones", CategoryKind.GEMSTONE),
]

# (id, name, price, category_id, hint, sub_heading)
PRODUCTS = [
    (1, "Solitaire Diamond Ring", 2500, 4, "diamond ring", "Pure Diamond and Gold"),
    (2, "Sapphire Pendant Necklace", 1800, 5, "sapphire necklace", "Natural Sapphire and Diamonds"),
    (3, "Emerald Stud Earrings", 1250, 6, "emerald earrings", "Natural Emerald and Gold"),
    (4, "Gold Bangle Bracelet", 950, 7, "gold bracelet", "18K Pure Gold"),
    (5, "Pearl Drop Necklace", 1500, 5, "pearl necklace", "Freshwater Pearl and Silver"),
    (6, "Ruby Eternity Band", 3100, 4, "ruby ring", "Natural Ruby and Platinum"),
    (7, "Diamond Tennis Bracelet", 4200, 7, "diamond bracelet", "Brilliant Cut Diamonds"),
    (8, "Opal and Gold Earrings", 1100, 6, "opal earrings", "Natural Opal and Gold"),
    (9, "Emerald (Panna)", 2200, 1, "emerald gemstone", "Certified Natural Emerald"),
    (10, "Ruby (Manik)", 3500, 2, "ruby gemstone", "Natural Ruby Gemstone"),
    (11, "Yellow Sapphire (Pukhraj)", 2800, 3, "yellow sapphire", "Authentic Yellow Sapphire"),
    (12, "Blue Sapphire (Neelam)", 4500, 8, "blue sapphire", "Natural Blue Sapphire"),
]


def seed_catalog(store: Store):
    for cid, name, slug, description, kind in CATEGORIES:
        store.upsert_by("categories", "id", cid, {
            "name": name,
            "slug": slug,
            "description": description,
            "image": f"https://picsum.photos/400/300?r={slug}",
            "kind": kind.value,
        })
    for pid, name, price, category_id, hint, sub_heading in PRODUCTS:
        store.upsert_by("products", "id", pid, {
            "name": name,
            "price": price,
            "image": f"https://picsum.photos/800/800?r={pid}",
            "hint": hint,
            "description": None,
            "category_id": category_id,
            "sub_category": None,
            "sub_heading": sub_heading,
        })
    logger.info("Seeded %d categories and %d products", len(CATEGORIES), len(PRODUCTS))
