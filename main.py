import os
from contextlib import asynccontextmanager
from typing import List, Optional
from fastapi import FastAPI, HTTPException, Depends, Query, Request
from fastapi.middleware.cors import CORSMiddleware

import cart as cart_ops
from database import Store, build_store
from logger import get_logger
from pricing import compute_price, customization_label, effective_selection, to_display
from schemas import (
    AddToCart, AddToWishlist, BankDetails, Cart, CartView, Category, CategoryCreate, CategoryKind,
    CategoryUpdate, CheckoutRequest, CustomizationSelection, Inquiry, InquiryCreate, InquiryStatusUpdate,
    Order, OrderCreate, OrderItem, OrderStatus, OrderStatusUpdate, PriceQuote, Product, ProductCreate,
    ProductSnapshot, ProductUpdate, QuantityUpdate, Wishlist,
)
from seed import seed_catalog

logger = get_logger(__name__)

SEED_DEMO_DATA = os.getenv("SEED_DEMO_DATA", "false").lower() == "true"
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.store = build_store()
    if SEED_DEMO_DATA:
        seed_catalog(app.state.store)
    yield


app = FastAPI(title="Jewelry & Gemstone Store API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_store(request: Request) -> Store:
    return request.app.state.store


# Helpers
def _get_or_404(store: Store, collection: str, doc_id: int, label: str) -> dict:
    doc = store.get(collection, doc_id)
    if not doc:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return doc


def _category_kind(store: Store, product: dict) -> CategoryKind:
    category = store.get("categories", product.get("category_id"))
    if not category:
        return CategoryKind.OTHER
    return CategoryKind(category.get("kind", CategoryKind.OTHER))


def _snapshot(product: dict) -> ProductSnapshot:
    return ProductSnapshot(
        name=product["name"],
        image=product.get("image"),
        hint=product.get("hint"),
        sub_heading=product.get("sub_heading"),
    )


def _quote(store: Store, product: dict, selection: CustomizationSelection) -> PriceQuote:
    kind = _category_kind(store, product)
    selection = effective_selection(kind, selection)
    price = compute_price(float(product["price"]), kind, selection)
    return PriceQuote(
        product_id=product["id"],
        base_price=product["price"],
        price=price,
        display_price=to_display(price),
        customization=customization_label(kind, selection),
    )


def _load_cart(store: Store, session_id: str) -> Cart:
    doc = store.get_by("carts", "session_id", session_id)
    return Cart.model_validate(doc) if doc else Cart(session_id=session_id)


def _save_cart(store: Store, cart: Cart) -> Cart:
    store.upsert_by("carts", "session_id", cart.session_id, {"items": [it.model_dump(mode="json") for it in cart.items]})
    return cart


def _cart_view(cart: Cart) -> CartView:
    total = cart_ops.cart_total(cart.items)
    return CartView(
        session_id=cart.session_id,
        items=cart.items,
        item_count=cart_ops.item_count(cart.items),
        total=total,
        display_total=to_display(total),
    )


def _load_wishlist(store: Store, session_id: str) -> Wishlist:
    doc = store.get_by("wishlists", "session_id", session_id)
    return Wishlist.model_validate(doc) if doc else Wishlist(session_id=session_id)


def _save_wishlist(store: Store, wishlist: Wishlist) -> Wishlist:
    store.upsert_by("wishlists", "session_id", wishlist.session_id, {"items": [e.model_dump(mode="json") for e in wishlist.items]})
    return wishlist


# Health
@app.get("/")
def read_root():
    return {"message": "Jewelry & Gemstone Store backend running"}

@app.get("/test")
def test_database(store: Store = Depends(get_store)):
    return {"backend": "ok", **store.status()}

# Categories
@app.get("/api/categories", response_model=List[Category])
def list_categories(store: Store = Depends(get_store)):
    counts = {}
    for p in store.find("products"):
        counts[p.get("category_id")] = counts.get(p.get("category_id"), 0) + 1
    return [{**c, "product_count": counts.get(c["id"], 0)} for c in store.find("categories")]

@app.post("/api/categories", response_model=Category, status_code=201)
def create_category(c: CategoryCreate, store: Store = Depends(get_store)):
    if store.get_by("categories", "slug", c.slug):
        raise HTTPException(status_code=400, detail="Slug already in use")
    doc = store.insert("categories", c)
    logger.info("Created category %s (%s)", doc["id"], doc["slug"])
    return doc

@app.patch("/api/categories/{category_id}", response_model=Category)
def update_category(category_id: int, c: CategoryUpdate, store: Store = Depends(get_store)):
    _get_or_404(store, "categories", category_id, "Category")
    if c.slug is not None:
        clash = store.get_by("categories", "slug", c.slug)
        if clash and clash["id"] != category_id:
            raise HTTPException(status_code=400, detail="Slug already in use")
    doc = store.update("categories", category_id, c.model_dump(mode="json", exclude_unset=True))
    return {**doc, "product_count": len(store.find("products", {"category_id": category_id}))}

@app.delete("/api/categories/{category_id}")
def delete_category(category_id: int, store: Store = Depends(get_store)):
    if not store.delete("categories", category_id):
        raise HTTPException(status_code=404, detail="Category not found")
    logger.info("Deleted category %s", category_id)
    return {"ok": True}

# Products
@app.get("/api/products", response_model=List[Product])
def list_products(
    category_id: Optional[int] = Query(None, alias="categoryId"),
    category_slug: Optional[str] = Query(None, alias="categorySlug"),
    store: Store = Depends(get_store),
):
    if category_slug is not None:
        category = store.get_by("categories", "slug", category_slug)
        if not category:
            return []
        category_id = category["id"]
    filters = {"category_id": category_id} if category_id is not None else None
    return store.find("products", filters)

@app.get("/api/products/{product_id}", response_model=Product)
def get_product(product_id: int, store: Store = Depends(get_store)):
    return _get_or_404(store, "products", product_id, "Product")

@app.post("/api/products", response_model=Product, status_code=201)
def create_product(p: ProductCreate, store: Store = Depends(get_store)):
    _get_or_404(store, "categories", p.category_id, "Category")
    doc = store.insert("products", p)
    logger.info("Created product %s (%s)", doc["id"], doc["name"])
    return doc

@app.patch("/api/products/{product_id}", response_model=Product)
def update_product(product_id: int, p: ProductUpdate, store: Store = Depends(get_store)):
    _get_or_404(store, "products", product_id, "Product")
    if p.category_id is not None:
        _get_or_404(store, "categories", p.category_id, "Category")
    return store.update("products", product_id, p.model_dump(mode="json", exclude_unset=True))

@app.delete("/api/products/{product_id}")
def delete_product(product_id: int, store: Store = Depends(get_store)):
    if not store.delete("products", product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    logger.info("Deleted product %s", product_id)
    return {"ok": True}

@app.post("/api/products/{product_id}/quote", response_model=PriceQuote)
def quote_product(product_id: int, selection: CustomizationSelection, store: Store = Depends(get_store)):
    product = _get_or_404(store, "products", product_id, "Product")
    return _quote(store, product, selection)

# Cart
@app.get("/api/cart/{session_id}", response_model=CartView)
def get_cart(session_id: str, store: Store = Depends(get_store)):
    return _cart_view(_load_cart(store, session_id))

@app.post("/api/cart/{session_id}/items", response_model=CartView)
def add_to_cart(session_id: str, payload: AddToCart, store: Store = Depends(get_store)):
    product = _get_or_404(store, "products", payload.product_id, "Product")
    kind = _category_kind(store, product)
    selection = effective_selection(kind, payload.selection)
    quote = _quote(store, product, selection)
    with store.session_lock("carts", session_id):
        cart = _load_cart(store, session_id)
        cart.items = cart_ops.add_line_item(
            cart.items, product["id"], selection, quote.price, _snapshot(product), quote.customization
        )
        _save_cart(store, cart)
    return _cart_view(cart)

@app.patch("/api/cart/{session_id}/items/{key}", response_model=CartView)
def update_cart_item(session_id: str, key: str, payload: QuantityUpdate, store: Store = Depends(get_store)):
    with store.session_lock("carts", session_id):
        cart = _load_cart(store, session_id)
        cart.items = cart_ops.update_quantity(cart.items, key, payload.quantity)
        _save_cart(store, cart)
    return _cart_view(cart)

@app.delete("/api/cart/{session_id}/items/{key}", response_model=CartView)
def remove_cart_item(session_id: str, key: str, store: Store = Depends(get_store)):
    with store.session_lock("carts", session_id):
        cart = _load_cart(store, session_id)
        cart.items = cart_ops.remove_line_item(cart.items, key)
        _save_cart(store, cart)
    return _cart_view(cart)

@app.delete("/api/cart/{session_id}", response_model=CartView)
def clear_cart(session_id: str, store: Store = Depends(get_store)):
    with store.session_lock("carts", session_id):
        cart = _save_cart(store, Cart(session_id=session_id))
    return _cart_view(cart)

# Wishlist
@app.get("/api/wishlist/{session_id}", response_model=Wishlist)
def get_wishlist(session_id: str, store: Store = Depends(get_store)):
    return _load_wishlist(store, session_id)

@app.post("/api/wishlist/{session_id}/items", response_model=Wishlist)
def add_to_wishlist(session_id: str, payload: AddToWishlist, store: Store = Depends(get_store)):
    product = _get_or_404(store, "products", payload.product_id, "Product")
    with store.session_lock("wishlists", session_id):
        wishlist = _load_wishlist(store, session_id)
        wishlist.items = cart_ops.add_wishlist_entry(wishlist.items, product["id"], float(product["price"]), _snapshot(product))
        _save_wishlist(store, wishlist)
    return wishlist

@app.delete("/api/wishlist/{session_id}/items/{product_id}", response_model=Wishlist)
def remove_from_wishlist(session_id: str, product_id: int, store: Store = Depends(get_store)):
    with store.session_lock("wishlists", session_id):
        wishlist = _load_wishlist(store, session_id)
        wishlist.items = cart_ops.remove_wishlist_entry(wishlist.items, product_id)
        _save_wishlist(store, wishlist)
    return wishlist

@app.delete("/api/wishlist/{session_id}", response_model=Wishlist)
def clear_wishlist(session_id: str, store: Store = Depends(get_store)):
    with store.session_lock("wishlists", session_id):
        wishlist = _save_wishlist(store, Wishlist(session_id=session_id))
    return wishlist

# Checkout -> create order and clear cart
@app.post("/api/checkout", response_model=Order, status_code=201)
def checkout(req: CheckoutRequest, store: Store = Depends(get_store)):
    with store.session_lock("carts", req.session_id):
        cart = _load_cart(store, req.session_id)
        if not cart.items:
            raise HTTPException(status_code=400, detail="Cart is empty")
        order_items = [
            OrderItem(
                product_id=it.product_id,
                name=it.product.name,
                quantity=it.quantity,
                price=it.unit_price,
                customization=it.customization,
            )
            for it in cart.items
        ]
        order = OrderCreate(
            **req.model_dump(exclude={"session_id"}),
            total_amount=cart_ops.cart_total(cart.items),
            order_items=order_items,
        )
        doc = store.insert("orders", {**order.model_dump(mode="json"), "status": OrderStatus.PENDING.value})
        _save_cart(store, Cart(session_id=req.session_id))
    logger.info("Checkout for session %s created order %s (total %.2f)", req.session_id, doc["id"], doc["total_amount"])
    return doc

# Orders
@app.get("/api/orders", response_model=List[Order])
def list_orders(store: Store = Depends(get_store)):
    return store.find("orders", newest_first=True)

@app.post("/api/orders", response_model=Order, status_code=201)
def create_order(o: OrderCreate, store: Store = Depends(get_store)):
    doc = store.insert("orders", {**o.model_dump(mode="json"), "status": OrderStatus.PENDING.value})
    logger.info("Created order %s for %s (total %.2f)", doc["id"], doc["customer_email"], doc["total_amount"])
    return doc

@app.patch("/api/orders/{order_id}", response_model=Order)
def update_order_status(order_id: int, payload: OrderStatusUpdate, store: Store = Depends(get_store)):
    doc = store.update("orders", order_id, {"status": payload.status.value})
    if not doc:
        raise HTTPException(status_code=404, detail="Order not found")
    logger.info("Order %s status -> %s", order_id, payload.status.value)
    return doc

# Bank details
@app.get("/api/bank-details", response_model=Optional[BankDetails])
def get_bank_details(store: Store = Depends(get_store)):
    return store.get("bank_details", 1)

@app.put("/api/bank-details", response_model=BankDetails)
def put_bank_details(b: BankDetails, store: Store = Depends(get_store)):
    fields = b.model_dump(exclude={"gst_number"})
    fields["gst_details"] = b.gst_details if b.gst_details is not None else b.gst_number
    return store.upsert_by("bank_details", "id", 1, fields)

# Inquiries
@app.get("/api/inquiries", response_model=List[Inquiry])
def list_inquiries(store: Store = Depends(get_store)):
    return store.find("inquiries", newest_first=True)

@app.post("/api/inquiries", response_model=Inquiry, status_code=201)
def create_inquiry(i: InquiryCreate, store: Store = Depends(get_store)):
    return store.insert("inquiries", {**i.model_dump(mode="json"), "status": "new"})

@app.patch("/api/inquiries/{inquiry_id}", response_model=Inquiry)
def update_inquiry_status(inquiry_id: int, payload: InquiryStatusUpdate, store: Store = Depends(get_store)):
    doc = store.update("inquiries", inquiry_id, {"status": payload.status.value})
    if not doc:
        raise HTTPException(status_code=404, detail="Inquiry not found")
    return doc

@app.delete("/api/inquiries/{inquiry_id}")
def delete_inquiry(inquiry_id: int, store: Store = Depends(get_store)):
    if not store.delete("inquiries", inquiry_id):
        raise HTTPException(status_code=404, detail="Inquiry not found")
    return {"ok": True}

if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
