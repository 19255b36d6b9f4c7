"""
Shopping cart

Keeps one item list across anonymous and signed-in states:

- Guest: the session's local store owns the cart; every change is written
  back under the guest cart key.
- Signed in: the server cart is authoritative and local state mirrors the
  last response. The first load after sign-in merges the guest cart into
  the server cart, once per session.
"""

import logging
from typing import TYPE_CHECKING, Any, Awaitable, Optional

from pydantic import ValidationError as ModelValidationError

from shop_api.errors import ApiError
from shop_api.models import ApiModel, Product, ServerCart, ServerCartItem
from shop_api.storage import CART_KEY
from .shop_client import ShopClient

if TYPE_CHECKING:
    from ..core.session import StorefrontSession

logger = logging.getLogger(__name__)


class CartItem(ApiModel):
    """Cart line as shown to the customer and persisted for guests"""
    id: Optional[int] = None  # server-side line id, signed-in carts only
    product_id: int
    name: str
    slug: str
    price: float
    old_price: Optional[float] = None
    image: Optional[str] = None
    quantity: int
    stock_quantity: int

    @classmethod
    def from_product(cls, product: Product, quantity: int) -> "CartItem":
        return cls(
            product_id=product.id,
            name=product.name,
            slug=product.slug,
            price=product.price,
            old_price=product.old_price,
            image=product.thumbnail(),
            quantity=quantity,
            stock_quantity=product.stock_quantity,
        )

    @classmethod
    def from_server(cls, line: ServerCartItem) -> "CartItem":
        item = cls.from_product(line.product, line.quantity)
        item.id = line.id
        return item


def clamp_quantity(quantity: int, stock_quantity: int) -> int:
    """Guest quantities stay within [1, stock]"""
    return max(1, min(quantity, stock_quantity))


class CartService:
    """Cart state for one storefront session"""

    def __init__(self, session: "StorefrontSession", shop: ShopClient):
        self.session = session
        self.shop = shop
        self.items: list[CartItem] = []
        self.loaded = False
        # Every server-state replacement gets a sequence number; responses
        # older than the last applied one are dropped.
        self._issued_seq = 0
        self._applied_seq = 0

    @property
    def is_server_mode(self) -> bool:
        return self.session.is_authenticated

    # ==================== Derived values ====================

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def total_price(self) -> float:
        return round(sum(item.price * item.quantity for item in self.items), 2)

    def get_item_quantity(self, product_id: int) -> int:
        item = self._find(product_id)
        return item.quantity if item else 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [item.model_dump(by_alias=True) for item in self.items],
            "totalItems": self.total_items,
            "totalPrice": self.total_price,
            "loaded": self.loaded,
            "mode": "server" if self.is_server_mode else "guest",
        }

    # ==================== Loading & merge ====================

    async def load(self) -> None:
        """Load the cart for the current auth state, merging once after sign-in"""
        if not self.is_server_mode:
            self.items = self._read_guest()
            self.loaded = True
            return

        seq = self._next_seq()
        try:
            server_cart = await self.shop.get_cart()
            if not self.session.cart_merged:
                server_cart = await self._merge_guest_cart(server_cart)
                seq = self._next_seq()
        except ApiError as e:
            logger.error(f"Failed to load server cart: {e.message}")
            self.loaded = True
            return

        self._apply_server(server_cart, seq)
        self.loaded = True

    async def _merge_guest_cart(self, server_cart: ServerCart) -> ServerCart:
        """
        Push guest lines the server cart does not have yet, then drop the
        guest cart. A line that fails (e.g. product gone) is skipped.
        """
        self.session.cart_merged = True
        guest_items = self._read_guest()
        present = {line.product_id for line in server_cart.items}

        added = 0
        for item in guest_items:
            if item.product_id in present:
                continue
            try:
                await self.shop.add_cart_item(item.product_id, item.quantity)
            except ApiError as e:
                logger.warning(f"Skipped guest cart line {item.product_id}: {e.message}")
                continue
            present.add(item.product_id)
            added += 1

        self.session.store.remove(CART_KEY)
        logger.info(
            f"Merged guest cart for session {self.session.session_id}: "
            f"{added} of {len(guest_items)} lines added"
        )

        if not guest_items:
            return server_cart
        return await self.shop.get_cart()

    # ==================== Mutations ====================

    async def add_item(self, product: Product, quantity: int = 1) -> bool:
        """Add a product; returns False when nothing changed"""
        if self.is_server_mode:
            return await self._replace_from_server(
                "add", self.shop.add_cart_item(product.id, quantity)
            )

        if product.stock_quantity < 1:
            logger.info(f"Product {product.id} is out of stock, not added")
            return False

        existing = self._find(product.id)
        if existing:
            existing.quantity = clamp_quantity(existing.quantity + quantity, product.stock_quantity)
        else:
            self.items.append(
                CartItem.from_product(product, clamp_quantity(quantity, product.stock_quantity))
            )
        self._save_guest()
        return True

    async def update_quantity(self, product_id: int, quantity: int) -> bool:
        item = self._find(product_id)
        if item is None:
            return False

        if self.is_server_mode:
            if item.id is None:
                # Line has not been confirmed by the server yet
                return False
            return await self._replace_from_server(
                "update", self.shop.update_cart_item(item.id, max(1, quantity))
            )

        item.quantity = clamp_quantity(quantity, item.stock_quantity)
        self._save_guest()
        return True

    async def remove_item(self, product_id: int) -> bool:
        item = self._find(product_id)
        if item is None:
            return False

        if self.is_server_mode:
            if item.id is None:
                return False
            return await self._replace_from_server("remove", self.shop.remove_cart_item(item.id))

        self.items = [i for i in self.items if i.product_id != product_id]
        self._save_guest()
        return True

    async def clear(self) -> bool:
        if self.is_server_mode:
            seq = self._next_seq()
            try:
                await self.shop.clear_cart()
            except ApiError as e:
                logger.error(f"Failed to clear server cart: {e.message}")
                return False
            self._applied_seq = max(self._applied_seq, seq)
            self.items = []
            return True

        self.items = []
        self._save_guest()
        return True

    def reset(self) -> None:
        """Forget local state; responses still in flight are ignored"""
        self.items = []
        self.loaded = False
        self._applied_seq = self._next_seq()

    # ==================== Internals ====================

    def _find(self, product_id: int) -> Optional[CartItem]:
        return next((i for i in self.items if i.product_id == product_id), None)

    def _next_seq(self) -> int:
        self._issued_seq += 1
        return self._issued_seq

    def _apply_server(self, cart: ServerCart, seq: int) -> bool:
        if seq < self._applied_seq:
            logger.debug(f"Discarding stale cart response #{seq} (applied #{self._applied_seq})")
            return False
        self._applied_seq = seq
        self.items = [CartItem.from_server(line) for line in cart.items]
        return True

    async def _replace_from_server(self, action: str, call: Awaitable[ServerCart]) -> bool:
        """State is only replaced after the server confirmed the change"""
        seq = self._next_seq()
        try:
            cart = await call
        except ApiError as e:
            logger.error(f"Cart {action} failed: {e.message}")
            return False
        return self._apply_server(cart, seq)

    def _read_guest(self) -> list[CartItem]:
        raw = self.session.store.get(CART_KEY)
        if not isinstance(raw, list):
            return []
        try:
            return [CartItem.model_validate(entry) for entry in raw]
        except ModelValidationError as e:
            logger.warning(f"Discarding unreadable guest cart: {e}")
            return []

    def _save_guest(self) -> None:
        self.session.store.set(
            CART_KEY,
            [item.model_dump(by_alias=True, exclude_none=True) for item in self.items],
        )
