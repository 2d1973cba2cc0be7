"""
Order engine.

Placing an order re-prices every line from the catalog (client prices are
never trusted), reserves stock with conditional decrements, freezes a snapshot
of each product's display fields into the order and then runs the
best-effort side effects: saving the shipping address to the customer's
address book and mailing the confirmation. Side-effect failures are logged
and never undo the order.
"""

import logging
import secrets
from typing import Dict, List, Optional, Tuple

from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from accounts import AccountStore
from catalog import CatalogStore, discounted_price
from config import STORE_NAME
from database import create_document, get_documents, to_object_id, utcnow
from errors import ConflictError, NotFoundError, ValidationError
from notifications import DeliveryOutcome
from schemas import CartLine, Order, OrderItem, ProductSnapshot, ShippingAddress

logger = logging.getLogger(__name__)

TRANSITIONS: Dict[str, set] = {
    "pending": {"processing", "cancelled"},
    "processing": {"shipped", "cancelled"},
    "shipped": {"delivered"},
    "delivered": set(),
    "cancelled": set(),
}


def tax_for(subtotal: float) -> float:
    return 0.0


def shipping_for(subtotal: float) -> float:
    # Shipping is quoted to the customer after payment.
    return 0.0


def new_order_number() -> str:
    return f"ORD-{utcnow():%Y%m%d}-{secrets.token_hex(3).upper()}"


def price_line(product: dict, quantity: int) -> OrderItem:
    unit = discounted_price(product["price"], product.get("discount", 0))
    return OrderItem(
        product_id=str(product["_id"]),
        product_snapshot=ProductSnapshot(
            title=product["title"],
            slug=product["slug"],
            thumbnail=product.get("thumbnail") or "",
            price=product["price"],
            discount=product.get("discount", 0),
            category=product["category"],
        ),
        quantity=quantity,
        price=round(unit, 2),
        # Subtotal is built from the rounded unit so the invoice multiplies out.
        subtotal=round(round(unit, 2) * quantity, 2),
    )


class OrderEngine:
    def __init__(self, db: Database, catalog: CatalogStore, accounts: AccountStore, notifier):
        self.db = db
        self.orders = db["order"]
        self.catalog = catalog
        self.accounts = accounts
        self.notifier = notifier

    def _resolve(self, line: CartLine) -> dict:
        if line.product_id:
            product = self.catalog.find_by_id(line.product_id)
        else:
            product = self.catalog.find_by_slug(line.slug)
        if not product or not product.get("is_active", True):
            raise NotFoundError(f"Product not found: {line.reference}")
        if product.get("stock", 0) < line.quantity:
            raise ConflictError(f"Insufficient stock for {product['title']}")
        return product

    def _reserve(self, lines: List[Tuple[dict, CartLine]]) -> None:
        taken = []
        for product, line in lines:
            if not self.catalog.reserve_stock(product["_id"], line.quantity):
                for product_id, qty in taken:
                    self.catalog.release_stock(product_id, qty)
                raise ConflictError(f"Insufficient stock for {product['title']}")
            taken.append((product["_id"], line.quantity))

    def _release(self, items: List[dict]) -> None:
        for item in items:
            self.catalog.release_stock(item["product_id"], item["quantity"])

    def _insert(self, order: Order) -> str:
        for _ in range(3):
            try:
                return create_document(self.db, "order", order)
            except DuplicateKeyError:
                order.order_number = new_order_number()
        raise ConflictError("Could not allocate an order number")

    def place_order(
        self,
        items: List[CartLine],
        shipping_address: Optional[ShippingAddress],
        account_id: Optional[str] = None,
    ) -> dict:
        if not items:
            raise ValidationError("Order must contain at least one item")
        if shipping_address is None:
            raise ValidationError("Shipping address is required")

        resolved = [(self._resolve(line), line) for line in items]
        lines = [price_line(product, line.quantity) for product, line in resolved]
        subtotal = round(sum(line.subtotal for line in lines), 2)
        tax = tax_for(subtotal)
        shipping_cost = shipping_for(subtotal)

        order = Order(
            order_number=new_order_number(),
            user_id=account_id,
            items=lines,
            shipping_address=shipping_address,
            subtotal=subtotal,
            tax=tax,
            shipping_cost=shipping_cost,
            total=round(subtotal + tax + shipping_cost, 2),
        )

        self._reserve(resolved)
        try:
            order_id = self._insert(order)
        except Exception:
            self._release([line.model_dump() for line in lines])
            raise

        if account_id:
            try:
                self.accounts.save_shipping_address(account_id, shipping_address)
            except PyMongoError as exc:
                logger.warning("Failed to save address to account %s: %s", account_id, exc)
        else:
            logger.info("Order %s placed as guest", order.order_number)

        doc = self.orders.find_one({"_id": to_object_id(order_id)})
        self.send_confirmation(doc)
        return self.orders.find_one({"_id": doc["_id"]})

    def send_confirmation(self, order: dict) -> DeliveryOutcome:
        """Mail the confirmation; never raises, the outcome says what happened."""
        to_email = order["shipping_address"]["email"]
        try:
            outcome = self.notifier.send(
                to_email,
                f"Order Confirmation {order['order_number']} - {STORE_NAME}",
                "orderConfirmation",
                {"order": order},
            )
        except Exception as exc:
            outcome = DeliveryOutcome.failed(str(exc))
        if not outcome.sent:
            logger.warning("Order confirmation for %s not sent: %s", order["order_number"], outcome.error)
            return outcome
        try:
            self.mark_invoice_sent(order["_id"])
        except PyMongoError as exc:
            logger.warning("Could not flag invoice sent on %s: %s", order["order_number"], exc)
        return outcome

    def mark_invoice_sent(self, order_id) -> Optional[dict]:
        return self.orders.find_one_and_update(
            {"_id": to_object_id(order_id)},
            {"$set": {"invoice_sent": True, "invoice_sent_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )

    def resend_invoice(self, order_id: str) -> DeliveryOutcome:
        return self.send_confirmation(self.get_order(order_id))

    def get_order(self, order_id: str) -> dict:
        oid = to_object_id(order_id)
        order = self.orders.find_one({"_id": oid}) if oid else None
        if not order:
            raise NotFoundError("Order not found")
        return order

    def get_order_by_number(self, order_number: str) -> dict:
        order = self.orders.find_one({"order_number": order_number})
        if not order:
            raise NotFoundError("Order not found")
        return order

    def update_status(self, order_id: str, new_status: str) -> dict:
        order = self.get_order(order_id)
        current = order.get("status", "pending")
        if new_status == current:
            return order
        if new_status not in TRANSITIONS.get(current, set()):
            raise ConflictError(f"Cannot move order from {current} to {new_status}")
        updated = self.orders.find_one_and_update(
            {"_id": order["_id"], "status": current},
            {"$set": {"status": new_status, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise ConflictError("Order status changed concurrently, retry")
        if new_status == "cancelled":
            self._release(order["items"])
        return updated

    def update_payment_status(self, order_id: str, payment_status: str) -> dict:
        order = self.get_order(order_id)
        return self.orders.find_one_and_update(
            {"_id": order["_id"]},
            {"$set": {"payment_status": payment_status, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )

    def list_orders(
        self,
        account_id: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
        status: Optional[str] = None,
    ) -> Tuple[List[dict], int]:
        query = {}
        if account_id:
            query["user_id"] = account_id
        if status:
            query["status"] = status
        docs = get_documents(
            self.db, "order", query, sort=[("created_at", -1)], skip=(page - 1) * limit, limit=limit
        )
        return docs, self.orders.count_documents(query)

    def orders_for_account(self, account_id: str, status: Optional[str] = None) -> List[dict]:
        query = {"user_id": account_id}
        if status:
            query["status"] = status
        return get_documents(self.db, "order", query, sort=[("created_at", -1)])
