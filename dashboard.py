"""
Read-only sales analytics for the admin dashboard.

Calendar windows (day, Monday-based week, month, year) are computed in the
store's IANA time zone (``TIMEZONE``) and are half-open:
``start <= created_at < end``. Order timestamps are stored as naive UTC, so
window bounds are converted before querying, each with the offset in force
at that instant.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Tuple
from zoneinfo import ZoneInfo

from pymongo.database import Database

from config import TIMEZONE


def local_now() -> datetime:
    return datetime.now(ZoneInfo(TIMEZONE))


def _as_utc(dt: datetime) -> datetime:
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def _midnight(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def _month_start(year: int, month: int, tz) -> datetime:
    while month < 1:
        month += 12
        year -= 1
    while month > 12:
        month -= 12
        year += 1
    return datetime(year, month, 1, tzinfo=tz)


def percentage_difference(current: float, previous: float) -> float:
    if not previous:
        return 0
    return (current - previous) / previous * 100


class ReportingAggregator:
    def __init__(self, db: Database, clock: Callable[[], datetime] = local_now):
        self.orders = db["order"]
        self.products = db["product"]
        self.clock = clock

    def _window(self, start: datetime, end: datetime) -> Dict:
        return {"created_at": {"$gte": _as_utc(start), "$lt": _as_utc(end)}}

    def _sales_between(self, start: datetime, end: datetime) -> float:
        result = list(
            self.orders.aggregate(
                [
                    {"$match": self._window(start, end)},
                    {"$group": {"_id": None, "totalSales": {"$sum": "$total"}}},
                ]
            )
        )
        return result[0]["totalSales"] if result else 0

    def _units_sold(self, match: Dict) -> int:
        result = list(
            self.orders.aggregate(
                [
                    {"$match": match},
                    {"$unwind": "$items"},
                    {"$group": {"_id": None, "soldItems": {"$sum": "$items.quantity"}}},
                ]
            )
        )
        return result[0]["soldItems"] if result else 0

    def _comparison(self, title: str, current: Tuple[datetime, datetime], previous: Tuple[datetime, datetime]) -> Dict:
        now_sales = self._sales_between(*current)
        before = self._sales_between(*previous)
        return {
            "title": title,
            "current": now_sales,
            "previous": before,
            "percentageDifference": percentage_difference(now_sales, before),
            "status": "up" if now_sales >= before else "down",
        }

    def todays_total_sales(self) -> float:
        start = _midnight(self.clock())
        return self._sales_between(start, start + timedelta(days=1))

    def total_sold_items(self) -> int:
        return self._units_sold({})

    def total_products(self) -> int:
        return self.products.count_documents({})

    def total_orders(self) -> int:
        return self.orders.count_documents({})

    def sales_this_week(self) -> Dict:
        today = _midnight(self.clock())
        start = today - timedelta(days=today.weekday())
        end = start + timedelta(days=7)
        return self._comparison(
            "Sales This Week", (start, end), (start - timedelta(days=7), start)
        )

    def sales_this_month(self) -> Dict:
        now = self.clock()
        start = _month_start(now.year, now.month, now.tzinfo)
        end = _month_start(now.year, now.month + 1, now.tzinfo)
        previous = _month_start(now.year, now.month - 1, now.tzinfo)
        return self._comparison("Sales This Month", (start, end), (previous, start))

    def yearly_sales(self) -> List[Dict]:
        now = self.clock()
        months = []
        for month in range(1, 13):
            start = _month_start(now.year, month, now.tzinfo)
            end = _month_start(now.year, month + 1, now.tzinfo)
            match = self._window(start, end)
            result = list(
                self.orders.aggregate(
                    [
                        {"$match": match},
                        {"$group": {"_id": None, "totalSales": {"$sum": "$total"}, "totalOrders": {"$sum": 1}}},
                    ]
                )
            )
            totals = result[0] if result else {"totalSales": 0, "totalOrders": 0}
            months.append(
                {
                    "month": month,
                    "totalSales": totals["totalSales"],
                    "totalOrders": totals["totalOrders"],
                    "soldItems": self._units_sold(match) if result else 0,
                }
            )
        return months

    def recent_purchases(self, limit: int = 10) -> List[Dict]:
        cursor = self.orders.find(
            {}, {"items": 1, "total": 1, "created_at": 1, "payment_status": 1, "order_number": 1}
        ).sort("created_at", -1).limit(limit)
        return [
            {
                "orderId": str(order["_id"]),
                "orderNumber": order.get("order_number"),
                "productNames": ", ".join(
                    item["product_snapshot"]["title"] for item in order.get("items", [])
                ),
                "paymentStatus": order.get("payment_status"),
                "amount": order.get("total"),
                "purchaseDate": order.get("created_at"),
            }
            for order in cursor
        ]

    def analytics(self) -> Dict:
        return {
            "todaysTotalSales": self.todays_total_sales(),
            "analytics": [self.sales_this_week(), self.sales_this_month()],
            "totalSoldItems": self.total_sold_items(),
            "totalProducts": self.total_products(),
            "totalOrders": self.total_orders(),
            "totalYearlySales": self.yearly_sales(),
            "recentPurchases": self.recent_purchases(),
        }
