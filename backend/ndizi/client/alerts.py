# Overview: Stock alerts derived from inventory (low stock, upcoming expiry).

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from ndizi.time_utils import parse_iso_date, utcnow

ALERT_LOW_STOCK = "low-stock"
ALERT_EXPIRY = "expiry"

EXPIRY_WINDOW_DAYS = 30

PRIORITY_ORDER = {"high": 3, "medium": 2, "low": 1}


@dataclass(frozen=True)
class Alert:
    id: str
    type: str
    product: dict
    message: str
    priority: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "product": self.product,
            "message": self.message,
            "priority": self.priority,
        }


def _expiry_priority(days_left: int) -> str:
    if days_left <= 7:
        return "high"
    if days_left <= 15:
        return "medium"
    return "low"


def build_alerts(products, *, today: date | None = None) -> list[Alert]:
    """
    Low stock: quantity at or under the product's threshold (0 when unset);
    out of stock is high priority, anything else medium.

    Expiry: expiring within the next 30 days (today included); high within a
    week, medium within 15 days, low otherwise.

    Sorted high priority first.
    """
    today = today or utcnow().date()
    alerts: list[Alert] = []

    for product in products:
        quantity = product.get("quantity") or 0
        if quantity <= (product.get("lowStockThreshold") or 0):
            alerts.append(Alert(
                id=f"low-stock-{product['id']}",
                type=ALERT_LOW_STOCK,
                product=product,
                message=f"{product.get('name')} is running low ({quantity} left)",
                priority="high" if quantity == 0 else "medium",
            ))

    for product in products:
        expiry = parse_iso_date(product.get("expiry"))
        if expiry is None:
            continue
        days_left = (expiry - today).days
        if 0 <= days_left <= EXPIRY_WINDOW_DAYS:
            alerts.append(Alert(
                id=f"expiry-{product['id']}",
                type=ALERT_EXPIRY,
                product=product,
                message=f"{product.get('name')} expires in {days_left} days",
                priority=_expiry_priority(days_left),
            ))

    # sorted() is stable, so low-stock alerts stay ahead of expiry within a priority
    return sorted(alerts, key=lambda a: PRIORITY_ORDER[a.priority], reverse=True)


def summarize_alerts(alerts: list[Alert]) -> dict:
    return {
        "totalAlerts": len(alerts),
        "lowStock": sum(1 for a in alerts if a.type == ALERT_LOW_STOCK),
        "expiry": sum(1 for a in alerts if a.type == ALERT_EXPIRY),
        "highPriority": sum(1 for a in alerts if a.priority == "high"),
    }
