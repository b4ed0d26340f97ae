# SPDX-License-Identifier: AGPL-3.0-or-later
"""Dashboard and report numbers folded from items, sales and purchases."""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Literal, Optional, Sequence, Tuple

from bizcore.contracts.inventory import Item, Purchase, Sale
from bizcore.contracts.preferences import DisplayPreferences
from bizcore.formatting import format_unit
from bizcore.money import round_money

StockStatus = Literal["success", "warning", "error"]

RECENT_LIMIT = 5
TOP_PRODUCTS_LIMIT = 5


def _num(value: float) -> str:
    return f"{value:g}"


# ---------------------------------------------------------------------------
# Per-item numbers


def inventory_value(item: Item) -> float:
    """Stock value of one item.

    Quantity items and package-priced ("each") items multiply by the package
    count; everything else multiplies by the amount on hand.
    """

    if not item.is_continuous or item.price_type == "each":
        return item.price * (item.quantity or 0)
    return item.price * item.measurement_value()


def inventory_cost(item: Item) -> float:
    cost = item.cost or 0
    if not item.is_continuous or item.price_type == "each":
        return cost * (item.quantity or 0)
    return cost * item.measurement_value()


def _judge(level: float, threshold: float) -> StockStatus:
    if level <= 0:
        return "error"
    if level < threshold:
        return "warning"
    return "success"


def stock_status(item: Item, prefs: Optional[DisplayPreferences] = None) -> StockStatus:
    prefs = prefs or DisplayPreferences()
    if not item.is_continuous or item.price_type == "each":
        return _judge(item.quantity or 0, prefs.quantity_threshold)
    return _judge(item.measurement_value(), prefs.threshold_for(item.measurement_unit()))


def stock_label(item: Item, prefs: Optional[DisplayPreferences] = None) -> str:
    status = stock_status(item, prefs)
    if not item.is_continuous:
        if status == "error":
            return "Out of stock"
        if status == "warning":
            return f"Low stock: {_num(item.quantity)} left"
        return f"{_num(item.quantity)} in stock"
    unit = format_unit(item.measurement_unit())
    if item.price_type == "each":
        if status == "error":
            return "Out of stock"
        return f"{_num(item.quantity)} × {_num(item.measurement_value())} {unit}"
    return f"{_num(item.measurement_value())} {unit} in stock"


def markup_percent(price: float, cost: Optional[float]) -> Optional[float]:
    """``(price / cost - 1) * 100``; ``None`` when there is no cost to mark up from."""

    if not cost:
        return None
    return (price / cost - 1) * 100


def format_markup(price: float, cost: Optional[float]) -> str:
    markup = markup_percent(price, cost)
    if markup is None:
        return "N/A"
    return f"{markup:.1f}%"


def profit_per_unit(price: float, cost: Optional[float]) -> float:
    return price - (cost or 0)


@dataclass
class MarginLine:
    item_id: Optional[str]
    name: str
    category: str
    price: float
    cost: float
    profit: float
    markup: Optional[float]

    @property
    def markup_display(self) -> str:
        return "N/A" if self.markup is None else f"{self.markup:.1f}%"


def item_margin(item: Item) -> MarginLine:
    return MarginLine(
        item_id=item.id,
        name=item.name,
        category=item.category or "Uncategorized",
        price=item.price,
        cost=item.cost or 0,
        profit=profit_per_unit(item.price, item.cost),
        markup=markup_percent(item.price, item.cost),
    )


# ---------------------------------------------------------------------------
# Collections


def total_inventory_value(items: Iterable[Item]) -> float:
    return round_money(sum(inventory_value(item) for item in items))


def low_stock_items(items: Iterable[Item], prefs: Optional[DisplayPreferences] = None) -> List[Item]:
    prefs = prefs or DisplayPreferences()
    if not prefs.low_stock_alerts_enabled:
        return []
    return [item for item in items if stock_status(item, prefs) != "success"]


@dataclass
class CategoryMargin:
    category: str
    item_count: int = 0
    total_markup: float = 0.0
    total_profit: float = 0.0

    @property
    def average_markup(self) -> float:
        return self.total_markup / self.item_count if self.item_count else 0.0


@dataclass
class ProfitReport:
    lines: List[MarginLine]
    categories: List[CategoryMargin]
    total_cost: float
    total_value: float
    highest_markup: Optional[MarginLine] = None

    @property
    def potential_profit(self) -> float:
        return round_money(self.total_value - self.total_cost)


def profit_report(items: Sequence[Item]) -> ProfitReport:
    lines = [item_margin(item) for item in items]
    by_category: Dict[str, CategoryMargin] = {}
    for line in lines:
        bucket = by_category.setdefault(line.category, CategoryMargin(line.category))
        bucket.item_count += 1
        bucket.total_markup += line.markup or 0
        bucket.total_profit += line.profit
    priced = [line for line in lines if line.markup is not None and line.cost > 0]
    highest = max(priced, key=lambda line: line.markup, default=None)
    lines.sort(key=lambda line: line.markup or 0, reverse=True)
    return ProfitReport(
        lines=lines,
        categories=sorted(by_category.values(), key=lambda c: c.category),
        total_cost=round_money(sum(inventory_cost(item) for item in items)),
        total_value=total_inventory_value(items),
        highest_markup=highest,
    )


def _line_name(line) -> str:
    if line.name:
        return line.name
    if isinstance(line.item, dict):
        return str(line.item.get("name") or line.item.get("_id") or "Unknown")
    return line.item or "Unknown"


@dataclass
class SalesSummary:
    total_sales: int
    total_revenue: float
    average_order_value: float
    top_products_by_quantity: List[Tuple[str, float]] = field(default_factory=list)


def sales_summary(sales: Sequence[Sale]) -> SalesSummary:
    revenue = sum(sale.total for sale in sales)
    quantities: Counter = Counter()
    for sale in sales:
        for line in sale.items:
            quantities[_line_name(line)] += line.quantity
    return SalesSummary(
        total_sales=len(sales),
        total_revenue=round_money(revenue),
        average_order_value=round_money(revenue / len(sales)) if sales else 0.0,
        top_products_by_quantity=quantities.most_common(TOP_PRODUCTS_LIMIT),
    )


@dataclass
class PurchasesSummary:
    total_purchases: int
    total_cost: float
    average_purchase_value: float
    by_supplier: Dict[str, float] = field(default_factory=dict)


def purchases_summary(purchases: Sequence[Purchase]) -> PurchasesSummary:
    cost = sum(purchase.total for purchase in purchases)
    suppliers: Dict[str, float] = defaultdict(float)
    for purchase in purchases:
        suppliers[purchase.supplier.name or "Unknown"] += purchase.total
    return PurchasesSummary(
        total_purchases=len(purchases),
        total_cost=round_money(cost),
        average_purchase_value=round_money(cost / len(purchases)) if purchases else 0.0,
        by_supplier={name: round_money(total) for name, total in suppliers.items()},
    )


def _recency(moment: Optional[datetime]) -> float:
    return moment.timestamp() if moment is not None else 0.0


@dataclass
class DashboardSummary:
    item_count: int
    total_inventory_value: float
    low_stock: List[Item]
    sales_total: float
    purchases_total: float
    recent_sales: List[Sale]
    recent_purchases: List[Purchase]

    def to_dict(self) -> Dict[str, object]:
        return {
            "itemCount": self.item_count,
            "totalInventoryValue": self.total_inventory_value,
            "lowStock": [item.name for item in self.low_stock],
            "salesTotal": self.sales_total,
            "purchasesTotal": self.purchases_total,
            "recentSales": [{"id": s.id, "total": s.total} for s in self.recent_sales],
            "recentPurchases": [{"id": p.id, "total": p.total} for p in self.recent_purchases],
        }


def dashboard_summary(
    items: Sequence[Item],
    sales: Sequence[Sale],
    purchases: Sequence[Purchase],
    prefs: Optional[DisplayPreferences] = None,
) -> DashboardSummary:
    return DashboardSummary(
        item_count=len(items),
        total_inventory_value=total_inventory_value(items),
        low_stock=low_stock_items(items, prefs),
        sales_total=round_money(sum(sale.total for sale in sales)),
        purchases_total=round_money(sum(purchase.total for purchase in purchases)),
        recent_sales=sorted(sales, key=lambda s: _recency(s.created_at), reverse=True)[:RECENT_LIMIT],
        recent_purchases=sorted(
            purchases, key=lambda p: _recency(p.purchase_date), reverse=True
        )[:RECENT_LIMIT],
    )


__all__ = [
    "CategoryMargin",
    "DashboardSummary",
    "MarginLine",
    "ProfitReport",
    "PurchasesSummary",
    "SalesSummary",
    "StockStatus",
    "dashboard_summary",
    "format_markup",
    "inventory_cost",
    "inventory_value",
    "item_margin",
    "low_stock_items",
    "markup_percent",
    "profit_per_unit",
    "profit_report",
    "purchases_summary",
    "sales_summary",
    "stock_label",
    "stock_status",
]
