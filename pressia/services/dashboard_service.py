from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import Date, func, select
from sqlalchemy.orm import Session

from pressia.models import Expense, Order, OrderStatus


@dataclass(frozen=True)
class DashboardStats:
    today_revenue: Decimal
    monthly_revenue: Decimal
    monthly_expenses: Decimal
    monthly_profit: Decimal
    pending_orders: int

    def to_dict(self) -> dict:
        return {
            'todayRevenue': self.today_revenue,
            'monthlyRevenue': self.monthly_revenue,
            'monthlyExpenses': self.monthly_expenses,
            'monthlyProfit': self.monthly_profit,
            'pendingOrders': self.pending_orders,
        }


def month_bounds(day: date) -> tuple[date, date]:
    start = day.replace(day=1)
    if start.month == 12:
        return start, start.replace(year=start.year + 1, month=1)
    return start, start.replace(month=start.month + 1)


def _as_decimal(value) -> Decimal:
    if value is None:
        return Decimal('0')
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _order_revenue_between(db: Session, start: date, end: date) -> Decimal:
    # Stored timestamps may or may not carry microseconds; compare calendar days.
    created_day = func.date(Order.created_at, type_=Date)
    total = db.execute(
        select(func.coalesce(func.sum(Order.total_amount), 0)).where(
            created_day >= start,
            created_day < end,
        )
    ).scalar_one()
    return _as_decimal(total)


def compute_dashboard_stats(db: Session, *, today: date) -> DashboardStats:
    month_start, next_month = month_bounds(today)

    today_revenue = _order_revenue_between(db, today, today + timedelta(days=1))
    monthly_revenue = _order_revenue_between(db, month_start, next_month)
    monthly_expenses = _as_decimal(
        db.execute(
            select(func.coalesce(func.sum(Expense.amount), 0)).where(
                Expense.date >= month_start,
                Expense.date < next_month,
            )
        ).scalar_one()
    )
    pending_orders = db.execute(
        select(func.count()).select_from(Order).where(Order.status == OrderStatus.PENDING)
    ).scalar_one()

    return DashboardStats(
        today_revenue=today_revenue,
        monthly_revenue=monthly_revenue,
        monthly_expenses=monthly_expenses,
        monthly_profit=monthly_revenue - monthly_expenses,
        pending_orders=int(pending_orders),
    )
