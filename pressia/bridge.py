from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from datetime import datetime
from functools import wraps

from sqlalchemy.exc import SQLAlchemyError

from pressia.db import Storage
from pressia.errors import NotFoundError, StorageError, ValidationError
from pressia.models import Customer, Expense, ItemType, Order
from pressia.services import (
    backup_service,
    customer_service,
    dashboard_service,
    expense_service,
    item_type_service,
    order_service,
    settings_service,
    tracking_service,
)
from pressia.services.validation import positive_int

logger = logging.getLogger(__name__)


def ok(data=None) -> dict:
    return {'success': True, 'data': data}


def fail(error: str) -> dict:
    return {'success': False, 'error': error}


def order_to_dict(order: Order) -> dict:
    return {
        'id': order.id,
        'customer_name': order.customer_name,
        'customer_phone': order.customer_phone,
        'items': [item.to_dict() for item in order.items],
        'total_amount': order.total_amount,
        'pickup_date': order.pickup_date,
        'status': order.status.value,
        'created_at': order.created_at,
        'updated_at': order.updated_at,
    }


def expense_to_dict(expense: Expense) -> dict:
    return {
        'id': expense.id,
        'description': expense.description,
        'amount': expense.amount,
        'category': expense.category,
        'date': expense.date,
        'created_at': expense.created_at,
    }


def item_type_to_dict(item_type: ItemType) -> dict:
    return {
        'id': item_type.id,
        'name': item_type.name,
        'price': item_type.price,
        'category': item_type.category,
        'created_at': item_type.created_at,
    }


def customer_to_dict(customer: Customer) -> dict:
    return {
        'id': customer.id,
        'first_name': customer.first_name,
        'last_name': customer.last_name,
        'phone': customer.phone,
        'created_at': customer.created_at,
    }


def _fields(data) -> dict:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Expected an object of fields')
    return data


def enveloped(func):
    """Turn a bridge method's return value or exception into a success/failure envelope."""

    @wraps(func)
    def _wrapper(self, *args, **kwargs):
        try:
            return ok(func(self, *args, **kwargs))
        except (ValidationError, NotFoundError) as exc:
            logger.warning('%s rejected: %s', func.__name__, exc)
            return fail(str(exc))
        except (SQLAlchemyError, OSError, StorageError) as exc:
            logger.exception('%s failed', func.__name__)
            return fail(f'Storage error: {exc}')
        except Exception as exc:
            logger.exception('%s failed unexpectedly', func.__name__)
            return fail(f'Unexpected error: {exc}')

    return _wrapper


class Bridge:
    """The named operations the presentation layer may call.

    Every operation returns ``{'success': True, 'data': ...}`` or
    ``{'success': False, 'error': message}``; nothing raises across this boundary.
    """

    OPERATIONS = {
        'getOrders': 'get_orders',
        'getRecentOrders': 'get_recent_orders',
        'getTrackedOrders': 'get_tracked_orders',
        'createOrder': 'create_order',
        'updateOrderStatus': 'update_order_status',
        'getExpenses': 'get_expenses',
        'createExpense': 'create_expense',
        'updateExpense': 'update_expense',
        'deleteExpense': 'delete_expense',
        'getItemTypes': 'get_item_types',
        'createItemType': 'create_item_type',
        'updateItemType': 'update_item_type',
        'deleteItemType': 'delete_item_type',
        'getCustomers': 'get_customers',
        'createCustomer': 'create_customer',
        'updateCustomer': 'update_customer',
        'deleteCustomer': 'delete_customer',
        'searchCustomers': 'search_customers',
        'getDashboardStats': 'get_dashboard_stats',
        'getSettings': 'get_settings',
        'setSetting': 'set_setting',
        'exportDatabase': 'export_database',
        'importDatabase': 'import_database',
    }

    def __init__(
        self,
        storage: Storage,
        *,
        clock: Callable[[], datetime] = datetime.now,
        strict_status_transitions: bool = False,
    ) -> None:
        self.storage = storage
        self.clock = clock
        self.strict_status_transitions = strict_status_transitions

    def call(self, operation: str, *args) -> dict:
        method_name = self.OPERATIONS.get(operation)
        if method_name is None:
            logger.warning('Unknown bridge operation %s', operation)
            return fail(f'Unknown operation: {operation}')
        method = getattr(self, method_name)
        try:
            inspect.signature(method).bind(*args)
        except TypeError as exc:
            logger.warning('Bad arguments for %s: %s', operation, exc)
            return fail(f'Invalid arguments for {operation}: {exc}')
        return method(*args)

    # Orders

    @enveloped
    def get_orders(self) -> list[dict]:
        with self.storage.session() as db:
            return [order_to_dict(order) for order in order_service.list_orders(db)]

    @enveloped
    def get_recent_orders(self, limit: int = 5) -> list[dict]:
        limit = positive_int(limit, 'Limit')
        with self.storage.session() as db:
            return [order_to_dict(order) for order in order_service.list_recent_orders(db, limit=limit)]

    @enveloped
    def get_tracked_orders(self, filters: dict | None = None) -> dict:
        filters = _fields(filters)
        now = self.clock()
        with self.storage.session() as db:
            orders = order_service.list_orders(db)
        tracked = tracking_service.track_orders(
            orders,
            now=now,
            search=filters.get('search'),
            status=filters.get('status'),
            date_filter=filters.get('date_filter'),
        )
        counts = tracking_service.count_by_priority(orders, now=now)
        return {
            'orders': [{**order_to_dict(row.order), 'priority': row.priority.value} for row in tracked],
            'counts': {priority.value: count for priority, count in counts.items()},
        }

    @enveloped
    def create_order(self, data: dict) -> dict:
        data = _fields(data)
        now = self.clock()
        with self.storage.session() as db:
            order = order_service.create_order(
                db,
                customer_name=data.get('customer_name'),
                customer_phone=data.get('customer_phone'),
                items=data.get('items'),
                pickup_date=data.get('pickup_date'),
                now=now,
            )
            payload = order_to_dict(order)

        # Separate transaction: a failure here must not undo the order.
        try:
            with self.storage.session() as db:
                order_service.ensure_order_customer(
                    db,
                    customer_name=order.customer_name,
                    customer_phone=order.customer_phone,
                    now=now,
                )
        except SQLAlchemyError:
            logger.warning('Could not add customer for order %s to the address book', order.id, exc_info=True)
        return payload

    @enveloped
    def update_order_status(self, order_id: str, status) -> dict:
        with self.storage.session() as db:
            order = order_service.update_order_status(
                db,
                order_id=order_id,
                status=status,
                now=self.clock(),
                strict=self.strict_status_transitions,
            )
            return order_to_dict(order)

    # Expenses

    @enveloped
    def get_expenses(self) -> list[dict]:
        with self.storage.session() as db:
            return [expense_to_dict(expense) for expense in expense_service.list_expenses(db)]

    @enveloped
    def create_expense(self, data: dict) -> dict:
        with self.storage.session() as db:
            expense = expense_service.create_expense(db, data=_fields(data), now=self.clock())
            return expense_to_dict(expense)

    @enveloped
    def update_expense(self, expense_id: str, data: dict) -> dict:
        with self.storage.session() as db:
            expense_service.update_expense(db, expense_id=expense_id, data=_fields(data))
        return {'id': expense_id}

    @enveloped
    def delete_expense(self, expense_id: str) -> dict:
        with self.storage.session() as db:
            expense_service.delete_expense(db, expense_id=expense_id)
        return {'id': expense_id}

    # Item types

    @enveloped
    def get_item_types(self) -> list[dict]:
        with self.storage.session() as db:
            return [item_type_to_dict(item_type) for item_type in item_type_service.list_item_types(db)]

    @enveloped
    def create_item_type(self, data: dict) -> dict:
        with self.storage.session() as db:
            item_type = item_type_service.create_item_type(db, data=_fields(data), now=self.clock())
            return item_type_to_dict(item_type)

    @enveloped
    def update_item_type(self, item_type_id: str, data: dict) -> dict:
        with self.storage.session() as db:
            item_type_service.update_item_type(db, item_type_id=item_type_id, data=_fields(data))
        return {'id': item_type_id}

    @enveloped
    def delete_item_type(self, item_type_id: str) -> dict:
        with self.storage.session() as db:
            item_type_service.delete_item_type(db, item_type_id=item_type_id)
        return {'id': item_type_id}

    # Customers

    @enveloped
    def get_customers(self) -> list[dict]:
        with self.storage.session() as db:
            return [customer_to_dict(customer) for customer in customer_service.list_customers(db)]

    @enveloped
    def create_customer(self, data: dict) -> dict:
        with self.storage.session() as db:
            customer = customer_service.create_customer(db, data=_fields(data), now=self.clock())
            return customer_to_dict(customer)

    @enveloped
    def update_customer(self, customer_id: str, data: dict) -> dict:
        with self.storage.session() as db:
            customer_service.update_customer(db, customer_id=customer_id, data=_fields(data))
        return {'id': customer_id}

    @enveloped
    def delete_customer(self, customer_id: str) -> dict:
        with self.storage.session() as db:
            customer_service.delete_customer(db, customer_id=customer_id)
        return {'id': customer_id}

    @enveloped
    def search_customers(self, term: str | None = None) -> list[dict]:
        with self.storage.session() as db:
            return [customer_to_dict(customer) for customer in customer_service.search_customers(db, term)]

    # Dashboard and settings

    @enveloped
    def get_dashboard_stats(self) -> dict:
        with self.storage.session() as db:
            stats = dashboard_service.compute_dashboard_stats(db, today=self.clock().date())
        return stats.to_dict()

    @enveloped
    def get_settings(self) -> dict:
        with self.storage.session() as db:
            return settings_service.list_settings(db)

    @enveloped
    def set_setting(self, key: str, value) -> dict:
        with self.storage.session() as db:
            row = settings_service.set_setting(db, key=key, value=value, now=self.clock())
            return {'key': row.key, 'value': row.value}

    # Backup

    def export_database(self, destination: str | None = None) -> dict:
        if not destination:
            return fail('Export cancelled')
        return self._export_database(destination)

    @enveloped
    def _export_database(self, destination: str) -> dict:
        return {'path': str(backup_service.export_database(self.storage, destination))}

    def import_database(self, source: str | None = None) -> dict:
        if not source:
            return fail('Import cancelled')
        return self._import_database(source)

    @enveloped
    def _import_database(self, source: str) -> dict:
        backup_service.import_database(self.storage, source)
        return {'path': str(source)}
