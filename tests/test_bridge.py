from __future__ import annotations

import tempfile
import unittest
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from pressia.bridge import Bridge
from pressia.db import Storage


class _Clock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class BridgeTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp_path = Path(self._tmp.name)
        self.storage = Storage(self.tmp_path / 'pressia.db')
        self.clock = _Clock(datetime(2024, 6, 20, 10, 0))
        self.bridge = Bridge(self.storage, clock=self.clock)

    def tearDown(self) -> None:
        self.storage.close()
        self._tmp.cleanup()

    def _item_type(self, name: str) -> dict:
        response = self.bridge.get_item_types()
        self.assertTrue(response['success'])
        return next(item for item in response['data'] if item['name'] == name)

    def _order_payload(self, **overrides) -> dict:
        shirt = self._item_type('Chemise Homme')
        payload = {
            'customer_name': 'Kossi Mensah',
            'customer_phone': '90123456',
            'items': [{**shirt, 'quantity': 2}],
            'pickup_date': '2024-06-23',
        }
        payload.update(overrides)
        return payload

    def test_new_item_type_order_scenario(self) -> None:
        created = self.bridge.create_item_type({'name': 'Chemise Homme', 'price': 500, 'category': 'Vêtements Homme'})
        self.assertTrue(created['success'])
        before = self.bridge.get_dashboard_stats()['data']['pendingOrders']

        response = self.bridge.create_order(
            {
                'customer_name': 'Ama Dzifa',
                'items': [{**created['data'], 'quantity': 2}],
                'pickup_date': '2024-06-22',
            }
        )

        self.assertTrue(response['success'])
        self.assertEqual(response['data']['total_amount'], Decimal('1000'))
        self.assertEqual(response['data']['status'], 'pending')
        self.assertEqual(self.bridge.get_dashboard_stats()['data']['pendingOrders'], before + 1)

    def test_created_order_is_listed_as_pending(self) -> None:
        created = self.bridge.create_order(self._order_payload())

        orders = self.bridge.get_orders()['data']

        self.assertEqual(len(orders), 1)
        self.assertEqual(orders[0]['id'], created['data']['id'])
        self.assertEqual(orders[0]['status'], 'pending')
        self.assertEqual(orders[0]['total_amount'], Decimal('1000'))
        self.assertEqual(orders[0]['items'][0]['quantity'], 2)

    def test_order_creation_adds_customer_to_address_book(self) -> None:
        self.bridge.create_order(self._order_payload())
        self.bridge.create_order(self._order_payload())

        customers = self.bridge.get_customers()['data']

        self.assertEqual(len(customers), 1)
        self.assertEqual(customers[0]['first_name'], 'Kossi')
        self.assertEqual(customers[0]['last_name'], 'Mensah')
        self.assertEqual(customers[0]['phone'], '90123456')

    def test_customer_failure_does_not_fail_order(self) -> None:
        with patch(
            'pressia.services.order_service.ensure_order_customer',
            side_effect=OperationalError('INSERT INTO customers', {}, Exception('disk I/O error')),
        ):
            response = self.bridge.create_order(self._order_payload())

        self.assertTrue(response['success'])
        self.assertEqual(len(self.bridge.get_orders()['data']), 1)
        self.assertEqual(self.bridge.get_customers()['data'], [])

    def test_status_update_moves_updated_at_forward(self) -> None:
        order_id = self.bridge.create_order(self._order_payload())['data']['id']
        before = self.bridge.get_orders()['data'][0]['updated_at']
        self.clock.advance(hours=5)

        for status in ('completed', 'picked_up', 'cancelled', 'pending'):
            response = self.bridge.update_order_status(order_id, status)
            self.assertTrue(response['success'])
            stored = self.bridge.get_orders()['data'][0]
            self.assertEqual(stored['status'], status)
            self.assertGreaterEqual(stored['updated_at'], before)

    def test_strict_bridge_rejects_illegal_transition(self) -> None:
        strict = Bridge(self.storage, clock=self.clock, strict_status_transitions=True)
        order_id = strict.create_order(self._order_payload())['data']['id']

        response = strict.update_order_status(order_id, 'picked_up')

        self.assertFalse(response['success'])
        self.assertIn('Cannot move order', response['error'])

    def test_unknown_order_is_a_failure_envelope(self) -> None:
        response = self.bridge.update_order_status('missing', 'completed')
        self.assertEqual(response, {'success': False, 'error': 'Order not found: missing'})

    def test_validation_errors_become_failure_envelopes(self) -> None:
        self.assertFalse(self.bridge.create_order(self._order_payload(customer_name=''))['success'])
        self.assertFalse(self.bridge.create_order(self._order_payload(items=[]))['success'])
        self.assertFalse(self.bridge.create_order('not a dict')['success'])
        for amount in (0, -20):
            response = self.bridge.create_expense(
                {'description': 'Transport', 'amount': amount, 'category': 'Transport', 'date': '2024-06-20'}
            )
            self.assertFalse(response['success'])
        self.assertEqual(self.bridge.get_orders()['data'], [])
        self.assertEqual(self.bridge.get_expenses()['data'], [])

    def test_malformed_order_fields_become_failure_envelopes(self) -> None:
        shirt = self._item_type('Chemise Homme')
        for items in (5, 'Chemise Homme', [shirt, 'Robe'], [{**shirt, 'quantity': 'two'}]):
            response = self.bridge.create_order(self._order_payload(items=items))
            self.assertFalse(response['success'], items)
            self.assertIn('error', response)
        self.assertEqual(self.bridge.get_orders()['data'], [])

    def test_non_string_search_filter_is_matched_as_text(self) -> None:
        self.bridge.create_order(self._order_payload())

        response = self.bridge.call('getTrackedOrders', {'search': 9012})

        self.assertTrue(response['success'])
        self.assertEqual(len(response['data']['orders']), 1)
        self.assertFalse(self.bridge.call('getTrackedOrders', {'status': ['pending']})['success'])

    def test_closed_storage_is_a_failure_envelope(self) -> None:
        self.storage.close()

        response = self.bridge.get_orders()

        self.assertEqual(response, {'success': False, 'error': 'Storage error: Storage is closed'})
        self.assertFalse(self.bridge.call('createOrder', {'customer_name': 'Ama'})['success'])

    def test_unexpected_errors_are_enveloped_and_not_reported_as_bad_arguments(self) -> None:
        with patch('pressia.services.order_service.list_orders', side_effect=TypeError('boom')):
            response = self.bridge.call('getOrders')

        self.assertEqual(response, {'success': False, 'error': 'Unexpected error: boom'})

    def test_call_rejects_wrong_argument_count(self) -> None:
        response = self.bridge.call('updateOrderStatus', 'only-an-id')

        self.assertFalse(response['success'])
        self.assertTrue(response['error'].startswith('Invalid arguments for updateOrderStatus'))
        self.assertFalse(self.bridge.call('getOrders', 'extra')['success'])

    def test_sub_cent_amounts_are_rejected(self) -> None:
        expense = self.bridge.create_expense(
            {'description': 'Transport', 'amount': '0.001', 'category': 'Transport', 'date': '2024-06-20'}
        )
        item_type = self.bridge.create_item_type({'name': 'Mouchoir', 'price': '0.004', 'category': 'Autres'})

        self.assertFalse(expense['success'])
        self.assertFalse(item_type['success'])
        self.assertEqual(self.bridge.get_expenses()['data'], [])

    def test_storage_errors_become_failure_envelopes(self) -> None:
        with patch(
            'pressia.services.order_service.list_orders',
            side_effect=OperationalError('SELECT', {}, Exception('database is locked')),
        ):
            response = self.bridge.get_orders()

        self.assertFalse(response['success'])
        self.assertIn('database is locked', response['error'])

    def test_update_and_delete_of_unknown_ids_succeed(self) -> None:
        data = {'description': 'x', 'amount': 10, 'category': 'Autres', 'date': '2024-06-01'}
        self.assertEqual(self.bridge.update_expense('missing', data), {'success': True, 'data': {'id': 'missing'}})
        self.assertTrue(self.bridge.delete_expense('missing')['success'])
        self.assertTrue(self.bridge.delete_item_type('missing')['success'])
        self.assertTrue(self.bridge.delete_customer('missing')['success'])

    def test_dashboard_stats_are_stable_without_writes(self) -> None:
        self.bridge.create_order(self._order_payload())
        self.bridge.create_expense({'description': 'Eau', 'amount': 300, 'category': 'Eau', 'date': '2024-06-05'})

        first = self.bridge.get_dashboard_stats()
        second = self.bridge.get_dashboard_stats()

        self.assertEqual(first, second)
        self.assertEqual(first['data']['todayRevenue'], Decimal('1000'))
        self.assertEqual(first['data']['monthlyProfit'], Decimal('700'))

    def test_tracked_orders_carry_priority(self) -> None:
        self.bridge.create_order(self._order_payload(pickup_date='2024-06-19'))
        self.bridge.create_order(self._order_payload(pickup_date='2024-06-30', customer_name='Ama Dzifa'))

        response = self.bridge.get_tracked_orders({'search': 'kossi'})

        self.assertTrue(response['success'])
        self.assertEqual([row['priority'] for row in response['data']['orders']], ['overdue'])
        self.assertEqual(response['data']['counts']['overdue'], 1)
        self.assertEqual(response['data']['counts']['normal'], 1)

    def test_search_customers(self) -> None:
        self.bridge.create_customer({'first_name': 'Ama', 'last_name': 'Dzifa', 'phone': '91445566'})
        self.bridge.create_customer({'first_name': 'Kofi', 'last_name': 'Agbeko', 'phone': '92778899'})

        response = self.bridge.search_customers('DZI')

        self.assertEqual([c['first_name'] for c in response['data']], ['Ama'])

    def test_call_dispatches_camel_case_names(self) -> None:
        response = self.bridge.call('setSetting', 'currency', 'XOF')
        self.assertTrue(response['success'])
        self.assertEqual(self.bridge.call('getSettings'), {'success': True, 'data': {'currency': 'XOF'}})
        self.assertFalse(self.bridge.call('dropTables')['success'])
        self.assertFalse(self.bridge.call('updateOrderStatus')['success'])

    def test_export_then_import_restores_state(self) -> None:
        self.bridge.create_order(self._order_payload())
        self.bridge.create_expense({'description': 'Eau', 'amount': 300, 'category': 'Eau', 'date': '2024-06-05'})
        before = {
            'orders': self.bridge.get_orders()['data'],
            'expenses': self.bridge.get_expenses()['data'],
            'item_types': self.bridge.get_item_types()['data'],
        }
        backup = self.tmp_path / 'backups' / 'pressia-backup.sqlite'

        exported = self.bridge.export_database(str(backup))
        self.assertTrue(exported['success'])
        self.assertTrue(backup.is_file())

        self.bridge.create_order(self._order_payload(customer_name='Après Export'))
        self.bridge.delete_expense(before['expenses'][0]['id'])

        imported = self.bridge.import_database(str(backup))

        self.assertTrue(imported['success'])
        self.assertEqual(self.bridge.get_orders()['data'], before['orders'])
        self.assertEqual(self.bridge.get_expenses()['data'], before['expenses'])
        self.assertEqual(self.bridge.get_item_types()['data'], before['item_types'])

    def test_import_keeps_an_empty_price_list_empty(self) -> None:
        for item_type in self.bridge.get_item_types()['data']:
            self.bridge.delete_item_type(item_type['id'])
        backup = self.tmp_path / 'empty-price-list.sqlite'
        self.assertTrue(self.bridge.export_database(str(backup))['success'])
        self.bridge.create_item_type({'name': 'Nappe', 'price': 600, 'category': 'Linge de maison'})

        self.assertTrue(self.bridge.import_database(str(backup))['success'])

        self.assertEqual(self.bridge.get_item_types()['data'], [])

    def test_export_and_import_without_path_are_cancelled(self) -> None:
        self.assertEqual(self.bridge.export_database(None), {'success': False, 'error': 'Export cancelled'})
        self.assertEqual(self.bridge.import_database(''), {'success': False, 'error': 'Import cancelled'})

    def test_import_rejects_non_sqlite_file(self) -> None:
        bogus = self.tmp_path / 'notes.txt'
        bogus.write_text('hello', encoding='utf-8')

        response = self.bridge.import_database(str(bogus))

        self.assertFalse(response['success'])
        self.assertTrue(self.bridge.get_item_types()['success'])


if __name__ == '__main__':
    unittest.main()
