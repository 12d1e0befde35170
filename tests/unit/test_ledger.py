"""
Unit tests for user ids and the purchase history ledger.
"""

import pytest
from datetime import datetime
from decimal import Decimal

from checkout import create_context
from checkout.exceptions import StorageError, ValidationError
from checkout.models import Cart, UserIdentity
from checkout.services.ledger_service import (
    list_identities, load_history, lookup_user_id, record_all_carts, record_checkout,
    resolve_or_create_user_id,
)

NOW = datetime(2026, 10, 19, 14, 30, 5, 123456)
HEADER = 'user_id,username,date,product_id,product_name,quantity,price,total_cart_value'


def _lines(path):
    return path.read_text(encoding='utf-8').splitlines()


@pytest.fixture
def alice_cart(laptop, mouse):
    cart = Cart()
    cart.add_item(mouse, 2)
    cart.add_item(laptop, 1)
    return cart


def _fail(*args, **kwargs):
    raise StorageError('disk full')


class TestUserIds:
    """Tests for permanent user ids."""

    def test_first_ids_start_after_base(self, context):
        assert resolve_or_create_user_id(context, 'alice') == 101
        assert resolve_or_create_user_id(context, 'bob') == 102
        assert resolve_or_create_user_id(context, 'alice') == 101

    def test_ids_survive_restart(self, context, data_dir):
        resolve_or_create_user_id(context, 'alice')

        restarted = create_context('config.TestConfig', overrides={'DATA_DIR': str(data_dir)})

        assert lookup_user_id(restarted, 'alice') == 101
        assert resolve_or_create_user_id(restarted, 'bob') == 102
        assert (data_dir / 'user_id_counter.txt').read_text() == '102'

    def test_counter_behind_ids_file_never_reissues(self, context, write_data):
        write_data('user_ids.csv', 'alice,150\n')
        write_data('user_id_counter.txt', '120')

        assert resolve_or_create_user_id(context, 'bob') == 151

    def test_malformed_counter_starts_from_base(self, context, write_data):
        write_data('user_id_counter.txt', 'oops')
        assert resolve_or_create_user_id(context, 'alice') == 101

    def test_empty_username_rejected(self, context):
        with pytest.raises(ValidationError):
            resolve_or_create_user_id(context, '  ')

    def test_name_with_comma_keeps_its_id(self, context, data_dir):
        assert resolve_or_create_user_id(context, 'smith,john') == 101
        assert resolve_or_create_user_id(context, 'smith,john') == 101
        assert (data_dir / 'user_ids.csv').read_text().splitlines() == ['"smith,john",101']

        restarted = create_context('config.TestConfig', overrides={'DATA_DIR': str(data_dir)})

        assert lookup_user_id(restarted, 'smith,john') == 101
        assert resolve_or_create_user_id(restarted, 'smith,john') == 101

    def test_unknown_user_has_no_id(self, context):
        assert lookup_user_id(context, 'ghost') is None

    def test_identities_in_id_order(self, context, write_data):
        write_data('user_ids.csv', 'zoe,101\nbob,103\namy,102\n')

        assert list_identities(context) == [
            UserIdentity('zoe', 101), UserIdentity('amy', 102), UserIdentity('bob', 103),
        ]


class TestRecordCheckout:
    """Tests for appending a checkout to the purchase history."""

    def test_rows_written_in_product_order(self, context, data_dir, alice_cart):
        result = record_checkout(context, 'alice', alice_cart, now=NOW)

        assert result
        assert result.user_ids == {'alice': 101}
        assert result.rows_written == 2
        assert result.timestamp == datetime(2026, 10, 19, 14, 30, 5)
        assert result.warnings == []
        assert _lines(data_dir / 'user_purchase_history.csv') == [
            HEADER,
            '101,alice,2026-10-19 14:30:05,1,Laptop,1,1000.00,1050.00',
            '101,alice,2026-10-19 14:30:05,6,Wireless Mouse,2,25.00,1050.00',
        ]
        assert _lines(data_dir / 'user_ids.csv') == ['alice,101']
        assert (data_dir / 'user_id_counter.txt').read_text() == '101'

    def test_cart_is_not_modified(self, context, alice_cart):
        record_checkout(context, 'alice', alice_cart, now=NOW)
        assert alice_cart.quantity_of(6) == 2

    def test_second_checkout_reuses_id_and_header(self, context, data_dir, alice_cart, headphones):
        record_checkout(context, 'alice', alice_cart, now=NOW)
        second = Cart()
        second.add_item(headphones, 3)

        result = record_checkout(context, 'alice', second, now=datetime(2026, 10, 20, 9, 0, 0))

        lines = _lines(data_dir / 'user_purchase_history.csv')
        assert result.user_ids == {'alice': 101}
        assert lines.count(HEADER) == 1
        assert lines[-1] == '101,alice,2026-10-20 09:00:00,3,Headphones,3,50.00,150.00'

    def test_empty_cart_rejected(self, context, data_dir):
        with pytest.raises(ValidationError, match='empty cart'):
            record_checkout(context, 'alice', Cart())
        assert not (data_dir / 'user_purchase_history.csv').exists()

    def test_history_failure_burns_no_id(self, context, data_dir, alice_cart, monkeypatch):
        monkeypatch.setattr(context.history_store, 'append', _fail)

        result = record_checkout(context, 'alice', alice_cart, now=NOW)

        assert not result
        assert result.error == 'disk full'
        assert not (data_dir / 'user_ids.csv').exists()
        assert not (data_dir / 'user_id_counter.txt').exists()
        assert lookup_user_id(context, 'alice') is None

    def test_counter_failure_is_a_warning(self, context, data_dir, alice_cart, monkeypatch):
        monkeypatch.setattr(context.user_store, 'write_counter', _fail)

        result = record_checkout(context, 'alice', alice_cart, now=NOW)

        assert result
        assert len(result.warnings) == 1
        assert 'alice' in result.warnings[0]
        assert _lines(data_dir / 'user_ids.csv') == ['alice,101']
        assert len(_lines(data_dir / 'user_purchase_history.csv')) == 3


class TestRecordAllCarts:
    """Tests for exporting every cart at once."""

    def test_users_recorded_in_name_order(self, context, data_dir, laptop, phone, mouse):
        carol, alice, bob = Cart(), Cart(), Cart()
        carol.add_item(phone, 1)
        alice.add_item(mouse, 1)
        alice.add_item(laptop, 1)
        context.carts.update({'carol': carol, 'alice': alice, 'bob': bob})

        result = record_all_carts(context, now=NOW)

        assert result.user_ids == {'alice': 101, 'carol': 102}
        rows = [line.split(',') for line in _lines(data_dir / 'user_purchase_history.csv')[1:]]
        assert [(r[1], r[3]) for r in rows] == [('alice', '1'), ('alice', '6'), ('carol', '2')]
        assert {r[2] for r in rows} == {'2026-10-19 14:30:05'}
        assert (data_dir / 'user_id_counter.txt').read_text() == '102'

    def test_only_empty_carts_writes_nothing(self, context, data_dir):
        context.carts['bob'] = Cart()

        result = record_all_carts(context)

        assert result
        assert result.rows_written == 0
        assert not (data_dir / 'user_purchase_history.csv').exists()


class TestLoadHistory:
    """Tests for reading the purchase history back."""

    def test_filter_by_username(self, context, alice_cart, headphones):
        bob_cart = Cart()
        bob_cart.add_item(headphones, 1)
        record_checkout(context, 'alice', alice_cart, now=NOW)
        record_checkout(context, 'bob', bob_cart, now=NOW)

        assert len(load_history(context)) == 3
        bob_rows = load_history(context, 'bob')
        assert [(r.user_id, r.product_name, r.cart_total) for r in bob_rows] == [
            (102, 'Headphones', Decimal('50.00')),
        ]

    def test_missing_history_is_empty(self, context):
        assert load_history(context) == []
