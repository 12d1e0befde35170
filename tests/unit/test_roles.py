"""
Unit tests for roles, capabilities and session switching.
"""

import pytest

from checkout import create_context
from checkout.decorators.permissions import available_actions, check_capability
from checkout.exceptions import PermissionDeniedError, ValidationError
from checkout.models import Capability, Role, capabilities_for, has_capability
from checkout.services import cart_service
from checkout.services.ledger_service import resolve_or_create_user_id
from checkout.services.role_service import (
    get_role_for_user, grant_role, list_users_and_roles, revoke_role, shutdown, switch_user,
)


class TestCapabilities:
    """Tests for the role -> capability table."""

    def test_user_can_shop_but_not_manage(self):
        assert has_capability(Role.USER, Capability.CHECKOUT)
        assert not has_capability(Role.USER, Capability.MANAGE_OFFERS)
        assert not has_capability(Role.USER, Capability.VIEW_HISTORY)

    def test_roles_are_nested(self):
        assert capabilities_for(Role.USER) < capabilities_for(Role.EMPLOYEE) < capabilities_for(Role.ADMIN)
        assert capabilities_for(Role.ADMIN) == frozenset(Capability)

    def test_employee_cannot_manage_roles(self):
        with pytest.raises(PermissionDeniedError, match='cannot manage roles'):
            check_capability(Role.EMPLOYEE, Capability.MANAGE_ROLES)

    def test_menu_follows_capabilities(self):
        user_menu = [a.command for a in available_actions(Role.USER)]
        employee_menu = [a.command for a in available_actions(Role.EMPLOYEE)]
        admin_menu = [a.command for a in available_actions(Role.ADMIN)]

        assert 'checkout' in user_menu
        assert 'offers add' not in user_menu
        assert 'offers add' in employee_menu
        assert 'grant' not in employee_menu
        assert 'grant' in admin_menu
        assert 'export-carts' in admin_menu

    @pytest.mark.parametrize('value,expected', [
        ('ADMIN', Role.ADMIN), (' Employee ', Role.EMPLOYEE), ('user', Role.USER),
    ])
    def test_parse_role(self, value, expected):
        assert Role.parse(value) is expected

    def test_parse_unknown_role(self):
        with pytest.raises(ValueError):
            Role.parse('owner')


class TestRoleService:
    """Tests for stored roles."""

    def test_default_role_is_user(self, context):
        assert get_role_for_user(context, 'alice') is Role.USER
        assert 'alice' not in context.roles

    def test_bootstrap_admin_is_persisted(self, context, data_dir):
        assert get_role_for_user(context, 'Admin') is Role.ADMIN
        assert (data_dir / 'user_roles.csv').read_text().splitlines() == ['Admin,admin']

    def test_bootstrap_names_come_from_config(self, data_dir):
        context = create_context('config.TestConfig', overrides={
            'DATA_DIR': str(data_dir), 'ADMIN_USERNAMES': ['root'],
        })
        assert get_role_for_user(context, 'root') is Role.ADMIN
        assert get_role_for_user(context, 'admin') is Role.USER

    def test_grant_and_revoke(self, context, data_dir):
        assert grant_role(context, 'bob', 'Employee') is True
        assert get_role_for_user(context, 'bob') is Role.EMPLOYEE

        restarted = create_context('config.TestConfig', overrides={'DATA_DIR': str(data_dir)})
        assert get_role_for_user(restarted, 'bob') is Role.EMPLOYEE

        revoke_role(restarted, 'bob')
        assert get_role_for_user(restarted, 'bob') is Role.USER

    def test_role_for_name_with_comma_survives_restart(self, context, data_dir):
        grant_role(context, 'smith,john', Role.EMPLOYEE)

        restarted = create_context('config.TestConfig', overrides={'DATA_DIR': str(data_dir)})

        assert get_role_for_user(restarted, 'smith,john') is Role.EMPLOYEE

    def test_stored_role_overrides_bootstrap(self, context):
        grant_role(context, 'admin', Role.USER)
        assert get_role_for_user(context, 'admin') is Role.USER

    def test_grant_invalid_role(self, context):
        with pytest.raises(ValidationError, match='Invalid role'):
            grant_role(context, 'bob', 'owner')
        assert 'bob' not in context.roles

    def test_unknown_stored_role_treated_as_user(self, context):
        context.roles['bob'] = 'superuser'
        assert get_role_for_user(context, 'bob') is Role.USER

    def test_list_users_and_roles(self, context):
        cart_service.add_product_to_cart(context, 'carol', 1, 1)
        grant_role(context, 'bob', Role.EMPLOYEE)
        resolve_or_create_user_id(context, 'carol')

        assert list_users_and_roles(context) == [
            {'username': 'bob', 'role': 'employee', 'user_id': None},
            {'username': 'carol', 'role': 'user', 'user_id': 101},
        ]


class TestSession:
    """Tests for switching users and shutting down."""

    def test_switch_user_creates_cart(self, context):
        role, cart = switch_user(context, ' alice ')

        assert role is Role.USER
        assert cart.is_empty()
        assert context.carts['alice'] is cart

    def test_switch_user_keeps_existing_cart(self, context):
        cart_service.add_product_to_cart(context, 'alice', 6, 3)

        _, cart = switch_user(context, 'alice')

        assert cart.quantity_of(6) == 3

    def test_switch_to_empty_name_rejected(self, context):
        with pytest.raises(ValidationError):
            switch_user(context, '')

    def test_shutdown_persists_carts_and_roles(self, context, data_dir):
        cart_service.get_or_create_cart(context, 'alice').add_item(context.catalog.require(2), 1)
        context.roles['bob'] = 'employee'

        assert shutdown(context) is True

        restarted = create_context('config.TestConfig', overrides={'DATA_DIR': str(data_dir)})
        assert restarted.carts['alice'].quantity_of(2) == 1
        assert restarted.roles == {'bob': 'employee'}
