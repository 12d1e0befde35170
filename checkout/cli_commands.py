"""
Console shell for the checkout engine.

Every command runs as one user (``--user``). What a user may run depends on
their role's capability set; see ``checkout.decorators.permissions``.

    shop --user alice add 1 2
    shop --user alice checkout --coupon SAVE10
    shop --user admin grant bob employee
"""
from dataclasses import dataclass

import click

from checkout import create_context
from checkout.context import ShopContext
from checkout.decorators.permissions import require_capability, available_actions
from checkout.exceptions import ShopError
from checkout.models import Capability, Cart, CouponStatus, Role
from checkout.services import (
    cart_service, checkout_service, coupon_service, ledger_service, offer_service, role_service
)
from checkout.utils.formatters import money, format_percent, timestamp

COUPON_MESSAGES = {
    CouponStatus.NOT_FOUND: 'Coupon not found.',
    CouponStatus.BELOW_MINIMUM: 'Cart subtotal is below the coupon minimum.',
    CouponStatus.PAYMENT_METHOD_MISMATCH: 'Coupon is not valid for this payment method.',
}


@dataclass
class ShopSession:
    """Active user for the current command."""
    context: ShopContext
    username: str
    role: Role
    cart: Cart


class ShopGroup(click.Group):
    """Renders application errors as messages instead of tracebacks."""

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except ShopError as e:
            click.echo(click.style(f'❌ {e.message}', fg='red'), err=True)
            ctx.exit(1)


def _warn_unsaved(saved: bool):
    if not saved:
        click.echo(click.style('⚠ Changes kept in memory but could not be saved to disk.', fg='yellow'))


@click.group(cls=ShopGroup)
@click.option('--user', '-u', 'username', envvar='SHOP_USER', required=True, help='Active username')
@click.option('--data-dir', envvar='SHOP_DATA_DIR', default=None,
              type=click.Path(file_okay=False), help='Directory holding the shop files')
@click.pass_context
def cli(ctx, username, data_dir):
    """Shopping cart and checkout."""
    if isinstance(ctx.obj, ShopContext):
        context = ctx.obj
    else:
        context = create_context(overrides={'DATA_DIR': data_dir} if data_dir else None)

    role, cart = role_service.switch_user(context, username)
    ctx.obj = ShopSession(context, username.strip(), role, cart)
    ctx.call_on_close(lambda: role_service.shutdown(context))


@cli.command()
@click.pass_obj
def menu(session):
    """Show the actions available to the current role."""
    click.echo(click.style(f'=== MAIN MENU ({session.role.value.upper()}) - User: {session.username} ===',
                           fg='cyan', bold=True))
    for number, action in enumerate(available_actions(session.role), start=1):
        click.echo(f'{number:>2}. {action.label:<40} shop {action.command}')


@cli.command()
@require_capability(Capability.BROWSE)
@click.pass_obj
def catalog(session):
    """List the product catalog."""
    click.echo(click.style('Product catalog:', fg='cyan', bold=True))
    for product in session.context.catalog.products():
        click.echo(f'  🏷 {product.id}. {product.name} - {money(product.unit_price)}')


@cli.command()
@click.argument('product_id', type=int)
@click.argument('quantity', type=int)
@require_capability(Capability.SHOP)
@click.pass_obj
def add(session, product_id, quantity):
    """Add QUANTITY of PRODUCT_ID to the cart."""
    line, saved = cart_service.add_product_to_cart(session.context, session.username, product_id, quantity)
    click.echo(click.style(f'✅ Added {quantity} x {line.product.name} (now {line.quantity} in cart)',
                           fg='green'))
    _warn_unsaved(saved)


@cli.command()
@click.argument('product_id', type=int)
@require_capability(Capability.SHOP)
@click.pass_obj
def remove(session, product_id):
    """Remove PRODUCT_ID from the cart."""
    removed, saved = cart_service.remove_product_from_cart(session.context, session.username, product_id)
    if removed:
        click.echo(click.style(f'✅ Product {product_id} removed from cart.', fg='green'))
    else:
        click.echo(click.style(f'Product {product_id} is not in your cart.', fg='yellow'))
    _warn_unsaved(saved)


@cli.command(name='cart')
@require_capability(Capability.BROWSE)
@click.pass_obj
def show_cart(session):
    """Show the cart contents."""
    _render_cart(session.cart)


def _render_cart(cart):
    if cart.is_empty():
        click.echo(click.style('🛒 Your cart is empty.', fg='yellow'))
        return
    totals = cart_service.calculate_cart_totals(cart)
    click.echo('Cart contents:')
    for line in totals['lines']:
        click.echo(f"  - {line['product_name']}  x {line['qty']}  = {money(line['line_total'])}")
    click.echo(f"Subtotal: {money(totals['subtotal'])}")


@cli.command()
@click.option('--yes', '-y', is_flag=True, help='Do not ask for confirmation')
@require_capability(Capability.SHOP)
@click.pass_obj
def clear(session, yes):
    """Empty the cart."""
    if not yes and not click.confirm('Clear your cart?'):
        return
    _warn_unsaved(cart_service.clear_cart(session.context, session.username))
    click.echo(click.style('Cart cleared.', fg='green'))


def _render_breakdown(breakdown):
    click.echo(click.style('💰 CHECKOUT SUMMARY 💰', fg='magenta', bold=True))
    click.echo(f'  Subtotal:        {money(breakdown.subtotal)}')
    if breakdown.cart_discount > 0:
        click.echo(f'  Discount (10%):  -{money(breakdown.cart_discount)}')
    if breakdown.offers_discount > 0:
        click.echo(f'  Offers:          -{money(breakdown.offers_discount)}')
    if breakdown.coupon_discount > 0:
        click.echo(f'  Coupon:          -{money(breakdown.coupon_discount)}')
    click.echo(f'  Tax (8%):         {money(breakdown.tax)}')
    click.echo(click.style(f'  TOTAL:           {money(breakdown.total)}', fg='green', bold=True))


@cli.command(name='checkout')
@click.option('--coupon', default=None, help='Coupon code')
@click.option('--payment-method', default=None, help='Payment method, for coupons restricted to one')
@click.option('--yes', '-y', is_flag=True, help='Confirm the purchase without asking')
@click.option('--clear/--keep', 'clear_after', default=None, help='Clear the cart after purchase')
@require_capability(Capability.CHECKOUT)
@click.pass_obj
def checkout_cmd(session, coupon, payment_method, yes, clear_after):
    """Price the cart and record the purchase."""
    context = session.context
    _render_cart(session.cart)
    breakdown = checkout_service.prepare_checkout(context, session.username, coupon, payment_method)
    if breakdown.coupon is not None and not breakdown.coupon.applied:
        click.echo(click.style(COUPON_MESSAGES[breakdown.coupon.status], fg='yellow'))
    _render_breakdown(breakdown)

    if not yes and not click.confirm('Confirm purchase?'):
        click.echo('Checkout cancelled.')
        return

    result = checkout_service.confirm_checkout(context, session.username, clear_cart=bool(clear_after))
    if not result:
        click.echo(click.style(f'❌ Purchase not recorded: {result.error}', fg='red'), err=True)
        return
    click.echo(click.style(f'✅ Purchase recorded ({result.rows_written} items).', fg='green'))
    for warning in result.warnings:
        click.echo(click.style(f'⚠ {warning}', fg='yellow'))

    if clear_after is None and not yes and click.confirm('Clear your cart?'):
        _warn_unsaved(cart_service.clear_cart(context, session.username))


@cli.command()
@click.option('--username', default=None, help='Only this user')
@require_capability(Capability.VIEW_HISTORY)
@click.pass_obj
def history(session, username):
    """Show the purchase history."""
    records = ledger_service.load_history(session.context, username)
    if not records:
        click.echo('No purchase history yet.')
        return
    click.echo(f"{'user_id':<8} {'username':<15} {'date':<20} {'product':<16} {'qty':>4} {'price':>10}")
    for r in records:
        click.echo(f'{r.user_id:<8} {r.username:<15} {timestamp(r.timestamp):<20} '
                   f'{r.product_name:<16} {r.quantity:>4} {money(r.unit_price):>10}')


# ============================================================================
# OFFERS
# ============================================================================

@cli.group()
def offers():
    """Bulk-quantity offers."""


@offers.command(name='list')
@click.option('--product', 'product_id', type=int, default=None, help='Only offers for this product')
@require_capability(Capability.MANAGE_OFFERS)
@click.pass_obj
def offers_list(session, product_id):
    if product_id is None:
        rules = offer_service.list_offers(session.context)
    else:
        rules = offer_service.load_offer_rules(session.context).for_product(product_id)
    if not rules:
        click.echo('No offers.')
    for rule in rules:
        click.echo(f'  product {rule.product_id}: {format_percent(rule.discount_percent)}% off '
                   f'from {rule.min_quantity} units  {rule.description}')


@offers.command(name='add')
@click.argument('product_id', type=int)
@click.argument('min_quantity', type=int)
@click.argument('percent')
@click.argument('description', required=False, default='')
@require_capability(Capability.MANAGE_OFFERS)
@click.pass_obj
def offers_add(session, product_id, min_quantity, percent, description):
    saved = offer_service.add_offer(session.context, product_id, min_quantity, percent, description)
    if saved:
        click.echo(click.style('✅ Offer added.', fg='green'))
    else:
        click.echo(click.style('❌ Offer could not be saved.', fg='red'), err=True)


@offers.command(name='remove')
@click.argument('product_id', type=int)
@require_capability(Capability.MANAGE_OFFERS)
@click.pass_obj
def offers_remove(session, product_id):
    removed = offer_service.remove_offers_for_product(session.context, product_id)
    if removed is None:
        click.echo(click.style('❌ Offers could not be removed.', fg='red'), err=True)
    else:
        click.echo(f'Removed {removed} offers for product {product_id}.')


# ============================================================================
# COUPONS
# ============================================================================

@cli.group()
def coupons():
    """Coupon codes."""


@coupons.command(name='list')
@require_capability(Capability.BROWSE)
@click.pass_obj
def coupons_list(session):
    rules = coupon_service.list_coupons(session.context)
    if not rules:
        click.echo('No coupons.')
    for rule in rules:
        restriction = f' ({rule.payment_method} only)' if rule.payment_method else ''
        click.echo(f'  {rule.code}: {format_percent(rule.discount_percent)}% off orders from '
                   f'{money(rule.minimum_subtotal)}{restriction}')


@coupons.command(name='add')
@click.argument('code')
@click.argument('minimum_subtotal')
@click.argument('percent')
@click.option('--payment-method', default=None)
@require_capability(Capability.MANAGE_COUPONS)
@click.pass_obj
def coupons_add(session, code, minimum_subtotal, percent, payment_method):
    if coupon_service.add_coupon(session.context, code, minimum_subtotal, percent, payment_method):
        click.echo(click.style(f'✅ Coupon {code} added.', fg='green'))
    else:
        click.echo(click.style('❌ Coupon could not be saved.', fg='red'), err=True)


@coupons.command(name='remove')
@click.argument('code')
@require_capability(Capability.MANAGE_COUPONS)
@click.pass_obj
def coupons_remove(session, code):
    removed = coupon_service.remove_coupon(session.context, code)
    if removed is None:
        click.echo(click.style('❌ Coupon could not be removed.', fg='red'), err=True)
    else:
        click.echo(f'Removed {removed} rules for {code}.')


# ============================================================================
# ADMIN
# ============================================================================

@cli.command()
@require_capability(Capability.MANAGE_ROLES)
@click.pass_obj
def users(session):
    """List users, roles and ids."""
    click.echo(f"{'username':<15} {'role':<10} {'user_id':<6}")
    for row in role_service.list_users_and_roles(session.context):
        user_id = row['user_id'] if row['user_id'] is not None else '-'
        click.echo(f"{row['username']:<15} {row['role']:<10} {user_id:<6}")


@cli.command()
@click.argument('username')
@click.argument('role', type=click.Choice([r.value for r in Role], case_sensitive=False))
@require_capability(Capability.MANAGE_ROLES)
@click.pass_obj
def grant(session, username, role):
    """Grant ROLE to USERNAME."""
    _warn_unsaved(role_service.grant_role(session.context, username, role))
    click.echo(click.style(f'✅ {username} is now {role.lower()}.', fg='green'))


@cli.command()
@click.argument('username')
@require_capability(Capability.MANAGE_ROLES)
@click.pass_obj
def revoke(session, username):
    """Reset USERNAME to the user role."""
    _warn_unsaved(role_service.revoke_role(session.context, username))
    click.echo(click.style(f'✅ {username} is now user.', fg='green'))


@cli.command(name='export-carts')
@require_capability(Capability.EXPORT_CARTS)
@click.pass_obj
def export_carts(session):
    """Record every non-empty cart to the purchase history."""
    result = ledger_service.record_all_carts(session.context)
    if not result:
        click.echo(click.style(f'❌ Carts not recorded: {result.error}', fg='red'), err=True)
        return
    click.echo(click.style(f'✅ Recorded {result.rows_written} rows for {len(result.user_ids)} users.',
                           fg='green'))
    for warning in result.warnings:
        click.echo(click.style(f'⚠ {warning}', fg='yellow'))


if __name__ == '__main__':
    cli()
