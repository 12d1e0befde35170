"""
Ledger service - user ids and the append-only purchase history.

Write ordering for a checkout:
1. purchase history rows (one append)
2. username -> id mapping
3. id counter
A failure at step 1 leaves steps 2-3 untouched, so no id is burned and no
mapping exists without history. A failure at step 2 or 3 happens after the
history is durable; it is reported as a warning on the result, never hidden.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Mapping, Optional

from checkout.context import ShopContext
from checkout.exceptions import StorageError, ValidationError
from checkout.models import Cart, PurchaseRecord, UserIdentity

logger = logging.getLogger(__name__)


@dataclass
class LedgerResult:
    """Outcome of a ledger write. Truthy when the purchase history was written."""

    ok: bool
    user_ids: Dict[str, int] = field(default_factory=dict)
    rows_written: int = 0
    timestamp: Optional[datetime] = None
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def __bool__(self):
        return self.ok


def _next_id_floor(context: ShopContext, ids: Mapping[str, int]) -> int:
    """Highest id known anywhere; the counter never trails an id already handed out."""
    counter = context.user_store.read_counter()
    return max([counter] + list(ids.values()))


def lookup_user_ids(context: ShopContext) -> Dict[str, int]:
    """Every stored username -> id. Unreadable stores read as empty."""
    try:
        return context.user_store.load_ids()
    except StorageError as e:
        logger.error(f"[USERS] Cannot read user ids: {e.message}")
        return {}


def lookup_user_id(context: ShopContext, username: str) -> Optional[int]:
    return lookup_user_ids(context).get(username)


def list_identities(context: ShopContext) -> List[UserIdentity]:
    """Every stored identity, in id order."""
    ids = lookup_user_ids(context)
    return sorted((UserIdentity(name, user_id) for name, user_id in ids.items()),
                  key=lambda identity: identity.user_id)


def resolve_or_create_user_id(context: ShopContext, username: str) -> int:
    """
    Return the username's permanent id, issuing the next one if it has none.

    Raises StorageError if a new id could not be stored.
    """
    if not username or not username.strip():
        raise ValidationError('Username cannot be empty')

    ids = context.user_store.load_ids()
    if username in ids:
        return ids[username]

    new_id = _next_id_floor(context, ids) + 1
    ids[username] = new_id
    context.user_store.save_ids(ids)
    try:
        context.user_store.write_counter(new_id)
    except StorageError as e:
        # mapping is durable, and _next_id_floor honours it, so the id cannot be reissued
        logger.warning(f"[USERS] Id {new_id} issued to {username} but counter not updated: {e.message}")
    logger.info(f"[USERS] Assigned id {new_id} to {username}")
    return new_id


def _record(context: ShopContext, carts: Mapping[str, Cart], now: Optional[datetime]) -> LedgerResult:
    stamp = (now or datetime.now()).replace(microsecond=0)
    usernames = sorted(name for name, cart in carts.items() if cart is not None and not cart.is_empty())
    if not usernames:
        return LedgerResult(ok=True, timestamp=stamp)

    try:
        ids = context.user_store.load_ids()
        counter = _next_id_floor(context, ids)
    except StorageError as e:
        logger.error(f"[LEDGER] Checkout not recorded, user ids unreadable: {e.message}")
        return LedgerResult(ok=False, timestamp=stamp, error=e.message)

    issued = {}
    records = []
    for username in usernames:
        if username not in ids:
            counter += 1
            ids[username] = counter
            issued[username] = counter
        cart = carts[username]
        cart_total = cart.subtotal()
        for line in sorted(cart.items(), key=lambda l: l.product.id):
            records.append(PurchaseRecord(
                user_id=ids[username],
                username=username,
                timestamp=stamp,
                product_id=line.product.id,
                product_name=line.product.name,
                quantity=line.quantity,
                unit_price=line.product.unit_price,
                cart_total=cart_total,
            ))

    try:
        context.history_store.append(records)
    except StorageError as e:
        logger.error(f"[LEDGER] Checkout not recorded: {e.message}")
        return LedgerResult(ok=False, timestamp=stamp, error=e.message)

    result = LedgerResult(
        ok=True,
        user_ids={name: ids[name] for name in usernames},
        rows_written=len(records),
        timestamp=stamp,
    )

    if issued:
        try:
            context.user_store.save_ids(ids)
            context.user_store.write_counter(counter)
        except StorageError as e:
            warning = (f"Purchase history written but user id bookkeeping failed "
                       f"for {', '.join(sorted(issued))}: {e.message}")
            logger.warning(f"[LEDGER] {warning}")
            result.warnings.append(warning)

    logger.info(f"[LEDGER] Recorded {len(records)} rows for {len(usernames)} users at {stamp}")
    return result


def record_checkout(
    context: ShopContext,
    username: str,
    cart: Cart,
    now: Optional[datetime] = None
) -> LedgerResult:
    """
    Append one history row per line item of ``cart`` under a single timestamp.
    Raises ValidationError for an empty cart.
    """
    if cart is None or cart.is_empty():
        raise ValidationError('Cannot record an empty cart')
    return _record(context, {username: cart}, now)


def record_all_carts(
    context: ShopContext,
    carts: Optional[Mapping[str, Cart]] = None,
    now: Optional[datetime] = None
) -> LedgerResult:
    """Record every non-empty cart (all of them by default), in username order."""
    return _record(context, context.carts if carts is None else carts, now)


def load_history(context: ShopContext, username: Optional[str] = None) -> List[PurchaseRecord]:
    """Purchase history rows, optionally for one user. Unreadable history reads as empty."""
    try:
        records = context.history_store.load()
    except StorageError as e:
        logger.error(f"[HISTORY] Cannot read purchase history: {e.message}")
        return []
    if username is not None:
        records = [r for r in records if r.username == username]
    return records
