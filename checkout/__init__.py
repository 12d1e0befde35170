"""Checkout engine factory."""
import importlib
import logging
from pathlib import Path

from checkout.context import ShopContext
from checkout.exceptions import StorageError
from checkout.models import Catalog
from checkout.repositories import (
    JsonCartSnapshotRepository, CsvUserIdentityRepository, CsvRoleRepository,
    CsvOfferRepository, CsvCouponRepository, CsvPurchaseHistoryRepository,
)

logger = logging.getLogger(__name__)


def _load_config(config_object, overrides=None) -> dict:
    """Copy the UPPER_CASE attributes of a config object (or dotted path) into a dict."""
    if isinstance(config_object, str):
        module_name, _, attr = config_object.rpartition('.')
        config_object = getattr(importlib.import_module(module_name), attr)
    config = {key: getattr(config_object, key) for key in dir(config_object) if key.isupper()}
    config.update(overrides or {})
    return config


def create_context(config_object='config.Config', overrides=None, catalog=None) -> ShopContext:
    """
    Create and configure the engine context.

    Loads the cart snapshot and the role table once. Neither load is fatal:
    an unreadable store degrades to an empty one.
    """
    config = _load_config(config_object, overrides)

    logging.basicConfig(
        level=getattr(logging, str(config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    data_dir = Path(config.get('DATA_DIR', '.'))

    context = ShopContext(
        config=config,
        catalog=catalog or Catalog.default(),
        cart_store=JsonCartSnapshotRepository(data_dir / config['CART_SNAPSHOT_FILE']),
        user_store=CsvUserIdentityRepository(
            data_dir / config['USER_IDS_FILE'],
            data_dir / config['USER_ID_COUNTER_FILE'],
            start_value=config.get('USER_ID_START', 100),
        ),
        role_store=CsvRoleRepository(data_dir / config['USER_ROLES_FILE']),
        offer_store=CsvOfferRepository(data_dir / config['OFFERS_FILE']),
        coupon_store=CsvCouponRepository(data_dir / config['COUPONS_FILE']),
        history_store=CsvPurchaseHistoryRepository(data_dir / config['PURCHASE_HISTORY_FILE']),
    )

    try:
        context.carts = context.cart_store.load()
    except StorageError as e:
        logger.error(f"[CARTS] Starting with no carts: {e.message}")

    try:
        context.roles = context.role_store.load()
    except StorageError as e:
        logger.error(f"[ROLES] Starting with default roles: {e.message}")

    logger.info(f"[SHOP] Context ready (data_dir={data_dir}, carts={len(context.carts)}, "
                f"roles={len(context.roles)})")
    return context
