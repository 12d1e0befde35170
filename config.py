"""Configuration module for the checkout engine."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Base configuration class."""

    # Storage - every persisted file lives under DATA_DIR
    DATA_DIR = os.getenv('SHOP_DATA_DIR', '.')
    CART_SNAPSHOT_FILE = os.getenv('CART_SNAPSHOT_FILE', 'user_carts.json')
    USER_IDS_FILE = os.getenv('USER_IDS_FILE', 'user_ids.csv')
    USER_ID_COUNTER_FILE = os.getenv('USER_ID_COUNTER_FILE', 'user_id_counter.txt')
    USER_ROLES_FILE = os.getenv('USER_ROLES_FILE', 'user_roles.csv')
    OFFERS_FILE = os.getenv('OFFERS_FILE', 'offers.csv')
    COUPONS_FILE = os.getenv('COUPONS_FILE', 'coupons.csv')
    PURCHASE_HISTORY_FILE = os.getenv('PURCHASE_HISTORY_FILE', 'user_purchase_history.csv')

    # User ids: stored counter starts here, first issued id is USER_ID_START + 1
    USER_ID_START = int(os.getenv('USER_ID_START', '100'))

    # Usernames that bootstrap as admin on first sight (case-insensitive)
    ADMIN_USERNAMES = [
        name.strip()
        for name in os.getenv('SHOP_ADMIN_USERNAMES', 'admin').split(',')
        if name.strip()
    ]

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()


class TestConfig(Config):
    """Configuration used by the test suite."""

    TESTING = True
    LOG_LEVEL = 'DEBUG'
