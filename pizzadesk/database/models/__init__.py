"""
Database models package initialization
Centralized imports for all database models
"""
from pizzadesk.database.models.user import User, UserRole, UserStatus
from pizzadesk.database.models.product import Product, ProductCategory
from pizzadesk.database.models.customer import Customer, normalize_phone
from pizzadesk.database.models.order import Order, OrderStatus, OrderType, TERMINAL_STATUSES
from pizzadesk.database.models.notification import Notification, NotificationPriority, NotificationEvent
from pizzadesk.database.models.counter import Counter

__all__ = [
    # Staff and authentication
    'User',
    'UserRole',
    'UserStatus',

    # Catalog
    'Product',
    'ProductCategory',

    # Customers
    'Customer',
    'normalize_phone',

    # Orders
    'Order',
    'OrderStatus',
    'OrderType',
    'TERMINAL_STATUSES',

    # Notifications
    'Notification',
    'NotificationPriority',
    'NotificationEvent',

    # Sequencing
    'Counter',
]
