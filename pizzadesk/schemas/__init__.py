from pizzadesk.schemas.common import CamelModel, MessageResponse
from pizzadesk.schemas.order import (
    OrderItemCreate, OrderItemResponse, OrderCreate, OrderUpdate,
    OrderResponse, RevenueStats, DailyRevenue, TopProduct
)
from pizzadesk.schemas.customer import CustomerCreate, CustomerUpdate, CustomerResponse
from pizzadesk.schemas.product import ProductCreate, ProductUpdate, ProductResponse
from pizzadesk.schemas.user import UserRegister, UserCreate, UserUpdate, FcmTokenUpdate, UserResponse, Token
from pizzadesk.schemas.notification import NotificationResponse, MarkReadRequest

__all__ = [
    'CamelModel', 'MessageResponse',
    'OrderItemCreate', 'OrderItemResponse', 'OrderCreate', 'OrderUpdate',
    'OrderResponse', 'RevenueStats', 'DailyRevenue', 'TopProduct',
    'CustomerCreate', 'CustomerUpdate', 'CustomerResponse',
    'ProductCreate', 'ProductUpdate', 'ProductResponse',
    'UserRegister', 'UserCreate', 'UserUpdate', 'FcmTokenUpdate', 'UserResponse', 'Token',
    'NotificationResponse', 'MarkReadRequest',
]
