# Marketplace services

from .realtime import ChannelRegistry
from .notifier import NotificationService
from .payment_client import PaymentProcessorClient, PaymentProcessorError
from .checkout import CheckoutBridge

__all__ = [
    "ChannelRegistry",
    "NotificationService",
    "PaymentProcessorClient",
    "PaymentProcessorError",
    "CheckoutBridge",
]
