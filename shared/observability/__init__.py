from .setup import configure_logging, setup_observability
from .metrics import (
    shop_auth_attempts_total,
    shop_orders_total,
    shop_order_amount,
    shop_checkout_duration_seconds,
)
