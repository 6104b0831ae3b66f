from prometheus_client import Counter, Histogram

# Business Metrics
shop_auth_attempts_total = Counter(
    "shop_auth_attempts_total",
    "Registration and login attempts",
    ["action", "outcome"]  # action: 'register', 'login'; outcome: 'success' or an ErrorKind value
)

shop_orders_total = Counter(
    "shop_orders_total",
    "Order creation attempts",
    ["outcome"]  # 'created' or an ErrorKind value
)

shop_order_amount = Histogram(
    "shop_order_amount",
    "Total amount of created orders",
    buckets=(10, 50, 100, 250, 500, 1000, 5000, 10000, 100000, 1000000)
)

shop_checkout_duration_seconds = Histogram(
    "shop_checkout_duration_seconds",
    "Time spent validating and persisting an order"
)
