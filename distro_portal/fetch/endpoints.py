"""Paths of the distribution backend endpoints, relative to API_BASE_URL."""

# Collection name -> list path. These are the endpoints list views page through.
COLLECTIONS = {
    "products": "/products",
    "orders": "/orders",
    "shopkeeperOrders": "/shopkeeper-orders",
    "shopkeepers": "/shopkeepers",
    "users": "/users",
    "categories": "/categories/all",
    "recoveries": "/recoveries",
    "receipts": "/receipts",
    "assignments": "/assignments",
    "notifications": "/notifications",
    "cities": "/cities",
}

# Collections whose list response keeps rows under its own key instead of a
# standard alias; the client moves them under "items".
RESPONSE_KEYS = {
    "shopkeepers": "shopkeepers",
    "receipts": "receipts",
    "assignments": "assignments",
    "notifications": "notifications",
    "cities": "cities",
}


def collection_path(name: str) -> str:
    """List path for a collection name."""
    try:
        return COLLECTIONS[name]
    except KeyError:
        raise ValueError(f"Unknown collection '{name}', expected one of {sorted(COLLECTIONS)}") from None


def recovery_stats_path() -> str:
    return "/recoveries/stats/summary"


def salesman_shopkeepers_path(salesman_id: str) -> str:
    """Shopkeepers assigned to a salesman, with their pending amounts."""
    return f"/assignments/salesman/{salesman_id}/shopkeepers"


def received_payments_path() -> str:
    return "/analytics/payments/received-details"


def login_path(as_admin: bool = False) -> str:
    return "/admin/login" if as_admin else "/users/login"
