from stockledger.api.errors import register_error_handlers
from stockledger.api.routes import (
    finished_goods_router,
    inventory_router,
    issuance_router,
    supplier_order_router,
    supplier_return_router,
)

routers = [
    inventory_router,
    supplier_order_router,
    supplier_return_router,
    issuance_router,
    finished_goods_router,
]

__all__ = [
    "finished_goods_router",
    "inventory_router",
    "issuance_router",
    "register_error_handlers",
    "routers",
    "supplier_order_router",
    "supplier_return_router",
]
