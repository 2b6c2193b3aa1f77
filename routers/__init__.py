# routers/__init__.py
from .loans import router as loans_router
from .customers import router as customers_router
from .snapshots import router as snapshots_router
from .fee_configs import router as fee_configs_router

__all__ = [
     "loans_router",
     "customers_router",
     "snapshots_router",
     "fee_configs_router",
]
