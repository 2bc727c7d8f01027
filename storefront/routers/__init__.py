"""
FastAPI routers grouped by domain (auth, items, cart, orders, admin).

Each module exposes an APIRouter included by the application factory in
``storefront.app``. Endpoints stay thin: they build the caller context and
delegate to a service.
"""
