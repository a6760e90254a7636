# streamrokuo_admin/api/__init__.py
from fastapi import APIRouter
import pkgutil
import importlib
import logging

log = logging.getLogger("streamrokuo_admin.api")


def auto_register_routes(router: APIRouter) -> APIRouter:
    """
    Discover and mount all *_routes.py files inside streamrokuo_admin/api
    """
    log.info("Auto-discovering API routes...")

    for _, module_name, _ in pkgutil.iter_modules(__path__):
        if not module_name.endswith("_routes"):
            continue

        module = importlib.import_module(f"{__name__}.{module_name}")
        if hasattr(module, "router"):
            router.include_router(module.router)
            log.info("Loaded API router: %s", module_name)
        else:
            log.warning("%s has no router", module_name)
    return router
