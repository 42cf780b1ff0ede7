from __future__ import annotations

import importlib
import logging
import pkgutil
from typing import Iterable, List

from fastapi import APIRouter


logger = logging.getLogger(__name__)

MODULES_PACKAGE = "app.modules"


def iter_submodules(package: str) -> Iterable[str]:
    pkg = importlib.import_module(package)
    for m in sorted(pkgutil.iter_modules(pkg.__path__), key=lambda info: info.name):
        if m.ispkg:
            yield f"{package}.{m.name}"


def _import_optional(name: str) -> object | None:
    """Import ``name`` or return None when that exact module does not exist."""
    try:
        return importlib.import_module(name)
    except ModuleNotFoundError as exc:
        if exc.name != name:
            raise
        return None


def import_all_models() -> None:
    """Register every feature module's tables on the shared metadata."""
    for mod in iter_submodules(MODULES_PACKAGE):
        _import_optional(f"{mod}.models")


def collect_routers() -> List[APIRouter]:
    import_all_models()
    routers: List[APIRouter] = []
    for mod in iter_submodules(MODULES_PACKAGE):
        router_mod = _import_optional(f"{mod}.router")
        router = getattr(router_mod, "router", None) if router_mod else None
        if router is not None:
            routers.append(router)
        else:
            logger.debug("Module %s exposes no router", mod)
    return routers
