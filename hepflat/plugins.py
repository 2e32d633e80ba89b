from __future__ import annotations

import logging
from importlib import metadata

from .io.registry import register

logger = logging.getLogger(__name__)

_LOADED = False


def load_plugins() -> None:
    """Load hepflat plugins via Python entry points.

    Supported entry-point groups:
      - hepflat.stores: callables returning
        (fmt, store_factory, collection_reader_or_None)

    A broken plugin is logged and skipped; it never takes the built-in
    formats down with it.
    """

    global _LOADED
    if _LOADED:
        return
    _LOADED = True

    eps = metadata.entry_points()
    group = eps.select(group="hepflat.stores") if hasattr(eps, "select") else eps.get("hepflat.stores", [])

    for ep in group:
        try:
            fn = ep.load()
            fmt, store_factory, collection_reader = fn()
        except Exception:
            logger.warning("Failed to load hepflat plugin %s", ep.name, exc_info=True)
            continue
        register(fmt, store=store_factory, collections=collection_reader)
        logger.debug("Registered store plugin %s for format %s", ep.name, fmt)
