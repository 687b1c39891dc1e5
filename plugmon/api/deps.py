"""
FastAPI dependency injection providers.

The ``PlugStore`` is built once by the application lifespan and kept on
``app.state``; handlers receive it through the ``Store`` annotation so
tests can swap it with ``app.dependency_overrides[get_store]``.

CHANGELOG:
- 2026-10-15: Initial creation (STORY-010)

TODO:
- None
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from plugmon.store import PlugStore


def get_store(request: Request) -> PlugStore:
    """Return the application's PlugStore.

    Raises:
        HTTPException: 503 if the store has not been initialized.
    """
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Store not initialized")
    return store


# Annotated dependency for use in FastAPI route signatures:
#   async def my_endpoint(store: Store): ...
Store = Annotated[PlugStore, Depends(get_store)]
