from contextlib import asynccontextmanager


@asynccontextmanager
async def unit_of_work(store):
    """Commit the store on success, roll it back on any error.

    A failed commit is rolled back too. Cache invalidations recorded by a
    caching store are applied by its ``commit`` and dropped by its
    ``rollback``.
    """
    try:
        yield store
        await store.commit()
    except Exception:
        await store.rollback()
        raise
