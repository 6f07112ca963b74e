"""Tests for engine and session wiring (no database connection needed)."""

import pytest

from stocklens.core import database
from stocklens.core.database import (
    dispose_app_engine,
    get_app_engine,
    get_engine,
    get_session_maker,
)


@pytest.mark.asyncio
async def test_app_engine_is_shared_until_disposed():
    """API requests reuse one engine; shutdown releases it."""
    first = get_app_engine()
    assert get_app_engine() is first

    await dispose_app_engine()
    assert database._app_engine is None

    second = get_app_engine()
    assert second is not first
    await dispose_app_engine()


@pytest.mark.asyncio
async def test_dispose_without_engine_is_noop():
    await dispose_app_engine()
    await dispose_app_engine()

    assert database._app_engine is None


@pytest.mark.asyncio
async def test_session_maker_binds_explicit_engine():
    """Scripts pass their own engine instead of the shared one."""
    engine = get_engine()
    try:
        assert get_session_maker(engine).kw["bind"] is engine
    finally:
        await engine.dispose()
