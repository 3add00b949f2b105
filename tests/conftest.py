"""
Pytest configuration and shared fixtures.

Provides reusable test fixtures for all test modules.
"""

import pytest

from antares.config.engine import EngineConfig
from antares.config.settings import Settings
from antares.core.engine import ArbitrageEngine
from antares.exchange.models import Product
from tests.mocks.exchange import make_product


# =============================================================================
# Catalog Fixtures
# =============================================================================


@pytest.fixture
def triangle_products() -> list[Product]:
    """BTC/ETH/USD triangle."""
    return [make_product("BTC-USD"), make_product("ETH-USD"), make_product("ETH-BTC")]


@pytest.fixture
def catalog_products(triangle_products: list[Product]) -> list[Product]:
    """Triangle plus SOL, a single-exit DOGE, an excluded EUR and a delisted ADA."""
    return [
        *triangle_products,
        make_product("SOL-USD"),
        make_product("SOL-BTC"),
        make_product("DOGE-USD"),
        make_product("BTC-EUR"),
        make_product("ADA-USD", status="delisted"),
    ]


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def zero_fee_config() -> EngineConfig:
    """Engine config without fees, excluding EUR."""
    return EngineConfig(fee_rate=0.0, excluded_currencies=frozenset({"EUR"}))


@pytest.fixture
def engine(zero_fee_config: EngineConfig, triangle_products: list[Product]) -> ArbitrageEngine:
    """Engine with the triangle catalog loaded and cycles enumerated."""
    engine = ArbitrageEngine(zero_fee_config)
    engine.load_catalog(triangle_products)
    engine.prune()
    engine.enumerate_cycles()
    return engine


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Settings with the dashboard off and no .env file."""
    return Settings(
        _env_file=None,
        dashboard=False,
        fee_rate=0.0,
        excluded_currencies=frozenset({"EUR"}),
        use_uvloop=False,
    )
