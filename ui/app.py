"""FastAPI application factory."""

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI

from config import load_config
from core.health import HealthChecker, check_event_loop, create_generator_check
from identifiers.generator import RegressionPolicy
from identifiers.ksuid import new_ksuid_generator
from identifiers.tsid import new_tsid_generator
from identifiers.ulid import new_ulid_generator
from internal.logging import LogLevel, StructuredLogger, get_logger
from utils.crash import create_async_handler
from ui.routes import health, ids


def create_generators(config):
    """One explicitly owned generator per format."""
    tsid = config.tsid
    return {
        "tsid": new_tsid_generator(
            node=tsid.node,
            node_bits=tsid.node_bits,
            node_count=tsid.node_count,
            epoch=tsid.epoch,
            drift_tolerance=tsid.drift_tolerance,
            regression_policy=RegressionPolicy(tsid.regression_policy),
        ),
        "ulid": new_ulid_generator(
            drift_tolerance=config.ulid.drift_tolerance,
            regression_policy=RegressionPolicy(config.ulid.regression_policy),
        ),
        "ksuid": new_ksuid_generator(
            monotonic=config.ksuid.monotonic,
            drift_tolerance=config.ksuid.drift_tolerance,
            regression_policy=RegressionPolicy(config.ksuid.regression_policy),
        ),
    }


def create_app(config=None):
    """Create and configure the FastAPI application."""
    config = config or load_config()

    StructuredLogger.configure(min_level=LogLevel.parse(config.logging.level))
    logger_instance = get_logger()

    generators = create_generators(config)
    health_checker = HealthChecker()
    health_checker.register("event_loop", check_event_loop, critical=True)
    for kind, generator in generators.items():
        health_checker.register(kind, create_generator_check(kind, generator), critical=True)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger_instance.info("Application starting", version="1.0.0", formats=list(generators))
        loop = asyncio.get_running_loop()
        loop.set_exception_handler(create_async_handler(logger_instance))
        yield
        logger_instance.info("Application shutdown complete",
                             generated={kind: gen.get_stats().get("generated") for kind, gen in generators.items()})

    app = FastAPI(
        title="Sortable ID Service",
        version="1.0.0",
        description="TSID, ULID and KSUID generation and decoding",
        lifespan=lifespan,
    )
    app.state.generators = generators

    # Initialize route modules with dependencies
    ids.init(generators)
    health.init(generators, health_checker)

    app.include_router(ids.router)
    app.include_router(health.router)

    return app
