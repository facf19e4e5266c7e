"""HTTP and WebSocket server for the FIX trade simulator."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..infrastructure.config import ConfigLoader
from ..infrastructure.messaging.connection_registry import ConnectionRegistry
from ..services.trade_workflow import TradeWorkflowService
from .endpoints import allocations as allocation_endpoints
from .endpoints import fix as fix_endpoints
from .endpoints import relay as relay_endpoints
from .endpoints import sessions as session_endpoints

logger = logging.getLogger(__name__)


async def startup(app: FastAPI):
    """Initialize configuration and services on startup.

    Everything an endpoint needs is stored in ``app.state`` so endpoints
    reach it through dependency injection rather than module globals.

    Notes
    -----
    The configuration file comes from ``FIX_TRADE_SIM_CONFIG`` when set,
    otherwise ``config/default.yaml``. Invalid configuration raises
    ``ValueError`` and the server does not start.
    """
    config_loader = ConfigLoader()
    fix_config = config_loader.get_fix_config()
    allocation_config = config_loader.get_allocation_config()

    app.state.config_loader = config_loader
    app.state.fix_config = fix_config
    app.state.allocation_config = allocation_config
    app.state.workflow_service = TradeWorkflowService(
        fix_config=fix_config, allocation_config=allocation_config
    )
    app.state.connection_registry = ConnectionRegistry()

    logger.info(
        f"FIX trade simulator started (config={config_loader.config_path}, "
        f"begin_string={fix_config.begin_string})"
    )


async def shutdown(app: FastAPI):
    """Log shutdown; all state is in memory."""
    registry = getattr(app.state, "connection_registry", None)
    connected = len(registry.active_connections) if registry else 0
    logger.info(f"FIX trade simulator stopping with {connected} open connections")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage the application lifecycle."""
    await startup(app)
    yield
    await shutdown(app)


app = FastAPI(
    title="FIX Trade Simulator API",
    description="Trader / Broker / Custodian FIX workflow simulator",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": "FIX Trade Simulator API",
        "version": __version__,
    }


app.include_router(fix_endpoints.router)
app.include_router(allocation_endpoints.router)
app.include_router(session_endpoints.router)
app.include_router(relay_endpoints.router)


def main():
    """Console entry point: configure logging and run the server."""
    config_loader = ConfigLoader()
    config_loader.configure_logging()
    server_config = config_loader.get_server_config()
    uvicorn.run(app, host=server_config.host, port=server_config.port)


if __name__ == "__main__":
    main()
