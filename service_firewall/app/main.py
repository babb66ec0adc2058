"""
Firewall service for the request firewall.

Wires settings, structured logging and Prometheus metrics around a
FirewallMap and exposes it as FastAPI middleware.
"""

from typing import Optional

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry

from shared.config import ServiceConfig, get_config
from shared.logging import configure_logging, get_logger
from shared.metrics import get_metrics_collector

from .firewall import FirewallMap, load_firewall_config
from .middleware import FirewallMiddleware, PrincipalLoader

# Loggers carrying the per-firewall debug trail.
DEBUG_TRAIL_LOGGERS = ("firewall.firewall", "firewall.map")


class FirewallService:
    """Firewall service implementation."""

    def __init__(self, config: Optional[ServiceConfig] = None,
                 firewall_map: Optional[FirewallMap] = None,
                 principal_loader: Optional[PrincipalLoader] = None):
        self.config = config or get_config("firewall", 8013)
        configure_logging(
            "firewall",
            self.config.log_level,
            debug_loggers=DEBUG_TRAIL_LOGGERS if self.config.firewall_debug else ()
        )
        self.logger = get_logger("firewall.service")

        self.metrics = None
        if self.config.enable_metrics:
            self.metrics = get_metrics_collector("firewall", registry=CollectorRegistry())

        self.firewall_map = firewall_map if firewall_map is not None else FirewallMap()
        if self.firewall_map.metrics is None:
            self.firewall_map.metrics = self.metrics

        if self.config.firewall_config_file:
            self.load_config_file(self.config.firewall_config_file)
        if self.config.firewall_debug:
            self.firewall_map.debug(True)

        self.principal_loader = principal_loader
        self.app = self._create_app()

    def load_config_file(self, file_path: str) -> FirewallMap:
        """Load firewall definitions from a YAML or JSON file."""
        config = load_firewall_config(file_path)
        self.firewall_map.from_config(config, login_path=self.config.login_path)
        self.logger.info(
            "Firewall configuration loaded",
            file=file_path,
            firewalls=len(self.firewall_map.get_all())
        )
        return self.firewall_map

    def _create_app(self) -> FastAPI:
        app = FastAPI(
            title="Firewall Service",
            description="Request firewall - path scoped authorization rules",
            version="1.0.0",
            docs_url="/docs" if self.config.env == "local" else None,
            redoc_url="/redoc" if self.config.env == "local" else None,
        )
        app.add_middleware(
            FirewallMiddleware,
            firewall_map=self.firewall_map,
            principal_loader=self.principal_loader
        )
        self._setup_routes(app)
        return app

    def _setup_routes(self, app: FastAPI):
        """Set up service routes."""

        @app.get("/health")
        async def health():
            return {
                "status": "ok",
                "service": "firewall",
                "firewalls": len(self.firewall_map.get_all())
            }

        @app.get("/firewalls", response_class=PlainTextResponse)
        async def firewalls():
            """Operator view of the configured rules."""
            return self.firewall_map.dump()

        @app.get("/metrics")
        async def metrics():
            if self.metrics is None:
                return Response(status_code=404)
            return Response(content=self.metrics.export(), media_type=CONTENT_TYPE_LATEST)

    def run(self):
        """Run the service."""
        import uvicorn
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower()
        )


def create_app(config: Optional[ServiceConfig] = None,
               firewall_map: Optional[FirewallMap] = None,
               principal_loader: Optional[PrincipalLoader] = None) -> FastAPI:
    """Create FastAPI application."""
    service = FirewallService(config, firewall_map, principal_loader)
    return service.app


if __name__ == "__main__":
    service = FirewallService()
    service.run()
