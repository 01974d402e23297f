"""Application wiring: config, logging, engine adapter and controller."""

from typing import Optional

from player_client.boundary import StoreBoundary
from player_client.config import Config, get_config
from player_client.events import EventBus
from player_client.logging import LinuxLogger, get_logger
from player_client.moc_engine import MocEngine
from player_client.playback_controller import PlaybackController
from player_client.reconciler import ErrorReporter

logger = get_logger(__name__)


def create_engine(config: Config, event_bus: EventBus) -> MocEngine:
    """Build the engine adapter named by ``[engine] backend``."""
    backend = config.engine_backend
    logger.debug("Using %s engine backend", backend)
    mocp_path = config.mocp_path
    return MocEngine(
        mocp_path=str(mocp_path) if mocp_path else None,
        event_bus=event_bus,
        poll_interval=config.poll_interval,
        command_timeout=config.command_timeout,
    )


class PlayerClientApplication:
    """Owns the engine adapter and the controller for one UI session."""

    def __init__(
        self,
        store: StoreBoundary,
        config: Optional[Config] = None,
        event_bus: Optional[EventBus] = None,
        error_reporter: Optional[ErrorReporter] = None,
    ):
        self.config = config or get_config()
        LinuxLogger.get_instance().use_log_dir(self.config.log_dir)

        # Engine events and UI notifications share one bus
        self.event_bus = event_bus or EventBus()
        self.engine = create_engine(self.config, self.event_bus)
        if not self.engine.is_available():
            logger.warning("mocp not found; playback commands will fail")
        self.controller = PlaybackController(
            self.engine,
            self.engine,
            store,
            event_bus=self.event_bus,
            error_reporter=error_reporter,
            initial_volume=self.config.initial_volume,
        )

    async def start(self) -> None:
        """Subscribe, start polling the engine and load all collections."""
        self.controller.start()
        self.engine.start()
        await self.controller.refresh_all()

    async def stop(self) -> None:
        await self.controller.close()
        await self.engine.aclose()

    async def __aenter__(self) -> "PlayerClientApplication":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
