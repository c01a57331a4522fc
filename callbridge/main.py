"""Main application entry point for the telephony-to-realtime bridge."""

import argparse
import asyncio
import logging
import signal
import sys
from dataclasses import replace
from typing import Optional, Sequence

import structlog

from callbridge import __version__
from callbridge.ai.realtime_connector import RealtimeConnector
from callbridge.config import Config, config
from callbridge.core.agent_config import AgentConfig
from callbridge.server.listener import InboundListener


def setup_logging(settings: Config) -> None:
    """Configure structured logging to stdout."""
    log_level = getattr(logging, settings.system.log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        level=log_level,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True
    )

    # websockets logs every handshake at INFO
    logging.getLogger("websockets").setLevel(max(log_level, logging.WARNING))

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.system.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def create_connector(settings: Config) -> RealtimeConnector:
    """Create the realtime model connector.

    Raises:
        ValueError: If the API key is not configured
    """
    if not settings.ai.openai_api_key:
        raise ValueError("OpenAI API key not configured (set OPENAI_API_KEY)")

    return RealtimeConnector(
        api_key=settings.ai.openai_api_key,
        model=settings.ai.openai_model,
        url=settings.ai.realtime_url,
        connect_timeout=settings.ai.connect_timeout
    )


async def main(settings: Config) -> None:
    """Start the listener and run until SIGINT/SIGTERM."""
    logger = structlog.get_logger(__name__)

    agent_config = AgentConfig.load(settings.ai.agent_prompt_file)
    connector = create_connector(settings)

    logger.info(
        "Bridge starting",
        version=__version__,
        model=connector.model,
        commit_every=settings.audio.commit_every_chunks,
        telephony_sr=settings.audio.telephony_sr,
        model_sr=settings.audio.model_sr
    )

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, OSError):
            logger.debug("Signal handler unavailable", signal=sig)

    listener = InboundListener(settings, connector, instructions=agent_config.instructions)
    await listener.serve_forever(stop_event)

    logger.info("Shutdown complete")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Bridge Twilio Media Streams to a realtime voice model"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    parser.add_argument("--host", help="Listen address (overrides HOST)")
    parser.add_argument("--port", type=int, help="Listen port (overrides PORT)")
    parser.add_argument("--log-level", help="Log level (overrides LOG_LEVEL)")
    return parser.parse_args(argv)


def apply_overrides(settings: Config, args: argparse.Namespace) -> Config:
    """Apply command line overrides on top of the environment config."""
    server = settings.server
    system = settings.system
    if args.host:
        server = replace(server, host=args.host)
    if args.port is not None:
        server = replace(server, port=args.port)
    if args.log_level:
        system = replace(system, log_level=args.log_level)
    return replace(settings, server=server, system=system)


def cli(argv: Optional[Sequence[str]] = None) -> None:
    """CLI entry point."""
    args = parse_args(argv)
    settings = apply_overrides(config, args)

    # Setup logging BEFORE anything else
    setup_logging(settings)
    logger = structlog.get_logger(__name__)

    try:
        asyncio.run(main(settings))
    except KeyboardInterrupt:
        logger.info("Shutdown complete")
        sys.exit(0)
    except Exception as e:
        logger.error("Fatal error", error=str(e), exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
