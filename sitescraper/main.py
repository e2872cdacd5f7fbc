"""Command-line entry point for SiteScraper."""
import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv

from . import __version__
from .core.service import ScrapingService
from .core.settings import EngineSettings
from .crawler.page import Renderer
from .crawler.static import StaticRenderer
from .models.session import Session, SessionStatus
from .storage.memory import MemorySessionStore

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments.
    """
    parser = argparse.ArgumentParser(
        description="SiteScraper - run a selector configuration against a website"
    )
    parser.add_argument(
        "--config",
        type=Path,
        required=True,
        help="Path to a JSON crawl configuration",
    )
    parser.add_argument(
        "--mode",
        type=str,
        default="auto",
        choices=["auto", "single", "multi"],
        help="Crawl mode; 'auto' follows the configuration's multi-website options",
    )
    parser.add_argument(
        "--renderer",
        type=str,
        default=os.getenv("SITESCRAPER_RENDERER", "static"),
        choices=["static", "browser"],
        help="Fetch pages over plain HTTP or with headless Chromium",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=os.getenv("LOG_LEVEL", "info"),
        choices=["debug", "info", "warning", "error", "critical"],
        help="Logging level",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"SiteScraper {__version__}",
        help="Show version and exit",
    )
    return parser.parse_args(argv)


def create_renderer(name: str, settings: EngineSettings) -> Renderer:
    """Create the renderer selected on the command line."""
    if name == "browser":
        from .crawler.browser import PlaywrightRenderer

        return PlaywrightRenderer(settings)
    return StaticRenderer(settings)


async def run_crawl(config: dict, mode: str, renderer: Renderer, settings: EngineSettings) -> Session:
    """Run one configuration in a fresh in-memory session.

    Returns:
        Final snapshot of the session.
    """
    store = MemorySessionStore()
    session = await store.create_session()
    async with ScrapingService(renderer, store, settings) as service:
        if mode == "single":
            await service.run_single_site(config, session.id)
        elif mode == "multi":
            await service.run_multi_site(config, session.id)
        else:
            await service.run(config, session.id)
    return await store.get_session(session.id)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run a crawl and print the session as JSON."""
    env_path = Path(".") / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path)

    args = parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    if env_path.exists():
        logger.info(f"Loaded environment variables from {env_path}")

    try:
        config = json.loads(args.config.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.error(f"Could not read configuration {args.config}: {e}")
        return 1

    settings = EngineSettings.from_env()
    renderer = create_renderer(args.renderer, settings)
    session = asyncio.run(run_crawl(config, args.mode, renderer, settings))

    print(session.model_dump_json(indent=2))
    return 1 if session.status == SessionStatus.FAILED else 0


if __name__ == "__main__":
    sys.exit(main())
