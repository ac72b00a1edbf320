import argparse
import sys
from typing import List, Optional

from loguru import logger

from .generator import Generator
from .settings import Settings
from .site import Site


def main(argv: Optional[List[str]] = None) -> int:
    settings = Settings()
    parser = argparse.ArgumentParser(
        prog="notion-site-data",
        description="Import Notion databases into a static site's data files.",
    )
    parser.add_argument("--source", default=settings.site_source, help="site source directory")
    parser.add_argument("--log-level", default=settings.log_level)
    args = parser.parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level=args.log_level.upper())

    site = Site(args.source)
    Generator(settings).generate(site)
    logger.info(f"[generator] data ready for {len(site.data)} collections")
    return 0
