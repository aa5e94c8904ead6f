"""Command line entrypoints for the ElectroRank daily job."""
from __future__ import annotations

import argparse
import dataclasses
import json
import logging
from pathlib import Path

from .config import Settings, ensure_directories, load_settings
from .errors import NotifyError, StoreError
from .orchestrator import DailyJob
from .pages import PageBuilder
from .planner import PageBudgetPlanner
from .reporting import generate_stats_report
from .repository import ProductRepository
from .scheduler import run_scheduled
from .sitemap import SitemapAssembler, notify_search_engines, write_robots

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="ElectroRank ranking and page generation commands")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run the full daily job once")
    run_parser.add_argument("--quota", type=int, help="Product/comparison pages to generate")
    run_parser.add_argument("--output", type=Path, help="Output directory for generated pages")
    run_parser.add_argument(
        "--no-ping",
        action="store_true",
        help="Skip notifying search engines after the sitemap is written",
    )
    run_parser.add_argument("--json", action="store_true", help="Print the run summary as JSON")
    run_parser.set_defaults(func=handle_run)

    pages_parser = subparsers.add_parser("pages", help="Regenerate pages from the current catalog")
    pages_parser.add_argument("--quota", type=int, help="Product/comparison pages to generate")
    pages_parser.add_argument("--output", type=Path, help="Output directory for generated pages")
    pages_parser.set_defaults(func=handle_pages)

    sitemap_parser = subparsers.add_parser("sitemap", help="Rebuild sitemap.xml and robots.txt")
    sitemap_parser.add_argument("--output", type=Path, help="Directory to write the sitemap into")
    sitemap_parser.add_argument("--ping", action="store_true", help="Notify search engines afterwards")
    sitemap_parser.set_defaults(func=handle_sitemap)

    stats_parser = subparsers.add_parser("stats", help="Summarize the catalog and page history")
    stats_parser.set_defaults(func=handle_stats)

    schedule_parser = subparsers.add_parser(
        "schedule", help="Run the daily job every day at the configured time"
    )
    schedule_parser.set_defaults(func=handle_schedule)

    return parser


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


def _settings_from_args(args: argparse.Namespace) -> Settings:
    settings = load_settings()
    overrides: dict = {}
    quota = getattr(args, "quota", None)
    if quota is not None:
        if quota < 0:
            raise SystemExit("--quota cannot be negative")
        overrides["page_quota"] = quota
    output = getattr(args, "output", None)
    if output is not None:
        overrides["output_dir"] = Path(output)
    if overrides:
        settings = dataclasses.replace(settings, **overrides)
    return settings


def handle_run(args: argparse.Namespace) -> None:
    settings = _settings_from_args(args)
    job = DailyJob(settings=settings, notify=not getattr(args, "no_ping", False))
    summary = job.run_once()
    if getattr(args, "json", False):
        print(json.dumps(summary.to_dict(), indent=2, sort_keys=True))


def handle_pages(args: argparse.Namespace) -> None:
    settings = _settings_from_args(args)
    ensure_directories(settings)
    repository = ProductRepository(settings.data_file)
    try:
        with repository:
            planner = PageBudgetPlanner(
                repository, PageBuilder(repository, settings), quota=settings.page_quota
            )
            pages = planner.run()
    except StoreError as error:
        raise SystemExit(f"Store unavailable: {error}")
    for page in pages:
        print(f"{page.type}: {page.path}")


def handle_sitemap(args: argparse.Namespace) -> None:
    settings = _settings_from_args(args)
    ensure_directories(settings)
    repository = ProductRepository(settings.data_file)
    try:
        with repository:
            assembler = SitemapAssembler(repository, settings)
            path = assembler.write()
    except StoreError as error:
        raise SystemExit(f"Store unavailable: {error}")
    write_robots(settings)
    LOGGER.info("Sitemap written to %s", path)
    if getattr(args, "ping", False):
        try:
            notify_search_engines(assembler.sitemap_url, settings)
        except NotifyError as error:
            LOGGER.warning("%s", error)


def handle_stats(args: argparse.Namespace) -> None:
    settings = load_settings()
    repository = ProductRepository(settings.data_file)
    try:
        with repository:
            products = repository.load_products()
            pages = repository.load_page_log()
            last_updated = repository.get_last_updated()
    except StoreError as error:
        raise SystemExit(f"Store unavailable: {error}")
    print(generate_stats_report(products=products, pages=pages, last_updated=last_updated))


def handle_schedule(args: argparse.Namespace) -> None:
    settings = load_settings()
    run_scheduled(settings, lambda: DailyJob(settings=settings))


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging()
    args.func(args)


if __name__ == "__main__":
    main()
