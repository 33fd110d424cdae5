"""
Discovery orchestrator for Faculty Scout.

Runs a department page through the whole discovery flow: listing scrape,
name-based deduplication, profile enrichment with publication discovery, and
export. Also provides the command-line interface for running each step alone.
"""

import argparse
import asyncio
import json
import logging
import sys
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import pandas as pd
from loguru import logger
from tqdm.asyncio import tqdm as async_tqdm

from scout.config import load_section
from scout.discovery import PublicationDiscovery
from scout.models import (
    EnrichedProfessor,
    ProfessorLink,
    ScrapeResult,
)
from scout.scrapers.department import DepartmentScraper
from scout.scrapers.professor import ProfessorScraper
from scout.settings import get_settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def configure_logging(level: str) -> None:
    """Send loguru output to stdout and set the level of library loggers."""
    logger.remove()
    logger.add(sys.stdout, level=level, format=LOG_FORMAT)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def merge_professor_links(
    existing_names: list[str], links: list[ProfessorLink]
) -> list[ProfessorLink]:
    """
    Drop candidates whose name is already known.

    Names are compared lower-cased and trimmed, both against existing_names and
    among the new links themselves. The first occurrence of a name wins.
    """
    seen = {name.lower().strip() for name in existing_names}
    merged = []
    for link in links:
        key = link.name.lower().strip()
        if key in seen:
            logger.debug(f"Skipping duplicate professor: {link.name}")
            continue
        seen.add(key)
        merged.append(link)
    return merged


class StageStatus(Enum):
    """Outcome of one discovery stage."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class StageResult:
    """Status, timing and counters of one discovery stage."""

    stage: str
    status: StageStatus = StageStatus.RUNNING
    started: float | None = None
    finished: float | None = None
    error: str | None = None
    metrics: dict[str, Any] = field(default_factory=dict)
    output_files: list[Path] = field(default_factory=list)

    @property
    def duration(self) -> float | None:
        if self.started is None or self.finished is None:
            return None
        return self.finished - self.started

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage,
            "status": self.status.value,
            "duration": self.duration,
            "error": self.error,
            "metrics": self.metrics,
            "output_files": [str(path) for path in self.output_files],
        }


@dataclass
class OrchestrationConfig:
    """Configuration for a discovery run."""

    config_path: Path | None = None
    log_level: str = "INFO"
    concurrency: int = 2
    output_dir: Path = Path("output")
    limit: int | None = None
    known_names: list[str] = field(default_factory=list)


class ScoutOrchestrator:
    """Runs department discovery end to end."""

    def __init__(
        self,
        config: OrchestrationConfig,
        department_scraper: DepartmentScraper | None = None,
        professor_scraper: ProfessorScraper | None = None,
        discovery: PublicationDiscovery | None = None,
    ):
        self.config = config
        self.department_scraper = department_scraper or DepartmentScraper(
            config.config_path
        )
        self.professor_scraper = professor_scraper or ProfessorScraper(
            config.config_path
        )
        self.discovery = discovery or PublicationDiscovery(config.config_path)
        self.semaphore = asyncio.Semaphore(config.concurrency)
        self.stages: list[StageResult] = []

        self.links: list[ProfessorLink] = []
        self.records: list[EnrichedProfessor] = []

    async def run_pipeline(self, url: str) -> list[StageResult]:
        """Scrape url, enrich every new professor, and export the records."""
        logger.info(f"Starting discovery for {url}")

        stages = [
            ("department", lambda stage: self._run_department(url, stage)),
            ("enrichment", self._run_enrichment),
            ("export", self._run_export),
        ]

        for name, run in stages:
            stage = await self._run_stage(name, run)
            self.stages.append(stage)
            if stage.status == StageStatus.FAILED:
                break

        self._write_report(url)
        return self.stages

    async def _run_stage(self, name: str, run) -> StageResult:
        """Run one stage, recording its outcome instead of raising."""
        stage = StageResult(stage=name, started=time.monotonic())
        try:
            await run(stage)
        except Exception as e:
            stage.status = StageStatus.FAILED
            stage.error = str(e)
            logger.error(f"Stage {name} failed: {e}")
        else:
            if stage.status == StageStatus.RUNNING:
                stage.status = StageStatus.COMPLETED
        stage.finished = time.monotonic()

        logger.info(f"Stage {name}: {stage.status.value} ({stage.duration:.2f}s)")
        return stage

    async def _run_department(self, url: str, stage: StageResult) -> None:
        scrape = await self.department_scraper.scrape(url)
        listing = scrape.unwrap()

        links = merge_professor_links(self.config.known_names, listing.professor_links)
        if self.config.limit:
            links = links[: self.config.limit]
        self.links = links

        stage.metrics = {
            "department_name": listing.department_name,
            "candidates_found": len(listing.professor_links),
            "new_professors": len(links),
        }
        logger.info(
            f"Found {len(listing.professor_links)} candidates, {len(links)} new"
        )

    async def enrich(self, link: ProfessorLink) -> EnrichedProfessor:
        """Scrape a professor's profile and discover their publications."""
        async with self.semaphore:
            record = EnrichedProfessor(link=link)

            if link.url:
                profile = await self.professor_scraper.scrape(link.url)
                if profile.ok:
                    record.profile = profile.value
                else:
                    record.errors.append(profile.message or "Profile scrape failed")

            papers = await self.discovery.find_publications(link.name)
            if papers.value is not None:
                record.publications = papers.value.papers
                record.scholar_profile_url = papers.value.profile_url
            if not papers.ok or not record.publications:
                record.errors.append(papers.message or "No publications found")

            return record

    async def _run_enrichment(self, stage: StageResult) -> None:
        if not self.links:
            stage.status = StageStatus.SKIPPED
            logger.info("No new professors to enrich")
            return

        async def enrich_indexed(index: int, link: ProfessorLink):
            return index, await self.enrich(link)

        tasks = [enrich_indexed(i, link) for i, link in enumerate(self.links)]
        enriched: dict[int, EnrichedProfessor] = {}
        failures = 0

        with async_tqdm(total=len(tasks), desc="Enriching professors") as pbar:
            for future in asyncio.as_completed(tasks):
                try:
                    index, record = await future
                    enriched[index] = record
                except Exception as e:
                    failures += 1
                    logger.error(f"Error enriching professor: {e}")
                finally:
                    pbar.update(1)

        self.records = [enriched[i] for i in sorted(enriched)]
        stage.metrics = {
            "professors_enriched": len(self.records),
            "enrichment_failures": failures,
            "profiles_scraped": sum(1 for r in self.records if r.profile),
            "publications_found": sum(len(r.publications) for r in self.records),
        }

    async def _run_export(self, stage: StageResult) -> None:
        if not self.records:
            stage.status = StageStatus.SKIPPED
            logger.info("Nothing to export")
            return
        stage.output_files = export_records(self.records, self.config.output_dir)
        stage.metrics = {"records_exported": len(self.records)}

    def _write_report(self, url: str) -> Path:
        """Write the run summary to output_dir/reports and return its path."""
        report_path = self.config.output_dir / "reports" / "scout_run_report.json"
        report_path.parent.mkdir(parents=True, exist_ok=True)

        report = {
            "department_url": url,
            "finished_at": int(time.time()),
            "professors": len(self.records),
            "stages": [stage.to_dict() for stage in self.stages],
        }
        with open(report_path, "w") as f:
            json.dump(report, f, indent=2)

        logger.info(f"Run report saved to: {report_path}")
        return report_path


def flatten_record(record: EnrichedProfessor) -> dict[str, Any]:
    """One CSV row per professor; list fields are joined with "; "."""
    profile = record.profile
    return {
        "name": record.link.name,
        "url": record.link.url,
        "title": (profile and profile.title) or record.link.title,
        "department": (profile and profile.department) or record.link.department,
        "email": profile.email if profile else None,
        "phone": profile.phone if profile else None,
        "office": profile.office if profile else None,
        "image_url": (profile and profile.image_url) or record.link.image_url,
        "research_areas": "; ".join(profile.research_areas) if profile else "",
        "research_summary": profile.research_summary if profile else None,
        "lab_members": len(profile.lab_members) if profile else 0,
        "publication_count": len(record.publications),
        "publications": "; ".join(p.title for p in record.publications),
        "scholar_profile_url": record.scholar_profile_url,
        "errors": "; ".join(record.errors),
    }


def export_records(records: list[EnrichedProfessor], output_dir: Path) -> list[Path]:
    """Write professors.json (full records) and professors.csv (flattened)."""
    output_dir.mkdir(parents=True, exist_ok=True)

    json_path = output_dir / "professors.json"
    with open(json_path, "w") as f:
        json.dump([r.model_dump(mode="json") for r in records], f, indent=2)

    csv_path = output_dir / "professors.csv"
    df = pd.DataFrame([flatten_record(r) for r in records])
    df.to_csv(csv_path, index=False)

    logger.info(f"Saved {len(records)} professors to {csv_path} and {json_path}")
    return [csv_path, json_path]


def _print_result(result: ScrapeResult) -> int:
    """Print a result as JSON; return the process exit code."""
    if not result.ok:
        logger.error(result.message)
        return 1
    if result.message:
        logger.warning(result.message)
    print(result.value.model_dump_json(indent=2))
    return 0


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog="faculty-scout",
        description="Discover professors and their publications from faculty pages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List professors on a directory page
  python -m scout department https://cs.example.edu/people/faculty

  # Scrape a single profile
  python -m scout professor https://cs.example.edu/people/jane-smith

  # Find papers for an author
  python -m scout papers "Smith, Jane"

  # Full run, enriching at most 10 professors
  python -m scout run https://cs.example.edu/people/faculty --limit 10
        """,
    )

    # Global parameters
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: bundled config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging verbosity (default: SCOUT_LOG_LEVEL or INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    department = subparsers.add_parser("department", help="Scrape a listing page")
    department.add_argument("url", help="Faculty directory URL")

    professor = subparsers.add_parser("professor", help="Scrape a profile page")
    professor.add_argument("url", help="Professor profile URL")

    papers = subparsers.add_parser("papers", help="Discover papers for an author")
    papers.add_argument("name", help='Author name, "First Last" or "Last, First"')

    run = subparsers.add_parser("run", help="Full discovery for a department")
    run.add_argument("url", help="Faculty directory URL")
    run.add_argument(
        "--concurrency",
        type=int,
        help="Professors enriched concurrently (default from config)",
    )
    run.add_argument(
        "--output-dir",
        type=Path,
        help="Output directory for records and the run report (default from config)",
    )
    run.add_argument(
        "--limit", type=int, help="Maximum professors to enrich (for testing)"
    )
    run.add_argument(
        "--known-names",
        type=Path,
        help="File with one already-known professor name per line to skip",
    )

    return parser


def _read_known_names(path: Path | None) -> list[str]:
    if path is None:
        return []
    with open(path) as f:
        return [line.strip() for line in f if line.strip()]


async def main(argv: list[str] | None = None) -> int:
    """Main entry point for the command-line interface."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    config_path = args.config or settings.config_path
    configure_logging(args.log_level or settings.log_level)

    if args.command == "department":
        return _print_result(await DepartmentScraper(config_path).scrape(args.url))

    if args.command == "professor":
        return _print_result(await ProfessorScraper(config_path).scrape(args.url))

    if args.command == "papers":
        discovery = PublicationDiscovery(config_path)
        return _print_result(await discovery.find_publications(args.name))

    defaults = load_section("orchestrator", config_path=config_path)
    config = OrchestrationConfig(
        config_path=config_path,
        log_level=args.log_level or settings.log_level,
        concurrency=args.concurrency or defaults.get("concurrency_limit", 2),
        output_dir=args.output_dir or Path(defaults.get("output_dir", "output")),
        limit=args.limit,
        known_names=_read_known_names(args.known_names),
    )
    orchestrator = ScoutOrchestrator(config)
    stages = await orchestrator.run_pipeline(args.url)

    failed = [stage.stage for stage in stages if stage.status == StageStatus.FAILED]
    if failed:
        logger.error(f"Run failed at stage: {', '.join(failed)}")
        return 1
    logger.info("Run completed successfully")
    return 0


def cli() -> None:
    """Console-script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
