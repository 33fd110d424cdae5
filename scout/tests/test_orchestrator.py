"""Tests for the discovery orchestrator and command-line interface."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pandas as pd
import pytest

from scout.models import (
    DepartmentListing,
    FailureKind,
    PaperSearchResult,
    ProfessorLink,
    ProfessorProfile,
    Publication,
    PublicationSource,
    ScrapeResult,
)
from scout.orchestrator import (
    OrchestrationConfig,
    ScoutOrchestrator,
    StageResult,
    StageStatus,
    create_argument_parser,
    main,
    merge_professor_links,
)

DEPARTMENT_URL = "https://cs.example.edu/people/faculty"


def make_links(*names):
    slugs = [name.lower().replace(" ", "-").replace(",", "") for name in names]
    return [
        ProfessorLink(name=name, url=f"https://cs.example.edu/people/{slug}")
        for name, slug in zip(names, slugs, strict=True)
    ]


@pytest.fixture
def department_scraper():
    scraper = MagicMock()
    scraper.scrape = AsyncMock(
        return_value=ScrapeResult.success(
            DepartmentListing(
                department_name="Computer Science",
                professor_links=make_links("Jane Smith", "Alan Turing", "Grace Hopper"),
            )
        )
    )
    return scraper


@pytest.fixture
def professor_scraper():
    async def scrape(url):
        return ScrapeResult.success(
            ProfessorProfile(
                name=url.rsplit("/", 1)[-1],
                email="someone@cs.example.edu",
                research_areas=["Systems", "Theory"],
                website_url=url,
            )
        )

    scraper = MagicMock()
    scraper.scrape = AsyncMock(side_effect=scrape)
    return scraper


@pytest.fixture
def discovery():
    finder = MagicMock()
    finder.find_publications = AsyncMock(
        return_value=ScrapeResult.success(
            PaperSearchResult(
                papers=[
                    Publication(
                        title="Consensus Revisited",
                        year=2020,
                        source=PublicationSource.SEMANTIC_SCHOLAR,
                    )
                ]
            )
        )
    )
    return finder


@pytest.fixture
def orchestrator(tmp_path, department_scraper, professor_scraper, discovery):
    config = OrchestrationConfig(output_dir=tmp_path / "output")
    return ScoutOrchestrator(
        config,
        department_scraper=department_scraper,
        professor_scraper=professor_scraper,
        discovery=discovery,
    )


class TestMergeProfessorLinks:
    """Test name-based deduplication of listing candidates."""

    def test_known_names_are_skipped_case_insensitively(self):
        links = make_links("Jane Smith", "Alan Turing")

        merged = merge_professor_links(["  jane SMITH "], links)

        assert [link.name for link in merged] == ["Alan Turing"]

    def test_duplicates_within_listing_keep_first(self):
        links = make_links("Jane Smith", "Alan Turing", "jane smith")

        merged = merge_professor_links([], links)

        assert [link.name for link in merged] == ["Jane Smith", "Alan Turing"]


class TestStageResult:
    """Test StageResult timing and serialization."""

    def test_duration(self):
        stage = StageResult(stage="export", started=100.0, finished=150.0)
        assert stage.duration == 50.0

        stage.finished = None
        assert stage.duration is None

    def test_to_dict(self, tmp_path):
        stage = StageResult(
            stage="export",
            status=StageStatus.COMPLETED,
            started=0.0,
            finished=2.5,
            output_files=[tmp_path / "professors.csv"],
        )

        data = stage.to_dict()

        assert data["status"] == "completed"
        assert data["duration"] == 2.5
        assert data["output_files"] == [str(tmp_path / "professors.csv")]


class TestScoutOrchestrator:
    """Test the end-to-end discovery run."""

    @pytest.mark.asyncio
    async def test_run_pipeline_exports_records(self, orchestrator, tmp_path):
        stages = await orchestrator.run_pipeline(DEPARTMENT_URL)

        assert [r.status for r in stages] == [StageStatus.COMPLETED] * 3
        assert stages[0].metrics["candidates_found"] == 3
        assert stages[1].metrics["publications_found"] == 3

        output_dir = tmp_path / "output"
        df = pd.read_csv(output_dir / "professors.csv")
        assert list(df["name"]) == ["Jane Smith", "Alan Turing", "Grace Hopper"]
        assert list(df["publication_count"]) == [1, 1, 1]
        assert df["research_areas"][0] == "Systems; Theory"

        with open(output_dir / "professors.json") as f:
            records = json.load(f)
        assert records[0]["publications"][0]["source"] == "Semantic Scholar"

        with open(output_dir / "reports" / "scout_run_report.json") as f:
            report = json.load(f)
        assert [s["stage"] for s in report["stages"]] == [
            "department",
            "enrichment",
            "export",
        ]
        assert report["department_url"] == DEPARTMENT_URL
        assert report["professors"] == 3

    @pytest.mark.asyncio
    async def test_known_names_and_limit(self, orchestrator, professor_scraper):
        orchestrator.config.known_names = ["jane smith"]
        orchestrator.config.limit = 1

        await orchestrator.run_pipeline(DEPARTMENT_URL)

        assert [r.link.name for r in orchestrator.records] == ["Alan Turing"]
        professor_scraper.scrape.assert_awaited_once_with(
            "https://cs.example.edu/people/alan-turing"
        )

    @pytest.mark.asyncio
    async def test_department_failure_stops_pipeline(
        self, orchestrator, department_scraper, discovery
    ):
        department_scraper.scrape.return_value = ScrapeResult.fail(
            FailureKind.TRANSPORT, "Failed to fetch page: HTTP 503", status=503
        )

        stages = await orchestrator.run_pipeline(DEPARTMENT_URL)

        assert len(stages) == 1
        assert stages[0].status == StageStatus.FAILED
        assert "HTTP 503" in stages[0].error
        discovery.find_publications.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_listing_skips_later_stages(
        self, orchestrator, department_scraper
    ):
        department_scraper.scrape.return_value = ScrapeResult.success(
            DepartmentListing()
        )

        stages = await orchestrator.run_pipeline(DEPARTMENT_URL)

        assert [r.status for r in stages] == [
            StageStatus.COMPLETED,
            StageStatus.SKIPPED,
            StageStatus.SKIPPED,
        ]

    @pytest.mark.asyncio
    async def test_enrich_records_failures(
        self, orchestrator, professor_scraper, discovery
    ):
        professor_scraper.scrape.side_effect = None
        professor_scraper.scrape.return_value = ScrapeResult.fail(
            FailureKind.TRANSPORT, "Failed to fetch profile: HTTP 404"
        )
        discovery.find_publications.return_value = ScrapeResult.success(
            PaperSearchResult(), message="Could not find papers."
        )

        record = await orchestrator.enrich(make_links("Jane Smith")[0])

        assert record.profile is None
        assert record.publications == []
        assert record.errors == [
            "Failed to fetch profile: HTTP 404",
            "Could not find papers.",
        ]

    @pytest.mark.asyncio
    async def test_link_without_url_skips_profile_scrape(
        self, orchestrator, professor_scraper
    ):
        record = await orchestrator.enrich(ProfessorLink(name="Grace Hopper"))

        professor_scraper.scrape.assert_not_awaited()
        assert len(record.publications) == 1


class TestCommandLine:
    """Test argument parsing and the main entry point."""

    @pytest.fixture(autouse=True)
    def quiet_logging(self):
        with patch("scout.orchestrator.configure_logging"):
            yield

    def test_run_arguments(self):
        parser = create_argument_parser()

        args = parser.parse_args(
            ["--log-level", "DEBUG", "run", DEPARTMENT_URL, "--limit", "5"]
        )

        assert args.command == "run"
        assert args.url == DEPARTMENT_URL
        assert args.limit == 5
        assert args.log_level == "DEBUG"
        assert args.concurrency is None

    def test_command_is_required(self):
        parser = create_argument_parser()

        with pytest.raises(SystemExit):
            parser.parse_args([])

    @pytest.mark.asyncio
    async def test_papers_command_prints_json(self, capsys):
        finder = MagicMock()
        finder.find_publications = AsyncMock(
            return_value=ScrapeResult.success(
                PaperSearchResult(
                    papers=[
                        Publication(
                            title="Notes on Paxos",
                            source=PublicationSource.GOOGLE_SCHOLAR,
                        )
                    ]
                )
            )
        )

        with patch("scout.orchestrator.PublicationDiscovery", return_value=finder):
            exit_code = await main(["papers", "Smith, Jane"])

        assert exit_code == 0
        finder.find_publications.assert_awaited_once_with("Smith, Jane")
        assert "Notes on Paxos" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_failed_department_command_exits_nonzero(self):
        scraper = MagicMock()
        scraper.scrape = AsyncMock(
            return_value=ScrapeResult.fail(FailureKind.TRANSPORT, "Failed to fetch")
        )

        with patch("scout.orchestrator.DepartmentScraper", return_value=scraper):
            exit_code = await main(["department", DEPARTMENT_URL])

        assert exit_code == 1

    @pytest.mark.asyncio
    async def test_run_command_uses_config_defaults(self, tmp_path: Path):
        with patch("scout.orchestrator.ScoutOrchestrator") as orchestrator_cls:
            orchestrator_cls.return_value.run_pipeline = AsyncMock(return_value=[])
            exit_code = await main(
                ["run", DEPARTMENT_URL, "--output-dir", str(tmp_path)]
            )

        assert exit_code == 0
        config = orchestrator_cls.call_args.args[0]
        assert config.output_dir == tmp_path
        assert config.concurrency == 2
