import json
from dataclasses import replace

import pytest

from electrorank.cli import main
from electrorank.models import PlannedPage, Product
from electrorank.orchestrator import JobSummary


def build_sample_product(product_id: str, category: str = "earbuds", rating: float = 4.2) -> Product:
    return Product(
        product_id=product_id,
        name=f"Sample {product_id}",
        category=category,
        price=1999,
        rating=rating,
        review_count=1500,
        score=rating * 2 + 1.5 - 0.2,
    )


@pytest.fixture
def cli_settings(monkeypatch, settings):
    monkeypatch.setattr("electrorank.cli.load_settings", lambda: settings)
    return settings


def test_handle_stats_prints_report(cli_settings, repository, capsys):
    repository.upsert(build_sample_product("p1"))

    main(["stats"])

    output = capsys.readouterr().out
    assert "Catalog Summary" in output
    assert "Top product: Sample p1" in output
    assert "Catalog last updated: " in output
    assert "No pages have been generated yet." in output


def test_handle_stats_reports_unavailable_store(monkeypatch, settings, tmp_path):
    broken = replace(settings, data_dir=tmp_path / "broken")
    broken.data_file.mkdir(parents=True)
    monkeypatch.setattr("electrorank.cli.load_settings", lambda: broken)

    with pytest.raises(SystemExit, match="Store unavailable"):
        main(["stats"])


def test_handle_run_passes_overrides_and_prints_json(cli_settings, monkeypatch, tmp_path, capsys):
    captured = {}

    class FakeJob:
        def __init__(self, *, settings, notify):
            captured["settings"] = settings
            captured["notify"] = notify

        def run_once(self):
            return JobSummary(
                products_ingested=2,
                scores_updated=2,
                pages=[PlannedPage("category", "category/earbuds.html")],
            )

    monkeypatch.setattr("electrorank.cli.DailyJob", FakeJob)

    main(["run", "--quota", "2", "--output", str(tmp_path / "site"), "--no-ping", "--json"])

    assert captured["settings"].page_quota == 2
    assert captured["settings"].output_dir == tmp_path / "site"
    assert captured["notify"] is False
    payload = json.loads(capsys.readouterr().out)
    assert payload["pages_generated"] == 1
    assert payload["pages"] == [{"type": "category", "path": "category/earbuds.html"}]


def test_negative_quota_is_rejected(cli_settings):
    with pytest.raises(SystemExit, match="cannot be negative"):
        main(["pages", "--quota", "-1"])


def test_handle_pages_prints_generated_pages(cli_settings, repository, capsys):
    repository.upsert_many(
        [build_sample_product("p1", rating=4.5), build_sample_product("p2", rating=4.0)]
    )

    main(["pages", "--quota", "1"])

    lines = capsys.readouterr().out.splitlines()
    assert lines == ["category: category/earbuds.html", "product: product/p1.html"]
    assert (cli_settings.output_dir / "product" / "p1.html").exists()


def test_handle_sitemap_writes_files(cli_settings, repository):
    repository.upsert(build_sample_product("p1"))

    main(["sitemap"])

    sitemap = (cli_settings.output_dir / "sitemap.xml").read_text(encoding="utf-8")
    assert "https://electrorank.test/category/earbuds" in sitemap
    assert (cli_settings.output_dir / "robots.txt").exists()


def test_handle_schedule_hands_off_to_scheduler(cli_settings, monkeypatch):
    captured = {}

    def fake_run_scheduled(settings, job_factory):
        captured["settings"] = settings
        captured["factory"] = job_factory

    monkeypatch.setattr("electrorank.cli.run_scheduled", fake_run_scheduled)

    main(["schedule"])

    assert captured["settings"] is cli_settings
    assert callable(captured["factory"])
