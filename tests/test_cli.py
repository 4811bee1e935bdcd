"""Tests for the nlsync CLI."""

import json
from pathlib import Path
from typing import Any, Dict, List, Tuple

import pytest
from typer.testing import CliRunner

from nlsync.cli.app import app
from nlsync.config import ConfigModel, ProviderConfig, save_config
from nlsync.ingestion import FetchResult, IssueFetcher
from nlsync.parsing import IssuePayload

runner = CliRunner()


def write_issue(tmp_path: Path, issue: Dict[str, Any], wrap: bool = False) -> Path:
    path = tmp_path / "issue.json"
    payload = {"data": issue} if wrap else issue
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    return path


def test_parse_prints_wire_json(tmp_path: Path, two_section_issue: Dict[str, Any]) -> None:
    path = write_issue(tmp_path, two_section_issue, wrap=True)

    result = runner.invoke(app, ["parse", str(path), "--json", "--config", str(tmp_path / "none.yaml")])

    assert result.exit_code == 0, result.output
    assert '"noticias"' in result.output
    assert '"total_noticias": 2' in result.output


def test_parse_table_for_empty_issue(tmp_path: Path, make_issue) -> None:
    path = write_issue(tmp_path, make_issue("", content=None))

    result = runner.invoke(app, ["parse", str(path), "--config", str(tmp_path / "none.yaml")])

    assert result.exit_code == 0, result.output
    assert "No items extracted" in result.output


def test_parse_rejects_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "issue.json"
    path.write_text("{not json", encoding="utf-8")

    result = runner.invoke(app, ["parse", str(path), "--config", str(tmp_path / "none.yaml")])

    assert result.exit_code == 1


def test_dry_run_sync(tmp_path: Path, two_section_issue: Dict[str, Any]) -> None:
    path = write_issue(tmp_path, two_section_issue)

    result = runner.invoke(
        app,
        ["sync", "--file", str(path), "--dry-run", "--config", str(tmp_path / "none.yaml")],
    )

    assert result.exit_code == 0, result.output
    assert "success" in result.output
    assert "Dry run" in result.output


def test_dry_run_sync_of_empty_issue_exits_nonzero(tmp_path: Path, make_issue) -> None:
    path = write_issue(tmp_path, make_issue("<p>Nada por aqui.</p>"))

    result = runner.invoke(
        app,
        ["sync", "--file", str(path), "--dry-run", "--config", str(tmp_path / "none.yaml")],
    )

    assert result.exit_code == 1
    assert "failed" in result.output


def test_sync_without_any_source_exits_2(tmp_path: Path) -> None:
    result = runner.invoke(app, ["sync", "--dry-run", "--config", str(tmp_path / "none.yaml")])

    assert result.exit_code == 2
    assert "No publications configured" in result.output


def test_sync_rejects_file_with_publication(tmp_path: Path, two_section_issue: Dict[str, Any]) -> None:
    path = write_issue(tmp_path, two_section_issue)

    result = runner.invoke(app, ["sync", "--file", str(path), "--publication", "pub_1", "--dry-run"])

    assert result.exit_code == 2


def test_sync_post_needs_publication(tmp_path: Path) -> None:
    result = runner.invoke(app, ["sync", "--post", "post_abc123", "--dry-run"])

    assert result.exit_code == 2


def test_sync_configured_publications(
    tmp_path: Path,
    two_section_issue: Dict[str, Any],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    config_path = tmp_path / "config.yaml"
    save_config(ConfigModel(provider=ProviderConfig(publication_ids=["pub_1", "pub_2", "pub_3"])), config_path)
    requested: List[List[str]] = []

    def fake_fetch(self: IssueFetcher, publication_ids: List[str]) -> List[FetchResult]:
        requested.append(list(publication_ids))
        return [
            FetchResult(publication_id="pub_1", success=True, issue=IssuePayload.from_raw(two_section_issue)),
            FetchResult(publication_id="pub_2", success=True, issue=None),
            FetchResult(publication_id="pub_3", success=False, error="HTTP error: timed out"),
        ]

    monkeypatch.setattr(IssueFetcher, "fetch_latest_sync", fake_fetch)

    result = runner.invoke(app, ["sync", "--dry-run", "--config", str(config_path)])

    assert requested == [["pub_1", "pub_2", "pub_3"]]
    assert "success" in result.output
    assert "pub_2 has no issues yet" in result.output
    assert "timed out" in result.output
    assert result.exit_code == 1


def test_sync_one_post_of_a_publication(
    tmp_path: Path,
    two_section_issue: Dict[str, Any],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    requested: List[Tuple[str, str]] = []

    async def fake_fetch_issue(self: IssueFetcher, publication_id: str, post_id: str) -> IssuePayload:
        requested.append((publication_id, post_id))
        return IssuePayload.from_raw(two_section_issue)

    monkeypatch.setattr(IssueFetcher, "fetch_issue", fake_fetch_issue)

    result = runner.invoke(
        app,
        [
            "sync",
            "--publication",
            "pub_1",
            "--post",
            "post_abc123",
            "--dry-run",
            "--config",
            str(tmp_path / "none.yaml"),
        ],
    )

    assert result.exit_code == 0, result.output
    assert requested == [("pub_1", "post_abc123")]
    assert "success" in result.output


def test_sync_without_config_requires_init(tmp_path: Path, two_section_issue: Dict[str, Any]) -> None:
    path = write_issue(tmp_path, two_section_issue)

    result = runner.invoke(app, ["sync", "--file", str(path), "--config", str(tmp_path / "none.yaml")])

    assert result.exit_code == 1


def test_init_writes_config_without_schema(tmp_path: Path) -> None:
    result = runner.invoke(
        app,
        ["init", "--config-dir", str(tmp_path), "--publication", "pub_1", "--no-create-schema"],
    )

    assert result.exit_code == 0, result.output
    written = (tmp_path / "config.yaml").read_text(encoding="utf-8")
    assert "pub_1" in written
    assert "NLSYNC_DB_PASSWORD" in written
