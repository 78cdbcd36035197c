"""Tests for the HTTP scan API."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from conftest import FakeGit, run_async
from leaktrail.config import LeakTrailConfig
from leaktrail.web.app import create_app

REPO = "https://github.com/acme/widgets.git"


@pytest.fixture
def config(tmp_path: Path) -> LeakTrailConfig:
    return LeakTrailConfig(
        data_dir=tmp_path / "data",
        config_dir=tmp_path / "config",
    )


@pytest.fixture
def app(config: LeakTrailConfig):
    application = run_async(create_app(config))
    yield application
    run_async(application.state.db.close())


def _request(app, method: str, url: str, **kwargs) -> httpx.Response:
    async def _go():
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(
            transport=transport, base_url="http://test"
        ) as client:
            return await client.request(method, url, **kwargs)

    return run_async(_go())


def _scan(app, git: FakeGit, body: dict) -> httpx.Response:
    with patch("leaktrail.web.api.scans.GitCli", lambda _path: git):
        return _request(app, "POST", "/api/scan", json=body)


def test_health(app):
    response = _request(app, "GET", "/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_scan_returns_findings(app, config, main_history):
    response = _scan(app, FakeGit({"main": main_history}), {"repoUrl": REPO})
    assert response.status_code == 200
    data = response.json()
    assert data["repo"] == REPO
    assert data["processedCommits"] == 5
    assert data["branchPlaceholders"] == {}
    assert len(data["findings"]) == 3
    assert data["findings"][0]["filePath"] == "config.js"

    report = config.repo_state_dir(REPO) / "findings.json"
    assert report.exists()


def test_scan_with_cap_and_branch_string(app, main_history):
    git = FakeGit({"main": main_history, "dev": main_history})
    response = _scan(
        app,
        git,
        {"repoUrl": REPO, "branches": "dev", "maxCommitsPerRun": 2},
    )
    data = response.json()
    assert data["branches"] == ["dev"]
    assert data["branchPlaceholders"] == {"dev": "d4"}
    assert data["processedCommits"] == 2


def test_scan_history_is_recorded(app, main_history):
    run_id = _scan(app, FakeGit({"main": main_history}), {"repoUrl": REPO}).json()[
        "runId"
    ]
    runs = _request(app, "GET", "/api/scans").json()
    assert [r["id"] for r in runs] == [run_id]

    detail = _request(app, "GET", f"/api/scans/{run_id}").json()
    assert len(detail["findings"]) == 3


def test_unknown_scan_is_404(app):
    assert _request(app, "GET", "/api/scans/nope").status_code == 404


def test_missing_repo_url_is_422(app):
    response = _request(app, "POST", "/api/scan", json={})
    assert response.status_code == 422


def test_invalid_max_commits_is_422(app):
    response = _request(
        app, "POST", "/api/scan", json={"repoUrl": REPO, "maxCommitsPerRun": 0}
    )
    assert response.status_code == 422


def test_missing_branch_maps_to_404(app, main_history):
    response = _scan(
        app,
        FakeGit({"main": main_history}),
        {"repoUrl": REPO, "branches": ["ghost"]},
    )
    assert response.status_code == 404
    assert "ghost" in response.json()["detail"]


def test_clone_failure_maps_to_404(app):
    response = _scan(app, FakeGit({}, fail_clone=True), {"repoUrl": REPO})
    assert response.status_code == 404
    assert "Unable to clone" in response.json()["detail"]
