"""REST API for running scans and browsing scan history."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator

from leaktrail.config import (
    GitAuth,
    LeakTrailConfig,
    RepoConfig,
    ScanConfig,
    parse_branch_list,
)
from leaktrail.git.cli import GitCli
from leaktrail.scanner.engine import ScanOrchestrator
from leaktrail.storage.repos import ScanRunRepo

logger = logging.getLogger(__name__)

router = APIRouter(tags=["scans"])


class ScanRequest(BaseModel):
    """Body of POST /scan. Unset fields fall back to server configuration."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    repo_url: str | None = Field(default=None, alias="repoUrl", min_length=1)
    default_branch: str | None = Field(default=None, alias="defaultBranch")
    branches: list[str] = Field(default_factory=list)
    max_commits_per_run: int | None = Field(
        default=None, alias="maxCommitsPerRun", ge=1
    )
    force_full_scan: bool | None = Field(default=None, alias="forceFullScan")
    remove_clone_on_exit: bool = Field(default=True, alias="removeCloneOnExit")
    github_username: str | None = Field(default=None, alias="githubUsername")
    github_token: str | None = Field(default=None, alias="githubToken")

    @field_validator("branches", mode="before")
    @classmethod
    def _split_branches(cls, value):
        return parse_branch_list(value)


def build_orchestrator(body: ScanRequest, config: LeakTrailConfig) -> ScanOrchestrator:
    repo_url = body.repo_url or config.repo_url
    repo_config = RepoConfig(
        repo_url=repo_url,
        default_branch=body.default_branch or config.default_branch,
        branches=body.branches,
        remove_clone_on_exit=body.remove_clone_on_exit,
        max_commits_per_run=body.max_commits_per_run or config.max_commits_per_run,
    )

    state_dir = config.repo_state_dir(repo_url)
    force = (
        body.force_full_scan
        if body.force_full_scan is not None
        else config.force_full_scan
    )
    scan_config = ScanConfig(
        state_file=state_dir / "state.json",
        output_file=state_dir / "findings.json",
        patterns=config.load_patterns(),
        force_full_scan=force,
    )
    auth = GitAuth(
        username=body.github_username or config.auth.username,
        token=body.github_token or config.auth.token,
    )
    return ScanOrchestrator(
        repo_config,
        scan_config,
        auth=auth,
        git_factory=GitCli,
    )


@router.post("/scan")
async def run_scan(body: ScanRequest, request: Request):
    config: LeakTrailConfig = request.app.state.config
    if not (body.repo_url or config.repo_url):
        return JSONResponse(
            status_code=422,
            content={"detail": "repoUrl is required"},
        )

    logger.info(
        "API scan requested for %s on branches: %s",
        body.repo_url or config.repo_url,
        ", ".join(body.branches) or "(all)",
    )

    async with request.app.state.scan_lock:
        orchestrator = build_orchestrator(body, config)
        result = await run_in_threadpool(orchestrator.scan)

    repo = ScanRunRepo(request.app.state.db)
    run_id = await repo.save_result(result)

    return {
        "runId": run_id,
        "repo": result.repo,
        "branches": result.branches,
        "processedCommits": result.processed_commits,
        "totalProcessedCommits": result.snapshot.processed_commits,
        "branchPlaceholders": result.branch_placeholders,
        "findings": [f.to_dict() for f in result.findings],
    }


@router.get("/scans")
async def list_scans(request: Request, repo: str | None = None):
    runs = ScanRunRepo(request.app.state.db)
    return await runs.list_all(repo=repo)


@router.get("/scans/{run_id}")
async def get_scan(run_id: str, request: Request):
    runs = ScanRunRepo(request.app.state.db)
    result = await runs.get(run_id)
    if not result:
        return JSONResponse(
            status_code=404,
            content={"detail": "Scan not found"},
        )
    return result
