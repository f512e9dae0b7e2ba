"""Main CLI entry point for reposync."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from reposync.cli.display import (
    console,
    show_banner,
    show_error,
    show_info,
    show_repo_list,
    show_success,
    show_summary,
    show_sync_results,
)
from reposync.core.config.settings import LoggingSettings, Settings, get_settings
from reposync.core.config.sync_config import load_sync_config
from reposync.core.exceptions.errors import ReposyncError
from reposync.core.logger.logger import setup_logging
from reposync.core.utils.inputs import (
    dedupe_strings,
    parse_newline_list,
    parse_pr_tags,
    parse_topic_list,
    resolve_config_path,
)
from reposync.github.client import GitHubClient
from reposync.github.discovery import RepositoryDiscovery
from reposync.github.pull_requests import PullRequestService
from reposync.models.sync import ConfigSyncOptions, SyncOptions, WorkflowResult
from reposync.propagation.orchestrator import SyncOrchestrator


def build_client(settings: Settings, token: str) -> GitHubClient:
    """Create the GitHub REST client from settings."""
    return GitHubClient(
        token,
        base_url=settings.github.api_url,
        timeout=settings.github.timeout,
        max_retries=settings.github.max_retries,
        retry_delay=settings.github.retry_delay,
    )


def build_orchestrator(
    settings: Settings,
    client: GitHubClient,
    token: str,
    git_email: str | None,
    git_username: str | None,
) -> SyncOrchestrator:
    """Wire the orchestrator with its GitHub services."""
    return SyncOrchestrator(
        token,
        git_email or settings.git.user_email,
        git_username or settings.git.user_name,
        discovery=RepositoryDiscovery(client),
        pull_requests=PullRequestService(client),
    )


def _resolve_token(settings: Settings, token: str | None) -> str:
    resolved = token or settings.github.resolve_token()
    if not resolved:
        raise click.UsageError(
            "A GitHub token is required (--token, REPOSYNC_GITHUB_TOKEN, "
            "GH_INSTALLATION_TOKEN, GH_PAT or GITHUB_TOKEN)"
        )
    return resolved


def pr_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by the sync commands."""
    options = [
        click.option("--token", help="GitHub token (defaults to the environment)"),
        click.option("--source-ref", envvar="SOURCE_REF", help="Source branch or tag"),
        click.option("--branch-name", envvar="BRANCH_NAME", help="Sync branch (generated if omitted)"),
        click.option("--branch-prefix", envvar="BRANCH_PREFIX", default="sync", show_default=True),
        click.option("--base-branch", envvar="BASE_BRANCH", help="PR base (target default branch if omitted)"),
        click.option("--commit-prefix", envvar="COMMIT_PREFIX", default="🔄", show_default=True),
        click.option("--commit-body", envvar="COMMIT_BODY", help="Commit message body"),
        click.option("--pr-title", envvar="PR_TITLE", help="PR title (commit message if omitted)"),
        click.option("--pr-body", envvar="PR_BODY", default="", help="PR body"),
        click.option("--labels", envvar="PR_LABELS", help="Newline separated labels"),
        click.option("--pr-tags", envvar="PR_TAGS", help="Labels as a JSON array or newline list"),
        click.option("--reviewers", envvar="REVIEWERS", help="Newline separated reviewers"),
        click.option("--team-reviewers", envvar="TEAM_REVIEWERS", help="Newline separated team slugs"),
        click.option("--assignees", envvar="ASSIGNEES", help="Newline separated assignees"),
        click.option("--git-email", envvar="GIT_EMAIL", help="Committer email"),
        click.option("--git-username", envvar="GIT_USERNAME", help="Committer name"),
        click.option("--dry-run", envvar="DRY_RUN", is_flag=True, help="Report changes without pushing"),
        click.option("--skip-pr", envvar="SKIP_PR", is_flag=True, help="Push without opening a PR"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _run_options(kwargs: dict[str, Any]) -> dict[str, Any]:
    """Normalize the shared options into RunOptions fields."""
    return {
        "source_ref": kwargs["source_ref"],
        "branch_name": kwargs["branch_name"],
        "branch_prefix": kwargs["branch_prefix"],
        "base_branch": kwargs["base_branch"],
        "commit_prefix": kwargs["commit_prefix"],
        "commit_body": kwargs["commit_body"],
        "pr_title": kwargs["pr_title"],
        "pr_body": kwargs["pr_body"] or "",
        "labels": dedupe_strings(
            parse_newline_list(kwargs["labels"]) + parse_pr_tags(kwargs["pr_tags"])
        ),
        "reviewers": dedupe_strings(parse_newline_list(kwargs["reviewers"])),
        "team_reviewers": dedupe_strings(parse_newline_list(kwargs["team_reviewers"])),
        "assignees": dedupe_strings(parse_newline_list(kwargs["assignees"])),
        "dry_run": kwargs["dry_run"],
        "skip_pr": kwargs["skip_pr"],
    }


def _execute(
    ctx: click.Context,
    kwargs: dict[str, Any],
    run: Callable[[SyncOrchestrator], WorkflowResult],
) -> None:
    """Build the orchestrator, run, report, and set the exit code."""
    settings: Settings = ctx.obj["settings"]
    token = _resolve_token(settings, kwargs["token"])

    try:
        with build_client(settings, token) as client:
            with build_orchestrator(
                settings, client, token, kwargs["git_email"], kwargs["git_username"]
            ) as orchestrator:
                result = run(orchestrator)
    except ReposyncError as e:
        show_error("Sync Failed", str(e))
        ctx.exit(1)

    show_sync_results(result, dry_run=kwargs["dry_run"])

    failed = [r.target_repo for r in result.sync_results if r.error is not None]
    if failed:
        show_error("Sync Incomplete", f"{len(failed)} target(s) failed: {', '.join(failed)}")
        ctx.exit(1)

    if kwargs["dry_run"]:
        show_info("Dry Run", "No commits were pushed.")
    else:
        show_success("Sync Complete", f"{len(result.pull_request_urls)} pull request(s) created or updated")


@click.group(invoke_without_command=True)
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="REPOSYNC_CONFIG",
    help="Settings YAML file",
)
@click.option("--log-level", help="Override the log level")
@click.pass_context
def main(ctx: click.Context, version: bool, config_file: Path | None, log_level: str | None) -> None:
    """reposync - propagate files from a source repository to many targets."""
    if version:
        from reposync import __version__

        click.echo(f"reposync version {__version__}")
        return

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        return

    try:
        settings = Settings.load(config_file) if config_file else get_settings()
        if log_level:
            settings.logging = LoggingSettings(**{**settings.logging.model_dump(), "level": log_level})
    except (ReposyncError, ValueError) as e:
        show_error("Configuration Error", str(e))
        ctx.exit(1)

    setup_logging(settings.logging)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@main.command()
@click.option("--source-repo", envvar="SOURCE_REPO", required=True, help="Source repository (owner/repo)")
@click.option("--source-path", envvar="SOURCE_PATH", required=True, help="File, directory or glob to sync")
@click.option("--dest-path", envvar="DEST_PATH", help="Destination in each target")
@click.option("--target-repos", envvar="TARGET_REPOS", help="Comma or newline separated targets")
@click.option("--org", "target_org", envvar="TARGET_ORG", help="Organization to search for targets")
@click.option("--topics", envvar="SEARCH_TOPICS", help="Comma or newline separated topics")
@pr_options
@click.pass_context
def sync(ctx: click.Context, source_repo: str, source_path: str, dest_path: str | None,
         target_repos: str | None, target_org: str | None, topics: str | None, **kwargs: Any) -> None:
    """Sync one path of the source repository to many targets.

    Examples:
        reposync sync --source-repo acme/templates --source-path .github/workflows/ci.yml \\
            --target-repos "acme/api,acme/web"
        reposync sync --source-repo acme/templates --source-path "workflows/*.yml" \\
            --dest-path .github/workflows --org acme --topics python
    """
    targets = parse_topic_list(target_repos) if target_repos else None
    try:
        options = SyncOptions(
            source_repo=source_repo,
            source_path=source_path,
            dest_path=dest_path,
            target_repos=targets,
            target_org=target_org,
            search_topics=parse_topic_list(topics),
            **_run_options(kwargs),
        )
    except (ReposyncError, ValueError) as e:
        show_error("Invalid Options", str(e))
        ctx.exit(1)

    show_banner("sync")
    show_summary({
        "Source": source_repo,
        "Path": source_path,
        "Destination": dest_path,
        "Targets": targets,
        "Organization": target_org,
        "Topics": options.search_topics,
        "Dry Run": "yes" if options.dry_run else None,
    })
    _execute(ctx, kwargs, lambda orchestrator: orchestrator.execute_sync(options))


@main.command("sync-config")
@click.option("--source-repo", envvar="SOURCE_REPO", required=True, help="Source repository (owner/repo)")
@click.option("--config-path", envvar="CONFIG_PATH", help="Sync configuration (default .github/sync.yml)")
@pr_options
@click.pass_context
def sync_config(ctx: click.Context, source_repo: str, config_path: str | None, **kwargs: Any) -> None:
    """Sync per-target file lists from a YAML configuration.

    Example:
        reposync sync-config --source-repo acme/templates --config-path .github/sync.yml
    """
    path = resolve_config_path(config_path)
    try:
        config = load_sync_config(path)
    except ReposyncError as e:
        show_error("Configuration Error", str(e))
        ctx.exit(1)

    try:
        options = ConfigSyncOptions(source_repo=source_repo, sync_config=config, **_run_options(kwargs))
    except (ReposyncError, ValueError) as e:
        show_error("Invalid Options", str(e))
        ctx.exit(1)

    show_banner("sync-config")
    show_summary({
        "Source": source_repo,
        "Config": path,
        "Targets": list(config.targets),
        "Dry Run": "yes" if options.dry_run else None,
    })
    _execute(ctx, kwargs, lambda orchestrator: orchestrator.execute_sync_from_config(options))


@main.command()
@click.option("--org", envvar="TARGET_ORG", required=True, help="Organization to search")
@click.option("--topics", envvar="SEARCH_TOPICS", required=True, help="Comma or newline separated topics")
@click.option("--token", help="GitHub token (defaults to the environment)")
@click.pass_context
def discover(ctx: click.Context, org: str, topics: str, token: str | None) -> None:
    """List repositories in an organization that carry every topic.

    Example:
        reposync discover --org acme --topics "python,service"
    """
    settings: Settings = ctx.obj["settings"]
    resolved = _resolve_token(settings, token)

    try:
        with build_client(settings, resolved) as client:
            repos = RepositoryDiscovery(client).discover(org, parse_topic_list(topics))
    except ReposyncError as e:
        show_error("Discovery Failed", str(e))
        ctx.exit(1)

    show_repo_list(f"{len(repos)} repositories in {org}", repos)
    if not repos:
        console.print("[dim]No repositories matched.[/]")


if __name__ == "__main__":
    main()
