"""Fan-out orchestration of a sync run.

One source checkout is shared by every target. Each target is processed
by its own TargetController, in input order, and a failure is recorded in
that target's result instead of aborting the run.
"""

import re
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from pathlib import Path

from reposync.core.exceptions.errors import ConfigurationError, ReposyncError, ValidationError
from reposync.core.logger.logger import get_logger
from reposync.github.discovery import RepositoryDiscovery
from reposync.github.pull_requests import PullRequestService
from reposync.models.sync import (
    ConfigSyncOptions,
    FileSpec,
    RepoReference,
    RunOptions,
    SyncOptions,
    SyncResult,
    WorkflowResult,
)
from reposync.propagation.copier import is_glob
from reposync.propagation.registry import HandlerRegistry
from reposync.propagation.source import SourceProvider
from reposync.propagation.target import TargetController
from reposync.propagation.workspace import WorkspaceManager

logger = get_logger(__name__)

_UNSAFE_BRANCH_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def default_dest(source_path: str) -> str:
    """Destination used when none is given: the basename, or ``.`` for globs."""
    if is_glob(source_path):
        return "."
    return source_path.rstrip("/").split("/")[-1] or source_path


def error_message(error: Exception) -> str:
    """Message recorded in a failed SyncResult."""
    if isinstance(error, ReposyncError):
        return error.message
    return str(error)


class SyncOrchestrator:
    """Drives a sync run across many target repositories."""

    def __init__(
        self,
        token: str,
        git_email: str,
        git_username: str,
        discovery: RepositoryDiscovery | None = None,
        pull_requests: PullRequestService | None = None,
        source_provider: SourceProvider | None = None,
        controller_factory: Callable[[], TargetController] | None = None,
        workspace_manager: WorkspaceManager | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            token: Access token for git transport.
            git_email: Committer email for target commits.
            git_username: Committer name for target commits.
            discovery: Repository discovery, required for topic search.
            pull_requests: PR service, required unless dry-running or skipping PRs.
            source_provider: Source checkout provider.
            controller_factory: Builds one TargetController per target.
            workspace_manager: Shared temporary workspace manager.
        """
        if not token:
            raise ValidationError("token is required", field="token")

        self.token = token
        self.git_email = git_email
        self.git_username = git_username
        self.discovery = discovery
        self.pull_requests = pull_requests
        self.workspace_manager = workspace_manager or WorkspaceManager()
        self.source_provider = source_provider or SourceProvider(self.workspace_manager)
        self.controller_factory = controller_factory or self._default_controller
        self.registry = HandlerRegistry()

    def _default_controller(self) -> TargetController:
        return TargetController(
            self.token,
            self.git_email,
            self.git_username,
            workspace_manager=self.workspace_manager,
        )

    def execute_sync(self, options: SyncOptions) -> WorkflowResult:
        """Sync one source path to explicit or discovered targets.

        Args:
            options: Run options.

        Returns:
            WorkflowResult in target order.

        Raises:
            ValidationError: If neither targets nor org + topics are given.
            CloneError: If the source repository cannot be materialized.
            GitHubAPIError: If discovery fails.
        """
        RepoReference.parse(options.source_repo, field="source_repo")

        if options.target_repos is not None:
            targets = list(options.target_repos)
        elif options.target_org and options.search_topics:
            targets = self.discover_target_repos(options.target_org, options.search_topics)
        else:
            raise ValidationError(
                "Must provide either target_repos or both target_org and search_topics",
                field="target_repos",
            )

        branch_name = options.branch_name or self.generate_branch_name(
            options.source_repo,
            prefix=options.branch_prefix,
            source_path=options.source_path,
        )
        specs = [FileSpec(source=options.source_path, dest=options.dest_path or default_dest(options.source_path))]
        message = f"{options.commit_prefix} Sync {options.source_path}"

        return self._run(options, targets, lambda _repo: specs, branch_name, message)

    def execute_sync_from_config(self, options: ConfigSyncOptions) -> WorkflowResult:
        """Sync per-target file lists from a sync configuration.

        Args:
            options: Run options carrying the configuration.

        Returns:
            WorkflowResult in configuration order.
        """
        RepoReference.parse(options.source_repo, field="source_repo")

        targets = options.sync_config.targets
        branch_name = options.branch_name or self.generate_branch_name(
            options.source_repo,
            prefix=options.branch_prefix,
        )

        def specs_for(repo: str) -> list[FileSpec]:
            return targets[repo]

        def message_for(repo: str) -> str:
            dests = ", ".join(spec.dest for spec in targets[repo])
            return f"{options.commit_prefix} Sync {dests}"

        return self._run(options, list(targets), specs_for, branch_name, message_for)

    def discover_target_repos(self, org: str, topics: list[str]) -> list[str]:
        """Discover targets by organization and topics.

        Raises:
            ConfigurationError: If no discovery service was configured.
        """
        if self.discovery is None:
            raise ConfigurationError("Repository discovery is not configured", config_key="discovery")
        return self.discovery.discover(org, topics)

    @staticmethod
    def generate_branch_name(
        source_repo: str,
        prefix: str = "sync",
        source_path: str | None = None,
        today: datetime | None = None,
    ) -> str:
        """Build ``{prefix}/{repo_name}/{YYYY-MM-DD}[/{basename}]``.

        Args:
            source_repo: Source repository in owner/repo format.
            prefix: Branch prefix.
            source_path: Synced path; its sanitized basename is appended.
            today: Date to use; the current UTC date if not provided.

        Returns:
            Branch name.
        """
        repo_name = RepoReference.parse(source_repo, field="source_repo").name
        date = (today or datetime.now(timezone.utc)).strftime("%Y-%m-%d")
        branch_name = f"{prefix}/{repo_name}/{date}"

        if source_path:
            file_name = _UNSAFE_BRANCH_CHARS.sub("-", source_path.split("/")[-1]) or "file"
            branch_name += f"/{file_name}"

        return branch_name

    def _run(
        self,
        options: RunOptions,
        targets: Sequence[str],
        specs_for: Callable[[str], list[FileSpec]],
        branch_name: str,
        message: str | Callable[[str], str],
    ) -> WorkflowResult:
        source = self.source_provider.materialize_whole_repo(
            options.source_repo, self.token, ref=options.source_ref
        )

        sync_results: list[SyncResult] = []
        pull_request_urls: list[str] = []
        try:
            for target in targets:
                commit_message = message(target) if callable(message) else message
                try:
                    result = self._sync_target(
                        target, specs_for(target), source.path, branch_name, commit_message, options
                    )
                except Exception as e:
                    logger.error(f"{target}: {error_message(e)}")
                    result = SyncResult(target_repo=target, error=error_message(e))

                sync_results.append(result)
                if result.pull_request_url:
                    pull_request_urls.append(result.pull_request_url)
        finally:
            source.release()

        return WorkflowResult(
            discovered_repos=list(targets),
            sync_results=sync_results,
            pull_request_urls=pull_request_urls,
        )

    def _sync_target(
        self,
        target: str,
        specs: list[FileSpec],
        source_root: Path,
        branch_name: str,
        commit_message: str,
        options: RunOptions,
    ) -> SyncResult:
        with self.registry.lease(self.controller_factory) as controller:
            state = controller.setup(target, branch_name, base_ref=options.base_branch)
            changed = controller.sync_files(state, specs, source_root=source_root)

            if not changed:
                logger.info(f"{target}: already up to date")
                return SyncResult(target_repo=target)

            if options.dry_run:
                logger.info(f"{target}: dry run, {len(changed)} file(s) would change")
                return SyncResult(target_repo=target, files_changed=changed)

            state = controller.commit_and_push(state, commit_message, options.commit_body)
            if not state.committed:
                return SyncResult(target_repo=target, files_changed=changed)

            if options.skip_pr:
                logger.info(f"{target}: pushed {branch_name}, skipping PR")
                return SyncResult(target_repo=target, files_changed=changed)

            if self.pull_requests is None:
                raise ConfigurationError("Pull request service is not configured", config_key="pull_requests")
            base = options.base_branch or state.base_branch
            if not base:
                raise ValidationError(f"Could not determine the base branch of {target}", field="base_branch")

            pr = self.pull_requests.create_or_update(
                target,
                title=options.pr_title or commit_message,
                body=options.pr_body,
                head=branch_name,
                base=base,
            )
            self.pull_requests.add_metadata(
                target,
                pr.number,
                labels=options.labels,
                assignees=options.assignees,
                reviewers=options.reviewers,
                team_reviewers=options.team_reviewers,
            )
            logger.info(f"{target}: {pr.html_url}")
            return SyncResult(target_repo=target, files_changed=changed, pull_request_url=pr.html_url)

    def cleanup(self) -> int:
        """Release every controller still registered.

        Returns:
            Number of controllers released.
        """
        return self.registry.release_all()

    def __enter__(self) -> "SyncOrchestrator":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cleanup()
