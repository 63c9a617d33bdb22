"""Tool registry: tool name -> descriptor and bound catalog method.

The registry is the single source of truth for both tool listings and
dispatch. Each entry's argument order is the order its schema properties are
declared in, and that is the order arguments are passed to the handler.
"""

import logging
from collections.abc import Awaitable, Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from .models import ToolDescriptor
from .services import Services

logger = logging.getLogger("ado-mcp.tools")

Handler = Callable[..., Awaitable[Any]]


def prop(type_: str, description: str | None = None, **extra) -> dict:
    """JSON Schema fragment for one argument."""
    schema = {"type": type_, **extra}
    if description:
        schema["description"] = description
    return schema


STRING = prop("string")
NUMBER = prop("number")
OBJECT = prop("object")
ARRAY = prop("array")
NUMBER_ARRAY = prop("array", items={"type": "number"})
STRING_ARRAY = prop("array", items={"type": "string"})

PROJECT = prop("string", "Project name or ID")
TEAM = prop("string", "Team name or ID")
REPOSITORY = prop("string", "Repository name or ID")
PULL_REQUEST = prop("number", "Pull request ID")
THREAD = prop("number", "Comment thread ID")
WORK_ITEM = prop("number", "Work item ID")
WIKI = prop("string", "Wiki name or ID")
TOP = prop("number", "Maximum number of results to return")
SEARCH_TEXT = prop("string", "Text to search for")


@dataclass(frozen=True)
class ToolEntry:
    """A tool descriptor bound to the catalog method that implements it."""

    descriptor: ToolDescriptor
    arguments: tuple[str, ...]
    handler: Handler

    @property
    def name(self) -> str:
        return self.descriptor.name

    def bind(self, args: Mapping[str, Any]) -> list:
        """Extract positional arguments in declaration order.

        Missing arguments are passed as None, which every handler treats as unset.
        """
        return [args.get(name) for name in self.arguments]


class ToolRegistry(Mapping[str, ToolEntry]):
    """Ordered, read-only (once frozen) table of tools."""

    def __init__(self):
        self._entries: dict[str, ToolEntry] = {}
        self._frozen = False

    def register(
        self,
        name: str,
        description: str,
        handler: Handler,
        properties: dict[str, dict] | None = None,
        required: tuple[str, ...] = (),
    ) -> ToolEntry:
        """Add a tool.

        Raises:
            RuntimeError: If the registry is frozen.
            ValueError: If the name is taken or required names an unknown property.
        """
        if self._frozen:
            raise RuntimeError("Tool registry is frozen")
        if name in self._entries:
            raise ValueError(f"Tool '{name}' is already registered")

        properties = properties or {}
        unknown = set(required) - set(properties)
        if unknown:
            raise ValueError(f"Tool '{name}' requires unknown properties: {unknown}")

        input_schema: dict[str, Any] = {"type": "object", "properties": properties}
        if required:
            input_schema["required"] = list(required)

        entry = ToolEntry(
            descriptor=ToolDescriptor(
                name=name, description=description, input_schema=input_schema
            ),
            arguments=tuple(properties),
            handler=handler,
        )
        self._entries[name] = entry
        return entry

    def freeze(self) -> None:
        self._frozen = True

    def list_tools(self) -> list[ToolDescriptor]:
        """Descriptors in registration order."""
        return [entry.descriptor for entry in self._entries.values()]

    def __getitem__(self, name: str) -> ToolEntry:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


def build_registry(services: Services) -> ToolRegistry:
    """Build and freeze the registry of all catalog tools."""
    registry = ToolRegistry()
    add = registry.register

    core = services.core
    wit = services.work_items
    repos = services.repos
    pipelines = services.pipelines
    work = services.work
    search = services.search
    wiki = services.wiki
    tests = services.test_plans
    security = services.security

    # ===== PROJECTS, TEAMS & IDENTITY =====

    add(
        "list_projects",
        "List all projects in the Azure DevOps organization",
        core.get_projects,
    )
    add(
        "list_project_teams",
        "List teams for a project",
        core.get_teams,
        {
            "project": PROJECT,
            "mine": prop(
                "boolean",
                "If true, only return teams the authenticated user is a member of",
            ),
            "top": prop("number", "Maximum number of teams to return"),
            "skip": prop("number", "Number of teams to skip"),
        },
        ("project",),
    )
    add(
        "list_team_members",
        "List members of a team",
        core.get_team_members,
        {"project": PROJECT, "team": TEAM},
        ("project", "team"),
    )
    add(
        "get_identity_ids",
        "Search for user identities",
        core.search_identities,
        {"searchFilter": prop("string", "Name or email to search for")},
        ("searchFilter",),
    )
    add(
        "get_current_user",
        "Get current authenticated user info",
        core.get_current_user,
    )

    # ===== WORK ITEMS =====

    add(
        "query_work_items",
        "Query work items using WIQL",
        wit.query_work_items,
        {"wiql": prop("string", "WIQL query string"), "project": PROJECT},
        ("wiql", "project"),
    )
    add(
        "get_work_items_by_ids",
        "Get work items by their IDs",
        wit.get_work_items,
        {
            "ids": prop("array", "Array of work item IDs", items={"type": "number"}),
            "project": PROJECT,
        },
        ("ids", "project"),
    )
    add(
        "create_work_item",
        "Create a new work item",
        wit.create_work_item,
        {
            "project": PROJECT,
            "workItemType": prop("string", "Type: Bug, Task, User Story, etc."),
            "title": STRING,
            "description": STRING,
            "additionalFields": prop("object", "Extra fields keyed by reference name"),
        },
        ("project", "workItemType", "title"),
    )
    add(
        "update_work_item",
        "Update an existing work item",
        wit.update_work_item,
        {
            "project": PROJECT,
            "id": WORK_ITEM,
            "fields": prop("object", "Fields to update"),
            "comment": prop("string", "History comment to add"),
        },
        ("project", "id", "fields"),
    )
    add(
        "update_work_items_batch",
        "Update multiple work items in batch",
        wit.update_work_items_batch,
        {"project": PROJECT, "updates": prop("array", "Array of updates")},
        ("project", "updates"),
    )
    add(
        "add_child_work_items",
        "Add child work items to a parent",
        wit.add_child_work_items,
        {"project": PROJECT, "parentId": WORK_ITEM, "childIds": NUMBER_ARRAY},
        ("project", "parentId", "childIds"),
    )
    add(
        "link_work_items",
        "Link two work items",
        wit.link_work_items,
        {
            "project": PROJECT,
            "sourceId": WORK_ITEM,
            "targetId": WORK_ITEM,
            "linkType": prop("string", "Link type (default System.LinkTypes.Related)"),
        },
        ("project", "sourceId", "targetId"),
    )
    add(
        "unlink_work_item",
        "Remove a link from a work item",
        wit.unlink_work_item,
        {
            "project": PROJECT,
            "workItemId": WORK_ITEM,
            "relationId": prop("string", "Index of the relation to remove"),
        },
        ("project", "workItemId", "relationId"),
    )
    add(
        "add_artifact_link",
        "Link a work item to an artifact such as a commit, build or branch",
        wit.add_artifact_link,
        {
            "project": PROJECT,
            "workItemId": WORK_ITEM,
            "artifactUri": prop("string", "vstfs:/// artifact URI"),
            "artifactType": prop("string", "Artifact link name, e.g. Branch"),
        },
        ("project", "workItemId", "artifactUri", "artifactType"),
    )
    add(
        "link_work_item_to_pull_request",
        "Link a work item to a pull request",
        wit.link_work_item_to_pull_request,
        {
            "project": PROJECT,
            "workItemId": WORK_ITEM,
            "repositoryId": REPOSITORY,
            "pullRequestId": PULL_REQUEST,
        },
        ("project", "workItemId", "repositoryId", "pullRequestId"),
    )
    add(
        "add_work_item_comment",
        "Add a comment to a work item",
        wit.add_work_item_comment,
        {"project": PROJECT, "workItemId": WORK_ITEM, "text": STRING},
        ("project", "workItemId", "text"),
    )
    add(
        "get_work_item_comments",
        "Get comments for a work item",
        wit.get_work_item_comments,
        {"project": PROJECT, "id": WORK_ITEM},
        ("project", "id"),
    )
    add(
        "get_work_item_revisions",
        "Get revision history for a work item",
        wit.get_work_item_revisions,
        {"project": PROJECT, "id": WORK_ITEM},
        ("project", "id"),
    )
    add(
        "list_work_item_types",
        "List available work item types",
        wit.get_work_item_types,
        {"project": PROJECT},
        ("project",),
    )
    add(
        "get_my_work_items",
        "Get work items assigned to or created by current user",
        wit.get_my_work_items,
        {
            "project": PROJECT,
            "assignedToMe": prop("boolean", "True for assigned, false for created"),
        },
        ("project",),
    )
    add(
        "get_work_items_for_iteration",
        "Get work items for a specific iteration",
        wit.get_work_items_for_iteration,
        {"project": PROJECT, "iterationPath": STRING},
        ("project", "iterationPath"),
    )
    add(
        "list_queries",
        "List saved queries",
        wit.get_queries,
        {"project": PROJECT},
        ("project",),
    )
    add(
        "get_query_results",
        "Execute a saved query",
        wit.get_query_results,
        {"project": PROJECT, "queryId": STRING},
        ("project", "queryId"),
    )

    # ===== BOARDS & BACKLOGS =====

    add(
        "list_boards",
        "List team boards",
        work.get_boards,
        {"project": PROJECT, "team": TEAM},
        ("project", "team"),
    )
    add(
        "list_backlogs",
        "List backlogs for a team",
        work.list_backlogs,
        {"project": PROJECT, "team": TEAM},
        ("project", "team"),
    )
    add(
        "list_backlog_work_items",
        "List work items in a backlog",
        work.list_backlog_work_items,
        {"project": PROJECT, "team": TEAM, "backlogId": STRING},
        ("project", "team", "backlogId"),
    )

    # ===== REPOSITORIES =====

    add(
        "list_repositories",
        "List Git repositories in a project",
        repos.get_repositories,
        {"project": PROJECT},
        ("project",),
    )
    add(
        "get_repository",
        "Get repository details",
        repos.get_repository_by_id,
        {"project": PROJECT, "repositoryId": REPOSITORY},
        ("project", "repositoryId"),
    )
    add(
        "list_branches",
        "List branches in a repository",
        repos.get_branches,
        {"project": PROJECT, "repositoryId": REPOSITORY},
        ("project", "repositoryId"),
    )
    add(
        "get_my_branches",
        "List branches created by the current user",
        repos.get_my_branches,
        {"project": PROJECT, "repositoryId": REPOSITORY},
        ("project", "repositoryId"),
    )
    add(
        "get_branch",
        "Get branch details",
        repos.get_branch_by_name,
        {"project": PROJECT, "repositoryId": REPOSITORY, "branchName": STRING},
        ("project", "repositoryId", "branchName"),
    )
    add(
        "create_branch",
        "Create a new branch",
        repos.create_branch,
        {
            "project": PROJECT,
            "repositoryId": REPOSITORY,
            "name": prop("string", "New branch name"),
            "sourceBranch": prop("string", "Branch to create from"),
        },
        ("project", "repositoryId", "name", "sourceBranch"),
    )
    add(
        "list_commits",
        "List commits in a repository",
        repos.get_commits,
        {"project": PROJECT, "repositoryId": REPOSITORY, "top": TOP},
        ("project", "repositoryId"),
    )
    add(
        "search_commits",
        "Search commits with criteria",
        repos.search_commits,
        {
            "project": PROJECT,
            "repositoryId": REPOSITORY,
            "searchCriteria": OBJECT,
            "top": TOP,
        },
        ("project", "repositoryId", "searchCriteria"),
    )
    add(
        "get_file_content",
        "Get file content from repository",
        repos.get_file_content,
        {"project": PROJECT, "repositoryId": REPOSITORY, "path": STRING},
        ("project", "repositoryId", "path"),
    )

    # ===== PULL REQUESTS =====

    add(
        "list_pull_requests",
        "List pull requests",
        repos.get_pull_requests,
        {
            "project": PROJECT,
            "repositoryId": REPOSITORY,
            "top": TOP,
            "status": prop("string", "active, completed, abandoned"),
        },
        ("project",),
    )
    add(
        "list_pull_requests_by_commits",
        "List pull requests that contain the given commits",
        repos.list_pull_requests_by_commits,
        {"project": PROJECT, "repositoryId": REPOSITORY, "commitIds": STRING_ARRAY},
        ("project", "repositoryId", "commitIds"),
    )
    add(
        "get_pull_request",
        "Get pull request details",
        repos.get_pull_request_by_id,
        {"project": PROJECT, "repositoryId": REPOSITORY, "pullRequestId": PULL_REQUEST},
        ("project", "repositoryId", "pullRequestId"),
    )
    add(
        "create_pull_request",
        "Create a new pull request",
        repos.create_pull_request,
        {
            "project": PROJECT,
            "repositoryId": REPOSITORY,
            "sourceBranch": STRING,
            "targetBranch": STRING,
            "title": STRING,
            "description": STRING,
        },
        ("project", "repositoryId", "sourceBranch", "targetBranch", "title"),
    )
    add(
        "update_pull_request",
        "Update a pull request",
        repos.update_pull_request,
        {
            "project": PROJECT,
            "repositoryId": REPOSITORY,
            "pullRequestId": PULL_REQUEST,
            "updates": OBJECT,
        },
        ("project", "repositoryId", "pullRequestId", "updates"),
    )
    add(
        "update_pull_request_reviewers",
        "Update PR reviewers",
        repos.update_pull_request_reviewers,
        {
            "project": PROJECT,
            "repositoryId": REPOSITORY,
            "pullRequestId": PULL_REQUEST,
            "reviewers": ARRAY,
        },
        ("project", "repositoryId", "pullRequestId", "reviewers"),
    )
    add(
        "list_pull_request_threads",
        "List PR comment threads",
        repos.list_pull_request_threads,
        {"project": PROJECT, "repositoryId": REPOSITORY, "pullRequestId": PULL_REQUEST},
        ("project", "repositoryId", "pullRequestId"),
    )
    add(
        "list_pull_request_thread_comments",
        "List comments in a PR thread",
        repos.list_pull_request_thread_comments,
        {
            "project": PROJECT,
            "repositoryId": REPOSITORY,
            "pullRequestId": PULL_REQUEST,
            "threadId": THREAD,
        },
        ("project", "repositoryId", "pullRequestId", "threadId"),
    )
    add(
        "create_pull_request_thread",
        "Create a comment thread on PR",
        repos.create_pull_request_thread,
        {
            "project": PROJECT,
            "repositoryId": REPOSITORY,
            "pullRequestId": PULL_REQUEST,
            "thread": OBJECT,
        },
        ("project", "repositoryId", "pullRequestId", "thread"),
    )
    add(
        "update_pull_request_thread",
        "Update a PR comment thread, e.g. its status",
        repos.update_pull_request_thread,
        {
            "project": PROJECT,
            "repositoryId": REPOSITORY,
            "pullRequestId": PULL_REQUEST,
            "threadId": THREAD,
            "updates": OBJECT,
        },
        ("project", "repositoryId", "pullRequestId", "threadId", "updates"),
    )
    add(
        "reply_to_pull_request_comment",
        "Reply to a PR comment",
        repos.reply_to_pull_request_comment,
        {
            "project": PROJECT,
            "repositoryId": REPOSITORY,
            "pullRequestId": PULL_REQUEST,
            "threadId": THREAD,
            "comment": OBJECT,
        },
        ("project", "repositoryId", "pullRequestId", "threadId", "comment"),
    )

    # ===== BUILDS & PIPELINES =====

    add(
        "get_builds",
        "List builds",
        pipelines.get_builds,
        {"project": PROJECT, "definitionId": NUMBER, "top": TOP},
        ("project",),
    )
    add(
        "get_build_status",
        "Get build status",
        pipelines.get_build_status,
        {"project": PROJECT, "buildId": NUMBER},
        ("project", "buildId"),
    )
    add(
        "get_build_log",
        "Get build logs",
        pipelines.get_build_log,
        {"project": PROJECT, "buildId": NUMBER},
        ("project", "buildId"),
    )
    add(
        "get_build_log_by_id",
        "Get the content of one build log",
        pipelines.get_build_log_by_id,
        {"project": PROJECT, "buildId": NUMBER, "logId": NUMBER},
        ("project", "buildId", "logId"),
    )
    add(
        "get_build_changes",
        "Get the changes included in a build",
        pipelines.get_build_changes,
        {"project": PROJECT, "buildId": NUMBER},
        ("project", "buildId"),
    )
    add(
        "update_build_stage",
        "Retry or cancel a build stage",
        pipelines.update_build_stage,
        {
            "project": PROJECT,
            "buildId": NUMBER,
            "stageRefName": STRING,
            "state": prop("string", "retry or cancel"),
        },
        ("project", "buildId", "stageRefName", "state"),
    )
    add(
        "list_build_definitions",
        "List build definitions",
        pipelines.get_build_definitions,
        {"project": PROJECT},
        ("project",),
    )
    add(
        "get_build_definition_revisions",
        "Get revision history of a build definition",
        pipelines.get_build_definition_revisions,
        {"project": PROJECT, "definitionId": NUMBER},
        ("project", "definitionId"),
    )
    add(
        "list_pipelines",
        "List pipelines",
        pipelines.get_pipelines,
        {"project": PROJECT},
        ("project",),
    )
    add(
        "create_pipeline",
        "Create a pipeline from a YAML file in a repository",
        pipelines.create_pipeline,
        {"project": PROJECT, "name": STRING, "configuration": OBJECT},
        ("project", "name", "configuration"),
    )
    add(
        "run_pipeline",
        "Trigger a pipeline run",
        pipelines.run_pipeline,
        {"project": PROJECT, "pipelineId": NUMBER, "parameters": OBJECT},
        ("project", "pipelineId"),
    )
    add(
        "get_pipeline_run",
        "Get pipeline run details",
        pipelines.get_pipeline_run,
        {"project": PROJECT, "pipelineId": NUMBER, "runId": NUMBER},
        ("project", "pipelineId", "runId"),
    )
    add(
        "list_pipeline_runs",
        "List pipeline runs",
        pipelines.list_pipeline_runs,
        {"project": PROJECT, "pipelineId": NUMBER, "top": TOP},
        ("project", "pipelineId"),
    )

    # ===== ITERATIONS, AREAS & CAPACITY =====

    add(
        "list_iterations",
        "List project iterations",
        work.get_iterations,
        {"project": PROJECT},
        ("project",),
    )
    add(
        "create_iterations",
        "Create project iterations",
        work.create_iterations,
        {"project": PROJECT, "iterations": ARRAY},
        ("project", "iterations"),
    )
    add(
        "list_team_iterations",
        "List team iterations",
        work.get_team_iterations,
        {"project": PROJECT, "team": TEAM},
        ("project", "team"),
    )
    add(
        "assign_iterations",
        "Assign iterations to a team",
        work.assign_iterations,
        {"project": PROJECT, "team": TEAM, "iterationIds": STRING_ARRAY},
        ("project", "team", "iterationIds"),
    )
    add(
        "get_iteration_capacities",
        "Get capacities of all teams for an iteration",
        work.get_iteration_capacities,
        {"project": PROJECT, "iterationId": STRING},
        ("project", "iterationId"),
    )
    add(
        "get_team_capacity",
        "Get team capacity for an iteration",
        work.get_team_capacity,
        {"project": PROJECT, "team": TEAM, "iterationId": STRING},
        ("project", "team", "iterationId"),
    )
    add(
        "update_team_capacity",
        "Replace team capacity for an iteration",
        work.update_team_capacity,
        {"project": PROJECT, "team": TEAM, "iterationId": STRING, "capacities": ARRAY},
        ("project", "team", "iterationId", "capacities"),
    )
    add(
        "list_areas",
        "List project areas",
        work.get_areas,
        {"project": PROJECT},
        ("project",),
    )

    # ===== SEARCH =====

    add(
        "search_code",
        "Search code across repositories",
        search.search_code,
        {
            "searchText": SEARCH_TEXT,
            "project": PROJECT,
            "repository": REPOSITORY,
            "top": TOP,
        },
        ("searchText",),
    )
    add(
        "search_work_items",
        "Search work items",
        search.search_work_items,
        {"searchText": SEARCH_TEXT, "project": PROJECT, "top": TOP},
        ("searchText",),
    )
    add(
        "search_wiki",
        "Search wiki pages",
        search.search_wiki,
        {
            "searchText": SEARCH_TEXT,
            "project": PROJECT,
            "wikiIdentifier": WIKI,
            "top": TOP,
        },
        ("searchText",),
    )

    # ===== WIKIS =====

    add(
        "list_wikis",
        "List wikis in a project",
        wiki.get_wikis,
        {"project": PROJECT},
        ("project",),
    )
    add(
        "get_wiki",
        "Get wiki details",
        wiki.get_wiki,
        {"project": PROJECT, "wikiIdentifier": WIKI},
        ("project", "wikiIdentifier"),
    )
    add(
        "list_wiki_pages",
        "List wiki pages",
        wiki.list_wiki_pages,
        {"project": PROJECT, "wikiIdentifier": WIKI, "path": STRING},
        ("project", "wikiIdentifier"),
    )
    add(
        "get_wiki_page",
        "Get wiki page content",
        wiki.get_wiki_page_content,
        {"project": PROJECT, "wikiIdentifier": WIKI, "path": STRING},
        ("project", "wikiIdentifier"),
    )
    add(
        "create_or_update_wiki_page",
        "Create or update a wiki page",
        wiki.create_or_update_wiki_page,
        {
            "project": PROJECT,
            "wikiIdentifier": WIKI,
            "path": STRING,
            "content": STRING,
            "comment": STRING,
        },
        ("project", "wikiIdentifier", "path", "content"),
    )

    # ===== TEST PLANS =====

    add(
        "list_test_plans",
        "List test plans",
        tests.get_test_plans,
        {"project": PROJECT},
        ("project",),
    )
    add(
        "create_test_plan",
        "Create a test plan",
        tests.create_test_plan,
        {"project": PROJECT, "name": STRING, "description": STRING},
        ("project", "name"),
    )
    add(
        "list_test_suites",
        "List test suites in a plan",
        tests.list_test_suites,
        {"project": PROJECT, "planId": NUMBER},
        ("project", "planId"),
    )
    add(
        "create_test_suite",
        "Create a test suite in a plan",
        tests.create_test_suite,
        {
            "project": PROJECT,
            "planId": NUMBER,
            "name": STRING,
            "suiteType": prop("string", "Suite type (default StaticTestSuite)"),
        },
        ("project", "planId", "name"),
    )
    add(
        "add_test_cases_to_suite",
        "Add existing test cases to a suite",
        tests.add_test_cases_to_suite,
        {
            "project": PROJECT,
            "planId": NUMBER,
            "suiteId": NUMBER,
            "testCaseIds": NUMBER_ARRAY,
        },
        ("project", "planId", "suiteId", "testCaseIds"),
    )
    add(
        "list_test_cases",
        "List test cases in a suite",
        tests.list_test_cases,
        {"project": PROJECT, "planId": NUMBER, "suiteId": NUMBER},
        ("project", "planId", "suiteId"),
    )
    add(
        "create_test_case",
        "Create a test case work item",
        tests.create_test_case,
        {"project": PROJECT, "title": STRING, "steps": ARRAY},
        ("project", "title"),
    )
    add(
        "update_test_case_steps",
        "Replace the steps of a test case",
        tests.update_test_case_steps,
        {"project": PROJECT, "testCaseId": NUMBER, "steps": ARRAY},
        ("project", "testCaseId", "steps"),
    )
    add(
        "get_test_results_from_build",
        "Get test results published by a build",
        tests.get_test_results_from_build,
        {"project": PROJECT, "buildId": NUMBER},
        ("project", "buildId"),
    )

    # ===== ADVANCED SECURITY =====

    add(
        "get_advanced_security_alerts",
        "Get security alerts for a repository",
        security.get_advanced_security_alerts,
        {
            "project": PROJECT,
            "repositoryId": REPOSITORY,
            "severity": STRING,
            "state": STRING,
            "top": TOP,
        },
        ("project", "repositoryId"),
    )
    add(
        "get_advanced_security_alert_details",
        "Get details of a security alert",
        security.get_advanced_security_alert_details,
        {"project": PROJECT, "repositoryId": REPOSITORY, "alertId": STRING},
        ("project", "repositoryId", "alertId"),
    )

    registry.freeze()
    logger.info(f"Tool registry built with {len(registry)} tools")
    return registry
