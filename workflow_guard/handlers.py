'''
This module holds the reactions to pull request and
pull request review events.

Every handler takes (client, event), issues its API calls in
order and returns nothing. An ApiError aborts the handler and
is logged; calls already issued are not rolled back.
'''

import logging
from typing import Callable, Iterable, Protocol

from workflow_guard.config import DEFAULT_CLOSE_COMMENT, DEFAULT_REINSTATE_COMMENT
from workflow_guard.errors import ApiError, log_error
from workflow_guard.model import Commit, Event, PullRequestRef, RepositoryRef, Workflow

logger = logging.getLogger(__name__)

class ApiClient(Protocol):
    '''
    The Github operations a handler may call.
    '''
    def list_workflows(self, repository: RepositoryRef) -> list[Workflow]: ...

    def enable_workflow(self, repository: RepositoryRef, workflow_id: int): ...

    def create_comment(self, pull_request: PullRequestRef, body: str): ...

    def list_commits(self, pull_request: PullRequestRef) -> list[Commit]: ...

    def update_pull_request_state(self, pull_request: PullRequestRef, state: str): ...

CommitCheck = Callable[[Event, list[Commit]], None]

def reinstate_workflows(client: ApiClient, event: Event, comment: str = DEFAULT_REINSTATE_COMMENT):
    '''
    Enables every manually disabled workflow of the repository
    and leaves one comment per workflow on the pull request.
    '''
    logger.info("Received a pull request event for #%s", event.pull_request.number)
    try:
        workflows = client.list_workflows(event.repository)
        for workflow in workflows:
            if not workflow.disabled_manually:
                continue
            client.enable_workflow(event.repository, workflow.id)
            client.create_comment(event.pull_request, comment.format(name=workflow.name))
            logger.info("Disabled workflow %s was enabled", workflow.name)
    except ApiError as error:
        log_error(error)

def validate_commits(client: ApiClient, event: Event, checks: Iterable[CommitCheck] = ()):
    '''
    Fetches the commits of the pull request and runs the
    configured commit checks over them. No check is registered
    by default.
    '''
    logger.info("Received a pull request event for #%s", event.pull_request.number)
    try:
        commits = client.list_commits(event.pull_request)
        logger.debug("Fetched %d commit(s) for #%s", len(commits), event.pull_request.number)
        for check in checks:
            check(event, commits)
    except ApiError as error:
        log_error(error)

def gate_review(client: ApiClient, event: Event, comment: str = DEFAULT_CLOSE_COMMENT):
    '''
    Closes the pull request when a review comes in while
    any workflow is manually disabled. Only the first disabled
    workflow counts, so at most one comment and one close are issued.
    '''
    logger.info(
        "Received a pull request review event for #%s (review state: %s)",
        event.pull_request.number, event.review_state,
    )
    try:
        workflows = client.list_workflows(event.repository)
        for workflow in workflows:
            if not workflow.disabled_manually:
                continue
            client.create_comment(event.pull_request, comment)
            client.update_pull_request_state(event.pull_request, "closed")
            logger.info(
                "Closed #%s, workflow %s is disabled", event.pull_request.number, workflow.name
            )
            break
    except ApiError as error:
        log_error(error)
