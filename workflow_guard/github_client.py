'''
This module is the abstraction layer over PyGithub.
GitHubApp authenticates as the app, GitHubClient is the
per-installation handle the handlers call.
'''

import logging
from contextlib import contextmanager

from github import Auth, Github, GithubException, GithubIntegration

from workflow_guard.config import Settings
from workflow_guard.errors import ApiError
from workflow_guard.model import Commit, Event, PullRequestRef, RepositoryRef, Workflow

logger = logging.getLogger(__name__)

@contextmanager
def api_call():
    '''
    Converts PyGithub exceptions into ApiError.
    '''
    try:
        yield
    except GithubException as error:
        data = error.data
        if isinstance(data, dict):
            message = data.get("message") or str(data)
        else:
            message = str(data) if data else str(error)
        raise ApiError(error.status, message) from error

class GitHubClient():
    '''
    GitHubClient wraps an installation scoped Github connection and
    exposes only the operations the handlers need.
    '''
    def __init__(self, git_connection: Github):
        self.git_connection = git_connection

    def _repo(self, repository: RepositoryRef):
        return self.git_connection.get_repo(repository.full_name, lazy=True)

    def list_workflows(self, repository: RepositoryRef) -> list[Workflow]:
        with api_call():
            return [
                Workflow(id=workflow.id, name=workflow.name or "", state=workflow.state)
                for workflow in self._repo(repository).get_workflows()
            ]

    def enable_workflow(self, repository: RepositoryRef, workflow_id: int):
        with api_call():
            workflow = self._repo(repository).get_workflow(workflow_id)
            enabled = workflow.enable()
        if not enabled:
            raise ApiError(422, f"workflow {workflow_id} could not be enabled")

    def create_comment(self, pull_request: PullRequestRef, body: str):
        with api_call():
            issue = self._repo(pull_request.repository).get_issue(number=pull_request.number)
            issue.create_comment(body)

    def list_commits(self, pull_request: PullRequestRef) -> list[Commit]:
        with api_call():
            pull = self._repo(pull_request.repository).get_pull(pull_request.number)
            return [
                Commit(sha=commit.sha, message=commit.commit.message or "")
                for commit in pull.get_commits()
            ]

    def update_pull_request_state(self, pull_request: PullRequestRef, state: str):
        with api_call():
            pull = self._repo(pull_request.repository).get_pull(pull_request.number)
            pull.edit(state=state)

class GitHubApp():
    '''
    GitHubApp authenticates as the Github App itself and hands out
    installation clients for incoming deliveries.
    '''
    def __init__(self, settings: Settings):
        self.base_url = settings.base_url
        kwargs = {"base_url": self.base_url} if self.base_url else {}
        # Create an GitHub integration instance
        self.git_integration = GithubIntegration(
            auth=Auth.AppAuth(settings.app_id, settings.private_key.get_secret_value()),
            **kwargs,
        )

    def app_name(self) -> str:
        with api_call():
            return self.git_integration.get_app().name

    def installation_id(self, repository: RepositoryRef) -> int:
        with api_call():
            return self.git_integration.get_repo_installation(
                repository.owner, repository.name
            ).id

    def client_for(self, event: Event) -> GitHubClient:
        '''
        Returns a client authenticated for the installation that
        sent the event, looking the installation up when the
        payload does not carry it.
        '''
        installation_id = event.installation_id
        if installation_id is None:
            installation_id = self.installation_id(event.repository)

        with api_call():
            token = self.git_integration.get_access_token(installation_id).token

        kwargs = {"base_url": self.base_url} if self.base_url else {}
        return GitHubClient(Github(auth=Auth.Token(token), **kwargs))
