'''
This module is the data model for FastAPI
to parse the Github Webhook payloads, plus the
small records the handlers work with.
'''

from enum import Enum

from pydantic import BaseModel, ValidationError as PydanticValidationError

class PayloadError(Exception):
    '''
    Raised when a subscribed event carries a payload
    we cannot parse.
    '''
    def __init__(self, message):
        self.message = message
        super().__init__(self.message)

class Owner(BaseModel):
    '''
    Owner sub class of Repository.
    We are only interested in the login field of owner.
    '''
    login: str

class Repository(BaseModel):
    '''
    Repository sub class of WebhookRequest.
    We are interested in the owner of the repository
    and the name of the repository.
    '''
    owner: Owner
    name: str

class PullRequest(BaseModel):
    '''
    PullRequest sub class of WebhookRequest.
    We are only interested in the PR number.
    '''
    number: int

class Installation(BaseModel):
    '''
    Installation of the app that triggered the delivery.
    '''
    id: int

class Review(BaseModel):
    '''
    Review sub class of WebhookRequest,
    only present on pull_request_review events.
    '''
    id: int
    state: str | None = None

class WebhookRequest(BaseModel):
    '''
    WebhookRequest is the model representing webhook
    payload data from Github Webhook.
    '''
    repository: Repository | None = None
    action: str | None = None
    pull_request: PullRequest | None = None
    installation: Installation | None = None
    review: Review | None = None

class RepositoryRef(BaseModel, frozen=True):
    '''
    Reference to a repository, derived from the payload.
    '''
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

class PullRequestRef(BaseModel, frozen=True):
    '''
    Reference to a pull request inside a repository.
    '''
    number: int
    repository: RepositoryRef

class WorkflowState(str, Enum):
    ACTIVE = "active"
    DISABLED_MANUALLY = "disabled_manually"
    DISABLED_INACTIVITY = "disabled_inactivity"
    DISABLED_FORK = "disabled_fork"
    DELETED = "deleted"

class Workflow(BaseModel, frozen=True):
    '''
    A workflow as returned by the actions API.
    State is kept as a plain string, Github may add new states.
    '''
    id: int
    name: str = ""
    state: str

    @property
    def disabled_manually(self) -> bool:
        return self.state == WorkflowState.DISABLED_MANUALLY.value

class Commit(BaseModel, frozen=True):
    sha: str
    message: str = ""

class EventKind(str, Enum):
    '''
    Every "<event>.<action>" pair the app subscribes to.
    '''
    PULL_REQUEST_OPENED = "pull_request.opened"
    PULL_REQUEST_REOPENED = "pull_request.reopened"
    PULL_REQUEST_READY_FOR_REVIEW = "pull_request.ready_for_review"
    PULL_REQUEST_SYNCHRONIZE = "pull_request.synchronize"
    PULL_REQUEST_EDITED = "pull_request.edited"
    PULL_REQUEST_REVIEW_EDITED = "pull_request_review.edited"
    PULL_REQUEST_REVIEW_DISMISSED = "pull_request_review.dismissed"
    PULL_REQUEST_REVIEW_SUBMITTED = "pull_request_review.submitted"

class Event(BaseModel, frozen=True):
    '''
    A parsed webhook delivery the handlers can act on.
    '''
    kind: EventKind
    pull_request: PullRequestRef
    installation_id: int | None = None
    delivery_id: str | None = None
    review_state: str | None = None

    @property
    def repository(self) -> RepositoryRef:
        return self.pull_request.repository

    def __str__(self) -> str:
        return f"{self.kind.value} {self.repository.full_name}#{self.pull_request.number}"

def parse_event(event_name: str | None, payload: dict, delivery_id: str | None = None) -> Event | None:
    '''
    Given the X-GitHub-Event header value and the json body,
    returns the typed Event, or None when the app does not
    subscribe to this event/action pair.
    '''
    if not event_name or not isinstance(payload, dict):
        return None

    try:
        kind = EventKind(f"{event_name}.{payload.get('action')}")
    except ValueError:
        return None

    try:
        request = WebhookRequest.model_validate(payload)
    except PydanticValidationError as error:
        raise PayloadError(f"invalid {kind.value} payload: {error}") from error

    if not request.repository:
        raise PayloadError("invalid request: repository needed")
    if not request.pull_request:
        raise PayloadError("invalid request: pull_request needed")

    repository = RepositoryRef(owner=request.repository.owner.login, name=request.repository.name)
    return Event(
        kind=kind,
        pull_request=PullRequestRef(number=request.pull_request.number, repository=repository),
        installation_id=request.installation.id if request.installation else None,
        delivery_id=delivery_id,
        review_state=request.review.state if request.review else None,
    )
