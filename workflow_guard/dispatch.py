'''
This module maps event kinds to handlers and runs them
for one delivery.
'''

import logging
from functools import partial
from typing import Callable, Iterable

from workflow_guard.config import Settings
from workflow_guard.errors import DeliveryAggregateError, log_error
from workflow_guard.handlers import ApiClient, CommitCheck, gate_review, reinstate_workflows, validate_commits
from workflow_guard.model import Event, EventKind

logger = logging.getLogger(__name__)

Handler = Callable[[ApiClient, Event], None]
ErrorHook = Callable[[BaseException], None]

REINSTATE_EVENTS = [
    EventKind.PULL_REQUEST_OPENED,
    EventKind.PULL_REQUEST_REOPENED,
    EventKind.PULL_REQUEST_READY_FOR_REVIEW,
]
REINSTATE_ON_PUSH_EVENTS = [
    EventKind.PULL_REQUEST_SYNCHRONIZE,
    EventKind.PULL_REQUEST_EDITED,
]
COMMIT_EVENTS = [
    EventKind.PULL_REQUEST_OPENED,
    EventKind.PULL_REQUEST_SYNCHRONIZE,
    EventKind.PULL_REQUEST_EDITED,
    EventKind.PULL_REQUEST_REOPENED,
    EventKind.PULL_REQUEST_READY_FOR_REVIEW,
]
REVIEW_EVENTS = [
    EventKind.PULL_REQUEST_REVIEW_EDITED,
    EventKind.PULL_REQUEST_REVIEW_DISMISSED,
    EventKind.PULL_REQUEST_REVIEW_SUBMITTED,
]

class Dispatcher():
    '''
    Dispatcher is the dispatch table from event kind to handlers.
    Handlers for one event run in registration order.
    '''
    def __init__(self, on_error: ErrorHook = log_error):
        self.handlers: dict[EventKind, list[Handler]] = {}
        self.on_error = on_error

    def on(self, kinds: Iterable[EventKind], handler: Handler):
        for kind in kinds:
            self.handlers.setdefault(kind, []).append(handler)

    def subscribes(self, kind: EventKind) -> bool:
        return bool(self.handlers.get(kind))

    def dispatch(self, client: ApiClient, event: Event):
        '''
        Runs every handler registered for the event. Errors escaping
        the handlers are bundled and passed to the error hook, never raised.
        '''
        errors = []
        for handler in self.handlers.get(event.kind, []):
            try:
                handler(client, event)
            except Exception as error:  # pylint: disable=broad-except
                errors.append(error)
        if errors:
            self.on_error(DeliveryAggregateError(event, errors))

def build_dispatcher(settings: Settings, commit_checks: Iterable[CommitCheck] = (),
                     on_error: ErrorHook = log_error) -> Dispatcher:
    '''
    Builds the dispatch table once, at startup.
    '''
    dispatcher = Dispatcher(on_error=on_error)

    reinstate_events = list(REINSTATE_EVENTS)
    if settings.reinstate_on_push:
        reinstate_events += REINSTATE_ON_PUSH_EVENTS
    dispatcher.on(reinstate_events, partial(reinstate_workflows, comment=settings.reinstate_comment))
    dispatcher.on(COMMIT_EVENTS, partial(validate_commits, checks=tuple(commit_checks)))
    dispatcher.on(REVIEW_EVENTS, partial(gate_review, comment=settings.close_comment))
    return dispatcher
