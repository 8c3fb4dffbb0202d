'''
This module is the FastAPI server receiving the Github webhooks.
'''

import json
import logging
from contextlib import asynccontextmanager
from typing import Annotated

import uvicorn
from fastapi import BackgroundTasks, FastAPI, Header, HTTPException, Request, Response
from starlette.concurrency import run_in_threadpool

from workflow_guard.config import Settings, load_settings
from workflow_guard.dispatch import Dispatcher, build_dispatcher
from workflow_guard.errors import DeliveryAggregateError, ValidationError, log_error
from workflow_guard.github_client import GitHubApp
from workflow_guard.logging_config import setup_logging
from workflow_guard.model import Event, PayloadError, parse_event
from workflow_guard.validation import validate_signature

logger = logging.getLogger(__name__)

def deliver(github_app: GitHubApp, dispatcher: Dispatcher, event: Event):
    '''
    Runs after the response is sent: authenticates as the
    installation and dispatches the event.
    '''
    try:
        client = github_app.client_for(event)
    except Exception as error:  # pylint: disable=broad-except
        dispatcher.on_error(DeliveryAggregateError(event, [error]))
        return
    dispatcher.dispatch(client, event)

def create_app(settings: Settings, github_app: GitHubApp | None = None,
               dispatcher: Dispatcher | None = None) -> FastAPI:
    '''
    Builds the FastAPI application for the given settings.
    '''
    if github_app is None:
        github_app = GitHubApp(settings)
    if dispatcher is None:
        dispatcher = build_dispatcher(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        try:
            logger.info("Authenticated as '%s'", await run_in_threadpool(github_app.app_name))
        except Exception as error:  # pylint: disable=broad-except
            log_error(error)
        logger.info("Server is listening for events at: %s", settings.local_webhook_url)
        yield

    app = FastAPI(lifespan=lifespan)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.post(settings.webhook_path)
    async def bot(
        request: Request,
        response: Response,
        background_tasks: BackgroundTasks,
        x_github_event: Annotated[str | None, Header()] = None,
        x_github_delivery: Annotated[str | None, Header()] = None,
        x_hub_signature_256: Annotated[str | None, Header()] = None,
        x_hub_signature: Annotated[str | None, Header()] = None,
    ):
        # Get the event payload
        data = await request.body()

        try:
            validate_signature(
                settings.webhook_secret.get_secret_value(), x_hub_signature_256 or x_hub_signature, data
            )
        except ValidationError as error:
            log_error(error)
            raise HTTPException(status_code=401, detail="invalid signature")

        try:
            payload = json.loads(data)
            event = parse_event(x_github_event, payload, delivery_id=x_github_delivery)
        except ValueError:
            raise HTTPException(status_code=400, detail="invalid request: body is not json")
        except PayloadError as error:
            logger.warning("Rejected delivery %s: %s", x_github_delivery, error.message)
            raise HTTPException(status_code=400, detail=error.message)

        if event is None or not dispatcher.subscribes(event.kind):
            logger.debug("Ignoring %s delivery %s", x_github_event, x_github_delivery)
            return {"status": "ignored"}

        background_tasks.add_task(deliver, github_app, dispatcher, event)
        response.status_code = 202
        return {"status": "accepted"}

    return app

def run():
    '''
    Loads the settings and serves the app until interrupted.
    '''
    settings = load_settings()
    setup_logging(settings.log_level)
    app = create_app(settings)
    logger.info("Press Ctrl + C to quit.")
    uvicorn.run(app, host=settings.host, port=settings.port)
