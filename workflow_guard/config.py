'''
This module loads the app configuration from the environment
(and a .env file) once, at startup.
'''

import logging
import os
from typing import Mapping

from dotenv import load_dotenv
from pydantic import BaseModel, SecretStr

DEFAULT_REINSTATE_COMMENT = (
    "Disabled workflow {name} was enabled. "
    "Please don't disable required workflows."
)
DEFAULT_CLOSE_COMMENT = (
    "This Pull Request was closed because a review was submitted "
    "while the Approval Check(s) were disabled -> Re-open the PR"
)

class ConfigError(Exception):
    '''
    Raised when a required setting is missing or invalid
    '''
    def __init__(self, message):
        self.message = message
        super().__init__(self.message)

class Settings(BaseModel, frozen=True):
    '''
    Settings is the explicit configuration passed to the
    server bootstrap and to the Github client construction.
    '''
    app_id: str
    private_key: SecretStr
    webhook_secret: SecretStr
    enterprise_hostname: str | None = None
    host: str = "0.0.0.0"
    port: int = 3000
    webhook_path: str = "/api/webhook"
    log_level: str = "INFO"
    reinstate_on_push: bool = False
    reinstate_comment: str = DEFAULT_REINSTATE_COMMENT
    close_comment: str = DEFAULT_CLOSE_COMMENT

    @property
    def base_url(self) -> str | None:
        '''
        Github Enterprise Server exposes the REST API under /api/v3.
        '''
        if not self.enterprise_hostname:
            return None
        return f"https://{self.enterprise_hostname}/api/v3"

    @property
    def local_webhook_url(self) -> str:
        return f"http://127.0.0.1:{self.port}{self.webhook_path}"

def read_private_key(private_key_path: str) -> str:
    # Read the bot certificate
    with open(
        os.path.normpath(os.path.expanduser(private_key_path)),
        'r', encoding='utf-8'
    ) as cert_file:
        return cert_file.read()

def _require(env: Mapping[str, str], name: str) -> str:
    value = env.get(name)
    if not value:
        raise ConfigError(f"environment variable {name} is required")
    return value

def _flag(value: str | None) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")

def load_settings(env: Mapping[str, str] | None = None, dotenv: bool = True) -> Settings:
    '''
    Builds Settings from the given mapping,
    or from os.environ after loading .env.
    '''
    if env is None:
        if dotenv:
            load_dotenv()
        env = os.environ

    private_key = env.get("PRIVATE_KEY")
    if not private_key:
        private_key_path = _require(env, "PRIVATE_KEY_PATH")
        try:
            private_key = read_private_key(private_key_path)
        except OSError as error:
            raise ConfigError(f"cannot read private key {private_key_path}: {error}") from error

    port = env.get("PORT") or "3000"
    if not port.isdigit():
        raise ConfigError(f"PORT must be a number, got {port!r}")

    webhook_path = env.get("WEBHOOK_PATH") or "/api/webhook"
    if not webhook_path.startswith("/"):
        webhook_path = "/" + webhook_path

    optional = {}
    for key, name in (
        ("reinstate_comment", "REINSTATE_COMMENT"),
        ("close_comment", "CLOSE_COMMENT"),
        ("host", "HOST"),
    ):
        if env.get(name):
            optional[key] = env[name]

    log_level = (env.get("LOG_LEVEL") or "INFO").strip().upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigError(f"LOG_LEVEL must be a logging level name, got {env.get('LOG_LEVEL')!r}")

    return Settings(
        app_id=_require(env, "APP_ID"),
        private_key=private_key,
        webhook_secret=_require(env, "WEBHOOK_SECRET"),
        enterprise_hostname=env.get("ENTERPRISE_HOSTNAME") or None,
        port=int(port),
        webhook_path=webhook_path,
        log_level=log_level,
        reinstate_on_push=_flag(env.get("REINSTATE_ON_PUSH")),
        **optional,
    )
