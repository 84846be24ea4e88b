import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import sentry_sdk
import structlog
from asgi_correlation_id.context import correlation_id
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from structlog.contextvars import bound_contextvars, merge_contextvars

DEFAULT_SERVICE_NAME = "program-service"

# Model output is logged on validation failures; keep one bad answer from flooding the sink.
MAX_LOGGED_PAYLOAD_CHARS = 2000
PAYLOAD_KEYS = ("raw", "preview")


def add_service_and_env(logger, method_name, event_dict):
    event_dict["service"] = os.getenv("SERVICE_NAME", DEFAULT_SERVICE_NAME)
    event_dict["env"] = os.getenv("APP_ENV", "local")
    return event_dict


def add_correlation_id(logger, method_name, event_dict):
    cid = correlation_id.get(None)
    if cid is not None:
        event_dict["correlation_id"] = cid
    return event_dict


def bind_correlation_id_to_sentry(logger, method_name, event_dict):
    cid = event_dict.get("correlation_id")
    if cid is not None:
        sentry_sdk.set_tag("correlation_id", cid)
    return event_dict


def truncate_llm_payloads(logger, method_name, event_dict):
    for key in PAYLOAD_KEYS:
        value = event_dict.get(key)
        if value is None:
            continue
        text = value if isinstance(value, str) else repr(value)
        if len(text) > MAX_LOGGED_PAYLOAD_CHARS:
            event_dict[key] = text[:MAX_LOGGED_PAYLOAD_CHARS] + f"...<{len(text) - MAX_LOGGED_PAYLOAD_CHARS} more chars>"
    return event_dict


@contextmanager
def account_log_context(*, user_id: str | None = None, clerk_id: str | None = None) -> Iterator[None]:
    """Tag every log line and Sentry event emitted in scope with the account being served.

    ``user_id`` is the id callers generate programs for; ``clerk_id`` comes from
    webhook payloads. Empty values are not bound.
    """
    values = {key: value for key, value in (("user_id", user_id), ("clerk_id", clerk_id)) if value}
    if values:
        sentry_sdk.set_user({"id": str(user_id or clerk_id)})
    with bound_contextvars(**values):
        yield


def _init_sentry(service_name: str, app_env: str) -> None:
    sentry_logging = LoggingIntegration(
        level=logging.INFO,
        event_level=logging.ERROR,
    )
    sentry_sdk.init(
        dsn=os.getenv("SENTRY_DSN"),
        environment=app_env,
        integrations=[FastApiIntegration(), sentry_logging],
        traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.0")),
        send_default_pii=False,
    )
    sentry_sdk.set_tag("service", service_name)


def configure_logging() -> None:
    service_name = os.getenv("SERVICE_NAME", DEFAULT_SERVICE_NAME)
    log_level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    app_env = os.getenv("APP_ENV", "local")

    if os.getenv("SENTRY_DSN"):
        _init_sentry(service_name, app_env)

    processors = [
        merge_contextvars,
        add_service_and_env,
        add_correlation_id,
        bind_correlation_id_to_sentry,
        truncate_llm_payloads,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if app_env in {"local", "dev"}:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.append(structlog.processors.JSONRenderer())

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level, force=True)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
