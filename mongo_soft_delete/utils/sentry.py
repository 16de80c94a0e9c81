import sentry_sdk
from sentry_sdk.integrations.pymongo import PyMongoIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from mongo_soft_delete.consts import DELETED_BY_FIELD

SENSITIVE_KEYS = {DELETED_BY_FIELD.lower(), "password", "authorization"}


def init_sentry(
    dsn: str,
    environment: str = "dev",
    release: str | None = None,
    traces_sample_rate: float = 0.2,
    send_default_pii: bool = False,
):
    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        release=release,
        send_default_pii=send_default_pii,
        integrations=[
            PyMongoIntegration(),
            LoggingIntegration(level=None, event_level="ERROR"),
        ],
        traces_sample_rate=traces_sample_rate,
        max_breadcrumbs=200,
        before_send=_strip_sensitive,
        before_breadcrumb=_strip_breadcrumb,
    )


def _scrub(value):
    if isinstance(value, dict):
        return {
            k: "[Filtered]" if str(k).lower() in SENSITIVE_KEYS else _scrub(v)
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [_scrub(v) for v in value]
    return value


def _strip_sensitive(event, hint):
    if event.get("extra"):
        event["extra"] = _scrub(event["extra"])
    breadcrumbs = event.get("breadcrumbs") or {}
    for crumb in breadcrumbs.get("values", []) if isinstance(breadcrumbs, dict) else []:
        if crumb.get("data"):
            crumb["data"] = _scrub(crumb["data"])
    return event


def _strip_breadcrumb(crumb, hint):
    if crumb.get("data"):
        crumb["data"] = _scrub(crumb["data"])
    return crumb
