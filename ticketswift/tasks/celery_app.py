from urllib.parse import urlparse, urlunparse, parse_qs, urlencode

from celery import Celery
from celery.schedules import crontab
from ticketswift.core.config import settings


def _redis_url_for_celery(url: str) -> str:
    """Celery requires ssl_cert_reqs for rediss:// (e.g. Upstash TLS)."""
    if not url or not url.strip().lower().startswith("rediss://"):
        return url
    parsed = urlparse(url)
    qs = parse_qs(parsed.query)
    if "ssl_cert_reqs" not in qs:
        qs["ssl_cert_reqs"] = ["CERT_NONE"]
        new_query = urlencode(qs, doseq=True)
        return urlunparse(parsed._replace(query=new_query))
    return url


_redis_url = _redis_url_for_celery(settings.REDIS_URL)

celery = Celery(
    "ticketswift",
    broker=_redis_url,
    backend=_redis_url,
    include=["ticketswift.tasks.jobs"],
)

celery.conf.timezone = "UTC"

celery.conf.beat_schedule = {
    "purge-expired-codes-daily": {
        "task": "ticketswift.tasks.jobs.purge_expired_codes",
        "schedule": crontab(hour=3, minute=0),
    },
    "reconcile-code-status-hourly": {
        "task": "ticketswift.tasks.jobs.reconcile_code_status",
        "schedule": 3600.0,
    },
    "flag-orphaned-orders-hourly": {
        "task": "ticketswift.tasks.jobs.flag_orphaned_orders",
        "schedule": 3600.0,
    },
}
