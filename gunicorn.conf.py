import multiprocessing
import logging.config
import re

import structlog


wsgi_app = "config.wsgi:application"

# Async views (alias lookups, signer calls) run fine on sync workers
cpu_count = multiprocessing.cpu_count()
max_workers = 8
workers = min(cpu_count * 2 + 1, max_workers)

# NIP-05 directories and the signer can be slow
timeout = 90
keepalive = 5

graceful_timeout = 30
max_requests = 1000
max_requests_jitter = 50

loglevel = "info"
errorlog = "-"
accesslog = "-"

# 192.168.1.1 - - [27/Dec/2025:17:30:00 +0000] "POST /api/profile/submit HTTP/1.1" 200 18 "-" "curl/8.0" host="profiles.example.com"
access_log_format = (
    '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" host="%({Host}i)s"'
)

worker_class = "sync"
preload_app = True

ACCESS_LINE_RE = re.compile(
    r"\s+".join(
        [
            r"(?P<remote>\S+)",
            r"\S+",
            r"(?P<user>\S+)",
            r"\[(?P<time>.+)\]",
            r'"(?P<request>.+)"',
            r"(?P<status>[0-9]+)",
            r"(?P<size>\S+)",
            r'"(?P<referer>.*)"',
            r'"(?P<agent>.*)"',
            r'host="(?P<host_header>.*)"',
        ]
    )
    + r"\s*\Z"
)


def access_log_fields(logger, name, event_dict):
    """Split gunicorn access lines into structured fields; unknown shapes pass through."""
    if event_dict.get("logger") != "gunicorn.access":
        return event_dict

    m = ACCESS_LINE_RE.match(event_dict.get("event", ""))
    if not m:
        return event_dict

    res = m.groupdict()
    for k in ("user", "referer"):
        if res.get(k) == "-":
            res[k] = None
    try:
        res["status"] = int(res["status"])
    except (TypeError, ValueError):
        pass
    try:
        res["size"] = int(res["size"])
    except (TypeError, ValueError):
        res["size"] = 0
    event_dict.update(res)

    parts_req = res.get("request", "").split(" ")
    if len(parts_req) == 3:
        event_dict["method"], event_dict["path"], event_dict["version"] = parts_req
    else:
        event_dict["request_raw"] = res.get("request", "")
    event_dict["event"] = "gunicorn.request_handling"
    return event_dict


def gunicorn_event_name_mapper(logger, name, event_dict):
    if event_dict.get("logger") != "gunicorn.error":
        return event_dict
    raw_event = event_dict.get("event")
    if not isinstance(raw_event, str):
        return event_dict

    event = raw_event.lower()
    event_dict["message"] = event
    if event.startswith(("starting", "listening", "using", "booting")):
        event_dict["event"] = "gunicorn.booting"
    elif event.startswith("handling signal"):
        event_dict["event"] = "gunicorn.signal_handling"
    return event_dict


pre_chain = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    access_log_fields,
    gunicorn_event_name_mapper,
]

logconfig_dict = {
    "version": 1,
    "disable_existing_loggers": False,
    "root": {"level": "INFO", "handlers": ["default"]},
    "loggers": {
        "gunicorn.error": {"level": "INFO", "handlers": ["default"], "propagate": False},
        "gunicorn.access": {"level": "INFO", "handlers": ["default"], "propagate": False},
    },
    "handlers": {
        "default": {
            "class": "logging.StreamHandler",
            "formatter": "logfmt_formatter",
        },
    },
    "formatters": {
        "logfmt_formatter": {
            "()": structlog.stdlib.ProcessorFormatter,
            "processor": structlog.processors.LogfmtRenderer(),
            "foreign_pre_chain": pre_chain,
        }
    },
}

logging.config.dictConfig(logconfig_dict)
