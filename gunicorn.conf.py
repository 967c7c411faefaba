"""
Gunicorn Configuration

Uvicorn workers under Gunicorn for the footfall API. The in-memory store
lives inside one process, so the memory backend always runs one worker.
"""

import multiprocessing
import os

import structlog

logger = structlog.get_logger("gunicorn.config")

_memory_backend = os.getenv("FOOTFALL_STORE_BACKEND", "sql").lower() == "memory"

# Server socket
bind = f"{os.getenv('API_HOST', '0.0.0.0')}:{os.getenv('API_PORT', '8000')}"
backlog = 2048

# Worker processes
workers = 1 if _memory_backend else int(os.getenv("API_WORKERS", multiprocessing.cpu_count() * 2 + 1))
worker_class = "uvicorn.workers.UvicornWorker"
max_requests = 10000
max_requests_jitter = 1000
timeout = 60
keepalive = 5
graceful_timeout = 30

proc_name = "tourism-footfall-api"

# Logging
errorlog = "-"
accesslog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()


def when_ready(server):
    logger.info("Gunicorn ready", bind=bind, workers=workers, memory_backend=_memory_backend)


def worker_abort(worker):
    logger.error("Worker aborted", pid=worker.pid)
