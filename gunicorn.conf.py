"""
Gunicorn configuration for the vitality API.

Env vars that override defaults:
  PORT       — TCP port to bind (Railway / Render set this automatically)
  WORKERS    — number of worker processes (default: 2)
  LOG_LEVEL  — shared with the app's own logging (default: info)
"""
import os

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

# Requests are short synchronous DB round-trips; 2 workers fit a 512 MB container.
workers = int(os.environ.get("WORKERS", "2"))

# Each worker runs Uvicorn's ASGI event loop inside Gunicorn's process manager.
worker_class = "uvicorn.workers.UvicornWorker"

keepalive = 5

# A daily-cycle pass over many habits is the slowest request; 60 s is ample.
timeout = 60

# stdout only; app loggers (app.core.logging) write to the same stream.
loglevel = os.environ.get("LOG_LEVEL", "info").lower()
accesslog = "-"
errorlog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(b)sB %(D)sµs'

graceful_timeout = 30
