import multiprocessing
import os

# API workers only take requests and enqueue sends; delivery runs in Celery.
bind = os.getenv('GUNICORN_BIND', '0.0.0.0:8000')
workers = int(os.getenv('GUNICORN_WORKERS', multiprocessing.cpu_count() * 2 + 1))
timeout = int(os.getenv('GUNICORN_TIMEOUT', 30))
graceful_timeout = 20

max_requests = 2000
max_requests_jitter = 100

# Log to stdout/stderr; the process supervisor collects them
accesslog = '-'
errorlog = '-'
loglevel = os.getenv('GUNICORN_LOG_LEVEL', 'info')
access_log_format = '%(h)s "%(r)s" %(s)s %(b)s %(M)sms "%(a)s"'

proc_name = 'africom'
