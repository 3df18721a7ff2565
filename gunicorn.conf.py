# Gunicorn configuration; run with: gunicorn -c gunicorn.conf.py evolua.api.app:app
import os
import sys

current_dir = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, os.path.join(current_dir, 'src'))

bind = f"0.0.0.0:{os.environ.get('PORT', 8000)}"

# The in-memory stores are per process; raise WEB_CONCURRENCY only with MongoDB.
workers = int(os.environ.get("WEB_CONCURRENCY", 1))
worker_class = "uvicorn.workers.UvicornWorker"
timeout = 120

accesslog = "-"
errorlog = "-"
loglevel = "info"
proc_name = "evolua"
preload_app = True
