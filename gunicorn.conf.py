import os

# App factory; settings come from the environment / auth/api_keys.json
wsgi_app = "main:create_app()"

bind = os.environ.get("BIND", "0.0.0.0:3000")

# Threaded workers: requests mostly wait on Last.fm / Giphy
workers = int(os.environ.get("GUNICORN_WORKERS", 2))
threads = int(os.environ.get("GUNICORN_THREADS", 8))
worker_class = "gthread"

# Upstream calls carry their own timeout (UPSTREAM_TIMEOUT); keep this above it
timeout = 60
graceful_timeout = 30

keepalive = 5

# Logging: stdout/stderr for Docker log collection
accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info")

# Worker recycling: restart after N requests to prevent memory leaks
max_requests = 1000
max_requests_jitter = 50

# Trust X-Forwarded-* headers from reverse proxy (set to specific IPs if not behind trusted proxy)
forwarded_allow_ips = "*"
