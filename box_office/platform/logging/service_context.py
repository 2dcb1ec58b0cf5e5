"""
Tag carried by every log line: which box office process wrote it.

Checkout traffic and the settlement worker usually log side by side into the
same sink; `box_office@prod:web-7f9c:4121` reads as service, deploy env, host
and pid.
"""

from functools import lru_cache
import os
import socket


@lru_cache(maxsize=1)
def get_service_context() -> str:
    service_name = os.getenv('SERVICE_NAME', 'box_office')
    deploy_env = os.getenv('DEPLOY_ENV', 'local_dev')
    # Container hostnames are long ids; the prefix is enough to tell replicas apart
    host = socket.gethostname().split('.')[0][:12] or 'localhost'
    return f'{service_name}@{deploy_env}:{host}:{os.getpid()}'
