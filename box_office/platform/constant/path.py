from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[3]

# Rotating log files for local runs; production logs to stdout only
LOG_DIR = PROJECT_ROOT / 'logs'

ENV_FILE = PROJECT_ROOT / '.env'
ENV_EXAMPLE_FILE = PROJECT_ROOT / '.env.example'
