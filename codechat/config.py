import os
from pathlib import Path
from dotenv import load_dotenv

# Get the base directory (project root)
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_FILE = BASE_DIR / '.env'

load_dotenv(ENV_FILE, override=True)


def _flag(name, default):
    return os.getenv(name, default).lower() == 'true'


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')

    # Local key-value store
    STORE_BACKEND = os.getenv('STORE_BACKEND', 'sql')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', f"sqlite:///{BASE_DIR / 'codechat.db'}")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Scheduler and execution
    SCHEDULER = os.getenv('SCHEDULER', 'timer')
    EXECUTION_BACKEND = os.getenv('EXECUTION_BACKEND', 'simulated')
    RUN_LATENCY_SECONDS = float(os.getenv('RUN_LATENCY_SECONDS', '1.5'))
    EXECUTION_TIMEOUT = int(os.getenv('EXECUTION_TIMEOUT', '30'))
    COMPILE_TIMEOUT = int(os.getenv('COMPILE_TIMEOUT', '10'))
    RUNNER_MAX_WORKERS = int(os.getenv('RUNNER_MAX_WORKERS', '2'))

    # Editor
    CODE_PERSISTENCE = os.getenv('CODE_PERSISTENCE', 'per_language')
    DEFAULT_LANGUAGE = os.getenv('DEFAULT_LANGUAGE', 'javascript')
    DEFAULT_THEME = os.getenv('DEFAULT_THEME', 'dark')
    MAX_NOTICES = int(os.getenv('MAX_NOTICES', '20'))

    # Chat
    CHAT_REPLY_DELAY_SECONDS = float(os.getenv('CHAT_REPLY_DELAY_SECONDS', '1.0'))
    CHAT_ONLINE_COUNT = int(os.getenv('CHAT_ONLINE_COUNT', '3'))
    CHAT_SEED_HISTORY = _flag('CHAT_SEED_HISTORY', 'True')

    # Celery Configuration
    CELERY_BROKER_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')
    CELERY_RESULT_BACKEND = os.getenv('REDIS_URL', 'redis://localhost:6379/0')
    CELERY_TASK_ALWAYS_EAGER = _flag('CELERY_TASK_ALWAYS_EAGER', 'False')

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    DEBUG = _flag('DEBUG', 'False')
