"""Shared test fixtures for the CodeChat workspace."""

import pytest

from codechat import create_app
from codechat.config import Config
from codechat.scheduler import VirtualScheduler
from codechat.services.chat_session import ChatSession
from codechat.services.editor_session import EditorSession
from codechat.services.execution_pipeline import ExecutionHandle, ExecutionPipeline, SimulatedPipeline
from codechat.store import MemoryStore


class TestConfig(Config):
    TESTING = True
    STORE_BACKEND = 'sql'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SCHEDULER = 'virtual'
    EXECUTION_BACKEND = 'simulated'
    RUN_LATENCY_SECONDS = 1.5
    CHAT_REPLY_DELAY_SECONDS = 1.0
    CHAT_SEED_HISTORY = False
    CODE_PERSISTENCE = 'per_language'
    DEFAULT_LANGUAGE = 'javascript'
    DEFAULT_THEME = 'dark'
    CELERY_BROKER_URL = 'memory://'
    CELERY_RESULT_BACKEND = 'cache+memory://'
    CELERY_TASK_ALWAYS_EAGER = True


class ManualPipeline(ExecutionPipeline):
    """Records submissions; the test decides when and what to deliver."""

    def __init__(self, scheduler):
        super().__init__(scheduler)
        self.submissions = []

    def submit(self, request, on_result):
        handle = ExecutionHandle(request, on_result)
        self.submissions.append((request, on_result, handle))
        return handle


@pytest.fixture
def scheduler():
    return VirtualScheduler()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def pipeline(scheduler):
    return SimulatedPipeline(scheduler, latency=1.5)


@pytest.fixture
def manual_pipeline(scheduler):
    return ManualPipeline(scheduler)


@pytest.fixture
def notices():
    return []


@pytest.fixture
def editor(store, pipeline, scheduler, notices):
    return EditorSession(store, pipeline, clock=scheduler.now, on_notice=notices.append)


@pytest.fixture
def chat(scheduler):
    return ChatSession(scheduler, reply_delay=1.0, online_count=3)


@pytest.fixture
def base_config():
    return TestConfig


@pytest.fixture
def app_config(base_config):
    return base_config


@pytest.fixture
def app(app_config):
    app = create_app(app_config)
    yield app
    app.extensions['workspace'].shutdown()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def app_scheduler(app):
    return app.extensions['workspace'].scheduler
