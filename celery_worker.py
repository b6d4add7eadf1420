import logging

from codechat import create_app
from codechat.celery_app import celery  # noqa: F401

logging.basicConfig(level=logging.INFO)

# Create Flask app context
app = create_app()
app.app_context().push()

# Import tasks to register them with Celery
from codechat.tasks import execution_tasks  # noqa: E402,F401
