import logging

from flask import Flask, jsonify
from codechat.config import Config
from codechat.models.db import db
from codechat.celery_app import init_celery
from codechat.api import create_api
from codechat.scheduler import build_scheduler
from codechat.store import build_store
from codechat.services.workspace import build_workspace

logger = logging.getLogger(__name__)


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(level=app.config.get('LOG_LEVEL', 'INFO'))

    db.init_app(app)
    init_celery(app)

    with app.app_context():
        from codechat.models import setting_model  # noqa: F401
        db.create_all()
    logger.info(f"Store ready ({app.config['STORE_BACKEND']})")

    scheduler = build_scheduler(app.config)
    store = build_store(app)
    app.extensions['workspace'] = build_workspace(app.config, store, scheduler)

    # Initialize API with Swagger
    api = create_api()
    api.init_app(app)

    # Register API namespaces
    from codechat.routes.workspace_api import ns as workspace_ns, languages_ns
    from codechat.routes.editor_api import ns as editor_ns
    from codechat.routes.chat_api import ns as chat_ns
    api.add_namespace(workspace_ns, path='/workspace')
    api.add_namespace(languages_ns, path='/languages')
    api.add_namespace(editor_ns, path='/editor')
    api.add_namespace(chat_ns, path='/chat')

    from codechat.routes import health_routes
    app.register_blueprint(health_routes.bp)

    @app.route("/")
    def home():
        return jsonify({
            "message": "CodeChat Workspace API is running!",
            "status": "success",
            "documentation": "/docs"
        })

    @app.route("/health")
    def health():
        return jsonify({"status": "healthy"})

    return app


def get_workspace(app=None):
    from flask import current_app
    return (app or current_app).extensions['workspace']
