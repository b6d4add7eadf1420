import logging
import threading

from codechat.models.db import db
from codechat.models.setting_model import StoredSetting

logger = logging.getLogger(__name__)

# Durable keys shared by the workspace components
THEME_KEY = "theme"
SELECTED_LANGUAGE_KEY = "selectedLanguage"
SAVED_CODE_KEY = "savedCode"


def saved_code_key(language_id):
    return f"{SAVED_CODE_KEY}:{language_id}"


class MemoryStore:
    """Process-local key-value store"""

    def __init__(self, initial=None):
        self._data = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key, default=None):
        with self._lock:
            return self._data.get(key, default)

    def set(self, key, value):
        with self._lock:
            self._data[key] = value

    def delete(self, key):
        with self._lock:
            self._data.pop(key, None)

    def items(self):
        with self._lock:
            return dict(self._data)


class SqlStore:
    """Key-value store persisted in the app's SQLAlchemy database.

    Every write is a whole-value overwrite committed immediately. Operations
    push their own app context so they also work from scheduler callbacks.
    """

    def __init__(self, app):
        self._app = app

    def get(self, key, default=None):
        with self._app.app_context():
            setting = db.session.get(StoredSetting, key)
            return setting.value if setting is not None else default

    def set(self, key, value):
        with self._app.app_context():
            setting = db.session.get(StoredSetting, key)
            if setting is None:
                setting = StoredSetting(key=key, value=value)
                db.session.add(setting)
            else:
                setting.value = value
            db.session.commit()
            logger.debug(f"Stored {key}")

    def delete(self, key):
        with self._app.app_context():
            setting = db.session.get(StoredSetting, key)
            if setting is not None:
                db.session.delete(setting)
                db.session.commit()

    def items(self):
        with self._app.app_context():
            return {s.key: s.value for s in StoredSetting.query.all()}


def build_store(app):
    backend = app.config.get("STORE_BACKEND", "sql")
    if backend == "memory":
        return MemoryStore()
    if backend == "sql":
        return SqlStore(app)
    raise ValueError(f"Unsupported store backend: {backend}")
