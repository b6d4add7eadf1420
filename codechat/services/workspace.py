import logging
from collections import deque

from codechat import catalog
from codechat.errors import WorkspaceError
from codechat.services.chat_session import ChatSession
from codechat.services.editor_session import EditorSession, Notice
from codechat.services.execution_pipeline import build_pipeline
from codechat.store import THEME_KEY

logger = logging.getLogger(__name__)

DARK = "dark"
LIGHT = "light"


class Workspace:
    """Editor and chat sessions of one workspace, plus the theme flag.

    Intents enter here and run under the scheduler lock, so they never
    interleave with timer callbacks.
    """

    def __init__(self, editor, chat, store, scheduler, default_theme=DARK, max_notices=20):
        self.editor = editor
        self.chat = chat
        self.store = store
        self.scheduler = scheduler
        self.lock = scheduler.lock
        self.default_theme = default_theme
        self.notices = deque(maxlen=max_notices)

    def add_notice(self, notice):
        logger.info(f"Notice: {notice.title} - {notice.description}")
        self.notices.append(notice)

    def _intent(self, operation, *args):
        with self.lock:
            try:
                return operation(*args)
            except WorkspaceError as e:
                self.add_notice(Notice("Request rejected", str(e), level="error"))
                raise

    # Theme

    def theme(self):
        theme = self.store.get(THEME_KEY)
        return theme if theme in (DARK, LIGHT) else self.default_theme

    def toggle_theme(self):
        with self.lock:
            theme = LIGHT if self.theme() == DARK else DARK
            self.store.set(THEME_KEY, theme)
            logger.info(f"Theme switched to {theme}")
            return theme

    # Intents forwarded to the sessions

    def select_language(self, language_id):
        return self._intent(self.editor.select_language, language_id)

    def edit_buffer(self, text):
        return self._intent(self.editor.edit_buffer, text)

    def reset(self):
        return self._intent(self.editor.reset)

    def run(self):
        return self._intent(self.editor.run)

    def send_message(self, text):
        return self._intent(self.chat.send, text)

    def snapshot(self):
        with self.lock:
            return {
                "theme": self.theme(),
                "editor": editor_to_dict(self.editor.snapshot()),
                "chat": chat_to_dict(self.chat.snapshot()),
                "notices": [notice.to_dict() for notice in self.notices],
            }

    def shutdown(self):
        self.editor.pipeline.shutdown()
        self.scheduler.shutdown()


def editor_to_dict(snapshot):
    return {
        "language_id": snapshot.language_id,
        "display_name": snapshot.display_name,
        "buffer": snapshot.buffer,
        "is_running": snapshot.is_running,
        "output": snapshot.output,
        "result": snapshot.result.to_dict() if snapshot.result else None,
        "generation": snapshot.generation,
    }


def chat_to_dict(snapshot):
    return {
        "messages": [message.to_dict() for message in snapshot.messages],
        "online_count": snapshot.online_count,
        "pending_replies": snapshot.pending_replies,
    }


def language_to_dict(option):
    return {
        "id": option.id,
        "display_name": option.display_name,
        "default_code": option.default_code,
    }


def build_workspace(config, store, scheduler):
    """Wire a workspace from app config"""
    pipeline = build_pipeline(config, scheduler)

    editor = EditorSession(
        store,
        pipeline,
        clock=scheduler.now,
        persistence=config.get("CODE_PERSISTENCE", "per_language"),
        default_language=config.get("DEFAULT_LANGUAGE", catalog.DEFAULT_LANGUAGE_ID),
    )
    chat = ChatSession(
        scheduler,
        reply_delay=config.get("CHAT_REPLY_DELAY_SECONDS", 1.0),
        online_count=config.get("CHAT_ONLINE_COUNT", 3),
        seed_history=config.get("CHAT_SEED_HISTORY", True),
    )
    workspace = Workspace(
        editor,
        chat,
        store,
        scheduler,
        default_theme=config.get("DEFAULT_THEME", DARK),
        max_notices=config.get("MAX_NOTICES", 20),
    )
    editor.on_notice = workspace.add_notice

    logger.info(f"Workspace ready with {type(pipeline).__name__}")
    return workspace
