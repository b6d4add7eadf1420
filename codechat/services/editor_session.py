import logging
from dataclasses import dataclass
from typing import Optional

from codechat import catalog
from codechat.errors import AlreadyRunning, InvalidCode, UnknownLanguage
from codechat.observable import Observable
from codechat.services.execution_pipeline import ExecutionRequest, ExecutionResult
from codechat.store import SAVED_CODE_KEY, SELECTED_LANGUAGE_KEY, saved_code_key

logger = logging.getLogger(__name__)

PER_LANGUAGE = "per_language"
GLOBAL = "global"
PERSISTENCE_MODES = (PER_LANGUAGE, GLOBAL)

RUNNING_OUTPUT = "Running code..."


@dataclass(frozen=True)
class Notice:
    title: str
    description: str
    level: str = "info"

    def to_dict(self):
        return {"title": self.title, "description": self.description, "level": self.level}


@dataclass(frozen=True)
class EditorSnapshot:
    language_id: str
    display_name: str
    buffer: str
    is_running: bool
    result: Optional[ExecutionResult]
    output: str
    generation: int


class _InFlight:
    def __init__(self, generation, request):
        self.generation = generation
        self.request = request
        self.handle = None


class EditorSession(Observable):
    """Selected language, code buffer and the single in-flight run.

    ``generation`` is bumped by ``select_language`` and ``reset``; a run only
    lands if the generation captured when it was submitted is still current.
    """

    def __init__(self, store, pipeline, clock, persistence=PER_LANGUAGE,
                 default_language=catalog.DEFAULT_LANGUAGE_ID, on_notice=None):
        super().__init__()
        if persistence not in PERSISTENCE_MODES:
            raise ValueError(f"Unsupported persistence mode: {persistence}")

        self.store = store
        self.pipeline = pipeline
        self.clock = clock
        self.persistence = persistence
        self.on_notice = on_notice
        self.generation = 0
        self.result = None
        self._in_flight = None

        language = catalog.lookup(default_language)
        restored = False
        saved_language = store.get(SELECTED_LANGUAGE_KEY)
        if saved_language is not None:
            if catalog.is_supported(saved_language):
                language = catalog.lookup(saved_language)
                restored = True
            else:
                logger.warning(f"Ignoring stored language {saved_language!r}: not in catalog")

        self.selected_language_id = language.id
        self.buffer = self._restore_buffer(language, restored)
        logger.info(f"Editor session ready ({self.selected_language_id}, {self.persistence} persistence)")

    @property
    def language(self):
        return catalog.lookup(self.selected_language_id)

    @property
    def is_running(self):
        return self._in_flight is not None

    @property
    def output(self):
        if self._in_flight is not None:
            return RUNNING_OUTPUT
        if self.result is not None:
            return self.result.output_text
        return ""

    def snapshot(self):
        return EditorSnapshot(
            language_id=self.selected_language_id,
            display_name=self.language.display_name,
            buffer=self.buffer,
            is_running=self.is_running,
            result=self.result,
            output=self.output,
            generation=self.generation,
        )

    # Persistence

    def _restore_buffer(self, language, restored):
        if self.persistence == PER_LANGUAGE:
            saved = self.store.get(saved_code_key(language.id))
        elif restored:
            saved = self.store.get(SAVED_CODE_KEY)
        else:
            # the global slot belongs to whatever language was stored with it
            saved = None
        return saved if saved is not None else language.default_code

    def _override_for(self, language):
        # a single global slot cannot say which language it belongs to
        if self.persistence == PER_LANGUAGE:
            saved = self.store.get(saved_code_key(language.id))
            if saved is not None:
                return saved
        return language.default_code

    def _persist_buffer(self):
        self.store.set(SAVED_CODE_KEY, self.buffer)
        if self.persistence == PER_LANGUAGE:
            self.store.set(saved_code_key(self.selected_language_id), self.buffer)

    # Intents

    def select_language(self, language_id):
        language = catalog.lookup(language_id)

        self.selected_language_id = language.id
        self.buffer = self._override_for(language)
        self.store.set(SELECTED_LANGUAGE_KEY, language.id)
        self._persist_buffer()
        self._supersede()

        logger.info(f"Language changed to {language.id} (generation {self.generation})")
        self._notify()
        return self.buffer

    def edit_buffer(self, text):
        if text is None:
            text = ""
        if not isinstance(text, str):
            raise InvalidCode(type(text).__name__)

        self.buffer = text
        self._persist_buffer()
        self._notify()

    def reset(self):
        self.buffer = self.language.default_code
        self._persist_buffer()
        self._supersede()

        logger.info(f"Editor reset to {self.selected_language_id} default (generation {self.generation})")
        self._emit(Notice("Code Reset", "Editor has been reset to default code."))
        self._notify()
        return self.buffer

    def run(self):
        if self._in_flight is not None:
            raise AlreadyRunning(self._in_flight.request.id)

        request = ExecutionRequest(
            language_id=self.selected_language_id,
            code=self.buffer,
            submitted_at=self.clock(),
        )
        in_flight = _InFlight(self.generation, request)
        self._in_flight = in_flight
        self.result = None

        generation = self.generation
        in_flight.handle = self.pipeline.submit(
            request, lambda result: self._on_result(generation, result)
        )
        logger.info(f"🚀 Run {request.id} submitted ({request.language_id}, generation {generation})")
        self._notify()
        return request

    # Completion

    def _supersede(self):
        self.generation += 1
        self.result = None
        if self._in_flight is not None:
            abandoned = self._in_flight
            self._in_flight = None
            if abandoned.handle is not None:
                abandoned.handle.cancel()
            logger.info(f"Abandoned run {abandoned.request.id}")

    def _on_result(self, generation, result):
        in_flight = self._in_flight
        if (generation != self.generation or in_flight is None
                or in_flight.request.id != result.request_id):
            logger.info(f"Dropping stale result for run {result.request_id} (generation {generation})")
            return

        self._in_flight = None
        self.result = result
        logger.info(f"✅ Run {result.request_id} finished with {result.status.value}")

        if result.succeeded:
            self._emit(Notice("Execution Complete", "Your code ran successfully!"))
        else:
            lines = result.output_text.splitlines()
            summary = lines[0] if lines else result.status.value
            self._emit(Notice("Execution Failed", summary, level="error"))
        self._notify()

    def _emit(self, notice):
        if self.on_notice is not None:
            self.on_notice(notice)
