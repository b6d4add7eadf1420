"""Run requests in, results out.

A pipeline accepts an ``ExecutionRequest`` and eventually hands exactly one
``ExecutionResult`` to the callback given at submission, unless the handle
was cancelled first. Results are always delivered through the scheduler so
the callback runs on the sessions' logical thread. Backends never raise past
``submit``: every failure becomes a ``FAILURE`` result.
"""
import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class ExecutionStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    TIMEOUT = "TIMEOUT"


class ExecutionErrorKind(str, Enum):
    COMPILE_ERROR = "compile_error"
    RUNTIME_ERROR = "runtime_error"
    TIMEOUT = "timeout"
    UNSUPPORTED_LANGUAGE = "unsupported_language"


@dataclass(frozen=True)
class ExecutionRequest:
    language_id: str
    code: str
    submitted_at: object
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass(frozen=True)
class ExecutionResult:
    request_id: str
    status: ExecutionStatus
    output_text: str
    language_id: str
    completed_at: object
    error_kind: Optional[ExecutionErrorKind] = None
    execution_time_ms: Optional[int] = None

    @property
    def succeeded(self):
        return self.status == ExecutionStatus.SUCCESS

    def to_dict(self):
        return {
            "request_id": self.request_id,
            "status": self.status.value,
            "output_text": self.output_text,
            "language_id": self.language_id,
            "completed_at": self.completed_at.isoformat(),
            "error_kind": self.error_kind.value if self.error_kind else None,
            "execution_time_ms": self.execution_time_ms,
        }


class ExecutionHandle:
    """One submission; delivers at most one result"""

    def __init__(self, request, on_result):
        self.request = request
        self._on_result = on_result
        self.done = False
        self.cancelled = False
        self._cancel_hooks = []

    def add_cancel_hook(self, hook):
        self._cancel_hooks.append(hook)

    def cancel(self):
        if self.done or self.cancelled:
            return False
        self.cancelled = True
        for hook in self._cancel_hooks:
            hook()
        logger.info(f"Execution {self.request.id} cancelled")
        return True

    def deliver(self, result):
        if self.done or self.cancelled:
            logger.debug(f"Dropping extra result for execution {self.request.id}")
            return False
        self.done = True
        self._on_result(result)
        return True


class ExecutionPipeline:
    def __init__(self, scheduler):
        self.scheduler = scheduler

    def submit(self, request, on_result):
        raise NotImplementedError

    def shutdown(self):
        pass


SIMULATED_OUTPUT = "✓ Code executed successfully!\n\nLanguage: {language}\nOutput:\n{payload}"
SIMULATED_EXTRA = "\n\nExecution time: 0.042s\nMemory: 2.1 MB"


def simulated_output(language_id):
    """Canned console text for a language, identical on every run"""
    payload = "Hello World"
    if language_id not in ("javascript", "typescript", "python"):
        payload += SIMULATED_EXTRA
    return SIMULATED_OUTPUT.format(language=language_id, payload=payload)


class SimulatedPipeline(ExecutionPipeline):
    """Deterministic backend: always succeeds after a fixed latency"""

    DEFAULT_LATENCY = 1.5

    def __init__(self, scheduler, latency=DEFAULT_LATENCY):
        super().__init__(scheduler)
        self.latency = latency

    def submit(self, request, on_result):
        handle = ExecutionHandle(request, on_result)

        def complete():
            result = ExecutionResult(
                request_id=request.id,
                status=ExecutionStatus.SUCCESS,
                output_text=simulated_output(request.language_id),
                language_id=request.language_id,
                completed_at=self.scheduler.now(),
                execution_time_ms=int(self.latency * 1000),
            )
            handle.deliver(result)

        call = self.scheduler.schedule(self.latency, complete)
        handle.add_cancel_hook(call.cancel)
        logger.info(f"📤 Simulated execution {request.id} queued ({request.language_id}, {self.latency}s)")
        return handle


def result_from_payload(request, payload, completed_at):
    """Build a result from a runner payload (see ``execution_tasks.run_code``)"""
    status = ExecutionStatus(payload.get("status", ExecutionStatus.FAILURE.value))
    error_kind = payload.get("error_kind")

    output = payload.get("stdout") or ""
    stderr = payload.get("stderr") or ""
    if stderr:
        output = f"{output}\n{stderr}" if output else stderr

    return ExecutionResult(
        request_id=request.id,
        status=status,
        output_text=output,
        language_id=request.language_id,
        completed_at=completed_at,
        error_kind=ExecutionErrorKind(error_kind) if error_kind else None,
        execution_time_ms=payload.get("execution_time_ms"),
    )


class RunnerPipeline(ExecutionPipeline):
    """Runs code in local subprocesses on a small worker pool"""

    def __init__(self, scheduler, timeout=30, compile_timeout=10, max_workers=2):
        super().__init__(scheduler)
        self.timeout = timeout
        self.compile_timeout = compile_timeout
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="codechat-runner")

    def _run(self, handle):
        from codechat.tasks.execution_tasks import run_code

        request = handle.request
        return run_code(request.language_id, request.code, timeout=self.timeout, compile_timeout=self.compile_timeout)

    def submit(self, request, on_result):
        handle = ExecutionHandle(request, on_result)
        future = self.executor.submit(self._run, handle)
        handle.add_cancel_hook(future.cancel)

        def finished(done_future):
            if done_future.cancelled():
                return
            try:
                payload = done_future.result()
                result = result_from_payload(request, payload, self.scheduler.now())
            except Exception as e:
                logger.error(f"Execution {request.id} failed with exception: {str(e)}")
                result = ExecutionResult(
                    request_id=request.id,
                    status=ExecutionStatus.FAILURE,
                    output_text=f"Execution failed: {e}",
                    language_id=request.language_id,
                    completed_at=self.scheduler.now(),
                    error_kind=ExecutionErrorKind.RUNTIME_ERROR,
                )
            # hand back to the sessions' thread
            self.scheduler.schedule(0, lambda: handle.deliver(result))

        future.add_done_callback(finished)
        logger.info(f"📤 Execution {request.id} sent to {type(self).__name__} ({request.language_id})")
        return handle

    def shutdown(self):
        self.executor.shutdown(wait=False, cancel_futures=True)


class CeleryPipeline(RunnerPipeline):
    """Dispatches runs to the ``execute_code_task`` Celery worker"""

    def __init__(self, scheduler, timeout=30, compile_timeout=10, max_workers=2, result_grace=5):
        super().__init__(scheduler, timeout=timeout, compile_timeout=compile_timeout, max_workers=max_workers)
        self.result_grace = result_grace

    def _run(self, handle):
        from celery.exceptions import TimeoutError as CeleryTimeoutError
        from codechat.tasks.execution_tasks import execute_code_task

        request = handle.request
        async_result = execute_code_task.apply_async(
            args=[request.language_id, request.code],
            kwargs={"timeout": self.timeout, "compile_timeout": self.compile_timeout},
        )
        handle.add_cancel_hook(lambda: async_result.revoke(terminate=True))

        try:
            return async_result.get(timeout=self.timeout + self.compile_timeout + self.result_grace)
        except CeleryTimeoutError:
            logger.warning(f"Execution {request.id} got no worker result in time")
            return {
                "stdout": "",
                "stderr": f"Execution timeout exceeded ({self.timeout} seconds)",
                "status": ExecutionStatus.TIMEOUT.value,
                "error_kind": ExecutionErrorKind.TIMEOUT.value,
            }


def build_pipeline(config, scheduler):
    backend = config.get("EXECUTION_BACKEND", "simulated")
    if backend == "simulated":
        return SimulatedPipeline(scheduler, latency=config.get("RUN_LATENCY_SECONDS", SimulatedPipeline.DEFAULT_LATENCY))

    options = dict(
        timeout=config.get("EXECUTION_TIMEOUT", 30),
        compile_timeout=config.get("COMPILE_TIMEOUT", 10),
        max_workers=config.get("RUNNER_MAX_WORKERS", 2),
    )
    if backend == "subprocess":
        return RunnerPipeline(scheduler, **options)
    if backend == "celery":
        return CeleryPipeline(scheduler, **options)
    raise ValueError(f"Unsupported execution backend: {backend}")
