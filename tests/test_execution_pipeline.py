"""Tests for the execution pipelines."""

import pytest

from codechat.services.execution_pipeline import (
    CeleryPipeline,
    ExecutionErrorKind,
    ExecutionHandle,
    ExecutionRequest,
    ExecutionResult,
    ExecutionStatus,
    RunnerPipeline,
    SimulatedPipeline,
    build_pipeline,
    result_from_payload,
    simulated_output,
)


@pytest.fixture
def make_request(scheduler):
    def _make(language_id="python", code="print('Hello World')"):
        return ExecutionRequest(language_id=language_id, code=code, submitted_at=scheduler.now())
    return _make


class TestExecutionHandle:
    def _result(self, request, scheduler):
        return ExecutionResult(
            request_id=request.id,
            status=ExecutionStatus.SUCCESS,
            output_text="ok",
            language_id=request.language_id,
            completed_at=scheduler.now(),
        )

    def test_delivers_at_most_once(self, make_request, scheduler):
        results = []
        request = make_request()
        handle = ExecutionHandle(request, results.append)
        assert handle.deliver(self._result(request, scheduler))
        assert not handle.deliver(self._result(request, scheduler))
        assert len(results) == 1
        assert handle.done

    def test_cancelled_handle_delivers_nothing(self, make_request, scheduler):
        results = []
        request = make_request()
        handle = ExecutionHandle(request, results.append)
        hooks = []
        handle.add_cancel_hook(lambda: hooks.append("cancelled"))

        assert handle.cancel()
        assert not handle.deliver(self._result(request, scheduler))
        assert results == []
        assert hooks == ["cancelled"]

    def test_cannot_cancel_after_delivery(self, make_request, scheduler):
        request = make_request()
        handle = ExecutionHandle(request, lambda result: None)
        handle.deliver(self._result(request, scheduler))
        assert not handle.cancel()


class TestSimulatedPipeline:
    def test_delivers_after_latency(self, pipeline, scheduler, make_request):
        results = []
        request = make_request()
        pipeline.submit(request, results.append)

        scheduler.advance(1.4)
        assert results == []
        scheduler.advance(0.1)

        assert len(results) == 1
        result = results[0]
        assert result.request_id == request.id
        assert result.status == ExecutionStatus.SUCCESS
        assert result.language_id == "python"
        assert result.completed_at > request.submitted_at

    def test_output_is_deterministic_per_language(self, pipeline, scheduler, make_request):
        results = []
        pipeline.submit(make_request("go", "anything"), results.append)
        pipeline.submit(make_request("go", "something else"), results.append)
        scheduler.advance(2)
        assert results[0].output_text == results[1].output_text == simulated_output("go")

    def test_output_format(self):
        assert simulated_output("python") == (
            "✓ Code executed successfully!\n\nLanguage: python\nOutput:\nHello World"
        )
        assert simulated_output("java").endswith("Hello World\n\nExecution time: 0.042s\nMemory: 2.1 MB")

    def test_cancel_prevents_delivery(self, pipeline, scheduler, make_request):
        results = []
        handle = pipeline.submit(make_request(), results.append)
        handle.cancel()
        scheduler.advance(5)
        assert results == []


class TestResultFromPayload:
    def test_combines_stdout_and_stderr(self, make_request, scheduler):
        request = make_request()
        result = result_from_payload(request, {
            "status": "FAILURE",
            "stdout": "partial",
            "stderr": "Traceback",
            "error_kind": "runtime_error",
            "execution_time_ms": 12,
        }, scheduler.now())
        assert result.status == ExecutionStatus.FAILURE
        assert result.error_kind == ExecutionErrorKind.RUNTIME_ERROR
        assert result.output_text == "partial\nTraceback"
        assert result.execution_time_ms == 12

    def test_success_without_error_kind(self, make_request, scheduler):
        result = result_from_payload(make_request(), {"status": "SUCCESS", "stdout": "hi\n", "stderr": ""}, scheduler.now())
        assert result.succeeded
        assert result.error_kind is None
        assert result.output_text == "hi\n"

    def test_to_dict(self, make_request, scheduler):
        result = result_from_payload(make_request(), {"status": "TIMEOUT", "error_kind": "timeout"}, scheduler.now())
        data = result.to_dict()
        assert data["status"] == "TIMEOUT"
        assert data["error_kind"] == "timeout"
        assert data["completed_at"] == scheduler.now().isoformat()


class TestRunnerPipeline:
    def test_runs_python_and_delivers_through_scheduler(self, scheduler, make_request):
        pipeline = RunnerPipeline(scheduler, timeout=20)
        results = []
        pipeline.submit(make_request(code="print('Hello World')"), results.append)
        pipeline.executor.shutdown(wait=True)

        assert results == []
        scheduler.advance(0)

        assert len(results) == 1
        assert results[0].status == ExecutionStatus.SUCCESS
        assert "Hello World" in results[0].output_text

    def test_runtime_error_is_a_result_not_an_exception(self, scheduler, make_request):
        pipeline = RunnerPipeline(scheduler, timeout=20)
        results = []
        pipeline.submit(make_request(code="raise SystemExit(3)"), results.append)
        pipeline.executor.shutdown(wait=True)
        scheduler.advance(0)

        assert results[0].status == ExecutionStatus.FAILURE
        assert results[0].error_kind == ExecutionErrorKind.RUNTIME_ERROR

    def test_unexpected_error_becomes_failure(self, scheduler, make_request):
        class BrokenPipeline(RunnerPipeline):
            def _run(self, handle):
                raise OSError("disk on fire")

        pipeline = BrokenPipeline(scheduler)
        results = []
        pipeline.submit(make_request(), results.append)
        pipeline.executor.shutdown(wait=True)
        scheduler.advance(0)

        assert results[0].status == ExecutionStatus.FAILURE
        assert "disk on fire" in results[0].output_text


class TestCeleryPipeline:
    @pytest.fixture
    def app_config(self, base_config):
        class CeleryConfig(base_config):
            EXECUTION_BACKEND = 'celery'
            EXECUTION_TIMEOUT = 20

        return CeleryConfig

    def test_runs_through_eager_task(self, app, app_scheduler):
        workspace = app.extensions['workspace']
        assert isinstance(workspace.editor.pipeline, CeleryPipeline)

        workspace.select_language("python")
        workspace.run()
        workspace.editor.pipeline.executor.shutdown(wait=True)
        app_scheduler.advance(0)

        result = workspace.editor.result
        assert result.status == ExecutionStatus.SUCCESS
        assert "Hello World" in result.output_text


class TestBuildPipeline:
    def test_simulated_by_default(self, scheduler):
        pipeline = build_pipeline({"RUN_LATENCY_SECONDS": 0.2}, scheduler)
        assert isinstance(pipeline, SimulatedPipeline)
        assert pipeline.latency == 0.2

    def test_subprocess(self, scheduler):
        pipeline = build_pipeline({"EXECUTION_BACKEND": "subprocess", "EXECUTION_TIMEOUT": 5}, scheduler)
        assert type(pipeline) is RunnerPipeline
        assert pipeline.timeout == 5
        pipeline.shutdown()

    def test_unknown_backend(self, scheduler):
        with pytest.raises(ValueError):
            build_pipeline({"EXECUTION_BACKEND": "docker"}, scheduler)
