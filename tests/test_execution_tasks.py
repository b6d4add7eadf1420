"""Tests for the subprocess runners behind the real execution backends."""

from unittest.mock import patch

from codechat.tasks import execution_tasks
from codechat.tasks.execution_tasks import execute_code_task, run_code


class TestRunCode:
    def test_python_success(self):
        result = run_code("python", "print('Hello World')", timeout=20)
        assert result["status"] == "SUCCESS"
        assert result["stdout"].strip() == "Hello World"
        assert result["error_kind"] is None
        assert result["execution_time_ms"] >= 0

    def test_python_runtime_error(self):
        result = run_code("python", "1/0", timeout=20)
        assert result["status"] == "FAILURE"
        assert result["error_kind"] == "runtime_error"
        assert "ZeroDivisionError" in result["stderr"]

    def test_python_timeout(self):
        result = run_code("python", "import time\ntime.sleep(10)", timeout=1)
        assert result["status"] == "TIMEOUT"
        assert result["error_kind"] == "timeout"
        assert "1 seconds" in result["stderr"]

    def test_unsupported_language(self):
        result = run_code("swift", "print(\"Hello World\")")
        assert result["status"] == "FAILURE"
        assert result["error_kind"] == "unsupported_language"
        assert "swift" in result["stderr"]

    def test_missing_toolchain(self):
        with patch.object(execution_tasks.subprocess, "run", side_effect=FileNotFoundError):
            result = run_code("cpp", "int main() { return 0; }")
        assert result["status"] == "FAILURE"
        assert result["error_kind"] == "compile_error"
        assert "g++" in result["stderr"]

    def test_output_is_truncated(self):
        with patch.object(execution_tasks, "MAX_OUTPUT_SIZE", 10):
            result = run_code("python", "print('x' * 100)", timeout=20)
        assert result["stdout"].startswith("x" * 10)
        assert "truncated" in result["stdout"]


class TestExecuteCodeTask:
    def test_task_runs_synchronously_when_called(self):
        result = execute_code_task("python", "print(6 * 7)", timeout=20)
        assert result["status"] == "SUCCESS"
        assert result["stdout"].strip() == "42"
