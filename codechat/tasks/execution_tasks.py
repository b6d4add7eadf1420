import tempfile
import os
import subprocess
import sys
import time
import logging

from codechat.celery_app import celery

logger = logging.getLogger(__name__)

# Limit Constraint
MAX_OUTPUT_SIZE = 1024 * 100
DEFAULT_TIMEOUT = 30
DEFAULT_COMPILE_TIMEOUT = 10

SUCCESS = 'SUCCESS'
FAILURE = 'FAILURE'
TIMEOUT = 'TIMEOUT'


@celery.task(name='execute_code_task')
def execute_code_task(language, source_code, timeout=DEFAULT_TIMEOUT, compile_timeout=DEFAULT_COMPILE_TIMEOUT):
    logger.info(f"Worker executing {language} code (timeout: {timeout}s)")
    return run_code(language, source_code, timeout=timeout, compile_timeout=compile_timeout)


def run_code(language, source_code, timeout=DEFAULT_TIMEOUT, compile_timeout=DEFAULT_COMPILE_TIMEOUT):
    """Run source code in a subprocess and return a JSON-serializable payload.

    The payload always carries ``status``, ``stdout``, ``stderr``,
    ``error_kind`` and ``execution_time_ms``; failures never raise.
    """
    start_time = time.time()

    try:
        if language == 'python':
            result = _execute_interpreted([sys.executable, '-c', source_code], 'Python', timeout)
        elif language == 'javascript':
            result = _execute_interpreted(['node', '-e', source_code], 'Node.js', timeout)
        elif language == 'cpp':
            result = _execute_compiled(source_code, 'program.cpp', ['g++', '-std=c++17'], 'g++', timeout, compile_timeout)
        elif language == 'c':
            result = _execute_compiled(source_code, 'program.c', ['gcc'], 'gcc', timeout, compile_timeout)
        else:
            logger.error(f"Unsupported language: {language}")
            result = _failure(f'Unsupported language: {language}', 'unsupported_language')
    except Exception as e:
        logger.error(f"{language} execution error: {str(e)}")
        result = _failure(str(e), 'runtime_error')

    result['execution_time_ms'] = int((time.time() - start_time) * 1000)
    result['stdout'] = _truncate(result['stdout'], "Output")
    result['stderr'] = _truncate(result['stderr'], "Error output")

    logger.info(f"{language} execution finished: {result['status']} ({result['execution_time_ms']}ms)")
    return result


def _failure(stderr, error_kind, stdout=''):
    return {
        'stdout': stdout,
        'stderr': stderr,
        'status': FAILURE,
        'error_kind': error_kind,
    }


def _timed_out(timeout):
    return {
        'stdout': '',
        'stderr': f'Execution timeout exceeded ({timeout} seconds)',
        'status': TIMEOUT,
        'error_kind': 'timeout',
    }


def _truncate(text, label):
    text = text or ''
    if len(text) > MAX_OUTPUT_SIZE:
        logger.warning(f"{label} truncated from {len(text)} to {MAX_OUTPUT_SIZE} bytes")
        return text[:MAX_OUTPUT_SIZE] + f"\n... [{label} truncated - exceeded 100KB limit]"
    return text


def _completed(process_result, name):
    if process_result.returncode == 0:
        logger.info(f"{name} execution completed successfully")
        return {
            'stdout': process_result.stdout,
            'stderr': process_result.stderr,
            'status': SUCCESS,
            'error_kind': None,
        }

    logger.warning(f"{name} execution failed with return code {process_result.returncode}")
    return _failure(process_result.stderr, 'runtime_error', stdout=process_result.stdout)


def _execute_interpreted(command, name, timeout):
    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        return _completed(result, name)

    except subprocess.TimeoutExpired:
        logger.warning(f"{name} execution timed out")
        return _timed_out(timeout)
    except FileNotFoundError:
        logger.error(f"{name} not found")
        return _failure(f'{name} is not installed', 'runtime_error')


def _execute_compiled(source_code, source_name, compiler, compiler_name, timeout, compile_timeout):
    try:
        with tempfile.TemporaryDirectory() as temp_dir:
            source_file = os.path.join(temp_dir, source_name)
            executable_file = os.path.join(temp_dir, 'program.exe' if os.name == 'nt' else 'program')

            with open(source_file, 'w') as f:
                f.write(source_code)

            logger.info(f"Compiling {source_name} with {compiler_name}...")
            compile_result = subprocess.run(
                compiler + [source_file, '-o', executable_file],
                capture_output=True,
                text=True,
                timeout=compile_timeout,
            )

            if compile_result.returncode != 0:
                logger.warning(f"{compiler_name} compilation failed")
                return _failure(
                    f"Compilation Error:\n{compile_result.stderr}",
                    'compile_error',
                    stdout=compile_result.stdout,
                )

            run_result = subprocess.run(
                [executable_file],
                capture_output=True,
                text=True,
                timeout=timeout,
            )
            return _completed(run_result, source_name)

    except subprocess.TimeoutExpired:
        logger.warning(f"{source_name} timed out")
        return _timed_out(timeout)
    except FileNotFoundError:
        logger.error(f"{compiler_name} compiler not found")
        return _failure(f'{compiler_name} compiler is not installed', 'compile_error')
