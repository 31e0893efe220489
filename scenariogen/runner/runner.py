"""
Runs a generated test file in a subprocess.
"""
import logging
import subprocess
import sys
import time
from pathlib import Path
from typing import List, Union

from scenariogen.utils.errors import ConfigError
from scenariogen.utils.schema import RunResult

logger = logging.getLogger(__name__)


def build_command(path: Union[str, Path], language: str = "python") -> List[str]:
    if language == "python":
        return [sys.executable, "-m", "pytest", "-q", str(path)]
    if language == "javascript":
        # Generated modules only export test(); import and call it
        target = Path(path).resolve().as_uri()
        return ["node", "--input-type=module", "-e", f"const m = await import('{target}'); await m.test();"]
    raise ConfigError(f"Unsupported language {language!r}")


def run_generated_test(path: Union[str, Path], language: str = "python", timeout_sec: int = 300) -> RunResult:
    """
    Execute a generated test.

    Never raises for test failures, timeouts or a missing interpreter; the
    outcome is in the returned RunResult.
    """
    cmd = build_command(path, language)
    logger.info("Running generated test: %s", " ".join(cmd))
    start = time.time()

    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout_sec)
    except subprocess.TimeoutExpired as e:
        logger.error("Generated test timed out after %ss", timeout_sec)
        return RunResult(
            command=cmd,
            stdout=e.stdout if isinstance(e.stdout, str) else "",
            stderr=f"Timed out after {timeout_sec}s",
            time_ms=(time.time() - start) * 1000,
        )
    except FileNotFoundError as e:
        logger.error("Cannot run generated test: %s", e)
        return RunResult(command=cmd, stderr=str(e), time_ms=(time.time() - start) * 1000)

    result = RunResult(
        command=cmd,
        returncode=proc.returncode,
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
        ok=proc.returncode == 0,
        time_ms=(time.time() - start) * 1000,
    )
    if result.ok:
        logger.info("Generated test passed in %.0fms", result.time_ms)
    else:
        logger.warning("Generated test failed with exit code %s", proc.returncode)
    return result
