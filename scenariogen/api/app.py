"""
FastAPI backend for running generations over HTTP.
Each request starts a background job; clients poll the job for the result.
"""
import asyncio
import logging
import uuid
from datetime import datetime
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Dict, Optional
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from scenariogen.config.settings import LANGUAGES, Settings
from scenariogen.generator.code_generator import default_output_path
from scenariogen.orchestrator.orchestrator import Orchestrator
from scenariogen.utils.errors import ConfigError
from scenariogen.utils.logging_setup import setup_logging
from scenariogen.utils.schema import GenerationRequest

logger = logging.getLogger(__name__)


# Job storage
jobs: Dict[str, Dict] = {}

# Generated tests from API jobs are confined to OUTPUT_ROOT/<job_id>/
OUTPUT_ROOT = Path("generated")


class GenerateResponse(BaseModel):
    job_id: str
    status: str
    message: str


app = FastAPI(title="ScenarioGen API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_orchestrator() -> Orchestrator:
    """Orchestrator for one job. Replaced in tests."""
    return Orchestrator(Settings.from_env(), verbose=False)


def job_output_path(job_id: str, requested: Optional[str], language: str) -> str:
    """
    Path a job writes its test to, always under OUTPUT_ROOT/<job_id>/.

    Raises:
        ValueError: requested path is absolute or climbs out with '..'
    """
    if requested:
        posix = PurePosixPath(requested.replace("\\", "/"))
        if posix.is_absolute() or PureWindowsPath(requested).drive or ".." in posix.parts:
            raise ValueError(f"output_path must be a relative path without '..': {requested!r}")
        relative = Path(*posix.parts)
    else:
        relative = Path(Path(default_output_path(language)).name)
    return str(OUTPUT_ROOT / job_id / relative)


@app.get("/api/health")
async def health():
    return {"status": "ok"}


@app.post("/api/generate", response_model=GenerateResponse)
async def generate(request: GenerationRequest):
    """
    Start a new generation job.
    """
    if not request.url.strip() or not request.scenario.strip():
        raise HTTPException(status_code=422, detail="url and scenario are required")
    if request.language is not None and request.language not in LANGUAGES:
        raise HTTPException(status_code=422, detail=f"language must be one of {list(LANGUAGES)}")

    job_id = str(uuid.uuid4())
    try:
        job_output_path(job_id, request.output_path, request.language or "python")
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    jobs[job_id] = {
        "job_id": job_id,
        "url": request.url,
        "scenario": request.scenario,
        "status": "pending",
        "created_at": datetime.now().isoformat(),
        "finished_at": None,
        "result": None,
        "error": None,
    }

    asyncio.create_task(run_job(job_id, request))

    return GenerateResponse(
        job_id=job_id,
        status="pending",
        message="Generation started. Poll /api/jobs/{job_id} for the result."
    )


@app.get("/api/jobs/{job_id}")
async def get_job(job_id: str):
    """Get job state and, once finished, its result."""
    if job_id not in jobs:
        raise HTTPException(status_code=404, detail="Job not found")

    return JSONResponse(jobs[job_id])


@app.get("/api/jobs/{job_id}/code", response_class=PlainTextResponse)
async def get_job_code(job_id: str):
    """Get the generated source for a finished job."""
    job = jobs.get(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")

    code = (job.get("result") or {}).get("code")
    if not code:
        raise HTTPException(status_code=404, detail="Code not available yet")

    return PlainTextResponse(code)


async def run_job(job_id: str, request: GenerationRequest):
    """
    Run the synchronous pipeline in a worker thread.
    """
    job = jobs[job_id]
    job["status"] = "running"

    try:
        orchestrator = get_orchestrator()
        language = request.language or orchestrator.settings.language
        # Each job gets its own test file and artifacts
        output_path = job_output_path(job_id, request.output_path, language)
        artifacts_dir = str(Path(orchestrator.settings.artifacts_dir) / job_id)

        # Sync Playwright cannot run on the event loop thread
        loop = asyncio.get_event_loop()
        result = await loop.run_in_executor(
            None,
            lambda: orchestrator.run(
                request.url,
                request.scenario,
                output_path=output_path,
                language=language,
                run_tests=request.run_tests,
                artifacts_dir=artifacts_dir,
            )
        )
        job["result"] = result.model_dump()
        job["status"] = "completed" if result.ok else "failed"
        job["error"] = result.error
    except ConfigError as e:
        logger.error("[%s] Configuration error: %s", job_id, e)
        job["status"] = "failed"
        job["error"] = str(e)
    except Exception as e:
        logger.exception("[%s] Fatal error", job_id)
        job["status"] = "failed"
        job["error"] = str(e)

    job["finished_at"] = datetime.now().isoformat()
    logger.info("[%s] Job %s", job_id, job["status"])


def main(settings: Optional[Settings] = None):
    import uvicorn

    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)

    try:
        settings.api_key()
    except ConfigError as e:
        print("=" * 60)
        print(f"ERROR: {e}")
        print("=" * 60)
        raise SystemExit(1)

    print(f"Starting ScenarioGen API on http://{settings.api_host}:{settings.api_port}")
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
