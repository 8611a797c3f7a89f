"""
FastAPI Backend for CodeGym AI

Exposes each AI flow as a JSON POST endpoint:
- generate-problem / enhance-problem: coding problems with expected output
- check-code: code quality review
- run-code: simulated correctness run
- chatbot: Socratic hints about the current problem

Every flow answers 200 {"response": ...}, 400 {"error": ...} for bad input
and 502 {"error": ...} when the hosted model fails.
"""

from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import Any, Optional
import os
import sys
import json
import time
import logging
import signal

# Setup enhanced logging with pretty formatting
from lib.logger import setup_logging, get_logger, preview

setup_logging(level=logging.INFO, use_colors=True)

logger = get_logger("backend.main")

# Add the codegym_ai package to Python path
backend_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(backend_dir)

package_src = os.path.join(project_root, 'codegym_ai', 'src')
if os.path.exists(package_src) and package_src not in sys.path:
    sys.path.insert(0, package_src)

from codegym_ai.actions import ACTIONS
from codegym_ai.catalog import DEFAULT_PROBLEM, LEARNING_PATHS, path_for, problems_for
from codegym_ai.config import Settings
from codegym_ai.errors import ActionError, ConfigurationError, InvalidInputError
from codegym_ai.flows import CodeGymFlows
from codegym_ai.gateway import FLOW_ROUTE_PREFIX
from codegym_ai.llm_client import LLMClient

try:
    settings = Settings.from_env()
except ConfigurationError as e:
    logger.error("Cannot start CodeGym API", error=e)
    raise

setup_logging(level=getattr(logging, settings.log_level, logging.INFO), use_colors=True)

# Singleton so the OpenAI client is built once per process
_flows_instance = None


def get_flows() -> CodeGymFlows:
    """Get or create the singleton flow set."""
    global _flows_instance
    if _flows_instance is None:
        _flows_instance = CodeGymFlows(LLMClient.from_settings(settings))
        logger.success("Flows initialized", {"model": settings.openai_model})
    return _flows_instance


# Initialize FastAPI app
app = FastAPI(
    title="CodeGym AI API",
    description="REST API for AI-generated coding practice",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==================== Helpers ====================

def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": message})


def _invalid_input_message(error: InvalidInputError) -> str:
    details = "; ".join(f"{e['field']}: {e['message']}" for e in error.errors)
    return f"Invalid input: {details}" if details else "Invalid input"


async def _read_body(request: Request) -> Any:
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


async def _dispatch(flow_name: str, payload: Any, flows: CodeGymFlows) -> JSONResponse:
    """Run one flow action and map its outcome to a JSON response."""
    path = f"{FLOW_ROUTE_PREFIX}/{flow_name}"
    start = time.perf_counter()
    logger.request("POST", path)

    if not isinstance(payload, dict):
        logger.warning("Rejected non-object body", {"flow": flow_name})
        return _error(400, "Invalid input: body must be a JSON object")

    try:
        output = await ACTIONS[flow_name](flows, payload)
    except InvalidInputError as e:
        logger.warning("Invalid input", {"flow": flow_name, "fields": ", ".join(e.fields)})
        response = _error(400, _invalid_input_message(e))
    except ActionError as e:
        response = _error(502, str(e))
    else:
        response = JSONResponse(content={"response": output.to_wire()})

    logger.response(response.status_code, path, duration=time.perf_counter() - start)
    return response


# ==================== API Endpoints ====================

@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": "CodeGym AI API",
        "version": "1.0.0",
        "model": settings.openai_model,
        "flows": list(ACTIONS),
    }


@app.get("/api/catalog")
async def get_catalog(language: Optional[str] = None):
    """
    Learning paths per language and the problem a new session starts on.

    With ?language=, returns that language's path and its flat problem list.
    """
    if language is not None:
        try:
            path = path_for(language)
        except KeyError:
            return _error(400, f"Invalid input: language: unknown language {language!r}")
        return {"response": {"learningPath": path, "problems": problems_for(language)}}
    return {
        "response": {
            "defaultProblem": DEFAULT_PROBLEM.to_wire(),
            "learningPaths": LEARNING_PATHS,
        }
    }


@app.post(f"{FLOW_ROUTE_PREFIX}/generate-problem")
async def generate_problem(request: Request, flows: CodeGymFlows = Depends(get_flows)):
    payload = await _read_body(request)
    if isinstance(payload, dict):
        logger.info("Generating problem", {
            "topic": payload.get("topic"),
            "language": payload.get("language"),
            "complexity": payload.get("complexity"),
        })
    return await _dispatch("generate-problem", payload, flows)


@app.post(f"{FLOW_ROUTE_PREFIX}/enhance-problem")
async def enhance_problem(request: Request, flows: CodeGymFlows = Depends(get_flows)):
    """
    Enhance an imported problem.

    Accepts the full flow input, or the import form's {rawProblem} body, in
    which case topic and expected output default to empty, language to java
    and complexity to medium.
    """
    payload = await _read_body(request)
    if isinstance(payload, dict) and "rawProblem" in payload:
        payload = {
            "topic": "",
            "language": "java",
            "complexity": "medium",
            "expectedOutput": "",
            **payload,
        }
    return await _dispatch("enhance-problem", payload, flows)


@app.post(f"{FLOW_ROUTE_PREFIX}/check-code")
async def check_code(request: Request, flows: CodeGymFlows = Depends(get_flows)):
    payload = await _read_body(request)
    return await _dispatch("check-code", payload, flows)


@app.post(f"{FLOW_ROUTE_PREFIX}/run-code")
async def run_code(request: Request, flows: CodeGymFlows = Depends(get_flows)):
    payload = await _read_body(request)
    return await _dispatch("run-code", payload, flows)


@app.post(f"{FLOW_ROUTE_PREFIX}/chatbot")
async def chatbot(request: Request, flows: CodeGymFlows = Depends(get_flows)):
    payload = await _read_body(request)
    if isinstance(payload, dict) and isinstance(payload.get("question"), str):
        logger.info("Chat question", {"question": preview(payload["question"])})
    return await _dispatch("chatbot", payload, flows)


@app.on_event("startup")
async def startup_event():
    logger.section("CODEGYM API STARTUP", {
        "model": settings.openai_model,
        "cors_origins": ", ".join(settings.cors_origins),
    })


if __name__ == "__main__":
    import uvicorn

    def handle_exit(*args):
        """Handle graceful shutdown."""
        logger.section("SERVER SHUTDOWN", {"reason": "signal received"})
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_exit)
    signal.signal(signal.SIGTERM, handle_exit)

    try:
        uvicorn.run(app, host="0.0.0.0", port=8000)
    except KeyboardInterrupt:
        logger.info("🛑 Server stopped.")
        sys.exit(0)
