# ABOUTME: FastAPI server for ClipVox: topic → narration script → chunked speech audio
# ABOUTME: Exposes /generate (plain-text script), /voice (ordered base64 segments), /healthz
from __future__ import annotations

import logging
import sys
import time
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse

from config import Settings, load_settings
from credentials import CredentialProvider
from errors import AuthenticationError, ConfigError, InvalidRequestError
from llm_client import OpenAITextGenerator
from models import ScriptRequest, VoiceRequest
from scriptgen import ScriptGenerator
from synthesizer import SpeechSynthesizer
from tts_client import TTSClient

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("clipvox")

AUTH_GUIDANCE = (
    "Speech provider authentication failed. Check GOOGLE_APPLICATION_CREDENTIALS_JSON "
    "(or _BASE64) and make sure the service account key has not been revoked."
)

app = FastAPI(title="ClipVox API", version="0.1.0")
app.state.started_at = time.monotonic()


def build_services(settings: Settings) -> dict:
    """Construct the long-lived collaborators shared by all requests."""
    credentials = CredentialProvider(
        credentials_json=settings.google_credentials_json,
        credentials_base64=settings.google_credentials_base64,
    )
    tts = TTSClient(endpoint=settings.tts_endpoint, timeout=settings.tts_timeout)
    llm = OpenAITextGenerator(api_key=settings.openai_api_key, model=settings.openai_model)
    return {
        "tts": tts,
        "llm": llm,
        "script_generator": ScriptGenerator(llm),
        "synthesizer": SpeechSynthesizer(tts, credentials),
    }


@app.on_event("startup")
async def startup():
    if getattr(app.state, "services", None) is None:
        try:
            settings = load_settings()
        except ConfigError as e:
            logger.error("Configuration error: %s", e)
            raise SystemExit(1) from e
        logging.getLogger().setLevel(settings.log_level)
        app.state.services = build_services(settings)
    app.state.started_at = time.monotonic()
    logger.info("ClipVox API started")


@app.on_event("shutdown")
async def shutdown():
    services = getattr(app.state, "services", None)
    if services:
        await services["tts"].close()
        await services["llm"].close()


def get_script_generator(request: Request) -> ScriptGenerator:
    return request.app.state.services["script_generator"]


def get_synthesizer(request: Request) -> SpeechSynthesizer:
    return request.app.state.services["synthesizer"]


def _validation_message(exc: RequestValidationError) -> str:
    """First validation problem as a short human-readable sentence."""
    for error in exc.errors():
        msg = str(error.get("msg", "Invalid request"))
        if msg.startswith("Value error, "):
            return msg[len("Value error, "):]
        field = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
        return f"{field}: {msg}" if field else msg
    return "Invalid request"


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    message = _validation_message(exc)
    logger.info("Rejected %s: %s", request.url.path, message)
    if request.url.path == "/generate":
        return PlainTextResponse(message, status_code=400)
    return JSONResponse(status_code=400, content={"error": message})


@app.get("/healthz")
async def healthz():
    """Liveness probe."""
    return {
        "status": "ok",
        "uptime": round(time.monotonic() - app.state.started_at, 3),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.post("/generate", response_class=PlainTextResponse)
async def generate(
    payload: ScriptRequest,
    generator: ScriptGenerator = Depends(get_script_generator),
):
    """Generate a chaptered narration script for a topic."""
    logger.info("Generating script: topic=%r mode=%s chapters=%d minutes=%g",
                payload.topic, payload.mode.value, payload.chapter_count, payload.target_minutes)
    try:
        script = await generator.generate_script(payload)
    except Exception:
        logger.exception("Script generation failed for topic %r", payload.topic)
        return PlainTextResponse("Failed to generate script.", status_code=500)
    return PlainTextResponse(script)


@app.post("/voice")
async def voice(
    payload: VoiceRequest,
    synthesizer: SpeechSynthesizer = Depends(get_synthesizer),
):
    """Synthesize a script into ordered base64 audio segments."""
    try:
        result = await synthesizer.synthesize(payload.text, payload.synthesis_config())
    except InvalidRequestError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except AuthenticationError:
        logger.exception("Speech provider authentication failed")
        return JSONResponse(status_code=401, content={"error": AUTH_GUIDANCE})
    except Exception as e:
        if "invalid_grant" in str(e):
            logger.exception("Speech provider rejected the credential grant")
            return JSONResponse(status_code=401, content={"error": AUTH_GUIDANCE})
        logger.exception("Voice synthesis failed")
        return JSONResponse(status_code=502, content={"error": f"Voice synthesis failed: {e}"})

    logger.info("Voice synthesis complete: %d segment(s), exceeded_limit=%s",
                len(result.segments), result.exceeded_limit)
    return JSONResponse(content=result.model_dump(by_alias=True, exclude_none=True))


def main():
    try:
        settings = load_settings()
    except ConfigError as e:
        print(f"clipvox: {e}", file=sys.stderr)
        sys.exit(1)

    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
