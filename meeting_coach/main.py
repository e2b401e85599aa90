"""FastAPI backend for Meeting Coach."""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Optional, Union

from fastapi import FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from meeting_coach.audio import list_input_devices
from meeting_coach.config import Config
from meeting_coach.localization import get_supported_languages
from meeting_coach.session import SessionController

logging.basicConfig(
    level=Config.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Owner of the one active session and all its handles
controller = SessionController()


@asynccontextmanager
async def lifespan(app: FastAPI):
    missing = Config.validate()
    for item in missing:
        logger.warning("[CONFIG] missing %s", item)
    logger.info("ready (coach provider: %s)", Config.COACH_PROVIDER)
    yield
    await controller.stop()


app = FastAPI(title="Meeting Coach", lifespan=lifespan)

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request models
class StartRequest(BaseModel):
    language: Optional[str] = None
    device: Optional[Union[int, str]] = None


@app.get("/favicon.ico")
async def favicon():
    """Return empty favicon to prevent 404 errors."""
    return Response(content="", media_type="image/x-icon")


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "gemini_configured": bool(Config.GEMINI_API_KEY),
        "coach_provider": Config.COACH_PROVIDER,
        "languages": get_supported_languages(),
        "missing": Config.validate(),
    }


@app.get("/audio/devices")
async def audio_devices():
    """List microphone input devices."""
    return list_input_devices(selected=Config.audio_device())


@app.post("/session/start")
async def session_start(request: Optional[StartRequest] = None):
    """Start a coaching session (microphone + perception channel)."""
    request = request or StartRequest()
    try:
        return await controller.start(language=request.language, device=request.device)
    except ValueError as e:
        raise HTTPException(400, str(e))


@app.post("/session/stop")
async def session_stop():
    return await controller.stop()


@app.post("/session/phase/meeting")
async def session_phase_meeting():
    """End the briefing and switch to live meeting coaching."""
    advanced = controller.advance_phase()
    return {"advanced": advanced, **controller.snapshot()}


@app.get("/session/status")
async def session_status():
    return controller.snapshot()


@app.get("/session/stream")
async def session_stream():
    """Stream session snapshots via Server-Sent Events."""

    async def event_generator():
        last_version = -1
        idle_ticks = 0
        while True:
            try:
                if controller.state.version != last_version:
                    snapshot = controller.snapshot()
                    last_version = snapshot["version"]
                    idle_ticks = 0
                    yield f"data: {json.dumps(snapshot)}\n\n"
                else:
                    idle_ticks += 1
                    if idle_ticks >= 10:
                        # Send heartbeat to keep connection alive
                        idle_ticks = 0
                        yield ": heartbeat\n\n"

                await asyncio.sleep(0.1)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.exception("Error in session stream: %s", e)
                break

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable buffering for nginx
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=Config.HOST, port=Config.PORT)
