"""
FastAPI application for ListenLab intensive listening practice.

This is the main entry point for the application. It provides:
    - HTTP endpoints for sessions, audio upload and cloze practice
    - A WebSocket endpoint that drives the page's audio element

Endpoints:
    GET    /health                             - Health check
    GET    /metrics                            - Transcription metrics
    POST   /sessions                           - Create a practice session
    GET    /sessions/{token}                   - Session state and cards
    DELETE /sessions/{token}                   - Tear down a session
    POST   /sessions/{token}/audio             - Upload audio (transcribed in background)
    DELETE /sessions/{token}/audio             - Discard audio and transcript
    GET    /sessions/{token}/media             - The uploaded audio
    PUT    /sessions/{token}/mode              - Switch study/quiz
    PUT    /sessions/{token}/difficulty        - Switch easy/medium/hard
    POST   /sessions/{token}/sentences/{i}/play            - Replay one sentence
    PUT    /sessions/{token}/sentences/{i}/blanks/{pos}    - Type into a blank
    POST   /sessions/{token}/sentences/{i}/reveal          - Toggle the answer
    WS     /ws/{token}                         - Playback sync

Startup:
    The transcript backend is checked on startup. A missing credential is
    reported but does not stop the server; uploads fail with the
    configuration error until it is set.
"""

import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv

load_dotenv()

from fastapi import (  # noqa: E402
    BackgroundTasks,
    Body,
    FastAPI,
    File,
    HTTPException,
    UploadFile,
    WebSocket,
)
from fastapi.responses import FileResponse, JSONResponse  # noqa: E402

from listenlab.backends import get_transcript_backend  # noqa: E402
from listenlab.cloze import Difficulty  # noqa: E402
from listenlab.errors import ConfigurationError  # noqa: E402
from listenlab.handlers import get_metrics, handle_playback_websocket, run_transcription  # noqa: E402
from listenlab.media import MediaHandle  # noqa: E402
from listenlab.practice import Mode  # noqa: E402
from listenlab.session_registry import PracticeEntry, registry  # noqa: E402

MAX_UPLOAD_MB = float(os.getenv("MAX_UPLOAD_MB", "50"))


def warmup_backend():
    """Check the transcript backend configuration before the first upload."""
    print("Checking transcript backend...")
    try:
        get_transcript_backend().warmup()
    except ConfigurationError as e:
        print(f"Warning: {e} Uploads will fail until GEMINI_API_KEY is set.")
        return
    print("Transcript backend ready")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    warmup_backend()
    yield
    await registry.close_all()


app = FastAPI(
    title="ListenLab",
    description="Intensive listening and cloze practice on your own audio",
    lifespan=lifespan,
)


async def _get_entry(token: str) -> PracticeEntry:
    entry = await registry.get(token)
    if entry is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return entry


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/metrics")
async def metrics():
    return get_metrics()


@app.post("/sessions", status_code=201)
async def create_session():
    entry = await registry.create()
    return {"token": entry.token}


@app.get("/sessions/{token}")
async def get_session(token: str):
    entry = await _get_entry(token)
    return entry.snapshot()


@app.delete("/sessions/{token}")
async def delete_session(token: str):
    if not await registry.unregister(token):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"status": "closed"}


@app.post("/sessions/{token}/audio", status_code=202)
async def upload_audio(
    token: str,
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
):
    entry = await _get_entry(token)
    backend = get_transcript_backend()

    mime_type = file.content_type or ""
    if not backend.supports_mime_type(mime_type):
        raise HTTPException(
            status_code=400, detail=f"Unsupported file type: {mime_type or 'unknown'}"
        )

    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    if len(content) > MAX_UPLOAD_MB * 1024 * 1024:
        raise HTTPException(status_code=413, detail=f"File exceeds {MAX_UPLOAD_MB:g} MB")

    media = MediaHandle.from_bytes(content, mime_type, file.filename)
    upload_id = await registry.begin_upload(token, media)
    if upload_id is None:
        raise HTTPException(status_code=404, detail="Session not found")
    print(f"Accepted {media.filename} ({len(content)} bytes) for session {token[:8]}...")
    # The previous audio is stopped; the client applies these with the new source
    commands = entry.transport.drain_commands()

    # Missing credentials are reported before any request is attempted
    try:
        backend.load_model()
    except ConfigurationError as e:
        await registry.fail_upload(token, upload_id, str(e))
        return JSONResponse(status_code=500, content={"detail": str(e)})

    background_tasks.add_task(run_transcription, token, upload_id, content, mime_type)
    return {
        "upload_id": upload_id,
        "filename": media.filename,
        "status": "processing",
        "commands": commands,
    }


@app.delete("/sessions/{token}/audio")
async def discard_audio(token: str):
    entry = await _get_entry(token)
    entry.reset()
    return {"status": entry.processing.status, "commands": entry.transport.drain_commands()}


@app.get("/sessions/{token}/media")
async def get_media(token: str):
    entry = await _get_entry(token)
    handle = entry.media.handle
    if handle is None:
        raise HTTPException(status_code=404, detail="No audio uploaded")
    return FileResponse(handle.path, media_type=handle.mime_type)


@app.put("/sessions/{token}/mode")
async def set_mode(token: str, mode: Mode = Body(..., embed=True)):
    entry = await _get_entry(token)
    entry.practice.set_mode(mode)
    return entry.snapshot()


@app.put("/sessions/{token}/difficulty")
async def set_difficulty(token: str, difficulty: Difficulty = Body(..., embed=True)):
    entry = await _get_entry(token)
    entry.practice.set_difficulty(difficulty)
    return entry.snapshot()


def _check_sentence(entry: PracticeEntry, index: int) -> None:
    if not 0 <= index < len(entry.practice.sentences):
        raise HTTPException(status_code=404, detail=f"No sentence at index {index}")


@app.post("/sessions/{token}/sentences/{index}/play")
async def play_sentence(token: str, index: int):
    entry = await _get_entry(token)
    _check_sentence(entry, index)
    sentence = entry.practice.sentences[index]
    entry.controller.play_segment(sentence.start_time, sentence.end_time, index)
    return {
        "active_index": entry.controller.active_index,
        "commands": entry.transport.drain_commands(),
    }


@app.put("/sessions/{token}/sentences/{index}/blanks/{position}")
async def type_answer(token: str, index: int, position: int, text: str = Body(..., embed=True)):
    entry = await _get_entry(token)
    _check_sentence(entry, index)
    try:
        status = entry.practice.type_answer(index, position, text)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return {"position": position, "status": status.value}


@app.post("/sessions/{token}/sentences/{index}/reveal")
async def reveal_sentence(token: str, index: int):
    entry = await _get_entry(token)
    _check_sentence(entry, index)
    try:
        entry.practice.toggle_reveal(index)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return entry.practice.card_view(index, is_playing=entry.controller.active_index == index)


@app.websocket("/ws/{token}")
async def playback_websocket_endpoint(websocket: WebSocket, token: str):
    await handle_playback_websocket(websocket, token)
