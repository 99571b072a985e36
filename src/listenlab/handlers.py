"""
Background transcription and the playback WebSocket.

Transcription is the one blocking operation. It runs in a ThreadPoolExecutor
from an async background task so the event loop keeps serving the page
(re-uploads, card updates, playback) while the model works.

Playback protocol (WS /ws/{token}):
    Client → Server:
        - {"type": "timeupdate", "current_time": 12.3, "paused": false}
        - {"type": "play_segment", "index": 4}

    Server → Client:
        - {"type": "playback", "active_index": 4, "mode": "segment",
           "commands": [{"type": "seek", "time": 11.5}, {"type": "play"}]}
        - {"type": "error", "message": "..."}

A playback message is sent on connect and afterwards only when the active
sentence or playback mode changed, or when commands are pending.
"""

import asyncio
import json
import math
import time
from collections import deque
from concurrent.futures import ThreadPoolExecutor

from fastapi import WebSocket, WebSocketDisconnect

from listenlab.errors import ListenLabError
from listenlab.session_registry import PracticeEntry, registry
from listenlab.transcript import transcribe_audio

_executor = ThreadPoolExecutor(max_workers=2)

# Metrics
_metrics = {
    "transcribe_times": deque(maxlen=100),
    "failures": 0,
    "stale_results": 0,
}


def get_metrics() -> dict:
    """Get transcription performance metrics."""
    times = list(_metrics["transcribe_times"])
    return {
        "avg_transcribe_time_ms": sum(times) / len(times) * 1000 if times else 0,
        "failures": _metrics["failures"],
        "stale_results": _metrics["stale_results"],
        "sample_count": len(times),
    }


async def run_transcription(token: str, upload_id: int, audio: bytes, mime_type: str) -> None:
    """Transcribe an upload and store the result on its session.

    Failures become the session's error state; results for an upload that has
    since been superseded are discarded.
    """
    loop = asyncio.get_running_loop()
    start = time.time()
    try:
        sentences = await loop.run_in_executor(_executor, transcribe_audio, audio, mime_type)
    except ListenLabError as e:
        print(f"Transcription failed for session {token[:8]}...: {e}")
        _metrics["failures"] += 1
        await registry.fail_upload(token, upload_id, str(e))
        return
    except Exception as e:
        print(f"Unexpected transcription error for session {token[:8]}...: {e!r}")
        _metrics["failures"] += 1
        await registry.fail_upload(token, upload_id, "An unknown error occurred")
        return

    elapsed = time.time() - start
    _metrics["transcribe_times"].append(elapsed)
    print(f"Transcribed {len(sentences)} sentences in {elapsed:.1f}s (session {token[:8]}...)")
    if not await registry.complete_upload(token, upload_id, sentences):
        _metrics["stale_results"] += 1


def playback_message(entry: PracticeEntry) -> dict:
    return {
        "type": "playback",
        "active_index": entry.controller.active_index,
        "mode": entry.controller.mode.value,
        "commands": entry.transport.drain_commands(),
    }


def apply_client_message(entry: PracticeEntry, data: dict) -> None:
    """Apply one decoded client message to the session's playback state.

    Raises:
        ValueError: On an unknown message type or malformed fields.
        IndexError: If play_segment names a sentence that does not exist.
    """
    msg_type = data.get("type")
    if msg_type == "timeupdate":
        current_time = float(data["current_time"])
        if not math.isfinite(current_time):
            raise ValueError(f"Invalid playback position: {current_time}")
        entry.transport.report(current_time, bool(data.get("paused", False)))
    elif msg_type == "play_segment":
        index = int(data["index"])
        if not 0 <= index < len(entry.practice.sentences):
            raise IndexError(f"No sentence at index {index}")
        sentence = entry.practice.sentences[index]
        entry.controller.play_segment(sentence.start_time, sentence.end_time, index)
    else:
        raise ValueError(f"Unknown message type: {msg_type}")


async def handle_playback_websocket(websocket: WebSocket, token: str) -> None:
    """Mirror the page's audio element and drive its playback."""
    await websocket.accept()

    entry = await registry.get(token)
    if entry is None:
        await websocket.send_text(json.dumps({"type": "error", "message": "Unknown session"}))
        await websocket.close()
        return

    print(f"Playback connected for session {token[:8]}...")
    message = playback_message(entry)
    await websocket.send_text(json.dumps(message))
    last_state = (message["active_index"], message["mode"])

    try:
        while True:
            raw = await websocket.receive()
            if raw["type"] == "websocket.disconnect":
                break
            if raw.get("text") is None:
                await websocket.send_text(
                    json.dumps({"type": "error", "message": "Expected a JSON text frame"})
                )
                continue

            try:
                apply_client_message(entry, json.loads(raw["text"]))
            except (AttributeError, KeyError, TypeError, ValueError, IndexError) as e:
                await websocket.send_text(json.dumps({"type": "error", "message": str(e)}))
                continue

            message = playback_message(entry)
            state = (message["active_index"], message["mode"])
            if state != last_state or message["commands"]:
                await websocket.send_text(json.dumps(message))
                last_state = state
    except WebSocketDisconnect:
        pass
    finally:
        print(f"Playback disconnected for session {token[:8]}...")
