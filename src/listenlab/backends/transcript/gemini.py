"""Gemini transcript backend using the google-genai SDK.

Gemini receives the audio inline together with a fixed instruction and a JSON
response schema, and returns the sentence list as structured JSON.
"""

from __future__ import annotations

import json
import os

from listenlab.backends.base import TranscriptBackend
from listenlab.backends.types import Sentence
from listenlab.errors import ConfigurationError, ServiceError

TRANSCRIPT_MODEL = os.getenv("TRANSCRIPT_MODEL", "gemini-2.5-flash")
TRANSCRIPT_TEMPERATURE = float(os.getenv("TRANSCRIPT_TEMPERATURE", "0.2"))
TRANSCRIPT_TIMEOUT_MS = int(os.getenv("TRANSCRIPT_TIMEOUT_MS", "120000"))
TRANSLATION_LANGUAGE = os.getenv("TRANSLATION_LANGUAGE", "Chinese")

TRANSCRIPT_PROMPT = """Please transcribe the following audio file.
1. Split the transcription into natural, grammatical sentences.
2. Provide the precise start and end timestamp (in seconds) for each sentence relative to the beginning of the audio.
3. Provide a {language} translation for each sentence.
4. Ensure the output strictly follows the JSON schema provided."""


def build_response_schema(language: str = TRANSLATION_LANGUAGE) -> dict:
    """JSON schema (OpenAPI subset) describing the expected sentence array."""
    return {
        "type": "ARRAY",
        "items": {
            "type": "OBJECT",
            "properties": {
                "text": {
                    "type": "STRING",
                    "description": "The transcribed text of the sentence.",
                },
                "startTime": {
                    "type": "NUMBER",
                    "description": "The start time of the sentence in seconds (e.g., 1.5).",
                },
                "endTime": {
                    "type": "NUMBER",
                    "description": "The end time of the sentence in seconds (e.g., 4.2).",
                },
                "translation": {
                    "type": "STRING",
                    "description": f"A natural {language} translation of the sentence.",
                },
            },
            "required": ["text", "startTime", "endTime", "translation"],
        },
    }


def _as_seconds(value: object, field_name: str, index: int) -> float:
    # bool is an int subclass but never a timestamp
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ServiceError(f"Sentence {index}: '{field_name}' is not a number")
    return float(value)


def parse_sentences(payload: str) -> list[Sentence]:
    """Parse the JSON text returned by the model into sentences.

    Raises:
        ServiceError: If the payload is not a JSON array of sentence records.
    """
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ServiceError(f"Failed to parse transcript response: {e}") from e

    if not isinstance(data, list):
        raise ServiceError("Transcript response is not a list of sentences")

    sentences = []
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            raise ServiceError(f"Sentence {i}: expected an object")
        text = item.get("text")
        if not isinstance(text, str):
            raise ServiceError(f"Sentence {i}: missing 'text'")
        if "startTime" not in item or "endTime" not in item:
            raise ServiceError(f"Sentence {i}: missing timestamps")
        translation = item.get("translation")
        if translation is not None and not isinstance(translation, str):
            raise ServiceError(f"Sentence {i}: 'translation' is not a string")
        sentences.append(
            Sentence(
                text=text,
                start_time=_as_seconds(item["startTime"], "startTime", i),
                end_time=_as_seconds(item["endTime"], "endTime", i),
                translation=translation,
            )
        )
    return sentences


class GeminiTranscriptBackend(TranscriptBackend):
    """Gemini transcription + sentence segmentation + translation backend."""

    def __init__(self, api_key: str | None = None) -> None:
        self.api_key = api_key
        self._client = None

    def load_model(self) -> None:
        if self._client is not None:
            return
        api_key = self.api_key or os.getenv("GEMINI_API_KEY")
        if not api_key:
            raise ConfigurationError("API Key is missing. Please check your configuration.")

        from google import genai
        from google.genai import types

        # Explicit timeout, the SDK default can hang on large uploads
        self._client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=TRANSCRIPT_TIMEOUT_MS),
        )
        print(f"Gemini client ready (model: {TRANSCRIPT_MODEL})")

    def warmup(self) -> None:
        self.load_model()
        print("  Transcript backend configured")

    def transcribe(self, audio: bytes, mime_type: str) -> list[Sentence]:
        self.load_model()

        import httpx
        from google.genai import errors, types

        try:
            response = self._client.models.generate_content(
                model=TRANSCRIPT_MODEL,
                contents=[
                    types.Part.from_bytes(data=audio, mime_type=mime_type),
                    TRANSCRIPT_PROMPT.format(language=TRANSLATION_LANGUAGE),
                ],
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=build_response_schema(),
                    temperature=TRANSCRIPT_TEMPERATURE,
                ),
            )
        except (errors.APIError, httpx.HTTPError) as e:
            print(f"Gemini API Error: {e}")
            raise ServiceError(f"Transcript request failed: {e}") from e

        if not response.text:
            raise ServiceError("No data received from Gemini.")
        return parse_sentences(response.text)
