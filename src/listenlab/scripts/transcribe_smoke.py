import json
import sys
import tempfile
import wave

import numpy as np

from listenlab.transcript import transcribe_audio


def generate_silence_wav(path: str, duration_sec: float = 2.0, sample_rate: int = 16000):
    num_samples = int(duration_sec * sample_rate)
    samples = np.zeros(num_samples, dtype=np.int16)

    with wave.open(path, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(samples.tobytes())


def main():
    if len(sys.argv) > 1:
        audio_path = sys.argv[1]
    else:
        with tempfile.NamedTemporaryFile(suffix=".wav", delete=False) as f:
            audio_path = f.name
        generate_silence_wav(audio_path, duration_sec=2.0)

    mime_type = "audio/mpeg" if audio_path.endswith(".mp3") else "audio/wav"
    with open(audio_path, "rb") as f:
        sentences = transcribe_audio(f.read(), mime_type)

    print(json.dumps([s.to_dict() for s in sentences], indent=2, ensure_ascii=False))
    print(f"\nTranscribed {len(sentences)} sentences")


if __name__ == "__main__":
    main()
