import asyncio
import os
import sys

# Add project root to path so we can import voice_capture
sys.path.append(os.getcwd())

from voice_capture.config.settings import TranscriptionConfig
from voice_capture.context import RequestContext
from voice_capture.services.transcribe import TranscriptionClient, TranscriptionError


async def main():
    if len(sys.argv) < 2:
        print("Usage: python scripts/test_transcribe.py path/to/audio.m4a")
        return 2

    file_path = sys.argv[1]
    if not os.path.exists(file_path):
        print(f"File '{file_path}' not found. Please provide a path to an audio file.")
        return 2

    print(f"Reading {file_path}...")
    with open(file_path, "rb") as f:
        audio_bytes = f.read()

    # Reads VOICE_API_KEY / VOICE_API_BASE_URL from the environment or .env
    client = TranscriptionClient(TranscriptionConfig())
    context = RequestContext()

    print(f"Transcribing {len(audio_bytes)} bytes (request_id={context.request_id})...")
    try:
        result = await client.transcribe(audio_bytes, os.path.basename(file_path), context)
    except TranscriptionError as e:
        print(f"\nTranscription Error [{e.code.value}]: {e}")
        return 1
    finally:
        await client.aclose()

    print("\n--- Transcript Result ---")
    print(result.text)
    print(f"(language: {result.language or 'not reported'})")
    print("-------------------------")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
