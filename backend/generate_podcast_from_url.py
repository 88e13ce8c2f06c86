#!/usr/bin/env python3
"""
Command-line Podcast Generator

Runs the same generation pipeline as the API for a single article URL and
optionally saves the script and MP3 locally.

Usage:
    python generate_podcast_from_url.py https://news.example/story-1
    python generate_podcast_from_url.py https://news.example/story-1 --user alice --output podcasts/
"""

import sys
import asyncio
import argparse
import logging
from pathlib import Path
from typing import Optional

import httpx

from newscast.config import configure_logging, load_settings
from newscast.pipeline import GenerationResult
from newscast.services import build_pipeline

logger = logging.getLogger(__name__)


def save_files(script: str, audio_data: Optional[bytes], base_name: str, output_dir: str = "output") -> Path:
    """
    Save script and audio to files.

    Args:
        script: The podcast script text
        audio_data: MP3 audio bytes, if they could be read back
        base_name: Filename without extension
        output_dir: Directory to save files to

    Returns:
        The output directory
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    script_path = output_path / f"{base_name}.txt"
    script_path.write_text(script)
    logger.info(f"💾 Script saved to: {script_path}")

    if audio_data:
        audio_path = output_path / f"{base_name}.mp3"
        audio_path.write_bytes(audio_data)
        logger.info(f"🎵 Audio saved to: {audio_path}")
    else:
        logger.warning("Audio could not be read back from storage, only the script was saved")

    return output_path


async def run(url: str, user: Optional[str], output: Optional[str]) -> GenerationResult:
    settings = load_settings()

    async with httpx.AsyncClient() as http_client:
        pipeline = build_pipeline(settings, http_client)
        result = await pipeline.generate(url, user)

        if result.success and output:
            record = result.record
            audio_data = await asyncio.to_thread(pipeline.audio_store.get, record.audio_object_key)
            save_files(record.script, audio_data, Path(record.audio_object_key).stem, output)

    return result


def main():
    parser = argparse.ArgumentParser(
        description="Generate a narrated podcast from an article URL",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Generate and print the result:
    %(prog)s https://news.example/story-1

  Generate on behalf of a user and keep local copies:
    %(prog)s https://news.example/story-1 --user alice --output podcasts/
        """
    )
    parser.add_argument('url', help='Article URL')
    parser.add_argument('--user', '-u', default=None, help='Owner id (default: anonymous)')
    parser.add_argument('--output', '-o', default=None, help='Directory for the script and MP3')

    args = parser.parse_args()

    configure_logging()

    try:
        result = asyncio.run(run(args.url, args.user, args.output))
    except KeyboardInterrupt:
        logger.info("Cancelled by user")
        return 130
    except Exception as e:
        logger.error(f"❌ Failed to start pipeline: {e}", exc_info=True)
        return 1

    if not result.success:
        logger.error(f"❌ {result.error.step} failed [{result.error.category}]: {result.error.message}")
        return 1

    record = result.record
    logger.info("=" * 80)
    logger.info(f"✅ {'CACHED' if result.cached else 'GENERATED'}: {record.title}")
    logger.info("=" * 80)
    logger.info(f"Audio URL: {record.audio_url}")
    logger.info(f"Script ({record.script_length or len(record.script)} characters):\n{record.script}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
