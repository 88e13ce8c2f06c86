"""
Script generation for podcasts.

Turns extracted article text into a short narration script with Gemini and
normalizes whatever envelope the model client hands back.
"""

import re
import logging
from typing import Any, Dict, List, Mapping, Union
from google import genai
from google.genai import types

from newscast.core.errors import InsufficientOutputError, InvalidInputError, ResponseFormatError
from newscast.core.extraction_service import (
    MAX_CONTENT_LENGTH,
    MIN_CONTENT_LENGTH,
    SENTENCE_FLOOR,
    truncate_at_sentence,
)

logger = logging.getLogger(__name__)

MIN_SCRIPT_LENGTH = 50
MAX_OUTPUT_TOKENS = 200
TEMPERATURE = 0.9
TOP_P = 0.95

SYSTEM_PROMPT = (
    "Create a short podcast script (100-150 words) in conversational tone. "
    "Start with a hook, be informative, end with a takeaway. NO meta-commentary."
)

_PREAMBLE_RE = re.compile(r"^(Here's|Here is|This is|I've created).*?:", re.IGNORECASE)
_FILLER_RE = re.compile(r"^(Sure|Okay|Alright)[,!.]?\s*", re.IGNORECASE)

# Shapes a text-generation client may return:
#   "plain text"
#   {"response": "..."}
#   {"result": {"response": "..."}}
#   an SDK response object exposing ``.text``
GenerationResponse = Union[str, Mapping[str, Any], Any]


def normalize_generation_response(response: GenerationResponse) -> str:
    """
    Extract the generated text from any supported response shape.

    Raises:
        ResponseFormatError if the shape is not recognized
    """
    if isinstance(response, str):
        return response

    if isinstance(response, Mapping):
        if isinstance(response.get("response"), str):
            return response["response"]
        result = response.get("result")
        if isinstance(result, Mapping) and isinstance(result.get("response"), str):
            return result["response"]
        raise ResponseFormatError(f"Invalid response format from AI model: keys {sorted(response)}")

    text = getattr(response, "text", None)
    if isinstance(text, str):
        return text

    raise ResponseFormatError(f"Invalid response format from AI model: {type(response).__name__}")


def clean_script(script: str) -> str:
    """Strip the preambles models like to open with."""
    cleaned = script.strip()
    cleaned = _PREAMBLE_RE.sub("", cleaned)
    cleaned = _FILLER_RE.sub("", cleaned)
    return cleaned.strip()


def build_messages(content: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": f"Article: {content}\n\nPodcast script:"},
    ]


class ScriptSummarizer:
    """Narration script writer backed by Gemini."""

    def __init__(self, genai_client: genai.Client, model: str = "gemini-2.0-flash"):
        self.client = genai_client
        self.model = model

    async def summarize(self, text: str) -> str:
        """
        Generate a ~100-150 word narration script from article text.

        Args:
            text: Extracted article text (at least 100 characters)

        Returns:
            Cleaned script text

        Raises:
            InvalidInputError: text missing or shorter than 100 characters
            ResponseFormatError: unrecognized model response
            InsufficientOutputError: cleaned script under 50 characters
        """
        if not isinstance(text, str) or len(text) < MIN_CONTENT_LENGTH:
            raise InvalidInputError(
                f"Content too short for summarization (minimum {MIN_CONTENT_LENGTH} characters)"
            )

        content = truncate_at_sentence(text, MAX_CONTENT_LENGTH, SENTENCE_FLOOR)
        if len(content) < len(text):
            logger.info(f"Truncated content from {len(text)} to {len(content)} characters")

        messages = build_messages(content)
        system = "\n".join(m["content"] for m in messages if m["role"] == "system")
        user = "\n".join(m["content"] for m in messages if m["role"] == "user")

        logger.info(f"Calling {self.model} for script generation...")
        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=user,
            config=types.GenerateContentConfig(
                system_instruction=system,
                max_output_tokens=MAX_OUTPUT_TOKENS,
                temperature=TEMPERATURE,
                top_p=TOP_P
            )
        )

        script = clean_script(normalize_generation_response(response))

        if len(script) < MIN_SCRIPT_LENGTH:
            raise InsufficientOutputError(
                f"AI generated insufficient content: {len(script)} characters",
                length=len(script)
            )

        logger.info(f"AI generated {len(script)} character script ({len(script.split())} words)")
        return script
