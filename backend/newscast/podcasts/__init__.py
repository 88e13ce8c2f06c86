"""
Podcast generation: narration scripts and speech synthesis.
"""

from .script import ScriptSummarizer, normalize_generation_response
from .audio import SpeechSynthesizer

__all__ = [
    'ScriptSummarizer',
    'SpeechSynthesizer',
    'normalize_generation_response',
]
