"""
Newscast: turn a web article into a short narrated podcast.

Modules:

* ``core`` - article extraction, HTTP helpers and the error taxonomy.
* ``podcasts`` - Gemini script writing and ElevenLabs speech synthesis.
* ``repository`` / ``storage`` - Supabase tables and audio bucket.
* ``pipeline`` - the generation orchestrator used by every entry point.
"""

__version__ = "2.0.0"
