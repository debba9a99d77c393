"""Bot-to-human handoff: conversation routing, transcripts and leads."""

from .__version__ import __version__

__all__ = ["__version__"]
