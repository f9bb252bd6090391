"""
News Clip Pipeline - Story segmentation and clip cutting for news broadcasts.

A pipeline for:
- Flattening word-level transcription insights into a timed word timeline
- Aggregating the timeline into fixed 20-second transcript blocks
- Enriching blocks with speaker, sentiment and topic hints
- Asking GPT to group blocks into stories and refine the cut points
- Cutting the resulting ranges losslessly with ffmpeg
"""

__version__ = "0.1.0"
