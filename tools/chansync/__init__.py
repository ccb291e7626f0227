"""
chansync – Keep a local copy of an imageboard thread's media.

Supports:
  • Extracting image/webm links from a thread page
  • Downloading new files with a bounded pool of worker threads
  • Skipping files already saved this run or present on disk
  • Re-polling the thread on an interval until a time budget runs out
"""

__version__ = "1.0.0"
