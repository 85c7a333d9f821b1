"""
IRC Logs - Archived IRC log browser with an ask assistant
=========================================================

FastAPI service over a tree of dated channel logs, plus an assistant that
answers questions by searching the logs through a small set of tools and
streams its progress as Server-Sent Events.

Key Features:
    - **Channel Tree**: Log roots discovered once at startup, merged across roots
    - **Search Tool**: Regex search with context windows and count mode over dated logs
    - **Ask Sessions**: Model turn loop with typed tool dispatch and bounded concurrency
    - **Artifacts**: Curated answers saved as markdown and served as HTML
"""

__version__ = "1.0.0"
