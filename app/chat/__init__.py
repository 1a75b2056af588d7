"""
Chat Module
===========

Progress reporting for the agent loop.

This package contains:
    - reporter: Reporter interface and the structured-log reporter
    - slack: Slack thread reporter
"""

from app.chat.reporter import LogReporter, ProgressReporter, live_view_url
from app.chat.slack import SlackReporter

__all__ = [
    "ProgressReporter",
    "LogReporter",
    "SlackReporter",
    "live_view_url",
]
