"""
Browser Operator
================

Goal-driven browser automation agent.

Given a natural-language goal, the operator asks the OpenAI computer-use
model for the next UI action, runs it in a remote Browserbase session and
feeds the resulting screenshot back until the model answers.

Modules:
    - api: FastAPI routes (demo runner, Slack events, health)
    - agent: Agent loop, model adapter and step/state types
    - browser: Remote browser abstraction (Browserbase + Playwright)
    - chat: Progress reporters (log output, Slack threads)
    - storage: Loop state checkpoints (Vercel Blob)
    - utils: Logging helpers
"""

__version__ = "1.0.0"
__author__ = "Browser Operator Team"
