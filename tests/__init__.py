"""
Test Package
============

Unit and integration tests for the Browser Operator.

Test organization:
    - test_loop.py: Agent loop orchestration tests
    - test_agent.py: Computer-use model adapter tests
    - test_browser.py: Browserbase browser tests
    - test_state_store.py: Checkpoint storage tests
    - test_slack.py: Slack reporter and events endpoint tests
    - test_api.py: FastAPI endpoint tests

Run tests with:
    pytest tests/ -v
    pytest tests/ -v --cov=app --cov-report=html
"""
