import os
import sys

# Ensure project root is on sys.path for test imports
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

import pytest  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_process_state(monkeypatch) -> None:
    """Settings are lru_cached and the exam session is process-global; isolate both."""
    from exam_agent.services.session import set_exam_session
    from exam_agent.utils.settings import get_settings

    monkeypatch.setenv("LOG_TO_FILE", "0")
    get_settings.cache_clear()
    set_exam_session(None)
    yield
    set_exam_session(None)
    get_settings.cache_clear()
