import logging
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from eventwire import global_listeners
from eventwire.broadcasters import get_broadcasters
from eventwire.config import get_settings
from eventwire.submitters import shutdown_default_submitter


@pytest.fixture(autouse=True)
def reset_dispatch_state():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    get_settings.cache_clear()
    get_broadcasters.cache_clear()
    yield
    global_listeners.clear()
    shutdown_default_submitter()
    get_settings.cache_clear()
    get_broadcasters.cache_clear()
    # configure_logging(force=True) replaces root handlers
    root.handlers[:] = handlers
    root.setLevel(level)
