import os
import sys
import tempfile
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Keep settings side effects (data/log directories) out of the user's home.
os.environ.setdefault("RENTDESK_DATA_DIR", tempfile.mkdtemp(prefix="rentdesk-tests-"))

import pytest
from sqlmodel import Session, SQLModel, create_engine

import models  # noqa: F401


@pytest.fixture()
def session_factory():
    engine = create_engine("sqlite:///:memory:")
    SQLModel.metadata.create_all(engine)

    def factory():
        return Session(engine)

    return factory
