# tests/conftest.py

import os
import sys

import pytest
from sqlalchemy.orm import sessionmaker

# Add the parent directory to the Python path so we can import from it
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import Base, build_engine  # noqa: E402
import models  # noqa: E402,F401
from services.job_store import JobStore  # noqa: E402


def _component_source(name: str) -> str:
    return f"""import React from 'react';
import {{ AbsoluteFill, useCurrentFrame, interpolate }} from 'remotion';

export const {name}: React.FC = () => {{
  const frame = useCurrentFrame();
  const opacity = interpolate(frame, [0, 30], [0, 1], {{ extrapolateLeft: 'clamp', extrapolateRight: 'clamp' }});
  return <AbsoluteFill style={{{{ backgroundColor: '#0f172a', opacity }}}} />;
}};
"""


@pytest.fixture
def component_source():
    """Builds a compliant component exported under the given name."""
    return _component_source


@pytest.fixture
def session_factory():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return JobStore(session_factory)
