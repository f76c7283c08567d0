"""Repository-level pytest configuration.

Keeps the repository root importable so tests can ``import src...``, and
points evidence packs at a throwaway directory.
"""

import os
import tempfile

os.environ.setdefault("RUNS_DIR", os.path.join(tempfile.gettempdir(), "trancheready-test-runs"))
os.environ.setdefault("OPENAI_API_KEY", "")
