from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv


def _candidate_env_files() -> List[Path]:
    repo_root = Path(__file__).resolve().parents[2]
    return [repo_root / ".env", Path.home() / ".fxsim" / ".env"]


def load_local_environment() -> Optional[Path]:
    """Apply the first ``.env`` found: the checkout root, then ``~/.fxsim``.

    Values in the file win over the process environment. Returns the file
    used, or None; ``FXSIM_ENV_PATH`` records it either way.
    """
    candidates = _candidate_env_files()
    for env_file in candidates:
        if env_file.exists():
            load_dotenv(dotenv_path=env_file, override=True)
            os.environ["FXSIM_ENV_PATH"] = str(env_file)
            return env_file
    os.environ.setdefault("FXSIM_ENV_PATH", str(candidates[0]))
    return None
