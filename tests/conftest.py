"""
Pytest Configuration and Fixtures
"""

import random
import sys
import tempfile
from pathlib import Path
from typing import Callable, Generator

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from inkloc.file_handler import DefaultFileHandler
from inkloc.models import Story
from inkloc.parser import InkParser


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep INKLOC_* variables from the host out of the tests."""
    for var in ("INKLOC_RETAG_ALL", "INKLOC_DEBUG_OUTPUT", "INKLOC_SEED"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def write_ink(temp_dir: Path) -> Callable[[str, str], Path]:
    """Write an ink source into temp_dir and return its path."""
    def _write(name: str, text: str) -> Path:
        path = temp_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def parse(temp_dir: Path) -> Callable[..., Story]:
    """Parse ink text as if it were temp_dir/<file_name>; fails on parse errors."""
    def _parse(text: str, file_name: str = "main.ink") -> Story:
        errors = []
        parser = InkParser(
            text,
            str(temp_dir / file_name),
            lambda msg, kind: errors.append(msg),
            DefaultFileHandler(temp_dir),
        )
        story = parser.parse()
        assert not parser.has_errors, errors
        return story
    return _parse


@pytest.fixture
def sample_story_files(write_ink) -> Path:
    """A small story with an include, a knot and a stitch."""
    write_ink("main.ink", (
        "INCLUDE chapter.ink\n"
        "VAR player = \"Ann\"\n"
        "Welcome to the story.\n"
        "-> intro\n"
        "\n"
        "=== intro ===\n"
        "Hello world\n"
        "Bonjour #loc:main_intro_KEEP\n"
        "* [Go north] -> north\n"
        "* [Stay] -> END\n"
        "\n"
        "= north\n"
        "It is cold. // brr\n"
        "-> END\n"
    ))
    path = write_ink("chapter.ink", (
        "=== chapter_one ===\n"
        "Once upon a time.\n"
        "-> END\n"
    ))
    return path.parent
