"""
Shared fixtures for twinseek tests.
Creates isolated temporary directories with controlled files and synthetic images.
"""
import shutil
import pytest
import tempfile
from pathlib import Path
from typing import Dict, List
import sys

import numpy as np
from PIL import Image

# Add src/ to sys.path so 'twinseek' is importable without installation
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))


def pattern_array(shift: int = 0, width: int = 96, height: int = 64) -> np.ndarray:
    """
    Mid-tone test pattern: horizontal red ramp, vertical green ramp and a blue
    checkerboard. All values stay within [60, 210] so brightness shifts never clip.
    """
    y, x = np.mgrid[0:height, 0:width]
    r = 60 + x * 140 // (width - 1)
    g = 60 + y * 140 // (height - 1)
    b = 60 + ((x // 16 + y // 16) % 2) * 140
    rgb = np.stack([r, g, b], axis=2) + shift
    return np.clip(rgb, 0, 255).astype(np.uint8)


def gradient_array(increasing: bool = True, width: int = 256, height: int = 64) -> np.ndarray:
    """Grayscale horizontal ramp as RGB; brightness grows (or falls) left to right."""
    ramp = np.linspace(40, 220, width)
    if not increasing:
        ramp = ramp[::-1]
    gray = np.tile(ramp, (height, 1)).astype(np.uint8)
    return np.stack([gray, gray, gray], axis=2)


def save_image(array: np.ndarray, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(array, "RGB").save(path)
    return path


@pytest.fixture
def temp_dir():
    """Creates isolated temporary directory, auto-cleanup after test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def duplicate_tree(temp_dir) -> Dict[str, Path]:
    """
    Two roots with controlled exact-duplicate scenarios:
    - report.txt in both roots, identical content (1KB)
    - notes.txt in both roots, same size but different content
    - renamed.txt: same content as report.txt under another name
    - unique.txt: no counterpart
    - .env in both roots (hidden files, always filtered)
    - .cache/report.txt (inside a hidden directory, never visited)
    """
    root1 = temp_dir / "root1"
    root2 = temp_dir / "root2"
    (root2 / "sub").mkdir(parents=True)
    root1.mkdir()

    files = {"root1": root1, "root2": root2}
    report = b"R" * 1024

    files["report_1"] = root1 / "report.txt"
    files["report_2"] = root2 / "report.txt"
    files["report_1"].write_bytes(report)
    files["report_2"].write_bytes(report)

    files["notes_1"] = root1 / "notes.txt"
    files["notes_2"] = root2 / "sub" / "notes.txt"
    files["notes_1"].write_bytes(b"N" * 100)
    files["notes_2"].write_bytes(b"M" * 100)

    files["renamed"] = root2 / "renamed.txt"
    files["renamed"].write_bytes(report)

    files["unique"] = root1 / "unique.txt"
    files["unique"].write_bytes(b"U" * 1500)

    files["env_1"] = root1 / ".env"
    files["env_2"] = root2 / ".env"
    files["env_1"].write_bytes(b"SECRET=1")
    files["env_2"].write_bytes(b"SECRET=1")

    hidden_dir = root1 / ".cache"
    hidden_dir.mkdir()
    files["hidden_report"] = hidden_dir / "report.txt"
    files["hidden_report"].write_bytes(report)

    return files


@pytest.fixture
def photo_tree(temp_dir) -> Dict[str, Path]:
    """
    d1/photo.png and d2/photo.png are byte-identical copies;
    d3/variant.bmp has the same pixels in another format (different size).
    """
    files = {}
    files["photo_1"] = save_image(pattern_array(), temp_dir / "d1" / "photo.png")
    files["photo_2"] = temp_dir / "d2" / "photo.png"
    files["photo_2"].parent.mkdir()
    shutil.copyfile(files["photo_1"], files["photo_2"])
    files["variant"] = save_image(pattern_array(), temp_dir / "d3" / "variant.bmp")
    files["roots"] = [temp_dir / "d1", temp_dir / "d2", temp_dir / "d3"]
    return files


@pytest.fixture
def variant_images(temp_dir) -> List[Path]:
    """Six brightness variants of one pattern (v0.png … v5.png) in one directory."""
    folder = temp_dir / "variants"
    return [save_image(pattern_array(shift=2 * n), folder / f"v{n}.png") for n in range(6)]


@pytest.fixture
def gradient_images(temp_dir) -> List[Path]:
    """Two images whose difference hashes are exact opposites."""
    folder = temp_dir / "gradients"
    return [
        save_image(gradient_array(increasing=True), folder / "up.png"),
        save_image(gradient_array(increasing=False), folder / "down.png"),
    ]
