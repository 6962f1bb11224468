"""Shared pytest fixtures for canonfts tests."""
import json
import sys
from pathlib import Path

import pytest

# Make the src layout importable without an editable install
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from canonfts import cfgload  # noqa: E402
from canonfts.store import fts5_available  # noqa: E402


@pytest.fixture
def requires_fts5():
    """Skip tests that need SQLite's FTS5 extension when it is missing."""
    if not fts5_available():
        pytest.skip("SQLite build has no FTS5 support")


@pytest.fixture
def sample_tree():
    """Tree definition with two content files and one structural node."""
    return {
        "sp": ["Sutta Pitaka", "සූත්‍ර පිටකය", 0, [0, 0], "", ""],
        "dn": ["Digha Nikaya", "දීඝ නිකාය", 1, [0, 0], "sp", ""],
        "dn-1": ["Brahmajala", "බ්‍රහ්මජාල", 2, [0, 0], "dn", "dn-1"],
        "dn-1-1": ["Paribbajaka", "පරිබ්‍රාජක", 3, [0, 3], "dn-1", "dn-1"],
        "dn-1-2": ["Cula sila", "චූල ශීල", 3, [2, 0], "dn-1", "dn-1"],
        "dn-2": ["Samannaphala", "සාමඤ්ඤඵල", 2, [0, 0], "dn", "dn-2"],
    }


@pytest.fixture
def sample_documents():
    """Source documents keyed by filename stem."""
    return {
        "dn-1": {
            "pages": [
                {
                    "pali": {"entries": [
                        {"text": "Dīghanikāyo", "type": "heading", "level": 3},
                        {"text": "*Brahmajālasuttaṃ*", "type": "heading", "level": 2},
                        {"text": "***"},
                        {"text": "Evaṃ me sutaṃ{1}"},
                    ]},
                    "sinh": {"entries": [
                        {"text": "දීඝ නිකාය", "type": "heading", "level": 3},
                        {"text": "මා විසින් මෙසේ අසන ලදී."},
                    ]},
                },
                {
                    "pali": {"entries": [{"text": "Tatra kho\nbhagavā"}]},
                },
                {
                    "pali": {"entries": [{"text": "Cūḷasīlaṃ", "type": "heading", "level": 2}]},
                    "sinh": {"entries": [{"text": "චූල ශීලය", "type": "heading", "level": 2}]},
                },
            ]
        },
        "dn-2": {
            "pages": [
                {"pali": {"entries": [{"text": "Sāmaññaphalasuttaṃ"}]}},
            ]
        },
    }


def write_json(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def test_env(tmp_path, sample_tree, sample_documents):
    """Create an isolated corpus on disk and a config pointing at it.

    Returns dict with:
        - input_dir: folder with the source JSON files
        - tree_path: tree definition file
        - db_path: output database path (not created yet)
        - config: validated config dict for build_index()
    """
    input_dir = tmp_path / "text"
    tree_path = write_json(tmp_path / "data" / "tree.json", sample_tree)
    for stem, document in sample_documents.items():
        write_json(input_dir / f"{stem}.json", document)
    db_path = tmp_path / "databases" / "bjt-fts.db"

    config = cfgload.load_config(
        write_config(tmp_path / "config.yaml", input_dir, tree_path, db_path)
    )
    return {
        "input_dir": input_dir,
        "tree_path": tree_path,
        "db_path": db_path,
        "config": config,
    }


def write_config(path: Path, input_dir: Path, tree_path: Path, db_path: Path, extra: str = "") -> Path:
    path.write_text(
        "paths:\n"
        f"  input_dir: {input_dir.as_posix()}\n"
        f"  tree_json: {tree_path.as_posix()}\n"
        f"  output_db: {db_path.as_posix()}\n"
        + extra,
        encoding="utf-8",
    )
    return path
