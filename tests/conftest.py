"""
Shared fixtures for brew-lang-count tests.
"""

import json

import pytest

from brew_lang_count.cli_config import reset_config
from brew_lang_count.error_handling import setup_error_handling
from brew_lang_count.formula import Formula


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Run every test in an empty working directory with default config."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for name in [
        "BREW_LANG_COUNT_CACHE_FILE",
        "BREW_LANG_COUNT_API_URL",
        "BREW_LANG_COUNT_MAX_AGE_DAYS",
        "BREW_LANG_COUNT_DEFAULT_QUERY",
        "BREW_LANG_COUNT_USER_AGENT",
        "BREW_LANG_COUNT_CONNECT_TIMEOUT",
        "BREW_LANG_COUNT_READ_TIMEOUT",
        "BREW_LANG_COUNT_LOG_LEVEL",
    ]:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    setup_error_handling()
    yield
    reset_config()


@pytest.fixture
def temp_dir(tmp_path):
    """Temporary directory for test files."""
    return tmp_path


@pytest.fixture
def sample_catalog_data():
    """Two formulas: foo builds with rust, bar needs rust@1.70 and optionally python."""
    return [
        {
            "name": "foo",
            "full_name": "foo",
            "desc": "Example formula built with Rust",
            "build_dependencies": ["rust"],
            "dependencies": [],
            "test_dependencies": [],
            "recommended_dependencies": [],
            "optional_dependencies": None,
        },
        {
            "name": "bar",
            "build_dependencies": [],
            "dependencies": ["rust@1.70"],
            "test_dependencies": [],
            "recommended_dependencies": [],
            "optional_dependencies": ["python"],
        },
    ]


@pytest.fixture
def sample_catalog(sample_catalog_data):
    """Sample catalog as Formula records."""
    return [Formula.from_dict(entry) for entry in sample_catalog_data]


@pytest.fixture
def larger_catalog():
    """Catalog exercising every dependency category and repeated build deps."""
    return [
        Formula(
            name="ripgrep",
            build_dependencies=("rust", "pkgconf"),
            dependencies=("pcre2",),
        ),
        Formula(
            name="fish",
            build_dependencies=("cmake", "rust", "cmake"),
            dependencies=("pcre2",),
        ),
        Formula(
            name="pytool",
            build_dependencies=("pkgconf",),
            dependencies=("python@3.12",),
            test_dependencies=("rust",),
        ),
        Formula(
            name="docs-gen",
            recommended_dependencies=("rust",),
            optional_dependencies=("python@3.11",),
        ),
        Formula(name="plain"),
    ]


@pytest.fixture
def catalog_file(temp_dir, sample_catalog_data):
    """Fresh catalog snapshot written to the default cache file name."""
    path = temp_dir / "core_formulas.json"
    path.write_text(json.dumps(sample_catalog_data), encoding="utf-8")
    return path
