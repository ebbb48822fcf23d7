"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from quizdoc.markers import MarkerConfig  # noqa: E402
from quizdoc.normalizer import normalize_text  # noqa: E402
from quizdoc.pipeline import QuizImportPipeline  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (full pipeline)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def markers():
    """English marker configuration."""
    return MarkerConfig.english()


@pytest.fixture
def vi_markers():
    """Vietnamese marker configuration."""
    return MarkerConfig.vietnamese()


@pytest.fixture
def pipeline():
    """Pipeline with the default (English + Vietnamese) markers."""
    return QuizImportPipeline()


@pytest.fixture
def lines():
    """Build logical lines from plain text."""
    return normalize_text


@pytest.fixture
def choice_quiz_text():
    """Three choice questions marked with asterisks."""
    return (
        "Chapter 2 quiz\n"
        "Answer every question.\n"
        "\n"
        "1. What is 2+2?\n"
        "A. 3\n"
        "B. *4\n"
        "C. 5\n"
        "\n"
        "2. Which planet is largest?\n"
        "A. *Jupiter\n"
        "B. Mars\n"
        "\n"
        "3. Which are prime numbers? (Select all that apply)\n"
        "A. *2\n"
        "B. *3\n"
        "C. 4\n"
    )


@pytest.fixture
def keyed_quiz_text():
    """Ten unmarked choice questions with an answer key covering eight."""
    questions = []
    for number in range(1, 11):
        questions.append(
            f"{number}. Sample question number {number}?\n"
            "A. first\n"
            "B. second\n"
            "C. third\n"
        )
    key = "Answer key\n" + "\n".join(f"{n}. {'ABC'[n % 3]}" for n in range(1, 9))
    return "\n".join(questions) + "\n" + key + "\n"
