"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import pytest
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from learnsync.core.models import Course, Identity, Lesson, Role, Slide, StudentOwner  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (full session flows)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
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
def sample_course():
    """A two-lesson course with starting code on the first slide of each lesson."""
    return Course(
        id="course-1",
        title="Intro to Python",
        lessons=[
            Lesson(
                id="lesson-1",
                title="Variables",
                order=1,
                slides=[
                    Slide(id="slide-1a", order=1, starting_code="x = 1"),
                    Slide(id="slide-1b", order=2),
                    Slide(id="slide-1c", order=3),
                ],
            ),
            Lesson(
                id="lesson-2",
                title="Loops",
                order=2,
                slides=[
                    Slide(id="slide-2a", order=1, starting_code="for i in range(3): pass"),
                    Slide(id="slide-2b", order=2),
                ],
            ),
        ],
    )


@pytest.fixture
def student_identity():
    """A resolved student identity that syncs remotely."""
    return Identity(
        owner=StudentOwner(student_id="student-1"),
        email="ada@example.com",
        user_id="user-1",
        name="Ada Lovelace",
        initials="AL",
        role=Role.STUDENT,
    )


@pytest.fixture
def sample_progress_data():
    """A progress service response for student-1 in course-1."""
    return {
        "_id": "progress-1",
        "studentId": "student-1",
        "courseId": "course-1",
        "currentLesson": "lesson-2",
        "currentSlide": "slide-2b",
        "timeSpent": {"2026-W41": 30, "2026-W42": 12},
        "completedLessons": {
            "lesson-1": {
                "isCompleted": True,
                "completedAt": "2026-10-10T09:00:00Z",
                "timeSpent": 20,
                "lastAccessed": "2026-10-10T09:00:00Z",
            },
        },
        "lessonCode": {
            "lesson-2": {
                "language": "python",
                "code": "for i in range(10): print(i)",
                "timestamp": "2026-10-12T10:00:00Z",
            },
        },
        "completionPercentage": 50,
        "lastAccessed": "2026-10-12T10:00:00Z",
    }
