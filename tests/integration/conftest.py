import pytest


def pytest_collection_modifyitems(items):
    """Mark tests in this directory as integration, and database-backed ones as such."""
    for item in items:
        if "/integration/" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
            if "initialized_db" in getattr(item, "fixturenames", ()):
                item.add_marker(pytest.mark.database)


@pytest.fixture
def publisher():
    """Records every published (topic, message) pair."""

    class RecordingPublisher:
        def __init__(self):
            self.published = []

        def publish(self, topic, message):
            self.published.append((topic, message))

    return RecordingPublisher()
