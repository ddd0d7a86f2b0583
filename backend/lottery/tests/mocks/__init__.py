from lottery.tests.mocks.annotation import BrokenAnnotationService, FailingAnnotationService, MockAnnotationService
from lottery.tests.mocks.storage import FailingSnapshotStorage, MemorySnapshotStorage

__all__ = [
    "BrokenAnnotationService",
    "FailingAnnotationService",
    "FailingSnapshotStorage",
    "MemorySnapshotStorage",
    "MockAnnotationService",
]
