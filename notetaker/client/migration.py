"""Moving device-local notes into the account after sign-in.

Two strategies:

``ATOMIC`` (default) sends the notes in ``convert-local`` batches; each
batch is stored in one server transaction. Local copies are removed only
for batches the server accepted; everything else stays in the cache.

``BEST_EFFORT`` reproduces the legacy client: one ``POST /notes`` per note,
then the cache is wiped whatever happened. Notes whose upload failed are
lost; they are reported in ``MigrationResult.lost``.

Either way notes are sent in cache order (most recent first), one request
at a time, so server ids follow that order.
"""
import enum
import logging
from dataclasses import dataclass, field
from typing import List

from notetaker.client.api_client import ApiError, NotesApiClient
from notetaker.client.local_store import LocalNoteCache

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50


class MigrationMode(str, enum.Enum):
    ATOMIC = "atomic"
    BEST_EFFORT = "best_effort"


@dataclass
class MigrationResult:
    migrated: List[dict] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    lost: List[str] = field(default_factory=list)
    cleared: bool = False

    @property
    def ok(self) -> bool:
        return not self.failed and not self.lost


class MigrationReconciler:
    def __init__(
        self,
        cache: LocalNoteCache,
        mode: MigrationMode = MigrationMode.ATOMIC,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.cache = cache
        self.mode = mode
        self.batch_size = batch_size

    def run(self, api: NotesApiClient) -> MigrationResult:
        """Drain the cache through ``api``, which must carry the new session's token."""
        notes = self.cache.list_all()
        if not notes:
            return MigrationResult()
        if self.mode == MigrationMode.BEST_EFFORT:
            return self._run_best_effort(api, notes)
        return self._run_atomic(api, notes)

    def _run_atomic(self, api, notes) -> MigrationResult:
        result = MigrationResult()
        for start in range(0, len(notes), self.batch_size):
            batch = notes[start:start + self.batch_size]
            try:
                response = api.convert_local_notes([n.as_draft() for n in batch])
            except ApiError as exc:
                logger.error("Local note migration stopped: %s", exc)
                result.failed = [n.id for n in notes[start:]]
                break
            result.migrated.extend(response["notes"])

        if result.failed:
            self.cache.retain(result.failed)
        else:
            self.cache.clear_all()
            result.cleared = True
        logger.info(
            "Migrated %d local notes, %d kept on device", len(result.migrated), len(result.failed)
        )
        return result

    def _run_best_effort(self, api, notes) -> MigrationResult:
        result = MigrationResult()
        for note in notes:
            try:
                result.migrated.append(api.create_note(note.title, note.content, note.tags))
            except ApiError as exc:
                logger.error("Could not migrate local note %s: %s", note.id, exc)
                result.lost.append(note.id)

        self.cache.clear_all()
        result.cleared = True
        if result.lost:
            logger.warning("%d local notes were discarded after failed migration", len(result.lost))
        return result
