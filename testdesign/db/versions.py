"""Append-only version chain for test design documents.

For each design, version_no runs 1, 2, 3... with no gaps. Version 1 is the
model's output; every later version is a user edit. Rows are never updated
or deleted, so the chain doubles as the audit trail and the undo history.
"""

from typing import Optional

from testdesign.db.storage import DesignStorage, VersionRecord
from testdesign.llm.errors import DesignNotFoundError
from testdesign.schemas.ir import DesignDocument
from testdesign.utils.logging import log, get_logger

MODULE = "db.versions"
logger = get_logger()


class VersionStore:
    def __init__(self, storage: DesignStorage):
        self._storage = storage

    async def create_initial(self, design_id: str, document: DesignDocument) -> VersionRecord:
        """Insert version 1 (edited_by="model").

        Raises:
            DesignNotFoundError: no design job with this id
        """
        async with self._storage.transaction() as tx:
            if await tx.find_design_by_id(design_id) is None:
                raise DesignNotFoundError(design_id)
            version = await tx.insert_version(design_id, 1, document.to_json(), "model")

        self._log_saved(version, document)
        return version

    async def append_user_edit(self, design_id: str, document: DesignDocument) -> VersionRecord:
        """Insert latest+1 (edited_by="user").

        The design row is locked before reading the max version, so two
        concurrent saves to one design commit as N+1 and N+2, never N+1 twice.

        Raises:
            DesignNotFoundError: no design job with this id
        """
        async with self._storage.transaction() as tx:
            if await tx.find_design_by_id(design_id, for_update=True) is None:
                raise DesignNotFoundError(design_id)
            current = await tx.find_max_version_no(design_id)
            version = await tx.insert_version(
                design_id, _next_version_no(current), document.to_json(), "user",
            )

        self._log_saved(version, document)
        return version

    async def get_latest(self, design_id: str) -> Optional[VersionRecord]:
        return await self._storage.find_latest_version(design_id)

    @staticmethod
    def _log_saved(version: VersionRecord, document: DesignDocument) -> None:
        log.info(logger, MODULE, "version_saved", "IR version saved",
                 design_id=version.design_id, version_no=version.version_no,
                 edited_by=version.edited_by, rows=len(document.rows))


def _next_version_no(current: Optional[int]) -> int:
    return (current or 0) + 1

