"""Exceptions for revision comparison."""

import uuid as uuid_pkg


class RevisionNotFoundError(Exception):
    """A requested revision does not exist in the ledger."""

    def __init__(self, revision_id: uuid_pkg.UUID):
        self.revision_id = revision_id
        super().__init__(f"Revision {revision_id} not found")
