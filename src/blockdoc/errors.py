"""Exception types raised outside the block list editor."""


class BlockdocError(Exception):
    """Base class for blockdoc errors."""


class DocumentNotFound(BlockdocError):
    def __init__(self, document_id: int):
        super().__init__(f"Document {document_id} not found")
        self.document_id = document_id


class PersistenceError(BlockdocError):
    """The document repository rejected a create or update."""


class ConfigError(BlockdocError):
    """Invalid value in blockdoc.toml."""
