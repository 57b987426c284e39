"""Maps in-memory documents onto repository create/update calls."""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Callable

from .adapters.idgen import high_water_mark
from .core.content import empty_payload_for
from .core.model import DEFAULT_TITLE, Block, BlockType, Document, create_block
from .core.ports import DocumentRecord, DocumentRepository, IdGenerator
from .errors import DocumentNotFound, PersistenceError

logger = logging.getLogger(__name__)

IdGeneratorFactory = Callable[[Iterable[str], int], IdGenerator]


def record_to_document(record: DocumentRecord, idgen: IdGenerator | None = None) -> Document:
    """Build an editable document; empty content becomes one empty paragraph."""
    blocks = [Block.from_dict(b) for b in record.content]
    next_block_id = record.next_block_id
    if not blocks:
        blocks = [
            create_block(
                BlockType.PARAGRAPH.value,
                empty_payload_for(BlockType.PARAGRAPH),
                idgen=idgen,
            )
        ]
        next_block_id = max(next_block_id, high_water_mark(idgen) or 1)
    return Document(
        id=record.id,
        title=record.title or DEFAULT_TITLE,
        blocks=blocks,
        created_at=record.created_at,
        updated_at=record.updated_at,
        owner_id=record.owner_id,
        next_block_id=next_block_id,
    )


def next_block_id_for(blocks: Iterable[Block], floor: int | None = None) -> int:
    """High-water mark to store: past every numeric block id and never below `floor`."""
    numeric = [int(b.id) for b in blocks if str(b.id).isdigit()]
    return max(max(numeric, default=0) + 1, floor or 1)


class DocumentGateway:
    """
    `idgen` is shared by every document. `idgen_factory`, when given, builds
    a generator per document from its block ids and stored high-water mark.
    """

    def __init__(
        self,
        repository: DocumentRepository,
        idgen: IdGenerator | None = None,
        idgen_factory: IdGeneratorFactory | None = None,
    ):
        self.repository = repository
        self.idgen = idgen
        self.idgen_factory = idgen_factory

    def idgen_for(self, existing_ids: Iterable[str], next_block_id: int = 1) -> IdGenerator | None:
        if self.idgen_factory is not None:
            return self.idgen_factory(existing_ids, next_block_id)
        return self.idgen

    def _document(self, record: DocumentRecord) -> Document:
        idgen = None
        if not record.content:
            idgen = self.idgen_for([], record.next_block_id)
        return record_to_document(record, idgen)

    def open(
        self,
        document_id: int | None = None,
        owner_id: int | None = None,
        title: str = DEFAULT_TITLE,
    ) -> Document:
        """Load a document, or create an empty one when no id is given."""
        if document_id is None:
            try:
                record = self.repository.create(title, [], owner_id=owner_id)
            except Exception as e:
                raise PersistenceError(str(e)) from e
            logger.info("created document %s", record.id)
            return self._document(record)

        record = self.repository.get(document_id)
        if record is None:
            raise DocumentNotFound(document_id)
        return self._document(record)

    def save(
        self,
        document_id: int,
        title: str,
        blocks: list[Block],
        next_block_id: int | None = None,
    ) -> Document:
        changes = {
            "title": title,
            "content": [b.to_dict() for b in blocks],
            "updatedAt": datetime.now(timezone.utc),
            "nextBlockId": next_block_id_for(blocks, next_block_id),
        }
        try:
            record = self.repository.update(document_id, changes)
        except Exception as e:
            raise PersistenceError(str(e)) from e
        if record is None:
            raise DocumentNotFound(document_id)
        logger.debug("saved document %s (%d blocks)", document_id, len(blocks))
        return self._document(record)

    def list(self, owner_id: int | None = None) -> list[Document]:
        return [self._document(r) for r in self.repository.list(owner_id)]

    def delete(self, document_id: int) -> bool:
        return self.repository.delete(document_id)
