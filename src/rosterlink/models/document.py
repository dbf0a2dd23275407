"""Document database model.

The managed document store is modelled as one table of JSON documents keyed by
(collection, doc_id). There are no foreign keys between documents.
"""

from sqlalchemy import JSON, Column, Index, String

from .base import Base


class DocumentModel(Base):
    """A single JSON document inside a named collection."""

    __tablename__ = "documents"

    collection = Column(String, primary_key=True)
    doc_id = Column(String, primary_key=True, index=True)
    data = Column(JSON, nullable=False, default=dict)
    create_at = Column(String, nullable=False)  # ISO format string
    update_at = Column(String, nullable=False)  # ISO format string

    __table_args__ = (
        Index("ix_documents_collection", "collection"),
    )
