"""
SQLAlchemy Models

Defines the database schema for the three normalized stores:
- Patent documents (source records, loaded externally)
- Model-generated summaries (one per document)
- Summary embeddings (one per summary, pgvector)

Keeping the stages in separate tables makes partial pipeline progress
visible and resumable per stage.
"""

from __future__ import annotations

from datetime import datetime, date
from typing import Optional

from sqlalchemy import (
    Column,
    String,
    Integer,
    Float,
    Boolean,
    Text,
    DateTime,
    Date,
    ForeignKey,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from pgvector.sqlalchemy import Vector


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# ---------------------------------------------------------------------
# Patent Document Model
# ---------------------------------------------------------------------

class PatentDocument(Base):
    """
    A source patent record. Immutable once loaded.
    """
    __tablename__ = "patent_document"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    abstract: Mapped[str] = mapped_column(Text, nullable=False)
    classification_code: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    filing_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    claim_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


# ---------------------------------------------------------------------
# Summary Model
# ---------------------------------------------------------------------

class PatentSummary(Base):
    """
    Model-generated keyword summary of a document abstract.

    The primary key doubles as the unique constraint that makes
    conditional inserts atomic.
    """
    __tablename__ = "patent_summary"

    document_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("patent_document.id"),
        primary_key=True,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
    )


# ---------------------------------------------------------------------
# Embedding Model
# ---------------------------------------------------------------------

class PatentEmbedding(Base):
    """
    Embedding of a summary.

    The vector column is undimensioned so several embedding models can
    share the schema; dimensionality is enforced by the embedding pipeline.
    """
    __tablename__ = "patent_embedding"

    document_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("patent_summary.document_id"),
        primary_key=True,
    )
    embedding = Column(Vector(), nullable=False)
    truncated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    token_count: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    model: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
    )
