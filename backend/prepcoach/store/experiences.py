"""
PrepCoach Interview API - Experience Store (LanceDB)

Persists experiences with their embeddings. The retriever cascades over
vector nearest-neighbour search (cosine), full-text search over content and
an unfiltered "first N rows" sample. `scan` backs the tag-filtered listing.
"""

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

import lancedb
import pyarrow as pa
from lancedb.index import FTS

from prepcoach.logger import get_logger
from prepcoach.pipeline.embedder import Embedder, experience_text, prepare_text
from prepcoach.pipeline.similarity import is_embedded

log = get_logger("prepcoach.store")

# Stored for rows whose embedding has not been generated yet
PLACEHOLDER_EMBEDDING = [0.0]

# (title, content) -> category name
Categorizer = Callable[[str, str], str]


# ─── Domain types ──────────────────────────────────────────

@dataclass
class ExperienceMetadata:
    """Classification data attached to an experience. Never affects the embedding."""
    category: str = ""
    tags: List[str] = field(default_factory=list)
    role: str = ""
    date: Optional[str] = None  # ISO timestamp


@dataclass
class Experience:
    """A stored STAR story used as grounding context."""
    id: str
    title: str
    content: str
    embedding: List[float] = field(default_factory=lambda: list(PLACEHOLDER_EMBEDDING))
    metadata: ExperienceMetadata = field(default_factory=ExperienceMetadata)
    created_at: str = ""
    updated_at: str = ""

    def to_public(self) -> Dict[str, Any]:
        """Serializable form without the embedding."""
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "metadata": {
                "category": self.metadata.category,
                "tags": list(self.metadata.tags),
                "role": self.metadata.role,
                "date": self.metadata.date,
            },
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


# ─── Helpers ───────────────────────────────────────────────

def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _escape_filter_value(value: str) -> str:
    """Escape single quotes in filter values to prevent injection."""
    return value.replace("'", "''")


def tag_filter(tags: Iterable[str]) -> Optional[str]:
    """
    SQL prefilter matching rows that carry every tag.

    Tags are stored as a JSON array string, so each tag is matched as its
    quoted JSON form. LIKE wildcards can over-match; callers re-check.
    """
    clauses = [
        f"tags LIKE '%{_escape_filter_value(json.dumps(tag))}%'"
        for tag in tags
    ]
    return " AND ".join(clauses) if clauses else None


def experience_schema(dimensions: int) -> pa.Schema:
    """Arrow schema for the experiences table at the given dimensionality."""
    return pa.schema([
        pa.field("id", pa.string()),
        pa.field("title", pa.string()),
        pa.field("content", pa.string()),
        pa.field("vector", pa.list_(pa.float32(), dimensions)),
        pa.field("category", pa.string()),
        pa.field("tags", pa.string()),  # JSON array as string
        pa.field("role", pa.string()),
        pa.field("date", pa.string()),
        pa.field("created_at", pa.string()),
        pa.field("updated_at", pa.string()),
    ])


def row_to_experience(row: Dict[str, Any]) -> Experience:
    """Convert a LanceDB result row into an Experience."""
    vector = row.get("vector")
    tags_raw = row.get("tags") or "[]"
    try:
        tags = json.loads(tags_raw)
    except (TypeError, ValueError):
        tags = []
    return Experience(
        id=row["id"],
        title=row.get("title") or "",
        content=row.get("content") or "",
        embedding=[float(v) for v in vector] if vector is not None else list(PLACEHOLDER_EMBEDDING),
        metadata=ExperienceMetadata(
            category=row.get("category") or "",
            tags=list(tags),
            role=row.get("role") or "",
            date=row.get("date"),
        ),
        created_at=row.get("created_at") or "",
        updated_at=row.get("updated_at") or "",
    )


# ─── Store ─────────────────────────────────────────────────

class ExperienceStore:
    """LanceDB-backed experience collection."""

    def __init__(
        self,
        db_path: str,
        table_name: str = "experiences",
        dimensions: int = 1536,
        embedder: Optional[Embedder] = None,
        categorizer: Optional[Categorizer] = None,
    ):
        self.db_path = db_path
        self.table_name = table_name
        self.dimensions = dimensions
        self.embedder = embedder
        self.categorizer = categorizer
        self._db = None
        self._table = None

    # ─── Connection ────────────────────────────────────────

    @property
    def table(self):
        """Open (or create) the experiences table on first use."""
        if self._table is None:
            if self._db is None:
                self._db = lancedb.connect(self.db_path)
            self._table = self._db.create_table(
                self.table_name,
                schema=experience_schema(self.dimensions),
                exist_ok=True,
            )
            log.info("table_opened", path=self.db_path, table=self.table_name)
        return self._table

    def ensure_fts_index(self) -> bool:
        """Build the full-text index used by the keyword tier."""
        try:
            self.table.create_index("content", config=FTS(), replace=True)
        except Exception as e:
            log.warning("fts_index_unavailable", error=str(e))
            return False
        log.info("fts_index_ready", column="content")
        return True

    def _storage_vector(self, embedding: Optional[List[float]]) -> List[float]:
        """Fixed-size vector for the table; unembedded rows store zeros."""
        if is_embedded(embedding, self.dimensions):
            return [float(v) for v in embedding]  # type: ignore[union-attr]
        return [0.0] * self.dimensions

    def _to_row(self, experience: Experience) -> Dict[str, Any]:
        return {
            "id": experience.id,
            "title": experience.title,
            "content": experience.content,
            "vector": self._storage_vector(experience.embedding),
            "category": experience.metadata.category,
            "tags": json.dumps(list(experience.metadata.tags)),
            "role": experience.metadata.role,
            "date": experience.metadata.date,
            "created_at": experience.created_at,
            "updated_at": experience.updated_at,
        }

    def _embed(self, title: str, content: str) -> List[float]:
        if self.embedder is None:
            raise RuntimeError("ExperienceStore needs an embedder to embed experiences")
        return self.embedder.embed(prepare_text(experience_text(title, content), self.embedder.max_chars))

    # ─── Lifecycle ─────────────────────────────────────────

    def insert(self, experience: Experience) -> Experience:
        """Persist an experience exactly as given."""
        if not experience.created_at:
            experience.created_at = now_iso()
        if not experience.updated_at:
            experience.updated_at = experience.created_at
        self.table.add([self._to_row(experience)])
        return experience

    def add(
        self,
        title: str,
        content: str,
        metadata: Optional[ExperienceMetadata] = None,
    ) -> Experience:
        """
        Embed and persist a new experience. Embedding happens before the write.

        A blank category is filled in by the categorizer when one is set;
        categorizer failures leave it blank.
        """
        embedding = self._embed(title, content)
        metadata = metadata or ExperienceMetadata()
        if not metadata.category and self.categorizer is not None:
            try:
                metadata.category = self.categorizer(title, content)
            except Exception as e:
                log.warning("categorize_failed", title=title, error=str(e))

        timestamp = now_iso()
        experience = Experience(
            id=uuid.uuid4().hex,
            title=title,
            content=content,
            embedding=embedding,
            metadata=metadata,
            created_at=timestamp,
            updated_at=timestamp,
        )
        self.insert(experience)
        log.info("experience_added", id=experience.id, title=title)
        return experience

    def get(self, experience_id: str) -> Optional[Experience]:
        safe_id = _escape_filter_value(experience_id)
        rows = self.table.search().where(f"id = '{safe_id}'").limit(1).to_list()
        if not rows:
            return None
        return row_to_experience(rows[0])

    def update(
        self,
        experience_id: str,
        title: Optional[str] = None,
        content: Optional[str] = None,
        metadata: Optional[ExperienceMetadata] = None,
    ) -> Optional[Experience]:
        """
        Apply an edit. Changing title or content re-embeds; a metadata-only
        edit keeps the stored embedding.

        Returns the updated experience, or None if the id is unknown.
        """
        existing = self.get(experience_id)
        if existing is None:
            return None

        new_title = existing.title if title is None else title
        new_content = existing.content if content is None else content
        text_changed = new_title != existing.title or new_content != existing.content

        embedding = existing.embedding
        if text_changed:
            embedding = self._embed(new_title, new_content)

        new_updated_at = now_iso()
        if new_updated_at == existing.updated_at:
            new_updated_at = (datetime.now(timezone.utc) + timedelta(microseconds=1)).isoformat()

        updated = Experience(
            id=existing.id,
            title=new_title,
            content=new_content,
            embedding=embedding,
            metadata=metadata if metadata is not None else existing.metadata,
            created_at=existing.created_at,
            updated_at=new_updated_at,
        )

        # Add first, then delete only the old row
        self.table.add([self._to_row(updated)])
        self.table.delete(
            f"id = '{_escape_filter_value(existing.id)}' "
            f"AND updated_at = '{_escape_filter_value(existing.updated_at)}'"
        )
        log.info("experience_updated", id=existing.id, reembedded=text_changed)
        return updated

    def delete(self, experience_id: str) -> bool:
        """Hard delete. Returns False if nothing matched."""
        if self.get(experience_id) is None:
            return False
        self.table.delete(f"id = '{_escape_filter_value(experience_id)}'")
        log.info("experience_deleted", id=experience_id)
        return True

    def count(self) -> int:
        return self.table.count_rows()

    # ─── Query capabilities ────────────────────────────────

    def vector_search(self, embedding: List[float], limit: int) -> List[Experience]:
        """Nearest neighbours by cosine distance."""
        rows = (
            self.table.search(embedding, vector_column_name="vector")
            .metric("cosine")
            .limit(limit)
            .to_list()
        )
        return [row_to_experience(r) for r in rows]

    def keyword_search(self, text: str, limit: int) -> List[Experience]:
        """Full-text search over content. Raises if the FTS index is missing."""
        rows = self.table.search(text, query_type="fts").limit(limit).to_list()
        return [row_to_experience(r) for r in rows]

    def sample(self, limit: int) -> List[Experience]:
        """First `limit` rows with no relevance criterion."""
        return [row_to_experience(r) for r in self.table.head(limit).to_pylist()]

    def scan(self, tags: Optional[List[str]] = None) -> List[Experience]:
        """Every experience carrying all of `tags` (all rows when no tags)."""
        total = self.count()
        if total == 0:
            return []

        query = self.table.search()
        filter_expr = tag_filter(tags or [])
        if filter_expr:
            query = query.where(filter_expr)
        experiences = [row_to_experience(r) for r in query.limit(total).to_list()]

        if tags:
            experiences = [e for e in experiences if all(t in e.metadata.tags for t in tags)]
        return experiences
