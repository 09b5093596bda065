import sqlalchemy as db
from sqlalchemy.engine import Engine

metadata = db.MetaData()

tasks = db.Table(
    "tasks",
    metadata,
    db.Column("task_id", db.String(36), primary_key=True),
    db.Column("title", db.Text, nullable=False),
    db.Column("description", db.Text, nullable=False, server_default=""),
    db.Column("completed", db.Boolean, nullable=False, server_default=db.false()),
    db.Column("created_at", db.DateTime(timezone=True), nullable=False),
    db.Column("updated_at", db.DateTime(timezone=True), nullable=False),
    db.Column("deleted_at", db.DateTime(timezone=True), nullable=True, index=True),  # soft delete
)


def create_schema(engine: Engine) -> None:
    """Tworzy tabele, jeśli nie istnieją (tryb migrate / start serwera)."""
    metadata.create_all(engine)
