from sqlalchemy.orm import Session


class BaseRepository:
    def __init__(self, db: Session):
        self.db = db

    @property
    def dialect_name(self) -> str:
        """Name of the bound database dialect ("postgresql", "sqlite", ...)."""
        bind = self.db.get_bind()
        return bind.dialect.name if bind is not None else ""

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
