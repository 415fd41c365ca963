from typing import TypeVar, Generic, Type, Any, Optional, List, Tuple
from sqlalchemy import func, select
from sqlalchemy.orm import Session
from storefront.db.base_class import Base

ModelType = TypeVar("ModelType", bound=Base)

class CRUDBase(Generic[ModelType]):
    def __init__(self, model: Type[ModelType]): self.model = model

    def get(self, db: Session, id: Any) -> Optional[ModelType]:
        return db.get(self.model, id)

    def get_page(self, db: Session, skip: int, take: int, *where) -> Tuple[List[ModelType], int]:
        """Retorna (itens da janela, total) para o mesmo filtro."""
        total = db.scalar(select(func.count()).select_from(self.model).where(*where)) or 0
        stmt = select(self.model).where(*where).order_by(self.model.id.desc()).offset(skip).limit(take)
        return list(db.scalars(stmt)), total

    def add(self, db: Session, obj: ModelType) -> ModelType:
        db.add(obj); db.commit(); db.refresh(obj)
        return obj
