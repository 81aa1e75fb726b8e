from typing import List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from famli.models.box_item import BoxItem
import logging

logger = logging.getLogger(__name__)

class BoxService:
    """Leitura e escrita de itens da Caixa Famli"""

    def create_item(
        self,
        user_id: str,
        item_type: str,
        title: str,
        content: Optional[str],
        category: Optional[str],
        db: Session,
        media_url: Optional[str] = None,
        media_type: Optional[str] = None,
        is_important: bool = False,
    ) -> BoxItem:
        """Cria item. Erros de banco são propagados depois do rollback."""
        item = BoxItem(
            user_id=user_id,
            type=item_type,
            title=title,
            content=content,
            category=category,
            media_url=media_url,
            media_type=media_type,
            is_important=is_important,
        )

        try:
            db.add(item)
            db.commit()
            db.refresh(item)
        except SQLAlchemyError:
            db.rollback()
            raise

        logger.info(f"Box item created: {item.id} (type={item.type}, category={item.category})")
        return item

    def list_items(self, user_id: str, db: Session, limit: Optional[int] = None) -> List[BoxItem]:
        """Itens mais recentes primeiro"""
        query = (
            db.query(BoxItem)
            .filter(BoxItem.user_id == user_id)
            .order_by(BoxItem.created_at.desc())
        )
        if limit:
            query = query.limit(limit)
        return query.all()

    def count_items(self, user_id: str, db: Session) -> int:
        return db.query(BoxItem).filter(BoxItem.user_id == user_id).count()

    def get_item(self, user_id: str, item_id: str, db: Session) -> Optional[BoxItem]:
        """Item do usuário; itens de outros usuários não são encontrados"""
        return (
            db.query(BoxItem)
            .filter(BoxItem.id == item_id, BoxItem.user_id == user_id)
            .first()
        )

    def update_item(self, user_id: str, item_id: str, db: Session, **fields) -> Optional[BoxItem]:
        """
        Atualiza os campos informados de um item do usuário.

        Returns:
            O item atualizado, ou None se não existir para este usuário
        """
        item = self.get_item(user_id, item_id, db)
        if item is None:
            return None

        for field, value in fields.items():
            setattr(item, field, value)

        try:
            db.commit()
            db.refresh(item)
        except SQLAlchemyError:
            db.rollback()
            raise

        logger.info(f"Box item updated: {item.id}")
        return item

    def delete_item(self, user_id: str, item_id: str, db: Session) -> bool:
        item = self.get_item(user_id, item_id, db)
        if item is None:
            return False

        try:
            db.delete(item)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise

        logger.info(f"Box item deleted: {item_id}")
        return True
