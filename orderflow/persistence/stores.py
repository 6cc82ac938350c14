from __future__ import annotations

from typing import Any, Generic, Iterable, TypeVar

from sqlalchemy import Select, delete, func, select
from sqlalchemy.orm import Session, selectinload

from orderflow.persistence.models import ClientModel, ItemModel, OrderItemModel, OrderModel

ModelT = TypeVar("ModelT", ClientModel, ItemModel, OrderModel)


class _RecordStore(Generic[ModelT]):
    """Record-level create/read/update/delete for one table."""

    model: type[ModelT]

    def __init__(self, session: Session):
        self.session = session

    def _select(self) -> Select:
        return select(self.model)

    def get(self, record_id: str) -> ModelT | None:
        stmt = self._select().where(self.model.id == record_id)
        return self.session.scalar(stmt)

    def fetch_all(self) -> list[ModelT]:
        stmt = self._select().order_by(self.model.created_at.desc())
        return list(self.session.scalars(stmt).all())

    def insert(self, row: ModelT) -> ModelT:
        self.session.add(row)
        self.session.flush()
        return row

    def update(self, row: ModelT, values: dict[str, Any]) -> ModelT:
        for key, value in values.items():
            setattr(row, key, value)
        self.session.flush()
        return row

    def delete(self, row: ModelT) -> None:
        self.session.delete(row)
        self.session.flush()


class ClientStore(_RecordStore[ClientModel]):
    model = ClientModel

    def fetch_all(self) -> list[ClientModel]:
        stmt = select(ClientModel).order_by(ClientModel.name.asc())
        return list(self.session.scalars(stmt).all())

    def find_by_email(self, email: str) -> ClientModel | None:
        stmt = select(ClientModel).where(func.lower(ClientModel.email) == email.strip().lower())
        return self.session.scalars(stmt).first()


class ItemStore(_RecordStore[ItemModel]):
    model = ItemModel

    def fetch_all(self) -> list[ItemModel]:
        stmt = select(ItemModel).order_by(ItemModel.name.asc())
        return list(self.session.scalars(stmt).all())

    def fetch_many(self, item_ids: Iterable[str]) -> dict[str, ItemModel]:
        ids = list(set(item_ids))
        if not ids:
            return {}
        stmt = select(ItemModel).where(ItemModel.id.in_(ids))
        return {row.id: row for row in self.session.scalars(stmt).all()}


class OrderStore(_RecordStore[OrderModel]):
    model = OrderModel

    def _select(self) -> Select:
        return select(OrderModel).options(selectinload(OrderModel.lines))

    def fetch_all(self, status: str | None = None) -> list[OrderModel]:
        stmt = self._select().order_by(OrderModel.created_at.desc())
        if status:
            stmt = stmt.where(OrderModel.status == status)
        return list(self.session.scalars(stmt).all())

    def fetch_by_client(self, client_id: str, status: str | None = None) -> list[OrderModel]:
        stmt = self._select().where(OrderModel.client_id == client_id).order_by(OrderModel.created_at.desc())
        if status:
            stmt = stmt.where(OrderModel.status == status)
        return list(self.session.scalars(stmt).all())

    def fetch_many(self, order_ids: Iterable[str]) -> list[OrderModel]:
        ids = list(order_ids)
        if not ids:
            return []
        stmt = self._select().where(OrderModel.id.in_(ids))
        return list(self.session.scalars(stmt).all())

    def replace_lines(self, row: OrderModel, lines: list[OrderItemModel]) -> OrderModel:
        row.lines.clear()
        self.session.flush()
        for position, line in enumerate(lines):
            line.position = position
            row.lines.append(line)
        self.session.flush()
        return row

    def delete_many(self, order_ids: Iterable[str]) -> int:
        ids = list(order_ids)
        if not ids:
            return 0
        self.session.execute(delete(OrderItemModel).where(OrderItemModel.order_id.in_(ids)))
        result = self.session.execute(delete(OrderModel).where(OrderModel.id.in_(ids)))
        return int(result.rowcount or 0)
