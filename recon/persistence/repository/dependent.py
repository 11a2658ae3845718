"""PostgreSQL implementations of the user dependent repositories."""

from typing import Any, Callable, ClassVar, Generic

from sqlalchemy import Table, func, select
from sqlalchemy.dialects.postgresql import insert

from recon.domain.repository.dependent import (
    RecordT,
    UserDependentRepository,
    UserProfileRepository,
    UserSettingsRepository,
)
from recon.domain.value import TenantId, UserId
from recon.persistence.mappers import (
    row_to_user_profile,
    row_to_user_settings,
    user_profile_to_dict,
    user_settings_to_dict,
)
from recon.persistence.repository.base import PostgresRepository
from recon.persistence.tables import user_profiles_table, user_settings_table


class PostgresUserDependentRepository(
    PostgresRepository, UserDependentRepository[RecordT], Generic[RecordT]
):
    """Shared queries for tables keyed to ``users.id``."""

    table: ClassVar[Table]
    to_model: ClassVar[Callable[[dict[str, Any]], Any]]
    to_dict: ClassVar[Callable[[Any], dict[str, Any]]]

    async def save(self, record: RecordT) -> RecordT:
        data = type(self).to_dict(record)
        stmt = insert(self.table).values(**data)
        stmt = stmt.on_conflict_do_update(
            index_elements=[self.table.c.id],
            set_={k: v for k, v in data.items() if k not in ("id", "created_at")},
        )
        async with self.savepoint():
            await self.session.execute(stmt)
        return record

    async def find_all_by_user_id(
        self, tenant_id: TenantId, user_id: UserId
    ) -> list[RecordT]:
        stmt = (
            select(self.table)
            .where(self.table.c.tenant_id == tenant_id.root)
            .where(self.table.c.user_id == user_id)
            .order_by(self.table.c.created_at, self.table.c.id)
        )
        async with self.reading():
            result = await self.session.execute(stmt)
            rows = result.mappings().all()
        return [type(self).to_model(dict(row)) for row in rows]

    async def count_by_user_id(self, tenant_id: TenantId, user_id: UserId) -> int:
        stmt = (
            select(func.count())
            .select_from(self.table)
            .where(self.table.c.tenant_id == tenant_id.root)
            .where(self.table.c.user_id == user_id)
        )
        async with self.reading():
            result = await self.session.execute(stmt)
            return result.scalar_one()

    async def repoint(
        self, tenant_id: TenantId, old_user_id: UserId, new_user_id: UserId
    ) -> int:
        stmt = (
            self.table.update()
            .where(self.table.c.tenant_id == tenant_id.root)
            .where(self.table.c.user_id == old_user_id)
            .values(user_id=new_user_id, updated_at=func.now())
        )
        async with self.savepoint():
            result = await self.session.execute(stmt)
        return result.rowcount


class PostgresUserSettingsRepository(
    PostgresUserDependentRepository, UserSettingsRepository
):
    """PostgreSQL implementation of UserSettingsRepository."""

    table = user_settings_table
    to_model = staticmethod(row_to_user_settings)
    to_dict = staticmethod(user_settings_to_dict)


class PostgresUserProfileRepository(
    PostgresUserDependentRepository, UserProfileRepository
):
    """PostgreSQL implementation of UserProfileRepository."""

    table = user_profiles_table
    to_model = staticmethod(row_to_user_profile)
    to_dict = staticmethod(user_profile_to_dict)
