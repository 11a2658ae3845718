"""PostgreSQL implementation of User repository."""

from typing import Optional

import logfire
from sqlalchemy import exists, func, literal, select

from recon.domain.error import ConstraintViolationError, NotFoundError
from recon.domain.model import ApplicationUser
from recon.domain.repository import UserRepository
from recon.domain.value import Email, TenantId, UserId, UserRole
from recon.persistence.mappers import row_to_user, user_to_dict
from recon.persistence.repository.base import PostgresRepository
from recon.persistence.tables import tenant_bootstraps_table, users_table

BOOTSTRAP_CONSTRAINT = "tenant_bootstraps_pkey"


class PostgresUserRepository(PostgresRepository, UserRepository):
    """PostgreSQL implementation of UserRepository."""

    async def find_by_id(
        self, tenant_id: TenantId, user_id: UserId
    ) -> Optional[ApplicationUser]:
        stmt = select(users_table).where(
            users_table.c.tenant_id == tenant_id.root,
            users_table.c.id == user_id,
        )
        async with self.reading():
            result = await self.session.execute(stmt)
            row = result.mappings().first()
        return row_to_user(dict(row)) if row else None

    async def find_all_by_email(
        self, tenant_id: TenantId, email: Email
    ) -> list[ApplicationUser]:
        stmt = (
            select(users_table)
            .where(users_table.c.tenant_id == tenant_id.root)
            .where(func.lower(users_table.c.email) == email.root)
            .order_by(users_table.c.created_at, users_table.c.id)
        )
        return await self._fetch_all(stmt)

    async def find_all_by_email_affixes(
        self, tenant_id: TenantId, prefix: str, suffix: str
    ) -> list[ApplicationUser]:
        lowered = func.lower(users_table.c.email)
        stmt = (
            select(users_table)
            .where(users_table.c.tenant_id == tenant_id.root)
            .where(lowered.startswith(prefix, autoescape=True))
            .where(lowered.endswith(suffix, autoescape=True))
            .order_by(users_table.c.created_at, users_table.c.id)
        )
        return await self._fetch_all(stmt)

    async def list_by_tenant(self, tenant_id: TenantId) -> list[ApplicationUser]:
        stmt = (
            select(users_table)
            .where(users_table.c.tenant_id == tenant_id.root)
            .order_by(users_table.c.created_at, users_table.c.id)
        )
        return await self._fetch_all(stmt)

    async def count_by_tenant(self, tenant_id: TenantId) -> int:
        stmt = (
            select(func.count())
            .select_from(users_table)
            .where(users_table.c.tenant_id == tenant_id.root)
        )
        async with self.reading():
            result = await self.session.execute(stmt)
            return result.scalar_one()

    async def insert(self, user: ApplicationUser) -> ApplicationUser:
        async with self.savepoint():
            await self.session.execute(users_table.insert().values(**user_to_dict(user)))
        return user

    async def insert_with_role_assignment(
        self, user: ApplicationUser
    ) -> ApplicationUser:
        """Insert a user, as super_user only if the tenant is empty.

        Inside one SAVEPOINT the row is inserted with ``INSERT ... SELECT
        ... WHERE NOT EXISTS`` and the tenant bootstrap claim is taken. A
        concurrent first user loses on the claim's primary key; its
        savepoint is rolled back and it is inserted as a regular user.
        """
        promoted = user.model_copy(
            update={"role": UserRole.SUPER_USER, "is_active": True}
        )
        try:
            async with self.savepoint():
                claimed = await self._insert_if_tenant_empty(promoted)
                if claimed:
                    await self.session.execute(
                        tenant_bootstraps_table.insert().values(
                            tenant_id=user.tenant_id.root, user_id=user.id
                        )
                    )
        except ConstraintViolationError as e:
            if e.constraint != BOOTSTRAP_CONSTRAINT:
                raise
            claimed = False
            logfire.warn(
                "Tenant bootstrap already claimed",
                tenant_id=user.tenant_id.root,
                user_id=user.id,
            )
        if claimed:
            return promoted

        regular = user.model_copy(update={"role": UserRole.REGULAR, "is_active": False})
        return await self.insert(regular)

    async def _insert_if_tenant_empty(self, user: ApplicationUser) -> bool:
        data = user_to_dict(user)
        values = select(
            *[
                literal(value, type_=users_table.c[name].type).label(name)
                for name, value in data.items()
            ]
        ).where(~exists().where(users_table.c.tenant_id == user.tenant_id.root))
        result = await self.session.execute(
            users_table.insert().from_select(list(data), values)
        )
        return result.rowcount == 1

    async def update_email(
        self, tenant_id: TenantId, user_id: UserId, email: str
    ) -> ApplicationUser:
        return await self._update(tenant_id, user_id, email=email)

    async def update_access(
        self, tenant_id: TenantId, user_id: UserId, role: UserRole, is_active: bool
    ) -> ApplicationUser:
        return await self._update(
            tenant_id, user_id, role=role.value, is_active=is_active
        )

    async def delete(self, tenant_id: TenantId, user_id: UserId) -> None:
        stmt = users_table.delete().where(
            users_table.c.tenant_id == tenant_id.root,
            users_table.c.id == user_id,
        )
        async with self.savepoint():
            await self.session.execute(stmt)

    async def find_bootstrap_user_id(self, tenant_id: TenantId) -> Optional[UserId]:
        stmt = select(tenant_bootstraps_table.c.user_id).where(
            tenant_bootstraps_table.c.tenant_id == tenant_id.root
        )
        async with self.reading():
            result = await self.session.execute(stmt)
            value = result.scalar_one_or_none()
        return UserId(value) if value else None

    async def repoint_bootstrap(
        self, tenant_id: TenantId, old_user_id: UserId, new_user_id: UserId
    ) -> int:
        stmt = (
            tenant_bootstraps_table.update()
            .where(tenant_bootstraps_table.c.tenant_id == tenant_id.root)
            .where(tenant_bootstraps_table.c.user_id == old_user_id)
            .values(user_id=new_user_id)
        )
        async with self.savepoint():
            result = await self.session.execute(stmt)
        return result.rowcount

    async def _update(
        self, tenant_id: TenantId, user_id: UserId, **values: object
    ) -> ApplicationUser:
        stmt = (
            users_table.update()
            .where(users_table.c.tenant_id == tenant_id.root)
            .where(users_table.c.id == user_id)
            .values(**values, updated_at=func.now())
            .returning(users_table)
        )
        async with self.savepoint():
            result = await self.session.execute(stmt)
            row = result.mappings().first()
        if row is None:
            raise NotFoundError("User", f"{user_id} in tenant {tenant_id}")
        return row_to_user(dict(row))

    async def _fetch_all(self, stmt) -> list[ApplicationUser]:
        async with self.reading():
            result = await self.session.execute(stmt)
            rows = result.mappings().all()
        return [row_to_user(dict(row)) for row in rows]
