"""Persons, addresses and affiliate roles (drivers, referral agents)."""
import logging
from typing import List, Optional, Type, TypeVar, Union

from sqlalchemy import func, or_, select as sa_select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tripdesk.errors import InvalidRequest, ReferenceInUse, ReferenceNotFound
from tripdesk.models.models import Address, Driver, Person, ReferralAgent
from tripdesk.schemas.people import AddressIn, PersonIn
from tripdesk.services.audit import log_audit

logger = logging.getLogger(__name__)

M = TypeVar("M")

Affiliate = Union[Driver, ReferralAgent]

AFFILIATE_KINDS = {"driver": Driver, "referral_agent": ReferralAgent}


async def resolve(db: AsyncSession, model: Type[M], ref_id: int, kind: str) -> M:
    """Load a mandatory reference or raise ``ReferenceNotFound``."""
    obj = await db.get(model, ref_id)
    if obj is None:
        raise ReferenceNotFound(kind, ref_id)
    return obj


async def resolve_optional(db: AsyncSession, model: Type[M], ref_id: Optional[int], kind: str) -> Optional[M]:
    """A null id clears the association; an unknown id is still an error."""
    if ref_id is None:
        return None
    return await resolve(db, model, ref_id, kind)


# -- persons -----------------------------------------------------------------

async def find_person_by_national_id(db: AsyncSession, national_id: str) -> Optional[Person]:
    res = await db.execute(sa_select(Person).where(Person.national_id == national_id))
    return res.scalars().first()


async def ensure_national_id_free(db: AsyncSession, national_id: Optional[str], person_id: Optional[int] = None) -> None:
    if not national_id:
        return
    other = await find_person_by_national_id(db, national_id)
    if other is not None and other.id != person_id:
        raise InvalidRequest(f"national id {national_id} already belongs to person {other.id}")


async def create_person(db: AsyncSession, data: PersonIn, actor: Optional[str] = None) -> Person:
    async with db.begin():
        national_id = data.national_id or None
        await ensure_national_id_free(db, national_id)
        person = Person(name=data.name, national_id=national_id, age=data.age, phones=list(data.phones))
        db.add(person)
        await db.flush()
        await log_audit(db, actor, "create_person", "person", person.id)
    return person


async def update_person(db: AsyncSession, person_id: int, data: PersonIn, actor: Optional[str] = None) -> Optional[Person]:
    async with db.begin():
        person = await db.get(Person, person_id)
        if person is None:
            return None
        national_id = data.national_id or None
        await ensure_national_id_free(db, national_id, person_id)
        person.name = data.name
        person.national_id = national_id
        person.age = data.age
        person.phones = list(data.phones)
        await log_audit(db, actor, "update_person", "person", person_id)
    return person


async def delete_person(db: AsyncSession, person_id: int, actor: Optional[str] = None) -> bool:
    try:
        async with db.begin():
            person = await db.get(Person, person_id)
            if person is None:
                return False
            await db.delete(person)
            await log_audit(db, actor, "delete_person", "person", person_id)
    except IntegrityError:
        raise ReferenceInUse(f"person {person_id} is still referenced by bookings")
    return True


async def get_person(db: AsyncSession, person_id: int) -> Optional[Person]:
    return await db.get(Person, person_id)


async def search_persons(db: AsyncSession, query: Optional[str], limit: int = 10) -> List[Person]:
    stmt = sa_select(Person)
    if query and query.strip():
        term = query.strip()
        stmt = stmt.where(or_(func.lower(Person.name).contains(term.lower(), autoescape=True), Person.national_id == term))
    res = await db.execute(stmt.order_by(Person.name, Person.id).limit(limit))
    return list(res.scalars().all())


# -- addresses ---------------------------------------------------------------

async def create_address(db: AsyncSession, data: AddressIn, actor: Optional[str] = None) -> Address:
    async with db.begin():
        address = Address(**data.model_dump())
        db.add(address)
        await db.flush()
        await log_audit(db, actor, "create_address", "address", address.id)
    return address


async def update_address(db: AsyncSession, address_id: int, data: AddressIn, actor: Optional[str] = None) -> Optional[Address]:
    async with db.begin():
        address = await db.get(Address, address_id)
        if address is None:
            return None
        for field, value in data.model_dump().items():
            setattr(address, field, value)
        await log_audit(db, actor, "update_address", "address", address_id)
    return address


async def delete_address(db: AsyncSession, address_id: int, actor: Optional[str] = None) -> bool:
    try:
        async with db.begin():
            address = await db.get(Address, address_id)
            if address is None:
                return False
            await db.delete(address)
            await log_audit(db, actor, "delete_address", "address", address_id)
    except IntegrityError:
        raise ReferenceInUse(f"address {address_id} is still used by bookings")
    return True


async def get_address(db: AsyncSession, address_id: int) -> Optional[Address]:
    return await db.get(Address, address_id)


async def search_addresses(db: AsyncSession, query: Optional[str], limit: int = 20) -> List[Address]:
    stmt = sa_select(Address)
    if query and query.strip():
        term = query.strip().lower()
        stmt = stmt.where(
            or_(
                func.lower(Address.street).contains(term, autoescape=True),
                func.lower(Address.city).contains(term, autoescape=True),
                Address.postal_code == query.strip(),
            )
        )
    res = await db.execute(stmt.order_by(Address.city, Address.street, Address.id).limit(limit))
    return list(res.scalars().all())


# -- affiliates --------------------------------------------------------------

async def create_affiliate(db: AsyncSession, kind: str, person_id: int, actor: Optional[str] = None) -> Affiliate:
    model = AFFILIATE_KINDS[kind]
    async with db.begin():
        person = await resolve(db, Person, person_id, "person")
        affiliate = model(person_id=person.id)
        db.add(affiliate)
        await db.flush()
        await log_audit(db, actor, f"create_{kind}", kind, affiliate.id, {"person_id": person.id})
        affiliate = await get_affiliate(db, kind, affiliate.id)
    return affiliate


async def get_affiliate(db: AsyncSession, kind: str, affiliate_id: int) -> Optional[Affiliate]:
    model = AFFILIATE_KINDS[kind]
    stmt = sa_select(model).where(model.id == affiliate_id).options(selectinload(model.person))
    res = await db.execute(stmt.execution_options(populate_existing=True))
    return res.scalars().first()


async def list_affiliates(db: AsyncSession, kind: str, page: int = 0, size: int = 100) -> List[Affiliate]:
    model = AFFILIATE_KINDS[kind]
    stmt = sa_select(model).options(selectinload(model.person)).order_by(model.id).offset(page * size).limit(size)
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def delete_affiliate(db: AsyncSession, kind: str, affiliate_id: int, actor: Optional[str] = None) -> bool:
    model = AFFILIATE_KINDS[kind]
    async with db.begin():
        affiliate = await db.get(model, affiliate_id)
        if affiliate is None:
            return False
        await db.delete(affiliate)
        await log_audit(db, actor, f"delete_{kind}", kind, affiliate_id)
    return True
