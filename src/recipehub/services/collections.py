"""User-curated recipe collections."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from recipehub.errors import ForbiddenError, NotFoundError, ValidationError
from recipehub.logging_config import get_logger
from recipehub.models import Collection, Recipe, User, utcnow

logger = get_logger(__name__)

DEFAULT_COLLECTIONS = (
    ("Saved Recipes", "Your saved recipes"),
    ("Favorites", "Your favorite recipes"),
)


async def _load(db: AsyncSession, collection_id: str) -> Collection:
    result = await db.execute(
        select(Collection)
        .where(Collection.id == collection_id)
        .execution_options(populate_existing=True)
    )
    collection = result.scalar_one_or_none()
    if collection is None:
        raise NotFoundError.for_entity("Collection")
    return collection


async def _owned(db: AsyncSession, collection_id: str, user: User) -> Collection:
    collection = await _load(db, collection_id)
    if collection.owner_id != user.id:
        raise ForbiddenError()
    return collection


async def _ensure_name_free(
    db: AsyncSession, user: User, name: str, exclude_id: str | None = None
) -> None:
    query = select(Collection.id).where(Collection.owner_id == user.id, Collection.name == name)
    if exclude_id is not None:
        query = query.where(Collection.id != exclude_id)
    if await db.scalar(query) is not None:
        raise ValidationError("You already have a collection with this name")


async def list_own(db: AsyncSession, user: User) -> list[Collection]:
    """The caller's collections, defaults first; defaults are created on first use."""
    query = (
        select(Collection)
        .where(Collection.owner_id == user.id)
        .order_by(Collection.is_default.desc(), Collection.updated_at.desc())
    )
    collections = list((await db.execute(query)).scalars().all())

    if not collections:
        for name, description in DEFAULT_COLLECTIONS:
            db.add(
                Collection(
                    owner_id=user.id,
                    name=name,
                    description=description,
                    is_default=True,
                    recipes=[],
                )
            )
        await db.commit()
        logger.info(f"Created default collections for user {user.id}")
        collections = list((await db.execute(query)).scalars().all())

    return collections


async def list_public(db: AsyncSession, owner: User) -> list[Collection]:
    result = await db.execute(
        select(Collection)
        .where(Collection.owner_id == owner.id, Collection.is_public.is_(True))
        .order_by(Collection.updated_at.desc())
    )
    return list(result.scalars().all())


async def get_collection(
    db: AsyncSession, collection_id: str, viewer: User | None
) -> Collection:
    """A public collection, or a private one when ``viewer`` owns it."""
    collection = await _load(db, collection_id)
    if not collection.is_public and (viewer is None or viewer.id != collection.owner_id):
        raise ForbiddenError("This collection is private")
    return collection


async def create_collection(db: AsyncSession, user: User, data: dict[str, Any]) -> Collection:
    await _ensure_name_free(db, user, data["name"])
    collection = Collection(
        owner_id=user.id,
        name=data["name"],
        description=data.get("description") or "",
        cover_image=data.get("cover_image") or "",
        is_public=data.get("is_public", True),
        recipes=[],
    )
    db.add(collection)
    await db.commit()
    logger.info(f"Created collection {collection.id} for user {user.id}")
    return await _load(db, collection.id)


async def update_collection(
    db: AsyncSession, user: User, collection_id: str, changes: dict[str, Any]
) -> Collection:
    collection = await _owned(db, collection_id, user)

    if changes.get("name") is not None and changes["name"] != collection.name:
        if collection.is_default:
            raise ValidationError("Cannot rename default collections")
        await _ensure_name_free(db, user, changes["name"], exclude_id=collection.id)

    for key in ("name", "description", "cover_image", "is_public"):
        if changes.get(key) is not None:
            setattr(collection, key, changes[key])

    collection.updated_at = utcnow()
    await db.commit()
    return await _load(db, collection.id)


async def delete_collection(db: AsyncSession, user: User, collection_id: str) -> None:
    collection = await _owned(db, collection_id, user)
    if collection.is_default:
        raise ValidationError("Cannot delete default collections")

    await db.delete(collection)
    await db.commit()
    logger.info(f"Deleted collection {collection_id}")


async def add_recipe(
    db: AsyncSession, user: User, collection_id: str, recipe_id: str
) -> Collection:
    collection = await _owned(db, collection_id, user)

    recipe = await db.get(Recipe, recipe_id)
    if recipe is None:
        raise NotFoundError.for_entity("Recipe")
    if any(existing.id == recipe.id for existing in collection.recipes):
        raise ValidationError("Recipe already in this collection")

    collection.recipes.append(recipe)
    collection.updated_at = utcnow()
    await db.commit()
    return await _load(db, collection.id)


async def remove_recipe(
    db: AsyncSession, user: User, collection_id: str, recipe_id: str
) -> Collection:
    collection = await _owned(db, collection_id, user)

    collection.recipes = [recipe for recipe in collection.recipes if recipe.id != recipe_id]
    collection.updated_at = utcnow()
    await db.commit()
    return await _load(db, collection.id)
