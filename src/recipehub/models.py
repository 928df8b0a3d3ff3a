"""SQLAlchemy database models."""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from recipehub.database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp for DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


saved_recipes = Table(
    "saved_recipes",
    Base.metadata,
    Column("user_id", String, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("recipe_id", String, ForeignKey("recipes.id", ondelete="CASCADE"), primary_key=True),
    Column("saved_at", DateTime, default=utcnow),
)

collection_recipes = Table(
    "collection_recipes",
    Base.metadata,
    Column(
        "collection_id",
        String,
        ForeignKey("collections.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("recipe_id", String, ForeignKey("recipes.id", ondelete="CASCADE"), primary_key=True),
    Column("added_at", DateTime, default=utcnow),
)

follows = Table(
    "follows",
    Base.metadata,
    Column("follower_id", String, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("followed_id", String, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime, default=utcnow),
)


def default_preferences() -> dict:
    return {"dietary": [], "cuisines": [], "skill_level": "beginner", "theme": "system"}


class User(Base):
    """User account."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    username: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    hashed_password: Mapped[str | None] = mapped_column(String, nullable=True)
    avatar: Mapped[str] = mapped_column(Text, default="")
    bio: Mapped[str] = mapped_column(String(500), default="")
    location: Mapped[str] = mapped_column(String(100), default="")
    role: Mapped[str] = mapped_column(String(20), default="user")  # user, admin, moderator
    refresh_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    recipes_submitted: Mapped[int] = mapped_column(Integer, default=0)
    recipes_cooked: Mapped[int] = mapped_column(Integer, default=0)
    followers: Mapped[int] = mapped_column(Integer, default=0)
    following: Mapped[int] = mapped_column(Integer, default=0)
    # {"dietary", "cuisines", "skill_level", "theme"}
    preferences: Mapped[dict] = mapped_column(JSON, default=default_preferences)
    last_active: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class Recipe(Base):
    """Recipe with ingredients, instructions and denormalized stats."""

    __tablename__ = "recipes"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    author_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(30), nullable=False)
    cuisine: Mapped[str] = mapped_column(String(30), nullable=False)
    difficulty: Mapped[str] = mapped_column(String(10), default="medium")
    tags: Mapped[list] = mapped_column(JSON, default=list)
    dietary: Mapped[list] = mapped_column(JSON, default=list)
    prep_time: Mapped[int] = mapped_column(Integer, default=0)
    cook_time: Mapped[int] = mapped_column(Integer, default=0)
    total_time: Mapped[int] = mapped_column(Integer, default=0)
    servings: Mapped[int] = mapped_column(Integer, nullable=False)
    # [{"item", "quantity", "unit", "notes", "group"}]
    ingredients: Mapped[list] = mapped_column(JSON, default=list)
    # [{"step", "text", "duration", "tips"}]
    instructions: Mapped[list] = mapped_column(JSON, default=list)
    nutrition: Mapped[dict] = mapped_column(JSON, default=dict)
    equipment: Mapped[list] = mapped_column(JSON, default=list)
    status: Mapped[str] = mapped_column(String(20), default="published")
    featured: Mapped[bool] = mapped_column(Boolean, default=False)

    views: Mapped[int] = mapped_column(Integer, default=0)
    saves: Mapped[int] = mapped_column(Integer, default=0)
    made_it: Mapped[int] = mapped_column(Integer, default=0)
    avg_rating: Mapped[float] = mapped_column(Float, default=0.0)
    review_count: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    author: Mapped["User"] = relationship("User", lazy="selectin")

    __table_args__ = (
        Index("idx_recipes_author_id", "author_id"),
        Index("idx_recipes_category", "category"),
        Index("idx_recipes_status", "status"),
        Index("idx_recipes_avg_rating", "avg_rating"),
    )

    @property
    def stats(self) -> dict:
        return {
            "views": self.views or 0,
            "saves": self.saves or 0,
            "made_it": self.made_it or 0,
            "avg_rating": self.avg_rating or 0.0,
            "review_count": self.review_count or 0,
        }


class Review(Base):
    """A user's rating and write-up of a recipe."""

    __tablename__ = "reviews"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    author_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)
    recipe_id: Mapped[str] = mapped_column(
        String, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str | None] = mapped_column(String(100), nullable=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    images: Mapped[list] = mapped_column(JSON, default=list)
    helpful: Mapped[list] = mapped_column(JSON, default=list)  # user ids
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    author: Mapped["User"] = relationship("User", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("recipe_id", "author_id", name="uq_review_recipe_author"),
        Index("idx_reviews_recipe_id", "recipe_id"),
        Index("idx_reviews_author_id", "author_id"),
    )


class MealPlan(Base):
    """A user's meal schedule over a contiguous date range."""

    __tablename__ = "meal_plans"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False, default="My Meal Plan")
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    days: Mapped[list["MealPlanDay"]] = relationship(
        "MealPlanDay",
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by="MealPlanDay.date",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_meal_plans_user_active", "user_id", "is_active"),
        Index("idx_meal_plans_user_start", "user_id", "start_date"),
    )


class MealPlanDay(Base):
    """One calendar date within a meal plan."""

    __tablename__ = "meal_plan_days"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    meal_plan_id: Mapped[str] = mapped_column(
        String, ForeignKey("meal_plans.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[date] = mapped_column(Date, nullable=False)

    plan: Mapped["MealPlan"] = relationship("MealPlan", back_populates="days")
    slots: Mapped[list["MealSlot"]] = relationship(
        "MealSlot",
        back_populates="day",
        cascade="all, delete-orphan",
        order_by="MealSlot.position",
        lazy="selectin",
    )

    __table_args__ = (UniqueConstraint("meal_plan_id", "date", name="uq_plan_day_date"),)

    def _single(self, meal_type: str) -> "MealSlot | None":
        for slot in self.slots:
            if slot.meal_type == meal_type:
                return slot
        return None

    @property
    def breakfast(self) -> "MealSlot | None":
        return self._single("breakfast")

    @property
    def lunch(self) -> "MealSlot | None":
        return self._single("lunch")

    @property
    def dinner(self) -> "MealSlot | None":
        return self._single("dinner")

    @property
    def snacks(self) -> list["MealSlot"]:
        snacks = [slot for slot in self.slots if slot.meal_type == "snacks"]
        return sorted(snacks, key=lambda slot: slot.position or 0)


class MealSlot(Base):
    """A recipe assigned to one meal of one day."""

    __tablename__ = "meal_slots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    day_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("meal_plan_days.id", ondelete="CASCADE"), nullable=False
    )
    meal_type: Mapped[str] = mapped_column(String(20), nullable=False)  # breakfast, lunch, ...
    position: Mapped[int] = mapped_column(Integer, default=0)
    recipe_id: Mapped[str] = mapped_column(
        String, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False
    )
    servings: Mapped[int] = mapped_column(Integer, default=2)
    notes: Mapped[str | None] = mapped_column(String(200), nullable=True)

    day: Mapped["MealPlanDay"] = relationship("MealPlanDay", back_populates="slots")
    recipe: Mapped["Recipe"] = relationship("Recipe", lazy="selectin")

    __table_args__ = (Index("idx_meal_slots_recipe_id", "recipe_id"),)


class Collection(Base):
    """Named, optionally public, group of recipes owned by a user."""

    __tablename__ = "collections"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    owner_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(60), nullable=False)
    description: Mapped[str] = mapped_column(String(300), default="")
    cover_image: Mapped[str] = mapped_column(Text, default="")
    is_public: Mapped[bool] = mapped_column(Boolean, default=True)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    recipes: Mapped[list["Recipe"]] = relationship(
        "Recipe", secondary=collection_recipes, lazy="selectin"
    )

    __table_args__ = (
        UniqueConstraint("owner_id", "name", name="uq_collection_owner_name"),
        Index("idx_collections_public_updated", "is_public", "updated_at"),
    )

    @property
    def recipe_count(self) -> int:
        return len(self.recipes)


class Notification(Base):
    """Activity notice delivered to a user."""

    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    recipient_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)
    sender_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    recipe_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=True
    )
    review_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("reviews.id", ondelete="CASCADE"), nullable=True
    )
    message: Mapped[str] = mapped_column(String(500), nullable=False)
    read: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    sender: Mapped["User"] = relationship("User", foreign_keys=[sender_id], lazy="selectin")
    recipe: Mapped["Recipe"] = relationship("Recipe", lazy="selectin")

    __table_args__ = (
        Index("idx_notifications_recipient_created", "recipient_id", "created_at"),
        Index("idx_notifications_recipient_read", "recipient_id", "read"),
    )
