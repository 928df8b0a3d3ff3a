"""Shared API schemas: response envelope and resource representations."""

import math
from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_serializer
from pydantic.alias_generators import to_camel

Category = Literal[
    "appetizer",
    "main-course",
    "side-dish",
    "dessert",
    "breakfast",
    "lunch",
    "dinner",
    "snack",
    "beverage",
    "soup",
    "salad",
    "bread",
    "sauce",
    "marinade",
    "other",
]

Cuisine = Literal[
    "italian",
    "mexican",
    "chinese",
    "japanese",
    "indian",
    "thai",
    "french",
    "mediterranean",
    "american",
    "korean",
    "vietnamese",
    "middle-eastern",
    "african",
    "caribbean",
    "greek",
    "spanish",
    "british",
    "german",
    "pakistani",
    "other",
]

Dietary = Literal[
    "vegan",
    "vegetarian",
    "pescatarian",
    "keto",
    "paleo",
    "gluten-free",
    "dairy-free",
    "nut-free",
    "low-carb",
    "low-fat",
    "high-protein",
    "sugar-free",
    "halal",
    "kosher",
]

Difficulty = Literal["easy", "medium", "hard"]
RecipeStatus = Literal["draft", "published", "archived"]
SkillLevel = Literal["beginner", "intermediate", "expert"]
Theme = Literal["light", "dark", "system"]


class CamelModel(BaseModel):
    """Base model: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# Envelope
# =============================================================================


class FieldError(CamelModel):
    field: str
    message: str


class ApiResponse(CamelModel):
    """Uniform response envelope; unset members are omitted."""

    success: bool = True
    message: str | None = None
    data: Any = None
    error: str | None = None
    errors: list[FieldError] | None = None

    @model_serializer(mode="wrap")
    def _omit_empty(self, handler):
        return {key: value for key, value in handler(self).items() if value is not None}


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_items: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        total_pages = math.ceil(total / limit) if limit else 0
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_items=total,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


# =============================================================================
# Users
# =============================================================================


class AuthorSummary(CamelModel):
    id: str
    username: str
    name: str
    avatar: str = ""


class UserPublic(AuthorSummary):
    bio: str = ""
    location: str = ""
    role: str = "user"
    recipes_submitted: int = 0
    recipes_cooked: int = 0
    followers: int = 0
    following: int = 0
    created_at: datetime | None = None


class UserPreferences(CamelModel):
    dietary: list[str] = Field(default_factory=list)
    cuisines: list[str] = Field(default_factory=list)
    skill_level: str = "beginner"
    theme: str = "system"


class UserPrivate(UserPublic):
    email: str
    preferences: UserPreferences | None = None


# =============================================================================
# Recipes
# =============================================================================


class Ingredient(CamelModel):
    item: str = Field(min_length=1)
    quantity: float | None = Field(None, ge=0)
    unit: str = ""
    notes: str | None = None
    group: str | None = None


class Instruction(CamelModel):
    step: int = Field(ge=1)
    text: str = Field(min_length=1)
    duration: int | None = Field(None, ge=0)
    tips: str | None = None


class RecipeStats(CamelModel):
    views: int = 0
    saves: int = 0
    made_it: int = 0
    avg_rating: float = 0.0
    review_count: int = 0


class RecipeCard(CamelModel):
    """Compact recipe representation used in lists and references."""

    id: str
    title: str
    slug: str
    category: str
    cuisine: str
    difficulty: str
    total_time: int = 0
    servings: int
    stats: RecipeStats


class RecipeBrief(RecipeCard):
    """Recipe reference inside a meal plan: enough to cook and shop."""

    ingredients: list[Ingredient] = Field(default_factory=list)
    nutrition: dict[str, Any] = Field(default_factory=dict)


class RecipeOut(RecipeBrief):
    description: str
    tags: list[str] = Field(default_factory=list)
    dietary: list[str] = Field(default_factory=list)
    prep_time: int = 0
    cook_time: int = 0
    instructions: list[Instruction] = Field(default_factory=list)
    equipment: list[str] = Field(default_factory=list)
    status: str
    featured: bool = False
    author: AuthorSummary
    created_at: datetime
    updated_at: datetime


class RecipeCreate(CamelModel):
    """Recipe submission. Author, slug and stats are assigned by the server."""

    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=1000)
    category: Category
    cuisine: Cuisine
    difficulty: Difficulty = "medium"
    tags: list[str] = Field(default_factory=list)
    dietary: list[Dietary] = Field(default_factory=list)
    prep_time: int = Field(ge=0)
    cook_time: int = Field(ge=0)
    servings: int = Field(ge=1)
    ingredients: list[Ingredient] = Field(min_length=1)
    instructions: list[Instruction] = Field(min_length=1)
    nutrition: dict[str, Any] = Field(default_factory=dict)
    equipment: list[str] = Field(default_factory=list)
    status: RecipeStatus = "published"


class RecipeUpdate(CamelModel):
    title: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, min_length=1, max_length=1000)
    category: Category | None = None
    cuisine: Cuisine | None = None
    difficulty: Difficulty | None = None
    tags: list[str] | None = None
    dietary: list[Dietary] | None = None
    prep_time: int | None = Field(None, ge=0)
    cook_time: int | None = Field(None, ge=0)
    servings: int | None = Field(None, ge=1)
    ingredients: list[Ingredient] | None = Field(None, min_length=1)
    instructions: list[Instruction] | None = Field(None, min_length=1)
    nutrition: dict[str, Any] | None = None
    equipment: list[str] | None = None
    status: RecipeStatus | None = None


class CategoryCount(CamelModel):
    category: str
    count: int


# =============================================================================
# Reviews
# =============================================================================


class ReviewOut(CamelModel):
    id: str
    recipe_id: str
    rating: int
    title: str | None = None
    text: str
    images: list[str] = Field(default_factory=list)
    helpful: list[str] = Field(default_factory=list)
    author: AuthorSummary
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def helpful_count(self) -> int:
        return len(self.helpful)


class ReviewCreate(CamelModel):
    recipe_id: str
    rating: int = Field(ge=1, le=5)
    title: str | None = Field(None, max_length=100)
    text: str = Field(min_length=1, max_length=2000)
    images: list[str] = Field(default_factory=list, max_length=5)


class ReviewUpdate(CamelModel):
    rating: int | None = Field(None, ge=1, le=5)
    title: str | None = Field(None, max_length=100)
    text: str | None = Field(None, min_length=1, max_length=2000)
    images: list[str] | None = Field(None, max_length=5)


class RatingBucket(CamelModel):
    rating: int
    count: int


# =============================================================================
# Meal plans
# =============================================================================


class MealSlotOut(CamelModel):
    recipe_id: str
    recipe: RecipeBrief | None = None
    servings: int
    notes: str | None = None


class MealPlanDayOut(CamelModel):
    date: date
    breakfast: MealSlotOut | None = None
    lunch: MealSlotOut | None = None
    dinner: MealSlotOut | None = None
    snacks: list[MealSlotOut] = Field(default_factory=list)


class MealPlanOut(CamelModel):
    id: str
    user_id: str
    name: str
    start_date: date
    end_date: date
    notes: str | None = None
    is_active: bool = True
    days: list[MealPlanDayOut] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class MealPlanCreate(CamelModel):
    name: str = Field("My Meal Plan", min_length=1, max_length=100)
    start_date: date | datetime
    end_date: date | datetime
    notes: str | None = Field(None, max_length=500)


class SetSlotRequest(CamelModel):
    """
    Slot edit. Meal type, date, servings and notes are validated by the meal
    plan service after the ownership check; a caller who does not own the
    plan gets 403 whatever the body holds.
    """

    date: Any = None
    meal_type: Any = None
    recipe_id: Any = None
    servings: Any = None
    notes: Any = None


class ShoppingListItemOut(CamelModel):
    item: str
    quantity: float
    unit: str


# =============================================================================
# Collections
# =============================================================================


class CollectionOut(CamelModel):
    id: str
    owner_id: str
    name: str
    description: str = ""
    cover_image: str = ""
    is_public: bool = True
    is_default: bool = False
    recipe_count: int = 0
    recipes: list[RecipeCard] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class CollectionCreate(CamelModel):
    name: str = Field(min_length=1, max_length=60)
    description: str = Field("", max_length=300)
    cover_image: str = ""
    is_public: bool = True


class CollectionUpdate(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=60)
    description: str | None = Field(None, max_length=300)
    cover_image: str | None = None
    is_public: bool | None = None


# =============================================================================
# Notifications
# =============================================================================


class NotificationOut(CamelModel):
    id: str
    type: str
    message: str
    read: bool = False
    sender: AuthorSummary
    recipe_id: str | None = None
    review_id: str | None = None
    recipe: RecipeCard | None = None
    created_at: datetime


# =============================================================================
# Auth
# =============================================================================


class RegisterRequest(CamelModel):
    name: str = Field(min_length=1, max_length=50)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(min_length=8)


class LoginRequest(CamelModel):
    email: str
    password: str


class RefreshRequest(CamelModel):
    refresh_token: str


class ProfileUpdate(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=50)
    bio: str | None = Field(None, max_length=500)
    location: str | None = Field(None, max_length=100)
    avatar: str | None = None


class PreferencesUpdate(CamelModel):
    """Partial preferences update; omitted fields keep their stored value."""

    dietary: list[Dietary] | None = None
    cuisines: list[Cuisine] | None = None
    skill_level: SkillLevel | None = None
    theme: Theme | None = None
