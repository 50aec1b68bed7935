from typing import List, Literal, Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator

from .core.constants import BLOG_STATUSES, BLOG_TYPES, ESRB_RATINGS, GENRES, PAYMENT_METHODS, PLATFORMS


def _check_choices(values: Optional[List[str]], choices: tuple, label: str) -> Optional[List[str]]:
    if values is None:
        return values
    invalid = [value for value in values if value not in choices]
    if invalid:
        raise ValueError(f"invalid {label}: {', '.join(invalid)}")
    return values


def _clean_tags(values: List[str]) -> List[str]:
    cleaned = [tag.strip() for tag in values if tag and tag.strip()]
    if any(len(tag) > 50 for tag in cleaned):
        raise ValueError("tags cannot be more than 50 characters")
    return cleaned


class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(min_length=6)
    avatar: Optional[str] = None


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserPublicOut(BaseModel):
    id: str
    name: str
    avatar: Optional[str] = None

    class Config:
        from_attributes = True


class UserOut(BaseModel):
    id: str
    name: str
    email: str
    avatar: Optional[str] = None
    role: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str
    user: UserOut


class GameIn(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1)
    price: float = Field(ge=0)
    discount_price: float = Field(default=0, ge=0)
    release_date: datetime
    genre: List[str] = Field(min_length=1)
    platform: List[str] = Field(min_length=1)
    developer: str
    publisher: str
    rating: Literal[ESRB_RATINGS]
    stock: int = Field(default=0, ge=0)
    system_requirements: str = ""
    installation_tutorial: str = ""
    images: List[str] = Field(default_factory=lambda: ["default.jpg"])
    featured: bool = False
    on_sale: bool = False

    @field_validator("genre")
    @classmethod
    def genre_known(cls, value: List[str]) -> List[str]:
        return _check_choices(value, GENRES, "genre")

    @field_validator("platform")
    @classmethod
    def platform_known(cls, value: List[str]) -> List[str]:
        return _check_choices(value, PLATFORMS, "platform")


class GameUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    discount_price: Optional[float] = Field(default=None, ge=0)
    release_date: Optional[datetime] = None
    genre: Optional[List[str]] = None
    platform: Optional[List[str]] = None
    developer: Optional[str] = None
    publisher: Optional[str] = None
    rating: Optional[Literal[ESRB_RATINGS]] = None
    stock: Optional[int] = Field(default=None, ge=0)
    system_requirements: Optional[str] = None
    installation_tutorial: Optional[str] = None
    images: Optional[List[str]] = None
    featured: Optional[bool] = None
    on_sale: Optional[bool] = None

    @field_validator("genre")
    @classmethod
    def genre_known(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return _check_choices(value, GENRES, "genre")

    @field_validator("platform")
    @classmethod
    def platform_known(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return _check_choices(value, PLATFORMS, "platform")


class GameSummaryOut(BaseModel):
    id: str
    title: str
    slug: Optional[str] = None
    price: float
    discount_price: float = 0
    images: List[str] = []

    class Config:
        from_attributes = True


class GameOut(BaseModel):
    id: str
    slug: str
    title: str
    description: str
    price: float
    discount_price: float = 0
    release_date: Optional[datetime] = None
    genre: List[str] = []
    platform: List[str] = []
    developer: Optional[str] = None
    publisher: Optional[str] = None
    rating: Optional[str] = None
    stock: int = 0
    system_requirements: str = ""
    installation_tutorial: str = ""
    images: List[str] = []
    featured: bool = False
    on_sale: bool = False
    average_rating: float = 0
    num_reviews: int = 0
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CartItemIn(BaseModel):
    game_id: str
    quantity: int = Field(default=1, ge=1)


class CartItemUpdate(BaseModel):
    quantity: int = Field(ge=1)


class CartItemOut(BaseModel):
    id: str
    game: Optional[GameSummaryOut] = None
    quantity: int
    price: float

    class Config:
        from_attributes = True


class CartOut(BaseModel):
    id: str
    user_id: str
    items: List[CartItemOut] = []
    total_price: float = 0
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class WishlistIn(BaseModel):
    game_id: str


class ShippingAddressIn(BaseModel):
    street: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    zip_code: str = Field(min_length=1)
    country: str = Field(min_length=1)
    mobile: str = Field(pattern=r"^[0-9]{10,15}$")


class OrderCreateIn(BaseModel):
    shipping_address: ShippingAddressIn
    payment_method: Literal[PAYMENT_METHODS]
    tax_price: float = Field(default=0, ge=0)
    shipping_price: float = Field(default=0, ge=0)


class PaymentResultIn(BaseModel):
    id: Optional[str] = None
    status: Optional[str] = None
    update_time: Optional[str] = None
    email_address: Optional[str] = None


class OrderPayIn(BaseModel):
    payment_result: Optional[PaymentResultIn] = None


class OrderStatusIn(BaseModel):
    status: str


class OrderUserOut(BaseModel):
    id: str
    name: str
    email: str

    class Config:
        from_attributes = True


class OrderItemOut(BaseModel):
    game_id: Optional[str] = None
    game: Optional[GameSummaryOut] = None
    title: str
    quantity: int
    price: float


class OrderOut(BaseModel):
    id: str
    user: Optional[OrderUserOut] = None
    items: List[OrderItemOut] = []
    shipping_address: dict
    payment_method: str
    payment_result: Optional[dict] = None
    tax_price: float = 0
    shipping_price: float = 0
    total_price: float = 0
    is_paid: bool = False
    paid_at: Optional[datetime] = None
    is_delivered: bool = False
    delivered_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[dict] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ReviewIn(BaseModel):
    game: str
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None


class ReviewUpdateIn(BaseModel):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    comment: Optional[str] = None


class CommentTextIn(BaseModel):
    comment: Optional[str] = None


class ContentTextIn(BaseModel):
    content: Optional[str] = None


class NestedReplyOut(BaseModel):
    id: str
    user: Optional[UserPublicOut] = None
    comment: str
    likes: List[str] = []
    created_at: Optional[datetime] = None
    can_edit: bool = False
    can_delete: bool = False


class ReviewReplyOut(NestedReplyOut):
    nested_replies: List[NestedReplyOut] = []


class ReviewOut(BaseModel):
    id: str
    user: Optional[UserPublicOut] = None
    game_id: str
    rating: int
    comment: str
    likes: List[str] = []
    replies: List[ReviewReplyOut] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    can_edit: bool = False
    can_delete: bool = False


class BlogReplyOut(BaseModel):
    id: str
    user: Optional[UserPublicOut] = None
    content: str
    likes: List[str] = []
    created_at: Optional[datetime] = None
    can_edit: bool = False
    can_delete: bool = False


class BlogCommentOut(BlogReplyOut):
    replies: List[BlogReplyOut] = []


class BlogIn(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=500)
    content: str = Field(min_length=100)
    blog_type: Literal[BLOG_TYPES]
    frontpage_image: str = Field(min_length=1)
    images: List[str] = Field(default_factory=list, max_length=10)
    status: Literal[BLOG_STATUSES] = "draft"
    tags: List[str] = Field(default_factory=list)
    featured: bool = False
    related_games: List[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def tags_short(cls, value: List[str]) -> List[str]:
        return _clean_tags(value)


class BlogUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    content: Optional[str] = Field(default=None, min_length=100)
    blog_type: Optional[Literal[BLOG_TYPES]] = None
    frontpage_image: Optional[str] = Field(default=None, min_length=1)
    images: Optional[List[str]] = Field(default=None, max_length=10)
    status: Optional[Literal[BLOG_STATUSES]] = None
    tags: Optional[List[str]] = None
    featured: Optional[bool] = None
    related_games: Optional[List[str]] = None

    @field_validator("tags")
    @classmethod
    def tags_short(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return value
        return _clean_tags(value)


class BlogOut(BaseModel):
    id: str
    title: str
    slug: str
    description: str
    content: str
    blog_type: str
    frontpage_image: str
    images: List[str] = []
    author: Optional[UserPublicOut] = None
    status: str
    tags: List[str] = []
    views: int = 0
    likes: List[str] = []
    comments: List[BlogCommentOut] = []
    featured: bool = False
    read_time: int = 1
    related_games: List[GameSummaryOut] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    can_edit: bool = False
    can_delete: bool = False


class SupportTicketIn(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    order_number: Optional[str] = Field(default=None, max_length=64)
    category: str = Field(min_length=1, max_length=60)
    subject: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=5000)


class ContactIn(BaseModel):
    first_name: str = Field(min_length=1, max_length=60)
    last_name: str = Field(min_length=1, max_length=60)
    email: EmailStr
    subject: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1, max_length=5000)
