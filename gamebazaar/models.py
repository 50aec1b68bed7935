import uuid
from datetime import datetime
from sqlalchemy import (
    Column,
    String,
    DateTime,
    Float,
    Integer,
    Boolean,
    ForeignKey,
    JSON,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import relationship

from .db import Base


def generate_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    avatar = Column(String(500), nullable=True)
    role = Column(String(20), default="user")
    created_at = Column(DateTime, default=datetime.utcnow)

    cart = relationship("Cart", back_populates="user", uselist=False, cascade="all, delete")
    orders = relationship("Order", back_populates="user")
    reviews = relationship("Review", back_populates="user", cascade="all, delete")
    wishlist_entries = relationship("WishlistEntry", back_populates="user", cascade="all, delete")


blog_related_games = Table(
    "blog_related_games",
    Base.metadata,
    Column("blog_id", String(36), ForeignKey("blogs.id"), primary_key=True),
    Column("game_id", String(36), ForeignKey("games.id"), primary_key=True),
)


class Game(Base):
    __tablename__ = "games"

    id = Column(String(36), primary_key=True, default=generate_id)
    slug = Column(String(120), index=True, nullable=False)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    price = Column(Float, default=0.0)
    discount_price = Column(Float, default=0.0)
    release_date = Column(DateTime, nullable=True)
    platform = Column(JSON, default=list)
    developer = Column(String(120), nullable=True)
    publisher = Column(String(120), nullable=True)
    rating = Column(String(5), nullable=True)
    stock = Column(Integer, default=0)
    system_requirements = Column(Text, default="")
    installation_tutorial = Column(Text, default="")
    images = Column(JSON, default=lambda: ["default.jpg"])
    featured = Column(Boolean, default=False)
    on_sale = Column(Boolean, default=False)
    average_rating = Column(Float, default=0.0)
    num_reviews = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    genres = relationship(
        "GameGenre",
        back_populates="game",
        cascade="all, delete-orphan",
        order_by="GameGenre.position",
        collection_class=ordering_list("position"),
    )
    reviews = relationship("Review", back_populates="game", cascade="all, delete-orphan")
    cart_items = relationship("CartItem", back_populates="game", cascade="all, delete-orphan")
    wishlist_entries = relationship("WishlistEntry", back_populates="game", cascade="all, delete-orphan")
    # no delete cascade: order history keeps its lines with a null game
    order_items = relationship("OrderItem", back_populates="game")
    blogs = relationship("Blog", secondary=blog_related_games, back_populates="related_games")

    @property
    def genre(self) -> list[str]:
        return [item.name for item in self.genres]

    @property
    def effective_price(self) -> float:
        if self.discount_price and self.discount_price > 0:
            return float(self.discount_price)
        return float(self.price or 0.0)


class GameGenre(Base):
    __tablename__ = "game_genres"

    id = Column(String(36), primary_key=True, default=generate_id)
    game_id = Column(String(36), ForeignKey("games.id"), nullable=False, index=True)
    name = Column(String(40), nullable=False)
    position = Column(Integer, default=0)

    game = relationship("Game", back_populates="genres")


class Cart(Base):
    __tablename__ = "carts"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False)
    total_price = Column(Float, default=0.0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="cart")
    items = relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItem.position",
        collection_class=ordering_list("position"),
    )

    def recalculate(self) -> None:
        self.total_price = sum(item.price * item.quantity for item in self.items)


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(String(36), primary_key=True, default=generate_id)
    cart_id = Column(String(36), ForeignKey("carts.id"), nullable=False, index=True)
    game_id = Column(String(36), ForeignKey("games.id"), nullable=False)
    quantity = Column(Integer, default=1)
    price = Column(Float, nullable=False)
    position = Column(Integer, default=0)

    cart = relationship("Cart", back_populates="items")
    game = relationship("Game", back_populates="cart_items")


class WishlistEntry(Base):
    __tablename__ = "wishlist_entries"
    __table_args__ = (UniqueConstraint("user_id", "game_id", name="uq_wishlist_entry"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    game_id = Column(String(36), ForeignKey("games.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="wishlist_entries")
    game = relationship("Game", back_populates="wishlist_entries")


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    shipping_address = Column(JSON, nullable=False)
    payment_method = Column(String(20), nullable=False)
    payment_result = Column(JSON, nullable=True)
    tax_price = Column(Float, default=0.0)
    shipping_price = Column(Float, default=0.0)
    total_price = Column(Float, default=0.0)
    is_paid = Column(Boolean, default=False)
    paid_at = Column(DateTime, nullable=True)
    is_delivered = Column(Boolean, default=False)
    delivered_at = Column(DateTime, nullable=True)
    approved_at = Column(DateTime, nullable=True)
    approved_by = Column(JSON, nullable=True)
    status = Column(String(20), default="pending", index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="orders")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
        collection_class=ordering_list("position"),
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=generate_id)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    game_id = Column(String(36), ForeignKey("games.id", ondelete="SET NULL"), nullable=True)
    quantity = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)
    position = Column(Integer, default=0)

    order = relationship("Order", back_populates="items")
    game = relationship("Game", back_populates="order_items")


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (UniqueConstraint("user_id", "game_id", name="uq_review"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    game_id = Column(String(36), ForeignKey("games.id"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False)
    likes = Column(JSON, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="reviews")
    game = relationship("Game", back_populates="reviews")
    replies = relationship(
        "ReviewReply",
        back_populates="review",
        cascade="all, delete-orphan",
        order_by="ReviewReply.position",
        collection_class=ordering_list("position"),
    )


class ReviewReply(Base):
    __tablename__ = "review_replies"

    id = Column(String(36), primary_key=True, default=generate_id)
    review_id = Column(String(36), ForeignKey("reviews.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    comment = Column(Text, nullable=False)
    likes = Column(JSON, default=list)
    position = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    review = relationship("Review", back_populates="replies")
    user = relationship("User")
    nested_replies = relationship(
        "ReviewNestedReply",
        back_populates="reply",
        cascade="all, delete-orphan",
        order_by="ReviewNestedReply.position",
        collection_class=ordering_list("position"),
    )


class ReviewNestedReply(Base):
    __tablename__ = "review_nested_replies"

    id = Column(String(36), primary_key=True, default=generate_id)
    reply_id = Column(String(36), ForeignKey("review_replies.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    comment = Column(Text, nullable=False)
    likes = Column(JSON, default=list)
    position = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    reply = relationship("ReviewReply", back_populates="nested_replies")
    user = relationship("User")


class Blog(Base):
    __tablename__ = "blogs"

    id = Column(String(36), primary_key=True, default=generate_id)
    title = Column(String(200), nullable=False)
    description = Column(String(500), nullable=False)
    content = Column(Text, nullable=False)
    blog_type = Column(String(40), nullable=False, index=True)
    frontpage_image = Column(Text, nullable=False)
    images = Column(JSON, default=list)
    author_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    status = Column(String(20), default="draft", index=True)
    views = Column(Integer, default=0)
    likes = Column(JSON, default=list)
    featured = Column(Boolean, default=False)
    read_time = Column(Integer, default=5)
    slug = Column(String(220), unique=True, index=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    author = relationship("User")
    tag_rows = relationship(
        "BlogTag",
        back_populates="blog",
        cascade="all, delete-orphan",
        order_by="BlogTag.position",
        collection_class=ordering_list("position"),
    )
    related_games = relationship("Game", secondary=blog_related_games, back_populates="blogs")
    comments = relationship(
        "BlogComment",
        back_populates="blog",
        cascade="all, delete-orphan",
        order_by="BlogComment.position",
        collection_class=ordering_list("position"),
    )

    @property
    def tags(self) -> list[str]:
        return [item.name for item in self.tag_rows]

    @tags.setter
    def tags(self, names) -> None:
        self.tag_rows = [BlogTag(name=name) for name in names or []]


class BlogTag(Base):
    __tablename__ = "blog_tags"

    id = Column(String(36), primary_key=True, default=generate_id)
    blog_id = Column(String(36), ForeignKey("blogs.id"), nullable=False, index=True)
    name = Column(String(50), nullable=False)
    position = Column(Integer, default=0)

    blog = relationship("Blog", back_populates="tag_rows")


class BlogComment(Base):
    __tablename__ = "blog_comments"

    id = Column(String(36), primary_key=True, default=generate_id)
    blog_id = Column(String(36), ForeignKey("blogs.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    content = Column(String(500), nullable=False)
    likes = Column(JSON, default=list)
    position = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    blog = relationship("Blog", back_populates="comments")
    user = relationship("User")
    replies = relationship(
        "BlogReply",
        back_populates="comment",
        cascade="all, delete-orphan",
        order_by="BlogReply.position",
        collection_class=ordering_list("position"),
    )


class BlogReply(Base):
    __tablename__ = "blog_replies"

    id = Column(String(36), primary_key=True, default=generate_id)
    comment_id = Column(String(36), ForeignKey("blog_comments.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    content = Column(String(500), nullable=False)
    likes = Column(JSON, default=list)
    position = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    comment = relationship("BlogComment", back_populates="replies")
    user = relationship("User")
