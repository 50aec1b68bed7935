from datetime import datetime

from sqlalchemy.orm import Session

from .core.config import SEED_ADMIN_EMAIL, SEED_ADMIN_PASSWORD
from .core.security import get_password_hash
from .models import Game, GameGenre, User
from .utils.text import slugify

shared_requirements = (
    "Minimum: Windows 10 64-bit, Intel i5-8400 / Ryzen 5 2600, 12 GB RAM, GTX 1060 / RX 580, 80 GB SSD. "
    "Recommended: Windows 11 64-bit, Intel i7-12700K / Ryzen 7 5800X, 16 GB RAM, RTX 3070 / RX 6800."
)

SAMPLE_GAMES = [
    {
        "title": "Aurora Shift",
        "description": "A cinematic space odyssey blending tactical combat with narrative exploration.",
        "price": 39.99,
        "discount_price": 27.99,
        "release_date": datetime(2025, 8, 12),
        "genre": ["Action", "RPG"],
        "platform": ["PC", "PlayStation"],
        "developer": "Arclight Studios",
        "publisher": "PulseWorks",
        "rating": "T",
        "stock": 120,
        "images": ["https://images.unsplash.com/photo-1451187580459-43490279c0fa?auto=format&fit=crop&w=900&q=80"],
        "featured": True,
        "on_sale": True,
    },
    {
        "title": "Neon Drift",
        "description": "Street racing across a rain-soaked megacity with a fully tunable garage.",
        "price": 29.99,
        "discount_price": 0,
        "release_date": datetime(2024, 11, 3),
        "genre": ["Racing", "Sports"],
        "platform": ["PC", "Xbox"],
        "developer": "Voltline",
        "publisher": "Voltline",
        "rating": "E",
        "stock": 80,
        "images": ["https://images.unsplash.com/photo-1511512578047-dfb367046420?auto=format&fit=crop&w=900&q=80"],
        "featured": True,
        "on_sale": False,
    },
    {
        "title": "Hollow Watch",
        "description": "Survive the night in an abandoned observatory where the stars are watching back.",
        "price": 19.99,
        "discount_price": 14.99,
        "release_date": datetime(2023, 10, 31),
        "genre": ["Horror", "Survival"],
        "platform": ["PC"],
        "developer": "Quiet Lantern",
        "publisher": "Quiet Lantern",
        "rating": "M",
        "stock": 45,
        "images": ["https://images.unsplash.com/photo-1509248961158-e54f6934749c?auto=format&fit=crop&w=900&q=80"],
        "featured": False,
        "on_sale": True,
    },
    {
        "title": "Kingdom Ledger",
        "description": "Grow a river kingdom through trade routes, alliances and careful bookkeeping.",
        "price": 24.99,
        "discount_price": 0,
        "release_date": datetime(2024, 3, 18),
        "genre": ["Strategy", "Simulation"],
        "platform": ["PC", "Nintendo"],
        "developer": "Brightquill",
        "publisher": "PulseWorks",
        "rating": "E10+",
        "stock": 60,
        "images": ["https://images.unsplash.com/photo-1538481199705-c710c4e965fc?auto=format&fit=crop&w=900&q=80"],
        "featured": False,
        "on_sale": False,
    },
]


def seed_games(db: Session) -> None:
    existing_games = {game.slug: game for game in db.query(Game).all()}
    for payload in SAMPLE_GAMES:
        slug = slugify(payload["title"])
        if slug in existing_games:
            continue
        values = {key: value for key, value in payload.items() if key != "genre"}
        game = Game(slug=slug, system_requirements=shared_requirements, **values)
        game.genres = [GameGenre(name=name) for name in payload["genre"]]
        db.add(game)
    db.commit()


def seed_admin(db: Session) -> None:
    if not SEED_ADMIN_EMAIL or not SEED_ADMIN_PASSWORD:
        return
    admin = db.query(User).filter(User.email == SEED_ADMIN_EMAIL).first()
    if admin:
        if admin.role != "admin":
            admin.role = "admin"
            db.commit()
        return
    db.add(
        User(
            name="Store Admin",
            email=SEED_ADMIN_EMAIL,
            password_hash=get_password_hash(SEED_ADMIN_PASSWORD),
            role="admin",
        )
    )
    db.commit()
