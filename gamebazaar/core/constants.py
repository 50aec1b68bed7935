GENRES = (
    "Action",
    "Adventure",
    "RPG",
    "Strategy",
    "Simulation",
    "Sports",
    "Racing",
    "Puzzle",
    "FPS",
    "Fighting",
    "Platformer",
    "Survival",
    "Horror",
    "Stealth",
    "Open World",
)

PLATFORMS = ("PC", "PlayStation", "Xbox", "Nintendo", "Mobile")

ESRB_RATINGS = ("E", "E10+", "T", "M", "A")

BLOG_TYPES = (
    "Game News",
    "Gaming Tips",
    "Installation Troubleshooting",
    "Game Reviews",
    "Industry Updates",
    "Hardware & Tech",
    "Game Guides",
    "Gaming Culture",
)

BLOG_STATUSES = ("draft", "published", "archived")

ORDER_STATUSES = ("pending", "processing", "completed", "shipped", "delivered", "cancelled")

PAYMENT_METHODS = ("creditCard", "paypal", "stripe", "bkash", "nagad")

UNAVAILABLE_GAME_TITLE = "Game no longer available"
