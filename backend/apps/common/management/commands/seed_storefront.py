from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone

from apps.carts.models import CartItem
from apps.catalog.models import Product
from apps.common import get_logger
from apps.common.conf import get_setting

logger = get_logger(__name__).bind(component="common", layer="command")

# name, price, description, category, stock
PRODUCTS = [
    ("Wireless Headphones", "89.99", "Over-ear, 30 hour battery, active noise cancelling", "Electronics", 25),
    ("Smart Watch", "149.00", "Heart rate, GPS and sleep tracking", "Electronics", 8),
    ("USB-C Charger", "19.50", "65W fast charger with foldable plug", "Electronics", 0),
    ("Red Shirt", "20.00", "Slim fit cotton shirt", "Fashion", 40),
    ("Blue Hat", "15.00", "Wool blend beanie", "Fashion", 3),
    ("Leather Jacket", "199.00", "Faux leather moto jacket with zip pockets", "Fashion", 12),
    ("Yoga Mat", "29.95", "Non-slip 6mm mat with carrying strap", "Sports", 30),
    ("Running Shoes", "74.00", "Lightweight trainers with breathable mesh", "Sports", 1),
    ("Throw Pillow", "18.00", "Linen cover, feather insert", "Home", 15),
    ("Desk Lamp", "34.99", "Dimmable LED lamp with USB port", "Home", 9),
    ("Carry-on Suitcase", "129.00", "Hard shell spinner, fits most overhead bins", "Travel", 6),
    ("Travel Pillow", "22.00", "Memory foam neck pillow", "Travel", 50),
    ("Face Serum", "27.50", "Vitamin C brightening serum", "Beauty", 18),
    ("Éclair Perfume", "58.00", "Vanilla and almond eau de parfum", "Beauty", 4),
    ("Chef Knife", "45.00", "8 inch stainless steel blade", "Kitchen", 11),
    ("Coffee Mug", "8.00", "Red ceramic mug, 350ml", "Kitchen", 60),
    ("Notebook Set", "12.00", "Three dotted A5 notebooks", "Office", 100),
    ("Ergonomic Mouse", "39.00", "Vertical wireless mouse", "Office", 7),
    ("Board Game", "42.00", "Strategy game for 2-5 players", "Games", 14),
    ("Puzzle 1000", "16.99", "1000 piece landscape puzzle", "Games", 0),
]


class Command(BaseCommand):
    help = "Seed the demo storefront catalog, optionally with a shopper account."

    def add_arguments(self, parser):
        parser.add_argument(
            "--flush", action="store_true", help="Delete products and cart rows first"
        )
        parser.add_argument(
            "--shopper",
            metavar="USERNAME:PASSWORD",
            help="Create or reset a shopper account for trying the cart",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if options["flush"]:
            self.stdout.write("Flushing existing catalog and carts...")
            CartItem.objects.all().delete()
            Product.objects.all().delete()

        configured = set(get_setting("CATEGORIES"))
        unknown = {row[3] for row in PRODUCTS} - configured
        if unknown:
            logger.warning("Seeding categories missing from settings", categories=sorted(unknown))

        self.stdout.write("Seeding products...")
        now = timezone.now()
        created_count = 0
        for position, (name, price, description, category, stock) in enumerate(PRODUCTS):
            _, created = Product.objects.update_or_create(
                name=name,
                defaults=dict(
                    price=Decimal(price),
                    description=description,
                    category=category,
                    stock_quantity=stock,
                    # later rows are older so the listing keeps this order
                    created_at=now - timedelta(minutes=position),
                ),
            )
            created_count += int(created)

        if options.get("shopper"):
            self._seed_shopper(options["shopper"])

        logger.info("Storefront seeded", products=len(PRODUCTS), created=created_count)
        self.stdout.write(self.style.SUCCESS("Storefront seed completed."))

    def _seed_shopper(self, credentials: str):
        username, sep, password = credentials.partition(":")
        if not sep or not username or not password:
            raise CommandError("--shopper expects USERNAME:PASSWORD")
        self.stdout.write(f"Seeding shopper {username}...")
        user, _ = get_user_model().objects.get_or_create(username=username)
        user.set_password(password)
        user.save()
