import click
import logging

from debliss import db
from debliss.models import Accompaniment, MenuItem
from debliss.services.archive import purge_expired_deliveries
from debliss.services.helper import commit_or_abort

logger = logging.getLogger(__name__)


ACCOMPANIMENTS = [
    ("Okro soup", 70, "soup"),
    ("Ademe soup", 70, "soup"),
    ("Ademe mix with Okro soup", 70, "soup"),
    ("Fresh Tilapia light soup", 100, "soup"),
    ("Egushie soup", 80, "soup"),
    ("Aborbi tadi", 80, "sauce"),
    ("Hot pepper", 0, "sauce"),
    ("Gbomanyana", 90, "sauce"),
    ("Kontomire Stew", 80, "stew"),
    ("Garden Eggs Stew", 60, "stew"),
    ("Egg Stew", 60, "stew"),
    ("Fried Tilapia", 100, "protein"),
    ("Grilled Tilapia", 100, "protein"),
    ("Fried Chicken", 70, "protein"),
    ("Grilled Chicken", 70, "protein"),
    ("Extra Vegetables", 15, "extra"),
    ("Extra Pepper", 5, "extra"),
]

BANKU_PAIRINGS = [
    "Aborbi tadi", "Ademe soup", "Okro soup", "Ademe mix with Okro soup",
    "Fresh Tilapia light soup", "Hot pepper", "Gbomanyana",
]
PROTEINS = ["Fried Tilapia", "Fried Chicken", "Grilled Tilapia", "Grilled Chicken"]
STEWS = ["Kontomire Stew", "Garden Eggs Stew", "Egg Stew"]

MENU_ITEMS = [
    ("Banku", 5, "BANKU / AKPLE ZONE", BANKU_PAIRINGS),
    ("Akple", 5, "BANKU / AKPLE ZONE", BANKU_PAIRINGS),
    ("Atseke", 30, "LOCAL MIX ZONE", PROTEINS),
    ("Eba", 20, "LOCAL MIX ZONE",
     ["Egushie soup", "Okro soup", "Ademe soup", "Ademe mix with Okro soup"]),
    ("Boiled Yam", 30, "LOCAL MIX ZONE", STEWS),
    ("Boiled Plantain", 30, "LOCAL MIX ZONE", STEWS),
    ("Gariforto", 85, "LOCAL MIX ZONE", []),
]


def seed_catalog():
    """Create or refresh the house accompaniments and menu items, keyed by name.

    Existing rows keep their ids so stored allow-lists stay valid.
    """
    by_name = {acc.name: acc for acc in Accompaniment.query.all()}
    for name, price, category in ACCOMPANIMENTS:
        accompaniment = by_name.get(name)
        if not accompaniment:
            accompaniment = Accompaniment(name=name)
            db.session.add(accompaniment)
            by_name[name] = accompaniment
        accompaniment.price = price
        accompaniment.category = category
    db.session.flush()

    menu = {item.name: item for item in MenuItem.query.all()}
    for name, price, category, pairings in MENU_ITEMS:
        item = menu.get(name)
        if not item:
            item = MenuItem(name=name, available=True)
            db.session.add(item)
        item.price = price
        item.category = category
        item.allowed_accompaniments = [
            by_name[acc_name].id for acc_name in pairings if acc_name in by_name
        ]

    commit_or_abort("Failed to seed catalog")
    logger.info("Catalog seeded", extra={'event': 'catalog_seeded'})
    return len(ACCOMPANIMENTS), len(MENU_ITEMS)


def register_commands(app):

    @app.cli.command("seed-catalog")
    def seed_catalog_command():
        """Seed the menu and accompaniments."""
        accompaniments, items = seed_catalog()
        click.echo(f"Seeded {accompaniments} accompaniments and {items} menu items")

    @app.cli.command("purge-finished")
    @click.option("--days", type=int, default=None,
                  help="Retention in days (defaults to FINISHED_RETENTION_DAYS)")
    def purge_finished_command(days):
        """Delete finished deliveries older than the retention window."""
        deleted = purge_expired_deliveries(retention_days=days)
        if deleted is None:
            raise click.ClickException("Cleanup failed, see the error log")
        click.echo(
            f"Deleted {deleted['finished']} finished orders and "
            f"{deleted['rider']} rider deliveries"
        )
