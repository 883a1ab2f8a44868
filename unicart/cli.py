# unicart/cli.py
import os

import click
from flask.cli import with_appcontext
from flask_jwt_extended import create_access_token

from .extensions import db
from .model import Category, MenuItem, Restaurant
from .services import batch_service

SAMPLE_RESTAURANTS = ["Campus Canteen", "Night Bites"]

SAMPLE_MENU = [
    {"name": "Veg Biryani", "price": 120, "category": "Meals", "restaurant_name": "Campus Canteen"},
    {"name": "Chicken Biryani", "price": 160, "category": "Meals", "restaurant_name": "Campus Canteen"},
    {"name": "Masala Dosa", "price": 60, "category": "Tiffin", "restaurant_name": "Campus Canteen"},
    {"name": "Paneer Roll", "price": 80, "category": "Snacks", "restaurant_name": "Night Bites"},
    {"name": "Cold Coffee", "price": 50, "category": "Beverages", "restaurant_name": "Night Bites"},
    {"name": "Coke", "price": 40, "category": "Beverages", "restaurant_name": "Night Bites"},
]


@click.command("issue-token")
@with_appcontext
@click.option("--user-id", required=True)
@click.option("--name", default=None)
@click.option("--role", type=click.Choice(["user", "staff", "admin"]), default="user", show_default=True)
def issue_token(user_id, name, role):
    """Mint a bearer token the way the identity provider would (development only)."""
    claims = {"role": role}
    if name:
        claims["name"] = name
    click.echo(create_access_token(identity=str(user_id), additional_claims=claims))


@click.command("seed-catalog")
@with_appcontext
def seed_catalog():
    """Insert a small sample menu if the catalog is empty."""
    if MenuItem.query.first():
        click.echo("Catalog already has items"); return
    for name in SAMPLE_RESTAURANTS:
        db.session.add(Restaurant(name=name, is_open=True))
    categories = {}
    for row in SAMPLE_MENU:
        cat = categories.get(row["category"])
        if cat is None:
            cat = categories[row["category"]] = Category(name=row["category"])
            db.session.add(cat)
        db.session.add(MenuItem(
            name=row["name"], price=row["price"], category=cat,
            restaurant_name=row["restaurant_name"], is_available=True,
        ))
    db.session.commit()
    click.echo(f"{len(SAMPLE_MENU)} menu items have been added")


@click.command("export-batch")
@with_appcontext
@click.argument("batch_id", type=int)
@click.option("--out", "out_dir", type=click.Path(file_okay=False), default=".", show_default=True)
def export_batch(batch_id, out_dir):
    """Write a batch's orders to <slot_label>_Orders.csv."""
    filename, body = batch_service.export_batch_csv(batch_id)
    path = os.path.join(out_dir, filename)
    with open(path, "w", encoding="utf-8", newline="") as fh:
        fh.write(body)
    click.echo(f"Orders have been exported to {path}")


def register_cli(app):
    app.cli.add_command(issue_token)
    app.cli.add_command(seed_catalog)
    app.cli.add_command(export_batch)
