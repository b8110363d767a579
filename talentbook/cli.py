#!/usr/bin/env python3
"""
CLI interface for the talentbook client
"""
import json
import logging
import sys
from datetime import datetime

import click
from pydantic import ValidationError
from tabulate import tabulate

from .config import Config
from .constants import CURRENCIES, PREDEFINED_TAGS, Gender, ProjectStatus
from .costs import needs_photo_update, outstanding_balance
from .storage import StorageError
from .stores import InvalidBackupError, LocalStore
from .sync import SyncEngine
from .transform import WireValidationError


class ClientContext:
    """Shared context for CLI commands"""

    def __init__(self, data_dir=None):
        self.config = Config(config_dir=data_dir)
        self._store = None
        self._sync = None

    @property
    def store(self) -> LocalStore:
        if self._store is None:
            self._store = LocalStore.open(str(self.config.db_file), on_change=self._changed)
        return self._store

    @property
    def sync(self) -> SyncEngine:
        if self._sync is None:
            self._sync = SyncEngine(self.config.server_url, self.store, auth=self.config, state=self.config)
        return self._sync

    def _changed(self, key):
        self.sync.mark_pending(key)


pass_context = click.make_pass_decorator(ClientContext, ensure=True)


def fail(message):
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def parse_line_item(value):
    """TALENT_ID or TALENT_ID=CUSTOM_PRICE"""
    talent_id, _, price = value.partition("=")
    item = {"talent_id": talent_id}
    if price:
        try:
            item["custom_price"] = float(price)
        except ValueError:
            raise click.BadParameter(f"invalid price in {value!r}")
    return item


@click.group()
@click.option('--data-dir', default=None,
              help='Data directory for client files (default: ~/.talentbook)')
@click.option('--log-level', default='WARNING',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False))
@click.pass_context
def cli(ctx, data_dir, log_level):
    """Talent and project manager"""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = ClientContext(data_dir=data_dir)


@cli.command()
@click.option('--server', default=None, help='Sync server URL')
@pass_context
def init(ctx, server):
    """Create the local database"""
    if server:
        ctx.config.server_url = server
    categories = ctx.store.categories.list()

    click.echo("✓ Client initialized successfully")
    click.echo(f"  Database: {ctx.config.db_file}")
    click.echo(f"  Server: {ctx.config.server_url}")
    click.echo(f"  Categories: {len(categories)}")


@cli.command()
@click.argument('token')
@pass_context
def login(ctx, token):
    """Store the session token used for cloud sync"""
    ctx.config.session_token = token
    click.echo("✓ Logged in")


@cli.command()
@pass_context
def logout(ctx):
    """Forget the session token"""
    ctx.config.session_token = None
    click.echo("✓ Logged out")


@cli.command()
@pass_context
def sync(ctx):
    """Push all local data to the server"""
    if not ctx.config.is_logged_in():
        click.echo("Not logged in; nothing to sync")
        return
    try:
        ok = ctx.sync.push_all()
    except WireValidationError as e:
        fail(e)
    if not ok:
        fail("sync failed, see log output (--log-level INFO)")
    click.echo(f"✓ Sync complete at {ctx.config.last_sync}")


@cli.command()
@pass_context
def status(ctx):
    """Show client status"""
    click.echo(f"  Server: {ctx.config.server_url}")
    click.echo(f"  Database: {ctx.config.db_file}")
    click.echo(f"  Logged in: {'yes' if ctx.config.is_logged_in() else 'no'}")

    state = ctx.sync.status()
    if state.last_sync:
        last_sync = datetime.fromisoformat(state.last_sync)
        click.echo(f"  Last sync: {last_sync.strftime('%Y-%m-%d %H:%M:%S')}")
    else:
        click.echo("  Last sync: Never")
    click.echo(f"  Pending changes: {'yes' if state.pending else 'no'}")

    click.echo(f"  Talents: {len(ctx.store.talents.list())}")
    click.echo(f"  Projects: {len(ctx.store.projects.list())}")


# Talents
@cli.group()
def talents():
    """Manage talents"""


@talents.command('add')
@click.argument('name')
@click.option('--category', 'category_id', required=True, help='Category id')
@click.option('--gender', required=True, type=click.Choice(Gender.all()))
@click.option('--price', type=float, default=0, help='Price per project')
@click.option('--currency', default='KWD', type=click.Choice(sorted(CURRENCIES)))
@click.option('--phone', multiple=True, help='Phone number (repeatable)')
@click.option('--tag', multiple=True, help=f"Tag (repeatable), e.g. {', '.join(PREDEFINED_TAGS[:3])}")
@click.option('--rating', type=click.IntRange(1, 5), default=None)
@click.option('--notes', default='')
@pass_context
def talents_add(ctx, name, category_id, gender, price, currency, phone, tag, rating, notes):
    """Add a talent"""
    try:
        talent = ctx.store.talents.create(
            name=name, category_id=category_id, gender=gender, price_per_project=price,
            currency=currency, phone_numbers=list(phone), tags=list(tag) or None,
            rating=rating, notes=notes,
        )
    except (ValidationError, StorageError) as e:
        fail(e)
    click.echo(f"✓ Added talent {talent.name} ({talent.id})")


@talents.command('list')
@click.option('--favorites', is_flag=True, help='Only favorites')
@pass_context
def talents_list(ctx, favorites):
    """List talents"""
    rows = []
    for talent in ctx.store.talents.list():
        if favorites and not talent.is_favorite:
            continue
        rows.append([
            talent.id,
            talent.name,
            ctx.store.category_name(talent.category_id),
            talent.gender,
            f"{talent.price_per_project:g} {talent.currency}",
            talent.rating or "",
            "needs update" if needs_photo_update(talent, clock=ctx.store.clock) else "",
        ])
    if not rows:
        click.echo("No talents")
        return
    click.echo(tabulate(rows, headers=["ID", "Name", "Category", "Gender", "Price", "Rating", "Photos"]))


@talents.command('update')
@click.argument('talent_id')
@click.argument('fields', nargs=-1, required=True)
@pass_context
def talents_update(ctx, talent_id, fields):
    """Update a talent: FIELD=VALUE ... (e.g. pricePerProject=600)"""
    updates = dict(field.partition("=")[::2] for field in fields)
    try:
        talent = ctx.store.talents.update(talent_id, updates)
    except (ValidationError, StorageError) as e:
        fail(e)
    if talent is None:
        fail(f"talent {talent_id} not found")
    click.echo(f"✓ Updated {talent.name}")


@talents.command('photos-updated')
@click.argument('talent_id')
@pass_context
def talents_photos_updated(ctx, talent_id):
    """Mark a talent's photos as refreshed today"""
    if ctx.store.talents.mark_photo_updated(talent_id) is None:
        fail(f"talent {talent_id} not found")
    click.echo("✓ Photo date updated")


@talents.command('delete')
@click.argument('talent_id')
@pass_context
def talents_delete(ctx, talent_id):
    """Delete a talent and its bookings"""
    try:
        deleted = ctx.store.talents.delete(talent_id)
    except StorageError as e:
        fail(e)
    if not deleted:
        fail(f"talent {talent_id} not found")
    click.echo("✓ Deleted")


# Categories
@cli.group()
def categories():
    """Manage categories"""


@categories.command('list')
@pass_context
def categories_list(ctx):
    rows = [[c.id, c.name, c.name_ar or "", c.order] for c in ctx.store.categories.ordered()]
    click.echo(tabulate(rows, headers=["ID", "Name", "Arabic", "Order"]))


@categories.command('add')
@click.argument('name')
@click.option('--name-ar', default=None)
@click.option('--order', type=int, default=0)
@pass_context
def categories_add(ctx, name, name_ar, order):
    category = ctx.store.categories.create(name=name, name_ar=name_ar, order=order)
    click.echo(f"✓ Added category {category.name} ({category.id})")


@categories.command('delete')
@click.argument('category_id')
@pass_context
def categories_delete(ctx, category_id):
    """Delete a category; its talents are kept"""
    if not ctx.store.categories.delete(category_id):
        fail(f"category {category_id} not found")
    click.echo("✓ Deleted")


# Projects
@cli.group()
def projects():
    """Manage projects"""


@projects.command('add')
@click.argument('name')
@click.option('--talent', 'line_items', multiple=True,
              help='TALENT_ID or TALENT_ID=CUSTOM_PRICE (repeatable)')
@click.option('--margin', type=float, default=None, help='Profit margin percent')
@click.option('--status', default=ProjectStatus.DRAFT, type=click.Choice(ProjectStatus.all()))
@click.option('--client', 'client_name', default=None)
@pass_context
def projects_add(ctx, name, line_items, margin, status, client_name):
    """Add a project"""
    settings = ctx.store.settings.get()
    try:
        project = ctx.store.projects.create(
            name=name,
            status=status,
            talents=[parse_line_item(item) for item in line_items],
            profit_margin_percent=settings.default_profit_margin if margin is None else margin,
            currency=settings.default_currency,
            client_name=client_name,
        )
    except (ValidationError, StorageError) as e:
        fail(e)
    click.echo(f"✓ Added project {project.name} ({project.id})")


@projects.command('list')
@pass_context
def projects_list(ctx):
    rows = []
    for project in ctx.store.projects.list():
        costs = ctx.store.project_costs(project)
        rows.append([project.id, project.name, project.status, len(project.talents),
                     f"{costs.total:g} {project.currency}"])
    if not rows:
        click.echo("No projects")
        return
    click.echo(tabulate(rows, headers=["ID", "Name", "Status", "Talents", "Total"]))


@projects.command('costs')
@click.argument('project_id')
@pass_context
def projects_costs(ctx, project_id):
    """Show a project's price breakdown"""
    project = ctx.store.projects.get_by_id(project_id)
    if project is None:
        fail(f"project {project_id} not found")

    talents = ctx.store.talents.list()
    rows = []
    for line_item, talent in ctx.store.projects.active_talents(project, talents):
        price = line_item.custom_price if line_item.custom_price is not None else talent.price_per_project
        rows.append([talent.name, f"{price:g}"])
    click.echo(tabulate(rows, headers=["Talent", "Price"]))

    costs = ctx.store.project_costs(project)
    click.echo(f"\nSubtotal: {costs.subtotal:g} {project.currency}")
    click.echo(f"Profit ({project.profit_margin_percent:g}%): {costs.profit:g} {project.currency}")
    click.echo(f"Total: {costs.total:g} {project.currency}")
    if project.total_paid:
        click.echo(f"Outstanding: {outstanding_balance(project, talents):g} {project.currency}")


@projects.command('pay')
@click.argument('project_id')
@click.argument('amount', type=float)
@click.option('--date', 'paid_on', default=None, help='Payment date (YYYY-MM-DD, default today)')
@click.option('--note', default=None)
@pass_context
def projects_pay(ctx, project_id, amount, paid_on, note):
    """Record a client payment"""
    paid_on = paid_on or ctx.store.clock.now().date().isoformat()
    project = ctx.store.projects.add_payment(project_id, amount, paid_on, note)
    if project is None:
        fail(f"project {project_id} not found")
    click.echo(f"✓ Total paid: {project.total_paid:g} {project.currency}")


@projects.command('delete')
@click.argument('project_id')
@pass_context
def projects_delete(ctx, project_id):
    if not ctx.store.projects.delete(project_id):
        fail(f"project {project_id} not found")
    click.echo("✓ Deleted")


# Bookings
@cli.group()
def bookings():
    """Manage talent bookings"""


@bookings.command('add')
@click.argument('talent_id')
@click.argument('title')
@click.option('--start', required=True, type=click.DateTime(), help='Start date/time')
@click.option('--end', required=True, type=click.DateTime(), help='End date/time')
@click.option('--all-day', is_flag=True)
@click.option('--location', default=None)
@click.option('--project', 'project_id', default=None)
@pass_context
def bookings_add(ctx, talent_id, title, start, end, all_day, location, project_id):
    """Book a talent"""
    if ctx.store.talents.get_by_id(talent_id) is None:
        fail(f"talent {talent_id} not found")
    if end < start:
        fail("end must not be before start")
    booking = ctx.store.bookings.create(
        talent_id=talent_id, title=title, start_date=start, end_date=end,
        all_day=all_day, location=location, project_id=project_id,
    )
    click.echo(f"✓ Added booking {booking.id}")


@bookings.command('list')
@click.option('--talent', 'talent_id', default=None)
@pass_context
def bookings_list(ctx, talent_id):
    items = ctx.store.bookings.list_for_talent(talent_id) if talent_id else ctx.store.bookings.list()
    rows = [
        [b.id, b.talent_id, b.title, b.start_date.strftime('%Y-%m-%d %H:%M'), b.end_date.strftime('%Y-%m-%d %H:%M')]
        for b in sorted(items, key=lambda b: b.start_date)
    ]
    click.echo(tabulate(rows, headers=["ID", "Talent", "Title", "Start", "End"]))


# Settings
@cli.group()
def settings():
    """View and change settings"""


@settings.command('show')
@pass_context
def settings_show(ctx):
    current = ctx.store.settings.get().to_storage()
    current.pop("messageTemplates", None)
    click.echo(tabulate(sorted(current.items()), headers=["Setting", "Value"]))


@settings.command('set')
@click.argument('key')
@click.argument('value')
@pass_context
def settings_set(ctx, key, value):
    """Set one setting (camelCase or snake_case key); VALUE is parsed as JSON when possible"""
    try:
        parsed = json.loads(value)
    except ValueError:
        parsed = value
    try:
        ctx.store.settings.save({key: parsed})
    except (ValidationError, StorageError) as e:
        fail(e)
    click.echo(f"✓ {key} = {parsed}")


# Backup
@cli.command('export')
@click.argument('path', type=click.Path(dir_okay=False, writable=True))
@pass_context
def export_backup(ctx, path):
    """Write a JSON backup of all local data"""
    data = ctx.store.export_data()
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
    click.echo(f"✓ Exported {len(data['talents'])} talents and {len(data['projects'])} projects to {path}")


@cli.command('import')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.confirmation_option(prompt='This replaces all local data. Continue?')
@pass_context
def import_backup(ctx, path):
    """Replace local data with a JSON backup"""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        counts = ctx.store.import_data(data)
    except (InvalidBackupError, json.JSONDecodeError, StorageError) as e:
        fail(e)
    click.echo(f"✓ Imported {sum(counts.values())} records")


@cli.command('clear')
@click.confirmation_option(prompt='Delete all local data?')
@pass_context
def clear(ctx):
    ctx.store.clear_all()
    click.echo("✓ All local data cleared")


def main():
    cli()


if __name__ == '__main__':
    main()
