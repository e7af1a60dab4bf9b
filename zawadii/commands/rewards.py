"""
CLI Commands for reward inventory.

Reservation reclaim can run from cron instead of the background scheduler:

# Every 5 minutes
*/5 * * * * cd /app && flask rewards reclaim-stale
"""

import click
from flask import current_app
from flask.cli import with_appcontext

from ..services.reward_code_service import reward_code_service
from ..services.scheduled_tasks import scheduled_tasks_service
from ..utils.exceptions import ZawadiiError


@click.group('rewards')
def rewards_cli():
    """Reward inventory commands."""
    pass


@rewards_cli.command('reclaim-stale')
@click.option('--minutes', type=int, default=None,
              help='Reservation age in minutes (default: REWARD_RESERVATION_TIMEOUT_MINUTES)')
@click.option('--business-id', type=int, help='Specific business ID (or all if not specified)')
@click.option('--dry-run', is_flag=True, help='Preview without releasing codes')
@with_appcontext
def reclaim_stale(minutes, business_id, dry_run):
    """
    Return reward codes stuck in pending back to inventory.

    A code is stuck when the send that reserved it never finished.
    """
    if minutes is None:
        minutes = current_app.config.get('REWARD_RESERVATION_TIMEOUT_MINUTES', 15)

    result = scheduled_tasks_service.reclaim_stale_reservations(
        timeout_minutes=minutes,
        business_id=business_id,
        dry_run=dry_run
    )

    prefix = '[DRY RUN] ' if dry_run else ''
    click.echo(f"{prefix}Reservations older than {minutes} minutes (before {result['cutoff']})")
    click.echo(f"  Stale: {result['processed']}")
    click.echo(f"  Reclaimed: {result['reclaimed']}")
    click.echo(f"  Claims deleted: {result['claims_deleted']}")

    for detail in result['details'][:10]:
        click.echo(f"    - {detail['code']} (business {detail['business_id']})")

    if result['errors']:
        click.echo(f"  Errors: {len(result['errors'])}")
        for error in result['errors'][:5]:
            click.echo(f"    - Code {error['reward_code_id']}: {error['error']}")


@rewards_cli.command('generate-codes')
@click.option('--business-id', type=int, required=True, help='Business ID')
@click.option('--reward-id', type=int, required=True, help='Reward ID')
@click.option('--quantity', type=int, default=10, help='Number of codes, 1-100 (default: 10)')
@with_appcontext
def generate_codes(business_id, reward_id, quantity):
    """Generate a batch of unused codes for a reward."""
    try:
        codes = reward_code_service.generate_codes(business_id, reward_id, quantity)
    except ZawadiiError as e:
        raise click.ClickException(e.message)

    click.echo(f"Generated {len(codes)} codes:")
    for code in codes:
        click.echo(f"  {code.code}")


def init_app(app):
    """Register CLI commands with the Flask app."""
    app.cli.add_command(rewards_cli)
