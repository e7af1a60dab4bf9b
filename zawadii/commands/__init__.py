"""
CLI Commands for Zawadii.

Usage:
    flask rewards reclaim-stale                    # Reclaim stale reservations
    flask rewards reclaim-stale --dry-run          # Preview only
    flask rewards generate-codes --business-id 1 --reward-id 2 --quantity 20
"""
from .rewards import init_app as init_reward_commands


def init_app(app):
    """Register all CLI commands with the Flask app."""
    init_reward_commands(app)
