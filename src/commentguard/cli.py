"""CommentGuard CLI - database bootstrap and moderation checks from the shell."""

from __future__ import annotations

import sys

import click

from commentguard import __version__
from commentguard.config import Config, load_config
from commentguard.utils.bad_words import BadWordFilter
from commentguard.utils.behavior import SuspiciousBehaviorAuditor
from commentguard.utils.database import DatabaseManager
from commentguard.utils.logging import get_logger, setup_logging
from commentguard.utils.permissions import Role
from commentguard.utils.settings import SettingsStore
from commentguard.utils.spam_detector import get_spam_detector
from commentguard.utils.trust import TrustLedger

logger = get_logger(__name__)


def _database(ctx: click.Context) -> DatabaseManager:
    config: Config = ctx.obj["config"]
    return DatabaseManager(config.database_path)


@click.group()
@click.version_option(version=__version__)
@click.option("--env-file", default=None, help="Path to a .env file")
@click.pass_context
def main(ctx: click.Context, env_file: str | None) -> None:
    """CommentGuard - comment moderation and trust scoring."""
    try:
        config = load_config(env_file)
    except ValueError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    setup_logging(config)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@main.command("init-db")
@click.pass_context
def init_db(ctx: click.Context) -> None:
    """Create the database schema."""
    db = _database(ctx)
    click.echo(f"Database ready at {db.db_path}")


@main.command("seed-settings")
@click.pass_context
def seed_settings(ctx: click.Context) -> None:
    """Write default score settings that are not set yet."""
    store = SettingsStore(_database(ctx))
    written = store.seed_score_defaults()
    click.echo(f"Seeded {written} score setting(s)")


@main.command("make-admin")
@click.argument("user_id")
@click.option("--username", default=None, help="Display name to store")
@click.pass_context
def make_admin(ctx: click.Context, user_id: str, username: str | None) -> None:
    """Create USER_ID if needed and give it the ADMIN role."""
    db = _database(ctx)
    db.get_or_create_user(user_id, username, role=Role.ADMIN.value)
    logger.info("User %s promoted to admin from the CLI", user_id)
    click.echo(f"{user_id} is now an admin")


@main.command("check-text")
@click.argument("text")
@click.pass_context
def check_text(ctx: click.Context, text: str) -> None:
    """Run the content checks on TEXT without storing anything."""
    db = _database(ctx)
    detector = get_spam_detector()

    result = BadWordFilter(db).filter_text(text)
    spam = detector.detect_spam(text)
    ad = detector.detect_advertisement(text)

    click.echo(f"Links:         {'yes' if detector.contains_links(text) else 'no'}")
    click.echo(
        f"Spam:          {'yes' if spam.is_spam else 'no'} "
        f"({spam.confidence:.2f}) {', '.join(spam.reasons)}".rstrip()
    )
    click.echo(
        f"Advertisement: {'yes' if ad.is_advertisement else 'no'} "
        f"({ad.confidence:.2f}) {', '.join(ad.reasons)}".rstrip()
    )
    if result.has_matches:
        words = ", ".join(f"{m.word} ({m.severity.value})" for m in result.matches)
        click.echo(f"Bad words:     {words}")
    else:
        click.echo("Bad words:     none")
    click.echo(f"Censored:      {result.censored_text}")


@main.command("audit")
@click.argument("user_id")
@click.pass_context
def audit(ctx: click.Context, user_id: str) -> None:
    """Show USER_ID's score, comment permission and behavior flags."""
    db = _database(ctx)
    user = db.get_user(user_id)
    if user is None:
        click.echo(f"User {user_id} not found", err=True)
        sys.exit(1)

    ledger = TrustLedger(db)
    permission = ledger.can_user_comment(user_id)
    report = SuspiciousBehaviorAuditor(db).audit(user_id)

    click.echo(f"User:        {user_id} ({user['username'] or '-'}, {user['role']})")
    click.echo(f"Score:       {user['score']}")
    click.echo(
        f"Can comment: {'yes' if permission.can_comment else 'no'}"
        + (f" ({permission.reason})" if permission.reason else "")
    )
    if report.is_suspicious:
        click.echo(f"Suspicious:  {', '.join(report.reasons)}")
    else:
        click.echo("Suspicious:  no")


if __name__ == "__main__":
    main()
