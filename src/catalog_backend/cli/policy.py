import click
import yaml

from catalog_backend.api.auth import get_catalog_user
from catalog_backend.database import get_db
from catalog_backend.permissions.core import get_access_policy


@click.command()
def show():
    """Print the effective per-account override tables"""

    facts = get_access_policy().facts

    click.echo(yaml.safe_dump({
        "admin_denylist": sorted(facts.admin_denylist),
        "grade_limited": {username: list(grades) for username, grades in sorted(facts.grade_limited.items())},
        "restricted_area": facts.restricted_area,
        "restricted_area_editors": sorted(facts.restricted_area_editors),
        "restricted_area_viewers": sorted(facts.restricted_area_viewers),
    }, sort_keys=False))


@click.command()
@click.argument("username")
@click.argument("learning_area")
@click.argument("grade_level", type=click.IntRange(1, 12))
def check(username, learning_area, grade_level):
    """Evaluate whether a stored user may access an area and grade"""

    with next(get_db()) as db:
        user = get_catalog_user(username, db)

    if user is None:
        raise click.ClickException(f"User {username} not found")

    allowed = get_access_policy().may_access(user, learning_area, grade_level)

    click.echo("allow" if allowed else "deny")


@click.group()
def policy():
    pass

policy.add_command(show,"show")
policy.add_command(check,"check")
