"""
Maintenance Commands
Destructive bulk operations run from the command line:

    flask --app wsgi prune-results --months 6
    flask --app wsgi purge-violations --yes
"""
import click

from proctor.errors import ProctorError


def register_commands(app):
    from proctor import get_engine

    @app.cli.command('prune-results')
    @click.option('--months', type=int, required=True, help='Delete results older than this.')
    def prune_results(months):
        """Delete quiz results older than MONTHS months"""
        click.echo(f"\n{'=' * 50}")
        click.echo("PRUNE QUIZ RESULTS")
        click.echo(f"{'=' * 50}")
        try:
            deleted = get_engine().results.prune_older_than(months)
        except ProctorError as exc:
            raise click.ClickException(exc.message)
        click.echo(f"Deleted {deleted} results older than {months} months")

    @app.cli.command('purge-violations')
    @click.option('--yes', is_flag=True, help='Confirm deleting every violation record.')
    def purge_violations(yes):
        """Delete ALL violation records; cannot be undone"""
        if not yes:
            raise click.ClickException("Refusing to purge without --yes")
        try:
            deleted = get_engine().violations.delete_all()
        except ProctorError as exc:
            raise click.ClickException(exc.message)
        click.echo(f"Deleted {deleted} violation records")
