import functools
import json

import click

from docq.config import configure_logging, load_config, open_storage
from docq.criteria import ASCENDING, DESCENDING, Criteria
from docq.errors import DocqError, DocumentNotFoundError
from docq.utils.utils import parse_assignment, parse_value

# Opened on first use; tests patch this with a temporary storage
storage = None


def get_storage():
    global storage
    if storage is None:
        try:
            storage = open_storage(load_config())
        except DocqError as exc:
            raise click.ClickException(str(exc))
    return storage


def _assignments(values):
    fields = {}
    for text in values:
        try:
            key, value = parse_assignment(text)
        except ValueError as exc:
            raise click.BadParameter(str(exc))
        fields[key] = value
    return fields


def query_options(command):
    """Options shared by every command that runs a query"""
    options = [
        click.option('--where', '-w', multiple=True, help='Equality filter as key=value'),
        click.option('--in', 'in_', multiple=True, help='Membership filter as key=a,b,c'),
        click.option('--none', 'match_none', is_flag=True, help='Match nothing'),
        click.option('--parent', type=int, help='Only documents embedded in this parent id'),
        click.option('--only', multiple=True, help='Fields to keep in results'),
        click.option('--sort', 'sort_field', help='Field to sort by'),
        click.option('--desc', is_flag=True, help='Sort descending'),
        click.option('--limit', type=int, help='Maximum number of results'),
        click.option('--skip', type=int, default=0, help='Number of results to skip'),
    ]
    for option in reversed(options):
        command = option(command)
    return command


def build_criteria(entity, where=(), in_=(), match_none=False, parent=None, only=(),
                   sort_field=None, desc=False, limit=None, skip=0):
    """Translate command-line query options into a Criteria"""
    if parent is not None:
        criteria = Criteria.children_of(entity, get_storage().get_document(parent))
    else:
        criteria = Criteria(entity)
    if where:
        criteria = criteria.where(_assignments(where))
    for text in in_:
        key, sep, values = text.partition('=')
        if not sep or not key.strip():
            raise click.BadParameter(f"Expected key=a,b,c, got {text!r}")
        items = [parse_value(v) for v in values.split(',') if v.strip()]
        criteria = criteria.any_in(**{key.strip(): items})
    if only:
        criteria = criteria.only(*only)
    if sort_field:
        criteria = criteria.order_by(sort_field, DESCENDING if desc else ASCENDING)
    if limit is not None:
        criteria = criteria.limited(limit)
    if skip:
        criteria = criteria.skipped(skip)
    if match_none:
        criteria = criteria.none()
    return criteria


def with_context(func):
    """Resolve query options into a context and pass it on"""
    @functools.wraps(func)
    def wrapper(entity, where, in_, match_none, parent, only, sort_field, desc, limit, skip, **kwargs):
        try:
            criteria = build_criteria(entity, where, in_, match_none, parent, only,
                                      sort_field, desc, limit, skip)
            return func(criteria.context(get_storage()), **kwargs)
        except DocqError as exc:
            raise click.ClickException(str(exc))
    return wrapper


def _format_value(value):
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value)
    return str(value)


@click.group()
@click.version_option(version="0.1.0", prog_name="docq")
@click.option('--verbose', '-v', is_flag=True, help='Log queries and storage access')
def cli(verbose):
    """DOCQ - Query a local document store from the terminal"""
    configure_logging(verbose)


@cli.command()
@click.argument('entity')
@click.option('--field', '-f', 'field_values', multiple=True, help='Field as key=value')
@click.option('--parent', type=int, help='Parent document id')
def add(entity, field_values, parent):
    """Add a document of type ENTITY"""
    if not entity or not entity.strip():
        raise click.BadParameter("Entity name cannot be empty", param_hint='ENTITY')
    fields = _assignments(field_values)
    store = get_storage()
    if parent is not None and store.get_document(parent) is None:
        raise click.ClickException(f"Parent document #{parent} not found")
    try:
        record = store.add_document(entity.strip(), fields, parent_id=parent)
    except DocqError as exc:
        raise click.ClickException(str(exc))
    click.secho(f"✔ Added {record.entity} #{record.id}", fg='green')


@cli.command()
@click.argument('document_id', type=int)
def rm(document_id):
    """Remove a document by id"""
    try:
        if not get_storage().delete_document(document_id):
            raise DocumentNotFoundError(f"Document #{document_id} not found")
    except DocqError as exc:
        raise click.ClickException(str(exc))
    click.secho(f"✔ Removed document #{document_id}", fg='green')


@cli.command()
def entities():
    """List entity types present in the store"""
    names = get_storage().list_entities()
    if not names:
        click.echo("No documents found")
        return
    for name in names:
        click.echo(name)


@cli.command()
@click.argument('entity')
@query_options
@with_context
def find(context):
    """Show documents of type ENTITY"""
    shown = []
    context.iterate(shown.append)
    if not shown:
        click.echo("No documents found")
        return
    for record in shown:
        fields = ", ".join(f"{k}={_format_value(v)}" for k, v in record.fields.items())
        parent = f" (parent #{record.parent_id})" if record.parent_id is not None else ""
        click.echo(f"#{record.id} {record.entity}{parent}: {fields}")


@cli.command()
@click.argument('entity')
@query_options
@with_context
def count(context):
    """Count documents of type ENTITY"""
    click.echo(context.count())


@cli.command()
@click.argument('entity')
@query_options
@with_context
def exists(context):
    """Exit with status 1 when no document matches"""
    found = context.exists()
    click.echo("yes" if found else "no")
    if not found:
        raise click.exceptions.Exit(1)


@cli.command()
@click.argument('entity')
@click.argument('fields', nargs=-1, required=True)
@query_options
@with_context
def pluck(context, fields):
    """Print FIELDS of each matching document"""
    for row in context.pluck(*fields):
        values = row if len(fields) > 1 else (row,)
        click.echo("\t".join(_format_value(v) for v in values))


@cli.command()
@click.argument('entity')
@click.argument('field')
@query_options
@with_context
def distinct(context, field):
    """Print the distinct values of FIELD"""
    for value in context.distinct(field):
        click.echo(_format_value(value))


@cli.command()
@click.argument('entity')
@click.argument('operation', type=click.Choice(['sum', 'avg', 'min', 'max']))
@click.argument('field')
@query_options
@with_context
def aggregate(context, operation, field):
    """Compute OPERATION over FIELD of matching documents"""
    result = getattr(context, operation)(field)
    click.echo("null" if result is None else _format_value(result))


if __name__ == '__main__':
    cli()
