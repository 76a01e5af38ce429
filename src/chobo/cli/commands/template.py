"""Statement template management commands."""

import click
from chobo.domain.csv_template import CSVTemplateService, DATE_FORMATS, FIELD_NAMES
from chobo.domain.errors import DomainError
from chobo.utils.csv_decoder import ENCODINGS
from chobo.cli.error_handling import handle_domain_error


@click.group()
def template_group():
    """Manage statement templates."""
    pass


def _require(ctx, service: CSVTemplateService, name: str):
    template = service.get_template_by_name(name)
    if template is None:
        click.echo(f"Error: CSV template '{name}' not found", err=True)
        ctx.exit(1)
    return template


@template_group.command("create")
@click.argument("name")
@click.option("--bank", required=True, help="Bank or card company name")
@click.option(
    "--encoding",
    type=click.Choice(list(ENCODINGS)),
    default="UTF-8",
    show_default=True,
    help="File encoding",
)
@click.option("--delimiter", default=",", show_default=True, help="Field separator")
@click.option("--skip-rows", type=int, default=0, show_default=True, help="Lines before the header row")
@click.option(
    "--date-format",
    default="YYYY/MM/DD",
    show_default=True,
    help=f"Date format ({', '.join(DATE_FORMATS)})",
)
@click.pass_context
def create_template(
    ctx, name: str, bank: str, encoding: str, delimiter: str, skip_rows: int, date_format: str
):
    """Create a new statement template."""
    db = ctx.obj["db"]
    service = CSVTemplateService(db)

    try:
        template_id = service.create_template(
            name=name,
            bank_name=bank,
            encoding=encoding,
            delimiter=delimiter,
            skip_rows=skip_rows,
            date_format=date_format,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created CSV template '{name}' (ID: {template_id})")
    click.echo("Use 'template map' to add column mappings.")


@template_group.command("map")
@click.argument("template_name")
@click.argument("field", type=click.Choice(sorted(FIELD_NAMES)))
@click.argument("csv_column")
@click.pass_context
def map_column(ctx, template_name: str, field: str, csv_column: str):
    """Map a logical FIELD to a statement column.

    Examples:
        chobo template map mybank date 取引日
        chobo template map mybank withdrawal 出金額
    """
    db = ctx.obj["db"]
    service = CSVTemplateService(db)
    template = _require(ctx, service, template_name)

    try:
        mapping_id = service.add_mapping(template.id, csv_column, field)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Mapped '{field}' to column '{csv_column}' (ID: {mapping_id})")


@template_group.command("list")
@click.pass_context
def list_templates(ctx):
    """List statement templates."""
    db = ctx.obj["db"]
    service = CSVTemplateService(db)

    templates = service.list_templates()
    if not templates:
        click.echo("No CSV templates found.")
        return

    click.echo("\nCSV Templates:")
    click.echo("-" * 60)
    for template in templates:
        is_valid, missing = service.validate_template(template.id)
        status = "✓" if is_valid else "✗"
        click.echo(f"{status} {template.name} (ID: {template.id}, {template.bank_name}, {template.encoding})")
        if not is_valid:
            click.echo(f"  Missing required fields: {', '.join(missing)}")


@template_group.command("show")
@click.argument("template_name")
@click.pass_context
def show_template(ctx, template_name: str):
    """Show a template and its column mappings."""
    db = ctx.obj["db"]
    service = CSVTemplateService(db)
    template = _require(ctx, service, template_name)

    click.echo(f"Template:    {template.name} (ID: {template.id})")
    click.echo(f"Bank:        {template.bank_name}")
    click.echo(f"Encoding:    {template.encoding}")
    click.echo(f"Delimiter:   {template.delimiter!r}")
    click.echo(f"Skip rows:   {template.skip_rows}")
    click.echo(f"Date format: {template.date_format}")
    mappings = service.get_mappings(template.id)
    if mappings:
        click.echo("Mappings:")
        for m in mappings:
            click.echo(f"  {m.field_name:12s} <- {m.csv_column_name}")


@template_group.command("delete")
@click.argument("template_name")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_template(ctx, template_name: str, yes: bool):
    """Delete a template and its mappings."""
    db = ctx.obj["db"]
    service = CSVTemplateService(db)
    template = _require(ctx, service, template_name)

    if not yes:
        click.confirm(f"Delete template '{template.name}'?", abort=True)

    try:
        service.delete_template(template.id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted CSV template '{template.name}'")


def register_commands(cli):
    """Register template commands with main CLI."""
    cli.add_command(template_group, name="template")
