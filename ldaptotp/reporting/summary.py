import click
from prettytable import PrettyTable

from ldaptotp.consts import ACLS_FILE, PASSWORD_FILE, SCHEMA_FILE, SERVICE_ACCOUNT_FILE
from ldaptotp.models.artifact import SetupResult


def build_artifact_table(result: SetupResult) -> PrettyTable:
    table = PrettyTable()
    table.field_names = ["File", "Description"]
    table.align = "l"
    for artifact in result.created_artifacts:
        table.add_row([artifact.name, artifact.description(result.base_dn)])
    return table


def next_steps(result: SetupResult) -> list[str]:
    """The commands the operator still has to run against their server."""
    output_dir = result.output_dir
    base_dn = result.base_dn
    return [
        "1. Review and adjust the ACLs in totp-acls.ldif:\n"
        "   - Update the admin group DN if needed\n"
        "   - Update the service account DN if needed",
        "2. Add schema to OpenLDAP:\n"
        f"   sudo ldapadd -Y EXTERNAL -H ldapi:/// -f {output_dir}/{SCHEMA_FILE}",
        "3. Create the services OU and service account:\n"
        f'   ldapadd -x -D "cn=admin,{base_dn}" -W -f {output_dir}/{SERVICE_ACCOUNT_FILE}',
        "4. Apply access controls:\n"
        f"   sudo ldapmodify -Y EXTERNAL -H ldapi:/// -f {output_dir}/{ACLS_FILE}",
    ]


def print_summary(result: SetupResult):
    click.echo("")
    click.echo("==========================================")
    click.echo(click.style("Setup complete!", fg="green"))
    click.echo("==========================================")
    click.echo("")
    click.echo(f"Files created in: {result.output_dir}")
    click.echo("")

    if result.created_artifacts:
        click.echo(build_artifact_table(result).get_string())
    else:
        click.echo("  (no files were created)")
    click.echo("")

    password_artifact = result.get_artifact(PASSWORD_FILE)
    if password_artifact and password_artifact.exists:
        click.echo(
            f"{click.style('IMPORTANT:', fg='yellow', bold=True)} "
            "The service account password has been saved to:"
        )
        click.echo(f"  {password_artifact.path}")
        click.echo("")
        click.echo(
            "  Store this password securely and delete the file after "
            "configuring your services."
        )
        click.echo("")

    click.echo("Next steps:")
    click.echo("")
    for step in next_steps(result):
        click.echo(step)
        click.echo("")
    click.echo(
        "For osixia/openldap Docker container, see the README for volume mount "
        "instructions."
    )
    click.echo("")
