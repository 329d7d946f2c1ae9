"""CLI entry point for courtcheck-tool."""

import click

from courtcheck_tool.courts.commands.account_commands import rename_command, set_billing_command
from courtcheck_tool.courts.commands.auth_commands import (
    request_command,
    verify_command,
    whoami_command,
)
from courtcheck_tool.courts.commands.court_commands import (
    checkin_command,
    court_checkins_command,
    get_court_command,
    list_courts_command,
)
from courtcheck_tool.courts.commands.table_commands import (
    create_table_command,
    drop_table_command,
    table_status_command,
)


@click.group()
@click.version_option(version="0.1.0")
def main() -> None:
    """Live crowd levels for sports courts, reported by players on site"""
    pass


@main.group("table")
def table() -> None:
    """Manage the DynamoDB table"""
    pass


@main.group("auth")
def auth() -> None:
    """Passwordless sign-in with emailed one-time codes"""
    pass


@main.group("account")
def account() -> None:
    """Manage the signed-in account"""
    pass


@main.group("court")
def court() -> None:
    """Browse courts and check in"""
    pass


# Register table commands
table.add_command(create_table_command)
table.add_command(drop_table_command)
table.add_command(table_status_command)

# Register auth commands
auth.add_command(request_command)
auth.add_command(verify_command)
auth.add_command(whoami_command)

# Register account commands
account.add_command(rename_command)
account.add_command(set_billing_command)

# Register court commands
court.add_command(get_court_command)
court.add_command(list_courts_command)
court.add_command(court_checkins_command)
court.add_command(checkin_command)

if __name__ == "__main__":
    main()
