"""
Court commands: browse courts and report crowd levels.
"""

import click

from ..core.account_operations import authenticate_session
from ..core.checkin_operations import create_checkin
from ..core.distance import Coordinates
from ..core.resource_operations import get_resource, list_checkins, list_resources
from ..exceptions import CourtCheckError, NotFoundError, ValidationError
from ..logging_config import get_logger, setup_logging
from ..models import CourtStatus
from ..utils import output_json, output_text, validate_coordinates
from .common import (
    build_distance_provider,
    open_client,
    output_options,
    report_error,
    storage_options,
)

logger = get_logger(__name__)

_STATUS_CHOICES = [status.value for status in CourtStatus]


@click.command("get")
@click.argument("court_id")
@storage_options
@output_options
@click.pass_context
def get_court_command(
    ctx: click.Context,
    court_id: str,
    table: str,
    region: str | None,
    profile: str | None,
    timeout: int,
    text: bool,
    verbose: int,
) -> None:
    """Show a single court.

    Examples:

    \b
        courtcheck-tool court get 7f3c2a

    \b
    Output Format:
        Returns JSON:
        {"id": "7f3c2a", "name": "...", "status": "LOW", "lat": 40.1, "long": -73.9, ...}
    """
    setup_logging(verbose)

    try:
        client = open_client(table, region, profile, timeout)
        resource = get_resource(client, court_id)
        if resource is None:
            raise NotFoundError("Court not found")

        if text:
            output_text(f"{resource.name}: {resource.status.value}")
            output_text(f"Updated: {resource.last_updated_at}")
            if resource.address_line:
                output_text(resource.address_line)
        else:
            output_json(resource.to_dict())

    except CourtCheckError as e:
        report_error(ctx, e, text)


@click.command("list")
@click.option("--lat", type=float, help="Your latitude, to sort courts by distance")
@click.option("--long", "lng", type=float, help="Your longitude, to sort courts by distance")
@click.option("--with-checkins", is_flag=True, help="Include each court's check-in log")
@storage_options
@output_options
@click.pass_context
def list_courts_command(
    ctx: click.Context,
    lat: float | None,
    lng: float | None,
    with_checkins: bool,
    table: str,
    region: str | None,
    profile: str | None,
    timeout: int,
    text: bool,
    verbose: int,
) -> None:
    """List courts, nearest first when a position is given.

    Examples:

    \b
        # All courts in stored order
        courtcheck-tool court list

    \b
        # Nearest first, with check-ins
        courtcheck-tool court list --lat 40.7128 --long -74.0060 --with-checkins

    \b
    Output Format:
        Returns JSON:
        {"resources": [{"id": "...", "distance_miles": 0.42, ...}], "count": 12}
    """
    setup_logging(verbose)

    try:
        origin = None
        if lat is not None or lng is not None:
            if lat is None or lng is None:
                raise ValidationError("Both --lat and --long are required to sort by distance")
            origin = Coordinates(*validate_coordinates(lat, lng))

        client = open_client(table, region, profile, timeout)
        result = list_resources(client, origin=origin, include_checkins=with_checkins)

        if text:
            for entry in result["resources"]:
                line = f"{entry['id']}  {entry['name']}  {entry['status']}"
                if "distance_miles" in entry:
                    line += f"  {entry['distance_miles']:.2f} mi"
                output_text(line)
        else:
            output_json(result)

    except CourtCheckError as e:
        report_error(ctx, e, text)


@click.command("checkins")
@click.argument("court_id")
@storage_options
@output_options
@click.pass_context
def court_checkins_command(
    ctx: click.Context,
    court_id: str,
    table: str,
    region: str | None,
    profile: str | None,
    timeout: int,
    text: bool,
    verbose: int,
) -> None:
    """Show the check-in log of a court, oldest first.

    \b
    Output Format:
        Returns JSON:
        {"court_id": "...", "checkins": [...], "count": 3}
    """
    setup_logging(verbose)

    try:
        client = open_client(table, region, profile, timeout)
        if get_resource(client, court_id) is None:
            raise NotFoundError("Court not found")
        checkins = list_checkins(client, court_id)

        if text:
            for checkin in checkins:
                output_text(f"{checkin.created_at}  {checkin.status.value}  {checkin.user_name}")
        else:
            output_json(
                {
                    "court_id": court_id,
                    "checkins": [c.to_dict() for c in checkins],
                    "count": len(checkins),
                }
            )

    except CourtCheckError as e:
        report_error(ctx, e, text)


@click.command("checkin")
@click.argument("court_id")
@click.option(
    "--status",
    type=click.Choice(_STATUS_CHOICES, case_sensitive=False),
    required=True,
    help="How crowded the court is",
)
@click.option("--lat", type=float, required=True, help="Your latitude")
@click.option("--long", "lng", type=float, required=True, help="Your longitude")
@click.option("--photo-url", help="Optional photo of the court")
@click.option("--token", envvar="COURTCHECK_TOKEN", help="Session token")
@click.option("--jwt-secret", envvar="JWT_SECRET", help="Secret used to sign session tokens")
@click.option(
    "--google-api-key",
    envvar="GOOGLE_API_KEY",
    help="Use Google travel distance instead of straight-line distance",
)
@storage_options
@output_options
@click.pass_context
def checkin_command(
    ctx: click.Context,
    court_id: str,
    status: str,
    lat: float,
    lng: float,
    photo_url: str | None,
    token: str | None,
    jwt_secret: str | None,
    google_api_key: str | None,
    table: str,
    region: str | None,
    profile: str | None,
    timeout: int,
    text: bool,
    verbose: int,
) -> None:
    """Check in at a court and report how crowded it is.

    You must be within half a mile of the court, and you can check in at the
    same court once every two hours.

    Examples:

    \b
        courtcheck-tool court checkin 7f3c2a --status LOW --lat 40.7128 --long -74.0060

    \b
    Output Format:
        Returns JSON with the recorded check-in:
        {"checkin_id": "...", "resource_id": "7f3c2a", "status": "LOW", ...}
    """
    setup_logging(verbose)

    try:
        client = open_client(table, region, profile, timeout)
        account = authenticate_session(client, token, secret=jwt_secret)
        provider = build_distance_provider(google_api_key, timeout)
        logger.info(f"Checking in {account.user_id} at court {court_id}")
        logger.debug(f"Distance provider: {type(provider).__name__}")

        checkin = create_checkin(
            client,
            provider,
            user_id=account.user_id,
            resource_id=court_id,
            status=status.upper(),
            latitude=lat,
            longitude=lng,
            photo_url=photo_url,
        )

        if text:
            output_text(f"Checked in: {checkin.status.value} at {checkin.created_at}")
        else:
            output_json(checkin.to_dict())

    except CourtCheckError as e:
        report_error(ctx, e, text)
