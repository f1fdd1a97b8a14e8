"""Slash commands for configuring a workspace's escalation manager.

- /_set_manager <user>   set the manager DM'd on escalation
- /_unset_manager        clear it
- /_get_manager          show it
"""

import logging
from collections.abc import Awaitable, Callable
from enum import Enum

from fastapi.responses import JSONResponse

from mention_reminder.errors import ReminderError, TenantNotFoundError
from mention_reminder.reminder.ports import TenantStore
from mention_reminder.slack.users import SlackUserDirectory

logger = logging.getLogger(__name__)

NOT_REGISTERED_TEXT = "This workspace is not registered. Please reinstall the app."


class SlashCommand(str, Enum):
    SET_MANAGER = "/_set_manager"
    UNSET_MANAGER = "/_unset_manager"
    GET_MANAGER = "/_get_manager"


def ephemeral(text: str, status_code: int = 200) -> JSONResponse:
    """Response visible only to the user who ran the command."""
    return JSONResponse({"response_type": "ephemeral", "text": text}, status_code=status_code)


async def handle_slash_command(
    form: dict[str, str], tenants: TenantStore, users: SlackUserDirectory
) -> JSONResponse:
    """Dispatch a verified slash command form to its handler."""
    command_name = form.get("command", "")
    try:
        command = SlashCommand(command_name)
    except ValueError:
        return ephemeral(f"Unknown command: {command_name}", status_code=400)

    team_id = form.get("team_id", "")
    text = form.get("text", "").strip()
    logger.info("%s called for team %s", command.value, team_id)
    return await _COMMAND_HANDLERS[command](team_id, text, tenants, users)


async def _set_manager(
    team_id: str, text: str, tenants: TenantStore, users: SlackUserDirectory
) -> JSONResponse:
    if not text:
        return ephemeral("Usage: /_set_manager @user")

    try:
        manager_id = await users.resolve(team_id, text)
    except ReminderError as exc:
        logger.warning("User lookup failed for %s", text, exc_info=True)
        return ephemeral(f"User lookup failed: {exc}", status_code=500)
    if manager_id is None:
        return ephemeral(f"No user found matching {text}")

    try:
        await tenants.set_manager(team_id, manager_id)
    except TenantNotFoundError:
        return ephemeral(NOT_REGISTERED_TEXT)
    except ReminderError as exc:
        logger.error("Failed to set manager for %s", team_id, exc_info=True)
        return ephemeral(f"Failed to set manager: {exc}", status_code=500)

    return ephemeral(f"Manager set to <@{manager_id}>")


async def _unset_manager(
    team_id: str, text: str, tenants: TenantStore, users: SlackUserDirectory
) -> JSONResponse:
    try:
        await tenants.set_manager(team_id, None)
    except TenantNotFoundError:
        return ephemeral(NOT_REGISTERED_TEXT)
    except ReminderError:
        logger.error("Failed to clear manager for %s", team_id, exc_info=True)
        return ephemeral("Failed to clear manager", status_code=500)

    return ephemeral("Manager cleared")


async def _get_manager(
    team_id: str, text: str, tenants: TenantStore, users: SlackUserDirectory
) -> JSONResponse:
    try:
        tenant = await tenants.get(team_id)
    except TenantNotFoundError:
        return ephemeral(NOT_REGISTERED_TEXT)
    except ReminderError:
        logger.error("Failed to load tenant %s", team_id, exc_info=True)
        return ephemeral("Failed to load workspace settings", status_code=500)

    if tenant.manager_user_id is None:
        return ephemeral("No manager configured")
    return ephemeral(f"Current manager: <@{tenant.manager_user_id}>")


_COMMAND_HANDLERS: dict[
    SlashCommand,
    Callable[[str, str, TenantStore, SlackUserDirectory], Awaitable[JSONResponse]],
] = {
    SlashCommand.SET_MANAGER: _set_manager,
    SlashCommand.UNSET_MANAGER: _unset_manager,
    SlashCommand.GET_MANAGER: _get_manager,
}
