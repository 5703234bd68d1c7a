"""One-shot Zabbix provisioning for Telegram alert delivery.

Makes sure the built-in "Telegram" media type carries the bot token, that the
target Zabbix user has a Telegram media pointing at the configured chat, and
that a trigger action sends problem messages to that user. Safe to re-run:
anything already in place is left alone.
"""

from __future__ import annotations

import logging
from typing import Any

from src.config import Settings
from src.zabbix.client import ZabbixClient, ZabbixError

logger = logging.getLogger(__name__)

MEDIA_TYPE_NAME = "Telegram"
TOKEN_PARAMETER_NAMES = {"token", "bottoken"}

# Zabbix user media: 0 = enabled, 63 = all severities
MEDIA_ACTIVE = "0"
MEDIA_SEVERITY = "63"
MEDIA_PERIOD = "1-7,00:00-24:00"
_MEDIA_FIELDS = ("mediatypeid", "sendto", "active", "severity", "period")

PROBLEM_SUBJECT = "{HOST.NAME} | Problem: {EVENT.NAME}"
PROBLEM_MESSAGE = (
    "Problem started at {EVENT.TIME} on {EVENT.DATE}\n"
    "Problem name: {EVENT.NAME}\n"
    "Host: {HOST.NAME}\n"
    "Severity: {TRIGGER.SEVERITY}\n"
    "Original problem ID: #{EVENT.ID}\n"
    "{TRIGGER.URL}"
)


def _with_token(parameters: list[dict[str, str]], token: str) -> tuple[list[dict[str, str]], bool]:
    """Return parameters with the bot token set, and whether anything changed."""
    changed = False
    updated = []
    for param in parameters:
        param = dict(param)
        if param.get("name", "").lower() in TOKEN_PARAMETER_NAMES and param.get("value") != token:
            param["value"] = token
            changed = True
        updated.append(param)
    return updated, changed


async def _find_media_type(client: ZabbixClient) -> dict[str, Any]:
    media_types = await client.rpc(
        "mediatype.get",
        {
            "output": ["mediatypeid", "name", "parameters", "status"],
            "filter": {"name": MEDIA_TYPE_NAME},
        },
    )
    if not media_types:
        raise ZabbixError(f"Media type '{MEDIA_TYPE_NAME}' not found in Zabbix")
    media_type = media_types[0]
    logger.info("Found media type '%s' (id=%s)", MEDIA_TYPE_NAME, media_type["mediatypeid"])
    return media_type


async def _sync_token(client: ZabbixClient, media_type: dict[str, Any], token: str) -> None:
    if not token:
        logger.warning("No TELEGRAM_BOT_TOKEN or ZBX_BOT_TOKEN, skipping media type token update")
        return
    parameters = media_type.get("parameters")
    if not parameters:
        logger.warning("Telegram media type has no parameters, cannot set token automatically")
        return

    updated, changed = _with_token(parameters, token)
    if not changed:
        logger.info("Telegram media type token already set or not present, skipping update")
        return
    await client.rpc(
        "mediatype.update",
        {"mediatypeid": media_type["mediatypeid"], "parameters": updated},
    )
    logger.info("Updated Telegram media type token")


async def _attach_media(client: ZabbixClient, alias: str, mediatypeid: str, chat_id: str) -> str:
    """Ensure the user has a Telegram media for *chat_id*. Returns the user id."""
    users = await client.rpc(
        "user.get",
        {
            "output": ["userid", "alias", "name"],
            "filter": {"alias": alias},
            "selectMedias": "extend",
        },
    )
    if not users:
        raise ZabbixError(f"User with alias '{alias}' not found")
    user = users[0]
    userid = user.get("userid")
    if not userid:
        raise ZabbixError("userid missing in user.get response")

    medias = [
        {key: media[key] for key in _MEDIA_FIELDS}
        for media in user.get("medias") or []
        if all(key in media for key in _MEDIA_FIELDS)
    ]
    if any(m["mediatypeid"] == mediatypeid and m["sendto"] == chat_id for m in medias):
        logger.info("Telegram media already attached to user %s (chat %s)", userid, chat_id)
        return userid

    medias.append(
        {
            "mediatypeid": mediatypeid,
            "sendto": chat_id,
            "active": MEDIA_ACTIVE,
            "severity": MEDIA_SEVERITY,
            "period": MEDIA_PERIOD,
        }
    )
    await client.rpc("user.update", {"userid": userid, "medias": medias})
    logger.info("Attached Telegram media to user %s (chat %s)", userid, chat_id)
    return userid


async def _ensure_action(client: ZabbixClient, name: str, mediatypeid: str, userid: str) -> None:
    actions = await client.rpc(
        "action.get", {"output": ["actionid", "name"], "filter": {"name": name}}
    )
    if actions:
        logger.info("Action already exists (id=%s)", actions[0].get("actionid", ""))
        return

    created = await client.rpc(
        "action.create",
        {
            "name": name,
            "eventsource": 0,  # triggers
            "status": 0,  # enabled
            "operations": [
                {
                    "operationtype": 0,
                    "opmessage": {
                        "default_msg": 0,
                        "mediatypeid": mediatypeid,
                        "subject": PROBLEM_SUBJECT,
                        "message": PROBLEM_MESSAGE,
                    },
                    "opmessage_usr": [{"userid": userid}],
                }
            ],
        },
    )
    logger.info("Created action '%s': %s", name, created)


async def run_setup(settings: Settings, *, client: ZabbixClient | None = None) -> None:
    """Configure Zabbix to deliver alerts to Telegram."""
    owned = client is None
    client = client or ZabbixClient(settings.zbx_api_url)
    try:
        await client.login(settings.zbx_user, settings.zbx_password)

        media_type = await _find_media_type(client)
        mediatypeid = media_type["mediatypeid"]
        await _sync_token(client, media_type, settings.setup_bot_token())

        userid = await _attach_media(
            client, settings.zbx_user_alias, mediatypeid, settings.zbx_chat_id
        )
        await _ensure_action(client, settings.zbx_action_name, mediatypeid, userid)
    finally:
        if owned:
            await client.aclose()

    logger.info("Zabbix setup completed")
