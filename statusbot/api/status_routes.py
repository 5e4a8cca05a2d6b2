"""
Status Routes

Public bot information for the status page and invite link.
"""

from fastapi import APIRouter, HTTPException, Response
from fastapi.responses import RedirectResponse

from statusbot.api.dependencies import ServicesDep, SettingsDep
from statusbot.core.config.constants import INVITE_URL_TEMPLATE
from statusbot.core.config.settings import Settings
from statusbot.monitoring import metrics

router = APIRouter(tags=["Status"])

COMMANDS = [
    {
        "name": "warframe",
        "description": "Get live Warframe game data including alerts, events, and world state information",
        "category": "Gaming",
        "usage": "High",
    },
    {
        "name": "bot_notification",
        "description": "Configure and manage bot notification settings for your server",
        "category": "Administration",
        "usage": "Medium",
    },
    {
        "name": "categorypermissionedit",
        "description": "Edit permissions for Discord categories",
        "category": "Administration",
        "usage": "Low",
    },
]

FEATURES = [
    "Warframe Integration",
    "Bot Notifications",
    "Permission Management",
    "Real-time Updates",
    "Admin Controls",
]


def build_invite_url(settings: Settings) -> str | None:
    client_id = settings.app.BOT_CLIENT_ID
    if not client_id:
        return None
    return INVITE_URL_TEMPLATE.format(client_id=client_id)


@router.get("/")
async def root(settings: SettingsDep):
    return {
        "name": settings.app.APP_NAME,
        "version": settings.app.APP_VERSION,
        "environment": settings.app.ENVIRONMENT,
        "docs": "/docs",
        "health": "/health",
    }


@router.get("/api")
async def bot_info(services: ServicesDep):
    settings = services.settings
    probe = services.connectivity_probe
    online = probe is not None and probe.is_ready()
    notification_config = await services.notification_store.get_config()

    return {
        "bot": {
            "name": settings.app.APP_NAME,
            "id": settings.app.BOT_CLIENT_ID,
            "status": "online" if online else "offline",
            "version": settings.app.APP_VERSION,
        },
        "stats": {
            "guilds": len(notification_config.guilds),
            "commands": len(COMMANDS),
            "ping": probe.latency_ms() if online else None,
        },
        "commands": COMMANDS,
        "features": FEATURES,
        "inviteUrl": build_invite_url(settings),
        "message": f"Online as {settings.app.APP_NAME}" if online else f"{settings.app.APP_NAME} is offline",
    }


@router.get("/invite")
async def invite(settings: SettingsDep):
    invite_url = build_invite_url(settings)
    if invite_url is None:
        raise HTTPException(status_code=404, detail="Invite link is not configured")
    return RedirectResponse(invite_url, status_code=302)


@router.get("/metrics", include_in_schema=False)
async def prometheus_metrics():
    payload, content_type = metrics.render_metrics()
    return Response(content=payload, media_type=content_type)
