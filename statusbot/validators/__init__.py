from statusbot.validators.sanitizer import (
    sanitize_object,
    sanitize_string,
    validate_channel_name,
    validate_discord_id,
    validate_url,
)

__all__ = [
    "sanitize_object",
    "sanitize_string",
    "validate_channel_name",
    "validate_discord_id",
    "validate_url",
]
