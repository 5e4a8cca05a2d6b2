"""
Core Interfaces Module

Protocols for collaborators owned by the chat framework, so the resilience
and service layers can be tested with plain fakes.

Components:
-----------
- **chat_gateway.py**: ConnectivityProbe and NotificationSender protocols
"""

from statusbot.core.interfaces.chat_gateway import ConnectivityProbe, NotificationSender

__all__ = [
    "ConnectivityProbe",
    "NotificationSender",
]
