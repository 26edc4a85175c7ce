"""Battle domain services: deck, effect resolution, sessions and the lobby.

This package holds the game mechanics and is imported by the socket
handlers, keeping transport concerns separated from the rules.
"""

from .lobby import Lobby, Matchmaker, SessionRegistry
from .session import BattleSession
from .scheduler import TimerScheduler
from .relay import DeliveryHandle

__all__ = [
    'Lobby',
    'Matchmaker',
    'SessionRegistry',
    'BattleSession',
    'TimerScheduler',
    'DeliveryHandle',
]
