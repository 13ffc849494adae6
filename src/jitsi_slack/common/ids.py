"""
Генерация идентификаторов.

Назначение:
- имя комнаты конференции (URL-safe, случайное на каждый вызов)
"""

from __future__ import annotations

import secrets

_ADJECTIVES = (
    "Amber", "Bold", "Brave", "Bright", "Calm", "Clever", "Cosmic", "Crisp",
    "Daring", "Eager", "Fancy", "Gentle", "Golden", "Happy", "Humble", "Jolly",
    "Kind", "Lively", "Lucky", "Mellow", "Merry", "Noble", "Quiet", "Rapid",
    "Silent", "Smooth", "Sunny", "Swift", "Tidy", "Vivid", "Witty", "Zesty",
)

_NOUNS = (
    "Badgers", "Beacons", "Canyons", "Comets", "Dolphins", "Falcons", "Forests",
    "Galaxies", "Glaciers", "Harbors", "Islands", "Lanterns", "Meadows", "Nebulas",
    "Oceans", "Orchards", "Otters", "Panthers", "Pebbles", "Pioneers", "Planets",
    "Rivers", "Rockets", "Sparrows", "Summits", "Tigers", "Tulips", "Valleys",
    "Voyagers", "Walruses", "Willows", "Zephyrs",
)

# 8 байт = 64 случайных бита: коллизии на сотнях тысяч имён пренебрежимо редки
_RANDOM_BYTES = 8


def new_room_name() -> str:
    """
    Имя комнаты: <Adjective><Noun><16 hex>.
    Только [A-Za-z0-9], можно подставлять в URL без экранирования.
    """
    adjective = secrets.choice(_ADJECTIVES)
    noun = secrets.choice(_NOUNS)
    return f"{adjective}{noun}{secrets.token_hex(_RANDOM_BYTES)}"
