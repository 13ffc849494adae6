from __future__ import annotations

import re
from urllib.parse import quote

from jitsi_slack.common.ids import new_room_name


def test_room_name_is_url_safe() -> None:
    for _ in range(1000):
        name = new_room_name()
        assert re.fullmatch(r"[A-Za-z]+[0-9a-f]{16}", name)
        assert quote(name, safe="") == name


def test_room_names_do_not_collide() -> None:
    names = [new_room_name() for _ in range(100_000)]
    assert len(set(names)) == len(names)
