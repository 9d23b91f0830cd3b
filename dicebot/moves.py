import typing

import yaml


class Move:
    def __init__(
        self,
        name: str,
        description: str = "",
        roll: str = "",
        hit: str = "",
        pass_: str = "",
        miss: str = "",
    ) -> None:
        self.name = name
        self.description = description
        self.roll = roll
        self.hit = hit
        self.pass_ = pass_
        self.miss = miss

    @classmethod
    def on_load(cls, raw_data) -> "Move":
        return Move(
            raw_data["name"],
            raw_data.get("description", ""),
            raw_data.get("roll", ""),
            raw_data.get("hit", ""),
            raw_data.get("pass", ""),
            raw_data.get("miss", ""),
        )

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Move) and vars(self) == vars(other)

    def __repr__(self) -> str:
        return "Move(%r)" % self.name

    def outcome(self, value: int) -> str:
        if value >= 10:
            return self.hit
        if value >= 7:
            return self.pass_
        if self.miss:
            return self.miss + " Mark XP."
        return "Mark XP."


def load_moves(filename: str) -> typing.Dict[str, Move]:
    with open(filename) as f:
        raw_data = yaml.safe_load(f) or []
    moves = (Move.on_load(x) for x in raw_data)
    return {move.name.lower(): move for move in moves}
