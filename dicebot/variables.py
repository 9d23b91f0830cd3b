import logging
import os
import typing

import yaml

logger = logging.getLogger(__name__)


def user_scope(user_id) -> str:
    return "user-%s" % user_id


def channel_scope(channel_id) -> str:
    return "channel-%s" % channel_id


def server_scope(server_id) -> str:
    return "server-%s" % server_id


class VariableStore:
    """Saved expressions, grouped by scope and written back on every change."""

    def __init__(
        self,
        filename: typing.Optional[str] = None,
        scopes: typing.Optional[typing.Dict[str, typing.Dict[str, str]]] = None,
    ) -> None:
        self.filename = filename
        self.scopes: typing.Dict[str, typing.Dict[str, str]] = scopes or {}

    @classmethod
    def load(cls, filename: str) -> "VariableStore":
        if not os.path.exists(filename):
            return VariableStore(filename)

        with open(filename) as f:
            raw_data = yaml.safe_load(f) or {}
        scopes = {
            str(scope): {str(name): str(value) for name, value in variables.items()}
            for scope, variables in raw_data.items()
        }
        logger.info("Loaded %s variable scopes from %s", len(scopes), filename)
        return VariableStore(filename, scopes)

    def read_value(self, name: str, scope: str) -> typing.Optional[str]:
        return self.scopes.get(scope, {}).get(name)

    def store_value(self, name: str, scope: str, value: str):
        self.scopes.setdefault(scope, {})
        self.scopes[scope][name] = value
        self.save()

    def save(self):
        if not self.filename:
            return
        with open(self.filename, "w") as f:
            yaml.safe_dump(self.scopes, f)
