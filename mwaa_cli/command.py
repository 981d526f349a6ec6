from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from .tristate import TriState, Value


def quote(value: Any) -> str:
    s = str(value)
    return "'" + s.replace("'", "'\"'\"'") + "'"


@dataclass
class Command:
    """An Airflow CLI command line: verb path, flags, then positional arguments."""

    verb: tuple[str, ...]
    flags: list[tuple[str, str | None]] = field(default_factory=list)
    args: list[str] = field(default_factory=list)

    @classmethod
    def of(cls, *verb: str) -> Command:
        return cls(verb=tuple(verb))

    def switch(self, name: str, enabled: bool = True) -> Command:
        if enabled:
            self.flags.append((name, None))
        return self

    def option(self, name: str, value: Any) -> Command:
        self.flags.append((name, str(value)))
        return self

    def option_if(self, name: str, opt: TriState[Any], render: Callable[[Any], str] = str) -> Command:
        # UNSET and NULL both leave the flag off; the CLI has no way to spell null.
        if isinstance(opt, Value):
            self.flags.append((name, render(opt.value)))
        return self

    def arg(self, value: Any) -> Command:
        self.args.append(str(value))
        return self

    def render(self) -> str:
        parts: list[str] = list(self.verb)
        for name, value in self.flags:
            parts.append(name)
            if value is not None:
                parts.append(quote(value))
        parts.extend(quote(a) for a in self.args)
        return " ".join(parts)

    @property
    def verb_path(self) -> str:
        return " ".join(self.verb)

    def __str__(self) -> str:
        return self.render()
