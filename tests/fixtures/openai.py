"""OpenAI-shaped client double.

``OpenAIChatClient`` only touches ``client.chat.completions.create``; this
double mirrors that surface, records every request and replays queued
contents (or raises queued exceptions).
"""

from __future__ import annotations

from dataclasses import dataclass
from types import SimpleNamespace
from typing import Any, Dict, List, Union


@dataclass
class Choice:
    content: str

    @property
    def message(self) -> SimpleNamespace:
        return SimpleNamespace(content=self.content)


class FakeOpenAI:
    def __init__(self, *responses: Union[str, BaseException]) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.responses: List[Union[str, BaseException]] = list(responses)
        self.chat = SimpleNamespace(
            completions=SimpleNamespace(create=self._create_completion)
        )

    def queue_response(self, content: Union[str, BaseException]) -> None:
        self.responses.append(content)

    def _create_completion(self, **kwargs: Any) -> SimpleNamespace:
        self.calls.append(kwargs)
        result = self.responses.pop(0) if self.responses else ""
        if isinstance(result, BaseException):
            raise result
        return SimpleNamespace(choices=[Choice(result)])
