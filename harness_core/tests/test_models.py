import dataclasses

import pytest

from harness_core.domain.exceptions import InvalidTurnError
from harness_core.domain.models import GenerationRequest, Turn


def test_turn_valid():
    t = Turn(role="user", content="hi")
    assert t.to_payload() == {"role": "user", "content": "hi"}


def test_turn_is_immutable():
    t = Turn(role="assistant", content="ok")
    with pytest.raises(dataclasses.FrozenInstanceError):
        t.content = "changed"


@pytest.mark.parametrize("role", ["tool", "", "User", None, ["user"]])
def test_turn_rejects_unknown_role(role):
    with pytest.raises(InvalidTurnError) as exc:
        Turn(role=role, content="hi")
    assert exc.value.code == "INVALID_ROLE"


@pytest.mark.parametrize("content", ["", "   ", None])
def test_turn_rejects_empty_content(content):
    with pytest.raises(InvalidTurnError) as exc:
        Turn(role="user", content=content)
    assert exc.value.code == "EMPTY_CONTENT"


def test_request_defaults():
    req = GenerationRequest(model="chat", turns=(Turn(role="user", content="hi"),))
    assert req.options == {}
