"""Turn buffer: accumulation, noise filtering and retroactive speaker patching."""

import pytest

from meeting_coach.models import UNKNOWN_SPEAKER
from meeting_coach.turns import TurnBuffer


@pytest.mark.parametrize(
    "fragments, committed",
    [
        (["hello"], False),              # exactly 5 chars is noise
        (["hello!"], True),
        (["   ok   "], False),           # trimmed before measuring
        (["uh", " ", "hm"], False),
        (["Let's ", "talk ", "price"], True),
        ([], False),
    ],
)
def test_commit_only_when_trimmed_text_exceeds_threshold(fragments, committed):
    buf = TurnBuffer(min_chars=5)
    for fragment in fragments:
        buf.append(fragment)

    turn = buf.complete_turn()

    assert (turn is not None) == committed
    assert len(buf.turns) == (1 if committed else 0)
    assert buf.pending_text == ""


def test_fragments_concatenate_in_arrival_order():
    buf = TurnBuffer(min_chars=5, clock=lambda: 42.0)
    buf.append("Let's ")
    buf.append("talk ")
    buf.append("price.  ")

    turn = buf.complete_turn()

    assert turn.text == "Let's talk price."
    assert turn.speaker == UNKNOWN_SPEAKER
    assert turn.timestamp == 42.0


def test_discarded_fragment_does_not_leak_into_next_turn():
    buf = TurnBuffer(min_chars=5)
    buf.append("uh")
    assert buf.complete_turn() is None

    buf.append("We can go to ninety.")
    turn = buf.complete_turn()

    assert turn.text == "We can go to ninety."


def test_patch_last_speaker_only_while_unknown():
    buf = TurnBuffer(min_chars=5)
    buf.append("First turn here")
    buf.complete_turn()

    assert buf.patch_last_speaker("Marie") is True
    assert buf.patch_last_speaker("John") is False
    assert buf.turns[-1].speaker == "Marie"


def test_patch_touches_only_the_most_recent_turn():
    buf = TurnBuffer(min_chars=5)
    for text in ("First turn here", "Second turn here"):
        buf.append(text)
        buf.complete_turn()

    buf.patch_last_speaker("John")

    assert [t.speaker for t in buf.turns] == [UNKNOWN_SPEAKER, "John"]


def test_patch_without_turns_is_a_no_op():
    buf = TurnBuffer()
    assert buf.patch_last_speaker("John") is False


def test_recent_returns_tail():
    buf = TurnBuffer(min_chars=0)
    for i in range(7):
        buf.append(f"turn {i}")
        buf.complete_turn()

    assert [t.text for t in buf.recent(3)] == ["turn 4", "turn 5", "turn 6"]
    assert buf.recent(0) == []


def test_reset_clears_turns_and_pending():
    buf = TurnBuffer()
    buf.append("Something long enough")
    buf.complete_turn()
    buf.append("pending")

    buf.reset()

    assert buf.turns == []
    assert buf.pending_text == ""
