"""Folds speaker-identity signals from both agents into one roster.

Both the perception agent (live ``identify_speaker_activity`` calls) and the
reasoning agent (retrospective ``detected_speakers``) name the people they
hear. Neither is authoritative, so every label goes through the same steps:

1. an empty roster makes the first label the coached user;
2. labels that point at the user update the user; a real name replaces a
   placeholder name, but never an earlier real name;
3. an exact, case-insensitive name match updates that participant;
4. anything else is a new participant.

Only one participant is ``speaking`` after each step.
"""

import logging
import re
from typing import Callable, Iterable, List, Optional

from meeting_coach.localization import generic_terms, user_terms
from meeting_coach.models import NOTE_CATEGORIES, Participant, UNKNOWN_SPEAKER, new_id

logger = logging.getLogger(__name__)

USER_ID = "user"
RETROSPECTIVE_CATEGORY = "context"

_WS_RE = re.compile(r"\s+")
_WORD_RE = re.compile(r"\w+")


def normalize_name(label: Optional[str]) -> str:
    name = _WS_RE.sub(" ", (label or "").strip())
    return name or UNKNOWN_SPEAKER


def is_generic_label(label: str, lang: str) -> bool:
    """True when the whole label is a placeholder for the user ("You", "Utilisateur")."""
    return normalize_name(label).lower() in generic_terms(lang)


def refers_to_user(label: str, lang: str) -> bool:
    """True when the label names the user, e.g. "User" or "Me (Marie)".

    Terms match whole words only, so "Amelia" does not match "me".
    """
    if is_generic_label(label, lang):
        return True
    terms = user_terms(lang)
    return any(word in terms for word in _WORD_RE.findall(normalize_name(label).lower()))


def _is_placeholder(name: str, lang: str) -> bool:
    return name == UNKNOWN_SPEAKER or is_generic_label(name, lang)


def find_user(roster: List[Participant]) -> Optional[Participant]:
    return next((p for p in roster if p.is_user), None)


def find_by_name(roster: List[Participant], name: str) -> Optional[Participant]:
    wanted = normalize_name(name).lower()
    return next((p for p in roster if p.name.lower() == wanted), None)


def _mark_speaking(roster: List[Participant], speaker: Participant) -> None:
    for p in roster:
        p.status = "speaking" if p is speaker else "idle"


def _apply_note(participant: Participant, category: str, observation: Optional[str]) -> None:
    if category in NOTE_CATEGORIES and observation:
        participant.last_note = observation


def _fresh_id(roster: List[Participant], id_factory: Callable[[], str]) -> str:
    taken = {p.id for p in roster}
    pid = id_factory()
    while pid in taken:
        pid = id_factory()
    return pid


def reconcile(
    roster: List[Participant],
    speaker_label: str,
    category: str,
    observation: Optional[str],
    lang: str = "en",
    id_factory: Callable[[], str] = lambda: new_id(5),
) -> Participant:
    """Fold one speaker event into roster (in place) and return the speaking participant."""
    name = normalize_name(speaker_label)

    if not roster:
        user = Participant(id=USER_ID, name=name, is_user=True)
        _apply_note(user, category, observation)
        roster.append(user)
        _mark_speaking(roster, user)
        logger.info("[ROSTER] user identified as '%s'", name)
        return user

    user = find_user(roster)
    if user is not None and refers_to_user(name, lang):
        if not is_generic_label(name, lang) and _is_placeholder(user.name, lang):
            logger.info("[ROSTER] user renamed '%s' -> '%s'", user.name, name)
            user.name = name
        _apply_note(user, category, observation)
        _mark_speaking(roster, user)
        return user

    match = find_by_name(roster, name)
    if match is not None:
        _apply_note(match, category, observation)
        _mark_speaking(roster, match)
        return match

    participant = Participant(id=_fresh_id(roster, id_factory), name=name)
    _apply_note(participant, category, observation)
    roster.append(participant)
    _mark_speaking(roster, participant)
    logger.info("[ROSTER] new participant '%s' (%s)", name, participant.id)
    return participant


def reconcile_detected(
    roster: List[Participant],
    names: Iterable[str],
    lang: str = "en",
    id_factory: Callable[[], str] = lambda: new_id(5),
) -> None:
    """Fold the reasoning agent's detected speakers into roster.

    The list describes who was present in an already analysed window, not
    who speaks now, so everybody is idle afterwards.
    """
    # TODO: labels like "Interlocutor 1" and a later real name for the same
    # voice still produce two entries; merging needs a voice id from the
    # perception agent.
    for name in names:
        if not name or not str(name).strip():
            continue
        reconcile(roster, str(name), RETROSPECTIVE_CATEGORY, None, lang, id_factory)
    for p in roster:
        p.status = "idle"
