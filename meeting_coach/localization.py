"""Per-language coach messages and speaker terms."""

from typing import Dict, List, TypedDict


class Translations(TypedDict):
    language_name: str
    you: str
    you_mention: str
    welcome_message: str
    ready_message: str
    user_terms: List[str]
    generic_terms: List[str]


TRANSLATIONS: Dict[str, Translations] = {
    "en": {
        "language_name": "ENGLISH",
        "you": "User",
        "you_mention": "you",
        "welcome_message": (
            "Hello! I'm here and ready to help you succeed. "
            "Please give me a quick briefing of what you want to achieve in this meeting."
        ),
        "ready_message": (
            "OK, I've got the goals. I'm ready for the meeting. "
            "Let's do this together, you've got this!"
        ),
        "user_terms": ["you", "user", "me", "coached"],
        "generic_terms": ["you", "user", "me"],
    },
    "fr": {
        "language_name": "FRENCH",
        "you": "Utilisateur",
        "you_mention": "vous",
        "welcome_message": (
            "Bonjour ! Je suis là et prêt à vous aider à réussir. "
            "Faites-moi un petit briefing de ce que vous voulez accomplir aujourd'hui."
        ),
        "ready_message": (
            "C'est noté, j'ai bien compris les objectifs. Je suis prêt pour la réunion. "
            "On y va ensemble, vous allez assurer !"
        ),
        "user_terms": ["vous", "utilisateur", "utilisatrice", "moi", "coaché", "coachée"],
        "generic_terms": ["vous", "utilisateur", "utilisatrice", "moi"],
    },
    "es": {
        "language_name": "SPANISH",
        "you": "Usuario",
        "you_mention": "tú",
        "welcome_message": (
            "¡Hola! Estoy aquí y listo para ayudarte a triunfar. "
            "Por favor, dame un breve resumen de lo que quieres lograr en esta reunión."
        ),
        "ready_message": (
            "Entendido, tengo los objetivos. Estoy listo para la reunión. "
            "¡Vamos juntos, tú puedes!"
        ),
        "user_terms": ["tú", "tu", "usted", "usuario", "usuaria", "yo", "entrenado"],
        "generic_terms": ["tú", "tu", "usted", "usuario", "usuaria", "yo"],
    },
}


def get_supported_languages() -> List[str]:
    return list(TRANSLATIONS.keys())


def get_translations(lang: str) -> Translations:
    """Return the translations for lang, falling back to English."""
    return TRANSLATIONS.get(lang, TRANSLATIONS["en"])


def user_terms(lang: str) -> List[str]:
    """Words that point at the coached user. English terms always apply."""
    terms = list(TRANSLATIONS["en"]["user_terms"])
    for term in get_translations(lang)["user_terms"]:
        if term not in terms:
            terms.append(term)
    return terms


def generic_terms(lang: str) -> List[str]:
    """Placeholder labels for the user that carry no real name."""
    terms = list(TRANSLATIONS["en"]["generic_terms"])
    for term in get_translations(lang)["generic_terms"]:
        if term not in terms:
            terms.append(term)
    return terms
