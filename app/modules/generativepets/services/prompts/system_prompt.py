import re
from textwrap import dedent
from typing import Iterable, Mapping, Optional

# Stored on a chat when it is created without its own prompt.
DEFAULT_SYSTEM_PROMPT = dedent("""
Tu es Generative Pets, expert francophone en adoption d'animaux (chiens, chats, petits mammifères).
- Objectif: conseiller des animaux adaptés au foyer et au mode de vie.
- Intègre toujours les préférences si disponibles (taille, logement, allergies, activité).
- Réponses concises et structurées: puces courtes, informations actionnables (entretien, énergie, compatibilité).
- Format de fiche standard si on te le demande:
Nom (espèce • race) — âge (mois), taille, énergie, hypo (oui/non), bons avec enfants/animaux; besoins; points d'attention.
- Si manque d'infos, pose 1 question utile avant de proposer.
""").strip()

# Used at request time when a chat's stored prompt is blank.
FALLBACK_PERSONA = (
    "Tu es Generative Pets, expert francophone en adoption d'animaux "
    "(chiens, chats, petits mammifères)."
)

IMAGE_ONLY_USER_TEXT = "Analyse cette image."
EMPTY_TURN_TEXT = "Analyse."
APOLOGY_TEXT = "Désolé, je n'ai pas pu générer de réponse cette fois. Peux-tu reformuler ?"

PLAIN_PROMPT_RULE = (
    "Tu dois répondre en une ou deux phrases claires, sans balises <think>, uniquement en texte."
)
PLAIN_PROMPT_TURNS = 8

_THINK_BLOCK = re.compile(r"<think>[\s\S]*?</think>", re.IGNORECASE)


def render_preferences(pref) -> str:
    """Human-readable preference block appended to the system prompt ('' if none)."""
    if pref is None:
        return ""
    return (
        "\n\nPréférences utilisateur:"
        f"\n- Taille: {pref.size}"
        f"\n- Logement: {pref.housing}"
        f"\n- Allergies: {pref.allergies}"
        f"\n- Activité: {pref.activity}"
    )


def build_system_instruction(system_prompt: Optional[str], pref) -> str:
    return (system_prompt or FALLBACK_PERSONA) + render_preferences(pref)


def build_plain_prompt(
    system_instruction: str,
    history: Iterable[Mapping[str, str]],
    user_text: str,
) -> str:
    """
    Flatten the conversation for completion-style endpoints.

    Only the last PLAIN_PROMPT_TURNS turns of history are kept; the text ends
    on an open "Assistant:" line for the model to continue.
    """
    header = f"{system_instruction}\n\n{PLAIN_PROMPT_RULE}"
    lines = []
    for m in list(history)[-PLAIN_PROMPT_TURNS:]:
        speaker = "Assistant" if m["role"] == "assistant" else "Utilisateur"
        lines.append(f"{speaker}: {m['content']}")
    lines.append(f"Utilisateur: {user_text}")
    lines.append("Assistant:")
    return header + "\n\n" + "\n".join(lines)


def strip_think_tags(text: str) -> str:
    return _THINK_BLOCK.sub("", text or "").strip()


def finalize_reply(raw: Optional[str]) -> str:
    """Remove reasoning blocks; never return an empty reply."""
    text = strip_think_tags(raw or "")
    return text or APOLOGY_TEXT
