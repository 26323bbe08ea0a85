"""
Injection des résultats de recherche dans la conversation envoyée au modèle.
"""
from dataclasses import replace
from typing import List

from ...core.models import ChatMessage

SEARCH_CONTEXT_TEMPLATE = (
    "Web search results:\n\n{results}\n\n"
    "Use the search results above when relevant and cite sources by their URL.\n\n"
    "{content}"
)


def augment_messages(messages: List[ChatMessage], search_text: str) -> List[ChatMessage]:
    """
    Retourne une copie de la conversation où le dernier message utilisateur
    est préfixé par le bloc de recherche.

    La liste et les messages d'origine ne sont pas modifiés: l'historique
    conserve le message non augmenté.
    """
    augmented = list(messages)
    for index in range(len(augmented) - 1, -1, -1):
        message = augmented[index]
        if message.role == "user":
            augmented[index] = replace(
                message,
                content=SEARCH_CONTEXT_TEMPLATE.format(results=search_text, content=message.content),
                images=list(message.images),
            )
            break
    return augmented


def latest_user_query(messages: List[ChatMessage]) -> str:
    """Texte du dernier message utilisateur ("" si aucun)."""
    for message in reversed(messages):
        if message.role == "user":
            return message.content
    return ""
