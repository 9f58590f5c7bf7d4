"""Chat prompt assembly from knowledge base search results."""

from typing import Any, Dict, List

from .kb.search import SearchResult

DEFAULT_SYSTEM_PROMPT = """You are a helpful support assistant for Eptura Asset. \
Answer questions using the knowledge base articles provided below. \
When an answer comes from an article, mention the article title so the user can find it. \
If the articles do not cover the question, say so and suggest where the user might look, \
rather than guessing."""

NO_CONTEXT_NOTE = "No relevant knowledge base articles were found for this question."

CHAT_ROLES = ("user", "assistant")


def format_context(results: List[SearchResult]) -> str:
    """Render search results as a numbered list of article excerpts."""
    if not results:
        return NO_CONTEXT_NOTE

    sections = []
    for index, result in enumerate(results, 1):
        document = result.document
        sections.append(f"[{index}] {document.title}\nURL: {document.url}\nExcerpt: {result.excerpt}")
    return "Relevant knowledge base articles:\n\n" + "\n\n".join(sections)


def build_system_prompt(base_prompt: str, results: List[SearchResult]) -> str:
    return f"{base_prompt}\n\n{format_context(results)}"


def build_messages(
    system_prompt: str, conversation: List[Dict[str, Any]], message: str, max_history: int = 10
) -> List[Dict[str, str]]:
    """Build the message list sent to the chat backend.

    Only user/assistant turns with string content are forwarded, and only the
    last max_history of those.

    Args:
        system_prompt: Full system prompt including article context
        conversation: Prior turns as {role, content} dicts
        message: The new user message
        max_history: Number of prior turns to keep

    Returns:
        Messages in OpenAI chat format
    """
    history = [
        {"role": turn["role"], "content": turn["content"]}
        for turn in conversation or []
        if isinstance(turn, dict) and turn.get("role") in CHAT_ROLES and isinstance(turn.get("content"), str)
    ]
    if max_history <= 0:
        history = []
    else:
        history = history[-max_history:]

    return [{"role": "system", "content": system_prompt}, *history, {"role": "user", "content": message}]


def sources_from_results(results: List[SearchResult]) -> List[Dict[str, str]]:
    return [{"title": result.document.title, "url": result.document.url} for result in results]
