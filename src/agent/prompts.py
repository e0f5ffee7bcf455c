"""Prompt templates for query rephrasing and source-grounded answers."""

from collections.abc import Sequence

NOT_NEEDED = "not_needed"

REPHRASE_INSTRUCTIONS = [
    "You rewrite follow-up questions into standalone web search queries.",
    "Use the conversation to resolve pronouns and references.",
    f"If the input is a greeting or needs no web search, reply with exactly `{NOT_NEEDED}`.",
    "Reply with the query only, without quotes or explanation.",
]

ANSWER_INSTRUCTIONS = [
    "You are InsightFlow, an AI model skilled in web search and crafting detailed, "
    "engaging and well-structured answers.",
    "Answer using the provided context. Cite the sources you use inline with their "
    "number in square brackets, e.g. [1] or [2][3].",
    "If the context does not contain the answer, say so and answer from general "
    "knowledge, making clear that no source supports it.",
    "Format the answer in markdown.",
]

WRITING_INSTRUCTIONS = [
    "You are InsightFlow, an AI writing assistant.",
    "Help the user write, edit and improve text. You do not search the web.",
    "When uploaded documents are provided, base the answer on them and cite them "
    "by number in square brackets.",
    "Format the answer in markdown.",
]


def format_history(history: Sequence[tuple[str, str]], limit: int) -> str:
    """Render ``(role, content)`` pairs as a transcript, newest last."""
    if limit <= 0 or not history:
        return ""
    lines = []
    for role, content in history[-limit:]:
        speaker = "User" if role == "user" else "Assistant"
        lines.append(f"{speaker}: {content}")
    return "\n".join(lines)


def build_rephrase_prompt(query: str, transcript: str) -> str:
    return (
        f"<conversation>\n{transcript}\n</conversation>\n\n"
        f"Follow up question: {query}\n"
        "Rephrased question:"
    )


def build_answer_prompt(query: str, context: str, transcript: str) -> str:
    parts = []
    if transcript:
        parts.append(f"<conversation>\n{transcript}\n</conversation>")
    parts.append(f"<context>\n{context or 'No sources were found.'}\n</context>")
    parts.append(f"Question: {query}")
    return "\n\n".join(parts)
