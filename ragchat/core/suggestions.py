# ragchat/core/suggestions.py
"""
Example question generation.

Asks the model for a JSON array of questions grounded in the store and
parses whatever comes back, falling back to generic questions when the
output cannot be used.
"""

# imports built-in modules
import json
import re
from typing import Any, List, Optional

# imports local modules
from ragchat.config import config
from ragchat.core.client import RagServiceClient
from ragchat.core.models import Store
from ragchat.exceptions import MalformedResponseError
from ragchat.utils.logger import get_app_logger

# Application logger
logger = get_app_logger()

FALLBACK_QUESTIONS = [
    "What are the main topics covered in this document?",
    "Can you summarize the key points?",
    "What safety procedures are mentioned?",
    "What are the technical specifications?",
]

SUGGESTION_PROMPT = """You are analyzing documents that have been uploaded to a RAG system. Your task is to:

1. Read and understand the ACTUAL content of the uploaded documents
2. Generate {count} specific, relevant questions based on what's ACTUALLY in these documents
3. Questions should be practical and answerable from the document content
4. Focus on: key topics, technical details, procedures, specifications, dates, requirements, or important information found in the documents

IMPORTANT: Base your questions on the ACTUAL document content, not generic topics.

Return ONLY a JSON array of {count} question strings in this exact format:
["Question about specific topic from document?", "Question about another specific detail?", "Question about procedure mentioned?"]

Generate the questions now based on the uploaded documents:"""

_FENCED_JSON = re.compile(r"```json\s*\n(.*?)\n\s*```", re.DOTALL)


def _extract_json_text(text: str) -> str:
    text = text.strip()

    match = _FENCED_JSON.search(text)
    if match:
        return match.group(1)

    first, last = text.find("["), text.rfind("]")
    if first != -1 and last > first:
        return text[first : last + 1]
    return text


def _is_question_group(item: Any) -> bool:
    return isinstance(item, dict) and isinstance(item.get("questions"), list)


def parse_questions(text: str) -> List[str]:
    """Parse model output into a list of question strings.

    Accepts a bare JSON array of strings, the same array inside a fenced
    ``json`` block or surrounded by prose, and a grouped form
    ``[{"product": ..., "questions": [...]}, ...]`` which is flattened.

    Raises
    ------
    MalformedResponseError
        If no usable array can be recovered.
    """
    try:
        data = json.loads(_extract_json_text(text))
    except ValueError as e:
        raise MalformedResponseError("Suggestions are not valid JSON", str(e)) from e

    if not isinstance(data, list):
        raise MalformedResponseError(
            "Suggestions are not a JSON array", type(data).__name__
        )

    if not data:
        return []

    if all(_is_question_group(item) for item in data):
        return [q for item in data for q in item["questions"] if isinstance(q, str)]

    if isinstance(data[0], str):
        return [q for q in data if isinstance(q, str)]

    raise MalformedResponseError("Unexpected suggestion format", repr(data)[:200])


class SuggestionGenerator:
    """Generate example questions for the documents in a store."""

    def __init__(self, client: RagServiceClient, count: Optional[int] = None):
        self.client = client
        self.count = count or config.SUGGESTION_COUNT

    async def generate(self, store: Store) -> List[str]:
        """Return up to ``count`` questions, or the fallback list.

        Never raises: remote failures and malformed output are logged and
        replaced by :data:`FALLBACK_QUESTIONS`.
        """
        try:
            answer = await self.client.generate_answer(
                store.name, SUGGESTION_PROMPT.format(count=self.count)
            )
            questions = parse_questions(answer.text)
        except MalformedResponseError as e:
            logger.warning(f"Received unexpected format for example questions: {e}")
            return list(FALLBACK_QUESTIONS)
        except Exception as e:
            logger.error(f"Failed to generate example questions: {e}")
            return list(FALLBACK_QUESTIONS)

        return questions[: self.count]
