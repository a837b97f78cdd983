# ragchat/utils/formatters.py
"""
Response formatting utilities.

Contains functions for rendering query results with their citations
and for labelling the set of documents in a session.
"""

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from ragchat.core.models import QueryResult

SNIPPET_LENGTH = 200


def _snippet(text: str, limit: int = SNIPPET_LENGTH) -> str:
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "…"


def format_response_with_citations(result: "QueryResult") -> str:
    """Format an answer with a numbered **Sources** section.

    Parameters
    ----------
    result : QueryResult
        The answer returned by the query executor.

    Returns
    -------
    str
        The answer text followed, when grounding chunks are present, by a
        Markdown list giving each chunk's source and a short excerpt.
    """
    answer_text = result.answer_text or ""

    citations = []
    if result.citations:
        citations.append("\n\n**Sources:**")
        for i, citation in enumerate(result.citations):
            citation_text = f"{i + 1}. "
            if citation.source_ref:
                citation_text += f"**{citation.source_ref}**"
            else:
                citation_text += "Source Document"

            if citation.source_text:
                citation_text += f": _{_snippet(citation.source_text)}_"
            citations.append(citation_text)

    return answer_text + "\n".join(citations)


def describe_documents(names: Sequence[str]) -> str:
    """Short label for the documents in a session.

    One name is shown as is, two are joined with ``&``, more are counted.
    """
    if not names:
        return ""
    if len(names) == 1:
        return names[0]
    if len(names) == 2:
        return f"{names[0]} & {names[1]}"
    return f"{len(names)} documents"
