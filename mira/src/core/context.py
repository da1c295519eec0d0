"""
Mira - Context Assembler
=========================
Turns ranked candidates into the text block the LLM is grounded on, and
fills the two prompt templates.

Block format (rank 1 = highest score)::

    [#1 | doc:notes.txt | score=0.912]
    <chunk text>

    [#2 | audio:call.m4a | score=0.870]
    <chunk text>
"""

from __future__ import annotations

from collections.abc import Sequence

from mira.config.prompt_templates import CONTEXT_HEADER_TEMPLATE, CONTEXT_SEPARATOR, GREETING_PROMPT_TEMPLATE, RAG_PROMPT_TEMPLATE
from mira.src.core.models import ScoredCandidate


def format_header(rank: int, candidate: ScoredCandidate) -> str:
    return CONTEXT_HEADER_TEMPLATE.format(rank=rank, source_type=candidate.source_type, source_name=candidate.source_name, score=candidate.score)


def build_context(candidates: Sequence[ScoredCandidate]) -> str:
    """Render candidates in the order given; an empty list yields ``""``."""
    blocks = [f"{format_header(rank, candidate)}\n{candidate.text}" for rank, candidate in enumerate(candidates, 1)]
    return CONTEXT_SEPARATOR.join(blocks)


def build_rag_prompt(question: str, context: str) -> str:
    """Embed the literal question and the context block in the grounding template."""
    return RAG_PROMPT_TEMPLATE.format(question=question, context=context)


def build_greeting_prompt(message: str) -> str:
    return GREETING_PROMPT_TEMPLATE.format(message=message)
