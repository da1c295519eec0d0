"""
Mira - Prompt Templates & Fallback Answers
============================================
Centralised prompt management for the RAG engine.  All prompts live here
so they can be versioned and reviewed independently of application logic.

Exports
-------
GREETING_PROMPT_TEMPLATE, RAG_PROMPT_TEMPLATE,
GREETING_FALLBACK_ANSWER, NO_ANSWER_FALLBACK,
CONTEXT_HEADER_TEMPLATE, CONTEXT_SEPARATOR.
"""

# ══════════════════════════════════════════════════════════════════════
#  GREETING BRANCH (no retrieval)
# ══════════════════════════════════════════════════════════════════════

GREETING_PROMPT_TEMPLATE: str = (
    'The user greeted you with: "{message}". '
    "Reply with a short, friendly greeting (1–2 sentences) and briefly explain that you are a multimodal RAG chatbot "
    "that can answer questions about their uploaded text, images (via OCR), and audio transcripts."
)

GREETING_FALLBACK_ANSWER: str = "Hi! I’m your multimodal RAG assistant. You can upload text, images or audio and then ask questions about them."


# ══════════════════════════════════════════════════════════════════════
#  RAG BRANCH
# ══════════════════════════════════════════════════════════════════════

RAG_PROMPT_TEMPLATE: str = """You are a helpful assistant that answers questions about the user's uploaded content (documents, OCR text from images, and audio transcripts).

Use the "Context" below to ground your answer:
- Prefer information that clearly matches the user's question.
- If the answer is not clearly supported by the context, say you don't know.
- Write in a natural, conversational tone.
- Keep answers concise (1–3 sentences).

User question:
{question}

Context:
{context}
"""

NO_ANSWER_FALLBACK: str = "(no answer)"


# ══════════════════════════════════════════════════════════════════════
#  CONTEXT BLOCK FORMAT
# ══════════════════════════════════════════════════════════════════════

CONTEXT_HEADER_TEMPLATE: str = "[#{rank} | {source_type}:{source_name} | score={score:.3f}]"

CONTEXT_SEPARATOR: str = "\n\n"
