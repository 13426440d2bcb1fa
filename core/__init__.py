"""
Research Lens core package.

Modules
───────
models       — Pydantic data models (FetchedDocument, SearchHit, AnalysisResult, …)
errors       — ResearchError taxonomy surfaced to callers
reader       — Jina search + reader: search, read, sequential bulk fetch
selector     — keep documents with enough extracted text
prompts      — long-form analysis prompt template and source blocks
completion   — OpenAI-compatible and Anthropic completion clients
parser       — heuristic summary / findings / recommendations extraction
analyzer     — analyze() and research() orchestration
credentials  — in-memory "<provider>_api_key" store with validation
export       — markdown → plain-text export
"""
