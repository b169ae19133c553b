"""
Services Layer

Bracket engine business logic:
- Accept domain inputs (IDs, sessions, notification sinks)
- Return domain outputs (models, dataclass results)
- Do NOT depend on HTTP request/response objects
- Raise BracketEngineError subclasses; routes map them to HTTP statuses
"""
