"""
Targeting Context

Responsibilities:
- Derives candidate keyword sets from profiles and tailored content
- Scores relevance of candidate content against weighted job keywords
- Selects which experience, projects and skills to include
- Rewrites bullets and summary toward job keywords (with deterministic fallbacks)
- Runs a single optimization pass toward a target score

Owns: Relevance scoring, content selection, tailoring and optimization
Never: Parses raw job text or renders documents
"""
