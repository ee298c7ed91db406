"""
Intake Context

Responsibilities:
- Validates job postings at the input boundary
- Extracts weighted keywords (generative service + curated vocabularies)
- Normalizes raw keyword shapes into the single Keyword type
- Suggests industry keywords

Owns: Job description validation, keyword extraction, ranking and normalization
Never: Scores candidate content or touches templates
"""
