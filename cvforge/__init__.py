"""
CVFORGE - Candidate profile tailoring and CV rendering

Tailors a candidate profile to a job posting and renders the result into a
formatted LaTeX/PDF document.

Architecture:
- Intake Context: Job posting keyword extraction
- Targeting Context: Relevance scoring and content tailoring
- Templating Context: Template catalog, escaping and population
- Rendering Context: Render jobs, PDF compilation and artifact delivery
"""

__version__ = "0.1.0"
