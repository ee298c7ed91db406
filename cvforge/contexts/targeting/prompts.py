"""
Prompt templates for generative content tailoring.

Each builder returns (system_prompt, user_prompt). Keeping prompts here leaves
content_tailor.py free of prompt text.
"""

from typing import Iterable, Sequence, Tuple

from cvforge.contexts.intake.job_data_structure import Keyword

MAX_JOB_CHARS = 4000

BULLET_SYSTEM_PROMPT = (
    "You are an expert resume writer. Create compelling, ATS-friendly bullet points."
)

SUMMARY_SYSTEM_PROMPT = (
    "You are an expert resume writer specializing in compelling professional summaries."
)

SKILLS_SYSTEM_PROMPT = (
    "You are an expert at organizing skills for resumes. Always respond with valid JSON only."
)

SUMMARY_OPTIMIZE_SYSTEM_PROMPT = "You are a professional CV writing assistant."

_BULLET_TEMPLATE = """\
Rewrite the following resume bullet to align with job requirements. Emphasize these \
keywords: {keywords}. Use active voice, start with a strong verb, and include any \
available metrics. Output only the rewritten bullet point.

Original:
"{bullet}\""""

_SUMMARY_TEMPLATE = """\
Generate a 3-line professional summary for a candidate applying to this job. Use the \
following keywords naturally: {keywords}. Maximum 60 words. Make it compelling and specific.

Job Description:
"{job}"

Candidate Background:
- Name: {name}
- Experience: {experience_count} roles
- Key Skills: {skills}

Output only the summary, no additional text."""

_SKILLS_TEMPLATE = """\
From the following keywords list, create a clean skills list sorted by relevance. \
Output as a JSON array of strings, no additional text.

Keywords:
{keywords}

Output format: ["Skill 1", "Skill 2", "Skill 3", ...]"""

_SUMMARY_OPTIMIZE_TEMPLATE = """\
Rewrite this professional summary to naturally incorporate these keywords: {keywords}. \
Keep it professional and under 60 words.

Current summary:
"{summary}\""""


def keyword_list(keywords: Iterable[Keyword]) -> str:
    return ", ".join(k.text for k in keywords)


def bullet_prompt(bullet: str, keywords: Sequence[Keyword], metrics: str = "") -> Tuple[str, str]:
    text = f"{bullet} ({metrics})" if metrics else bullet
    return BULLET_SYSTEM_PROMPT, _BULLET_TEMPLATE.format(
        keywords=keyword_list(keywords), bullet=text
    )


def summary_prompt(
    name: str,
    experience_count: int,
    skills: Sequence[str],
    job_description: str,
    keywords: Sequence[Keyword],
) -> Tuple[str, str]:
    return SUMMARY_SYSTEM_PROMPT, _SUMMARY_TEMPLATE.format(
        keywords=keyword_list(keywords),
        job=job_description[:MAX_JOB_CHARS],
        name=name or "Candidate",
        experience_count=experience_count,
        skills=", ".join(skills[:5]) or "Various skills",
    )


def skills_prompt(keywords: Sequence[Keyword]) -> Tuple[str, str]:
    lines = "\n".join(f"{k.text} ({k.weight})" for k in keywords)
    return SKILLS_SYSTEM_PROMPT, _SKILLS_TEMPLATE.format(keywords=lines)


def summary_optimize_prompt(summary: str, keywords: Sequence[Keyword]) -> Tuple[str, str]:
    return SUMMARY_OPTIMIZE_SYSTEM_PROMPT, _SUMMARY_OPTIMIZE_TEMPLATE.format(
        keywords=keyword_list(keywords), summary=summary
    )
