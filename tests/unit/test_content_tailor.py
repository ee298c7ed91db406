"""Unit tests for content selection, rewriting fallbacks and optimization."""

import pytest

from cvforge.contexts.intake.job_data_structure import JobDescription, normalize_keywords
from cvforge.contexts.targeting import prompts
from cvforge.contexts.targeting.content_tailor import (
    ContentTailor,
    fallback_summary,
    merge_skills,
    recommendations,
    select_experience,
    select_projects,
)
from cvforge.contexts.targeting.profile_data_structure import UserProfile
from cvforge.contexts.targeting.relevance import score_match
from cvforge.contexts.targeting.tailored_cv import ExperienceEntry, TailoredCV


def scripted_reply(system_prompt, user_prompt):
    """Plausible provider output per prompt kind."""
    if system_prompt == prompts.BULLET_SYSTEM_PROMPT:
        return "Delivered measurable results with Python and AWS"
    if system_prompt == prompts.SUMMARY_SYSTEM_PROMPT:
        return '"Python engineer shipping reliable AWS services."'
    if system_prompt == prompts.SKILLS_SYSTEM_PROMPT:
        return '```json\n["Kubernetes", "python"]\n```'
    return "Summary rewritten with Docker and Kubernetes."


@pytest.fixture
def profile(profile_data):
    return UserProfile.from_dict(profile_data)


@pytest.fixture
def job(job_text):
    return JobDescription.from_dict(
        {"title": "Senior Python Developer", "company": "Acme", "description": job_text}
    )


def _experience(role, bullets):
    return {"company": "Co", "role": role, "start_date": "2020", "bullets": bullets}


@pytest.mark.unit
def test_top_four_roles_selected_in_score_order(profile_data):
    """Six roles in, the four best out; ties keep their original order."""
    profile_data["work_experience"] = [
        _experience("Clerk", ["Filed papers"]),  # 0
        _experience("Python Engineer", ["Shipped python on aws"]),  # 2 + 2
        _experience("Analyst", ["Wrote sql reports"]),  # 1
        _experience("Data Engineer", ["Moved sql to aws"]),  # 2
        _experience("Writer", ["Wrote sql docs"]),  # 1, ties with Analyst
        _experience("Python Developer", ["Built python tools"]),  # 2 + 1
    ]
    profile = UserProfile.from_dict(profile_data)
    keywords = normalize_keywords(["python", "aws", "sql"])

    selected = select_experience(profile.work_experience, keywords)

    assert [(exp.role, score) for exp, score in selected] == [
        ("Python Engineer", 4),
        ("Python Developer", 3),
        ("Data Engineer", 2),
        ("Analyst", 1),
    ]


@pytest.mark.unit
def test_tailor_caps_experience_and_bullets(profile_data, job):
    profile_data["work_experience"] = [
        _experience(f"Python Role {i}", [f"Python bullet {j}" for j in range(6)])
        for i in range(6)
    ]
    result = ContentTailor().tailor(UserProfile.from_dict(profile_data), job)

    assert len(result.cv.experience) == 4
    assert all(len(entry.bullets) == 4 for entry in result.cv.experience)
    assert result.cv.experience[0].bullets == [f"Python bullet {j}" for j in range(4)]


@pytest.mark.unit
def test_tailor_without_provider_uses_fallbacks(profile, job):
    result = ContentTailor().tailor(profile, job, template="classic")
    cv = result.cv

    assert [e.role for e in cv.experience] == ["Python Developer", "Office Manager"]
    assert cv.experience[0].bullets == [
        "Built data pipelines in Python on AWS",
        "Cut report latency by 40%",
    ]
    assert cv.experience[0].dates == "2021-01 - Present"
    assert cv.summary == fallback_summary(profile, result.keywords)
    assert cv.skills == ["Python", "Leadership", "SQL", "aws", "docker", "experience"]
    assert cv.education[0].dates == "2014 - 2018"
    assert cv.template_used == "classic"


@pytest.mark.unit
def test_tailor_scores_before_and_after(profile, job):
    result = ContentTailor().tailor(profile, job)

    assert result.initial_analysis.match_score == 50
    assert result.final_analysis.match_score == 100
    assert result.cv.relevance_score == 100
    assert set(result.cv.matched_keywords) == {k.text for k in result.keywords}
    assert [r.type for r in result.recommendations] == ["low_match_score", "missing_keywords"]


@pytest.mark.unit
def test_summary_falls_back_when_service_unreachable(make_provider, api_error, profile, job):
    """A provider that keeps failing yields the deterministic summary, not an error."""
    provider = make_provider(error=api_error("connection reset"))
    tailor = ContentTailor(provider)
    keywords = normalize_keywords(["python", "aws", "sql", "docker"])

    summary = tailor.generate_summary(profile, job, keywords)

    assert summary == (
        "Ada brings 2 professional roles of experience. Skilled in python, aws, sql "
        "with a proven track record of delivering results. Seeking to leverage this "
        "expertise in a challenging new role."
    )
    assert len(provider.calls) == 3


@pytest.mark.unit
def test_fallback_summary_without_keywords(profile_data):
    profile_data["work_experience"] = profile_data["work_experience"][:1]
    profile = UserProfile.from_dict(profile_data)

    assert fallback_summary(profile, []) == (
        "Ada brings 1 professional role of experience. Proven track record of "
        "delivering results. Seeking to leverage this expertise in a challenging new role."
    )


@pytest.mark.unit
def test_tailor_with_provider(make_provider, profile, job):
    provider = make_provider(reply=scripted_reply)
    result = ContentTailor(provider).tailor(profile, job)
    cv = result.cv

    assert cv.summary == "Python engineer shipping reliable AWS services."
    assert cv.experience[0].bullets == ["Delivered measurable results with Python and AWS"] * 2
    # Matching user skills first, then suggestions, then the remaining user skills
    assert cv.skills[:4] == ["Python", "Leadership", "SQL", "Kubernetes"]


@pytest.mark.unit
def test_failed_bullet_keeps_original_text(make_provider, api_error, profile, job):
    def reply(system_prompt, user_prompt):
        if "Cut report latency" in user_prompt:
            raise api_error("bad request", status_code=400)
        return scripted_reply(system_prompt, user_prompt)

    result = ContentTailor(make_provider(reply=reply)).tailor(profile, job)

    assert result.cv.experience[0].bullets == [
        "Delivered measurable results with Python and AWS",
        "Cut report latency by 40%",
    ]


@pytest.mark.unit
def test_projects_ranked_by_technology_tags(profile_data):
    profile_data["projects"] = [
        {"name": "Garden", "description": "Plants"},
        {"name": "Infra", "description": "Cloud setup", "technologies": ["AWS", "Docker"]},
        {"name": "Python Tools", "description": "Scripts"},
        {"name": "Blog", "description": "Writing about python"},
    ]
    profile = UserProfile.from_dict(profile_data)

    projects = select_projects(profile.projects, normalize_keywords(["python", "aws", "docker"]))

    assert [p.name for p in projects] == ["Infra", "Python Tools", "Blog"]


@pytest.mark.unit
def test_merge_skills_caps_and_dedupes():
    keywords = normalize_keywords(["python"])
    user = ["Python", "Excel"] + [f"Skill {i}" for i in range(20)]

    skills = merge_skills(user, ["PYTHON", "Kubernetes"], keywords)

    assert skills[:3] == ["Python", "Kubernetes", "Excel"]
    assert len(skills) == 15


@pytest.mark.unit
def test_recommendations_for_weak_match():
    analysis = score_match(set(), ["python", "aws"])

    types = [r.type for r in recommendations(analysis)]

    assert types == ["low_match_score", "missing_keywords", "enhance_experience"]


# --- Optimization ---


def _cv(**changes):
    base = TailoredCV(
        summary="",
        skills=[],
        experience=[ExperienceEntry(company="Co", role="Clerk", bullets=["Did things"])],
    )
    return base.with_changes(**changes)


JOB_KEYWORDS = [
    {"keyword": "python", "weight": 0.9},
    {"keyword": "aws", "weight": 0.8},
    {"keyword": "excel", "weight": 0.5},
]


@pytest.mark.unit
def test_optimize_makes_no_calls_when_target_met(make_provider):
    provider = make_provider(reply=scripted_reply)
    cv = _cv(skills=["python", "aws", "excel"])

    result = ContentTailor(provider).optimize(cv, JOB_KEYWORDS, target_score=80)

    assert not result.optimized
    assert result.cv is cv
    assert result.analysis.match_score == 100
    assert provider.calls == []


@pytest.mark.unit
def test_optimize_single_pass_without_provider():
    result = ContentTailor().optimize(_cv(), JOB_KEYWORDS, target_score=80)

    assert result.optimized
    # High-weight missing keywords become skills; "excel" (0.5) does not
    assert result.cv.skills == ["python", "aws"]
    assert result.analysis.match_score == 77
    assert result.improvement == 77
    assert result.cv.relevance_score == 77
    assert result.cv.experience[0].bullets == ["Did things"]


@pytest.mark.unit
def test_optimize_rewrites_bullets_and_summary(make_provider):
    provider = make_provider(reply=scripted_reply)
    cv = _cv(summary="Reliable clerk.")

    result = ContentTailor(provider).optimize(cv, JOB_KEYWORDS)

    assert result.cv.experience[0].bullets == ["Delivered measurable results with Python and AWS"]
    assert result.cv.summary == "Summary rewritten with Docker and Kubernetes."
    # One bullet plus one summary, no second pass
    assert len(provider.calls) == 2
