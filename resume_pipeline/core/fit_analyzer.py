import json
import logging
import re
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .cancellation import CancellationToken
from .data import SKILL_KEYWORDS, find_skills
from .interfaces import GenerativeModelClient
from .models import AnalysisResult, ExtractedEntities, ImprovementItem, ModelPrompt, ScoringMethod
from .outcome import Outcome, attempt, with_fallback

logger = logging.getLogger(__name__)

NO_JOB_DESCRIPTION = "Provide a Job Description to get a Fit Score and gap analysis."
SYSTEM_PROMPT = "You are a JSON extraction engine. Output valid JSON only."
PLACEHOLDER_TITLE = "Target Role"
PLACEHOLDER_COMPANY = "Target Company"
DEGRADED_ADVICE = (
    "The advanced AI analysis feature is currently unavailable. This report relies on "
    "simple keyword matching. Please ensure your resume explicitly mentions the skills "
    "listed in the job description."
)
# JD names no known skill but the resume has some
EFFORT_SCORE = 10.0

ANALYSIS_PROMPT = """
You are a Senior Career Coach and Technical Recruiter.
Analyze the following Candidate Resume against the Target Job Description.

Your goal is to provide a structured, data-driven analysis in strict JSON format.

=== CANDIDATE RESUME ===
{cv_text}

=== TARGET JOB DESCRIPTION ===
{job_description}

=== INSTRUCTIONS ===
1. Fit Score: calculate a fit score from 0-100 based on skills vs requirements.
2. Missing Skills: identify specific missing technical skills.
3. improvement_plan: provide concrete, actionable advice.
4. Job Details: extract 'job_title' and 'company' from the JD.

Output ONLY valid JSON matching this schema:
{{
  "fit_score": number,
  "match_reasoning": "Concise summary (max 2 sentences).",
  "matched_skills": ["skill1", "skill2"],
  "missing_skills": ["skill1", "skill2"],
  "improvement_plan": [
    {{ "area": "Skill/Section", "advice": "Actionable advice" }}
  ],
  "job_title": "string or null",
  "company": "string or null"
}}
"""

MARKDOWN_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)


class ModelReply(BaseModel):
    """JSON object the generative model is asked to return."""

    model_config = ConfigDict(extra="ignore")

    fit_score: float = 0.0
    match_reasoning: Optional[str] = ""
    matched_skills: List[str] = Field(default_factory=list)
    missing_skills: List[str] = Field(default_factory=list)
    improvement_plan: List[ImprovementItem] = Field(default_factory=list)
    job_title: Optional[str] = None
    company: Optional[str] = None

    @field_validator("matched_skills", "missing_skills", "improvement_plan", mode="before")
    @classmethod
    def null_as_empty(cls, value):
        return [] if value is None else value


def truncate(text: str, max_length: int) -> str:
    if not text or len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def _lower_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_lower_keys(v) for v in value]
    return value


def parse_model_reply(raw: str) -> ModelReply:
    """Strip markdown fences and parse the reply; keys match case-insensitively."""
    cleaned = MARKDOWN_FENCE.sub("", raw or "").strip()
    data = json.loads(cleaned)
    if not isinstance(data, dict):
        raise ValueError("Model reply is not a JSON object")
    return ModelReply.model_validate(_lower_keys(data))


def clamp_score(score: float) -> float:
    return max(0.0, min(100.0, float(score)))


class FitScoreAnalyzer:
    """Scores a resume against a job description.

    A generative model does the scoring when it answers with usable JSON.
    Otherwise a keyword comparison produces a degraded result so the
    pipeline always has something to show.
    """

    def __init__(self, model_client: Optional[GenerativeModelClient] = None,
                 skill_keywords=SKILL_KEYWORDS,
                 cv_max_chars: int = 5000,
                 jd_max_chars: int = 3000,
                 max_tokens: int = 4000,
                 temperature: float = 0.1):
        self.model_client = model_client
        self.skill_keywords = tuple(skill_keywords)
        self.cv_max_chars = cv_max_chars
        self.jd_max_chars = jd_max_chars
        self.max_tokens = max_tokens
        self.temperature = temperature

    def analyze(self, entities: ExtractedEntities, cv_text: str,
                job_description: Optional[str] = None,
                cancel_token: Optional[CancellationToken] = None) -> AnalysisResult:
        if not job_description or not job_description.strip():
            return AnalysisResult(
                entities=entities,
                recommendation=NO_JOB_DESCRIPTION,
                scoring=ScoringMethod.SKIPPED,
            )

        result = with_fallback(
            lambda: self._score_with_model(cv_text, job_description, cancel_token),
            lambda error: self._score_with_keywords(entities.skills, job_description, error),
        )
        return result.model_copy(update={"entities": entities, "job_description": job_description})

    def build_prompt(self, cv_text: str, job_description: str) -> ModelPrompt:
        return ModelPrompt(
            system=SYSTEM_PROMPT,
            user=ANALYSIS_PROMPT.format(
                cv_text=truncate(cv_text or "", self.cv_max_chars),
                job_description=truncate(job_description, self.jd_max_chars),
            ),
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )

    def _score_with_model(self, cv_text: str, job_description: str,
                          cancel_token: Optional[CancellationToken]) -> Outcome[AnalysisResult]:
        if self.model_client is None:
            return Outcome.failure(RuntimeError("No generative model client configured"))

        logger.info("Invoking generative model for structured analysis")
        raw = attempt(self.model_client.invoke, self.build_prompt(cv_text, job_description), cancel_token)
        if not raw.ok:
            return Outcome.failure(raw.error)

        logger.debug(f"Model raw output: {raw.value}")
        reply = attempt(parse_model_reply, raw.value)
        if not reply.ok:
            return Outcome.failure(reply.error)

        data = reply.value
        return Outcome.success(AnalysisResult(
            fit_score=clamp_score(data.fit_score),
            matched_skills=data.matched_skills,
            missing_skills=data.missing_skills,
            recommendation=data.match_reasoning or "",
            improvement_plan=data.improvement_plan,
            job_title=data.job_title,
            company=data.company,
            scoring=ScoringMethod.MODEL,
        ))

    def _score_with_keywords(self, resume_skills: List[str], job_description: str,
                             error: BaseException) -> AnalysisResult:
        logger.warning(f"Model analysis failed, falling back to keyword heuristic: {error}")

        jd_skills = find_skills(job_description, self.skill_keywords)
        owned = {skill.lower() for skill in resume_skills}
        matched = [skill for skill in jd_skills if skill.lower() in owned]
        missing = [skill for skill in jd_skills if skill.lower() not in owned]

        if jd_skills:
            score = round(len(matched) / len(jd_skills) * 100, 1)
        else:
            score = EFFORT_SCORE if owned else 0.0

        return AnalysisResult(
            fit_score=score,
            matched_skills=matched,
            missing_skills=missing,
            recommendation=(
                f"Basic keyword match analysis (AI unavailable). Found {len(matched)} "
                f"matching skills out of {len(jd_skills)} detected in JD."
            ),
            improvement_plan=[ImprovementItem(area="System", advice=DEGRADED_ADVICE)],
            job_title=PLACEHOLDER_TITLE,
            company=PLACEHOLDER_COMPANY,
            scoring=ScoringMethod.HEURISTIC,
        )
