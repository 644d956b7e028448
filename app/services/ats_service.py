from __future__ import annotations

import logging
from typing import Any

from app.db import store
from app.schemas.resume import OptimizeRequest, OptimizeSuggestion
from app.services.errors import ServiceError
from app.services.llm import LLMError, json_completion, sanitize_text, text_completion
from app.services.tiers import is_paid_tier

logger = logging.getLogger(__name__)

_ATS_JSON_SHAPE = """{
  "ats_score": <number 0-100>,
  "keyword_analysis": {
    "found_keywords": ["list of important keywords found"],
    "missing_keywords": ["list of important keywords missing"],
    "keyword_score": <number 0-100>
  },
  "formatting_issues": [
    {
      "issue": "description of formatting problem",
      "severity": "high|medium|low",
      "recommendation": "how to fix it"
    }
  ],
  "content_strengths": ["list of resume strengths"],
  "content_improvements": [
    {
      "area": "section or aspect name",
      "current_state": "what's currently there",
      "suggestion": "how to improve",
      "priority": "high|medium|low"
    }
  ],
  "section_checks": {
    "contact_info": {"present": true/false, "score": <number 0-100>, "issues": []},
    "summary": {"present": true/false, "score": <number 0-100>, "issues": []},
    "experience": {"present": true/false, "score": <number 0-100>, "issues": []},
    "education": {"present": true/false, "score": <number 0-100>, "issues": []},
    "skills": {"present": true/false, "score": <number 0-100>, "issues": []}
  },
  "action_items": [
    {
      "priority": 1,
      "action": "specific actionable item",
      "category": "formatting|keywords|content|sections",
      "impact": "expected ATS score improvement"
    }
  ]
}"""

_JOB_MATCH_SHAPE = """{
  "keyword_analysis": {
    "found_keywords": ["keywords from job description found in resume"],
    "missing_keywords": ["keywords from job description NOT found in resume"],
    "keyword_score": <number 0-100 based on match percentage>,
    "job_match_percentage": <number 0-100>
  },
  "job_specific_suggestions": [
    {
      "keyword": "specific keyword to add",
      "where_to_add": "section suggestion",
      "reason": "why this keyword is important for this job"
    }
  ]
}"""


def _clamp_score(value: float) -> int:
    return int(max(0, min(100, round(value))))


def build_ats_prompt(resume_text: str, job_description: str | None) -> str:
    prompt = (
        "Analyze this resume and provide a comprehensive ATS (Applicant Tracking System) "
        "compatibility assessment.\n\n"
        f"RESUME TEXT:\n{resume_text}\n\n"
        "Please provide a detailed analysis in the following EXACT JSON format "
        "(respond ONLY with valid JSON, no markdown):\n"
        f"{_ATS_JSON_SHAPE}"
    )
    if job_description and job_description.strip():
        prompt += (
            f"\n\nJOB DESCRIPTION:\n{job_description}\n\n"
            "Additionally, compare the resume against the job description and update the "
            f"keyword_analysis section with:\n{_JOB_MATCH_SHAPE}"
        )
    prompt += (
        "\n\nIMPORTANT: Respond ONLY with valid JSON. Do not include markdown code blocks, "
        "explanations, or any text outside the JSON object."
    )
    return prompt


def derive_scores(result: dict[str, Any]) -> dict[str, Any]:
    """Pull the stored score columns out of the model's JSON, tolerating missing keys."""
    keyword_analysis = result.get("keyword_analysis") if isinstance(result.get("keyword_analysis"), dict) else {}
    ats_score = result.get("ats_score")
    keyword_score = keyword_analysis.get("keyword_score")
    formatting_issues = result.get("formatting_issues") or []
    strengths = result.get("content_strengths") or []
    missing = keyword_analysis.get("missing_keywords")
    found = keyword_analysis.get("found_keywords")

    ats_value = ats_score if isinstance(ats_score, (int, float)) and not isinstance(ats_score, bool) else 0
    keyword_value = keyword_score if isinstance(keyword_score, (int, float)) and not isinstance(keyword_score, bool) else 0
    formatting_score = _clamp_score(100 - len(formatting_issues) * 10)
    content_score = 70 if strengths else 50

    return {
        "ats_score": _clamp_score(ats_value),
        "keyword_match_score": _clamp_score(keyword_value),
        "analysis_data": {
            "formatting_score": formatting_score,
            "content_score": content_score,
            "keyword_score": _clamp_score(keyword_value),
        },
        "missing_keywords": missing if isinstance(missing, list) else [],
        "matched_keywords": found if isinstance(found, list) else [],
    }


def create_analysis(profile: dict[str, Any], resume_text: str, job_description: str | None) -> dict[str, Any]:
    if not resume_text or not resume_text.strip():
        raise ServiceError("Resume text is empty", status_code=400)
    payment_status = "completed" if is_paid_tier(profile.get("subscription_tier")) else "pending"
    analysis = store.create_analysis(
        user_id=profile["id"],
        resume_text=resume_text,
        job_description=job_description,
        payment_status=payment_status,
    )
    logger.info("resume_analysis_created id=%s user=%s payment_status=%s", analysis["id"], profile["id"], payment_status)
    return analysis


def analyze_resume_ats(
    profile: dict[str, Any],
    *,
    resume_text: str | None,
    analysis_id: str | None,
    job_description: str | None = None,
) -> dict[str, Any]:
    if not resume_text or not analysis_id:
        raise ServiceError("Missing required fields: resume_text, analysis_id", status_code=400)

    analysis = store.get_analysis(analysis_id, profile["id"])
    if not analysis:
        raise ServiceError("Analysis not found", status_code=404)

    # Exact tier names only; fuzzy plan names do not count.
    is_pro_user = profile.get("subscription_tier") in {"PRO", "PRO_MAX"}
    if not is_pro_user and analysis.get("payment_status") != "completed":
        raise ServiceError("Payment required for FREE users", status_code=402)

    prompt = build_ats_prompt(sanitize_text(resume_text), sanitize_text(job_description) if job_description else None)
    try:
        result = json_completion(prompt=prompt, purpose="ats_analysis")
    except LLMError as exc:
        logger.error("ats_analysis_failed id=%s code=%s: %s", analysis_id, exc.code, exc)
        if exc.code == "llm_disabled":
            raise ServiceError(str(exc), status_code=500) from exc
        raise ServiceError(f"Failed to analyze resume: {exc}", status_code=500) from exc

    scores = derive_scores(result)
    store.update_analysis(analysis_id, analysis_result=result, **scores)
    updated = store.get_analysis(analysis_id, profile["id"])
    if not updated:
        raise ServiceError("Analysis update returned no data", status_code=500)

    logger.info(
        "ats_analysis_saved id=%s ats_score=%s keyword_score=%s missing=%s matched=%s",
        analysis_id,
        scores["ats_score"],
        scores["keyword_match_score"],
        len(scores["missing_keywords"]),
        len(scores["matched_keywords"]),
    )
    return updated


def _format_suggestion(index: int, suggestion: OptimizeSuggestion) -> str:
    line = f"{index}. [{suggestion.category.upper()}] {suggestion.suggestion}"
    if suggestion.keyword:
        line += f' - Add keyword: "{suggestion.keyword}"'
        if suggestion.where_to_add:
            line += f" in {suggestion.where_to_add}"
    return line


def build_optimize_prompt(payload: OptimizeRequest) -> str:
    suggestions = "\n".join(_format_suggestion(i, s) for i, s in enumerate(payload.suggestions, start=1))
    job_block = f"\nTARGET JOB DESCRIPTION:\n{payload.job_description}\n" if payload.job_description else ""
    return (
        "You are a professional resume optimizer. Apply the following suggestions to improve this "
        "resume while maintaining its authenticity and professional tone.\n\n"
        f"ORIGINAL RESUME:\n{payload.original_resume_text}\n\n"
        f"SUGGESTIONS TO APPLY:\n{suggestions}\n"
        f"{job_block}\n"
        "INSTRUCTIONS:\n"
        "1. Apply ALL the suggestions listed above\n"
        "2. Maintain the original structure and formatting style\n"
        "3. Keep all existing information - only enhance, don't remove\n"
        "4. Add missing keywords naturally into appropriate sections\n"
        "5. Fix formatting issues while preserving readability\n"
        "6. Improve content based on suggestions without changing the core message\n"
        "7. Ensure the resume remains professional and authentic\n\n"
        "IMPORTANT: Return ONLY the optimized resume text. Do not include explanations, markdown "
        "formatting, or any text outside the resume content itself."
    )


def optimize_resume(profile: dict[str, Any], payload: OptimizeRequest) -> dict[str, Any]:
    if not payload.original_resume_text.strip() or not payload.suggestions:
        raise ServiceError("Missing required fields: original_resume_text, suggestions", status_code=400)

    analysis = store.get_analysis(payload.analysis_id, profile["id"])
    if not analysis:
        raise ServiceError("Analysis not found", status_code=404)

    try:
        optimized_text = text_completion(prompt=build_optimize_prompt(payload), purpose="resume_optimize")
    except LLMError as exc:
        logger.error("resume_optimize_failed id=%s code=%s: %s", payload.analysis_id, exc.code, exc)
        if exc.code == "llm_disabled":
            raise ServiceError(str(exc), status_code=500) from exc
        raise ServiceError(f"Failed to optimize resume: {exc}", status_code=500) from exc

    result = dict(analysis.get("analysis_result") or {})
    result.update(
        {
            "optimized_resume_text": optimized_text,
            "applied_suggestions": [s.model_dump() for s in payload.suggestions],
            "optimized_at": store.utc_now().isoformat(),
        }
    )
    store.update_analysis(payload.analysis_id, analysis_result=result)
    return {
        "success": True,
        "optimized_resume_text": optimized_text,
        "applied_suggestions_count": len(payload.suggestions),
    }
