import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from shared.database import utcnow
from shared.llm import AIGateway
from catalog_service.models import College, VerifiedJob, VerifiedScholarship
from recommendation_engine.recommendation_logic import ScoredItem, confidence_band, parse_scored_items
from .schemas import (
    AptitudeProfile,
    CollegeMatch,
    JobMatch,
    MapMeta,
    MapOut,
    MappedRecommendations,
    ScholarshipMatch,
)

logger = logging.getLogger("opportunity-mapper")

MAX_COLLEGES = 20
JOB_WINDOW_DAYS = 7
EARTH_RADIUS_KM = 6371.0
COLLEGE_CATALOG_SOURCE = "College catalog"


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


# ----------------------------
# Candidate selection
# ----------------------------

@dataclass
class Candidates:
    colleges: dict[str, College] = field(default_factory=dict)
    scholarships: dict[str, VerifiedScholarship] = field(default_factory=dict)
    jobs: dict[str, VerifiedJob] = field(default_factory=dict)
    distances: dict[str, float] = field(default_factory=dict)   # college id -> km

    def empty(self) -> bool:
        return not (self.colleges or self.scholarships or self.jobs)


def candidate_colleges(db: Session, profile: AptitudeProfile) -> tuple[list[College], dict[str, float]]:
    if not profile.preferred_locations:
        return [], {}

    rows = (
        db.query(College)
        .filter(College.is_active.is_(True), College.state.in_(profile.preferred_locations))
        .order_by(College.rating.desc(), College.college_name.asc())
        .all()
    )

    distances: dict[str, float] = {}
    loc = profile.user_location
    if loc is not None and profile.max_distance_km is not None:
        near = []
        for c in rows:
            # no coordinates, no way to honour the radius
            if c.latitude is None or c.longitude is None:
                continue
            d = haversine_km(loc.latitude, loc.longitude, c.latitude, c.longitude)
            if d <= profile.max_distance_km:
                distances[c.id] = round(d, 1)
                near.append(c)
        rows = near
    elif loc is not None:
        for c in rows:
            if c.latitude is not None and c.longitude is not None:
                distances[c.id] = round(haversine_km(loc.latitude, loc.longitude, c.latitude, c.longitude), 1)

    rows = rows[:MAX_COLLEGES]
    kept = {c.id for c in rows}
    return rows, {cid: d for cid, d in distances.items() if cid in kept}


def candidate_scholarships(db: Session, profile: AptitudeProfile, now: datetime) -> list[VerifiedScholarship]:
    rows = (
        db.query(VerifiedScholarship)
        .filter(
            VerifiedScholarship.status == "open",
            or_(VerifiedScholarship.deadline.is_(None), VerifiedScholarship.deadline >= now),
        )
        .order_by(VerifiedScholarship.deadline.asc())
        .all()
    )
    wanted = {loc.lower() for loc in profile.preferred_locations}

    out = []
    for s in rows:
        levels = s.target_academic_level or []
        if levels and profile.academic_level not in levels:
            continue
        targets = {t.lower() for t in (s.target_locations or [])}
        if targets and not (targets & wanted):
            continue
        out.append(s)
    return out


def candidate_jobs(db: Session, now: datetime) -> list[VerifiedJob]:
    since = now - timedelta(days=JOB_WINDOW_DAYS)
    return (
        db.query(VerifiedJob)
        .filter(VerifiedJob.is_active.is_(True), VerifiedJob.posting_date >= since)
        .order_by(VerifiedJob.posting_date.desc())
        .all()
    )


def gather_candidates(db: Session, profile: AptitudeProfile, now: datetime) -> Candidates:
    colleges, distances = candidate_colleges(db, profile)
    return Candidates(
        colleges={c.id: c for c in colleges},
        scholarships={s.id: s for s in candidate_scholarships(db, profile, now)},
        jobs={j.id: j for j in candidate_jobs(db, now)},
        distances=distances,
    )


# ----------------------------
# LLM ranking
# ----------------------------

MAPPING_SYSTEM_PROMPT = """You are a career guidance counselor matching a student to real opportunities.
You receive the student's aptitude profile and numbered candidate lists of colleges,
scholarships and jobs taken from a verified catalog.

Rules:
- Only return items from the candidate lists, using their exact id.
- Give each chosen item a confidence from 0 to 100 expressing fit with the profile.
- Give a one-sentence reason that cites the relevant skills, location or academic level.
- Leave out items that do not fit; an empty list is acceptable."""


def _scored_list_schema(description: str) -> dict:
    return {
        "type": "array",
        "description": description,
        "items": {
            "type": "object",
            "properties": {
                "id": {"type": "string", "description": "Candidate id exactly as given"},
                "title": {"type": "string"},
                "confidence": {"type": "number", "minimum": 0, "maximum": 100},
                "reason": {"type": "string"},
            },
            "required": ["id", "title", "confidence", "reason"],
            "additionalProperties": False,
        },
    }


MAPPING_TOOL = {
    "type": "object",
    "properties": {
        "colleges": _scored_list_schema("Matching colleges"),
        "scholarships": _scored_list_schema("Matching scholarships"),
        "jobs": _scored_list_schema("Matching jobs"),
    },
    "required": ["colleges", "scholarships", "jobs"],
    "additionalProperties": False,
}


def top_skills(profile: AptitudeProfile, n: int = 3) -> list[str]:
    skills = profile.skills.model_dump()
    return [name for name, _ in sorted(skills.items(), key=lambda kv: -kv[1])[:n]]


def build_mapping_prompt(profile: AptitudeProfile, cands: Candidates) -> str:
    skills = ", ".join(f"{k}: {v}" for k, v in profile.skills.model_dump().items())
    lines = [
        f"Academic level: {profile.academic_level}",
        f"Percentile/band: {profile.score_percentile_or_band}",
        f"Skills: {skills}",
        f"Interests: {', '.join(profile.interests) or 'not specified'}",
        f"Preferred locations: {', '.join(profile.preferred_locations) or 'any'}",
        "",
        "Colleges:",
    ]
    for c in cands.colleges.values():
        courses = ", ".join(c.courses_offered or []) or "various courses"
        dist = f", {cands.distances[c.id]} km away" if c.id in cands.distances else ""
        lines.append(f"- [{c.id}] {c.college_name} ({c.district or c.location}, {c.state}{dist}); courses: {courses}")
    lines.append("")
    lines.append("Scholarships:")
    for s in cands.scholarships.values():
        lines.append(f"- [{s.id}] {s.name} by {s.provider}; eligibility: {s.eligibility_summary}; amount: {s.amount}")
    lines.append("")
    lines.append("Jobs:")
    for j in cands.jobs.values():
        skills_needed = ", ".join(j.required_skills or []) or "not listed"
        lines.append(f"- [{j.id}] {j.role} at {j.company} ({j.location}); skills: {skills_needed}")
    return "\n".join(lines)


def request_opportunity_ranking(llm: AIGateway, profile: AptitudeProfile, cands: Candidates) -> dict[str, list[ScoredItem]]:
    args = llm.call_tool(
        system_prompt=MAPPING_SYSTEM_PROMPT,
        user_prompt=build_mapping_prompt(profile, cands),
        tool_name="map_opportunities",
        description="Return the matching colleges, scholarships and jobs with confidence scores",
        parameters=MAPPING_TOOL,
        failure_message="Failed to map opportunities",
    )
    return {
        kind: parse_scored_items(args.get(kind, []), title_field="title", kind=kind, id_field="id")
        for kind in ("colleges", "scholarships", "jobs")
    }


# ----------------------------
# Result assembly
# ----------------------------

def _college_match(c: College, item: ScoredItem, distance: Optional[float]) -> CollegeMatch:
    return CollegeMatch(
        id=c.id,
        name=c.college_name,
        state=c.state,
        district=c.district,
        location=c.location,
        college_type=c.college_type,
        courses_offered=c.courses_offered or [],
        fees=c.fees,
        rating=c.rating,
        admission_link=c.admission_link or c.website,
        distance_km=distance,
        confidence_score=item.confidence,
        confidence_band=confidence_band(item.confidence),
        match_reason=item.reason,
    )


def _scholarship_match(s: VerifiedScholarship, item: ScoredItem) -> ScholarshipMatch:
    return ScholarshipMatch(
        id=s.id,
        name=s.name,
        provider=s.provider,
        eligibility_summary=s.eligibility_summary,
        amount=s.amount,
        deadline=s.deadline,
        apply_url=s.apply_url,
        official_domain=s.official_domain,
        required_documents=s.required_documents or [],
        confidence_score=item.confidence,
        confidence_band=confidence_band(item.confidence),
        match_reason=item.reason,
    )


def _job_match(j: VerifiedJob, item: ScoredItem) -> JobMatch:
    return JobMatch(
        id=j.id,
        role=j.role,
        company=j.company,
        location=j.location,
        job_type=j.job_type,
        salary_range=j.salary_range,
        apply_url=j.apply_url,
        source_site=j.source_site,
        required_skills=j.required_skills or [],
        posting_date=j.posting_date,
        confidence_score=item.confidence,
        confidence_band=confidence_band(item.confidence),
        match_reason=item.reason,
    )


def _pick(items: list[ScoredItem], known: dict, kind: str, errors: list[str]) -> list[tuple[object, ScoredItem]]:
    seen: set[str] = set()
    out = []
    for item in items:
        if item.item_id not in known:
            errors.append(f"Unknown {kind} id returned: {item.item_id}")
            continue
        if item.item_id in seen:
            continue
        seen.add(item.item_id)
        out.append((known[item.item_id], item))
    return out


def explain(profile: AptitudeProfile, recs: MappedRecommendations) -> list[str]:
    out = [f"Your top skills are {', '.join(top_skills(profile))}. We've matched opportunities based on these strengths."]
    if recs.colleges:
        out.append(f"Found {len(recs.colleges)} colleges in your preferred locations with programs matching your aptitude.")
    if recs.scholarships:
        out.append(f"{len(recs.scholarships)} scholarships available. Apply early as deadlines approach.")
    if recs.jobs:
        out.append(f"{len(recs.jobs)} recent job postings match your skill profile. All posted within last {JOB_WINDOW_DAYS} days.")
    if not (recs.colleges or recs.scholarships or recs.jobs):
        out.append("No matching opportunities were found for your preferred locations and academic level.")
    return out


def collect_sources(cands: Candidates) -> list[str]:
    sources = set()
    if cands.colleges:
        sources.add(COLLEGE_CATALOG_SOURCE)
    sources.update(s.official_domain for s in cands.scholarships.values() if s.official_domain)
    sources.update(j.source_site for j in cands.jobs.values() if j.source_site)
    return sorted(sources)


def map_opportunities(
    db: Session,
    llm_provider,
    profile: AptitudeProfile,
    profile_id: str,
    now: Optional[datetime] = None,
) -> MapOut:
    """
    Rank catalog colleges, scholarships and jobs for one aptitude profile.

    ``llm_provider`` is only called when there is at least one candidate.
    Ids the model invents are dropped and reported in ``errors``.
    """
    now = now or utcnow()
    cands = gather_candidates(db, profile, now)
    logger.info(
        "Candidates for %s: %d colleges, %d scholarships, %d jobs",
        profile_id, len(cands.colleges), len(cands.scholarships), len(cands.jobs),
    )

    errors: list[str] = []
    recs = MappedRecommendations()
    if not cands.empty():
        ranked = request_opportunity_ranking(llm_provider(), profile, cands)
        recs.colleges = [
            _college_match(c, item, cands.distances.get(c.id))
            for c, item in _pick(ranked["colleges"], cands.colleges, "college", errors)
        ]
        recs.scholarships = [
            _scholarship_match(s, item)
            for s, item in _pick(ranked["scholarships"], cands.scholarships, "scholarship", errors)
        ]
        recs.jobs = [_job_match(j, item) for j, item in _pick(ranked["jobs"], cands.jobs, "job", errors)]
        for lst in (recs.colleges, recs.scholarships, recs.jobs):
            lst.sort(key=lambda m: -m.confidence_score)

    if errors:
        logger.warning("Dropped %d unknown ids from model output", len(errors))

    return MapOut(
        meta=MapMeta(timestamp=now, profile_id=profile_id, sources=collect_sources(cands)),
        recommendations=recs,
        explanations=explain(profile, recs),
        errors=errors,
    )
