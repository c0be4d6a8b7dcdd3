from dataclasses import dataclass, field
from typing import Dict, List, Optional

from quiz_service.scoring import round_half_up


# ----------------------------
# Reference tables
# ----------------------------

STREAM_COLLEGE_TYPES: Dict[str, List[str]] = {
    "Computer Science": [
        "Engineering & Technology", "BCA", "IT", "Computer", "Information Technology",
        "Software", "Data Science", "AI", "Cyber",
    ],
    "Medical": [
        "Medical-Allopathy", "Medical-Ayurveda", "BUMS", "BHMS", "BDS", "MBBS", "Para Medical",
        "Nursing", "Pharmacy", "B.Pharm", "D.Pharm", "Paramedical", "Medical", "Health", "Physiotherapy",
    ],
    "Commerce": [
        "Commerce", "Management", "BBA", "B.Com", "MBA", "Finance", "Accounting", "Business",
    ],
    "Arts": [
        "Arts", "Humanities", "Social Sciences", "Fine Arts", "Visual Arts", "Music", "Dance",
        "Literature", "Social Work", "Design",
    ],
    "Science": [
        "Science", "Physics", "Chemistry", "Biology", "Biotechnology", "Microbiology",
        "Agriculture", "Horticulture", "Food Technology", "Fisheries",
    ],
    "Engineering": [
        "Engineering & Technology", "B.Tech", "Architecture", "Mechanical", "Electrical",
        "Civil", "Electronics", "Chemical",
    ],
}

# education stage -> (next courses, college types offering them)
NEXT_COURSES: Dict[str, tuple] = {
    "12th_science_pcm": (
        ["B.Tech CSE", "B.Tech IT", "B.Tech AI/ML", "B.Tech Electronics", "BCA", "B.Sc Physics",
         "B.Sc Mathematics", "B.Arch"],
        ["Engineering & Technology", "BCA", "Science", "Architecture"],
    ),
    "12th_science_pcb": (
        ["MBBS", "BDS", "BAMS", "BHMS", "B.Pharm", "Nursing", "BPT", "B.Sc Nursing", "Paramedical"],
        ["Medical-Allopathy", "Medical-Ayurveda", "BHMS", "Para Medical", "Nursing", "Pharmacy"],
    ),
    "12th_commerce": (
        ["B.Com", "BBA", "CA Foundation", "CS Foundation", "B.Com Honours", "BBA Finance"],
        ["Commerce", "Management", "BBA"],
    ),
    "12th_arts": (
        ["BA", "BA Honours", "BJMC", "BSW", "BFA", "B.Des", "BA LLB"],
        ["Arts", "Humanities", "Social Sciences", "Fine Arts", "Visual Arts", "Social Work"],
    ),
    "diploma_cs": (
        ["B.Tech CSE (Lateral Entry)", "B.Tech IT (Lateral Entry)", "BCA", "B.Sc CS"],
        ["Engineering & Technology", "BCA", "IT", "Computer"],
    ),
    "diploma_engineering": (
        ["B.Tech (Lateral Entry)", "B.E. (Lateral Entry)"],
        ["Engineering & Technology", "Architecture"],
    ),
    "ug_cs": (
        ["M.Tech CSE", "MCA", "M.Sc CS", "MBA (IT)", "MS (Abroad)"],
        ["Engineering & Technology", "Management", "Science"],
    ),
    "ug_medical": (
        ["MD", "MS", "M.Sc Nursing", "M.Pharm", "MPT", "PhD"],
        ["Medical-Allopathy", "Medical-Ayurveda", "Para Medical", "Nursing"],
    ),
    "ug_commerce": (
        ["MBA", "M.Com", "CA Final", "CS Professional", "CMA"],
        ["Management", "Commerce"],
    ),
    "ug_arts": (
        ["MA", "MSW", "MFA", "M.Des", "LLB", "LLM"],
        ["Arts", "Social Sciences", "Fine Arts", "Humanities"],
    ),
    "ug_science": (
        ["M.Sc", "M.Tech", "MBA", "PhD"],
        ["Science", "Engineering & Technology", "Management"],
    ),
}

COURSE_DESCRIPTIONS: Dict[str, str] = {
    "B.Tech CSE": "Bachelor of Technology in Computer Science, a 4 year program in software and computing",
    "B.Tech IT": "Bachelor of Technology in Information Technology, a 4 year program for IT professionals",
    "B.Tech AI/ML": "Engineering degree specialising in Artificial Intelligence and Machine Learning",
    "BCA": "Bachelor of Computer Applications, a 3 year undergraduate program in computing",
    "MBBS": "Bachelor of Medicine and Bachelor of Surgery, a 5.5 year medical degree",
    "BDS": "Bachelor of Dental Surgery, a 5 year dental degree",
    "BAMS": "Bachelor of Ayurvedic Medicine and Surgery, a 5.5 year degree",
    "B.Pharm": "Bachelor of Pharmacy, a 4 year pharmaceutical science degree",
    "Nursing": "B.Sc Nursing, a 4 year nursing degree",
    "B.Com": "Bachelor of Commerce, a 3 year commerce program",
    "BBA": "Bachelor of Business Administration, a 3 year management program",
    "BA": "Bachelor of Arts, a 3 year arts program",
    "M.Tech CSE": "Master of Technology in Computer Science, 2 year postgraduate engineering",
    "MCA": "Master of Computer Applications, a 2 year postgraduate program",
    "MBA": "Master of Business Administration, a 2 year management program",
    "MBA (IT)": "MBA with an IT specialisation for tech management roles",
}

ENTRANCE_EXAMS: Dict[str, List[str]] = {
    "B.Tech CSE": ["JEE Main", "JEE Advanced", "State CETs"],
    "B.Tech IT": ["JEE Main", "JEE Advanced", "State CETs"],
    "B.Tech AI/ML": ["JEE Main", "JEE Advanced"],
    "BCA": ["IPU CET", "CUET", "University entrance"],
    "MBBS": ["NEET UG"],
    "BDS": ["NEET UG"],
    "BAMS": ["NEET UG"],
    "B.Pharm": ["GPAT", "State pharmacy exams"],
    "Nursing": ["NEET UG", "State nursing exams"],
    "B.Com": ["CUET", "DU JAT", "University entrance"],
    "BBA": ["IPMAT", "CUET", "SET"],
    "BA": ["CUET", "University entrance"],
    "M.Tech CSE": ["GATE"],
    "MCA": ["NIMCET", "TANCET", "MAH MCA CET"],
    "MBA": ["CAT", "XAT", "MAT", "GMAT"],
    "MBA (IT)": ["CAT", "XAT", "MAT"],
}

NEARBY_STATES: Dict[str, List[str]] = {
    "Andhra Pradesh": ["Telangana", "Karnataka", "Tamil Nadu", "Odisha", "Chhattisgarh"],
    "Arunachal Pradesh": ["Assam", "Nagaland"],
    "Assam": ["Arunachal Pradesh", "Nagaland", "Manipur", "Mizoram", "Tripura", "Meghalaya", "West Bengal"],
    "Bihar": ["Uttar Pradesh", "Jharkhand", "West Bengal"],
    "Chhattisgarh": ["Madhya Pradesh", "Maharashtra", "Odisha", "Jharkhand", "Telangana", "Andhra Pradesh"],
    "Delhi": ["Haryana", "Uttar Pradesh", "Rajasthan"],
    "Goa": ["Maharashtra", "Karnataka"],
    "Gujarat": ["Maharashtra", "Rajasthan", "Madhya Pradesh"],
    "Haryana": ["Delhi", "Punjab", "Himachal Pradesh", "Uttar Pradesh", "Rajasthan"],
    "Himachal Pradesh": ["Punjab", "Haryana", "Uttarakhand", "Jammu and Kashmir"],
    "Jharkhand": ["Bihar", "West Bengal", "Odisha", "Chhattisgarh", "Uttar Pradesh"],
    "Karnataka": ["Maharashtra", "Goa", "Kerala", "Tamil Nadu", "Andhra Pradesh", "Telangana"],
    "Kerala": ["Karnataka", "Tamil Nadu"],
    "Madhya Pradesh": ["Uttar Pradesh", "Rajasthan", "Gujarat", "Maharashtra", "Chhattisgarh"],
    "Maharashtra": ["Gujarat", "Madhya Pradesh", "Chhattisgarh", "Telangana", "Karnataka", "Goa"],
    "Manipur": ["Assam", "Nagaland", "Mizoram"],
    "Meghalaya": ["Assam"],
    "Mizoram": ["Assam", "Manipur", "Tripura"],
    "Nagaland": ["Assam", "Arunachal Pradesh", "Manipur"],
    "Odisha": ["West Bengal", "Jharkhand", "Chhattisgarh", "Andhra Pradesh"],
    "Punjab": ["Haryana", "Himachal Pradesh", "Rajasthan", "Jammu and Kashmir"],
    "Rajasthan": ["Gujarat", "Madhya Pradesh", "Uttar Pradesh", "Haryana", "Punjab"],
    "Sikkim": ["West Bengal"],
    "Tamil Nadu": ["Kerala", "Karnataka", "Andhra Pradesh", "Puducherry"],
    "Telangana": ["Maharashtra", "Chhattisgarh", "Karnataka", "Andhra Pradesh"],
    "Tripura": ["Assam", "Mizoram"],
    "Uttar Pradesh": ["Delhi", "Haryana", "Rajasthan", "Madhya Pradesh", "Chhattisgarh", "Bihar",
                      "Jharkhand", "Uttarakhand"],
    "Uttarakhand": ["Himachal Pradesh", "Uttar Pradesh"],
    "West Bengal": ["Bihar", "Jharkhand", "Odisha", "Sikkim", "Assam"],
    "Jammu and Kashmir": ["Himachal Pradesh", "Punjab", "Ladakh"],
    "Ladakh": ["Jammu and Kashmir", "Himachal Pradesh"],
    "Puducherry": ["Tamil Nadu"],
}

MAX_STREAM_COLLEGES = 15
MAX_FALLBACK_COLLEGES = 20
FALLBACK_CONFIDENCE = 60


# ----------------------------
# Student context
# ----------------------------

@dataclass
class StudentContext:
    class_level: str = ""
    study_area: str = ""
    current_course: str = ""
    target_course_interest: List[str] = field(default_factory=list)
    preferred_state: str = ""
    preferred_district: str = ""
    category_scores: Dict[str, int] = field(default_factory=dict)
    overall_score: int = 0


def _contains_any(text: str, words) -> bool:
    return any(w in text for w in words)


def determine_stream(ctx: StudentContext) -> str:
    """
    Stream from the current course first, then the study area, then the
    courses the student is interested in. Science is the fallback.
    """
    course = ctx.current_course.lower()
    if _contains_any(course, ("cse", "computer", "it", "bca", "software", "data")):
        return "Computer Science"
    if _contains_any(course, ("pcb", "medical", "mbbs", "nursing", "pharmacy", "biology")):
        return "Medical"
    if _contains_any(course, ("commerce", "bba", "bcom", "ca")):
        return "Commerce"
    if _contains_any(course, ("arts", "humanities", "ba ", "design")):
        return "Arts"
    if _contains_any(course, ("pcm", "engineering", "btech", "b.tech")):
        return "Engineering"

    area = ctx.study_area.lower()
    if area == "science":
        technical = ctx.category_scores.get("technical", 0)
        creative = ctx.category_scores.get("creative", 0)
        return "Engineering" if technical > creative else "Science"
    if area == "commerce":
        return "Commerce"
    if area == "arts":
        return "Arts"

    for target in ctx.target_course_interest:
        t = target.lower()
        if _contains_any(t, ("tech", "computer", "it")):
            return "Computer Science"
        if _contains_any(t, ("medical", "mbbs", "nursing")):
            return "Medical"
        if _contains_any(t, ("commerce", "bba")):
            return "Commerce"
        if _contains_any(t, ("arts", "design")):
            return "Arts"

    return "Science"


def education_stage(ctx: StudentContext, stream: str) -> str:
    level = ctx.class_level.lower()
    course = ctx.current_course.lower()

    if "12" in level:
        if stream in ("Computer Science", "Engineering") or "pcm" in course:
            return "12th_science_pcm"
        if stream == "Medical" or "pcb" in course or "biology" in course:
            return "12th_science_pcb"
        if stream == "Commerce":
            return "12th_commerce"
        if stream == "Arts":
            return "12th_arts"
        return "12th_science_pcm"

    if "diploma" in level:
        if stream == "Computer Science" or "cs" in course or "it" in course:
            return "diploma_cs"
        return "diploma_engineering"

    # PG students get the postgraduate table too
    if level in ("ug", "pg") or "b.tech" in course or "btech" in course:
        return {
            "Computer Science": "ug_cs",
            "Medical": "ug_medical",
            "Commerce": "ug_commerce",
            "Arts": "ug_arts",
        }.get(stream, "ug_science")

    return "12th_science_pcm"


def states_to_search(preferred_state: str) -> List[str]:
    if not preferred_state:
        return []
    return [preferred_state] + NEARBY_STATES.get(preferred_state, [])


# ----------------------------
# Next courses
# ----------------------------

@dataclass(frozen=True)
class NextCourse:
    name: str
    description: str
    entrance_exams: List[str]
    college_types: List[str]


def next_courses(ctx: StudentContext, stream: str) -> List[NextCourse]:
    courses, college_types = NEXT_COURSES[education_stage(ctx, stream)]
    current = ctx.current_course.lower()
    out = []
    for name in courses:
        # skip the course family the student is already in
        if current and name.lower().split(" ")[0] in current:
            continue
        out.append(NextCourse(
            name=name,
            description=COURSE_DESCRIPTIONS.get(name, f"{name}, a higher education program for career advancement"),
            entrance_exams=ENTRANCE_EXAMS.get(name, ["University entrance exam"]),
            college_types=list(college_types),
        ))
    return out


# ----------------------------
# College scoring
# ----------------------------

@dataclass(frozen=True)
class CollegeScore:
    college_id: str
    score: int
    reason: str
    is_user_state: bool


def matches_stream(college, stream: str) -> bool:
    keywords = [k.lower() for k in STREAM_COLLEGE_TYPES.get(stream, [])]
    specialisation = (college.specialised_in or "").lower()
    college_type = (college.college_type or "").lower()
    return any(k in specialisation or k in college_type for k in keywords)


def score_college(college, ctx: StudentContext, stream: str) -> CollegeScore:
    """
    Location 30, stream fit 45, rating 15, aptitude 10; capped at 100.
    Only the first two reasons are kept.
    """
    is_user_state = bool(ctx.preferred_state) and college.state == ctx.preferred_state
    is_user_district = is_user_state and bool(ctx.preferred_district) and college.district == ctx.preferred_district

    score = 0.0
    reasons = []

    if is_user_district:
        score += 30
        reasons.append("Located in your district")
    elif is_user_state:
        score += 25
        reasons.append("Located in your state")
    else:
        score += 10
        reasons.append("Nearby state")

    keywords = [k.lower() for k in STREAM_COLLEGE_TYPES.get(stream, [])]
    specialisation = (college.specialised_in or "").lower()
    if any(k in specialisation for k in keywords):
        score += 45
        reasons.append(f"Specializes in {stream}")
    else:
        score += 15

    if college.rating:
        score += min(15.0, college.rating / 5 * 15)
        if college.rating >= 4:
            reasons.append(f"High rating: {college.rating:.1f}")

    if ctx.overall_score > 70:
        score += 10
    elif ctx.overall_score > 50:
        score += 7
    else:
        score += 3

    return CollegeScore(
        college_id=college.id,
        score=min(100, round_half_up(score)),
        reason=" / ".join(reasons[:2]) or "General recommendation",
        is_user_state=is_user_state,
    )


def rank_colleges(colleges, ctx: StudentContext, stream: str) -> List[CollegeScore]:
    """
    Stream-matching colleges, home state first then by score. When none
    match, the first colleges of the candidate list are returned at a flat
    confidence.
    """
    scored = [score_college(c, ctx, stream) for c in colleges if matches_stream(c, stream)]
    if not scored:
        return [
            CollegeScore(
                college_id=c.id,
                score=FALLBACK_CONFIDENCE,
                reason="Top-rated college in your area",
                is_user_state=bool(ctx.preferred_state) and c.state == ctx.preferred_state,
            )
            for c in list(colleges)[:MAX_FALLBACK_COLLEGES]
        ]
    scored.sort(key=lambda s: (not s.is_user_state, -s.score))
    return scored[:MAX_STREAM_COLLEGES]


def build_context(profile, session: Optional[object]) -> StudentContext:
    """Profile row plus the latest completed quiz session, either may be missing."""
    ctx = StudentContext()
    if profile is not None:
        ctx.class_level = profile.class_level or ""
        ctx.study_area = profile.study_area or ""
        ctx.current_course = profile.current_course or ""
        ctx.target_course_interest = list(profile.target_course_interest or [])
        ctx.preferred_state = profile.preferred_state or ""
        ctx.preferred_district = profile.preferred_district or ""
    if session is not None:
        ctx.category_scores = {s["category"]: int(s["score"]) for s in (session.category_scores or [])}
        ctx.overall_score = session.score or 0
    return ctx
