from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from shared.auth import current_user, require_admin
from shared.database import db_dependency
from shared.errors import NotFound
from .models import FAQ, NGO, College, VerifiedJob, VerifiedScholarship
from .schemas import (
    CollegeIn, CollegeOut, FAQGroupOut, FAQIn, FAQOut, JobIn, JobOut, NGOIn, NGOOut, ScholarshipIn, ScholarshipOut,
)
from .crud import (
    create_row, delete_row, get_row, group_faqs, list_colleges, list_faqs, list_jobs, list_ngos, list_scholarships,
    update_row,
)


def build_router(SessionLocal):
    router = APIRouter(prefix="/catalog", tags=["catalog"])
    get_db = db_dependency(SessionLocal)

    def _get_or_404(db: Session, model, row_id: str, label: str):
        row = get_row(db, model, row_id)
        if not row:
            raise NotFound(f"{label} not found")
        return row

    # Colleges
    @router.get("/colleges", response_model=list[CollegeOut])
    def colleges(request: Request, state: str | None = Query(default=None), db: Session = Depends(get_db)):
        current_user(request)
        return list_colleges(db, state)

    @router.get("/colleges/{college_id}", response_model=CollegeOut)
    def college(college_id: str, request: Request, db: Session = Depends(get_db)):
        current_user(request)
        return _get_or_404(db, College, college_id, "College")

    @router.post("/colleges", response_model=CollegeOut)
    def create_college(payload: CollegeIn, request: Request, db: Session = Depends(get_db)):
        require_admin(request)
        return create_row(db, College, payload.model_dump())

    @router.delete("/colleges/{college_id}", response_model=dict)
    def remove_college(college_id: str, request: Request, db: Session = Depends(get_db)):
        require_admin(request)
        if not delete_row(db, College, college_id):
            raise NotFound("College not found")
        return {"deleted": True}

    # Verified scholarships
    @router.get("/scholarships", response_model=list[ScholarshipOut])
    def scholarships(request: Request, status: str | None = Query(default=None), db: Session = Depends(get_db)):
        current_user(request)
        return list_scholarships(db, status)

    @router.get("/scholarships/{scholarship_id}", response_model=ScholarshipOut)
    def scholarship(scholarship_id: str, request: Request, db: Session = Depends(get_db)):
        current_user(request)
        return _get_or_404(db, VerifiedScholarship, scholarship_id, "Scholarship")

    @router.post("/scholarships", response_model=ScholarshipOut)
    def create_scholarship(payload: ScholarshipIn, request: Request, db: Session = Depends(get_db)):
        require_admin(request)
        return create_row(db, VerifiedScholarship, payload.model_dump())

    @router.delete("/scholarships/{scholarship_id}", response_model=dict)
    def remove_scholarship(scholarship_id: str, request: Request, db: Session = Depends(get_db)):
        require_admin(request)
        if not delete_row(db, VerifiedScholarship, scholarship_id):
            raise NotFound("Scholarship not found")
        return {"deleted": True}

    # Verified jobs
    @router.get("/jobs", response_model=list[JobOut])
    def jobs(request: Request, active: bool = Query(default=False), db: Session = Depends(get_db)):
        current_user(request)
        return list_jobs(db, active_only=active)

    @router.get("/jobs/{job_id}", response_model=JobOut)
    def job(job_id: str, request: Request, db: Session = Depends(get_db)):
        current_user(request)
        return _get_or_404(db, VerifiedJob, job_id, "Job")

    @router.post("/jobs", response_model=JobOut)
    def create_job(payload: JobIn, request: Request, db: Session = Depends(get_db)):
        require_admin(request)
        return create_row(db, VerifiedJob, payload.model_dump())

    @router.delete("/jobs/{job_id}", response_model=dict)
    def remove_job(job_id: str, request: Request, db: Session = Depends(get_db)):
        require_admin(request)
        if not delete_row(db, VerifiedJob, job_id):
            raise NotFound("Job not found")
        return {"deleted": True}

    # FAQs
    @router.get("/faqs", response_model=list[FAQOut])
    def faqs(request: Request, include_inactive: bool = Query(default=False), db: Session = Depends(get_db)):
        if include_inactive:
            require_admin(request)
        else:
            current_user(request)
        return list_faqs(db, include_inactive=include_inactive)

    @router.get("/faqs/grouped", response_model=list[FAQGroupOut])
    def faqs_grouped(request: Request, db: Session = Depends(get_db)):
        current_user(request)
        return [
            FAQGroupOut(category=c, faqs=[FAQOut.model_validate(r) for r in rows])
            for c, rows in group_faqs(list_faqs(db))
        ]

    @router.post("/faqs", response_model=FAQOut)
    def create_faq(payload: FAQIn, request: Request, db: Session = Depends(get_db)):
        require_admin(request)
        return create_row(db, FAQ, payload.model_dump())

    @router.put("/faqs/{faq_id}", response_model=FAQOut)
    def update_faq(faq_id: str, payload: FAQIn, request: Request, db: Session = Depends(get_db)):
        require_admin(request)
        row = update_row(db, FAQ, faq_id, payload.model_dump())
        if not row:
            raise NotFound("FAQ not found")
        return row

    @router.delete("/faqs/{faq_id}", response_model=dict)
    def remove_faq(faq_id: str, request: Request, db: Session = Depends(get_db)):
        require_admin(request)
        if not delete_row(db, FAQ, faq_id):
            raise NotFound("FAQ not found")
        return {"deleted": True}

    # NGOs
    @router.get("/ngos", response_model=list[NGOOut])
    def ngos(request: Request, state: str | None = Query(default=None), db: Session = Depends(get_db)):
        current_user(request)
        return list_ngos(db, state)

    @router.get("/ngos/{ngo_id}", response_model=NGOOut)
    def ngo(ngo_id: str, request: Request, db: Session = Depends(get_db)):
        current_user(request)
        return _get_or_404(db, NGO, ngo_id, "NGO")

    @router.post("/ngos", response_model=NGOOut)
    def create_ngo(payload: NGOIn, request: Request, db: Session = Depends(get_db)):
        require_admin(request)
        return create_row(db, NGO, payload.model_dump())

    @router.put("/ngos/{ngo_id}", response_model=NGOOut)
    def update_ngo(ngo_id: str, payload: NGOIn, request: Request, db: Session = Depends(get_db)):
        require_admin(request)
        row = update_row(db, NGO, ngo_id, payload.model_dump())
        if not row:
            raise NotFound("NGO not found")
        return row

    @router.delete("/ngos/{ngo_id}", response_model=dict)
    def remove_ngo(ngo_id: str, request: Request, db: Session = Depends(get_db)):
        require_admin(request)
        if not delete_row(db, NGO, ngo_id):
            raise NotFound("NGO not found")
        return {"deleted": True}

    return router
