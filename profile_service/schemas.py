from pydantic import BaseModel, Field


class ProfileUpsertIn(BaseModel):
    full_name: str = Field(default="", max_length=200)
    class_level: str = Field(
        default="",
        description="Current class level",
        pattern=r"^(|10th|12th|UG|PG|Diploma)$",
    )
    study_area: str = Field(
        default="",
        description="Stream the student studies in",
        pattern=r"^(|Science|Commerce|Arts|All)$",
    )
    preferred_state: str = Field(default="", max_length=100)
    preferred_district: str = Field(default="", max_length=100)
    current_course: str = Field(default="", max_length=200)
    target_course_interest: list[str] = Field(default_factory=list)


class ProfileOut(BaseModel):
    user_id: str
    full_name: str
    class_level: str
    study_area: str
    preferred_state: str
    preferred_district: str
    current_course: str = ""
    target_course_interest: list[str] = []
