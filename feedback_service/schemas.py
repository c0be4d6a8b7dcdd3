from datetime import datetime
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

RecommendationType = Literal["career", "college", "scholarship", "job"]
FeedbackType = Literal["like", "dislike", "applied", "not_interested"]
FavoriteType = Literal["career", "college", "scholarship"]

# free-form attribute bag
FeedbackData = dict[str, Union[str, int, float, bool, None]]


class FeedbackIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    recommendation_type: RecommendationType = Field(alias="recommendationType")
    recommendation_id: str = Field(min_length=1, max_length=36, alias="recommendationId")
    feedback_type: FeedbackType = Field(alias="feedbackType")
    feedback_data: Optional[FeedbackData] = Field(default=None, alias="feedbackData")


class SubmitOut(BaseModel):
    success: bool


class FeedbackLabelOut(BaseModel):
    recommendation_type: str
    recommendation_id: str
    feedback_type: str   # label or "none"


class FeedbackOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    recommendation_type: str
    recommendation_id: str
    feedback_type: str
    feedback_data: dict
    updated_at: datetime


class FeedbackStatOut(BaseModel):
    recommendation_type: str
    feedback_type: str
    count: int


class FavoriteIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    item_type: FavoriteType = Field(alias="itemType")
    item_id: str = Field(min_length=1, max_length=36, alias="itemId")


class FavoriteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    item_type: str
    item_id: str
    created_at: datetime


class TrainingStatsOut(BaseModel):
    performance_records: int
    users_analyzed: int
    updates_applied: int
    model_weights: dict[str, float]


class TrainOut(BaseModel):
    success: bool = True
    timestamp: datetime
    stats: TrainingStatsOut
    message: str
