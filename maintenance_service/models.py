from datetime import datetime

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column
from shared.database import Base, new_id, utcnow


class UserActivity(Base):
    __tablename__ = "user_activity"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    activity_type: Mapped[str] = mapped_column(String(50))   # e.g. data_refresh
    activity_data: Mapped[dict] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
