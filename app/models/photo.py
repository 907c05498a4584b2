"""ORM model for the optional profile photo (table user_photos)."""

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    LargeBinary,
    String,
    func,
)
from sqlalchemy.orm import deferred

from app.models.base import Base


class Photo(Base):
    """
    Zero-or-one photo per profile, keyed by user_details_id.

    file_size always equals len(data). Removed by the schema when its profile is deleted.
    """

    __tablename__ = "user_photos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Loaded only when accessed; listing photos never pulls the blob.
    data = deferred(Column(LargeBinary, nullable=False))
    file_name = Column(String(255), nullable=True)
    file_type = Column(String(255), nullable=True)
    file_size = Column(BigInteger, nullable=False)
    upload_date = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    profile_id = Column(
        "user_details_id",
        Integer,
        ForeignKey("user_details.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
