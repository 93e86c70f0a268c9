from sqlalchemy import Column, Integer, String, Enum
from sqlalchemy.orm import relationship
from models.base import Base, TimestampMixin
from models.enums import Role

class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    auth_uid = Column(String(128), unique=True, index=True, nullable=False)  # identity provider subject
    email = Column(String(255), unique=True, index=True, nullable=False)
    display_name = Column(String(255), nullable=False)
    role = Column(Enum(Role, native_enum=False, length=16), default=Role.USER, nullable=False)
    avatar = Column(String(1024), nullable=True)

    quizzes = relationship("Quiz", back_populates="creator")

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
