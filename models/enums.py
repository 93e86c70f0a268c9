import enum


class Role(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class Difficulty(str, enum.Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


class FeedbackType(str, enum.Enum):
    QUESTION = "QUESTION"
    SUGGESTION = "SUGGESTION"
    BUG_REPORT = "BUG_REPORT"
