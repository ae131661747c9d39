import enum

# Identity used when the request carries no forwarding header
UNKNOWN_IDENTITY = "unknown"

DEFAULT_COOLDOWN_MINUTES = 30

# Subject ids live in 32-bit integer columns
MAX_SUBJECT_ID = 2**31 - 1


class SubjectKind(str, enum.Enum):
    ARTICLE = "article"
    FORUM_POST = "forum_post"
