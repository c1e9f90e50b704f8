# Import every model so Base.metadata sees all tables (Alembic relies on this).
from app.models.profile import Profile  # noqa: F401
from app.models.category import Category, MusicCategory  # noqa: F401
from app.models.audiobook import (  # noqa: F401
    Audiobook,
    AudiobookMusicCategory,
    BookMetadata,
    MusicMetadata,
)
from app.models.chapter import Chapter  # noqa: F401
from app.models.creator import AudiobookCreator, Creator  # noqa: F401
from app.models.support import SupportMessage, SupportTicket  # noqa: F401
from app.models.review import Review  # noqa: F401
from app.models.purchase import Purchase  # noqa: F401
from app.models.narrator_request import NarratorRequest  # noqa: F401
