from praxis.db.base_class import Base  # noqa: F401

# Import all the models here so that Base has them registered
# This file should NOT be imported by models.
from praxis.models.user import User  # noqa: F401
from praxis.models.video import Video  # noqa: F401
from praxis.models.quiz import Quiz  # noqa: F401
from praxis.models.quiz_question import QuizQuestion  # noqa: F401
from praxis.models.quiz_session import QuizSession  # noqa: F401
from praxis.models.quiz_answer import QuizAnswer  # noqa: F401
from praxis.models.datesheet import Datesheet  # noqa: F401
from praxis.models.video_suggestion import VideoSuggestion  # noqa: F401
