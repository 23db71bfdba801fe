from praxis.models.user import User
from praxis.models.video import Video
from praxis.models.quiz import Quiz
from praxis.models.quiz_question import QuizQuestion
from praxis.models.quiz_session import QuizSession
from praxis.models.quiz_answer import QuizAnswer
from praxis.models.datesheet import Datesheet
from praxis.models.video_suggestion import VideoSuggestion

__all__ = [
    "User",
    "Video",
    "Quiz",
    "QuizQuestion",
    "QuizSession",
    "QuizAnswer",
    "Datesheet",
    "VideoSuggestion",
]
