"""Static metadata describing StudentQuiz."""

APP_NAME = "StudentQuiz"
APP_VERSION = "0.1.0"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "StudentQuiz keeps a personal question bank, runs timed quizzes with partial credit "
    "for short answers, tracks your progress, and shares quizzes through links that "
    "anyone can open without an account."
)
