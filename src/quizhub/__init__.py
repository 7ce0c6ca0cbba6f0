"""QuizHub backend: authentication and session issuance for the quiz platform."""

__version__ = "1.0.0"
